from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel

DIRECT_DRIVE = "DIRECT DRIVE"

SERVICE_LEVELS = (
    DIRECT_DRIVE,
    "LIFEGUARD",
    "LIFEGUARDXL",
    "QUICKPAK",
    "DASH CRITICAL",
    "DASH HEAVY",
    "EXPRESS HEAVY",
    "EK VITAL",
    "PPS",
    "EXPEDITEFS",
)

TEMP_ID_PREFIX = "tmp-"

RecordId = Union[int, str]


def new_temp_id() -> str:
    """Id for a lane or leg created locally and not yet persisted."""
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def is_temp_id(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(TEMP_ID_PREFIX)


def same_id(left: Any, right: Any) -> bool:
    """Compare ids that may arrive as ints from the backend and strings from a URL."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


def utc_timestamp() -> str:
    return datetime.utcnow().isoformat(timespec="seconds")


class ValidationState(str, Enum):
    PENDING = "PENDING"
    VALID = "VALID"
    INVALID = "INVALID"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ValidationState"]:
        # Older payloads use lowercase 'valid' / 'invalid'
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().upper():
                    return member
        return None

    @classmethod
    def from_legacy(cls, valid: Optional[bool]) -> "ValidationState":
        if valid is True:
            return cls.VALID
        if valid is False:
            return cls.INVALID
        return cls.PENDING

    def as_legacy(self) -> Optional[bool]:
        if self is ValidationState.VALID:
            return True
        if self is ValidationState.INVALID:
            return False
        return None


class Verdict(BaseModel):
    """Validation outcome of a single leg. Messages only accompany INVALID."""

    model_config = ConfigDict(frozen=True)

    state: ValidationState = ValidationState.PENDING
    messages: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _messages_only_when_invalid(self) -> "Verdict":
        if self.messages and self.state is not ValidationState.INVALID:
            raise ValueError("Only an INVALID verdict may carry messages")
        return self

    @classmethod
    def pending(cls) -> "Verdict":
        return cls()

    @classmethod
    def valid(cls) -> "Verdict":
        return cls(state=ValidationState.VALID)

    @classmethod
    def invalid(cls, messages: Optional[List[str]] = None) -> "Verdict":
        return cls(state=ValidationState.INVALID, messages=list(messages or []))


class WireModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Leg(WireModel):
    id: Optional[RecordId] = None
    sequence: int = 0
    service_level: Optional[str] = None
    flight_number: Optional[str] = None
    origin_station: Optional[str] = None
    destination_station: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    cutoff_time: Optional[str] = None
    flight_operating_days: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "flightOperatingdays", "flightOperatingDays", "flight_operating_days"
        ),
        serialization_alias="flightOperatingdays",
    )
    aircraft_by_day: Optional[Dict[str, str]] = None
    aircraft: Optional[str] = None
    aircraft_type: Optional[str] = None
    message: Optional[str] = None
    verdict: Verdict = Field(default_factory=Verdict)

    @model_validator(mode="before")
    @classmethod
    def _legacy_validity(cls, data: Any) -> Any:
        # Stored legs carry `valid: true|false|null` and `validMessage`
        if isinstance(data, dict) and "verdict" not in data:
            data = dict(data)
            if data.get("status") is not None:
                state = ValidationState(data["status"])
            else:
                state = ValidationState.from_legacy(data.get("valid"))
            messages = data.get("validMessage") or data.get("validationMessages") or []
            if state is ValidationState.INVALID:
                data["verdict"] = Verdict.invalid([str(m) for m in messages])
            else:
                data["verdict"] = Verdict(state=state)
        return data

    @property
    def is_transient(self) -> bool:
        return self.id is None or is_temp_id(self.id)

    @property
    def is_direct_drive(self) -> bool:
        return (self.service_level or "").strip().upper() == DIRECT_DRIVE

    def to_wire(self, for_persistence: bool = False) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude={"verdict"}, mode="json")
        data["valid"] = self.verdict.state.as_legacy()
        data["status"] = self.verdict.state.value
        data["validMessage"] = list(self.verdict.messages)
        if for_persistence and is_temp_id(self.id):
            data["id"] = None
        return data


class Lane(WireModel):
    id: Optional[RecordId] = None
    account_id: Optional[RecordId] = None
    lane_mapping_id: Optional[RecordId] = None
    item_number: Optional[str] = None
    lane_option: Optional[str] = None
    origin_city: Optional[str] = None
    origin_state: Optional[str] = None
    origin_country: Optional[str] = None
    destination_city: Optional[str] = None
    destination_state: Optional[str] = None
    destination_country: Optional[str] = None
    origin_station: str = ""
    destination_station: str = ""
    pick_up_time: Optional[str] = None
    service_level: Optional[str] = None
    drive_to_airport_duration: Optional[str] = None
    custom_clearance: Optional[str] = None
    drive_to_destination: Optional[str] = None
    actual_delivery_time_based_on_receiving: Optional[str] = None
    tat_to_consignee_duration: Optional[str] = None
    additional_notes: Optional[str] = None
    status: ValidationState = ValidationState.PENDING
    has_been_updated: bool = False
    last_update: Optional[str] = None
    legs: List[Leg] = Field(default_factory=list)

    # Bumped on every local mutation; orchestration results computed against
    # an older generation are discarded.
    _generation: int = PrivateAttr(default=0)

    @model_validator(mode="before")
    @classmethod
    def _legacy_status(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("status") is None:
                data["status"] = ValidationState.from_legacy(data.get("valid"))
            for key in ("originStation", "destinationStation", "origin_station", "destination_station"):
                if key in data and data[key] is None:
                    data[key] = ""
            if data.get("legs") is None and data.get("flights") is not None:
                data["legs"] = data["flights"]
            elif "legs" in data and data["legs"] is None:
                data["legs"] = []
        return data

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_transient(self) -> bool:
        return self.id is None or is_temp_id(self.id)

    @property
    def is_direct_drive(self) -> bool:
        if (self.service_level or "").strip().upper() == DIRECT_DRIVE:
            return True
        return bool(self.legs) and self.sorted_legs()[0].is_direct_drive

    def sorted_legs(self) -> List[Leg]:
        return sorted(self.legs, key=lambda leg: leg.sequence)

    def find_leg(self, leg_id: Any) -> Optional[Leg]:
        for leg in self.legs:
            if same_id(leg.id, leg_id):
                return leg
        return None

    def mark_updated(self) -> None:
        """Record a local mutation: dirty flag, timestamp and generation."""
        self._generation += 1
        self.has_been_updated = True
        self.last_update = utc_timestamp()

    def to_wire(self, for_persistence: bool = False, include_legs: bool = True) -> Dict[str, Any]:
        exclude = {"legs"}
        if for_persistence:
            exclude.add("has_been_updated")
        data = self.model_dump(by_alias=True, exclude=exclude, mode="json")
        data["valid"] = self.status.as_legacy()
        data["status"] = self.status.value
        if for_persistence and is_temp_id(self.id):
            data["id"] = None
        if include_legs:
            data["legs"] = [leg.to_wire(for_persistence) for leg in self.persisted_legs()]
        return data

    def persisted_legs(self) -> List[Leg]:
        """Legs as the backend stores them; a direct drive lane has none."""
        if self.is_direct_drive:
            return []
        return self.sorted_legs()


class RoutePattern(WireModel):
    """A candidate leg sequence returned by the suggestion service."""

    legs: List[Leg] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _bare_leg_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"legs": data}
        return data


class FlightValidationResult(WireModel):
    valid: bool = False
    message: Optional[str] = None
    mismatched_fields: List[str] = Field(default_factory=list)
    operating_days: Optional[str] = None
    aircraft_by_day: Optional[Dict[str, str]] = None

    @model_validator(mode="before")
    @classmethod
    def _null_lists(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("mismatchedFields") is None:
            data = dict(data)
            data.pop("mismatchedFields", None)
        return data


class AirportPairSuggestionRequest(WireModel):
    item_number: Optional[str] = None
    origin_airport: str
    destination_airport: str
    collection_time: Optional[str] = None


class LocationSuggestionRequest(WireModel):
    item_number: Optional[str] = None
    origin_city: Optional[str] = None
    origin_state: Optional[str] = None
    origin_country: Optional[str] = None
    destination_city: Optional[str] = None
    destination_state: Optional[str] = None
    destination_country: Optional[str] = None
    collection_time: Optional[str] = None


class ScopeKind(str, Enum):
    ACCOUNT = "account"
    LANE_MAPPING = "laneMapping"
    ALL = "all"


class LaneScope(BaseModel):
    """The parent grouping a set of lanes is loaded and saved under."""

    model_config = ConfigDict(frozen=True)

    kind: ScopeKind
    id: Optional[str] = None

    def __str__(self) -> str:
        if self.kind is ScopeKind.ALL:
            return self.kind.value
        return f"{self.kind.value}:{self.id}"
