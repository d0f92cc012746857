import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from laneops.core.errors import PersistenceError
from laneops.schemas.lane import (
    FlightValidationResult,
    Lane,
    LaneScope,
    Leg,
    RoutePattern,
    ScopeKind,
    is_temp_id,
)
from laneops.services.event_dispatcher import Event, EventDispatcher
from laneops.services.gateway.base import (
    FlightLegValidator,
    LaneStore,
    RouteSuggestionProvider,
    TatEngine,
)

ACCOUNT_SCOPE = LaneScope(kind=ScopeKind.ACCOUNT, id="7")


def make_leg(leg_id: Any, sequence: int, origin: str, destination: str, flight: Optional[str] = None, **fields) -> Leg:
    return Leg(
        id=leg_id,
        sequence=sequence,
        flight_number=flight or f"AA{100 + sequence}",
        origin_station=origin,
        destination_station=destination,
        departure_time="08:00",
        arrival_time="11:00",
        service_level=fields.pop("service_level", "LIFEGUARD"),
        **fields,
    )


def make_lane(
    lane_id: Any = 1,
    route: Sequence[Tuple[str, str]] = (("DFW", "ORD"), ("ORD", "JFK")),
    **fields,
) -> Lane:
    legs = [
        make_leg(f"{lane_id}-{index}", index, origin, destination)
        for index, (origin, destination) in enumerate(route, start=1)
    ]
    data = {
        "id": lane_id,
        "account_id": "7",
        "item_number": f"ITEM-{lane_id}",
        "service_level": "LIFEGUARD",
        "origin_station": legs[0].origin_station if legs else "",
        "destination_station": legs[-1].destination_station if legs else "",
        "legs": legs,
    }
    data.update(fields)
    return Lane(**data)


class FakeValidator(FlightLegValidator):
    """Valid by default; ``outcomes`` maps flight number to a result or an exception."""

    def __init__(self, outcomes: Optional[Dict[str, Any]] = None, delays: Optional[Dict[str, float]] = None):
        self.outcomes = outcomes or {}
        self.delays = delays or {}
        self.calls: List[str] = []

    async def validate_leg(self, leg: Leg) -> FlightValidationResult:
        self.calls.append(leg.flight_number)
        await asyncio.sleep(self.delays.get(leg.flight_number, 0))
        outcome = self.outcomes.get(leg.flight_number)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return FlightValidationResult(valid=True, message="Flight found", operating_days="Mon,Tue")
        return outcome


class FakeTatEngine(TatEngine):
    def __init__(self, result: str = "18hr", error: Optional[Exception] = None, delay: float = 0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: List[Any] = []

    async def calculate_tat(self, lane: Lane) -> str:
        self.calls.append(lane.id)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeSuggestionProvider(RouteSuggestionProvider):
    def __init__(self, patterns: Optional[List[RoutePattern]] = None, error: Optional[Exception] = None):
        self.patterns = patterns or []
        self.error = error
        self.calls: List[Tuple[str, Any]] = []

    async def suggest_by_airport_pair(self, request):
        self.calls.append(("airport_pair", request))
        if self.error is not None:
            raise self.error
        return list(self.patterns)

    async def suggest_by_location(self, request):
        self.calls.append(("location", request))
        if self.error is not None:
            raise self.error
        return list(self.patterns)


class InMemoryLaneStore(LaneStore):
    """Keeps lanes as wire payloads, the way the lanes backend would."""

    def __init__(self, lanes: Sequence[Lane] = ()):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.calls: Dict[str, int] = {"get": 0, "list": 0, "save_one": 0, "save_many": 0, "delete": 0}
        self.saved_payloads: List[List[Dict[str, Any]]] = []
        self.fail_writes = False
        self._next_id = 1000
        for lane in lanes:
            self._store(lane)

    def _assign_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _store(self, lane: Lane) -> int:
        row = lane.to_wire(for_persistence=True)
        if row["id"] is None:
            row["id"] = self._assign_id()
        for leg in row["legs"]:
            if leg["id"] is None:
                leg["id"] = self._assign_id()
        self.rows[str(row["id"])] = row
        return row["id"]

    def _load(self, row: Dict[str, Any]) -> Lane:
        return Lane.model_validate(row)

    async def get_lane(self, lane_id):
        self.calls["get"] += 1
        row = self.rows.get(str(lane_id))
        if row is None:
            raise PersistenceError(f"Lane {lane_id} not found", status_code=404)
        return self._load(row)

    async def list_lanes(self, scope: LaneScope):
        self.calls["list"] += 1
        rows = list(self.rows.values())
        if scope.kind is ScopeKind.ACCOUNT:
            rows = [row for row in rows if str(row.get("accountId")) == scope.id]
        elif scope.kind is ScopeKind.LANE_MAPPING:
            rows = [row for row in rows if str(row.get("laneMappingId")) == scope.id]
        return [self._load(row) for row in rows]

    async def save_lane(self, lane: Lane):
        self.calls["save_one"] += 1
        if self.fail_writes:
            raise PersistenceError("lanes store error 500: boom", status_code=500)
        new_id = self._store(lane)
        return new_id if is_temp_id(lane.id) else None

    async def save_lanes(self, scope: LaneScope, lanes: List[Lane]):
        self.calls["save_many"] += 1
        if self.fail_writes:
            raise PersistenceError("lanes store error 500: boom", status_code=500)
        self.saved_payloads.append([lane.to_wire(for_persistence=True) for lane in lanes])
        for lane in lanes:
            self._store(lane)
        return {"saved": len(lanes)}

    async def delete_lane(self, lane_id):
        self.calls["delete"] += 1
        self.rows.pop(str(lane_id), None)


class RecordingDispatcher(EventDispatcher):
    def __init__(self) -> None:
        super().__init__()
        self.events: List[Event] = []
        self.subscribe_all(self.events.append)


@pytest.fixture
def validator():
    return FakeValidator()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()
