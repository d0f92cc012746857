"""Field descriptor tables for lanes and legs.

Every editable, displayable or filterable field is declared here once with
its label, input formatter and whether the editor may set it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic.alias_generators import to_snake

from laneops.core.errors import ReadOnlyFieldError, UnknownFieldError
from laneops.schemas.lane import Lane, ValidationState

DAY_ABBREVIATIONS = {
    "MONDAY": "Mon",
    "TUESDAY": "Tue",
    "WEDNESDAY": "Wed",
    "THURSDAY": "Thu",
    "FRIDAY": "Fri",
    "SATURDAY": "Sat",
    "SUNDAY": "Sun",
}


def _identity(value: Any) -> Any:
    return value


def format_hours(value: Any) -> str:
    """'5 hrs' -> '5hr'; anything without digits becomes empty."""
    cleaned = re.sub(r"[^\d]", "", str(value or ""))
    return f"{cleaned}hr" if cleaned else ""


def format_station(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().upper()


def format_flight_number(value: Any) -> Optional[str]:
    """Upper-case the two-letter carrier prefix, leave the rest as typed."""
    if value is None:
        return None
    value = str(value).strip()
    if len(value) >= 2:
        return value[:2].upper() + value[2:]
    return value


def format_upper(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().upper()


def format_aircraft_by_day(aircraft_by_day: Optional[Dict[str, str]]) -> str:
    if not aircraft_by_day:
        return "-"
    unique = set(aircraft_by_day.values())
    if len(unique) == 1:
        return next(iter(unique))
    return ", ".join(
        f"{DAY_ABBREVIATIONS.get(day.upper(), day)}: {aircraft}"
        for day, aircraft in aircraft_by_day.items()
    )


@dataclass(frozen=True)
class FieldDescriptor:
    key: str
    label: str
    formatter: Callable[[Any], Any] = _identity
    read_only: bool = False
    searchable: bool = False

    def format(self, value: Any) -> Any:
        return self.formatter(value)


def _table(*descriptors: FieldDescriptor) -> Dict[str, FieldDescriptor]:
    return {d.key: d for d in descriptors}


LANE_FIELDS: Dict[str, FieldDescriptor] = _table(
    FieldDescriptor("origin_city", "Origin City", searchable=True),
    FieldDescriptor("origin_state", "Origin State", searchable=True),
    FieldDescriptor("origin_country", "Origin Country", searchable=True),
    FieldDescriptor("destination_city", "Destination City", searchable=True),
    FieldDescriptor("destination_state", "Destination State", searchable=True),
    FieldDescriptor("destination_country", "Destination Country", searchable=True),
    FieldDescriptor("item_number", "Item Number", searchable=True),
    FieldDescriptor("lane_option", "Lane Option", searchable=True),
    FieldDescriptor("pick_up_time", "Pick Up Time"),
    FieldDescriptor("service_level", "Service Level", format_upper),
    FieldDescriptor("drive_to_airport_duration", "Drive to Airport", format_hours),
    FieldDescriptor("origin_station", "Origin Station", read_only=True, searchable=True),
    FieldDescriptor("destination_station", "Destination Station", read_only=True, searchable=True),
    FieldDescriptor("custom_clearance", "Custom Clearance", format_hours),
    FieldDescriptor("drive_to_destination", "Drive to Destination", format_hours),
    FieldDescriptor("actual_delivery_time_based_on_receiving", "Delivery Time"),
    FieldDescriptor("tat_to_consignee_duration", "TAT Duration", format_hours),
    FieldDescriptor("additional_notes", "Notes"),
    FieldDescriptor("last_update", "Last Update", read_only=True),
)

LEG_FIELDS: Dict[str, FieldDescriptor] = _table(
    FieldDescriptor("sequence", "Seq", read_only=True),
    FieldDescriptor("service_level", "Service Level", format_upper),
    FieldDescriptor("flight_number", "Flight #", format_flight_number),
    FieldDescriptor("origin_station", "Origin", format_station),
    FieldDescriptor("departure_time", "Departure"),
    FieldDescriptor("destination_station", "Destination", format_station),
    FieldDescriptor("arrival_time", "Arrival"),
    FieldDescriptor("flight_operating_days", "Operating Days"),
    FieldDescriptor("aircraft_by_day", "Aircraft by Day", read_only=True),
    FieldDescriptor("aircraft", "Aircraft"),
    FieldDescriptor("aircraft_type", "Aircraft Type"),
    FieldDescriptor("cutoff_time", "Cutoff"),
    FieldDescriptor("message", "Leg Status", read_only=True),
)


def _lookup(table: Dict[str, FieldDescriptor], key: str, kind: str, editing: bool) -> FieldDescriptor:
    descriptor = table.get(key)
    if descriptor is None:
        raise UnknownFieldError(f"Unknown {kind} field '{key}'")
    if editing and descriptor.read_only:
        raise ReadOnlyFieldError(f"{kind.capitalize()} field '{key}' is read-only")
    return descriptor


def lane_field(key: str, editing: bool = False) -> FieldDescriptor:
    return _lookup(LANE_FIELDS, key, "lane", editing)


def leg_field(key: str, editing: bool = False) -> FieldDescriptor:
    return _lookup(LEG_FIELDS, key, "leg", editing)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def filter_lanes(
    lanes: Iterable[Lane],
    quick: Optional[str] = None,
    fields: Optional[Dict[str, str]] = None,
    status: Optional[ValidationState] = None,
) -> List[Lane]:
    """Quick filter over searchable columns, then per-field substring filters."""
    searchable = [d.key for d in LANE_FIELDS.values() if d.searchable]
    needle = (quick or "").strip().lower()
    wanted = {key: value.lower() for key, value in (fields or {}).items() if value}
    for key in wanted:
        lane_field(key)

    matches = []
    for lane in lanes:
        if needle and not any(needle in _text(getattr(lane, key)).lower() for key in searchable):
            continue
        if status is not None and lane.status is not status:
            continue
        if all(value in _text(getattr(lane, key)).lower() for key, value in wanted.items()):
            matches.append(lane)
    return matches


def unique_values(lanes: Iterable[Lane], key: str) -> List[str]:
    """Distinct non-empty values of a lane field, sorted, for filter dropdowns."""
    lane_field(key)
    values = {_text(getattr(lane, key)) for lane in lanes}
    values.discard("")
    return sorted(values)


# Wire spellings that do not round-trip through to_snake
_KEY_ALIASES = {
    "flight_operatingdays": "flight_operating_days",
}


def field_key(name: str) -> str:
    """Accept either snake_case or the camelCase wire name of a field."""
    key = to_snake(name.strip())
    return _KEY_ALIASES.get(key, key)
