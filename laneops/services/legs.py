from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from laneops.core.errors import GuardReason, LaneConstraintError, LegNotFoundError
from laneops.schemas.lane import (
    DIRECT_DRIVE,
    Lane,
    Leg,
    ValidationState,
    Verdict,
    new_temp_id,
    same_id,
)
from laneops.services.fields import lane_field, leg_field
from laneops.services.guard import check_destination_edit, check_origin_edit

logger = logging.getLogger(__name__)

FLIGHT_FIELDS = (
    "flight_number",
    "origin_station",
    "destination_station",
    "departure_time",
    "arrival_time",
    "cutoff_time",
    "flight_operating_days",
    "aircraft_by_day",
    "aircraft",
    "aircraft_type",
    "message",
)


@dataclass(frozen=True)
class Endpoints:
    origin: str = ""
    destination: str = ""


def sorted_legs(legs: Iterable[Leg]) -> List[Leg]:
    return sorted(legs, key=lambda leg: leg.sequence)


def derive_endpoints(legs: Iterable[Leg]) -> Endpoints:
    """Lane origin/destination are the first leg's origin and the last leg's destination."""
    ordered = sorted_legs(legs)
    if not ordered:
        return Endpoints()
    return Endpoints(
        origin=ordered[0].origin_station or "",
        destination=ordered[-1].destination_station or "",
    )


def next_sequence(legs: Iterable[Leg]) -> int:
    return max((leg.sequence for leg in legs), default=0) + 1


def blank_leg(sequence: int, service_level: str = "") -> Leg:
    return Leg(
        id=new_temp_id(),
        sequence=sequence,
        service_level=service_level,
        flight_number="",
        origin_station="",
        destination_station="",
        departure_time="",
        arrival_time="",
        cutoff_time="",
        flight_operating_days="",
        aircraft="",
        aircraft_type="",
    )


def direct_drive_leg() -> Leg:
    """The single synthetic leg of a direct drive lane: every flight field cleared."""
    leg = Leg(id=new_temp_id(), sequence=1, service_level=DIRECT_DRIVE)
    for name in FLIGHT_FIELDS:
        setattr(leg, name, None)
    return leg


def commit_leg_change(lane: Lane) -> None:
    """Finish a leg-list mutation: endpoints, pending status and bookkeeping together."""
    endpoints = derive_endpoints(lane.legs)
    lane.origin_station = endpoints.origin
    lane.destination_station = endpoints.destination
    lane.status = ValidationState.PENDING
    lane.mark_updated()


class LaneEditor:
    """Synchronous edits to a lane and its legs.

    Every accepted edit leaves the lane's derived endpoints consistent with
    its legs before returning. Rejected edits raise and leave the lane as it was.
    """

    def __init__(self, max_legs_per_lane: Optional[int] = None):
        self.max_legs_per_lane = max_legs_per_lane

    def add_leg(self, lane: Lane) -> Leg:
        if lane.is_direct_drive:
            raise LaneConstraintError(GuardReason.DIRECT_DRIVE_HAS_NO_FLIGHTS)
        if self.max_legs_per_lane is not None and len(lane.legs) >= self.max_legs_per_lane:
            raise LaneConstraintError(
                GuardReason.TOO_MANY_LEGS,
                f"A lane may have at most {self.max_legs_per_lane} legs.",
            )
        leg = blank_leg(next_sequence(lane.legs), lane.service_level or "")
        lane.legs = [*lane.legs, leg]
        commit_leg_change(lane)
        return leg

    def remove_leg(self, lane: Lane, leg_id: Any) -> Leg:
        leg = self._require_leg(lane, leg_id)
        # Remaining legs keep their sequence numbers; gaps are fine.
        lane.legs = [other for other in lane.legs if not same_id(other.id, leg_id)]
        commit_leg_change(lane)
        return leg

    def edit_leg(self, lane: Lane, leg_id: Any, field: str, value: Any) -> Leg:
        descriptor = leg_field(field, editing=True)
        leg = self._require_leg(lane, leg_id)
        value = descriptor.format(value)

        if field == "service_level" and (value == DIRECT_DRIVE or lane.is_direct_drive):
            # Entering or leaving direct drive reshapes the whole lane
            self.select_service_level(lane, value)
            return lane.sorted_legs()[0]

        if lane.is_direct_drive:
            raise LaneConstraintError(GuardReason.DIRECT_DRIVE_HAS_NO_FLIGHTS)

        if field == "origin_station":
            check_origin_edit(lane, leg_id, value).raise_for_rejection()
        elif field == "destination_station":
            check_destination_edit(lane, leg_id, value).raise_for_rejection()

        setattr(leg, field, value)
        leg.verdict = Verdict.pending()
        commit_leg_change(lane)
        return leg

    def edit_lane(self, lane: Lane, field: str, value: Any) -> Lane:
        descriptor = lane_field(field, editing=True)
        if field == "service_level":
            return self.select_service_level(lane, value)
        setattr(lane, field, descriptor.format(value))
        lane.mark_updated()
        return lane

    def select_service_level(self, lane: Lane, service_level: Optional[str]) -> Lane:
        level = (service_level or "").strip().upper()
        if level == DIRECT_DRIVE:
            lane.service_level = DIRECT_DRIVE
            lane.legs = [direct_drive_leg()]
            commit_leg_change(lane)
            logger.debug(f"Lane {lane.id} collapsed to direct drive")
            return lane

        was_direct_drive = lane.is_direct_drive
        lane.service_level = level
        if was_direct_drive or not lane.legs:
            # Leaving direct drive gives an empty leg to fill in, nothing pre-populated
            lane.legs = [blank_leg(1, level)]
        else:
            for leg in lane.legs:
                leg.service_level = level
        commit_leg_change(lane)
        return lane

    @staticmethod
    def _require_leg(lane: Lane, leg_id: Any) -> Leg:
        leg = lane.find_leg(leg_id)
        if leg is None:
            raise LegNotFoundError(f"Leg {leg_id} not found on lane {lane.id}")
        return leg
