"""Pre-commit checks for edits that touch a leg's airport codes.

Checks run against the lane as currently committed, never against a
provisional value from the same edit.
"""

from dataclasses import dataclass
from typing import Any, Optional

from laneops.core.errors import GuardReason, LaneConstraintError
from laneops.schemas.lane import Lane, same_id

MAX_STATION_CODE_LENGTH = 3


@dataclass(frozen=True)
class GuardDecision:
    accepted: bool
    reason: Optional[GuardReason] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls) -> "GuardDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: GuardReason, detail: str) -> "GuardDecision":
        return cls(accepted=False, reason=reason, detail=detail)

    def raise_for_rejection(self) -> None:
        if not self.accepted:
            raise LaneConstraintError(self.reason, self.detail)


def _code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def _too_long(candidate: str) -> Optional[GuardDecision]:
    if len(candidate) > MAX_STATION_CODE_LENGTH:
        return GuardDecision.reject(
            GuardReason.STATION_CODE_TOO_LONG,
            "Origin and destination must be max 3 letters.",
        )
    return None


def check_origin_edit(lane: Lane, leg_id: Any, new_origin: Optional[str]) -> GuardDecision:
    candidate = _code(new_origin)
    if not candidate:
        return GuardDecision.ok()
    too_long = _too_long(candidate)
    if too_long is not None:
        return too_long

    leg = lane.find_leg(leg_id)
    if leg is not None and _code(leg.destination_station) == candidate:
        return GuardDecision.reject(
            GuardReason.IDENTICAL_ENDPOINTS,
            "Origin and destination cannot be the same.",
        )

    other_origins = {
        _code(other.origin_station) for other in lane.legs if not same_id(other.id, leg_id)
    }
    if candidate in other_origins:
        return GuardDecision.reject(
            GuardReason.DUPLICATE_DEPARTURE,
            f"Origin '{candidate}' is already used as a departure airport in another leg. "
            "Each leg must have a unique origin.",
        )
    return GuardDecision.ok()


def check_destination_edit(lane: Lane, leg_id: Any, new_destination: Optional[str]) -> GuardDecision:
    candidate = _code(new_destination)
    if not candidate:
        return GuardDecision.ok()
    too_long = _too_long(candidate)
    if too_long is not None:
        return too_long

    leg = lane.find_leg(leg_id)
    if leg is not None and _code(leg.origin_station) == candidate:
        return GuardDecision.reject(
            GuardReason.IDENTICAL_ENDPOINTS,
            "Origin and destination cannot be the same.",
        )

    all_origins = {_code(other.origin_station) for other in lane.legs}
    all_origins.discard("")
    if candidate in all_origins:
        return GuardDecision.reject(
            GuardReason.DESTINATION_REUSES_DEPARTURE,
            f"Destination '{candidate}' was already used as a departure airport. "
            "Cannot reuse departure airports as arrival airports.",
        )
    return GuardDecision.ok()
