"""
Validation orchestration.

Each leg of a lane is checked against the flight-leg validator
concurrently. The lane verdict is committed once, after every leg has
settled, and only if the lane was not edited while the checks ran.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from laneops.core.errors import LaneNotSubmittableError
from laneops.schemas.lane import Lane, Leg, ValidationState, Verdict
from laneops.services.event_dispatcher import EventDispatcher, EventType, emit_event
from laneops.services.gateway.base import FlightLegValidator

logger = logging.getLogger(__name__)


def aggregate_status(legs: Iterable[Leg]) -> ValidationState:
    """AND over leg verdicts; no legs is valid."""
    for leg in legs:
        if leg.verdict.state is not ValidationState.VALID:
            return ValidationState.INVALID
    return ValidationState.VALID


def submission_problems(lane: Lane) -> List[str]:
    """What keeps a lane from being submitted; empty when it is ready."""
    if lane.is_direct_drive:
        return []
    problems = []
    if not lane.legs:
        problems.append("Lane has no legs.")
    for leg in lane.sorted_legs():
        missing = [
            label
            for label, value in (
                ("flight number", leg.flight_number),
                ("origin", leg.origin_station),
                ("destination", leg.destination_station),
            )
            if not (value or "").strip()
        ]
        if missing:
            problems.append(f"Leg {leg.sequence} is missing {', '.join(missing)}.")
        elif leg.verdict.state is not ValidationState.VALID:
            problems.append(f"Leg {leg.sequence} has not been validated successfully.")
    return problems


def ensure_submittable(lane: Lane) -> None:
    problems = submission_problems(lane)
    if problems:
        raise LaneNotSubmittableError(problems)


class LaneValidationService:
    """Fans leg checks out to the validator and reduces them to a lane verdict."""

    def __init__(
        self,
        validator: FlightLegValidator,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.validator = validator
        self.dispatcher = dispatcher

    async def _validate_leg(self, leg: Leg) -> Leg:
        """Validate one leg; a failing call becomes an invalid leg, never an exception."""
        checked = leg.model_copy(deep=True)
        try:
            result = await self.validator.validate_leg(leg)
        except Exception as e:
            reason = str(e) or "Validation failed"
            logger.warning(f"Validation of leg {leg.id} failed: {reason}")
            checked.verdict = Verdict.invalid([reason])
            return checked

        checked.message = result.message
        if result.operating_days is not None:
            checked.flight_operating_days = result.operating_days
        checked.aircraft_by_day = result.aircraft_by_day or None
        if result.valid:
            checked.verdict = Verdict.valid()
        else:
            messages = list(result.mismatched_fields)
            if not messages and result.message:
                messages = [result.message]
            checked.verdict = Verdict.invalid(messages)
        return checked

    async def validate_lane(self, lane: Lane) -> Lane:
        """
        Validate every leg of ``lane`` and commit the aggregate verdict.

        A lane without flight legs (none at all, or direct drive) is valid
        without calling the validator. If the lane is edited while its legs
        are being checked, the results are dropped and the lane is returned
        as the edit left it.
        """
        legs = lane.persisted_legs()
        if not legs:
            if lane.status is not ValidationState.VALID:
                lane.status = ValidationState.VALID
                lane.mark_updated()
            await self._emit(lane)
            return lane

        generation = lane.generation
        validated = await asyncio.gather(*(self._validate_leg(leg) for leg in legs))

        if lane.generation != generation:
            logger.warning(
                f"Lane {lane.id} changed while validating "
                f"(generation {generation} -> {lane.generation}); result discarded"
            )
            return lane

        lane.legs = list(validated)
        lane.status = aggregate_status(validated)
        lane.mark_updated()
        logger.debug(f"Lane {lane.id} validated: {lane.status.value}")
        await self._emit(lane)
        return lane

    async def validate_all_lanes(self, lanes: Iterable[Lane]) -> List[Lane]:
        """Validate lanes independently; one lane's failure never touches another."""
        lanes = list(lanes)
        logger.info(f"Validating {len(lanes)} lanes")
        results = await asyncio.gather(
            *(self.validate_lane(lane) for lane in lanes), return_exceptions=True
        )
        for lane, result in zip(lanes, results):
            if isinstance(result, Exception):
                logger.error(f"Validation of lane {lane.id} aborted: {result}")

        invalid = sum(1 for lane in lanes if lane.status is ValidationState.INVALID)
        logger.info(f"Validated {len(lanes)} lanes, {invalid} invalid")
        return lanes

    async def _emit(self, lane: Lane) -> None:
        await emit_event(
            EventType.LANE_VALIDATED,
            {"lane_id": str(lane.id), "status": lane.status.value},
            dispatcher=self.dispatcher,
        )
