from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from laneops.core.errors import LaneOpsError, TatCalculationError
from laneops.schemas.lane import Lane
from laneops.services.event_dispatcher import EventDispatcher, EventType, emit_event
from laneops.services.gateway.base import TatEngine

logger = logging.getLogger(__name__)


@dataclass
class TatOutcome:
    lane: Lane
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TatService:
    """Asks the TAT engine for a lane's turn-around time and stores it verbatim."""

    def __init__(self, engine: TatEngine, dispatcher: Optional[EventDispatcher] = None):
        self.engine = engine
        self.dispatcher = dispatcher

    async def compute_tat(self, lane: Lane) -> Lane:
        """
        Raises:
            TatCalculationError: If the engine fails; the lane is left unchanged
        """
        generation = lane.generation
        try:
            duration = await self.engine.calculate_tat(lane)
        except LaneOpsError:
            raise
        except Exception as e:
            logger.error(f"TAT calculation failed for lane {lane.id}: {e}")
            raise TatCalculationError(f"TAT calculation failed: {e}") from e

        if lane.generation != generation:
            logger.warning(f"Lane {lane.id} changed while computing TAT; result discarded")
            return lane

        lane.tat_to_consignee_duration = duration
        lane.mark_updated()
        await emit_event(
            EventType.LANE_TAT_COMPUTED,
            {"lane_id": str(lane.id), "tat": duration},
            dispatcher=self.dispatcher,
        )
        return lane

    async def compute_tat_for_lanes(self, lanes: Iterable[Lane]) -> List[TatOutcome]:
        lanes = list(lanes)
        results = await asyncio.gather(
            *(self.compute_tat(lane) for lane in lanes), return_exceptions=True
        )
        outcomes = []
        for lane, result in zip(lanes, results):
            if isinstance(result, Exception):
                outcomes.append(TatOutcome(lane=lane, error=result))
            else:
                outcomes.append(TatOutcome(lane=lane))
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(f"Computed TAT for {len(lanes) - failed} of {len(lanes)} lanes")
        return outcomes
