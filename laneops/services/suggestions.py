"""Route suggestions: fetch candidate patterns for a lane and materialize one."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from laneops.core.errors import SuggestionNotFoundError, SuggestionPreconditionError
from laneops.schemas.lane import (
    AirportPairSuggestionRequest,
    Lane,
    Leg,
    LocationSuggestionRequest,
    RoutePattern,
    Verdict,
    new_temp_id,
)
from laneops.services.gateway.base import RouteSuggestionProvider
from laneops.services.legs import commit_leg_change, sorted_legs

logger = logging.getLogger(__name__)

NO_LEGS_MESSAGE = "Lane has no legs to suggest a route for."
NO_AIRPORTS_MESSAGE = "Origin and destination airports must be set in the legs."


class SuggestionMode(str, Enum):
    AIRPORT_PAIR = "airport_pair"
    LOCATION = "location"


@dataclass
class PendingSuggestions:
    """Candidates awaiting the user's choice for one lane."""

    lane_id: str
    mode: SuggestionMode
    candidates: List[RoutePattern] = field(default_factory=list)


class RouteSuggestionService:
    """
    Requests route patterns and applies the chosen one.

    At most one candidate set is pending per lane. A newer request for the
    same lane replaces the older set, and a response that arrives after a
    newer request was issued is dropped.
    """

    def __init__(
        self,
        provider: RouteSuggestionProvider,
        pending: Optional[Dict[str, PendingSuggestions]] = None,
        tickets: Optional[Dict[str, int]] = None,
    ):
        self.provider = provider
        self.pending = pending if pending is not None else {}
        self._tickets = tickets if tickets is not None else {}

    def build_airport_pair_request(self, lane: Lane) -> AirportPairSuggestionRequest:
        legs = sorted_legs(lane.legs)
        if not legs:
            raise SuggestionPreconditionError(NO_LEGS_MESSAGE)
        origin = (legs[0].origin_station or "").strip()
        destination = (legs[-1].destination_station or "").strip()
        if not origin or not destination:
            raise SuggestionPreconditionError(NO_AIRPORTS_MESSAGE)
        return AirportPairSuggestionRequest(
            item_number=lane.item_number,
            origin_airport=origin,
            destination_airport=destination,
            collection_time=lane.pick_up_time,
        )

    @staticmethod
    def build_location_request(lane: Lane) -> LocationSuggestionRequest:
        return LocationSuggestionRequest(
            item_number=lane.item_number,
            origin_city=lane.origin_city,
            origin_state=lane.origin_state,
            origin_country=lane.origin_country,
            destination_city=lane.destination_city,
            destination_state=lane.destination_state,
            destination_country=lane.destination_country,
            collection_time=lane.pick_up_time,
        )

    async def request_suggestions(self, lane: Lane, mode: SuggestionMode) -> List[RoutePattern]:
        """
        Fetch candidate patterns for a lane.

        Raises:
            SuggestionPreconditionError: Airport-pair mode without both airports;
                raised before any request is sent
            RouteSuggestionError: If the suggestion service fails
        """
        key = str(lane.id)
        # Any earlier unconfirmed set for this lane is gone from here on
        self.pending.pop(key, None)

        if mode is SuggestionMode.AIRPORT_PAIR:
            request = self.build_airport_pair_request(lane)
        else:
            request = self.build_location_request(lane)

        ticket = self._tickets.get(key, 0) + 1
        self._tickets[key] = ticket

        if mode is SuggestionMode.AIRPORT_PAIR:
            candidates = await self.provider.suggest_by_airport_pair(request)
        else:
            candidates = await self.provider.suggest_by_location(request)

        if self._tickets.get(key) != ticket:
            logger.warning(f"Dropping outdated route suggestions for lane {key}")
            return candidates

        self.pending[key] = PendingSuggestions(lane_id=key, mode=mode, candidates=list(candidates))
        logger.info(f"Received {len(candidates)} route suggestions for lane {key} ({mode.value})")
        return candidates

    def pending_for(self, lane_id) -> Optional[PendingSuggestions]:
        return self.pending.get(str(lane_id))

    def discard(self, lane_id) -> None:
        self.pending.pop(str(lane_id), None)

    def choose(self, lane: Lane, index: int) -> Lane:
        """Apply the pending candidate at ``index`` and clear the pending set."""
        pending = self.pending_for(lane.id)
        if pending is None:
            raise SuggestionNotFoundError(f"No route suggestions pending for lane {lane.id}")
        if index < 0 or index >= len(pending.candidates):
            raise SuggestionNotFoundError(
                f"Suggestion {index} out of range; {len(pending.candidates)} pending"
            )
        self.apply_suggestion(lane, pending.candidates[index])
        self.discard(lane.id)
        return lane

    @staticmethod
    def apply_suggestion(lane: Lane, pattern: RoutePattern) -> Lane:
        """
        Replace the lane's legs wholesale with fresh legs built from ``pattern``.

        A direct drive lane that takes a flight route leaves direct drive: its
        service level becomes the first flight service level in the pattern,
        or blank when the pattern names none.
        """
        leaving_direct_drive = lane.is_direct_drive
        if leaving_direct_drive:
            fallback = next(
                (
                    source.service_level.strip().upper()
                    for source in sorted_legs(pattern.legs)
                    if source.service_level and not source.is_direct_drive
                ),
                "",
            )
        else:
            fallback = lane.service_level or ""

        legs = []
        for source in sorted_legs(pattern.legs):
            legs.append(
                Leg(
                    id=new_temp_id(),
                    sequence=source.sequence,
                    service_level=(
                        source.service_level
                        if source.service_level and not source.is_direct_drive
                        else fallback
                    ),
                    flight_number=source.flight_number,
                    origin_station=source.origin_station,
                    destination_station=source.destination_station,
                    departure_time=source.departure_time,
                    arrival_time=source.arrival_time,
                    cutoff_time=source.cutoff_time or "",
                    flight_operating_days=source.flight_operating_days,
                    aircraft=source.aircraft or "",
                    aircraft_type=source.aircraft_type or "",
                    verdict=Verdict.pending(),
                )
            )
        lane.legs = legs
        if leaving_direct_drive:
            lane.service_level = fallback
            logger.debug(f"Lane {lane.id} left direct drive for a suggested route")
        commit_leg_change(lane)
        return lane
