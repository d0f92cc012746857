from abc import ABC, abstractmethod
from typing import Any, List, Optional

from laneops.schemas.lane import (
    AirportPairSuggestionRequest,
    FlightValidationResult,
    Lane,
    LaneScope,
    Leg,
    LocationSuggestionRequest,
    RecordId,
    RoutePattern,
)


class FlightLegValidator(ABC):
    """Checks one leg's flight fields against published flight data."""

    @abstractmethod
    async def validate_leg(self, leg: Leg) -> FlightValidationResult:
        """
        Validate a single leg.

        Raises:
            Exception: Any failure; the orchestrator converts it to an invalid leg.
        """
        pass


class TatEngine(ABC):
    """Computes a lane's turn-around time from the lane and its legs."""

    @abstractmethod
    async def calculate_tat(self, lane: Lane) -> str:
        """
        Returns:
            The duration exactly as the engine reports it.

        Raises:
            TatCalculationError: If the engine fails
        """
        pass


class RouteSuggestionProvider(ABC):
    """Returns candidate leg sequences for a lane."""

    @abstractmethod
    async def suggest_by_airport_pair(self, request: AirportPairSuggestionRequest) -> List[RoutePattern]:
        pass

    @abstractmethod
    async def suggest_by_location(self, request: LocationSuggestionRequest) -> List[RoutePattern]:
        pass


class LaneStore(ABC):
    """
    Persistence boundary for lanes.

    Reads and writes always carry the full lane with its legs; a write
    replaces the stored leg list wholesale.
    """

    @abstractmethod
    async def get_lane(self, lane_id: RecordId) -> Lane:
        pass

    @abstractmethod
    async def list_lanes(self, scope: LaneScope) -> List[Lane]:
        pass

    @abstractmethod
    async def save_lane(self, lane: Lane) -> Optional[RecordId]:
        """
        Persist one lane and its legs.

        Returns:
            The canonical id when the backend reports one (new lanes), else None.
        """
        pass

    @abstractmethod
    async def save_lanes(self, scope: LaneScope, lanes: List[Lane]) -> Any:
        pass

    @abstractmethod
    async def delete_lane(self, lane_id: RecordId) -> None:
        pass
