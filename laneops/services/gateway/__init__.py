"""Collaborator interfaces and their HTTP clients."""

from laneops.services.gateway.base import (
    FlightLegValidator,
    LaneStore,
    RouteSuggestionProvider,
    TatEngine,
)
from laneops.services.gateway.client import LaneServiceClient
from laneops.services.gateway.flights import FlightValidationClient
from laneops.services.gateway.lanes import LanesApiClient
from laneops.services.gateway.routes import RouteSuggestionClient
from laneops.services.gateway.tat import TatEngineClient

__all__ = [
    "FlightLegValidator",
    "FlightValidationClient",
    "LaneServiceClient",
    "LaneStore",
    "LanesApiClient",
    "RouteSuggestionClient",
    "RouteSuggestionProvider",
    "TatEngine",
    "TatEngineClient",
]
