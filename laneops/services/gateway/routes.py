from __future__ import annotations

import logging
from typing import Any, List

from pydantic import ValidationError

from laneops.core.errors import RouteSuggestionError
from laneops.schemas.lane import (
    AirportPairSuggestionRequest,
    LocationSuggestionRequest,
    RoutePattern,
)
from laneops.services.gateway.base import RouteSuggestionProvider
from laneops.services.gateway.client import LaneServiceClient

logger = logging.getLogger(__name__)


class RouteSuggestionClient(LaneServiceClient, RouteSuggestionProvider):
    """Client for the route suggestion service."""

    error_cls = RouteSuggestionError
    service_name = "route suggestion service"

    BY_AIRPORT_ENDPOINT = "/lanes/suggestRoute"
    BY_LOCATION_ENDPOINT = "/lanes/suggestRouteByLocation"

    async def suggest_by_airport_pair(self, request: AirportPairSuggestionRequest) -> List[RoutePattern]:
        data = await self._request(
            "POST", self.BY_AIRPORT_ENDPOINT, json_data=request.model_dump(by_alias=True)
        )
        return self._parse_patterns(data)

    async def suggest_by_location(self, request: LocationSuggestionRequest) -> List[RoutePattern]:
        data = await self._request(
            "POST", self.BY_LOCATION_ENDPOINT, json_data=request.model_dump(by_alias=True)
        )
        return self._parse_patterns(data)

    def _parse_patterns(self, data: Any) -> List[RoutePattern]:
        if data is None:
            return []
        if isinstance(data, dict):
            # Some deployments wrap the list: {"routes": [...]}
            data = data.get("routes") or data.get("patterns") or []
        if not isinstance(data, list):
            raise RouteSuggestionError(f"Unexpected suggestion payload: {type(data).__name__}")
        try:
            patterns = [RoutePattern.model_validate(item) for item in data]
        except ValidationError as e:
            raise RouteSuggestionError(f"Malformed route pattern: {e}") from e
        logger.debug(f"Parsed {len(patterns)} route patterns")
        return patterns
