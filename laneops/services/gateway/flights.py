from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from laneops.core.config import Settings
from laneops.core.context import ANONYMOUS, AuthContext
from laneops.core.errors import FlightValidationError
from laneops.schemas.lane import FlightValidationResult, Leg
from laneops.services.gateway.base import FlightLegValidator
from laneops.services.gateway.client import LaneServiceClient

logger = logging.getLogger(__name__)


class FlightValidationClient(LaneServiceClient, FlightLegValidator):
    """Client for the flight-leg validator (POST /api/flights/validate-flight)."""

    error_cls = FlightValidationError
    service_name = "flight validator"

    VALIDATE_ENDPOINT = "/api/flights/validate-flight"

    @classmethod
    def from_settings(cls, settings: Settings, auth: AuthContext = ANONYMOUS, **kwargs: Any):
        return cls(
            base_url=settings.get_flight_validation_base_url(),
            auth=auth,
            timeout=settings.request_timeout_seconds,
            **kwargs,
        )

    async def validate_leg(self, leg: Leg) -> FlightValidationResult:
        data = await self._request("POST", self.VALIDATE_ENDPOINT, json_data=leg.to_wire())
        if not isinstance(data, dict):
            raise FlightValidationError("Flight validation failed.")
        try:
            return FlightValidationResult.model_validate(data)
        except ValidationError as e:
            raise FlightValidationError(f"Malformed validation result: {e}") from e
