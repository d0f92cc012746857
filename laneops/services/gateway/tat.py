from laneops.core.errors import TatCalculationError
from laneops.schemas.lane import Lane
from laneops.services.gateway.base import TatEngine
from laneops.services.gateway.client import LaneServiceClient


class TatEngineClient(LaneServiceClient, TatEngine):
    """Client for the TAT engine; the response body is the duration as plain text."""

    error_cls = TatCalculationError
    service_name = "TAT engine"

    CALCULATE_ENDPOINT = "/lanes/calculateTAT"

    async def calculate_tat(self, lane: Lane) -> str:
        payload = {
            "lane": lane.to_wire(include_legs=False),
            "flights": [leg.to_wire() for leg in lane.persisted_legs()],
        }
        text = await self._request_text("POST", self.CALCULATE_ENDPOINT, json_data=payload)
        return text.strip()
