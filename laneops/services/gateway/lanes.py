from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from laneops.core.errors import PersistenceError
from laneops.schemas.lane import Lane, LaneScope, RecordId, ScopeKind
from laneops.services.gateway.base import LaneStore
from laneops.services.gateway.client import LaneServiceClient

logger = logging.getLogger(__name__)


class LanesApiClient(LaneServiceClient, LaneStore):
    """Lane persistence over the lanes REST backend."""

    error_cls = PersistenceError
    service_name = "lanes store"

    SCOPE_SEGMENTS = {
        ScopeKind.ACCOUNT: "account",
        ScopeKind.LANE_MAPPING: "laneMapping",
    }

    def _scope_path(self, scope: LaneScope) -> str:
        if scope.kind is ScopeKind.ALL:
            return "/lanes"
        return f"/lanes/{self.SCOPE_SEGMENTS[scope.kind]}/{scope.id}"

    @staticmethod
    def _parse_lane(data: Any) -> Lane:
        if not isinstance(data, dict):
            raise PersistenceError(f"Unexpected lane payload: {type(data).__name__}")
        # The dirty flag belongs to the editor, whatever the backend echoes back
        data = {k: v for k, v in data.items() if k not in ("hasBeenUpdated", "has_been_updated")}
        try:
            return Lane.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"Malformed lane payload: {e}") from e

    @staticmethod
    def _single_payload(lane: Lane) -> Dict[str, Any]:
        return {
            "lane": lane.to_wire(for_persistence=True, include_legs=False),
            "flights": [leg.to_wire(for_persistence=True) for leg in lane.persisted_legs()],
        }

    async def get_lane(self, lane_id: RecordId) -> Lane:
        data = await self._request("GET", f"/lanes/{lane_id}")
        if data is None:
            raise PersistenceError(f"Lane {lane_id} not found", status_code=404)
        return self._parse_lane(data)

    async def list_lanes(self, scope: LaneScope) -> List[Lane]:
        data = await self._request("GET", self._scope_path(scope))
        lanes = [self._parse_lane(item) for item in (data or [])]
        logger.info(f"Loaded {len(lanes)} lanes for {scope}")
        return lanes

    async def save_lane(self, lane: Lane) -> Optional[RecordId]:
        payload = self._single_payload(lane)
        if lane.is_transient:
            data = await self._request("POST", "/lanes", json_data=payload)
        elif lane.is_direct_drive:
            data = await self._request(
                "PUT", f"/lanes/updateLane/{lane.id}/directdrive", json_data={"lane": payload["lane"]}
            )
        else:
            data = await self._request("PUT", f"/lanes/updateLane/{lane.id}", json_data=payload)

        if isinstance(data, dict):
            if data.get("notModified"):
                logger.info(f"Lane {lane.id} not modified on the backend")
            return data.get("id")
        return None

    async def save_lanes(self, scope: LaneScope, lanes: List[Lane]) -> Any:
        endpoint = f"{self._scope_path(scope)}/updateLanes"
        payload = [lane.to_wire(for_persistence=True) for lane in lanes]
        logger.info(f"Saving {len(payload)} lanes for {scope}")
        return await self._request("PUT", endpoint, json_data=payload)

    async def delete_lane(self, lane_id: RecordId) -> None:
        await self._request("DELETE", f"/lanes/delete/{lane_id}")
