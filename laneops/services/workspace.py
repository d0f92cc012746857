"""In-memory lane collections, one per scope."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from laneops.core.errors import LaneNotFoundError
from laneops.schemas.lane import Lane, LaneScope, RecordId, ScopeKind, new_temp_id
from laneops.services.suggestions import PendingSuggestions

logger = logging.getLogger(__name__)


class LaneWorkspace:
    """
    The lanes loaded for one scope, in load order.

    Lanes are keyed by the string form of their id so ids from the backend
    (ints) and from URLs (strings) address the same entry.
    """

    def __init__(self, scope: LaneScope):
        self.scope = scope
        self._lanes: Dict[str, Lane] = {}
        self.pending_suggestions: Dict[str, PendingSuggestions] = {}
        self.suggestion_tickets: Dict[str, int] = {}
        self.loaded = False

    def __len__(self) -> int:
        return len(self._lanes)

    def __contains__(self, lane_id: Any) -> bool:
        return str(lane_id) in self._lanes

    @property
    def lanes(self) -> List[Lane]:
        return list(self._lanes.values())

    def find(self, lane_id: Any) -> Optional[Lane]:
        return self._lanes.get(str(lane_id))

    def get(self, lane_id: Any) -> Lane:
        lane = self.find(lane_id)
        if lane is None:
            raise LaneNotFoundError(f"Lane {lane_id} not found in {self.scope}")
        return lane

    def add(self, lane: Lane) -> Lane:
        self._lanes[str(lane.id)] = lane
        return lane

    def new_lane(self, fields: Optional[Dict[str, Any]] = None) -> Lane:
        """A blank, dirty lane with a temporary id, appended to the workspace."""
        data = dict(fields or {})
        data.pop("legs", None)
        data["id"] = new_temp_id()
        if self.scope.kind is ScopeKind.ACCOUNT:
            data.setdefault("account_id", self.scope.id)
        elif self.scope.kind is ScopeKind.LANE_MAPPING:
            data.setdefault("lane_mapping_id", self.scope.id)
        lane = Lane.model_validate(data)
        lane.mark_updated()
        return self.add(lane)

    def replace_all(self, lanes: List[Lane]) -> None:
        self._lanes = {str(lane.id): lane for lane in lanes}
        self._forget_missing(self.pending_suggestions)
        self._forget_missing(self.suggestion_tickets)
        self.loaded = True

    def replace(self, lane_id: RecordId, lane: Lane) -> Lane:
        """Swap one entry for ``lane`` in place, re-keying if the id changed."""
        old_key = str(lane_id)
        if old_key not in self._lanes:
            raise LaneNotFoundError(f"Lane {lane_id} not found in {self.scope}")
        self._lanes = {
            (str(lane.id) if key == old_key else key): (lane if key == old_key else existing)
            for key, existing in self._lanes.items()
        }
        self.pending_suggestions.pop(old_key, None)
        self.suggestion_tickets.pop(old_key, None)
        return lane

    def remove(self, lane_id: Any) -> Lane:
        lane = self._lanes.pop(str(lane_id), None)
        if lane is None:
            raise LaneNotFoundError(f"Lane {lane_id} not found in {self.scope}")
        self.pending_suggestions.pop(str(lane_id), None)
        self.suggestion_tickets.pop(str(lane_id), None)
        return lane

    def dirty(self) -> List[Lane]:
        return [lane for lane in self._lanes.values() if lane.has_been_updated]

    def _forget_missing(self, entries: Dict[str, Any]) -> None:
        # In place: suggestion services hold references to these maps
        for key in [key for key in entries if key not in self._lanes]:
            del entries[key]


class WorkspaceRegistry:
    """One workspace per scope, created on first use."""

    def __init__(self) -> None:
        self._workspaces: Dict[LaneScope, LaneWorkspace] = {}

    def get(self, scope: LaneScope) -> LaneWorkspace:
        workspace = self._workspaces.get(scope)
        if workspace is None:
            workspace = LaneWorkspace(scope)
            self._workspaces[scope] = workspace
            logger.debug(f"Created workspace for {scope}")
        return workspace

    def drop(self, scope: LaneScope) -> None:
        self._workspaces.pop(scope, None)

    def clear(self) -> None:
        self._workspaces = {}
