"""
Dirty tracking and persistence.

Only lanes flagged ``has_been_updated`` are written. After a write the
local copies are replaced with what the store returns; dirty flags are
never reset by hand.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Union

from laneops.core.errors import PersistenceError
from laneops.schemas.lane import Lane
from laneops.services.event_dispatcher import EventDispatcher, EventType, emit_event
from laneops.services.gateway.base import LaneStore
from laneops.services.validation import ensure_submittable
from laneops.services.workspace import LaneWorkspace

logger = logging.getLogger(__name__)

DeleteConfirmation = Callable[[Lane], Union[bool, Awaitable[bool]]]


def select_dirty(lanes: Iterable[Lane]) -> List[Lane]:
    return [lane for lane in lanes if lane.has_been_updated]


class LanePersistenceCoordinator:
    """Moves lanes between a workspace and the lane store."""

    def __init__(self, store: LaneStore, dispatcher: Optional[EventDispatcher] = None):
        self.store = store
        self.dispatcher = dispatcher

    async def load(self, workspace: LaneWorkspace) -> List[Lane]:
        lanes = await self.store.list_lanes(workspace.scope)
        workspace.replace_all(lanes)
        return workspace.lanes

    async def save_dirty(self, workspace: LaneWorkspace) -> List[Lane]:
        """
        Write the dirty lanes of ``workspace`` and reload the whole scope.

        No dirty lanes means no store call at all. Edits made while the
        write is in flight are lost to the reload; they are logged.
        """
        dirty = select_dirty(workspace.lanes)
        if not dirty:
            logger.info(f"No modified lanes to save for {workspace.scope}")
            return workspace.lanes

        generations = {str(lane.id): lane.generation for lane in dirty}
        logger.info(f"Saving {len(dirty)} modified lanes for {workspace.scope}")
        await self.store.save_lanes(workspace.scope, dirty)
        fresh = await self.store.list_lanes(workspace.scope)

        for lane in dirty:
            current = workspace.find(lane.id)
            if current is not None and current.generation != generations[str(lane.id)]:
                logger.warning(f"Lane {lane.id} was edited during save; local edits replaced")
        workspace.replace_all(fresh)

        await emit_event(
            EventType.LANES_SAVED,
            {"count": len(dirty), "lane_ids": [str(lane.id) for lane in dirty]},
            scope=str(workspace.scope),
            dispatcher=self.dispatcher,
        )
        return workspace.lanes

    async def save_single_lane(self, workspace: LaneWorkspace, lane_id: Any, strict: bool = False) -> Lane:
        """
        Write one lane with its legs and swap in the stored copy.

        Args:
            strict: Refuse lanes with incomplete or unvalidated legs

        Raises:
            LaneNotSubmittableError: strict and the lane is not ready
            PersistenceError: If the store fails
        """
        lane = workspace.get(lane_id)
        if strict:
            ensure_submittable(lane)

        saved_id = await self.store.save_lane(lane)
        canonical_id = saved_id if saved_id is not None else lane.id
        if lane.is_transient and saved_id is None:
            raise PersistenceError(f"Store did not return an id for new lane {lane.id}")

        fresh = await self.store.get_lane(canonical_id)
        workspace.replace(lane.id, fresh)
        logger.info(f"Saved lane {canonical_id} for {workspace.scope}")

        await emit_event(
            EventType.LANE_SAVED,
            {"lane_id": str(canonical_id), "previous_id": str(lane.id)},
            scope=str(workspace.scope),
            dispatcher=self.dispatcher,
        )
        return fresh

    async def delete_lane(self, workspace: LaneWorkspace, lane_id: Any) -> Lane:
        """Delete unconditionally. Unsaved lanes never reach the store."""
        lane = workspace.get(lane_id)
        if not lane.is_transient:
            await self.store.delete_lane(lane.id)
        workspace.remove(lane_id)
        logger.info(f"Deleted lane {lane_id} from {workspace.scope}")

        await emit_event(
            EventType.LANE_DELETED,
            {"lane_id": str(lane_id)},
            scope=str(workspace.scope),
            dispatcher=self.dispatcher,
        )
        return lane

    async def delete_lane_if_confirmed(
        self, workspace: LaneWorkspace, lane_id: Any, confirm: DeleteConfirmation
    ) -> Optional[Lane]:
        """Ask ``confirm`` first; a falsy answer leaves everything as it was."""
        lane = workspace.get(lane_id)
        answer = confirm(lane)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.debug(f"Deletion of lane {lane_id} not confirmed")
            return None
        return await self.delete_lane(workspace, lane_id)
