"""Wiring of editor, orchestration services and their collaborators."""

from __future__ import annotations

import logging
from typing import List, Optional

from laneops.core.config import Settings
from laneops.core.context import ANONYMOUS, AuthContext
from laneops.services.event_dispatcher import EventDispatcher, get_dispatcher
from laneops.services.gateway import (
    FlightLegValidator,
    FlightValidationClient,
    LaneServiceClient,
    LaneStore,
    LanesApiClient,
    RouteSuggestionClient,
    RouteSuggestionProvider,
    TatEngine,
    TatEngineClient,
)
from laneops.services.legs import LaneEditor
from laneops.services.persistence import LanePersistenceCoordinator
from laneops.services.suggestions import RouteSuggestionService
from laneops.services.tat import TatService
from laneops.services.validation import LaneValidationService
from laneops.services.workspace import LaneWorkspace

logger = logging.getLogger(__name__)


class LaneServices:
    """Every lane operation, bound to one set of collaborators."""

    def __init__(
        self,
        validator: FlightLegValidator,
        tat_engine: TatEngine,
        suggestion_provider: RouteSuggestionProvider,
        store: LaneStore,
        dispatcher: Optional[EventDispatcher] = None,
        max_legs_per_lane: Optional[int] = None,
    ):
        self.dispatcher = dispatcher or get_dispatcher()
        self.suggestion_provider = suggestion_provider
        self.editor = LaneEditor(max_legs_per_lane=max_legs_per_lane)
        self.validation = LaneValidationService(validator, self.dispatcher)
        self.tat = TatService(tat_engine, self.dispatcher)
        self.persistence = LanePersistenceCoordinator(store, self.dispatcher)
        self._clients: List[LaneServiceClient] = [
            c
            for c in (validator, tat_engine, suggestion_provider, store)
            if isinstance(c, LaneServiceClient)
        ]

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        auth: AuthContext = ANONYMOUS,
        dispatcher: Optional[EventDispatcher] = None,
    ) -> "LaneServices":
        return cls(
            validator=FlightValidationClient.from_settings(settings, auth),
            tat_engine=TatEngineClient.from_settings(settings, auth),
            suggestion_provider=RouteSuggestionClient.from_settings(settings, auth),
            store=LanesApiClient.from_settings(settings, auth),
            dispatcher=dispatcher,
            max_legs_per_lane=settings.max_legs_per_lane,
        )

    def suggestions_for(self, workspace: LaneWorkspace) -> RouteSuggestionService:
        """Suggestion state lives on the workspace so it survives between requests."""
        return RouteSuggestionService(
            self.suggestion_provider,
            pending=workspace.pending_suggestions,
            tickets=workspace.suggestion_tickets,
        )

    async def close(self) -> None:
        for client in self._clients:
            await client.close()
