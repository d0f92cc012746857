import logging
from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer

from laneops.core.config import Settings, get_settings
from laneops.core.context import AuthContext
from laneops.schemas.lane import LaneScope, ScopeKind
from laneops.services.event_dispatcher import EventDispatcher, get_dispatcher
from laneops.services.lane_service import LaneServices
from laneops.services.workspace import LaneWorkspace, WorkspaceRegistry

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

_registry = WorkspaceRegistry()


def get_registry() -> WorkspaceRegistry:
    return _registry


def get_event_dispatcher() -> EventDispatcher:
    return get_dispatcher()


async def get_auth_context(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
) -> AuthContext:
    """The caller's bearer token is forwarded to the lanes backend as-is."""
    return AuthContext(token=token)


async def get_scope(
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    lane_mapping_id: Optional[str] = Query(default=None, alias="laneMappingId"),
) -> LaneScope:
    """
    Resolve the lane scope from query parameters.

    ``?accountId=`` selects an account's lanes, ``?laneMappingId=`` a lane
    mapping's; neither selects all lanes.
    """
    if account_id and lane_mapping_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pass either accountId or laneMappingId, not both",
        )
    if account_id:
        return LaneScope(kind=ScopeKind.ACCOUNT, id=account_id)
    if lane_mapping_id:
        return LaneScope(kind=ScopeKind.LANE_MAPPING, id=lane_mapping_id)
    return LaneScope(kind=ScopeKind.ALL)


async def get_workspace(
    scope: LaneScope = Depends(get_scope),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> LaneWorkspace:
    return registry.get(scope)


async def get_lane_services(
    auth: AuthContext = Depends(get_auth_context),
    settings: Settings = Depends(get_settings),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> AsyncIterator[LaneServices]:
    services = LaneServices.from_settings(settings, auth, dispatcher)
    try:
        yield services
    finally:
        await services.close()
