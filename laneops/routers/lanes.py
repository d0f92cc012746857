from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from laneops.api import deps
from laneops.schemas.lane import Lane, RoutePattern, ValidationState
from laneops.schemas.workspace import (
    BulkTatResponse,
    FieldUpdate,
    LaneCreate,
    LaneFilter,
    ServiceLevelUpdate,
    SuggestionQuery,
    SuggestionsResponse,
    TatFailure,
)
from laneops.services.fields import field_key, filter_lanes
from laneops.services.lane_service import LaneServices
from laneops.services.workspace import LaneWorkspace

router = APIRouter()


def _dump(lane: Lane) -> Dict[str, Any]:
    return lane.to_wire()


def _dump_pattern(pattern: RoutePattern) -> Dict[str, Any]:
    return {"legs": [leg.to_wire() for leg in pattern.legs]}


async def _loaded(workspace: LaneWorkspace, services: LaneServices) -> LaneWorkspace:
    if not workspace.loaded:
        await services.persistence.load(workspace)
    return workspace


@router.post("/load")
async def load_lanes(
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> List[Dict[str, Any]]:
    """(Re)load the scope from the lanes backend, discarding local edits."""
    lanes = await services.persistence.load(workspace)
    return [_dump(lane) for lane in lanes]


@router.get("")
async def list_lanes(
    quick: Optional[str] = Query(default=None),
    lane_status: Optional[ValidationState] = Query(default=None, alias="status"),
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> List[Dict[str, Any]]:
    await _loaded(workspace, services)
    return [_dump(lane) for lane in filter_lanes(workspace.lanes, quick=quick, status=lane_status)]


@router.post("/filter")
async def filter_workspace_lanes(
    payload: LaneFilter,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> List[Dict[str, Any]]:
    await _loaded(workspace, services)
    fields = {field_key(key): value for key, value in payload.fields.items()}
    lanes = filter_lanes(workspace.lanes, quick=payload.quick, fields=fields, status=payload.status)
    return [_dump(lane) for lane in lanes]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lane(
    payload: LaneCreate,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
) -> Dict[str, Any]:
    lane = workspace.new_lane({field_key(key): value for key, value in payload.fields.items()})
    return _dump(lane)


@router.get("/{lane_id}")
async def get_lane(
    lane_id: str,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    await _loaded(workspace, services)
    return _dump(workspace.get(lane_id))


@router.patch("/{lane_id}")
async def edit_lane(
    lane_id: str,
    payload: FieldUpdate,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = services.editor.edit_lane(workspace.get(lane_id), field_key(payload.field), payload.value)
    return _dump(lane)


@router.put("/{lane_id}/service-level")
async def select_service_level(
    lane_id: str,
    payload: ServiceLevelUpdate,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = services.editor.select_service_level(workspace.get(lane_id), payload.service_level)
    return _dump(lane)


@router.post("/{lane_id}/legs", status_code=status.HTTP_201_CREATED)
async def add_leg(
    lane_id: str,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = workspace.get(lane_id)
    services.editor.add_leg(lane)
    return _dump(lane)


@router.patch("/{lane_id}/legs/{leg_id}")
async def edit_leg(
    lane_id: str,
    leg_id: str,
    payload: FieldUpdate,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = workspace.get(lane_id)
    services.editor.edit_leg(lane, leg_id, field_key(payload.field), payload.value)
    return _dump(lane)


@router.delete("/{lane_id}/legs/{leg_id}")
async def remove_leg(
    lane_id: str,
    leg_id: str,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = workspace.get(lane_id)
    services.editor.remove_leg(lane, leg_id)
    return _dump(lane)


@router.post("/validate")
async def validate_all_lanes(
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> List[Dict[str, Any]]:
    await _loaded(workspace, services)
    lanes = await services.validation.validate_all_lanes(workspace.lanes)
    return [_dump(lane) for lane in lanes]


@router.post("/{lane_id}/validate")
async def validate_lane(
    lane_id: str,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = await services.validation.validate_lane(workspace.get(lane_id))
    return _dump(lane)


@router.post("/tat", response_model=BulkTatResponse)
async def compute_tat_for_all_lanes(
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> BulkTatResponse:
    await _loaded(workspace, services)
    outcomes = await services.tat.compute_tat_for_lanes(workspace.lanes)
    return BulkTatResponse(
        lanes=[_dump(outcome.lane) for outcome in outcomes],
        failures=[
            TatFailure(lane_id=str(outcome.lane.id), error=str(outcome.error))
            for outcome in outcomes
            if not outcome.ok
        ],
    )


@router.post("/{lane_id}/tat")
async def compute_tat(
    lane_id: str,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = await services.tat.compute_tat(workspace.get(lane_id))
    return _dump(lane)


@router.post("/{lane_id}/suggestions", response_model=SuggestionsResponse)
async def request_suggestions(
    lane_id: str,
    payload: SuggestionQuery,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> SuggestionsResponse:
    lane = workspace.get(lane_id)
    candidates = await services.suggestions_for(workspace).request_suggestions(lane, payload.mode)
    return SuggestionsResponse(
        lane_id=str(lane.id),
        mode=payload.mode,
        candidates=[_dump_pattern(pattern) for pattern in candidates],
    )


@router.post("/{lane_id}/suggestions/{index}/apply")
async def apply_suggestion(
    lane_id: str,
    index: int,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = services.suggestions_for(workspace).choose(workspace.get(lane_id), index)
    return _dump(lane)


@router.delete("/{lane_id}/suggestions", status_code=status.HTTP_204_NO_CONTENT)
async def discard_suggestions(
    lane_id: str,
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> None:
    services.suggestions_for(workspace).discard(lane_id)


@router.post("/save")
async def save_dirty_lanes(
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> List[Dict[str, Any]]:
    lanes = await services.persistence.save_dirty(workspace)
    return [_dump(lane) for lane in lanes]


@router.post("/{lane_id}/save")
async def save_lane(
    lane_id: str,
    strict: bool = Query(default=False),
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> Dict[str, Any]:
    lane = await services.persistence.save_single_lane(workspace, lane_id, strict=strict)
    return _dump(lane)


@router.delete("/{lane_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lane(
    lane_id: str,
    confirm: bool = Query(default=False),
    workspace: LaneWorkspace = Depends(deps.get_workspace),
    services: LaneServices = Depends(deps.get_lane_services),
) -> None:
    deleted = await services.persistence.delete_lane_if_confirmed(
        workspace, lane_id, lambda _lane: confirm
    )
    if deleted is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting a lane requires confirm=true",
        )
