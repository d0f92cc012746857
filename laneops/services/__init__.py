"""Lane editing, orchestration and persistence services."""

from laneops.services.lane_service import LaneServices  # noqa: F401
from laneops.services.workspace import LaneWorkspace, WorkspaceRegistry  # noqa: F401
