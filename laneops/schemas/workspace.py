from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from laneops.schemas.lane import ValidationState
from laneops.services.suggestions import SuggestionMode


class FieldUpdate(BaseModel):
    field: str
    value: Any = None


class ServiceLevelUpdate(BaseModel):
    service_level: str


class LaneCreate(BaseModel):
    fields: Dict[str, Any] = Field(default_factory=dict)


class SuggestionQuery(BaseModel):
    mode: SuggestionMode = SuggestionMode.AIRPORT_PAIR


class LaneFilter(BaseModel):
    quick: Optional[str] = None
    status: Optional[ValidationState] = None
    fields: Dict[str, str] = Field(default_factory=dict)


class SuggestionsResponse(BaseModel):
    lane_id: str
    mode: SuggestionMode
    candidates: List[Dict[str, Any]]


class TatFailure(BaseModel):
    lane_id: str
    error: str


class BulkTatResponse(BaseModel):
    lanes: List[Dict[str, Any]]
    failures: List[TatFailure] = Field(default_factory=list)
