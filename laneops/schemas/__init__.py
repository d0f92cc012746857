"""Pydantic schemas."""

from laneops.schemas.lane import (  # noqa: F401
    DIRECT_DRIVE,
    SERVICE_LEVELS,
    AirportPairSuggestionRequest,
    FlightValidationResult,
    Lane,
    LaneScope,
    Leg,
    LocationSuggestionRequest,
    RoutePattern,
    ScopeKind,
    ValidationState,
    Verdict,
)
