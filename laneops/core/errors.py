from enum import Enum
from typing import Optional


class GuardReason(str, Enum):
    """Why a structural edit to a lane was refused."""

    DUPLICATE_DEPARTURE = "duplicate departure airport"
    IDENTICAL_ENDPOINTS = "origin and destination identical"
    DESTINATION_REUSES_DEPARTURE = "destination reuses a departure airport"
    TOO_MANY_LEGS = "maximum number of legs reached"
    DIRECT_DRIVE_HAS_NO_FLIGHTS = "direct drive lanes carry no flight legs"
    STATION_CODE_TOO_LONG = "station code longer than three letters"


class LaneOpsError(Exception):
    """Base exception for lane editing and orchestration errors."""

    pass


class LaneConstraintError(LaneOpsError):
    """Raised when an edit would break a structural rule; the edit is not applied."""

    def __init__(self, reason: GuardReason, detail: Optional[str] = None):
        self.reason = reason
        self.detail = detail or reason.value
        super().__init__(self.detail)


class ReadOnlyFieldError(LaneOpsError):
    """Raised when a caller tries to set a derived or core-owned field."""

    pass


class UnknownFieldError(LaneOpsError):
    """Raised when an edit names a field that does not exist."""

    pass


class LaneNotFoundError(LaneOpsError):
    pass


class LegNotFoundError(LaneOpsError):
    pass


class SuggestionPreconditionError(LaneOpsError):
    """Raised before any network call when a suggestion request cannot be built."""

    pass


class SuggestionNotFoundError(LaneOpsError):
    """Raised when no pending candidate matches the requested choice."""

    pass


class LaneNotSubmittableError(LaneOpsError):
    """Raised by strict single-lane saves when legs are incomplete or not valid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


class CollaboratorError(LaneOpsError):
    """Base exception for failures of external services."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class FlightValidationError(CollaboratorError):
    pass


class TatCalculationError(CollaboratorError):
    pass


class RouteSuggestionError(CollaboratorError):
    pass


class PersistenceError(CollaboratorError):
    pass
