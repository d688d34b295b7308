from .time_session import (
    TimeSession,
    TimeSessionEvent,
    UserHoursSummary,
    SignInRequest,
    ManualAddRequest,
    AdjustHoursRequest,
    SignOutResponse
)
from .actor import Actor
from .console import ConsoleSettings, ConsoleTokenResponse, KioskUnlockRequest
from .maintenance import DuplicateOpenSessions, StaleOpenSession, SummaryMismatch
from atams.schemas import DataResponse, PaginationResponse

__all__ = [
    # Actor
    "Actor",
    # Time session schemas
    "TimeSession",
    "TimeSessionEvent",
    "UserHoursSummary",
    "SignInRequest",
    "ManualAddRequest",
    "AdjustHoursRequest",
    "SignOutResponse",
    # Console schemas
    "ConsoleSettings",
    "ConsoleTokenResponse",
    "KioskUnlockRequest",
    # Maintenance schemas
    "DuplicateOpenSessions",
    "StaleOpenSession",
    "SummaryMismatch",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
