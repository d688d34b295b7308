from .time_session_repository import TimeSessionRepository
from .time_session_event_repository import TimeSessionEventRepository

__all__ = [
    "TimeSessionRepository",
    "TimeSessionEventRepository"
]
