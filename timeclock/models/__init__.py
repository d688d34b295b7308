from .time_session import TimeSession
from .time_session_event import TimeSessionEvent

__all__ = [
    "TimeSession",
    "TimeSessionEvent"
]
