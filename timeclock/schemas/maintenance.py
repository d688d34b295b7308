"""
Maintenance Schemas - open-session anomaly reports
"""
from typing import Any, List, Optional
from pydantic import BaseModel


class DuplicateOpenSessions(BaseModel):
    """A member holding more than one open session"""
    user_code: str
    session_ids: List[str]


class StaleOpenSession(BaseModel):
    """An open session already past the stale threshold"""
    ts_id: str
    ts_user_code: str
    elapsed_hours: float


class SummaryMismatch(BaseModel):
    """A member whose stored summary disagrees with a recomputation from sessions"""
    user_code: str
    field: str
    query_value: Optional[Any] = None
    computed_value: Optional[Any] = None
