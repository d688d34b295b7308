"""
Time Session Schemas for sessions, summaries and audit events
"""
import re
from typing import Optional, Literal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _fix_datetime_timezone(v):
    """
    Fix datetime timezone format from PostgreSQL
    PostgreSQL returns: '2025-10-01 09:17:39.587802+00'
    Pydantic expects: '2025-10-01 09:17:39.587802+00:00'
    """
    if v == '' or v is None:
        return None

    if isinstance(v, str):
        match = re.search(r'([+-]\d{2})$', v)
        if match:
            v = v + ':00'

    return v


class TimeSessionBase(BaseModel):
    ts_user_code: str
    ts_check_in_at: datetime
    ts_check_out_at: Optional[datetime] = None
    ts_total_hours: Optional[float] = None
    ts_is_flagged: bool = False
    ts_admin_notes: Optional[str] = None


class TimeSessionInDB(TimeSessionBase):
    model_config = ConfigDict(from_attributes=True)

    ts_id: str
    ts_created_at: datetime
    ts_updated_at: Optional[datetime] = None

    @field_validator('ts_check_in_at', 'ts_check_out_at', 'ts_created_at', 'ts_updated_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return _fix_datetime_timezone(v)


class TimeSession(TimeSessionInDB):
    @property
    def is_open(self) -> bool:
        return self.ts_check_out_at is None


class UserHoursSummary(BaseModel):
    """Per-member aggregate over time sessions (derived, never stored)"""
    model_config = ConfigDict(from_attributes=True)

    user_code: str
    total_hours: float = 0.0
    flagged_sessions: int = 0
    session_count: int = 0
    open_session: bool = False
    last_activity: Optional[datetime] = None

    @field_validator('last_activity', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return _fix_datetime_timezone(v)


EventType = Literal["sign_in", "sign_out", "manual_add", "adjust", "delete"]


class TimeSessionEventBase(BaseModel):
    tse_session_id: str
    tse_user_code: str
    tse_actor_code: str
    tse_event_type: EventType
    tse_hours_before: Optional[float] = None
    tse_hours_after: Optional[float] = None
    tse_notes: Optional[str] = None


class TimeSessionEventInDB(TimeSessionEventBase):
    model_config = ConfigDict(from_attributes=True)

    tse_id: int
    tse_occurred_at: datetime

    @field_validator('tse_occurred_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return _fix_datetime_timezone(v)


class TimeSessionEvent(TimeSessionEventInDB):
    pass


# Request/Response schemas for API endpoints
class SignInRequest(BaseModel):
    """Request schema for sign-in endpoint"""
    user_code: str = Field(..., min_length=1, max_length=32)


class ManualAddRequest(BaseModel):
    """Request schema for manual hours entry"""
    user_code: str = Field(..., min_length=1, max_length=32)
    hours: float
    notes: Optional[str] = None


class AdjustHoursRequest(BaseModel):
    """Request schema for hours adjustment"""
    hours: float
    notes: Optional[str] = None


class SignOutResponse(BaseModel):
    """Response schema for sign-out endpoint"""
    session: TimeSession
    raw_hours: float
    message: str
