"""
Console Schemas - per-console settings carried in a signed token
"""
from datetime import datetime
from pydantic import BaseModel, Field


class ConsoleSettings(BaseModel):
    """Settings of one operator console"""
    actor_code: str
    show_ids: bool = False
    kiosk_locked: bool = False
    issued_at: datetime
    expires_at: datetime


class ConsoleTokenResponse(BaseModel):
    """Response schema for console token endpoints"""
    token: str
    settings: ConsoleSettings
    expires_in: int


class KioskUnlockRequest(BaseModel):
    """Request schema for leaving kiosk mode"""
    exit_code: str = Field(..., min_length=1, max_length=16)
