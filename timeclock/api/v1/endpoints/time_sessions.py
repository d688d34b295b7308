"""
Time Session Endpoints - Sign-in/out, manual entries, adjustments and history
"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timeclock.db.session import get_db
from timeclock.services.ledger_service import LedgerService
from timeclock.schemas import (
    Actor,
    TimeSession,
    SignInRequest,
    ManualAddRequest,
    AdjustHoursRequest,
    SignOutResponse,
    DataResponse,
    PaginationResponse
)
from timeclock.api.deps import get_actor, require_admin
from timeclock.core.config import settings
from timeclock.core.exceptions import ValidationError
from atams.encryption import encrypt_response_data

router = APIRouter()
ledger_service = LedgerService()


@router.post(
    "/sign-in",
    response_model=DataResponse[TimeSession],
    status_code=status.HTTP_201_CREATED
)
async def sign_in(
    request: SignInRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Sign a member in, opening a new session

    **Authorization:**
    - Administrator only

    **Errors:**
    - 400: Malformed member code
    - 409: Member already has an active session
    """
    session = ledger_service.sign_in(db, actor, request.user_code)

    return DataResponse(
        success=True,
        message="User signed in",
        data=session
    )


@router.post(
    "/{ts_id}/sign-out",
    response_model=DataResponse[SignOutResponse],
    status_code=status.HTTP_200_OK
)
async def sign_out(
    ts_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Sign a member out, closing their open session

    **Authorization:**
    - Administrator only

    **Process:**
    1. Compute elapsed hours since sign-in (2 decimals, half-up)
    2. Cap at SESSION_HOURS_CAP and flag the session if it ran longer

    **Errors:**
    - 404: Session not found or already closed
    """
    result = ledger_service.sign_out(db, actor, ts_id)

    return DataResponse(
        success=True,
        message=result.message,
        data=result
    )


@router.post(
    "/manual",
    response_model=DataResponse[TimeSession],
    status_code=status.HTTP_201_CREATED
)
async def manual_add(
    request: ManualAddRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Record hours for a member without a live session

    **Authorization:**
    - Administrator only

    **Notes:**
    - Manual hours are not capped and never flagged
    - Notes default to MANUAL_ENTRY_NOTE
    """
    session = ledger_service.manual_add(db, actor, request.user_code, request.hours, request.notes)

    return DataResponse(
        success=True,
        message=f"Added {session.ts_total_hours:g} hours for user {session.ts_user_code}",
        data=session
    )


@router.patch(
    "/{ts_id}/hours",
    response_model=DataResponse[TimeSession],
    status_code=status.HTTP_200_OK
)
async def adjust_hours(
    ts_id: str,
    request: AdjustHoursRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Overwrite the hours recorded for a session

    **Authorization:**
    - Administrator only
    """
    session = ledger_service.adjust_hours(db, actor, ts_id, request.hours, request.notes)

    return DataResponse(
        success=True,
        message="Session hours updated",
        data=session
    )


@router.delete(
    "/{ts_id}",
    response_model=DataResponse[None],
    status_code=status.HTTP_200_OK
)
async def delete_session(
    ts_id: str,
    confirm: bool = Query(False, description="Must be true to delete the session"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Permanently delete a session

    **Authorization:**
    - Administrator only

    **Parameters:**
    - confirm: must be true; the deletion cannot be undone
    """
    if not confirm:
        raise ValidationError("Deletion must be confirmed with confirm=true")

    ledger_service.delete_session(db, actor, ts_id)

    return DataResponse(
        success=True,
        message="Session deleted",
        data=None
    )


@router.get(
    "/open",
    status_code=status.HTTP_200_OK
)
async def list_open_sessions(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Get members currently signed in, most recent sign-in first

    **Authorization:**
    - Administrator only
    """
    sessions = ledger_service.list_open_sessions(db, actor)

    response = DataResponse(
        success=True,
        message="Open sessions retrieved successfully",
        data=sessions
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/summary",
    status_code=status.HTTP_200_OK
)
async def get_user_hours_summary(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Get total hours per member

    **Authorization:**
    - Any authenticated member

    **Notes:**
    - Only closed sessions add to total_hours
    - Open sessions still count toward session_count and last_activity
    """
    summary = ledger_service.get_user_hours_summary(db, actor)

    response = DataResponse(
        success=True,
        message="Hours summary retrieved successfully",
        data=summary
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/users/{user_code}",
    status_code=status.HTTP_200_OK
)
async def list_sessions_for_user(
    user_code: str,
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor)
):
    """
    Get a member's closed sessions, newest first

    **Authorization:**
    - Administrators for any member
    - Members for their own history only
    """
    sessions, total = ledger_service.list_sessions_for_user(db, actor, user_code, offset, limit)

    response = PaginationResponse(
        success=True,
        message="Sessions retrieved successfully",
        data=sessions,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=math.ceil(total / limit) if total else 0
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/events",
    status_code=status.HTTP_200_OK
)
async def list_events(
    user_code: Optional[str] = Query(None, description="Filter by member code"),
    session_id: Optional[str] = Query(None, description="Filter by session ID"),
    event_type: Optional[str] = Query(
        None,
        pattern="^(sign_in|sign_out|manual_add|adjust|delete)$",
        description="Filter by event type"
    ),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Get the audit trail of ledger mutations, newest first

    **Authorization:**
    - Administrator only
    """
    events, total = ledger_service.list_events(
        db, actor, user_code, session_id, event_type, offset, limit
    )

    response = PaginationResponse(
        success=True,
        message="Events retrieved successfully",
        data=events,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=math.ceil(total / limit) if total else 0
    )

    return encrypt_response_data(response, settings)
