"""
Maintenance Endpoints - Open-session anomaly and summary drift reports
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timeclock.db.session import get_db
from timeclock.services.maintenance_service import MaintenanceService
from timeclock.schemas import Actor, DataResponse
from timeclock.api.deps import require_admin
from timeclock.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
maintenance_service = MaintenanceService()


@router.get(
    "/duplicate-open-sessions",
    status_code=status.HTTP_200_OK
)
async def get_duplicate_open_sessions(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Find members holding more than one open session

    **Authorization:**
    - Administrator only

    **Use case:**
    - Detect concurrent sign-ins on databases without the open-session index
    """
    duplicates = maintenance_service.find_duplicate_open_sessions(db, actor)

    response = DataResponse(
        success=True,
        message=f"Found {len(duplicates)} member(s) with duplicate open sessions",
        data=duplicates
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/stale-open-sessions",
    status_code=status.HTTP_200_OK
)
async def get_stale_open_sessions(
    threshold_hours: Optional[float] = Query(
        None, ge=0, description="Hours after which an open session is stale (default: STALE_SESSION_HOURS)"
    ),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Find open sessions that will be capped when signed out

    **Authorization:**
    - Administrator only
    """
    stale = maintenance_service.find_stale_open_sessions(db, actor, threshold_hours)

    response = DataResponse(
        success=True,
        message=f"Found {len(stale)} stale open session(s)",
        data=stale
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/summary-mismatches",
    status_code=status.HTTP_200_OK
)
async def get_summary_mismatches(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    """
    Cross-check the hours summary against a recomputation from sessions

    **Authorization:**
    - Administrator only

    **Response:**
    - One entry per member and field that disagree; empty when consistent
    """
    mismatches = maintenance_service.find_summary_mismatches(db, actor)

    response = DataResponse(
        success=True,
        message=f"Found {len(mismatches)} summary mismatch(es)",
        data=mismatches
    )

    return encrypt_response_data(response, settings)
