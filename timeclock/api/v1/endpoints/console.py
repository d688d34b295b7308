"""
Console Endpoints - Kiosk lock and member ID visibility
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from timeclock.services.console_service import ConsoleService
from timeclock.schemas import (
    Actor,
    ConsoleTokenResponse,
    KioskUnlockRequest,
    DataResponse
)
from timeclock.api.deps import get_actor
from timeclock.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
console_service = ConsoleService()


@router.post(
    "/kiosk/lock",
    response_model=DataResponse[ConsoleTokenResponse],
    status_code=status.HTTP_200_OK
)
async def lock_kiosk(
    x_console_token: Optional[str] = Header(None, alias="X-Console-Token"),
    actor: Actor = Depends(get_actor)
):
    """
    Lock the console into kiosk mode

    **Authorization:**
    - Administrator only

    **Response:**
    - New console token with kiosk_locked = true
    """
    token_response = console_service.lock_kiosk(actor, x_console_token)

    return DataResponse(
        success=True,
        message="Kiosk locked",
        data=token_response
    )


@router.post(
    "/kiosk/unlock",
    response_model=DataResponse[ConsoleTokenResponse],
    status_code=status.HTTP_200_OK
)
async def unlock_kiosk(
    request: KioskUnlockRequest,
    x_console_token: str = Header(..., alias="X-Console-Token"),
    actor: Actor = Depends(get_actor)
):
    """
    Leave kiosk mode

    **Authentication:**
    - Requires X-Console-Token header from the locking call
    - Requires the permanent admin exit code in the body

    **Errors:**
    - 400: Console token invalid or expired
    - 403: Wrong exit code
    """
    token_response = console_service.unlock_kiosk(actor, x_console_token, request.exit_code)

    return DataResponse(
        success=True,
        message="Kiosk unlocked",
        data=token_response
    )


@router.post(
    "/ids/reveal",
    response_model=DataResponse[ConsoleTokenResponse],
    status_code=status.HTTP_200_OK
)
async def reveal_ids(
    x_console_token: Optional[str] = Header(None, alias="X-Console-Token"),
    actor: Actor = Depends(get_actor)
):
    """
    Show member IDs on the console

    **Authorization:**
    - Root administrator only
    """
    token_response = console_service.reveal_ids(actor, x_console_token)

    return DataResponse(
        success=True,
        message="Member IDs revealed",
        data=token_response
    )


@router.post(
    "/ids/hide",
    response_model=DataResponse[ConsoleTokenResponse],
    status_code=status.HTTP_200_OK
)
async def hide_ids(
    x_console_token: Optional[str] = Header(None, alias="X-Console-Token"),
    actor: Actor = Depends(get_actor)
):
    """Hide member IDs on the console"""
    token_response = console_service.hide_ids(actor, x_console_token)

    return DataResponse(
        success=True,
        message="Member IDs hidden",
        data=token_response
    )


@router.get(
    "/settings",
    status_code=status.HTTP_200_OK
)
async def get_console_settings(
    x_console_token: str = Header(..., alias="X-Console-Token"),
    actor: Actor = Depends(get_actor)
):
    """
    Get the settings carried by a console token

    **Authentication:**
    - Requires X-Console-Token header issued to the current user
    """
    console_settings = console_service.read_settings(actor, x_console_token)

    response = DataResponse(
        success=True,
        message="Console settings retrieved successfully",
        data=console_settings
    )

    return encrypt_response_data(response, settings)
