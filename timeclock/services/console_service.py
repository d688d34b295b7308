"""
Console Service - per-console kiosk and ID visibility settings in signed tokens
"""
import hmac
import jwt
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Any, Optional

from atams.logging import get_logger

from timeclock.core.config import settings
from timeclock.core.exceptions import AuthorizationError, ValidationError
from timeclock.core.time_utils import utcnow
from timeclock.schemas.actor import Actor
from timeclock.schemas.console import ConsoleSettings, ConsoleTokenResponse

logger = get_logger(__name__)

TOKEN_ISSUER = "team-timeclock-console"


def _to_epoch(dt: datetime) -> int:
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def _from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, timezone.utc).replace(tzinfo=None)


class ConsoleService:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self.secret = settings.CONSOLE_JWT_SECRET
        self.algorithm = settings.CONSOLE_JWT_ALG
        self.ttl_seconds = settings.CONSOLE_TOKEN_TTL_SECONDS
        self.root_code = settings.ROOT_MEMBER_CODE
        self.clock = clock

    def issue_token(self, actor: Actor, show_ids: bool = False, kiosk_locked: bool = False) -> ConsoleTokenResponse:
        """
        Sign a fresh console token for the actor

        Returns:
            ConsoleTokenResponse: {token, settings, expires_in}
        """
        now = self.clock().replace(microsecond=0)
        exp = now + timedelta(seconds=self.ttl_seconds)

        payload = {
            "iss": TOKEN_ISSUER,
            "sub": actor.code,
            "show_ids": show_ids,
            "kiosk_locked": kiosk_locked,
            "iat": _to_epoch(now),
            "exp": _to_epoch(exp)
        }

        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)

        return ConsoleTokenResponse(
            token=token,
            settings=ConsoleSettings(
                actor_code=actor.code,
                show_ids=show_ids,
                kiosk_locked=kiosk_locked,
                issued_at=now,
                expires_at=exp
            ),
            expires_in=self.ttl_seconds
        )

    def _decode(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and claims of a console token

        Expiry is checked against the service clock rather than by PyJWT.

        Raises:
            ValidationError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=TOKEN_ISSUER,
                options={"verify_exp": False, "verify_iat": False, "require": ["iss", "sub", "iat", "exp"]}
            )
        except jwt.InvalidTokenError as e:
            raise ValidationError(f"Invalid console token: {str(e)}")

        if not isinstance(payload.get("exp"), int) or _to_epoch(self.clock()) >= payload["exp"]:
            raise ValidationError("Console token expired")

        return payload

    def read_settings(self, actor: Actor, token: str) -> ConsoleSettings:
        """
        Decode the console settings carried by a token

        Raises:
            ValidationError: Token missing, invalid or expired
            AuthorizationError: Token was issued to another actor
        """
        if not token:
            raise ValidationError("Console token is required")

        payload = self._decode(token)
        if payload["sub"] != actor.code:
            raise AuthorizationError("Console token belongs to another user")

        return ConsoleSettings(
            actor_code=payload["sub"],
            show_ids=bool(payload.get("show_ids", False)),
            kiosk_locked=bool(payload.get("kiosk_locked", False)),
            issued_at=_from_epoch(payload["iat"]),
            expires_at=_from_epoch(payload["exp"])
        )

    def _current(self, actor: Actor, token: Optional[str]) -> ConsoleSettings:
        if token:
            return self.read_settings(actor, token)
        now = self.clock()
        return ConsoleSettings(actor_code=actor.code, issued_at=now, expires_at=now)

    def lock_kiosk(self, actor: Actor, token: Optional[str] = None) -> ConsoleTokenResponse:
        """Put the console into kiosk mode (admin only)"""
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can lock the kiosk")

        current = self._current(actor, token)
        logger.info(
            f"Kiosk locked by {actor.code}",
            extra={'extra_data': {'actor': actor.code}}
        )
        return self.issue_token(actor, show_ids=current.show_ids, kiosk_locked=True)

    def unlock_kiosk(self, actor: Actor, token: str, exit_code: str) -> ConsoleTokenResponse:
        """
        Leave kiosk mode

        The exit code is a shared-secret gate checked in constant time,
        not a login.

        Raises:
            AuthorizationError: Wrong exit code
        """
        current = self.read_settings(actor, token)

        if not hmac.compare_digest(exit_code.strip().encode(), self.root_code.encode()):
            logger.warning(
                f"Rejected kiosk exit code from {actor.code}",
                extra={'extra_data': {'actor': actor.code}}
            )
            raise AuthorizationError("Invalid permanent admin code.")

        logger.info(
            f"Kiosk unlocked by {actor.code}",
            extra={'extra_data': {'actor': actor.code}}
        )
        return self.issue_token(actor, show_ids=current.show_ids, kiosk_locked=False)

    def reveal_ids(self, actor: Actor, token: Optional[str] = None) -> ConsoleTokenResponse:
        """Show member identifiers on the console (root administrator only)"""
        if not actor.is_root:
            raise AuthorizationError("Only the root administrator can reveal member IDs")

        current = self._current(actor, token)
        return self.issue_token(actor, show_ids=True, kiosk_locked=current.kiosk_locked)

    def hide_ids(self, actor: Actor, token: Optional[str] = None) -> ConsoleTokenResponse:
        current = self._current(actor, token)
        return self.issue_token(actor, show_ids=False, kiosk_locked=current.kiosk_locked)
