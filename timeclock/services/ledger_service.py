"""
Ledger Service - Main business logic for time session accounting
"""
import re
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from atams.logging import get_logger
from atams.transaction import transaction

from timeclock.core.config import settings
from timeclock.core.exceptions import (
    AlreadyOpenError,
    AuthorizationError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from timeclock.core.time_utils import utcnow, to_utc_z
from timeclock.db.security_context import set_security_context
from timeclock.models.time_session import TimeSession as TimeSessionModel
from timeclock.repositories.time_session_repository import TimeSessionRepository
from timeclock.repositories.time_session_event_repository import TimeSessionEventRepository
from timeclock.schemas.actor import Actor
from timeclock.schemas.time_session import (
    TimeSession,
    TimeSessionEvent,
    UserHoursSummary,
    SignOutResponse
)
from timeclock.services.hours_policy import apply_cap, elapsed_hours, validate_hours

logger = get_logger(__name__)


class LedgerService:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self.session_repo = TimeSessionRepository()
        self.event_repo = TimeSessionEventRepository()
        self.clock = clock
        self.hours_cap = settings.SESSION_HOURS_CAP
        self.hours_decimals = settings.HOURS_DECIMALS
        self.manual_entry_note = settings.MANUAL_ENTRY_NOTE
        self.member_code_pattern = re.compile(settings.MEMBER_CODE_PATTERN)

    # ==================== GUARDS ====================

    def _require_admin(self, actor: Actor, action: str) -> None:
        if not actor.is_admin:
            logger.warning(
                f"Denied {action} for non-admin {actor.code}",
                extra={'extra_data': {'actor': actor.code, 'action': action}}
            )
            raise AuthorizationError("Only administrators can manage time sessions")

    def _validate_member_code(self, user_code: str) -> str:
        code = (user_code or "").strip()
        if not self.member_code_pattern.match(code):
            raise ValidationError("Invalid member code", {"user_code": user_code})
        return code

    @contextmanager
    def _store_call(self, db: Session, operation: str) -> Iterator[None]:
        """Translate store failures into TransportError; nothing is retried"""
        try:
            yield
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Store call failed during {operation}: {str(e)}",
                extra={'extra_data': {'operation': operation, 'error_type': type(e).__name__}}
            )
            raise TransportError(details={"operation": operation})

    def _decode_session(self, db_session) -> TimeSession:
        try:
            return TimeSession.model_validate(db_session)
        except SchemaValidationError as e:
            logger.error(f"Undecodable time session row: {str(e)}")
            raise TransportError(details={"reason": "undecodable time session row"})

    def _get_session_or_404(self, db: Session, ts_id: str) -> TimeSessionModel:
        db_session = self.session_repo.get_by_id(db, ts_id)
        if not db_session:
            raise NotFoundError(details={"ts_id": ts_id})
        return db_session

    def _record_event(
        self,
        db: Session,
        db_session: TimeSessionModel,
        actor: Actor,
        event_type: str,
        occurred_at: datetime,
        hours_before: Optional[float] = None,
        hours_after: Optional[float] = None,
        notes: Optional[str] = None
    ) -> None:
        self.event_repo.add_event(db, {
            "tse_session_id": db_session.ts_id,
            "tse_user_code": db_session.ts_user_code,
            "tse_actor_code": actor.code,
            "tse_event_type": event_type,
            "tse_hours_before": hours_before,
            "tse_hours_after": hours_after,
            "tse_notes": notes,
            "tse_occurred_at": occurred_at
        })

    # ==================== MUTATIONS ====================

    def sign_in(self, db: Session, actor: Actor, user_code: str) -> TimeSession:
        """
        Open a session for a member on their behalf

        Args:
            db: Database session
            actor: Acting administrator
            user_code: Member to sign in

        Returns:
            TimeSession: The new open session

        Raises:
            AuthorizationError: Actor is not an administrator
            ValidationError: Malformed member code
            AlreadyOpenError: Member already has an open session
        """
        self._require_admin(actor, "sign_in")
        user_code = self._validate_member_code(user_code)

        with self._store_call(db, "sign_in"):
            set_security_context(db, actor.code)

            # Re-check right before the insert; the partial unique index catches the rest
            if self.session_repo.get_open_session(db, user_code) is not None:
                raise AlreadyOpenError(details={"user_code": user_code})

            now = self.clock()
            try:
                with transaction(db):
                    db_session = self.session_repo.add_session(db, {
                        "ts_id": uuid.uuid4().hex,
                        "ts_user_code": user_code,
                        "ts_check_in_at": now,
                        "ts_is_flagged": False,
                        "ts_created_at": now
                    })
                    self._record_event(db, db_session, actor, "sign_in", now)
            except IntegrityError:
                raise AlreadyOpenError(details={"user_code": user_code})

            session = self._decode_session(db_session)

        logger.info(
            f"Signed in {user_code}",
            extra={'extra_data': {'ts_id': session.ts_id, 'user_code': user_code, 'actor': actor.code}}
        )
        return session

    def sign_out(self, db: Session, actor: Actor, ts_id: str) -> SignOutResponse:
        """
        Close an open session, applying the hours cap

        Args:
            db: Database session
            actor: Acting administrator
            ts_id: Session to close

        Returns:
            SignOutResponse: Closed session, uncapped duration and a user-facing message

        Raises:
            AuthorizationError: Actor is not an administrator
            NotFoundError: Session missing or already closed
        """
        self._require_admin(actor, "sign_out")

        with self._store_call(db, "sign_out"):
            set_security_context(db, actor.code)

            db_session = self._get_session_or_404(db, ts_id)
            if db_session.ts_check_out_at is not None:
                raise NotFoundError("Session is already closed", {"ts_id": ts_id})

            now = self.clock()
            adjusted_hours = db_session.ts_total_hours
            raw_hours = elapsed_hours(db_session.ts_check_in_at, now, self.hours_decimals)
            total_hours, is_flagged = apply_cap(raw_hours, self.hours_cap)

            if is_flagged:
                message = (
                    f"User signed out. Session was capped at {self.hours_cap:g} hours "
                    f"(actual: {raw_hours:.2f}h)."
                )
            else:
                message = f"User signed out. Total time: {total_hours:.2f} hours."

            event_notes = message if is_flagged else None
            if adjusted_hours is not None:
                event_notes = " ".join(filter(None, [
                    event_notes, f"Replaced adjusted value of {adjusted_hours:.2f}h."
                ]))

            with transaction(db):
                self.session_repo.apply_changes(db, db_session, {
                    "ts_check_out_at": now,
                    "ts_total_hours": total_hours,
                    "ts_is_flagged": is_flagged,
                    "ts_updated_at": now
                })
                self._record_event(
                    db, db_session, actor, "sign_out", now,
                    hours_before=adjusted_hours,
                    hours_after=total_hours,
                    notes=event_notes
                )

            session = self._decode_session(db_session)

        log = logger.warning if is_flagged else logger.info
        log(
            f"Signed out {session.ts_user_code}: {total_hours:.2f}h",
            extra={'extra_data': {
                'ts_id': ts_id,
                'user_code': session.ts_user_code,
                'actor': actor.code,
                'raw_hours': raw_hours,
                'total_hours': total_hours,
                'is_flagged': is_flagged,
                'check_out_at': to_utc_z(now)
            }}
        )
        return SignOutResponse(session=session, raw_hours=raw_hours, message=message)

    def manual_add(
        self,
        db: Session,
        actor: Actor,
        user_code: str,
        hours,
        notes: Optional[str] = None
    ) -> TimeSession:
        """
        Record administrator-entered hours as an already closed session.

        Manual entries are trusted: they bypass the cap and are never flagged.

        Raises:
            AuthorizationError: Actor is not an administrator
            ValidationError: Hours negative or non-numeric, or malformed member code
        """
        self._require_admin(actor, "manual_add")
        user_code = self._validate_member_code(user_code)
        hours = validate_hours(hours)
        admin_notes = (notes or "").strip() or self.manual_entry_note

        with self._store_call(db, "manual_add"):
            set_security_context(db, actor.code)

            now = self.clock()
            with transaction(db):
                db_session = self.session_repo.add_session(db, {
                    "ts_id": uuid.uuid4().hex,
                    "ts_user_code": user_code,
                    "ts_check_in_at": now,
                    "ts_check_out_at": now,
                    "ts_total_hours": hours,
                    "ts_is_flagged": False,
                    "ts_admin_notes": admin_notes,
                    "ts_created_at": now
                })
                self._record_event(
                    db, db_session, actor, "manual_add", now,
                    hours_after=hours,
                    notes=admin_notes
                )

            session = self._decode_session(db_session)

        logger.info(
            f"Added {hours}h for {user_code}",
            extra={'extra_data': {'ts_id': session.ts_id, 'user_code': user_code, 'actor': actor.code}}
        )
        return session

    def adjust_hours(
        self,
        db: Session,
        actor: Actor,
        ts_id: str,
        hours,
        notes: Optional[str] = None
    ) -> TimeSession:
        """
        Overwrite a session's hours and notes; timestamps and flag stay as they are

        An open session may be adjusted, but signing it out later replaces the
        adjusted hours with the measured duration. The sign-out event keeps the
        replaced value in hours_before and its notes.

        Raises:
            AuthorizationError: Actor is not an administrator
            ValidationError: Hours negative or non-numeric
            NotFoundError: Session missing
        """
        self._require_admin(actor, "adjust_hours")
        hours = validate_hours(hours)

        with self._store_call(db, "adjust_hours"):
            set_security_context(db, actor.code)

            db_session = self._get_session_or_404(db, ts_id)
            previous_hours = db_session.ts_total_hours
            admin_notes = (notes or "").strip() or (
                f"Adjusted from {previous_hours or 0:.2f}h to {hours:.2f}h by {actor.code}"
            )

            now = self.clock()
            with transaction(db):
                self.session_repo.apply_changes(db, db_session, {
                    "ts_total_hours": hours,
                    "ts_admin_notes": admin_notes,
                    "ts_updated_at": now
                })
                self._record_event(
                    db, db_session, actor, "adjust", now,
                    hours_before=previous_hours,
                    hours_after=hours,
                    notes=admin_notes
                )

            session = self._decode_session(db_session)

        logger.info(
            f"Adjusted {ts_id} to {hours}h",
            extra={'extra_data': {
                'ts_id': ts_id,
                'user_code': session.ts_user_code,
                'actor': actor.code,
                'hours_before': previous_hours,
                'hours_after': hours
            }}
        )
        return session

    def delete_session(self, db: Session, actor: Actor, ts_id: str) -> None:
        """
        Permanently remove a session. No tombstone is kept on the session
        table; the audit trail records what was removed.

        Raises:
            AuthorizationError: Actor is not an administrator
            NotFoundError: Session missing
        """
        self._require_admin(actor, "delete_session")

        with self._store_call(db, "delete_session"):
            set_security_context(db, actor.code)

            db_session = self._get_session_or_404(db, ts_id)
            user_code = db_session.ts_user_code
            removed_hours = db_session.ts_total_hours

            now = self.clock()
            with transaction(db):
                self._record_event(
                    db, db_session, actor, "delete", now,
                    hours_before=removed_hours
                )
                self.session_repo.remove_session(db, db_session)

        logger.info(
            f"Deleted session {ts_id}",
            extra={'extra_data': {'ts_id': ts_id, 'user_code': user_code, 'actor': actor.code}}
        )

    # ==================== READS ====================

    def list_open_sessions(self, db: Session, actor: Actor) -> List[TimeSession]:
        """Open sessions, most recent sign-in first (admin only)"""
        self._require_admin(actor, "list_open_sessions")

        with self._store_call(db, "list_open_sessions"):
            set_security_context(db, actor.code)
            sessions = self.session_repo.get_open_sessions(db)
            return [self._decode_session(s) for s in sessions]

    def get_user_hours_summary(self, db: Session, actor: Actor) -> List[UserHoursSummary]:
        """Per-member hour totals, recomputed on every call"""
        with self._store_call(db, "get_user_hours_summary"):
            set_security_context(db, actor.code)
            rows = self.session_repo.get_hours_summary(db)

        try:
            return [UserHoursSummary.model_validate(row) for row in rows]
        except SchemaValidationError as e:
            logger.error(f"Undecodable hours summary row: {str(e)}")
            raise TransportError(details={"reason": "undecodable hours summary row"})

    def list_sessions_for_user(
        self,
        db: Session,
        actor: Actor,
        user_code: str,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[List[TimeSession], int]:
        """
        Closed sessions of one member, newest first

        Administrators may read anyone's history; members only their own.

        Returns:
            tuple: (sessions page, total closed sessions)
        """
        user_code = self._validate_member_code(user_code)
        if not actor.is_admin and actor.code != user_code:
            raise AuthorizationError("You can only view your own session history")

        with self._store_call(db, "list_sessions_for_user"):
            set_security_context(db, actor.code)
            sessions = self.session_repo.get_closed_sessions_for_user(db, user_code, skip, limit)
            total = self.session_repo.count_closed_sessions_for_user(db, user_code)
            return [self._decode_session(s) for s in sessions], total

    def list_events(
        self,
        db: Session,
        actor: Actor,
        user_code: str = None,
        session_id: str = None,
        event_type: str = None,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[List[TimeSessionEvent], int]:
        """Audit trail, newest first (admin only)"""
        self._require_admin(actor, "list_events")

        with self._store_call(db, "list_events"):
            set_security_context(db, actor.code)
            events = self.event_repo.get_events_with_filters(
                db, user_code, session_id, event_type, skip, limit
            )
            total = self.event_repo.count_events_with_filters(db, user_code, session_id, event_type)

        try:
            return [TimeSessionEvent.model_validate(e) for e in events], total
        except SchemaValidationError as e:
            logger.error(f"Undecodable audit event row: {str(e)}")
            raise TransportError(details={"reason": "undecodable audit event row"})
