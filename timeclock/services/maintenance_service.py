"""
Maintenance Service - Reports on open-session anomalies and summary drift
"""
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from atams.logging import get_logger

from timeclock.core.config import settings
from timeclock.core.exceptions import AuthorizationError, TransportError, ValidationError
from timeclock.core.time_utils import utcnow, to_naive_utc
from timeclock.db.security_context import set_security_context
from timeclock.repositories.time_session_repository import TimeSessionRepository
from timeclock.schemas.actor import Actor
from timeclock.schemas.maintenance import DuplicateOpenSessions, StaleOpenSession, SummaryMismatch
from timeclock.schemas.time_session import TimeSession, UserHoursSummary
from timeclock.services.hours_policy import elapsed_hours, summarize

logger = get_logger(__name__)

SUMMARY_FIELDS = ("total_hours", "flagged_sessions", "session_count", "open_session", "last_activity")


class MaintenanceService:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self.session_repo = TimeSessionRepository()
        self.clock = clock
        self.stale_hours = settings.STALE_SESSION_HOURS

    def find_duplicate_open_sessions(self, db: Session, actor: Actor) -> List[DuplicateOpenSessions]:
        """
        Members holding more than one open session

        Only possible where the store lacks the partial unique index.

        Returns:
            list: One entry per member, session ids oldest first
        """
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can run maintenance reports")

        try:
            set_security_context(db, actor.code)
            user_codes = self.session_repo.get_user_codes_with_multiple_open_sessions(db)
            sessions = self.session_repo.get_open_sessions_for_users(db, user_codes)
        except SQLAlchemyError as e:
            logger.error(f"Duplicate open session report failed: {str(e)}")
            raise TransportError(details={"operation": "find_duplicate_open_sessions"})

        grouped = OrderedDict((code, []) for code in user_codes)
        for session in sessions:
            grouped[session.ts_user_code].append(session.ts_id)

        return [
            DuplicateOpenSessions(user_code=code, session_ids=ids)
            for code, ids in grouped.items()
        ]

    def find_stale_open_sessions(
        self,
        db: Session,
        actor: Actor,
        threshold_hours: Optional[float] = None
    ) -> List[StaleOpenSession]:
        """
        Open sessions that have already run longer than the threshold

        Args:
            db: Database session
            actor: Acting administrator
            threshold_hours: Hours after which an open session is stale
                (default: STALE_SESSION_HOURS)

        Returns:
            list: Stale sessions, oldest sign-in first
        """
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can run maintenance reports")

        if threshold_hours is None:
            threshold_hours = self.stale_hours
        if threshold_hours < 0:
            raise ValidationError("Threshold must not be negative", {"threshold_hours": threshold_hours})

        now = self.clock()
        cutoff = now - timedelta(hours=threshold_hours)

        try:
            set_security_context(db, actor.code)
            sessions = self.session_repo.get_open_sessions_checked_in_before(db, cutoff)
        except SQLAlchemyError as e:
            logger.error(f"Stale open session report failed: {str(e)}")
            raise TransportError(details={"operation": "find_stale_open_sessions"})

        return [
            StaleOpenSession(
                ts_id=s.ts_id,
                ts_user_code=s.ts_user_code,
                elapsed_hours=elapsed_hours(s.ts_check_in_at, now, settings.HOURS_DECIMALS)
            )
            for s in sessions
        ]

    def find_summary_mismatches(self, db: Session, actor: Actor) -> List[SummaryMismatch]:
        """
        Cross-check the hours summary query against a recomputation from raw sessions

        Returns:
            list: One entry per member and disagreeing field; empty when consistent
        """
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can run maintenance reports")

        try:
            set_security_context(db, actor.code)
            rows = self.session_repo.get_hours_summary(db)
            sessions = self.session_repo.get_all_sessions(db)
        except SQLAlchemyError as e:
            logger.error(f"Summary cross-check failed: {str(e)}")
            raise TransportError(details={"operation": "find_summary_mismatches"})

        try:
            reported = {r.user_code: r for r in (UserHoursSummary.model_validate(row) for row in rows)}
            computed = {r.user_code: r for r in summarize(TimeSession.model_validate(s) for s in sessions)}
        except SchemaValidationError as e:
            logger.error(f"Undecodable row during summary cross-check: {str(e)}")
            raise TransportError(details={"reason": "undecodable row during summary cross-check"})

        mismatches = []
        for code in sorted(set(reported) | set(computed)):
            query_row = reported.get(code)
            computed_row = computed.get(code)

            if query_row is None or computed_row is None:
                mismatches.append(SummaryMismatch(
                    user_code=code,
                    field="presence",
                    query_value=query_row is not None,
                    computed_value=computed_row is not None
                ))
                continue

            for field in SUMMARY_FIELDS:
                query_value = getattr(query_row, field)
                computed_value = getattr(computed_row, field)
                if field == "total_hours":
                    query_value = round(query_value, settings.HOURS_DECIMALS)
                    computed_value = round(computed_value, settings.HOURS_DECIMALS)
                elif field == "last_activity":
                    query_value = to_naive_utc(query_value)
                    computed_value = to_naive_utc(computed_value)

                if query_value != computed_value:
                    mismatches.append(SummaryMismatch(
                        user_code=code,
                        field=field,
                        query_value=query_value,
                        computed_value=computed_value
                    ))

        if mismatches:
            logger.warning(
                f"Hours summary disagrees with sessions for {len({m.user_code for m in mismatches})} member(s)",
                extra={'extra_data': {'mismatches': len(mismatches)}}
            )
        return mismatches
