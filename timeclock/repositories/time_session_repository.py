"""
Time Session Repository - Data access layer for time sessions
"""
from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_

from atams.db import BaseRepository
from timeclock.models.time_session import TimeSession


class TimeSessionRepository(BaseRepository[TimeSession]):
    def __init__(self):
        super().__init__(TimeSession)

    def get_by_id(self, db: Session, ts_id: str) -> Optional[TimeSession]:
        """Get session by ID using ORM"""
        return db.query(TimeSession).filter(TimeSession.ts_id == ts_id).first()

    def get_open_session(self, db: Session, user_code: str) -> Optional[TimeSession]:
        """Get the open session for a member, if any, using ORM"""
        return db.query(TimeSession).filter(
            and_(
                TimeSession.ts_user_code == user_code,
                TimeSession.ts_check_out_at.is_(None)
            )
        ).first()

    def get_open_sessions(self, db: Session) -> List[TimeSession]:
        """Get all open sessions, most recent sign-in first, using ORM"""
        return db.query(TimeSession).filter(
            TimeSession.ts_check_out_at.is_(None)
        ).order_by(TimeSession.ts_check_in_at.desc()).all()

    def get_all_sessions(self, db: Session) -> List[TimeSession]:
        """Get every session grouped by member, oldest sign-in first, using ORM"""
        return db.query(TimeSession).order_by(
            TimeSession.ts_user_code.asc(),
            TimeSession.ts_check_in_at.asc()
        ).all()

    def get_open_sessions_checked_in_before(self, db: Session, cutoff_time: datetime) -> List[TimeSession]:
        """Get open sessions that started before the cutoff, oldest first, using ORM"""
        return db.query(TimeSession).filter(
            and_(
                TimeSession.ts_check_out_at.is_(None),
                TimeSession.ts_check_in_at < cutoff_time
            )
        ).order_by(TimeSession.ts_check_in_at.asc()).all()

    def get_closed_sessions_for_user(
        self,
        db: Session,
        user_code: str,
        skip: int = 0,
        limit: int = 100
    ) -> List[TimeSession]:
        """Get a member's closed sessions, newest first, using ORM"""
        return db.query(TimeSession).filter(
            and_(
                TimeSession.ts_user_code == user_code,
                TimeSession.ts_check_out_at.isnot(None)
            )
        ).order_by(
            TimeSession.ts_created_at.desc(),
            TimeSession.ts_check_in_at.desc()
        ).offset(skip).limit(limit).all()

    def count_closed_sessions_for_user(self, db: Session, user_code: str) -> int:
        """Count a member's closed sessions using native SQL"""
        query = """
            SELECT COUNT(*)
            FROM time_sessions
            WHERE ts_user_code = :user_code
            AND ts_check_out_at IS NOT NULL
        """
        return self.execute_raw_sql_scalar(db, query, {"user_code": user_code})

    def add_session(self, db: Session, session_data: dict) -> TimeSession:
        """Stage a new session in the current transaction (no commit)"""
        db_session = TimeSession(**session_data)
        db.add(db_session)
        db.flush()
        return db_session

    def apply_changes(self, db: Session, db_session: TimeSession, changes: dict) -> TimeSession:
        """Stage field changes on a session in the current transaction (no commit)"""
        for field, value in changes.items():
            setattr(db_session, field, value)
        db.flush()
        return db_session

    def remove_session(self, db: Session, db_session: TimeSession) -> None:
        """Stage deletion of a session in the current transaction (no commit)"""
        db.delete(db_session)
        db.flush()

    def get_hours_summary(self, db: Session) -> List[Dict[str, Any]]:
        """
        Aggregate hours per member using native SQL.

        Open sessions count toward session_count and last_activity
        but contribute nothing to total_hours.
        """
        query = """
            SELECT ts_user_code AS user_code,
                   COALESCE(SUM(CASE WHEN ts_check_out_at IS NOT NULL
                                     THEN COALESCE(ts_total_hours, 0) ELSE 0 END), 0) AS total_hours,
                   SUM(CASE WHEN ts_is_flagged THEN 1 ELSE 0 END) AS flagged_sessions,
                   COUNT(*) AS session_count,
                   MAX(CASE WHEN ts_check_out_at IS NULL THEN 1 ELSE 0 END) AS open_session,
                   MAX(ts_check_in_at) AS last_activity
            FROM time_sessions
            GROUP BY ts_user_code
            ORDER BY ts_user_code
        """
        return self.execute_raw_sql_dict(db, query)

    def get_user_codes_with_multiple_open_sessions(self, db: Session) -> List[str]:
        """Find members holding more than one open session using native SQL"""
        query = """
            SELECT ts_user_code
            FROM time_sessions
            WHERE ts_check_out_at IS NULL
            GROUP BY ts_user_code
            HAVING COUNT(*) > 1
            ORDER BY ts_user_code
        """
        return [row[0] for row in self.execute_raw_sql(db, query)]

    def get_open_sessions_for_users(self, db: Session, user_codes: List[str]) -> List[TimeSession]:
        """Get open sessions for the given members using ORM"""
        if not user_codes:
            return []
        return db.query(TimeSession).filter(
            and_(
                TimeSession.ts_user_code.in_(user_codes),
                TimeSession.ts_check_out_at.is_(None)
            )
        ).order_by(TimeSession.ts_user_code.asc(), TimeSession.ts_check_in_at.asc()).all()
