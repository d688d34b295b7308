"""
Time Session Event Repository - Data access layer for the ledger audit trail
"""
from typing import List
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from timeclock.models.time_session_event import TimeSessionEvent


class TimeSessionEventRepository(BaseRepository[TimeSessionEvent]):
    def __init__(self):
        super().__init__(TimeSessionEvent)

    def add_event(self, db: Session, event_data: dict) -> TimeSessionEvent:
        """Stage an audit event in the current transaction (no commit)"""
        db_event = TimeSessionEvent(**event_data)
        db.add(db_event)
        db.flush()
        return db_event

    def get_events_with_filters(
        self,
        db: Session,
        user_code: str = None,
        session_id: str = None,
        event_type: str = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[TimeSessionEvent]:
        """Get events with various filters using ORM"""
        query = db.query(TimeSessionEvent)

        if user_code:
            query = query.filter(TimeSessionEvent.tse_user_code == user_code)
        if session_id:
            query = query.filter(TimeSessionEvent.tse_session_id == session_id)
        if event_type:
            query = query.filter(TimeSessionEvent.tse_event_type == event_type)

        return query.order_by(
            TimeSessionEvent.tse_occurred_at.desc(),
            TimeSessionEvent.tse_id.desc()
        ).offset(skip).limit(limit).all()

    def count_events_with_filters(
        self,
        db: Session,
        user_code: str = None,
        session_id: str = None,
        event_type: str = None
    ) -> int:
        """Count events with filters using native SQL (unset filters match everything)"""
        query = """
            SELECT COUNT(*)
            FROM time_session_events
            WHERE (:user_code IS NULL OR tse_user_code = :user_code)
            AND (:session_id IS NULL OR tse_session_id = :session_id)
            AND (:event_type IS NULL OR tse_event_type = :event_type)
        """
        params = {
            "user_code": user_code or None,
            "session_id": session_id or None,
            "event_type": event_type or None
        }

        return self.execute_raw_sql_scalar(db, query, params)
