"""
Time Session Event Model - Audit trail for all ledger mutations
"""
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, Float, Text
from sqlalchemy.sql import func
from atams.db import Base


class TimeSessionEvent(Base):
    """Time Session Event model - Table: time_session_events"""
    __tablename__ = "time_session_events"

    # BigInteger on PostgreSQL, INTEGER on SQLite so autoincrement works there too
    tse_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)
    tse_session_id = Column(String(32), nullable=False, index=True)  # No FK: events outlive deleted sessions
    tse_user_code = Column(String(32), nullable=False, index=True)
    tse_actor_code = Column(String(32), nullable=False)
    tse_event_type = Column(String(16), nullable=False)  # 'sign_in', 'sign_out', 'manual_add', 'adjust', 'delete'
    tse_hours_before = Column(Float, nullable=True)
    tse_hours_after = Column(Float, nullable=True)
    tse_notes = Column(Text, nullable=True)
    tse_occurred_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
