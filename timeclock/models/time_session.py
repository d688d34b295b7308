"""
Time Session Model - Sign-in to Sign-out presence intervals
"""
from sqlalchemy import Column, String, DateTime, Float, Boolean, Text, Index
from sqlalchemy.sql import func
from atams.db import Base


class TimeSession(Base):
    """Time Session model - Table: time_sessions"""
    __tablename__ = "time_sessions"

    ts_id = Column(String(32), primary_key=True, index=True)
    ts_user_code = Column(String(32), nullable=False, index=True)  # Member code from the identity provider
    ts_check_in_at = Column(DateTime(timezone=True), nullable=False)
    ts_check_out_at = Column(DateTime(timezone=True), nullable=True)  # NULL while the member is present
    ts_total_hours = Column(Float, nullable=True)
    ts_is_flagged = Column(Boolean, nullable=False, default=False)  # Uncapped duration exceeded the cap
    ts_admin_notes = Column(Text, nullable=True)
    ts_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ts_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    __table_args__ = (
        # At most one open session per member
        Index(
            "uq_time_sessions_open_user",
            "ts_user_code",
            unique=True,
            postgresql_where=ts_check_out_at.is_(None),
            sqlite_where=ts_check_out_at.is_(None),
        ),
        Index("ix_time_sessions_user_check_in", "ts_user_code", "ts_check_in_at"),
    )
