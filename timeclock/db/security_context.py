"""
Security Context - Acting member code for row-level security

The transport is stateless between requests, so the context is set again
before every ledger read or write rather than once per connection.
"""
from typing import Optional
from sqlalchemy import text
from sqlalchemy.orm import Session

CONTEXT_KEY = "current_user_code"


def set_security_context(db: Session, user_code: str) -> None:
    """
    Establish ``user_code`` as the acting member for this database session.

    On PostgreSQL the code is also published as ``app.current_user_code``
    so row-level-security policies can read it with current_setting().
    """
    db.info[CONTEXT_KEY] = user_code

    if db.get_bind().dialect.name == "postgresql":
        db.execute(
            text("SELECT set_config('app.current_user_code', :user_code, false)"),
            {"user_code": user_code}
        )


def get_security_context(db: Session) -> Optional[str]:
    """Return the member code last established on this session, if any"""
    return db.info.get(CONTEXT_KEY)
