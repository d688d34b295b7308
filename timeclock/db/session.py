"""
Database Session Management
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from typing import Any, Dict, Generator

from atams.db.session import normalize_database_url
from timeclock.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Keyword arguments for create_engine

    Timestamps are written as naive UTC, so PostgreSQL connections are pinned
    to the UTC time zone whatever the server's TimeZone setting is.
    """
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
        "echo": settings.DEBUG
    }
    if make_url(database_url).get_backend_name() == "postgresql":
        options["connect_args"] = {"options": "-c timezone=utc"}
    return options


# Create engine
DATABASE_URL = normalize_database_url(settings.DATABASE_URL)
engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency

    Usage:
        @router.get("/")
        async def endpoint(db: Session = Depends(get_db)):
            # Use db here
            pass
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
