"""SQLAlchemy engine, session factory and the request-scoped session dependency."""

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portal.config import get_settings

settings = get_settings()

# SQLite needs check_same_thread=False to be shared across FastAPI's threadpool
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

if settings.DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def describe_db_error(exc: Exception) -> str:
    """Readable message for the database errors imports and syncs run into."""
    raw = str(getattr(exc, "orig", None) or exc)
    lowered = raw.lower()
    if "unique" in lowered or "duplicate key" in lowered:
        return f"Duplicate record rejected by a unique constraint ({raw[:200]})"
    if "no such table" in lowered or ("relation" in lowered and "does not exist" in lowered):
        return f"Target table does not exist ({raw[:200]})"
    return f"Database error ({raw[:200]})"
