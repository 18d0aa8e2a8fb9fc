# backend/tutorsched/database.py
"""
Database engine, session factory, and metadata shared across the application.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .core.config import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # SQLite sessions are handed to worker threads by asyncio.to_thread
        return {"connect_args": {"check_same_thread": False}, "future": True}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_timeout": 5,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "future": True,
    }


def enable_sqlite_savepoints(target: Engine) -> None:
    """Let SQLAlchemy own BEGIN on pysqlite so nested savepoints behave."""

    @event.listens_for(target, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


engine: Engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
if settings.database_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now(timezone.utc)
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
