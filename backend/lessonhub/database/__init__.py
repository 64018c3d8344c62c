"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from lessonhub.core.config import settings

logger = logging.getLogger(__name__)

# Engine tuning for the hosted Postgres pooler:
# - pool_pre_ping + pool_recycle keep stale pooled connections from hanging around.
# - statement_timeout caps runaway queries so the API layer recovers quickly.
_DEFAULT_CONNECT_ARGS: dict[str, Any] = {
    "keepalives": 1,
    "keepalives_idle": 15,
    "keepalives_interval": 5,
    "keepalives_count": 3,
    "options": "-c statement_timeout=15000",
    "connect_timeout": 5,
    "application_name": "lessonhub",
}

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 3,
    "max_overflow": 5,
    "pool_timeout": 2,
    "pool_recycle": 30,
    "pool_pre_ping": True,
    "pool_use_lifo": True,
}


def _is_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite")


def build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the configured dialect."""
    if _is_sqlite(db_url):
        # Single shared connection so in-memory databases survive across sessions.
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
            "future": True,
        }

    kwargs = dict(_DEFAULT_POOL_KWARGS)
    connect_args = dict(_DEFAULT_CONNECT_ARGS)
    if "supabase" in db_url:
        connect_args["sslmode"] = "require"
    kwargs["connect_args"] = connect_args
    kwargs["future"] = True
    return kwargs


engine: Engine = create_engine(settings.database_url, **build_engine_kwargs(settings.database_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
