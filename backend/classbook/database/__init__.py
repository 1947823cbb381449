# backend/classbook/database/__init__.py
"""
Engine, session factory and declarative base for the classbook store.

The URL comes from ``settings.database_url``. SQLite is used for local runs
and tests, PostgreSQL in deployment; both enforce the unique occurrence key
that materialization relies on.
"""

from __future__ import annotations

import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)


def engine_options(db_url: str) -> dict[str, Any]:
    """Pool and driver options for the configured dialect."""
    options: dict[str, Any] = {"pool_pre_ping": True, "future": True, "echo": settings.sql_echo}
    if db_url.startswith("sqlite"):
        # Handlers run in worker threads; concurrent writers wait on the busy timeout
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        options.update({"pool_size": 5, "max_overflow": 10, "pool_recycle": 300})
    return options


engine: Engine = create_engine(settings.database_url, **engine_options(settings.database_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; committed when the request succeeds."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = ["Base", "SessionLocal", "engine", "engine_options", "get_db"]
