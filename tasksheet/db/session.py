"""
Database engine and session configuration.

Each repository call opens its own short-lived session via ``session_scope``,
so the timer thread used for auto-saves can share the same factory.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from tasksheet.config import DATABASE_ECHO
from tasksheet.errors import ConnectivityError

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Auto-save timers write from their own thread.
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, echo=DATABASE_ECHO, connect_args=connect_args)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Commit on success, roll back on error, and report lost connections as ConnectivityError."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except (OperationalError, InterfaceError) as e:
        session.rollback()
        logger.error("Database unavailable: %s", e)
        raise ConnectivityError(f"Database unavailable: {e.orig or e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
