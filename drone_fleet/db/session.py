from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

# Best-effort tuning for the fleet database file; a read-only or network
# mounted file may refuse WAL.
SQLITE_TUNING_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=5000",
)


@dataclass(frozen=True)
class DBRuntime:
    engine: Engine
    SessionLocal: sessionmaker


def _enable_sqlite_constraints(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover
        cursor = dbapi_connection.cursor()
        try:
            # Accessory links cascade with their parent equipment and pin
            # catalog entries; both need enforced foreign keys.
            cursor.execute("PRAGMA foreign_keys=ON")
            for pragma in SQLITE_TUNING_PRAGMAS:
                try:
                    cursor.execute(pragma)
                except Exception as exc:
                    logger.debug("Skipping %s: %s", pragma, exc)
        finally:
            cursor.close()


def create_engine_and_sessionmaker(
    database_url: str,
    *,
    echo: bool = False,
    sqlite_check_same_thread: bool = False,
) -> DBRuntime:
    """Engine and session factory for the fleet database.

    Sessions keep loaded rows after commit: services commit first and then
    build the success notification from the same equipment/link objects.
    SQLite connections are not pooled and are shared across FastAPI worker
    threads.
    """
    is_sqlite = database_url.startswith("sqlite")

    engine_kwargs: dict = dict(echo=echo, future=True, pool_pre_ping=True)
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": sqlite_check_same_thread, "timeout": 5}
        engine_kwargs["poolclass"] = NullPool

    engine = create_engine(database_url, **engine_kwargs)
    if is_sqlite:
        _enable_sqlite_constraints(engine)

    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)
    return DBRuntime(engine=engine, SessionLocal=SessionLocal)
