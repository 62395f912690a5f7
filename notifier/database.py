"""Engine, sessions and migrations for the notifier's relational store."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from notifier.config import get_settings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine usable from the scheduler's worker thread and the API threadpool."""

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args, future=True)


@event.listens_for(Engine, "connect")
def enforce_sqlite_foreign_keys(dbapi_conn, connection_record):
    # Participant and notification rows cascade with their booking/user.
    if isinstance(dbapi_conn, sqlite3.Connection):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Base(DeclarativeBase):
    pass


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """Session for scripts: committed on success, rolled back on error, always closed."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Iterator[Session]:
    """FastAPI dependency wrapping each request in ``session_scope``."""
    with session_scope() as session:
        yield session


def run_migrations(target_revision: str = "head", database_url: str | None = None) -> None:
    """Upgrade the bookings/profiles/notifications schema to ``target_revision``."""

    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url)
    command.upgrade(cfg, target_revision)
