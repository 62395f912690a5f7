"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from datetime import date, datetime, time
from typing import Callable, Iterator, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL") or "sqlite://"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from notifier.logging_config import configure_logging

configure_logging()

from notifier.database import Base, get_db
from notifier.dependencies import get_dispatcher
from notifier.main import app
from notifier.models.database_models import Booking, BookingParticipant, UserProfile
from notifier.services.dispatcher import NotificationDispatcher

from fakes import FakeTransport


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def dispatcher(transport: FakeTransport) -> NotificationDispatcher:
    return NotificationDispatcher(transport)


@pytest.fixture
def session_factory() -> Iterator[Callable[[], Session]]:
    """Session factory bound to a fresh in-memory database."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., UserProfile]:
    def _make_user(user_id: str, push_token: str | None = None, **fields) -> UserProfile:
        user = UserProfile(
            id=user_id,
            push_token=push_token,
            email=fields.pop("email", f"{user_id}@example.com"),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_booking(db_session: Session) -> Callable[..., Booking]:
    def _make_booking(
        booking_id: str,
        starts_at: datetime,
        participants: Sequence[str] = (),
        **fields,
    ) -> Booking:
        booking = Booking(
            id=booking_id,
            pitch_name=fields.pop("pitch_name", "Central Pitch"),
            match_date=starts_at.date(),
            match_time=starts_at.time().replace(microsecond=0),
            **fields,
        )
        booking.participants = [BookingParticipant(user_id=user_id) for user_id in participants]
        db_session.add(booking)
        db_session.commit()
        return booking

    return _make_booking


@pytest.fixture
def now() -> datetime:
    return datetime.combine(date(2025, 6, 14), time(16, 0))


@pytest.fixture
def test_client(session_factory, dispatcher) -> Iterator[TestClient]:
    """FastAPI test client wired to the in-memory database and fake transport."""

    def _get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
