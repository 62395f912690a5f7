"""Explicit construction of the transport, dispatcher and senders."""
from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from notifier.config import Settings, get_settings
from notifier.database import SessionLocal, get_db
from notifier.services.broadcast import BroadcastService
from notifier.services.dispatcher import NotificationDispatcher
from notifier.services.expo_transport import ExpoPushTransport
from notifier.services.game_invitations import GameInvitationService
from notifier.services.match_reminders import MatchReminderService
from notifier.services.notification_store import NotificationStore


def build_transport(settings: Settings) -> ExpoPushTransport:
    return ExpoPushTransport(
        url=settings.expo_push_url,
        access_token=settings.expo_access_token,
        timeout=settings.push_timeout_seconds,
        chunk_size=settings.push_chunk_size,
    )


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    return NotificationDispatcher(build_transport(settings), chunk_size=settings.push_chunk_size)


def build_match_reminder_service(
    settings: Settings,
    dispatcher: NotificationDispatcher | None = None,
    session_factory=SessionLocal,
) -> MatchReminderService:
    return MatchReminderService(
        session_factory,
        dispatcher or build_dispatcher(settings),
        lead=timedelta(minutes=settings.reminder_lead_minutes),
        sound=settings.notification_sound,
        channel_id=settings.notification_channel_id,
    )


@lru_cache()
def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency returning the process-wide dispatcher."""

    return build_dispatcher(get_settings())


def get_store(db: Session = Depends(get_db)) -> NotificationStore:
    return NotificationStore(db)


def get_invitation_service(
    store: NotificationStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> GameInvitationService:
    settings = get_settings()
    return GameInvitationService(
        store,
        dispatcher,
        sound=settings.notification_sound,
        channel_id=settings.notification_channel_id,
    )


def get_broadcast_service(
    store: NotificationStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> BroadcastService:
    return BroadcastService(store, dispatcher, sound=get_settings().notification_sound)
