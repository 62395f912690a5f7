"""Broadcast and ad-hoc push notification helpers."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Sequence

from notifier.models.push import DispatchResult, Message, Priority, Recipient
from notifier.services.dispatcher import NotificationDispatcher
from notifier.services.notification_store import NotificationRecord, NotificationStore


logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "broadcast"


def send_push_notifications(
    dispatcher: NotificationDispatcher,
    tokens: Sequence[str],
    title: str,
    body: str,
    data: Mapping[str, Any] | None = None,
    *,
    sound: str | None = None,
) -> DispatchResult:
    """Send one message to a raw list of push tokens."""

    logger.info("Sending push notifications to %d devices", len(tokens))
    message = Message(title=title, body=body, payload=dict(data or {}), priority=Priority.HIGH, sound=sound)
    result = dispatcher.dispatch([Recipient(address=token) for token in tokens], message)
    for failure in result.failures:
        logger.error("Failed to send notification to %s: %s", failure.recipient.address, failure.error_kind.value)
    logger.info("Results: %d success, %d failed, %d skipped", result.delivered, result.failed, result.skipped)
    return result


def send_broadcast_notification(
    dispatcher: NotificationDispatcher,
    title: str,
    message: str,
    tokens: Sequence[str],
    data: Mapping[str, Any] | None = None,
    *,
    sound: str | None = None,
) -> DispatchResult:
    logger.info("Sending broadcast notification")
    return send_push_notifications(
        dispatcher,
        tokens,
        title,
        message,
        broadcast_payload(data),
        sound=sound,
    )


def send_test_notification(
    dispatcher: NotificationDispatcher,
    token: str,
    message: str = "This is a test notification from the server!",
    *,
    sound: str | None = None,
) -> DispatchResult:
    return send_push_notifications(
        dispatcher,
        [token],
        "🧪 Test Notification",
        message,
        {"screen": "More", "test": True, "timestamp": datetime.utcnow().isoformat()},
        sound=sound,
    )


def broadcast_payload(data: Mapping[str, Any] | None) -> dict[str, Any]:
    return {**(data or {}), "type": NOTIFICATION_TYPE, "screen": "More"}


class BroadcastService:
    """Broadcast to every registered device and clean up stale tokens."""

    def __init__(self, store: NotificationStore, dispatcher: NotificationDispatcher, *, sound: str | None = None) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._sound = sound

    def broadcast_to_all(
        self,
        title: str,
        message: str,
        data: Mapping[str, Any] | None = None,
        *,
        with_sound: bool = True,
    ) -> DispatchResult:
        users = self._store.push_recipients()
        logger.info("Broadcasting %r to %d users", title, len(users))
        notification = Message(
            title=title,
            body=message,
            payload=broadcast_payload(data),
            priority=Priority.HIGH,
            sound=self._sound if with_sound else None,
        )
        result = self._dispatcher.dispatch(
            [Recipient(address=u.push_token, user_id=u.user_id, email=u.email) for u in users],
            notification,
        )

        sent_at = datetime.utcnow()
        statuses = [(r, "sent") for r in result.delivered_recipients]
        statuses += [(f.recipient, "failed") for f in result.failures]
        self._store.log_notifications(
            [
                NotificationRecord(
                    user_id=recipient.user_id,
                    type=NOTIFICATION_TYPE,
                    title=title,
                    message=message,
                    data={"sent_at": sent_at.isoformat(), **dict(data or {})},
                    status=status,
                    sent_at=sent_at,
                )
                for recipient, status in statuses
            ]
        )
        if result.invalid_user_ids:
            self._store.clear_push_tokens(result.invalid_user_ids)

        logger.info(
            "Broadcast finished | delivered=%d | failed=%d | skipped=%d | tokens_removed=%d",
            result.delivered,
            result.failed,
            result.skipped,
            len(result.invalid_recipients),
        )
        return result
