"""Tests for broadcast helpers and the broadcast service."""
from __future__ import annotations

from sqlalchemy import select

from notifier.models.database_models import Notification, UserProfile
from notifier.models.push import ErrorKind
from notifier.services.broadcast import (
    BroadcastService,
    send_broadcast_notification,
    send_push_notifications,
    send_test_notification,
)
from notifier.services.dispatcher import NotificationDispatcher
from notifier.services.notification_store import NotificationStore

from fakes import FakeTransport, expo_token


def test_send_push_notifications_skips_malformed_tokens(dispatcher, transport):
    result = send_push_notifications(
        dispatcher,
        [expo_token(1), "nope", expo_token(2)],
        "Hello",
        "World",
        {"screen": "More"},
    )

    assert result.as_dict() == {
        "submitted": 2,
        "delivered": 2,
        "failed": 0,
        "skipped": 1,
        "invalid_tokens": [],
    }
    assert transport.sent_addresses == [expo_token(1), expo_token(2)]


def test_send_push_notifications_reports_invalid_tokens():
    transport = FakeTransport(errors={expo_token(2): ErrorKind.DEVICE_NOT_REGISTERED})

    result = send_push_notifications(NotificationDispatcher(transport), [expo_token(1), expo_token(2)], "t", "b")

    assert [r.address for r in result.invalid_recipients] == [expo_token(2)]
    assert result.invalid_user_ids == []


def test_broadcast_notification_tags_payload(dispatcher, transport):
    send_broadcast_notification(dispatcher, "News", "New features", [expo_token(1)], {"campaign": "june"})

    payload = transport.batches[0][0][1].payload
    assert payload == {"campaign": "june", "type": "broadcast", "screen": "More"}


def test_send_test_notification(dispatcher, transport):
    result = send_test_notification(dispatcher, expo_token(9))

    assert result.delivered == 1
    message = transport.batches[0][0][1]
    assert message.title == "🧪 Test Notification"
    assert message.payload["test"] is True


def test_broadcast_to_all_logs_and_prunes(db_session, make_user):
    transport = FakeTransport(
        chunk_size=2,
        errors={expo_token(3): ErrorKind.DEVICE_NOT_REGISTERED},
    )
    service = BroadcastService(NotificationStore(db_session), NotificationDispatcher(transport), sound="ding.wav")
    make_user("alice", expo_token(1))
    make_user("bob", None)
    make_user("carol", expo_token(3))
    make_user("dave", "malformed")
    make_user("erin", expo_token(5))

    result = service.broadcast_to_all("Update", "New pitches available", with_sound=False)

    assert result.submitted == 3
    assert result.skipped == 1
    assert result.delivered == 2
    assert result.failed == 1
    assert len(transport.batches) == 2
    assert transport.batches[0][0][1].sound is None

    db_session.expire_all()
    assert db_session.get(UserProfile, "carol").push_token is None
    assert db_session.get(UserProfile, "dave").push_token == "malformed"
    statuses = dict(db_session.execute(select(Notification.user_id, Notification.status)).all())
    assert statuses == {"alice": "sent", "carol": "failed", "erin": "sent"}
