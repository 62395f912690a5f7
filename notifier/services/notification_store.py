"""Database access used by the notification senders."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from notifier.models.database_models import Booking, BookingParticipant, Notification, UserProfile


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Participant:
    user_id: str
    push_token: str
    email: str | None = None
    full_name: str | None = None


@dataclass
class NotificationRecord:
    """A notification log row waiting to be inserted."""

    user_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    status: str = "sent"
    sent_at: datetime = field(default_factory=datetime.utcnow)


class NotificationStore:
    """Repository over users, bookings and the notification log.

    Mutating methods commit immediately so that one failed unit of work
    cannot roll back another.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def matches_needing_reminders(self, now: datetime, lead: timedelta) -> list[Booking]:
        """Confirmed, un-reminded bookings kicking off within ``(now, now + lead]``."""

        horizon = now + lead
        candidates = self.session.scalars(
            select(Booking)
            .where(
                Booking.reminder_sent.is_(False),
                Booking.status == "confirmed",
                Booking.match_date >= now.date(),
                Booking.match_date <= horizon.date(),
            )
            .order_by(Booking.match_date, Booking.match_time)
        ).all()
        return [b for b in candidates if now < b.starts_at <= horizon]

    def match_participants(self, booking_id: str) -> list[Participant]:
        rows = self.session.execute(
            select(UserProfile.id, UserProfile.push_token, UserProfile.email, UserProfile.full_name)
            .join(BookingParticipant, BookingParticipant.user_id == UserProfile.id)
            .where(
                BookingParticipant.booking_id == booking_id,
                UserProfile.push_token.is_not(None),
            )
            .order_by(BookingParticipant.id)
        ).all()
        return [
            Participant(user_id=row.id, push_token=row.push_token, email=row.email, full_name=row.full_name)
            for row in rows
        ]

    def push_recipients(self) -> list[Participant]:
        """Every user holding a push token."""

        users = self.session.scalars(
            select(UserProfile).where(UserProfile.push_token.is_not(None)).order_by(UserProfile.created_at)
        ).all()
        return [
            Participant(user_id=u.id, push_token=u.push_token, email=u.email, full_name=u.full_name)
            for u in users
        ]

    def get_user(self, user_id: str) -> UserProfile | None:
        return self.session.get(UserProfile, user_id)

    def get_booking(self, booking_id: str) -> Booking | None:
        """Return the booking, or None when it no longer exists."""
        return self.session.get(Booking, booking_id)

    def mark_reminder_sent(self, booking_id: str, at: datetime | None = None) -> None:
        self.session.execute(
            update(Booking)
            .where(Booking.id == booking_id)
            .values(reminder_sent=True, reminder_sent_at=at or datetime.utcnow())
        )
        self.session.commit()
        logger.info("Marked reminder as sent for booking %s", booking_id)

    def log_notifications(self, records: Sequence[NotificationRecord]) -> int:
        if not records:
            return 0
        self.session.add_all(
            Notification(
                user_id=r.user_id,
                type=r.type,
                title=r.title,
                message=r.message,
                data=r.data,
                status=r.status,
                sent_at=r.sent_at,
            )
            for r in records
        )
        self.session.commit()
        logger.info("Logged %d notifications in database", len(records))
        return len(records)

    def clear_push_tokens(self, user_ids: Iterable[str]) -> int:
        ids = sorted(set(user_ids))
        if not ids:
            return 0
        self.session.execute(update(UserProfile).where(UserProfile.id.in_(ids)).values(push_token=None))
        self.session.commit()
        logger.info("Removed invalid push tokens for %d users", len(ids))
        return len(ids)

    def clear_push_token(self, user_id: str) -> None:
        self.clear_push_tokens([user_id])
