"""Match reminder sender run by the scheduler every few minutes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from notifier.models.database_models import Booking
from notifier.models.push import DispatchResult, Message, Priority, Recipient
from notifier.services.dispatcher import NotificationDispatcher
from notifier.services.notification_store import NotificationRecord, NotificationStore


logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "match_reminder"


@dataclass
class MatchReminderOutcome:
    booking_id: str
    status: str  # sent, no_participants, no_valid_tokens, failed
    result: DispatchResult | None = None


@dataclass
class ReminderCycleSummary:
    matches_found: int = 0
    outcomes: list[MatchReminderOutcome] = field(default_factory=list)
    query_failed: bool = False

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def notifications_delivered(self) -> int:
        return sum(o.result.delivered for o in self.outcomes if o.result)

    @property
    def notifications_failed(self) -> int:
        return sum(o.result.failed for o in self.outcomes if o.result)

    @property
    def tokens_removed(self) -> int:
        return sum(len(o.result.invalid_recipients) for o in self.outcomes if o.result)


def format_match_time(match_date: date | str, match_time: time | str) -> str:
    """Render kick-off as e.g. ``Mon, Jan 1, 6:00 PM``."""

    try:
        day = match_date if isinstance(match_date, date) else date.fromisoformat(str(match_date))
        clock = match_time if isinstance(match_time, time) else time.fromisoformat(str(match_time))
        kickoff = datetime.combine(day, clock)
    except (TypeError, ValueError):
        return f"{match_date} at {match_time}"
    hour = kickoff.hour % 12 or 12
    return f"{kickoff:%a, %b} {kickoff.day}, {hour}:{kickoff:%M} {kickoff:%p}"


def describe_lead(lead: timedelta) -> str:
    minutes = int(lead.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"


class MatchReminderService:
    """Find matches about to start and remind their participants."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        dispatcher: NotificationDispatcher,
        *,
        lead: timedelta = timedelta(hours=2),
        sound: str | None = None,
        channel_id: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._lead = lead
        self._sound = sound
        self._channel_id = channel_id

    def build_message(self, match: Booking) -> Message:
        match_time = format_match_time(match.match_date, match.match_time)
        match_type_text = "Ranked Match" if match.match_type == "ranked" else "Friendly Match"
        return Message(
            title=f"⚽ {match_type_text} Reminder",
            body=(
                f"Your match at {match.pitch_name} starts in {describe_lead(self._lead)} "
                f"({match_time}). Get ready!"
            ),
            payload={
                "screen": "GameDetails",
                "gameId": match.id,
                "matchType": match.match_type,
                "pitchName": match.pitch_name,
                "matchTime": match_time,
                "notificationType": NOTIFICATION_TYPE,
            },
            priority=Priority.HIGH,
            sound=self._sound,
            badge=1,
            channel_id=self._channel_id,
        )

    def process_match_reminders(self, now: datetime | None = None) -> ReminderCycleSummary:
        """Run one reminder cycle; every match gets its own failure boundary."""

        now = now or datetime.utcnow()
        summary = ReminderCycleSummary()
        session = self._session_factory()
        try:
            store = NotificationStore(session)
            try:
                matches = store.matches_needing_reminders(now, self._lead)
            except Exception:
                logger.exception("Failed to fetch matches needing reminders")
                session.rollback()
                summary.query_failed = True
                return summary

            summary.matches_found = len(matches)
            if not matches:
                logger.info("No matches need reminders at this time")
                return summary
            logger.info("Found %d matches needing reminders", len(matches))

            # Commits expire loaded bookings, so only ids survive across iterations.
            booking_ids = [match.id for match in matches]
            for booking_id in booking_ids:
                try:
                    match = store.get_booking(booking_id)
                    if match is None:
                        logger.warning("Booking %s disappeared before its reminder was sent", booking_id)
                        outcome = MatchReminderOutcome(booking_id=booking_id, status="failed")
                    else:
                        outcome = self.process_match_reminder(store, match)
                except Exception:
                    logger.exception("Error processing match reminder for %s", booking_id)
                    session.rollback()
                    outcome = MatchReminderOutcome(booking_id=booking_id, status="failed")
                summary.outcomes.append(outcome)
        finally:
            session.close()

        logger.info(
            "Match reminder cycle completed | matches=%d | sent=%d | failed=%d | delivered=%d | undelivered=%d",
            summary.matches_found,
            summary.count("sent"),
            summary.count("failed"),
            summary.notifications_delivered,
            summary.notifications_failed,
        )
        return summary

    def process_match_reminder(self, store: NotificationStore, match: Booking) -> MatchReminderOutcome:
        booking_id = match.id
        logger.info("Processing match %s at %s", booking_id, match.pitch_name)

        participants = store.match_participants(booking_id)
        if not participants:
            logger.info("No participants with push tokens found for match %s", booking_id)
            store.mark_reminder_sent(booking_id)
            return MatchReminderOutcome(booking_id=booking_id, status="no_participants")

        message = self.build_message(match)
        recipients = [
            Recipient(address=p.push_token, user_id=p.user_id, email=p.email) for p in participants
        ]
        result = self._dispatcher.dispatch(recipients, message)

        if result.submitted == 0:
            logger.info("No valid push tokens found for match %s", booking_id)
            store.mark_reminder_sent(booking_id)
            return MatchReminderOutcome(booking_id=booking_id, status="no_valid_tokens", result=result)

        # Marked first: nothing after this point may cause a duplicate reminder.
        records = self._records(match, message, result)
        store.mark_reminder_sent(booking_id)

        for failure in result.failures:
            logger.error(
                "Notification error for %s: %s (%s)",
                failure.recipient.label,
                failure.error_kind.value,
                failure.detail,
            )
        if result.invalid_user_ids:
            store.clear_push_tokens(result.invalid_user_ids)

        try:
            store.log_notifications(records)
        except Exception:
            logger.exception("Failed to log notifications for match %s", booking_id)
            store.session.rollback()

        logger.info(
            "Match reminder completed for %s | delivered=%d | failed=%d | skipped=%d",
            booking_id,
            result.delivered,
            result.failed,
            result.skipped,
        )
        return MatchReminderOutcome(booking_id=booking_id, status="sent", result=result)

    def _records(self, match: Booking, message: Message, result: DispatchResult) -> list[NotificationRecord]:
        sent_at = datetime.utcnow()
        minutes = int(self._lead.total_seconds() // 60)
        reminder_type = f"{minutes // 60}_hour_reminder" if minutes % 60 == 0 else f"{minutes}_minute_reminder"
        data = {
            "booking_id": match.id,
            "reminder_type": reminder_type,
            "sent_at": sent_at.isoformat(),
        }
        statuses = [(r, "sent") for r in result.delivered_recipients]
        statuses += [(f.recipient, "failed") for f in result.failures]
        return [
            NotificationRecord(
                user_id=recipient.user_id,
                type=NOTIFICATION_TYPE,
                title=message.title,
                message=message.body,
                data=dict(data),
                status=status,
                sent_at=sent_at,
            )
            for recipient, status in statuses
            if recipient.user_id is not None
        ]
