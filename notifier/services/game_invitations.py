"""Push notifications for game invitations."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from notifier.models.push import ErrorKind, Message, Priority, Recipient
from notifier.services.dispatcher import NotificationDispatcher
from notifier.services.match_reminders import format_match_time
from notifier.services.notification_store import NotificationRecord, NotificationStore


logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "game_invitation"


@dataclass(frozen=True)
class GameInvitation:
    target_user_id: str
    inviter_user_id: str
    game_id: str
    game_date: str
    game_time: str
    pitch_name: str
    game_title: str | None = None
    pitch_location: str | None = None


@dataclass(frozen=True)
class BulkGameInvitation:
    target_user_ids: list[str]
    inviter_user_id: str
    game_id: str
    game_date: str
    game_time: str
    pitch_name: str
    game_title: str | None = None
    pitch_location: str | None = None

    def for_target(self, user_id: str) -> GameInvitation:
        return GameInvitation(
            target_user_id=user_id,
            inviter_user_id=self.inviter_user_id,
            game_id=self.game_id,
            game_date=self.game_date,
            game_time=self.game_time,
            pitch_name=self.pitch_name,
            game_title=self.game_title,
            pitch_location=self.pitch_location,
        )


@dataclass
class InvitationResult:
    success: bool
    error: str | None = None


@dataclass
class BulkInvitationResult:
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class GameInvitationService:
    """Notify a user that someone invited them to a game."""

    def __init__(
        self,
        store: NotificationStore,
        dispatcher: NotificationDispatcher,
        *,
        sound: str | None = None,
        channel_id: str | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._sound = sound
        self._channel_id = channel_id

    def send_invitation(self, invitation: GameInvitation) -> InvitationResult:
        try:
            return self._send(invitation)
        except Exception as err:
            logger.exception("Error sending game invitation to %s", invitation.target_user_id)
            self._store.session.rollback()
            return InvitationResult(success=False, error=str(err))

    def _send(self, invitation: GameInvitation) -> InvitationResult:
        target = self._store.get_user(invitation.target_user_id)
        if target is None:
            logger.error("Target user %s not found", invitation.target_user_id)
            return InvitationResult(success=False, error="User not found")
        if not target.push_token:
            logger.info("No push token for user %s", invitation.target_user_id)
            return InvitationResult(success=False, error="No push token")
        if not self._dispatcher.is_valid_address(target.push_token):
            logger.error("Invalid push token for user %s: %r", target.id, target.push_token)
            return InvitationResult(success=False, error="Invalid push token")

        inviter = self._store.get_user(invitation.inviter_user_id)
        if inviter is None:
            logger.error("Inviter %s not found", invitation.inviter_user_id)
            return InvitationResult(success=False, error="Inviter not found")

        inviter_name = inviter.full_name or inviter.email or "Someone"
        when = format_match_time(invitation.game_date, invitation.game_time)
        message = Message(
            title="⚽ Game Invitation",
            body=f"{inviter_name} invited you to join a match at {invitation.pitch_name} on {when}",
            payload={
                "screen": "GameDetails",
                "gameId": invitation.game_id,
                "type": NOTIFICATION_TYPE,
                "pitchName": invitation.pitch_name,
                "gameDate": invitation.game_date,
                "gameTime": invitation.game_time,
                "inviterName": inviter_name,
                "notificationType": NOTIFICATION_TYPE,
            },
            priority=Priority.HIGH,
            sound=self._sound,
            badge=1,
            channel_id=self._channel_id,
        )

        logger.info("Sending invitation notification to %s", target.email or target.id)
        result = self._dispatcher.dispatch(
            [Recipient(address=target.push_token, user_id=target.id, email=target.email)],
            message,
        )

        failure = result.failures[0] if result.failures else None
        self._store.log_notifications(
            [
                NotificationRecord(
                    user_id=target.id,
                    type=NOTIFICATION_TYPE,
                    title=message.title,
                    message=message.body,
                    data={
                        "game_id": invitation.game_id,
                        "invited_by": invitation.inviter_user_id,
                        "sent_at": datetime.utcnow().isoformat(),
                        "notification_type": "push",
                    },
                    status="failed" if failure else "sent",
                )
            ]
        )

        if failure is None:
            logger.info("Invitation notification sent to %s", target.email or target.id)
            return InvitationResult(success=True)

        logger.error("Notification error for %s: %s", target.email or target.id, failure.detail)
        if failure.error_kind is ErrorKind.DEVICE_NOT_REGISTERED:
            logger.info("Removing invalid token for user %s", target.id)
            self._store.clear_push_token(target.id)
        return InvitationResult(success=False, error=failure.detail or failure.error_kind.value)

    def send_bulk_invitations(self, bulk: BulkGameInvitation) -> BulkInvitationResult:
        results = BulkInvitationResult()
        for user_id in bulk.target_user_ids:
            result = self.send_invitation(bulk.for_target(user_id))
            if result.success:
                results.success += 1
            else:
                results.failed += 1
                results.errors.append(f"User {user_id}: {result.error}")

        logger.info("Bulk invitations result: %d success, %d failed", results.success, results.failed)
        return results
