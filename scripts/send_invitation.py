"""Send a game invitation push notification from the command line."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from notifier.config import get_settings
from notifier.database import SessionLocal, session_scope
from notifier.dependencies import build_dispatcher
from notifier.logging_config import configure_logging
from notifier.services.game_invitations import BulkGameInvitation, GameInvitationService
from notifier.services.notification_store import NotificationStore


logger = logging.getLogger("scripts.send_invitation")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send game invitation notifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/send_invitation.py --target USER_ID --inviter USER_ID \\
      --game BOOKING_ID --date 2025-01-01 --time 18:00 --pitch "Central Pitch"
        """,
    )
    parser.add_argument("--target", action="append", required=True, help="Invited user id (repeatable)")
    parser.add_argument("--inviter", required=True, help="Inviting user id")
    parser.add_argument("--game", required=True, help="Booking id of the game")
    parser.add_argument("--date", required=True, help="Game date (YYYY-MM-DD)")
    parser.add_argument("--time", required=True, help="Game time (HH:MM)")
    parser.add_argument("--pitch", required=True, help="Pitch name")
    parser.add_argument("--title", help="Game title")
    parser.add_argument("--location", help="Pitch location")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    settings = get_settings()

    with session_scope(SessionLocal) as db:
        service = GameInvitationService(
            NotificationStore(db),
            build_dispatcher(settings),
            sound=settings.notification_sound,
            channel_id=settings.notification_channel_id,
        )
        result = service.send_bulk_invitations(
            BulkGameInvitation(
                target_user_ids=args.target,
                inviter_user_id=args.inviter,
                game_id=args.game,
                game_date=args.date,
                game_time=args.time,
                pitch_name=args.pitch,
                game_title=args.title,
                pitch_location=args.location,
            )
        )

    for error in result.errors:
        logger.error("%s", error)
    return 0 if result.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
