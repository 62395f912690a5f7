"""Send push notifications straight to Expo tokens from the command line."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from notifier.config import get_settings
from notifier.dependencies import build_dispatcher
from notifier.logging_config import configure_logging
from notifier.services.broadcast import send_broadcast_notification, send_test_notification


logger = logging.getLogger("scripts.send_push")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Push notification sender",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/send_push.py test "ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]"
  python scripts/send_push.py broadcast "Hello" "Test message" "ExponentPushToken[xxx],ExponentPushToken[yyy]"
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    test = sub.add_parser("test", help="Send a test notification to one token")
    test.add_argument("token")

    broadcast = sub.add_parser("broadcast", help="Send a broadcast to a comma-separated token list")
    broadcast.add_argument("title")
    broadcast.add_argument("message")
    broadcast.add_argument("tokens", help="Comma-separated Expo push tokens")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    settings = get_settings()
    dispatcher = build_dispatcher(settings)

    if args.command == "test":
        result = send_test_notification(dispatcher, args.token, sound=settings.notification_sound)
    else:
        tokens = [t.strip() for t in args.tokens.split(",") if t.strip()]
        result = send_broadcast_notification(
            dispatcher,
            args.title,
            args.message,
            tokens,
            sound=settings.notification_sound,
        )

    logger.info("Result: %s", result.as_dict())
    return 0 if result.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
