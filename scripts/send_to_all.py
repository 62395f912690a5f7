"""Talk to a running notification server: health, token test and broadcast."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import requests

from notifier.config import get_settings
from notifier.logging_config import configure_logging


logger = logging.getLogger("scripts.send_to_all")

TIMEOUT_SECONDS = 30


class ServerClient:
    """Minimal client for the notification server HTTP API."""

    def __init__(self, base_url: str, session: requests.Session | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self._session.request(method, f"{self._base_url}{path}", json=payload, timeout=TIMEOUT_SECONDS)
        try:
            body = response.json()
        except ValueError as err:
            raise RuntimeError(f"Failed to parse response from {path}: {err}") from err
        if not response.ok:
            raise RuntimeError(f"{path} returned HTTP {response.status_code}: {body}")
        return body

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")

    def test_token(self, token: str, message: str) -> dict[str, Any]:
        return self._request("POST", "/test-token", {"token": token, "message": message})

    def broadcast(self, title: str, message: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._request(
            "POST",
            "/send-broadcast-notification",
            {"title": title, "message": message, "data": data or {}, "sound": True},
        )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Notification server client")
    parser.add_argument("--server", help="Server base URL (defaults to SERVER_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("health", help="Check server health")

    token = sub.add_parser("test-token", help="Send a test notification to one token")
    token.add_argument("token")
    token.add_argument("message", nargs="?", default="Test from script")

    broadcast = sub.add_parser("broadcast", help="Broadcast to every registered device")
    broadcast.add_argument("title")
    broadcast.add_argument("message")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    client = ServerClient(args.server or get_settings().server_url)

    try:
        if args.command == "health":
            result = client.health()
        elif args.command == "test-token":
            result = client.test_token(args.token, args.message)
        else:
            result = client.broadcast(
                args.title,
                args.message,
                {"timestamp": datetime.now(timezone.utc).isoformat(), "sentFrom": "script"},
            )
    except (requests.RequestException, RuntimeError):
        logger.exception("%s request failed", args.command)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
