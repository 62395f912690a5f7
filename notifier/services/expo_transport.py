"""Transport for the Expo push notification service."""
from __future__ import annotations

import logging
import re
from typing import Any, Sequence

import requests

from notifier.models.push import DeliveryOutcome, ErrorKind, Message, Recipient


logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
MAX_CHUNK_SIZE = 100

_UUID_TOKEN = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


class PushTransportError(RuntimeError):
    """Raised when a whole batch could not be handed to the provider."""


def is_expo_push_token(token: Any) -> bool:
    """Return True when ``token`` looks like an Expo push token."""

    if not isinstance(token, str):
        return False
    if (token.startswith("ExponentPushToken[") or token.startswith("ExpoPushToken[")) and token.endswith("]"):
        return True
    return bool(_UUID_TOKEN.match(token))


class ExpoPushTransport:
    """Thin wrapper around the Expo push HTTP API."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        url: str = EXPO_PUSH_URL,
        access_token: str | None = None,
        timeout: float = 15.0,
        chunk_size: int = MAX_CHUNK_SIZE,
    ) -> None:
        if not 1 <= chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}")
        self._session = session or requests.Session()
        self._url = url
        self._timeout = timeout
        self.chunk_size = chunk_size
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Accept-Encoding": "gzip, deflate",
                "Content-Type": "application/json",
            }
        )
        if access_token:
            self._session.headers["Authorization"] = f"Bearer {access_token}"

    def is_valid_address(self, address: str) -> bool:
        return is_expo_push_token(address)

    @staticmethod
    def build_payload(recipient: Recipient, message: Message) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "to": recipient.address,
            "title": message.title,
            "body": message.body,
            "data": dict(message.payload),
            "priority": message.priority.value,
        }
        if message.sound:
            payload["sound"] = message.sound
        if message.badge is not None:
            payload["badge"] = message.badge
        if message.channel_id:
            payload["channelId"] = message.channel_id
        return payload

    def submit_batch(self, batch: Sequence[tuple[Recipient, Message]]) -> list[DeliveryOutcome]:
        """
        Send one batch and return one outcome per entry, in request order.

        Raises:
            PushTransportError: the request failed as a whole.
        """
        body = [self.build_payload(recipient, message) for recipient, message in batch]
        try:
            response = self._session.post(self._url, json=body, timeout=self._timeout)
        except requests.RequestException as err:
            raise PushTransportError(f"Expo push request failed: {err}") from err

        try:
            content = response.json()
        except ValueError as err:
            raise PushTransportError(
                f"Expo push returned a non-JSON body (HTTP {response.status_code})"
            ) from err
        if not isinstance(content, dict):
            raise PushTransportError(f"Expo push returned an unexpected body (HTTP {response.status_code})")

        if not response.ok or content.get("errors"):
            errors = content.get("errors") or []
            detail = "; ".join(str(e.get("message", e) if isinstance(e, dict) else e) for e in errors) or response.reason
            raise PushTransportError(f"Expo push rejected the batch (HTTP {response.status_code}): {detail}")

        tickets = content.get("data")
        if not isinstance(tickets, list) or len(tickets) != len(batch):
            raise PushTransportError(
                f"Expo push returned {len(tickets) if isinstance(tickets, list) else 'no'} tickets for {len(batch)} messages"
            )

        return [self._parse_ticket(ticket) for ticket in tickets]

    @staticmethod
    def _parse_ticket(ticket: dict[str, Any]) -> DeliveryOutcome:
        if ticket.get("status") == "ok":
            return DeliveryOutcome.ok(ticket_id=ticket.get("id"))
        details = ticket.get("details") or {}
        return DeliveryOutcome.error(
            ErrorKind.from_provider(details.get("error")),
            detail=ticket.get("message"),
        )

    def close(self) -> None:
        self._session.close()
