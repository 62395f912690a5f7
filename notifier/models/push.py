"""Value types exchanged between the dispatcher, its transport and callers."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class Priority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


class DeliveryStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Per-recipient error reported by the push provider."""

    DEVICE_NOT_REGISTERED = "DeviceNotRegistered"
    MESSAGE_TOO_BIG = "MessageTooBig"
    MESSAGE_RATE_EXCEEDED = "MessageRateExceeded"
    INVALID_CREDENTIALS = "InvalidCredentials"
    UNKNOWN = "Unknown"

    @classmethod
    def from_provider(cls, value: str | None) -> "ErrorKind":
        """Map a provider error code onto a known kind, defaulting to UNKNOWN."""

        for kind in cls:
            if kind.value == value:
                return kind
        return cls.UNKNOWN


@dataclass(frozen=True)
class Recipient:
    """A delivery target. ``user_id`` is None for raw token lists."""

    address: str
    user_id: str | None = None
    email: str | None = None

    @property
    def label(self) -> str:
        return self.email or self.user_id or self.address


@dataclass(frozen=True)
class Message:
    """Notification content shared by every recipient of one dispatch."""

    title: str
    body: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    priority: Priority = Priority.HIGH
    sound: str | None = None
    badge: int | None = None
    channel_id: str | None = None


@dataclass(frozen=True)
class DeliveryOutcome:
    status: DeliveryStatus
    error_kind: ErrorKind | None = None
    detail: str | None = None
    ticket_id: str | None = None

    @classmethod
    def ok(cls, ticket_id: str | None = None) -> "DeliveryOutcome":
        return cls(status=DeliveryStatus.OK, ticket_id=ticket_id)

    @classmethod
    def error(cls, kind: ErrorKind, detail: str | None = None) -> "DeliveryOutcome":
        return cls(status=DeliveryStatus.ERROR, error_kind=kind, detail=detail)

    @property
    def is_ok(self) -> bool:
        return self.status is DeliveryStatus.OK


@dataclass(frozen=True)
class DeliveryFailure:
    recipient: Recipient
    error_kind: ErrorKind
    detail: str | None = None


@dataclass(frozen=True)
class DispatchResult:
    """Aggregate outcome of one dispatch call.

    ``submitted`` excludes malformed addresses, which are reported as
    ``skipped``. ``delivered + failed == submitted`` always holds.
    """

    submitted: int = 0
    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    batches: int = 0
    invalid_recipients: tuple[Recipient, ...] = ()
    delivered_recipients: tuple[Recipient, ...] = ()
    failures: tuple[DeliveryFailure, ...] = ()

    @property
    def invalid_user_ids(self) -> list[str]:
        return [r.user_id for r in self.invalid_recipients if r.user_id is not None]

    def as_dict(self) -> dict[str, Any]:
        return {
            "submitted": self.submitted,
            "delivered": self.delivered,
            "failed": self.failed,
            "skipped": self.skipped,
            "invalid_tokens": [r.address for r in self.invalid_recipients],
        }
