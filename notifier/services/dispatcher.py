"""Batch notification dispatcher shared by every notification sender."""
from __future__ import annotations

import logging
from typing import Iterator, Protocol, Sequence, TypeVar

from notifier.models.push import (
    DeliveryFailure,
    DeliveryOutcome,
    DispatchResult,
    ErrorKind,
    Message,
    Recipient,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


class PushTransport(Protocol):
    chunk_size: int

    def is_valid_address(self, address: str) -> bool: ...

    def submit_batch(self, batch: Sequence[tuple[Recipient, Message]]) -> list[DeliveryOutcome]: ...


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield contiguous slices of ``items`` no longer than ``size``."""

    if size < 1:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class NotificationDispatcher:
    """
    Validate, chunk, submit and reconcile one message for many recipients.

    The dispatcher never raises for a dispatch call and never touches the
    database; persistence driven by the result is left to the caller.
    """

    def __init__(self, transport: PushTransport, chunk_size: int | None = None) -> None:
        if chunk_size is None:
            chunk_size = transport.chunk_size
        if not 1 <= chunk_size <= transport.chunk_size:
            raise ValueError(f"chunk_size must be between 1 and {transport.chunk_size}, got {chunk_size}")
        self._transport = transport
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def is_valid_address(self, address: str | None) -> bool:
        return bool(address) and self._transport.is_valid_address(address)

    def dispatch(self, recipients: Sequence[Recipient], message: Message) -> DispatchResult:
        valid: list[Recipient] = []
        for recipient in recipients:
            if self.is_valid_address(recipient.address):
                valid.append(recipient)
            else:
                logger.warning("Skipping malformed push token %r (user=%s)", recipient.address, recipient.user_id)
        skipped = len(recipients) - len(valid)

        delivered: list[Recipient] = []
        failures: list[DeliveryFailure] = []
        batches = 0

        for batch in chunked(valid, self._chunk_size):
            batches += 1
            for recipient, outcome in zip(batch, self._submit(batch, message)):
                if outcome.is_ok:
                    delivered.append(recipient)
                else:
                    failures.append(
                        DeliveryFailure(
                            recipient=recipient,
                            error_kind=outcome.error_kind or ErrorKind.UNKNOWN,
                            detail=outcome.detail,
                        )
                    )

        return DispatchResult(
            submitted=len(valid),
            delivered=len(delivered),
            failed=len(failures),
            skipped=skipped,
            batches=batches,
            invalid_recipients=tuple(
                f.recipient for f in failures if f.error_kind is ErrorKind.DEVICE_NOT_REGISTERED
            ),
            delivered_recipients=tuple(delivered),
            failures=tuple(failures),
        )

    def _submit(self, batch: Sequence[Recipient], message: Message) -> list[DeliveryOutcome]:
        try:
            outcomes = self._transport.submit_batch([(recipient, message) for recipient in batch])
        except Exception as err:
            logger.exception("Push batch of %d notifications failed", len(batch))
            return [DeliveryOutcome.error(ErrorKind.UNKNOWN, detail=str(err))] * len(batch)

        if len(outcomes) != len(batch):
            # Positional pairing is meaningless once the counts diverge.
            logger.error("Transport returned %d outcomes for a batch of %d", len(outcomes), len(batch))
            return [DeliveryOutcome.error(ErrorKind.UNKNOWN, detail="outcome count mismatch")] * len(batch)
        return outcomes
