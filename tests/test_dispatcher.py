"""Unit tests for the batch notification dispatcher."""
from __future__ import annotations

import logging

import pytest

from notifier.models.push import DeliveryOutcome, ErrorKind, Message, Recipient
from notifier.services.dispatcher import NotificationDispatcher, chunked

from fakes import FakeTransport, expo_token


MESSAGE = Message(title="Kick-off", body="Your match starts soon", payload={"screen": "GameDetails"})


def recipients(count: int, start: int = 0) -> list[Recipient]:
    return [Recipient(address=expo_token(i), user_id=f"user-{i}") for i in range(start, start + count)]


def test_empty_recipient_list_returns_zero_counts(dispatcher, transport):
    result = dispatcher.dispatch([], MESSAGE)

    assert (result.submitted, result.delivered, result.failed) == (0, 0, 0)
    assert result.invalid_recipients == ()
    assert transport.batches == []


def test_malformed_address_is_skipped_and_never_counted(dispatcher, transport, caplog):
    good = recipients(3)
    bad = Recipient(address="not-a-token", user_id="user-bad")

    with caplog.at_level(logging.WARNING, logger="notifier.services.dispatcher"):
        result = dispatcher.dispatch([good[0], bad, good[1], good[2]], MESSAGE)

    assert result.submitted == 3
    assert result.delivered == 3
    assert result.failed == 0
    assert result.skipped == 1
    assert bad not in result.delivered_recipients
    assert bad not in result.invalid_recipients
    assert all(f.recipient != bad for f in result.failures)
    assert "not-a-token" not in transport.sent_addresses
    assert "not-a-token" in caplog.text


def test_empty_address_is_treated_as_malformed(dispatcher, transport):
    result = dispatcher.dispatch([Recipient(address="", user_id="u1")], MESSAGE)

    assert result.submitted == 0
    assert result.skipped == 1
    assert transport.batches == []


def test_device_not_registered_is_flagged_for_removal():
    first, second = recipients(2)
    transport = FakeTransport(errors={second.address: ErrorKind.DEVICE_NOT_REGISTERED})

    result = NotificationDispatcher(transport).dispatch([first, second], MESSAGE)

    assert result.submitted == 2
    assert result.delivered == 1
    assert result.failed == 1
    assert result.invalid_recipients == (second,)
    assert result.invalid_user_ids == ["user-1"]
    assert result.delivered_recipients == (first,)


@pytest.mark.parametrize(
    "kind",
    [
        ErrorKind.MESSAGE_TOO_BIG,
        ErrorKind.MESSAGE_RATE_EXCEEDED,
        ErrorKind.INVALID_CREDENTIALS,
        ErrorKind.UNKNOWN,
    ],
)
def test_other_provider_errors_fail_without_flagging(kind):
    target = recipients(1)[0]
    transport = FakeTransport(errors={target.address: kind})

    result = NotificationDispatcher(transport).dispatch([target], MESSAGE)

    assert result.failed == 1
    assert result.invalid_recipients == ()
    assert result.failures[0].error_kind is kind


def test_250_recipients_are_sent_in_three_ordered_batches():
    transport = FakeTransport(chunk_size=100)
    targets = recipients(250)

    result = NotificationDispatcher(transport).dispatch(targets, MESSAGE)

    assert [len(batch) for batch in transport.batches] == [100, 100, 50]
    assert transport.sent_addresses == [r.address for r in targets]
    assert result.batches == 3
    assert result.submitted == result.delivered == 250


def test_explicit_chunk_size_overrides_transport_default():
    transport = FakeTransport(chunk_size=100)

    NotificationDispatcher(transport, chunk_size=7).dispatch(recipients(20), MESSAGE)

    assert [len(batch) for batch in transport.batches] == [7, 7, 6]


def test_failed_batch_does_not_abort_other_batches():
    targets = recipients(25)
    transport = FakeTransport(
        chunk_size=10,
        fail_batches={1},
        errors={targets[22].address: ErrorKind.DEVICE_NOT_REGISTERED},
    )

    result = NotificationDispatcher(transport).dispatch(targets, MESSAGE)

    assert len(transport.batches) == 3
    assert result.submitted == 25
    assert result.delivered == 14
    assert result.failed == 11
    assert result.invalid_recipients == (targets[22],)
    batch_failures = [f for f in result.failures if f.recipient in targets[10:20]]
    assert len(batch_failures) == 10
    assert all(f.error_kind is ErrorKind.UNKNOWN for f in batch_failures)


def test_outcome_count_mismatch_marks_batch_unknown():
    class ShortTransport(FakeTransport):
        def submit_batch(self, batch):
            super().submit_batch(batch)
            return [DeliveryOutcome.ok()]

    result = NotificationDispatcher(ShortTransport()).dispatch(recipients(3), MESSAGE)

    assert result.delivered == 0
    assert result.failed == 3
    assert {f.error_kind for f in result.failures} == {ErrorKind.UNKNOWN}


def test_outcomes_are_paired_positionally():
    targets = recipients(6)
    failing = {targets[1].address, targets[4].address}
    transport = FakeTransport(chunk_size=4, errors={a: ErrorKind.MESSAGE_TOO_BIG for a in failing})

    result = NotificationDispatcher(transport).dispatch(targets, MESSAGE)

    assert {f.recipient.address for f in result.failures} == failing
    assert [r.address for r in result.delivered_recipients] == [
        targets[0].address,
        targets[2].address,
        targets[3].address,
        targets[5].address,
    ]


@pytest.mark.parametrize("total,malformed", [(0, 0), (1, 1), (13, 4), (101, 0), (205, 17)])
def test_counts_always_balance(total, malformed):
    targets = recipients(total - malformed) + [
        Recipient(address=f"bogus-{i}") for i in range(malformed)
    ]
    errors = {r.address: ErrorKind.DEVICE_NOT_REGISTERED for r in targets[::5] if r.address.startswith("Expo")}
    transport = FakeTransport(chunk_size=50, errors=errors)

    result = NotificationDispatcher(transport).dispatch(targets, MESSAGE)

    assert result.submitted + result.skipped == total
    assert result.delivered + result.failed == result.submitted
    assert len(transport.batches) == -(-result.submitted // 50)
    assert all(len(batch) <= 50 for batch in transport.batches)


def test_message_is_passed_through_unchanged(dispatcher, transport):
    dispatcher.dispatch(recipients(2), MESSAGE)

    assert all(message is MESSAGE for batch in transport.batches for _, message in batch)


def test_chunked_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(chunked([1, 2, 3], 0))


def test_chunked_preserves_order():
    assert [list(c) for c in chunked(list(range(7)), 3)] == [[0, 1, 2], [3, 4, 5], [6]]


@pytest.mark.parametrize("size", [0, -3, 101])
def test_chunk_size_outside_transport_limit_is_rejected(size):
    with pytest.raises(ValueError):
        NotificationDispatcher(FakeTransport(chunk_size=100), chunk_size=size)


def test_chunk_size_defaults_to_transport_limit():
    assert NotificationDispatcher(FakeTransport(chunk_size=40)).chunk_size == 40
