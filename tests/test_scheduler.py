"""Tests for the asynchronous scheduler job."""
from __future__ import annotations

from pathlib import Path

import pytest
from filelock import Timeout

from notifier.config import Settings
from notifier.services.match_reminders import MatchReminderOutcome, ReminderCycleSummary
from scripts import run_scheduler


@pytest.mark.asyncio
async def test_run_reminder_job_invokes_cycle(monkeypatch):
    recorded = {"calls": 0}

    def fake_cycle() -> ReminderCycleSummary:
        recorded["calls"] += 1
        return ReminderCycleSummary(
            matches_found=1,
            outcomes=[MatchReminderOutcome(booking_id="b1", status="sent")],
        )

    monkeypatch.setattr(run_scheduler, "perform_reminder_cycle", fake_cycle)

    await run_scheduler.run_reminder_job()

    assert recorded["calls"] == 1


@pytest.mark.asyncio
async def test_run_reminder_job_survives_failed_cycle(monkeypatch):
    def fake_cycle_failure() -> ReminderCycleSummary:
        raise RuntimeError("boom")

    monkeypatch.setattr(run_scheduler, "perform_reminder_cycle", fake_cycle_failure)

    # Must not raise so the next scheduled run still happens.
    await run_scheduler.run_reminder_job()


def test_perform_reminder_cycle_uses_configured_service(monkeypatch):
    class FakeService:
        def process_match_reminders(self):
            return ReminderCycleSummary(matches_found=3)

    monkeypatch.setattr(run_scheduler, "build_match_reminder_service", lambda settings: FakeService())

    assert run_scheduler.perform_reminder_cycle().matches_found == 3


def test_build_scheduler_registers_single_flight_job():
    scheduler = run_scheduler.build_scheduler(Settings(reminder_cron="*/5 * * * *"))

    job = scheduler.get_job("match_reminders")
    assert job is not None
    assert job.max_instances == 1
    assert job.coalesce is True
    assert "*/5" in str(job.trigger)


def test_acquire_lock_is_single_flight(tmp_path: Path):
    lock_path = tmp_path / "scheduler.lock"
    lock = run_scheduler.acquire_lock(lock_path)
    try:
        with pytest.raises(Timeout):
            run_scheduler.acquire_lock(lock_path)
    finally:
        lock.release()


def test_invalid_crontab_is_rejected():
    with pytest.raises(ValueError):
        Settings(reminder_cron="every five minutes")
