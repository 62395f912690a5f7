"""Standalone scheduler process sending match reminders."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from filelock import FileLock, Timeout

from notifier.config import Settings, get_settings
from notifier.database import run_migrations
from notifier.dependencies import build_match_reminder_service
from notifier.logging_config import LOG_FORMAT, configure_logging
from notifier.services.match_reminders import ReminderCycleSummary


logger = logging.getLogger("scheduler")


def acquire_lock(lock_path: Path) -> FileLock:
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path))
    lock.acquire(timeout=0)
    return lock


def perform_reminder_cycle() -> ReminderCycleSummary:
    """Scan for matches needing reminders and notify their participants."""
    service = build_match_reminder_service(get_settings())
    return service.process_match_reminders()


async def run_reminder_job() -> None:
    start = datetime.now(timezone.utc)
    logger.info("Running scheduled match reminder check")

    try:
        summary = await asyncio.to_thread(perform_reminder_cycle)
    except Exception:
        logger.exception("Scheduled match reminder check failed")
        return

    elapsed = (datetime.now(timezone.utc) - start).total_seconds()
    logger.info(
        "Scheduled check completed in %.2fs | matches=%d | reminded=%d | failed=%d | delivered=%d | undelivered=%d | tokens_removed=%d",
        elapsed,
        summary.matches_found,
        summary.count("sent"),
        summary.count("failed"),
        summary.notifications_delivered,
        summary.notifications_failed,
        summary.tokens_removed,
    )
    for outcome in summary.outcomes:
        logger.debug("Detail %s -> %s", outcome.booking_id, outcome.status)


def build_scheduler(settings: Settings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_reminder_job,
        CronTrigger.from_crontab(settings.reminder_cron, timezone="UTC"),
        id="match_reminders",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


def build_health_server(settings: Settings) -> uvicorn.Server:
    config = uvicorn.Config(
        "notifier.main:app",
        host=settings.app_host,
        port=settings.health_port,
        log_config=None,
    )
    return uvicorn.Server(config)


async def main(run_now: bool) -> None:
    configure_logging()
    settings = get_settings()

    scheduler_log = settings.log_dir / "scheduler.log"
    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(scheduler_log.resolve()) for h in logger.handlers):
        handler = logging.FileHandler(scheduler_log, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    lock_path = settings.scheduler_lock_file
    lock = acquire_lock(lock_path)
    logger.info("Acquired scheduler lock at %s", lock_path)
    try:
        run_migrations()

        if run_now:
            await run_reminder_job()
            return

        scheduler = build_scheduler(settings)
        scheduler.start()
        logger.info("Cron job started (%s, UTC)", settings.reminder_cron)

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                # Windows event loops do not support signal handlers.
                pass

        health_task = None
        if settings.is_production:
            server = build_health_server(settings)
            health_task = asyncio.create_task(server.serve())
            logger.info("Health check server running on port %d", settings.health_port)

        # Run once immediately on startup
        await run_reminder_job()

        logger.info("Cron job is running. Press Ctrl+C to stop.")
        await stop.wait()

        logger.info("Shutting down cron job")
        scheduler.shutdown(wait=False)
        if health_task is not None:
            server.should_exit = True
            await health_task
        logger.info("Cron job stopped")
    finally:
        lock.release()
        logger.info("Released scheduler lock at %s", lock_path)
        if lock_path.exists():
            lock_path.unlink()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run match reminder scheduler")
    parser.add_argument("--run-now", action="store_true", help="Execute one reminder check immediately and exit")
    args = parser.parse_args()

    try:
        asyncio.run(main(run_now=args.run_now))
    except Timeout:
        logger.warning("Scheduler already running; exiting.")
