"""Router exposing basic system endpoints."""
from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter

from notifier.config import get_settings


SERVICE_NAME = "match-reminder-cron"

_started = time.monotonic()

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """
    Liveness probe for the scheduler and notification server.

    Returns:
        dict: {
            "status": "running",
            "service": service name,
            "schedule": reminder crontab,
            "uptime": seconds since the process started,
            "timestamp": ISO timestamp (UTC)
        }
    """
    return {
        "status": "running",
        "service": SERVICE_NAME,
        "schedule": get_settings().reminder_cron,
        "uptime": round(time.monotonic() - _started, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/api/health/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}
