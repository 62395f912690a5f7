"""Process-wide logging for the scheduler, the notification server and the CLIs."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from notifier.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_FILE = "notifier.log"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

# Chatty per-request/per-run loggers kept at WARNING unless DEBUG is asked for.
QUIET_LOGGERS = ("urllib3", "apscheduler.executors.default", "apscheduler.scheduler")

_configured = False


def build_logging_config(log_dir: Path, level: str) -> dict:
    quiet_level = "DEBUG" if level == "DEBUG" else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_dir / LOG_FILE),
                "maxBytes": MAX_LOG_BYTES,
                "backupCount": LOG_BACKUPS,
                "encoding": "utf-8",
                "formatter": "standard",
            },
        },
        "loggers": {name: {"level": quiet_level} for name in QUIET_LOGGERS},
        "root": {"level": level, "handlers": ["console", "file"]},
    }


def configure_logging() -> None:
    """Configure logging once; later calls are no-ops."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
    except ValidationError:
        # Env may be incomplete before the CLI/test harness fills it in.
        log_dir, level = Path("logs"), "INFO"
    else:
        log_dir, level = settings.log_dir, settings.log_level
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level))
    _configured = True
