# utils.py
# Location: tle_ingest/app/utils.py
# Updated: 2026-10-19
# Shared logging helpers for fetchers, sinks and the scheduler.

import logging
from datetime import datetime, timezone


def log_error_and_continue(context: str, exc: Exception | None = None):
    """
    Logs an error with optional exception details, keeping callsites consistent.
    """
    if exc is not None:
        logging.error(f"❌ {context}: {exc}")
    else:
        logging.error(f"❌ {context}")


def get_current_utc_timestamp():
    """
    Returns current UTC time as a formatted string.
    """
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S,%f')[:-3]


def describe_exception(exc: BaseException) -> str:
    """Short 'Type: message' text used in error-log entries."""
    text = str(exc).strip()
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__
