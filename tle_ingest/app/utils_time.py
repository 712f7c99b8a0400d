# utils_time.py — UTC helpers for TLE ingest
# Last Updated (UTC): 2026-10-19
# Update Summary:
# • Trimmed to the helpers the scheduler, parser and propagator use.
#
# Data Handling Notes:
# • Everything returned is a tz-aware UTC datetime (or None for invalid input).

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import pandas as pd

LOG = logging.getLogger(__name__)


def now_utc() -> datetime:
    """Current time as tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(ts) -> Optional[datetime]:
    """
    Normalize any timestamp-like input (str, datetime, pd.Timestamp) to a
    tz-aware UTC datetime.

    Behavior:
      • None/NaT/invalid → None.
      • tz-naive → assumed UTC.
      • tz-aware → converted to UTC.
    """
    t = pd.to_datetime(ts, errors="coerce")
    if t is None or pd.isna(t):
        return None
    if getattr(t, "tzinfo", None) is None:
        t = t.tz_localize("UTC")
    else:
        t = t.tz_convert("UTC")
    return t.to_pydatetime()


def tle_epoch_to_utc(epoch_year: int, epoch_days: float) -> datetime:
    """
    TLE epoch (two-digit year + fractional day-of-year) → UTC datetime.
    Years 57-99 are 19xx, 00-56 are 20xx.
    """
    yy = int(epoch_year) % 100
    year = 1900 + yy if yy >= 57 else 2000 + yy
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=float(epoch_days) - 1)
