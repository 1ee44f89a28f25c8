"""
Time helpers for sale timestamps and store-local reporting.

Sales are stamped in UTC. Anything shown to a cashier (receipts, daily
summaries) is converted to the store's time zone first.
"""
import time
from datetime import date, datetime
from typing import Optional

import pytz


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(pytz.UTC)


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def to_store_time(dt: datetime, store_timezone: Optional[str] = None) -> datetime:
    """
    Convert a datetime to the store's local time.

    Naive datetimes are assumed to be UTC. If no time zone is given the
    datetime is returned unchanged.
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    if not store_timezone:
        return dt
    return dt.astimezone(pytz.timezone(store_timezone))


def store_date(dt: datetime, store_timezone: Optional[str] = None) -> date:
    """Calendar date of ``dt`` as seen from the store."""
    return to_store_time(dt, store_timezone).date()
