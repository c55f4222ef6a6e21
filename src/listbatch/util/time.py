from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return current time as tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_epoch_millis() -> int:
    """Return current time as milliseconds since the Unix epoch."""
    return int(now_utc().timestamp() * 1000)
