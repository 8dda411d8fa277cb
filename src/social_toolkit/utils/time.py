"""
Timestamp helpers.

All timestamps in the toolkit are integer milliseconds since the Unix epoch,
which is also what the document store writes for 'SERVER_TIMESTAMP'. Calendar
logic (date labels, relative times) converts to local 'datetime' objects only
at the presentation edge.
"""

import time
from datetime import date, datetime

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS


def get_current_timestamp() -> int:
    return int(time.time() * 1000)


def to_local_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp / 1000)


def to_local_date(timestamp: int) -> date:
    return to_local_datetime(timestamp).date()


def format_relative(timestamp: int | None, now: int | None = None) -> str:
    """Render a compact age such as '5m ago'. Anything older than a week is shown as its local date."""
    if timestamp is None:
        return ""
    now = get_current_timestamp() if now is None else now
    diff = max(now - timestamp, 0)
    if diff < MINUTE_MS:
        return "just now"
    if diff < HOUR_MS:
        return f"{diff // MINUTE_MS}m ago"
    if diff < DAY_MS:
        return f"{diff // HOUR_MS}h ago"
    if diff < WEEK_MS:
        return f"{diff // DAY_MS}d ago"
    return to_local_date(timestamp).isoformat()
