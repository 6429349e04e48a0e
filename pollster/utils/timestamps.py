"""Convert feed timestamp strings to epoch milliseconds."""

import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from pollster.utils.logger import logger


def now_ms() -> int:
    """Return the current wall clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch ms, naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def parse_timestamp(value: str | None) -> int | None:
    """
    Parse a feed timestamp into epoch milliseconds.

    Accepts RFC 3339 / ISO 8601 (Atom, JSON feeds) and RFC 822 (RSS).
    Returns None for empty or unparseable input instead of raising.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    try:
        return to_epoch_ms(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return to_epoch_ms(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass

    logger.debug(f"[TIMESTAMPS]: Could not parse timestamp: {text!r}")
    return None
