"""
Adaptive rescheduling of feed fetches.

A feed that changed recently is fetched again soon, a feed that has been quiet
is fetched less and less often. The delay grows with the cube root of the minutes
since the feed's own last update, so slow feeds are still checked now and then:

    elapsed      delay
    -------      -----
    1 min        20 s
    2 min        ~25 s
    1 h          ~78 s
    1 day        ~3 min 45 s
    1 week       ~7 min 12 s

The delay never drops below MIN_DELAY_MS and never exceeds the elapsed time.
"""

import math
from dataclasses import dataclass

from pollster.config.settings import DEFAULT_ELAPSED_MS, DELAY_SCALE_MS, MIN_DELAY_MS
from pollster.models.document import Document
from pollster.models.task import Task
from pollster.utils.logger import logger
from pollster.utils.timestamps import parse_timestamp


@dataclass(frozen=True)
class ScheduleUpdate:
    """New timing fields for a task after a successful fetch."""

    no_fetch_before: int
    last_update_time: int
    last_fetched_time: int


def compute_delay_ms(elapsed_ms: int) -> int:
    """Return the wait before the next fetch of a feed last updated elapsed_ms ago."""
    scaled = math.floor((max(elapsed_ms, 0) / 60_000) ** (1 / 3) * DELAY_SCALE_MS)
    return max(MIN_DELAY_MS, min(elapsed_ms, scaled))


def resolve_update_time(document: Document, now: int) -> int:
    """
    Return the feed's own update time in epoch ms.

    The latest entry's timestamp wins over the feed's top-level one. When neither
    parses the feed is assumed to have been updated an hour ago.
    """
    if document.has_entries():
        raw, origin = document.latest_entry_updated(), "entry"
    else:
        raw, origin = document.updated(), "feed"

    updated = parse_timestamp(raw)
    if updated is None:
        logger.warning(
            f"[RESCHEDULER]: Could not parse {origin} date {raw!r}, defaulting to one hour",
        )
        return now - DEFAULT_ELAPSED_MS
    return updated


def reschedule(task: Task, document: Document, now: int) -> ScheduleUpdate:
    """Compute the task's next eligibility from the document it just fetched."""
    updated = resolve_update_time(document, now)
    elapsed = now - updated
    if elapsed < 0:
        logger.warning(f"[RESCHEDULER]: Feed {task.feed_id} was updated in the future: {updated}")
        elapsed = DEFAULT_ELAPSED_MS

    if task.is_first_fetch():
        # fetch again asap to converge on the recent state
        no_fetch_before = 0
        logger.info(f"[RESCHEDULER]: Rescheduled {task.feed_id}: asap")
    else:
        delay = compute_delay_ms(elapsed)
        no_fetch_before = now + delay
        logger.info(
            f"[RESCHEDULER]: Rescheduled {task.feed_id}: updated {elapsed // 1000}s ago, "
            f"next in {delay // 60_000}m {(delay // 1000) % 60}s",
        )

    return ScheduleUpdate(
        no_fetch_before=no_fetch_before,
        last_update_time=updated,
        last_fetched_time=now,
    )


def compute_absent_retry(absent_count: int, now: int, base_ms: int, limit: int) -> int | None:
    """
    Return when to retry after absent_count consecutive absent fetches.

    Doubles from base_ms. Returns None once absent_count is past limit.
    """
    if absent_count < 1 or absent_count > limit:
        return None
    return now + base_ms * 2 ** (absent_count - 1)
