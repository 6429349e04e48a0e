"""Settings module."""

import os

from dotenv import load_dotenv

from pollster.utils.paths import project_root

load_dotenv(project_root / ".env")

# ------ SCHEDULER -------
TICK_SECONDS = float(os.getenv("POLLSTER_TICK_SECONDS", "1.0"))
CONCURRENCY_CEILING = int(os.getenv("POLLSTER_CONCURRENCY_CEILING", "5"))
FIRST_FETCH_COUNT = int(os.getenv("POLLSTER_FIRST_FETCH_COUNT", "3"))

# Consecutive absent fetches are retried with exponential backoff up to the limit,
# a limit of 0 leaves absent tasks unqueued
ABSENT_RETRY_BASE_MS = int(os.getenv("POLLSTER_ABSENT_RETRY_BASE_MS", "60000"))
ABSENT_RETRY_LIMIT = int(os.getenv("POLLSTER_ABSENT_RETRY_LIMIT", "5"))

# ------ RESCHEDULER -------
MIN_DELAY_MS = 6
DELAY_SCALE_MS = 20_000
DEFAULT_ELAPSED_MS = 60 * 60 * 1000  # 1 hour

# ------ FEED SOURCE -------
FEED_SERVICE_URL = os.getenv("FEED_SERVICE_URL", "http://localhost:8181/feed")
HTTP_HEADER_USER_AGENT = os.getenv("HTTP_HEADER_USER_AGENT", "pollster")
HTTP_HEADER_FROM = os.getenv("HTTP_HEADER_FROM", "")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

config = {
    "tick_seconds": TICK_SECONDS,
    "concurrency_ceiling": CONCURRENCY_CEILING,
    "first_fetch_count": FIRST_FETCH_COUNT,
    "absent_retry_base_ms": ABSENT_RETRY_BASE_MS,
    "absent_retry_limit": ABSENT_RETRY_LIMIT,
}
