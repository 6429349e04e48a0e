"""Fake collaborators for driving the scheduler deterministically."""

from concurrent.futures import Future
from datetime import UTC, datetime

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
# 2025-01-13T12:00:00Z
BASE_NOW_MS = 1_736_769_600_000


def iso(ms: int) -> str:
    """Format epoch ms as an RFC 3339 UTC timestamp."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC).isoformat().replace("+00:00", "Z")


class DeferredExecutor:
    """Executor whose submitted calls run only when the test says so."""

    def __init__(self):
        self.pending: list[tuple[Future, object, tuple]] = []
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args))
        self.submitted += 1
        return future

    def run_next(self):
        future, fn, args = self.pending.pop(0)
        try:
            future.set_result(fn(*args))
        except Exception as e:  # noqa: BLE001
            future.set_exception(e)

    def run_all(self):
        while self.pending:
            self.run_next()

    def shutdown(self, wait=True):
        self.run_all()


class FakeClock:
    def __init__(self, now: int = BASE_NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FakeDocument:
    """Document with fixed timestamps. No entry id and no entry_updated means no entries."""

    def __init__(self, *, updated=None, entry_id=None, entry_updated=None, has_entries=None):
        self._updated = updated
        self._entry_id = entry_id
        self._entry_updated = entry_updated
        if has_entries is None:
            has_entries = entry_id is not None or entry_updated is not None
        self._has_entries = has_entries

    def updated(self):
        return self._updated

    def has_entries(self):
        return self._has_entries

    def latest_entry_id(self):
        return self._entry_id

    def latest_entry_updated(self):
        return self._entry_updated

    def __repr__(self):
        return f"<FakeDocument {self._entry_id}>"


class RecordingSubscriber:
    def __init__(self, name="subscriber"):
        self.name = name
        self.calls = []

    def notify(self, document, query):
        self.calls.append((document, query))

    def __repr__(self):
        return f"<RecordingSubscriber {self.name}>"
