"""Queue of pending tasks ordered by eligibility time."""

import itertools
from bisect import insort
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from pollster.models.task import Task
from pollster.utils.logger import logger


@dataclass(order=True)
class QueueEntry:
    """Position of a task in the queue. Ties on next_time keep insertion order."""

    next_time: int
    seq: int
    task: Task = field(compare=False)


class TaskQueue:
    """
    Pending tasks, soonest eligible first.

    Holds at most one entry per topic. Not thread-safe on its own, the owner
    serializes access.
    """

    def __init__(self, name: str = "Task Queue") -> None:
        """Initialize TaskQueue."""
        self.name = name
        self._entries: list[QueueEntry] = []
        self._by_topic: dict[str, QueueEntry] = {}
        self._seq = itertools.count()
        self._front_seq = itertools.count(-1, -1)

    def insert(self, task: Task) -> bool:
        """
        Insert task at its eligibility position.

        An entry for the same topic with the same eligibility time coalesces the
        insert into a no-op. An entry for the same topic at another time is moved.
        Returns True if the queue changed.
        """
        existing = self._by_topic.get(task.topic)
        if existing is not None:
            if existing.next_time == task.no_fetch_before:
                logger.debug(f"[{self.name.upper()}]: Coalescing duplicate task {task.topic}")
                return False
            self._drop(existing)
        self._add(QueueEntry(task.no_fetch_before, next(self._seq), task))
        return True

    def reposition(self, task: Task) -> bool:
        """Re-sort task after its no_fetch_before changed."""
        return self.insert(task)

    def remove(self, task: Task) -> bool:
        """Remove task from the queue, return False if it was not queued."""
        entry = self._by_topic.get(task.topic)
        if entry is None or entry.task is not task:
            return False
        self._drop(entry)
        return True

    def drain_eligible(self, now: int) -> Iterator[Task]:
        """
        Remove and yield tasks with no_fetch_before < now, most eligible first.

        Lazy: a task leaves the queue only when it is yielded, so a caller that
        stops iterating leaves the rest queued.
        """
        while self._entries:
            entry = self._entries[0]
            if entry.next_time >= now:
                return
            self._drop(entry)
            yield entry.task

    def promote(self, predicate: Callable[[Task], bool]) -> list[Task]:
        """
        Make every matching task eligible now and move it ahead of all others.

        Matching tasks keep their relative order, the rest are untouched.
        """
        matched = [entry.task for entry in self._entries if predicate(entry.task)]
        for task in reversed(matched):
            self._drop(self._by_topic[task.topic])
            task.no_fetch_before = 0
            self._add(QueueEntry(0, next(self._front_seq), task))
        return matched

    def peek(self) -> Task | None:
        """Return the most eligible task without removing it."""
        return self._entries[0].task if self._entries else None

    def _add(self, entry: QueueEntry) -> None:
        insort(self._entries, entry)
        self._by_topic[entry.task.topic] = entry

    def _drop(self, entry: QueueEntry) -> None:
        self._entries.remove(entry)
        del self._by_topic[entry.task.topic]

    def __contains__(self, task: object) -> bool:
        if not isinstance(task, Task):
            return False
        entry = self._by_topic.get(task.topic)
        return entry is not None and entry.task is task

    def __iter__(self) -> Iterator[Task]:
        return iter([entry.task for entry in self._entries])

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        """Represent TaskQueue as string."""
        return f"TaskQueue(name={self.name}, size={len(self)}, next={self.peek()})"
