"""Bookkeeping of topic -> subscribers and topic -> task."""

from pollster.models.subscriber import Subscriber
from pollster.models.task import Task
from pollster.utils.custom_exceptions.scheduler_exceptions import SchedulerStateError
from pollster.utils.logger import logger


class TopicRegistry:
    """
    Maps each topic to its subscribers and to the single task tracking it.

    Subscribers are compared by identity. Also holds the in-flight fetch counter.
    """

    def __init__(self, name: str = "Topic Registry") -> None:
        """Initialize TopicRegistry."""
        self.name = name
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._tasks: dict[str, Task] = {}
        self._pending_count = 0

    # ------ SUBSCRIBERS -------
    def add_subscriber(self, topic: str, subscriber: Subscriber) -> bool:
        """Add subscriber to topic, return False if it was already there."""
        subscribers = self._subscribers.setdefault(topic, [])
        if any(existing is subscriber for existing in subscribers):
            return False
        subscribers.append(subscriber)
        return True

    def remove_subscriber(self, subscriber: Subscriber) -> list[str]:
        """
        Remove subscriber from every topic.

        Topics left without subscribers are dropped from the subscriber map, their
        tasks stay until the scheduler next tries to dispatch them.
        Returns the topics the subscriber was removed from.
        """
        removed_from = []
        for topic, subscribers in list(self._subscribers.items()):
            remaining = [existing for existing in subscribers if existing is not subscriber]
            if len(remaining) == len(subscribers):
                continue
            removed_from.append(topic)
            if remaining:
                self._subscribers[topic] = remaining
            else:
                del self._subscribers[topic]
        return removed_from

    def get_subscribers(self, topic: str) -> list[Subscriber]:
        """Return a snapshot of the topic's subscribers."""
        return list(self._subscribers.get(topic, []))

    def has_subscribers(self, topic: str) -> bool:
        return bool(self._subscribers.get(topic))

    # ------ TASKS -------
    def get_task(self, topic: str) -> Task | None:
        return self._tasks.get(topic)

    def add_task(self, task: Task) -> None:
        """Register task for its topic. A topic never has two tasks."""
        if task.topic in self._tasks:
            msg = f"Task already registered for topic {task.topic}"
            raise SchedulerStateError(msg)
        self._tasks[task.topic] = task

    def remove_topic(self, topic: str) -> Task | None:
        """Delete all bookkeeping for topic, return its task if any."""
        self._subscribers.pop(topic, None)
        return self._tasks.pop(topic, None)

    def get_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    # ------ IN-FLIGHT COUNTER -------
    def get_pending_count(self) -> int:
        """Return the number of fetches in flight."""
        return self._pending_count

    def increment_pending_count(self) -> int:
        self._pending_count += 1
        return self._pending_count

    def decrement_pending_count(self) -> int:
        """Decrement the in-flight counter. It never goes below zero."""
        if self._pending_count == 0:
            logger.error(f"[{self.name.upper()}]: Pending count decremented below zero, ignoring")
            return 0
        self._pending_count -= 1
        return self._pending_count

    def __repr__(self) -> str:
        """Represent TopicRegistry as string."""
        return (
            f"TopicRegistry(topics={len(self._subscribers)}, tasks={len(self._tasks)}, "
            f"pending={self._pending_count})"
        )
