"""
Pollster monitors feeds and notifies subscribers of updates.

Each distinct query (topic) gets one Task. Tasks wait in a TaskQueue ordered by
the time they may next be fetched. Every tick, while fewer than the ceiling of
fetches are in flight, the most eligible task is handed to the feed source. A
completed fetch is fanned out to the topic's subscribers, and the rescheduler
decides when the task may be fetched again.

Fetches run on an executor. Their completions are posted to `completions` and
applied by one control thread (DispatchWorker), or by hand with
process_completions(). All state changes happen under `lock`.
"""

import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from queue import Empty, Queue
from typing import Any

from pollster.config.settings import (
    ABSENT_RETRY_BASE_MS,
    ABSENT_RETRY_LIMIT,
    CONCURRENCY_CEILING,
    FIRST_FETCH_COUNT,
    TICK_SECONDS,
)
from pollster.models.document import Document
from pollster.models.query import Query
from pollster.models.subscriber import Subscriber
from pollster.models.task import Task
from pollster.scheduler.rescheduler import compute_absent_retry, reschedule
from pollster.sources.atom_document import feed_id_from_resource
from pollster.sources.change_notifier import ChangeProducer
from pollster.sources.feed_source import FeedSource
from pollster.structures.task_queue import TaskQueue
from pollster.structures.topic_registry import TopicRegistry
from pollster.utils.logger import logger
from pollster.utils.timestamps import now_ms, parse_timestamp
from pollster.workers.dispatch_worker import DispatchWorker


@dataclass(frozen=True)
class Completion:
    """A finished fetch waiting to be applied by the control thread."""

    task: Task
    query: Query
    future: Future


class Pollster:
    """Adaptive polling scheduler with subscriber fan-out."""

    def __init__(
        self,
        source: FeedSource,
        *,
        change_producer: ChangeProducer | None = None,
        executor: Executor | None = None,
        clock: Callable[[], int] = now_ms,
        tick_seconds: float = TICK_SECONDS,
        concurrency_ceiling: int = CONCURRENCY_CEILING,
        first_fetch_count: int = FIRST_FETCH_COUNT,
        absent_retry_base_ms: int = ABSENT_RETRY_BASE_MS,
        absent_retry_limit: int = ABSENT_RETRY_LIMIT,
        name: str = "Pollster",
    ) -> None:
        """
        Initialize Pollster.

        Args:
            source (FeedSource): Fetches documents for queries
            change_producer (ChangeProducer | None): Local change signals, subscribed once here
            executor (Executor | None): Runs fetches, a thread pool sized to the ceiling by default
            clock (Callable[[], int]): Current time in epoch ms
            tick_seconds (float): Interval of the dispatch tick
            concurrency_ceiling (int): Maximum fetches in flight
            first_fetch_count (int): Entry count requested on a task's first fetch
            absent_retry_base_ms (int): First retry delay after an absent fetch
            absent_retry_limit (int): Consecutive absent fetches retried, 0 disables retries
            name (str): Name used in log messages

        """
        self.source = source
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.concurrency_ceiling = concurrency_ceiling
        self.first_fetch_count = first_fetch_count
        self.absent_retry_base_ms = absent_retry_base_ms
        self.absent_retry_limit = absent_retry_limit
        self.name = name

        self.registry = TopicRegistry()
        self.queue = TaskQueue()
        self.completions: Queue[Completion | None] = Queue()
        self.lock = threading.RLock()

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=concurrency_ceiling, thread_name_prefix="pollster-fetch",
        )
        self._worker: DispatchWorker | None = None

        if change_producer is not None:
            change_producer.subscribe(self.on_local_change)

    # ------ SUBSCRIPTIONS -------
    def subscribe(self, query: Query | dict[str, Any], subscriber: Subscriber) -> Task:
        """
        Call subscriber.notify(document, query) each time new results arrive for query.

        A topic that already has a task replays its latest result to the new
        subscriber right away and becomes eligible on the next tick. A new topic is
        fetched immediately.
        """
        if not isinstance(query, Query):
            query = Query.model_validate(query)
        topic = query.topic

        with self.lock:
            self.registry.add_subscriber(topic, subscriber)

            task = self.registry.get_task(topic)
            if task is not None:
                if task.latest_result is not None:
                    self._notify(subscriber, task.latest_result, query)
                # eliminate delay before next refetch
                task.no_fetch_before = 0
                if not task.in_flight:
                    self.queue.reposition(task)
                return task

            task = Task(query)
            self.registry.add_task(task)
            if self.registry.get_pending_count() < self.concurrency_ceiling:
                self.dispatch(task)
            else:
                logger.info(f"[{self.name.upper()}]: At ceiling, queueing new task {topic}")
                self.queue.insert(task)
            return task

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Stop notifying subscriber. Fetches already in flight are not cancelled."""
        with self.lock:
            topics = self.registry.remove_subscriber(subscriber)
            for topic in topics:
                self._discard_idle_topic(topic)
        if topics:
            logger.info(f"[{self.name.upper()}]: Unsubscribed {subscriber} from {topics}")

    def _discard_idle_topic(self, topic: str) -> None:
        # queued and in-flight tasks are cleaned up by their next dispatch
        task = self.registry.get_task(topic)
        if task is None or self.registry.has_subscribers(topic):
            return
        if not task.in_flight and task not in self.queue:
            logger.info(f"[{self.name.upper()}]: Deleting unscheduled task: {task}")
            self.registry.remove_topic(topic)

    def get_pending_count(self) -> int:
        """Return the number of fetches in flight."""
        with self.lock:
            return self.registry.get_pending_count()

    # ------ DISPATCH -------
    def dispatch(self, task: Task) -> bool:
        """
        Issue a fetch for task.

        Returns False without fetching when the topic has no subscribers left, in
        which case the topic's bookkeeping is deleted.
        """
        with self.lock:
            topic = task.topic
            if not self.registry.has_subscribers(topic):
                logger.info(f"[{self.name.upper()}]: Deleting task: {task}")
                self.registry.remove_topic(topic)
                self.queue.remove(task)
                return False

            query = task.query
            if task.latest_entry_id:
                query = query.with_updates(after=task.latest_entry_id)
            if task.is_first_fetch():
                # fetch only the latest few, the requeue catches up
                query = query.with_updates(count=self.first_fetch_count)

            task.in_flight = True
            pending = self.registry.increment_pending_count()
            logger.info(f"[{self.name.upper()}]: Sent: {pending} : {query.topic}")
            try:
                future = self.executor.submit(self.source.pull, query)
            except RuntimeError:
                task.in_flight = False
                self.registry.decrement_pending_count()
                self.queue.insert(task)
                logger.exception(f"[{self.name.upper()}]: Could not submit fetch for {topic}")
                raise
            future.add_done_callback(partial(self._post_completion, task, query))
            return True

    def _post_completion(self, task: Task, query: Query, future: Future) -> None:
        self.completions.put(Completion(task, query, future))

    def handle_completion(self, completion: Completion) -> None:
        """Apply a finished fetch: notify, cache, reschedule and requeue."""
        task, query = completion.task, completion.query
        with self.lock:
            task.in_flight = False
            pending = self.registry.decrement_pending_count()
            try:
                document = completion.future.result()
            except Exception as e:  # noqa: BLE001
                logger.warning(f"[{self.name.upper()}]: Fetch failed for {query.topic}: {e}")
                document = None

            if document is None:
                logger.info(f"[{self.name.upper()}]: Not found: {pending} : {query.topic}")
                self._handle_absent(task)
                return

            logger.info(f"[{self.name.upper()}]: Received: {pending} : {query.topic}")
            task.absent_count = 0
            for subscriber in self.registry.get_subscribers(task.topic):
                self._notify(subscriber, document, query)

            task.latest_result = document
            if document.has_entries():
                entry_id = document.latest_entry_id()
                if entry_id:
                    task.latest_entry_id = entry_id
                task.latest_entry_timestamp = parse_timestamp(document.latest_entry_updated())

            update = reschedule(task, document, self.clock())
            task.no_fetch_before = update.no_fetch_before
            task.last_update_time = update.last_update_time
            task.last_fetched_time = update.last_fetched_time
            self.queue.insert(task)

    def _handle_absent(self, task: Task) -> None:
        task.absent_count += 1
        retry_at = compute_absent_retry(
            task.absent_count, self.clock(), self.absent_retry_base_ms, self.absent_retry_limit,
        )
        if retry_at is None:
            logger.warning(
                f"[{self.name.upper()}]: {task.absent_count} absent fetches for {task.topic}, "
                f"leaving it unscheduled until resubscribed or changed locally",
            )
            return
        task.no_fetch_before = retry_at
        self.queue.insert(task)

    def process_completions(self) -> int:
        """Apply every completion waiting in the queue, return how many were applied."""
        applied = 0
        while True:
            try:
                completion = self.completions.get_nowait()
            except Empty:
                return applied
            try:
                if completion is not None:
                    self.handle_completion(completion)
                    applied += 1
            finally:
                self.completions.task_done()

    def _notify(self, subscriber: Subscriber, document: Document, query: Query) -> None:
        try:
            subscriber.notify(document, query)
        except Exception:  # noqa: BLE001
            logger.exception(f"[{self.name.upper()}]: Subscriber {subscriber} failed on {query.topic}")

    # ------ TICK -------
    def tick(self, now: int | None = None) -> bool:
        """
        Start at most one fetch for an eligible task.

        Does nothing at the concurrency ceiling. Tasks cleaned up because nobody
        subscribes to them any more do not count, the scan moves on past them.
        Returns True if a fetch was started.
        """
        with self.lock:
            if self.registry.get_pending_count() >= self.concurrency_ceiling:
                return False
            now = self.clock() if now is None else now
            for task in self.queue.drain_eligible(now):
                if self.dispatch(task):
                    return True
            return False

    # ------ REPRIORITIZE -------
    def on_local_change(self, resource_id: str) -> list[Task]:
        """
        Fetch tasks about resource_id as soon as possible.

        resource_id may be the bare feed id or a namespaced form such as
        'urn:feed:<id>' or 'urn:feed:<id>:<entry id>'. Matching tasks move ahead of
        all others, tasks that were left unscheduled after absent fetches are queued
        again.
        """
        changed_feed_id = feed_id_from_resource(resource_id)

        def matches(task: Task) -> bool:
            return task.feed_id == changed_feed_id

        with self.lock:
            now = self.clock()
            for task in self.registry.get_tasks():
                if matches(task) and not task.in_flight and task not in self.queue:
                    self.queue.insert(task)
            promoted = self.queue.promote(matches)
            for task in promoted:
                task.last_update_time = now
        if promoted:
            logger.info(f"[{self.name.upper()}]: Local change to {resource_id}, promoted {len(promoted)} task(s)")
        return promoted

    # ------ LIFECYCLE -------
    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        """Resume polling. No-op if already running."""
        with self.lock:
            if self.is_running:
                return
            self._worker = DispatchWorker(
                self, tick_seconds=self.tick_seconds, name=f"{self.name} Dispatch Worker",
            )
            self._worker.start()
        logger.info(f"[{self.name.upper()}]: Started, ticking every {self.tick_seconds}s")

    def stop(self, timeout: float = 5.0) -> None:
        """Pause polling. No-op if not running. In-flight fetches still complete."""
        with self.lock:
            worker = self._worker
            self._worker = None
        if worker is None or not worker.is_alive():
            return
        self.completions.put(None)
        worker.join(timeout=timeout)
        if worker.is_alive():
            logger.warning(f"THREAD {worker.name} FAILED SHUTDOWN")
        logger.info(f"[{self.name.upper()}]: Stopped")

    def close(self) -> None:
        """Stop, wait for outstanding fetches and apply their results."""
        self.stop()
        if self._owns_executor:
            self.executor.shutdown(wait=True)
        self.process_completions()

    def __enter__(self) -> "Pollster":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        """Represent Pollster as string."""
        return f"Pollster(name={self.name}, running={self.is_running}, {self.registry!r}, queue={len(self.queue)})"
