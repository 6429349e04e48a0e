"""Base thread worker class."""

import threading
from queue import Empty, Queue
from typing import Any, Never

from pollster.utils.logger import logger


class BaseWorker(threading.Thread):
    """
    Thread consuming an input queue until it receives None.

    Subclasses implement process(). When get_timeout() returns a number the wait
    for the next item is bounded, and on_cycle() runs after every item or timeout.
    """

    def __init__(
        self,
        input_queue: Queue,
        *,
        isDaemon: bool = True,  # noqa: N803
        name: str = "BaseWorker",
    ) -> None:
        """Initialize the worker."""
        super().__init__(name=name, daemon=isDaemon)
        self.input_queue = input_queue

    def get_timeout(self) -> float | None:
        """Seconds to wait for the next item, None to block."""
        return None

    def fetch_next(self) -> Any:
        """Fetch the next item from the input queue, raises Empty on timeout."""
        item = self.input_queue.get(timeout=self.get_timeout())
        if item is None:
            self.input_queue.task_done()
            return None
        return item

    def mark_done(self) -> None:
        """Mark the input queue as task done."""
        self.input_queue.task_done()

    def run(self) -> None:
        """Run the worker."""
        logger.info(f"[{self.name.upper()}]: Entering run loop")
        while True:
            try:
                item = self.fetch_next()
            except Empty:
                self._run_cycle()
                continue
            if item is None:
                break
            try:
                self.process(item)
            except Exception as e:  # noqa: BLE001
                logger.warning(f"[{self.name.upper()}]: Exception while processing item: {item}\t: {e}")
                self.handle_error(item)
            finally:
                self.mark_done()
            self._run_cycle()
        logger.info(f"[{self.name.upper()}]: Leaving run loop")

    def _run_cycle(self) -> None:
        try:
            self.on_cycle()
        except Exception:  # noqa: BLE001
            logger.exception(f"[{self.name.upper()}]: Exception in cycle")

    def on_cycle(self) -> None:
        """Hook run after each item or timeout."""

    def process(self, item: Any) -> Never:
        """Process the item."""
        raise NotImplementedError

    def handle_error(self, item: Any) -> None:
        """Handle an error."""
        logger.exception(f"[{self.name.upper()}]: Exception while processing item: {item}\t")
