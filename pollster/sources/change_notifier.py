"""In-process producer of "this feed changed locally" signals."""

import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from pollster.utils.logger import logger

type ChangeCallback = Callable[[str], None]


@runtime_checkable
class ChangeProducer(Protocol):
    """Anything that can report local changes to a resource id."""

    def subscribe(self, callback: ChangeCallback) -> None:
        ...


class ChangeNotifier:
    """Fan out resource ids to registered callbacks, e.g. after a local write."""

    def __init__(self) -> None:
        """Initialize ChangeNotifier."""
        self._callbacks: list[ChangeCallback] = []
        self.lock = threading.Lock()

    def subscribe(self, callback: ChangeCallback) -> None:
        with self.lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        with self.lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def publish(self, resource_id: str) -> None:
        """Tell every callback that resource_id (bare id or urn form) changed."""
        with self.lock:
            callbacks = list(self._callbacks)
        logger.info(f"[CHANGE_NOTIFIER]: Local change for {resource_id}")
        for callback in callbacks:
            try:
                callback(resource_id)
            except Exception:  # noqa: BLE001
                logger.exception(f"[CHANGE_NOTIFIER]: Callback {callback} failed for {resource_id}")
