"""Control thread of the scheduler: applies fetch completions and runs the tick."""

import time
from typing import TYPE_CHECKING

from pollster.workers.base_worker import BaseWorker

if TYPE_CHECKING:
    from pollster.scheduler.pollster import Completion, Pollster


class DispatchWorker(BaseWorker):
    """Consume the pollster's completion queue and call tick() every tick_seconds."""

    def __init__(self, pollster: "Pollster", *, tick_seconds: float,
                 name: str = "Dispatch Worker") -> None:
        """Initialize the dispatch worker."""
        super().__init__(pollster.completions, name=name)
        self.pollster = pollster
        self.tick_seconds = tick_seconds
        self.next_tick = time.monotonic() + tick_seconds

    def get_timeout(self) -> float:
        return max(0.0, self.next_tick - time.monotonic())

    def process(self, item: "Completion") -> None:
        self.pollster.handle_completion(item)

    def on_cycle(self) -> None:
        now = time.monotonic()
        if now < self.next_tick:
            return
        # skip missed ticks rather than bursting to catch up
        while self.next_tick <= now:
            self.next_tick += self.tick_seconds
        self.pollster.tick()
