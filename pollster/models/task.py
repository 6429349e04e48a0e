"""Scheduling state for one active topic."""

from dataclasses import dataclass, field

from pollster.models.document import Document
from pollster.models.query import Query


@dataclass(eq=False)
class Task:
    """
    Mutable scheduling state, one per distinct active topic.

    All times are epoch milliseconds. `last_fetched_time == 0` means never fetched.
    Compared by identity; the topic is the lookup key.
    """

    query: Query
    last_update_time: int = 0
    last_fetched_time: int = 0
    no_fetch_before: int = 0
    latest_result: Document | None = None
    latest_entry_id: str | None = None
    latest_entry_timestamp: int | None = None
    in_flight: bool = False
    absent_count: int = 0
    topic: str = field(init=False)

    def __post_init__(self) -> None:
        self.topic = self.query.topic

    @property
    def feed_id(self) -> str:
        return self.query.feed_id

    def is_first_fetch(self) -> bool:
        """True until a fetch for this task has completed with a result."""
        return self.last_fetched_time == 0

    def __repr__(self) -> str:
        """Represent Task as string."""
        return (
            f"Task(topic={self.topic}, no_fetch_before={self.no_fetch_before}, "
            f"last_fetched={self.last_fetched_time}, last_update={self.last_update_time}, "
            f"cursor={self.latest_entry_id}, in_flight={self.in_flight}, "
            f"absent_count={self.absent_count})"
        )
