"""Interface to whatever fetches and parses feeds."""

from typing import Protocol, runtime_checkable

from pollster.models.document import Document
from pollster.models.query import Query


@runtime_checkable
class FeedSource(Protocol):
    """
    Fetches the document for a query.

    Called from fetch threads, up to the concurrency ceiling at once. Returns None
    when the feed is not found. Must not reschedule anything itself.
    """

    def pull(self, query: Query) -> Document | None:
        ...
