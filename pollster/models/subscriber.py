"""Subscriber interface and a callable adapter."""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from pollster.models.document import Document
from pollster.models.query import Query


@runtime_checkable
class Subscriber(Protocol):
    """Receives every successfully fetched document for the queries it subscribed to."""

    def notify(self, document: Document, query: Query) -> None:
        """Handle a document fetched for query."""
        ...


class CallbackSubscriber:
    """Wrap a plain function so it can be subscribed."""

    def __init__(self, callback: Callable[[Document, Query], None], name: str | None = None) -> None:
        """Initialize CallbackSubscriber."""
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "callback")

    def notify(self, document: Document, query: Query) -> None:
        self.callback(document, query)

    def __repr__(self) -> str:
        """Represent CallbackSubscriber as string."""
        return f"CallbackSubscriber(name={self.name})"
