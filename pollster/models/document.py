"""Interface the scheduler needs from a fetched feed document."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Document(Protocol):
    """A parsed feed, newest entry first."""

    def updated(self) -> str | None:
        """Top-level update timestamp text of the feed."""
        ...

    def has_entries(self) -> bool:
        """True if the document carries at least one entry."""
        ...

    def latest_entry_id(self) -> str | None:
        """Id of the most recent entry, usable as an `after` cursor."""
        ...

    def latest_entry_updated(self) -> str | None:
        """Update timestamp text of the most recent entry."""
        ...
