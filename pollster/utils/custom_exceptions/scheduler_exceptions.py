"""Custom exceptions for the feed scheduler."""


class FeedFetchError(ConnectionError):
    """Exception raised when a feed could not be fetched from its source."""

    def __init__(self, message: str | None = None) -> None:
        """Initialize the exception."""
        default_msg = "Error when attempting to fetch feed."
        super().__init__(message or default_msg)


class SchedulerStateError(RuntimeError):
    """Exception raised when scheduler bookkeeping is found inconsistent."""

    def __init__(self, message: str | None = None) -> None:
        """Initialize the exception."""
        default_msg = "Scheduler state is inconsistent."
        super().__init__(message or default_msg)
