"""Application exception classes."""


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class FeedError(Exception):
    """Raised when the station feed cannot be retrieved or has the wrong shape."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.status_code = status_code


class StoreError(Exception):
    """Raised when the persisted key-value store cannot be read or written."""


class JournalError(Exception):
    """Raised when writing to journal files fails."""
