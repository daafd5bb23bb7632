"""Fatal error kinds raised by the ingestion pipeline."""

from typing import Iterable, Optional, Tuple


class HttpJsonError(Exception):
    """Base class for errors that abort schema resolution or a scan."""
    pass


class FetchExhausted(HttpJsonError):
    """Raised when every allowed fetch attempt failed."""

    def __init__(self, url: str, attempts: int, last_error: Optional[str] = None):
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        message = f"Failed to fetch {url} after {attempts} attempt(s)"
        if last_error:
            message += f": {last_error}"
        super().__init__(message)


class ExtractionError(HttpJsonError):
    """Raised when the document or the path query yields nothing usable."""

    def __init__(self, message: str, query: Optional[str] = None):
        self.query = query
        if query is not None:
            message = f"{message} (query: {query!r})"
        super().__init__(message)


class DuplicateColumnError(HttpJsonError):
    """Raised when a schema carries the same field name more than once."""

    def __init__(self, names: Iterable[str]):
        self.names: Tuple[str, ...] = tuple(names)
        super().__init__(
            "Found duplicate column(s) in the schema: "
            + ", ".join(f"`{name}`" for name in self.names)
        )
