"""
HTTP fetcher with a bounded number of immediate retries.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx
from tenacity import RetryError

from httpjson.common.metrics import (
    fetch_attempts_total,
    fetch_exhausted_total,
    track_operation,
)
from httpjson.common.resilience import bounded_retry
from httpjson.config.settings import get_settings
from httpjson.ingest.errors import FetchExhausted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchRequest:
    """Target URL and the total number of attempts allowed."""
    url: str
    max_attempts: int = field(default_factory=lambda: get_settings().default_try_times)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")


class FetchAttemptError(Exception):
    """A single failed attempt (non-200 status or transport error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class HttpFetcher:
    """
    Performs GET requests until one returns HTTP 200.

    A client may be injected (tests use ``httpx.MockTransport``); otherwise
    a fresh ``httpx.Client`` with default transport settings is opened per
    fetch and closed afterwards.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        follow_redirects: Optional[bool] = None,
    ):
        self._client = client
        if follow_redirects is None:
            follow_redirects = get_settings().follow_redirects
        self.follow_redirects = follow_redirects

    @track_operation("fetch")
    def fetch(self, request: FetchRequest) -> str:
        """
        Fetch the response body of ``request.url``.

        Args:
            request: URL and attempt bound

        Returns:
            Decoded response body of the first attempt answered with 200

        Raises:
            FetchExhausted: If all ``request.max_attempts`` attempts failed
        """
        retrying = bounded_retry(request.max_attempts, retry_on=(FetchAttemptError,))

        try:
            if self._client is not None:
                return retrying(self._attempt, self._client, request)
            with httpx.Client() as client:
                return retrying(self._attempt, client, request)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            fetch_exhausted_total.inc()
            logger.error(
                f"Giving up on {request.url} after {request.max_attempts} attempt(s): {last_error}"
            )
            raise FetchExhausted(
                request.url, request.max_attempts, str(last_error)
            ) from last_error

    def _attempt(self, client: httpx.Client, request: FetchRequest) -> str:
        try:
            response = client.get(request.url, follow_redirects=self.follow_redirects)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            fetch_attempts_total.labels(outcome="transport_error").inc()
            raise FetchAttemptError(f"{type(e).__name__}: {e}") from e

        if response.status_code != 200:
            fetch_attempts_total.labels(outcome="http_error").inc()
            raise FetchAttemptError(
                f"HTTP {response.status_code} from {request.url}",
                status_code=response.status_code,
            )

        fetch_attempts_total.labels(outcome="success").inc()
        logger.debug(f"Fetched {len(response.content)} bytes from {request.url}")
        return response.text
