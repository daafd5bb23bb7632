"""
Retry strategy for remote calls.

Attempts are sequential and immediate; the caller decides which
exceptions count as a failed attempt.
"""

import logging
from typing import Tuple, Type

from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_none,
    retry_if_exception_type,
    before_sleep_log,
    after_log,
)

logger = logging.getLogger(__name__)


def bounded_retry(
    max_attempts: int,
    retry_on: Tuple[Type[BaseException], ...] = (ConnectionError, TimeoutError),
) -> Retrying:
    """
    Build a retry controller with a hard attempt bound and no backoff.

    Exhaustion raises ``tenacity.RetryError`` wrapping the last attempt.

    Args:
        max_attempts: Total number of attempts (>= 1)
        retry_on: Exception types that count as a failed attempt

    Returns:
        Configured ``tenacity.Retrying``; call it with the function to run
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_none(),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=False,
    )
