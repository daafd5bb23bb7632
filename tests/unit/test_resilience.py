"""
Unit tests for the bounded retry controller.
"""

import pytest
from unittest.mock import Mock
from tenacity import RetryError

from httpjson.common.resilience import bounded_retry


class TestBoundedRetry:
    """Tests for bounded_retry."""

    def test_returns_first_success(self):
        func = Mock(side_effect=[ConnectionError("down"), "ok"])

        assert bounded_retry(3)(func) == "ok"
        assert func.call_count == 2

    def test_stops_after_max_attempts(self):
        func = Mock(side_effect=ConnectionError("down"))

        with pytest.raises(RetryError) as exc_info:
            bounded_retry(4)(func)

        assert func.call_count == 4
        assert exc_info.value.last_attempt.attempt_number == 4
        assert isinstance(exc_info.value.last_attempt.exception(), ConnectionError)

    def test_single_attempt(self):
        func = Mock(side_effect=TimeoutError("slow"))

        with pytest.raises(RetryError):
            bounded_retry(1)(func)
        assert func.call_count == 1

    def test_other_exceptions_are_not_retried(self):
        func = Mock(side_effect=KeyError("nope"))

        with pytest.raises(KeyError):
            bounded_retry(3, retry_on=(ConnectionError,))(func)
        assert func.call_count == 1

    def test_passes_arguments(self):
        func = Mock(return_value=5)

        assert bounded_retry(2)(func, 1, key="v") == 5
        func.assert_called_once_with(1, key="v")

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            bounded_retry(0)
