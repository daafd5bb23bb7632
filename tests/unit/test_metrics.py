"""
Unit tests for Prometheus metrics.
"""

import pytest

from httpjson.common.metrics import (
    REGISTRY,
    corrupt_records_total,
    fetch_attempts_total,
    get_metrics,
    operation_duration_seconds,
    records_extracted_total,
    track_operation,
)


def sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsCounters:
    """Tests for Prometheus counter metrics."""

    def test_fetch_attempts_total_increments(self):
        initial = sample("httpjson_fetch_attempts_total", {"outcome": "success"})

        fetch_attempts_total.labels(outcome="success").inc()

        assert sample("httpjson_fetch_attempts_total", {"outcome": "success"}) == initial + 1

    def test_records_extracted_total_increments(self):
        initial = sample("httpjson_records_extracted_total")

        records_extracted_total.inc(5)

        assert sample("httpjson_records_extracted_total") == initial + 5

    def test_corrupt_records_total_by_stage(self):
        initial = sample("httpjson_corrupt_records_total", {"stage": "parse"})

        corrupt_records_total.labels(stage="parse").inc()

        assert sample("httpjson_corrupt_records_total", {"stage": "parse"}) == initial + 1


class TestTrackOperation:
    """Tests for the duration decorator."""

    def test_observes_success(self):
        @track_operation("unit_ok")
        def work(x):
            return x * 2

        before = sample("httpjson_operation_duration_seconds_count", {"operation": "unit_ok"})
        assert work(21) == 42
        assert sample("httpjson_operation_duration_seconds_count", {"operation": "unit_ok"}) == before + 1

    def test_observes_failure(self):
        @track_operation("unit_fail")
        def work():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            work()
        assert sample("httpjson_operation_duration_seconds_count", {"operation": "unit_fail"}) == 1

    def test_histogram_is_registered(self):
        operation_duration_seconds.labels(operation="unit_direct").observe(0.2)
        assert sample("httpjson_operation_duration_seconds_sum", {"operation": "unit_direct"}) >= 0.2


class TestMetricsExport:
    """Tests for the exposition helpers."""

    def test_get_metrics_returns_text_format(self):
        fetch_attempts_total.labels(outcome="http_error").inc()
        output = get_metrics()

        assert isinstance(output, bytes)
        assert b"httpjson_fetch_attempts_total" in output
