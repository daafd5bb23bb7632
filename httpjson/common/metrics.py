"""
Prometheus metrics for monitoring source invocations.

Provides counters and histograms for tracking:
- Fetch attempts and their outcome
- Extracted and corrupt records
- Schema inference and scan duration
"""

import time
from functools import wraps
from typing import Callable

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CollectorRegistry,
)

REGISTRY = CollectorRegistry()

# ========== Counters ==========

fetch_attempts_total = Counter(
    "httpjson_fetch_attempts_total",
    "Total number of HTTP fetch attempts",
    ["outcome"],  # success/http_error/transport_error
    registry=REGISTRY,
)

fetch_exhausted_total = Counter(
    "httpjson_fetch_exhausted_total",
    "Fetches that failed after every allowed attempt",
    registry=REGISTRY,
)

records_extracted_total = Counter(
    "httpjson_records_extracted_total",
    "Records produced by path query extraction",
    registry=REGISTRY,
)

corrupt_records_total = Counter(
    "httpjson_corrupt_records_total",
    "Records routed to the corrupt record column",
    ["stage"],  # inference/parse
    registry=REGISTRY,
)

# ========== Histograms ==========

operation_duration_seconds = Histogram(
    "httpjson_operation_duration_seconds",
    "Duration of pipeline operations",
    ["operation"],  # fetch/extract/infer
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_operation(operation: str):
    """
    Decorator to record the duration of a pipeline operation.

    Args:
        operation: Operation label (fetch/extract/infer)
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                operation_duration_seconds.labels(
                    operation=operation).observe(time.time() - start_time)

        return wrapper
    return decorator


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics as bytes
    """
    return generate_latest(REGISTRY)

