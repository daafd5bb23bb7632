"""
JSON Schema Inference.

Derives one tabular schema from a collection of JSON record texts by
typing every sampled record and merging the per-record struct types.
"""

import json
import logging
import random
from functools import reduce
from typing import Any, Iterable, List, Optional, Sequence

from httpjson.common.metrics import corrupt_records_total, track_operation
from httpjson.config.settings import get_settings
from httpjson.ingest.field_types import (
    ArrayType,
    FieldType,
    JsonType,
    StructField,
    StructType,
    merge_types,
    validate_unique_names,
)

logger = logging.getLogger(__name__)

LONG_MIN = -(2 ** 63)
LONG_MAX = 2 ** 63 - 1


def infer_field_type(value: Any) -> FieldType:
    """
    Narrowest field type for a parsed JSON value.

    Args:
        value: Output of ``json.loads``

    Returns:
        Primitive type, ``ArrayType`` or ``StructType``
    """
    if value is None:
        return JsonType.NULL
    elif isinstance(value, bool):
        return JsonType.BOOLEAN
    elif isinstance(value, int):
        # Out-of-range integers do not fit a long column
        return JsonType.LONG if LONG_MIN <= value <= LONG_MAX else JsonType.DOUBLE
    elif isinstance(value, float):
        return JsonType.DOUBLE
    elif isinstance(value, str):
        return JsonType.STRING
    elif isinstance(value, list):
        element_types = (infer_field_type(item) for item in value)
        return ArrayType(reduce(merge_types, element_types, JsonType.NULL))
    elif isinstance(value, dict):
        return StructType(
            StructField(name, infer_field_type(item), True)
            for name, item in value.items()
        )
    else:
        return JsonType.STRING  # Fallback


def nesting_depth(value: Any) -> int:
    """
    Deepest container nesting in a parsed JSON value (scalars are 0).

    Walks with an explicit stack so arbitrarily deep input is safe.
    """
    depth = 0
    stack = [(value, 1)]
    while stack:
        item, level = stack.pop()
        if isinstance(item, dict):
            children: Iterable[Any] = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        depth = max(depth, level)
        stack.extend((child, level + 1) for child in children)
    return depth


def sample_records(records: Sequence[str], sampling_ratio: float, seed: int) -> List[str]:
    """
    Deterministic Bernoulli sample of ``records``.

    The same ratio, seed and record order always select the same records.
    A non-empty input never yields an empty sample.
    """
    if not 0.0 < sampling_ratio <= 1.0:
        raise ValueError(f"sampling_ratio must be in (0, 1], got {sampling_ratio}")
    if sampling_ratio >= 1.0:
        return list(records)

    rng = random.Random(seed)
    sample = [record for record in records if rng.random() < sampling_ratio]
    if not sample and records:
        sample = [records[0]]
    return sample


class JsonSchemaInferencer:
    """
    Accumulates the merged struct type of observed records.

    Records that are not valid JSON objects, or nest deeper than
    ``max_nesting_depth``, contribute no type information; they only
    force the corrupt record column into the resulting schema.
    """

    def __init__(
        self,
        sampling_ratio: float = 1.0,
        corrupt_column: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize inferencer.

        Args:
            sampling_ratio: Fraction of records to analyze, in (0, 1]
            corrupt_column: Column receiving unparseable records
            seed: Sampling seed (settings default when omitted)
        """
        settings = get_settings()

        self.sampling_ratio = sampling_ratio
        self.corrupt_column = corrupt_column or settings.corrupt_record_column
        self.seed = settings.sampling_seed if seed is None else seed
        self.max_depth = settings.max_nesting_depth
        self.documents_analyzed = 0
        self.corrupt_count = 0
        self._merged: FieldType = StructType()

    def analyze_record(self, text: str) -> None:
        """Merge the type of one record text into the running schema."""
        self.documents_analyzed += 1

        try:
            parsed = json.loads(text)
        except (TypeError, ValueError, RecursionError):
            parsed = None

        if isinstance(parsed, dict) and nesting_depth(parsed) <= self.max_depth:
            self._merged = merge_types(self._merged, infer_field_type(parsed))
            return

        self.corrupt_count += 1
        corrupt_records_total.labels(stage="inference").inc()

    def analyze_batch(self, records: Sequence[str]) -> None:
        """Sample ``records`` and analyze every selected record."""
        for text in sample_records(records, self.sampling_ratio, self.seed):
            self.analyze_record(text)

    def get_schema(self) -> StructType:
        """
        Final schema: inferred columns in first-seen order, then the
        corrupt record column if any analyzed record was corrupt.

        Raises:
            DuplicateColumnError: If the corrupt column collides with an
                inferred column
        """
        schema = self._merged if isinstance(self._merged, StructType) else StructType()
        if self.corrupt_count:
            schema = schema.add(self.corrupt_column, JsonType.STRING, True)
        validate_unique_names(schema)
        return schema


@track_operation("infer")
def infer_schema(
    records: Iterable[str],
    sampling_ratio: float = 1.0,
    corrupt_column: Optional[str] = None,
    seed: Optional[int] = None,
) -> StructType:
    """
    Infer a schema for ``records``.

    Args:
        records: Record texts
        sampling_ratio: Fraction of records to analyze, in (0, 1]
        corrupt_column: Column receiving unparseable records
        seed: Sampling seed

    Returns:
        Unified schema

    Raises:
        DuplicateColumnError: On a name collision in the result
    """
    inferencer = JsonSchemaInferencer(sampling_ratio, corrupt_column, seed)
    inferencer.analyze_batch(list(records))
    schema = inferencer.get_schema()

    logger.info(
        f"Inferred schema from {inferencer.documents_analyzed} record(s) "
        f"({inferencer.corrupt_count} corrupt): {schema}"
    )
    return schema
