"""
Schema-conformant row materialization.

Every record text becomes exactly one ``Row``. Records that are not JSON
objects, or nest too deeply to convert, are never dropped: their raw
text goes to the corrupt record column.
"""

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from httpjson.common.metrics import corrupt_records_total
from httpjson.config.settings import get_settings
from httpjson.ingest.field_types import ArrayType, FieldType, JsonType, StructType
from httpjson.ingest.schema_inference import LONG_MAX, LONG_MIN, nesting_depth

logger = logging.getLogger(__name__)


class Row(tuple):
    """
    Tuple of values positionally aligned to a schema.

    Compares equal to a plain tuple with the same values; field names are
    available through ``names``, ``get`` and ``as_dict``.
    """

    def __new__(cls, values: Iterable[Any], names: Sequence[str]):
        row = super().__new__(cls, values)
        row._names = tuple(names)
        return row

    def __reduce__(self):
        return (Row, (tuple(self), self._names))

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[self._names.index(name)]
        except ValueError:
            return default

    def as_dict(self, recursive: bool = True) -> Dict[str, Any]:
        """Convert to a dict, nested rows included when ``recursive``."""
        if not recursive:
            return dict(zip(self._names, self))
        return {name: _unwrap(value) for name, value in zip(self._names, self)}

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in zip(self._names, self))
        return f"Row({fields})"


def _unwrap(value: Any) -> Any:
    if isinstance(value, Row):
        return value.as_dict()
    if isinstance(value, list):
        return [_unwrap(item) for item in value]
    return value


def _as_text(value: Any) -> str:
    """String form used when a value does not fit its declared type."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def convert_value(value: Any, data_type: FieldType) -> Any:
    """
    Coerce a parsed JSON value to ``data_type``.

    Absent values stay None; values that do not fit fall back to their
    String form instead of failing.
    """
    if value is None:
        return None

    if isinstance(data_type, StructType):
        if isinstance(value, dict):
            return convert_object(value, data_type)
        return _as_text(value)

    if isinstance(data_type, ArrayType):
        if isinstance(value, list):
            return [convert_value(item, data_type.element_type) for item in value]
        return _as_text(value)

    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)

    if data_type is JsonType.STRING:
        return _as_text(value)
    elif data_type is JsonType.BOOLEAN and isinstance(value, bool):
        return value
    elif data_type is JsonType.LONG and is_number and isinstance(value, int):
        if LONG_MIN <= value <= LONG_MAX:
            return value
    elif data_type is JsonType.DOUBLE and is_number:
        try:
            return float(value)
        except OverflowError:
            pass

    return _as_text(value)


def convert_object(obj: Dict[str, Any], schema: StructType) -> Row:
    """Row for a JSON object; fields missing from ``obj`` are None."""
    return Row(
        (convert_value(obj.get(f.name), f.data_type) for f in schema.fields),
        schema.names,
    )


class RowParser:
    """Parses record texts into rows of a fixed schema."""

    def __init__(self, schema: StructType, corrupt_column: Optional[str] = None):
        self.schema = schema
        settings = get_settings()
        self.corrupt_column = corrupt_column or settings.corrupt_record_column
        self.max_depth = settings.max_nesting_depth
        self._corrupt_index = (
            schema.field_index(self.corrupt_column)
            if self.corrupt_column in schema
            else None
        )

    def corrupt_row(self, text: str) -> Row:
        values: List[Any] = [None] * len(self.schema)
        corrupt_records_total.labels(stage="parse").inc()

        if self._corrupt_index is None:
            logger.warning(
                f"Malformed record has no `{self.corrupt_column}` column to land in, "
                f"emitting an all-null row: {text[:100]!r}"
            )
        else:
            values[self._corrupt_index] = text
        return Row(values, self.schema.names)

    def parse(self, text: str) -> Row:
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError, RecursionError):
            return self.corrupt_row(text)

        if not isinstance(parsed, dict) or nesting_depth(parsed) > self.max_depth:
            return self.corrupt_row(text)
        return convert_object(parsed, self.schema)

    def parse_all(self, records: Iterable[str]) -> Iterator[Row]:
        for text in records:
            yield self.parse(text)


def parse_all(
    records: Iterable[str],
    schema: StructType,
    corrupt_column: Optional[str] = None,
) -> Iterator[Row]:
    """
    Lazily convert every record to a row of ``schema``, in input order.

    Args:
        records: Record texts (the full record set, not the sample)
        schema: Resolved schema
        corrupt_column: Column receiving the raw text of malformed records

    Yields:
        One Row per record
    """
    return RowParser(schema, corrupt_column).parse_all(records)
