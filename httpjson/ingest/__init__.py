"""
Ingest module for HTTP JSON sources.

Provides fetching, record extraction, schema inference and row parsing,
coordinated by ``HttpJsonRelation``.
"""

from httpjson.ingest.errors import (
    HttpJsonError,
    FetchExhausted,
    ExtractionError,
    DuplicateColumnError,
)
from httpjson.ingest.field_types import (
    JsonType,
    ArrayType,
    StructField,
    StructType,
    merge_types,
    validate_unique_names,
)
from httpjson.ingest.fetcher import FetchRequest, HttpFetcher
from httpjson.ingest.extractor import RecordSet, extract
from httpjson.ingest.schema_inference import JsonSchemaInferencer, infer_schema
from httpjson.ingest.row_parser import Row, RowParser, parse_all
from httpjson.ingest.options import SourceOptions
from httpjson.ingest.relation import HttpJsonRelation, ScanResult

__all__ = [  # ruff: noqa: RUF022
    # Errors
    "HttpJsonError",
    "FetchExhausted",
    "ExtractionError",
    "DuplicateColumnError",
    # Types
    "JsonType",
    "ArrayType",
    "StructField",
    "StructType",
    "merge_types",
    "validate_unique_names",
    # Fetch & extract
    "FetchRequest",
    "HttpFetcher",
    "RecordSet",
    "extract",
    # Inference & parsing
    "JsonSchemaInferencer",
    "infer_schema",
    "Row",
    "RowParser",
    "parse_all",
    # Coordination
    "SourceOptions",
    "HttpJsonRelation",
    "ScanResult",
]
