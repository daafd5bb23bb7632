"""
httpjson: tabular rows from a JSON document served over HTTP.

Fetch with bounded retries, select records with a path query, infer a
schema and materialize schema-conformant rows.
"""

from httpjson.ingest import (
    HttpJsonRelation,
    HttpJsonError,
    FetchExhausted,
    ExtractionError,
    DuplicateColumnError,
    SourceOptions,
)

__version__ = "0.1.0"

__all__ = [
    "HttpJsonRelation",
    "HttpJsonError",
    "FetchExhausted",
    "ExtractionError",
    "DuplicateColumnError",
    "SourceOptions",
    "__version__",
]
