"""
HTTP JSON relation.

Coordinates one source invocation: fetch -> extract -> infer (or reuse a
declared schema) -> parse rows. The record set and the schema are each
computed at most once per relation instance.
"""

import logging
import uuid
from typing import Any, Iterator, Mapping, Optional

from httpjson.common.logging_config import PerformanceTracker, invocation_scope
from httpjson.ingest.extractor import RecordSet, extract
from httpjson.ingest.fetcher import FetchRequest, HttpFetcher
from httpjson.ingest.field_types import StructType, validate_unique_names
from httpjson.ingest.options import SourceOptions
from httpjson.ingest.row_parser import Row, parse_all
from httpjson.ingest.schema_inference import infer_schema

logger = logging.getLogger(__name__)


class ScanResult:
    """
    Rows of one scan.

    Iterating parses the memoized record set again, so the result can be
    traversed any number of times without touching the network.
    """

    def __init__(self, records: RecordSet, schema: StructType, corrupt_column: str):
        self.records = records
        self.schema = schema
        self.corrupt_column = corrupt_column

    def __iter__(self) -> Iterator[Row]:
        return parse_all(self.records, self.schema, self.corrupt_column)

    def __len__(self) -> int:
        return len(self.records)


class HttpJsonRelation:
    """
    Table view over the records selected from a JSON document.

    Two relations are equal when they share source name, URL and resolved
    schema (in column order).
    """

    source_name = "httpjson"

    def __init__(self, options: SourceOptions, fetcher: Optional[HttpFetcher] = None):
        self.options = options
        self.fetcher = fetcher or HttpFetcher()
        self.invocation_id = uuid.uuid4().hex
        self._records: Optional[RecordSet] = None
        self._schema: Optional[StructType] = None

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        fetcher: Optional[HttpFetcher] = None,
    ) -> "HttpJsonRelation":
        return cls(SourceOptions.from_options(options), fetcher)

    @property
    def url(self) -> str:
        return self.options.url

    def records(self) -> RecordSet:
        """Fetch and extract the record set on first use."""
        if self._records is None:
            with invocation_scope(self.invocation_id):
                request = FetchRequest(self.options.url, self.options.try_times)
                with PerformanceTracker("fetch", logger, url=request.url):
                    document = self.fetcher.fetch(request)
                self._records = extract(document, self.options.path_query)
        return self._records

    def resolve_schema(self) -> StructType:
        """
        Declared schema (validated, returned unchanged) or the inferred one.

        Raises:
            FetchExhausted, ExtractionError: While loading records for inference
            DuplicateColumnError: If the schema repeats a column name
        """
        if self._schema is not None:
            return self._schema

        with invocation_scope(self.invocation_id):
            declared = self.options.declared_schema
            if declared is not None:
                validate_unique_names(declared)
                self._schema = declared
            else:
                records = self.records()
                with PerformanceTracker("infer_schema", logger, records=len(records)):
                    self._schema = infer_schema(
                        records,
                        sampling_ratio=self.options.sampling_ratio,
                        corrupt_column=self.options.corrupt_column,
                    )
        return self._schema

    def scan(self) -> ScanResult:
        """
        Rows for every record, in input order.

        All fatal errors are raised here, before any row is produced.
        """
        schema = self.resolve_schema()
        records = self.records()
        logger.debug(
            f"Scanning {len(records)} record(s) of {self.url}",
            extra={"extra_fields": {"invocation_id": self.invocation_id}},
        )
        return ScanResult(records, schema, self.options.corrupt_column)

    def _identity(self):
        return (self.source_name, self.url, self.resolve_schema().to_json())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HttpJsonRelation):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return f"HttpJsonRelation(url={self.url!r}, path_query={self.options.path_query!r})"
