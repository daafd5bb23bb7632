"""
Record extraction: parse the fetched document and select records with a
path query.
"""

import json
import logging
from typing import Any, Tuple

from httpjson.common.metrics import records_extracted_total, track_operation
from httpjson.ingest.errors import ExtractionError
from httpjson.ingest.path_query import PathQueryError, evaluate

logger = logging.getLogger(__name__)

# Ordered, immutable record texts shared by inference and row parsing
RecordSet = Tuple[str, ...]


def to_record_text(value: Any) -> str:
    """
    Canonical JSON text of one selected element.

    Key order follows the document. Strings are already record text and
    are passed through unchanged.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


@track_operation("extract")
def extract(document: str, query: str = "$") -> RecordSet:
    """
    Select the records of ``document`` addressed by ``query``.

    An array result is used as-is, a single object becomes a one-element
    record set.

    Args:
        document: Raw JSON text
        query: Path query, ``$`` selects the whole document

    Returns:
        Tuple of record texts in document order

    Raises:
        ExtractionError: Invalid or pathologically nested JSON, a
            malformed/missing query path, or a result that is neither an
            array nor an object
    """
    try:
        parsed = json.loads(document)
    except (TypeError, ValueError) as e:
        raise ExtractionError(f"Document is not valid JSON: {e}", query)
    except RecursionError:
        raise ExtractionError("Document is nested too deeply to parse", query)

    try:
        selected = evaluate(parsed, query)
    except PathQueryError as e:
        raise ExtractionError(str(e), query)
    except RecursionError:
        raise ExtractionError("Document is nested too deeply to query", query)

    if isinstance(selected, dict):
        selected = [selected]
    elif not isinstance(selected, list):
        kind = "null" if selected is None else type(selected).__name__
        raise ExtractionError(f"Query result is a {kind}, expected an array or an object", query)

    records = tuple(to_record_text(item) for item in selected)
    records_extracted_total.inc(len(records))
    logger.info(f"Extracted {len(records)} record(s) with query {query!r}")
    return records
