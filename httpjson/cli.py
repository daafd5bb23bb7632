"""
Command line preview of an HTTP JSON source.

Prints the resolved schema as JSON, then one JSON line per row.

    httpjson https://example.org/api/items --xpath '$.data.items' --limit 10
"""

import argparse
import json
import sys
from typing import List, Optional

from pydantic import ValidationError

from httpjson.common.logging_config import setup_logging
from httpjson.common.metrics import get_metrics
from httpjson.config.settings import get_settings
from httpjson.ingest.errors import HttpJsonError
from httpjson.ingest.fetcher import HttpFetcher
from httpjson.ingest.relation import HttpJsonRelation


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="httpjson",
        description="Fetch a JSON document, infer its schema and print rows.",
    )
    parser.add_argument("url", help="Document URL")
    parser.add_argument("--xpath", default=settings.default_path_query,
                        help="Path query selecting the records (default: %(default)s)")
    parser.add_argument("--sampling-ratio", type=float, default=settings.default_sampling_ratio,
                        help="Fraction of records used for inference (default: %(default)s)")
    parser.add_argument("--try-times", type=int, default=settings.default_try_times,
                        help="Total fetch attempts (default: %(default)s)")
    parser.add_argument("--schema", dest="schema_json", default=None,
                        help="Declared schema as JSON, disables inference")
    parser.add_argument("--corrupt-column", default=settings.corrupt_record_column,
                        help="Column for malformed records (default: %(default)s)")
    parser.add_argument("--schema-only", action="store_true",
                        help="Print the schema and exit")
    parser.add_argument("--limit", type=int, default=None,
                        help="Print at most this many rows")
    parser.add_argument("--metrics", action="store_true",
                        help="Dump Prometheus metrics to stderr when done")
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


def main(argv: Optional[List[str]] = None, fetcher: Optional[HttpFetcher] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_format=get_settings().log_json)

    options = {
        "url": args.url,
        "xPath": args.xpath,
        "samplingRatio": args.sampling_ratio,
        "tryTimes": args.try_times,
        "schema": args.schema_json,
        "columnNameOfCorruptRecord": args.corrupt_column,
    }

    try:
        relation = HttpJsonRelation.from_options(options, fetcher)
        schema = relation.resolve_schema()
        print(schema.to_json())

        if not args.schema_only:
            for count, row in enumerate(relation.scan()):
                if args.limit is not None and count >= args.limit:
                    break
                print(json.dumps(row.as_dict(), ensure_ascii=False, default=str))
    except (HttpJsonError, ValidationError, ValueError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    finally:
        if args.metrics:
            sys.stderr.write(get_metrics().decode("utf-8"))

    return 0


if __name__ == "__main__":
    sys.exit(main())
