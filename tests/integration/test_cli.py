"""
Integration tests for the command line preview.
"""

import json
import logging

import pytest

from httpjson.cli import main

URL = "http://api.test/feed"

BODY = json.dumps({"items": [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}, "{bad"]})


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def run(argv, fetcher):
    return main(argv + ["--log-level", "WARNING"], fetcher=fetcher)


def test_prints_schema_then_rows(scripted_fetcher, capsys):
    fetcher, _ = scripted_fetcher((200, BODY))

    assert run([URL, "--xpath", "$.items"], fetcher) == 0

    lines = capsys.readouterr().out.splitlines()
    schema = json.loads(lines[0])
    assert [f["name"] for f in schema["fields"]] == ["id", "name", "_corrupt_record"]
    assert [json.loads(line) for line in lines[1:]] == [
        {"id": 1, "name": "a", "_corrupt_record": None},
        {"id": 2, "name": "b", "_corrupt_record": None},
        {"id": None, "name": None, "_corrupt_record": "{bad"},
    ]


def test_schema_only(scripted_fetcher, capsys):
    fetcher, _ = scripted_fetcher((200, BODY))

    assert run([URL, "--xpath", "$.items", "--schema-only"], fetcher) == 0

    assert len(capsys.readouterr().out.splitlines()) == 1


def test_limit(scripted_fetcher, capsys):
    fetcher, _ = scripted_fetcher((200, BODY))

    assert run([URL, "--xpath", "$.items", "--limit", "1"], fetcher) == 0

    assert len(capsys.readouterr().out.splitlines()) == 2


def test_declared_schema(scripted_fetcher, capsys):
    fetcher, _ = scripted_fetcher((200, BODY))
    schema = '{"type":"struct","fields":[{"name":"name","type":"string","nullable":true}]}'

    assert run([URL, "--xpath", "$.items", "--schema", schema, "--limit", "2"], fetcher) == 0

    lines = capsys.readouterr().out.splitlines()
    assert json.loads(lines[0]) == json.loads(schema)
    assert [json.loads(line) for line in lines[1:]] == [{"name": "a"}, {"name": "b"}]


def test_fetch_failure_exits_with_error(scripted_fetcher, capsys):
    fetcher, endpoint = scripted_fetcher((503, "down"))

    assert run([URL, "--try-times", "2"], fetcher) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "after 2 attempt(s)" in captured.err
    assert endpoint.calls == 2


def test_invalid_option_exits_with_error(scripted_fetcher, capsys):
    fetcher, endpoint = scripted_fetcher((200, BODY))

    assert run([URL, "--sampling-ratio", "0"], fetcher) == 1

    assert "sampling_ratio" in capsys.readouterr().err
    assert endpoint.calls == 0


def test_metrics_dump(scripted_fetcher, capsys):
    fetcher, _ = scripted_fetcher((200, BODY))

    assert run([URL, "--xpath", "$.items", "--schema-only", "--metrics"], fetcher) == 0

    assert "httpjson_fetch_attempts_total" in capsys.readouterr().err
