# Test configuration

import pytest
import os
import sys

import httpx

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from httpjson.ingest.fetcher import HttpFetcher  # noqa: E402


class ScriptedEndpoint:
    """
    Fake endpoint answering requests from a script.

    Each entry is a (status, body) tuple or an exception instance to raise;
    the last entry repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.script)) - 1
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        status, body = step
        return httpx.Response(status, text=body)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def scripted_fetcher():
    """Factory returning (fetcher, endpoint) backed by httpx.MockTransport."""
    clients = []

    def factory(*script):
        endpoint = ScriptedEndpoint(*script)
        client = httpx.Client(transport=httpx.MockTransport(endpoint))
        clients.append(client)
        return HttpFetcher(client=client), endpoint

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def test_settings():
    """Override settings for testing"""
    from httpjson.config.settings import Settings
    return Settings(
        default_try_times=2,
        corrupt_record_column="_bad",
        sampling_seed=7,
    )
