"""Shared fixtures for Harvest bridge tests."""

import json
from typing import Any, Callable, List

import httpx
import pytest

from harvest_bridge_mcp.config import HarvestSettings
from harvest_bridge_mcp.engine import HarvestEngine, build_client


@pytest.fixture
def settings():
    return HarvestSettings(
        username="bridge@example.com",
        password="s3cret",
        account="acme",
        _env_file=None,
    )


class RecordingHandler:
    """MockTransport handler that replays a canned response and records requests."""

    def __init__(self, status_code: int = 200, body: Any = None, raw: bytes = None):
        self.status_code = status_code
        self.body = body
        self.raw = raw
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, content=json.dumps(self.body).encode())

    @property
    def last_url(self) -> str:
        return str(self.requests[-1].url)


@pytest.fixture
def make_engine(settings) -> Callable[..., HarvestEngine]:
    """Build an engine whose client answers with the given handler."""
    engines = []

    def factory(handler) -> HarvestEngine:
        client = build_client(settings, transport=httpx.MockTransport(handler))
        engine = HarvestEngine(settings, client=client)
        engines.append((engine, client))
        return engine

    yield factory

    for _, client in engines:
        client.close()
