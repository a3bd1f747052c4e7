# tests/conftest.py
from __future__ import annotations

import asyncio
import json

import pytest

from nova_compute.compute.exceptions import TransportError
from nova_compute.compute.transport import Response

ENDPOINT = "https://compute.example.com/v2/tenant1"


class FakeTransport:
    """Replays canned responses keyed by URL path and records every request."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict]] = []

    async def do_request(self, method, url, headers):
        self.calls.append((method, url, dict(headers)))
        await asyncio.sleep(0)
        path = url.split("?", 1)[0]
        result = self.routes.get(path)
        if result is None:
            raise TransportError(f"{method} {url} returned 404", status=404, body=b"")
        if isinstance(result, Exception):
            raise result
        body = result if isinstance(result, bytes) else json.dumps(result).encode()
        return Response(status=200, body=body)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def endpoint():
    return ENDPOINT
