from __future__ import annotations

import json
from typing import Any, Iterable
from urllib.parse import quote, urlencode

from nova_compute.compute.exceptions import MalformedResponse


def with_format(url: str, params: Iterable[tuple[str, str]] = ()) -> str:
    """Append ``?format=json`` and any extra query params, each value percent-encoded."""
    query = urlencode([("format", "json"), *params], quote_via=quote, safe="")
    return f"{url}?{query}"


def path_segment(value: Any) -> str:
    return quote(str(value), safe="")


def decode_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError as ex:
        raise MalformedResponse(f"response body is not JSON: {ex}", body=body) from ex


def expect_key(data: Any, key: str, kind: type, body: bytes | None = None) -> Any:
    if not isinstance(data, dict) or not isinstance(data.get(key), kind):
        raise MalformedResponse(f"expected {kind.__name__} under {key!r} in response", body=body)
    return data[key]
