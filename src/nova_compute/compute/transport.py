"""
HTTP execution for the compute client.

Anything that implements ``Transport.do_request`` can be handed to
``Compute``; ``HttpxTransport`` is the default.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol

import httpx

from nova_compute.compute.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)


class Transport(Protocol):
    async def do_request(
        self, method: str, url: str, headers: Mapping[str, str]
    ) -> Response:
        """Run one request. Raise ``TransportError`` on any failure."""
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``, one client per request."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def do_request(
        self, method: str, url: str, headers: Mapping[str, str]
    ) -> Response:
        logger.debug(f"{method} {url}")
        kwargs = {"timeout": self._timeout}
        if self._transport is not None:
            kwargs["transport"] = self._transport

        async with httpx.AsyncClient(**kwargs) as client:
            try:
                resp = await client.request(method, url, headers=dict(headers))
                resp.raise_for_status()
            except httpx.HTTPStatusError as ex:
                logger.warning(
                    f"Request failed method={method} url={url} "
                    f"status={ex.response.status_code} reason={ex.response.reason_phrase}"
                )
                raise TransportError(
                    f"{method} {url} returned {ex.response.status_code}",
                    status=ex.response.status_code,
                    body=ex.response.content,
                ) from ex
            except httpx.HTTPError as ex:
                logger.warning(f"Request failed method={method} url={url}: {ex!r}")
                raise TransportError(f"{method} {url} failed: {ex}") from ex

            return Response(status=resp.status_code, body=resp.content, headers=dict(resp.headers))
