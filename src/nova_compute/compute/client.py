"""
Entry point to the compute service.

A ``Compute`` holds a token and the service's base URL and issues the list
and detail requests. Servers come back as ``Server`` objects; flavors are
returned as the plain dicts the API sends.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from nova_compute.compute.args import ServerQuery, args_with_fn
from nova_compute.compute.callbacks import run_with_callback
from nova_compute.compute.identity import Identity
from nova_compute.compute.server import Server
from nova_compute.compute.transport import HttpxTransport, Transport
from nova_compute.compute.wire import decode_json, expect_key, path_segment, with_format

logger = logging.getLogger(__name__)

COMPUTE_SERVICE = "compute"


class Compute:
    def __init__(
        self,
        auth_token: str,
        endpoint: str,
        transport: Transport | None = None,
    ) -> None:
        self._token = auth_token
        self._endpoint = endpoint.rstrip("/")
        self._transport = transport or HttpxTransport()

    @classmethod
    def from_identity(
        cls,
        identity: Identity,
        region: Optional[str] = None,
        transport: Transport | None = None,
    ) -> "Compute":
        """
        Build a client from an identity's service catalog.

        If ``region`` is omitted the first compute endpoint in the catalog is
        used. Raises ``ServiceNotFound`` when there is no match.
        """
        service = identity.service_by_name(COMPUTE_SERVICE, region)
        return cls(identity.token(), service.publicURL, transport=transport)

    @property
    def token(self) -> str:
        return self._token

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def transport(self) -> Transport:
        return self._transport

    def url(self) -> str:
        return self._endpoint

    def standard_headers(self) -> dict[str, str]:
        return {"X-Auth-Token": self._token}

    async def _get_json(self, url: str) -> tuple[Any, bytes]:
        resp = await self._transport.do_request("GET", url, self.standard_headers())
        return decode_json(resp.body), resp.body

    async def servers(
        self,
        query: ServerQuery | None = None,
        *,
        limit: int | None = None,
        marker: str | None = None,
    ) -> list[Server]:
        """
        List servers with full details.

        Pass either a ``ServerQuery`` or ``limit``/``marker`` keywords.
        ``marker`` is the id of the last server seen on the previous page.
        """
        if query is None:
            query = ServerQuery(limit=limit, marker=marker)
        elif limit is not None or marker is not None:
            raise TypeError("pass either a ServerQuery or limit/marker, not both")

        url = with_format(f"{self._endpoint}/servers/detail", query.params())
        data, body = await self._get_json(url)
        entries = expect_key(data, "servers", list, body)

        servers = []
        for entry in entries:
            tagged = {**entry, "endpoint": self._endpoint} if isinstance(entry, dict) else entry
            servers.append(
                Server.from_json(tagged, self._token, self._endpoint, transport=self._transport)
            )
        logger.debug(f"Listed {len(servers)} servers from {self._endpoint}")
        return servers

    def servers_with_callback(self, *args) -> asyncio.Task:
        """
        Callback flavoured ``servers``: ``servers_with_callback([limit, [marker,]] fn)``.

        ``fn(error, servers)`` is called once the listing finishes, including when
        ``limit``/``marker`` are rejected. Returns the scheduled task.
        """
        a = args_with_fn(args, ["limit", "marker", "fn"])

        async def listing():
            return await self.servers(ServerQuery.from_resolved(a))

        return run_with_callback(listing(), a["fn"])

    async def flavors(self) -> list[dict[str, Any]]:
        url = with_format(f"{self._endpoint}/flavors/detail")
        data, body = await self._get_json(url)
        return list(expect_key(data, "flavors", list, body))

    async def flavor(self, id: str) -> dict[str, Any]:
        url = with_format(f"{self._endpoint}/flavors/{path_segment(id)}")
        data, body = await self._get_json(url)
        return expect_key(data, "flavor", dict, body)

    def __repr__(self) -> str:
        return f"<Compute(endpoint={self._endpoint!r})>"
