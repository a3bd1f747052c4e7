"""
A server is one compute instance (a VM) as described by the compute API.

The handful of fields the API always documents are projected onto
attributes. The full payload stays available as ``original``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from nova_compute.compute.exceptions import MalformedResponse
from nova_compute.compute.transport import HttpxTransport, Transport
from nova_compute.compute.wire import decode_json, path_segment, with_format

logger = logging.getLogger(__name__)

_MODELED_KEYS = frozenset(
    {
        "id",
        "name",
        "status",
        "progress",
        "imageId",
        "image",
        "flavorId",
        "flavor",
        "addresses",
        "metadata",
        "hostId",
        "tenant_id",
        "user_id",
        "endpoint",
    }
)


def _nested_id(details: dict[str, Any], key: str) -> Optional[str]:
    ref = details.get(key)
    if isinstance(ref, dict):
        return ref.get("id")
    return None


class Server:
    def __init__(
        self,
        id: str,
        details: dict[str, Any] | None,
        token: str,
        url: str,
        transport: Transport | None = None,
    ) -> None:
        details = details if details is not None else {}

        self._id = id
        self._token = token
        self._parent_endpoint = url
        self._url = f"{url}/servers/{path_segment(id)}"
        self._transport = transport or HttpxTransport()

        self.name: Optional[str] = details.get("name")
        self.status: Optional[str] = details.get("status")
        self.progress = details.get("progress")
        self.host_id: Optional[str] = details.get("hostId")
        self.tenant_id: Optional[str] = details.get("tenant_id")
        self.user_id: Optional[str] = details.get("user_id")
        self.endpoint: Optional[str] = details.get("endpoint")

        self.image_id: Optional[str] = details.get("imageId")
        if self.image_id is None:
            self.image_id = _nested_id(details, "image")
        self.flavor_id: Optional[str] = details.get("flavorId")
        if self.flavor_id is None:
            self.flavor_id = _nested_id(details, "flavor")

        addresses = details.get("addresses")
        if addresses is not None and not isinstance(addresses, dict):
            raise MalformedResponse(f"server {id!r}: addresses must be an object, got {type(addresses).__name__}")
        self.addresses: dict[str, list[dict[str, Any]]] = addresses or {}

        # None until resolved, either from the payload or by list_metadata().
        metadata = details.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise MalformedResponse(f"server {id!r}: metadata must be an object, got {type(metadata).__name__}")
        self._metadata: Optional[dict[str, str]] = dict(metadata) if metadata is not None else None
        self._metadata_lock = asyncio.Lock()

        self._original = details

    @classmethod
    def from_json(
        cls,
        payload: dict[str, Any],
        token: str,
        url: str,
        transport: Transport | None = None,
    ) -> "Server":
        if not isinstance(payload, dict) or "id" not in payload:
            raise MalformedResponse(f"server entry has no id: {payload!r}")
        return cls(payload["id"], payload, token, url, transport=transport)

    @property
    def id(self) -> str:
        return self._id

    @property
    def url(self) -> str:
        return self._url

    @property
    def token(self) -> str:
        return self._token

    @property
    def parent_endpoint(self) -> str:
        return self._parent_endpoint

    @property
    def original(self) -> dict[str, Any]:
        return self._original

    @property
    def extra(self) -> dict[str, Any]:
        """Payload keys that have no attribute of their own."""
        return {k: v for k, v in self._original.items() if k not in _MODELED_KEYS}

    @property
    def metadata(self) -> dict[str, str]:
        return dict(self._metadata) if self._metadata is not None else {}

    @property
    def metadata_resolved(self) -> bool:
        return self._metadata is not None

    async def list_metadata(self) -> dict[str, str]:
        """
        Return the server's metadata, fetching it on first use.

        Concurrent callers wait on the same fetch. A failed fetch leaves the
        cache unresolved, so the next call tries again.
        """
        if self._metadata is not None:
            return dict(self._metadata)

        async with self._metadata_lock:
            if self._metadata is not None:
                return dict(self._metadata)

            url = with_format(f"{self._url}/metadata")
            resp = await self._transport.do_request("GET", url, {"X-Auth-Token": self._token})
            data = decode_json(resp.body)
            if not isinstance(data, dict):
                raise MalformedResponse(f"expected a metadata object from {url}", body=resp.body)

            # Nova wraps the mapping in {"metadata": {...}}; accept the bare mapping too.
            if isinstance(data.get("metadata"), dict) and len(data) == 1:
                data = data["metadata"]

            self._metadata = dict(data)
            logger.debug(f"Cached {len(data)} metadata keys for server {self._id}")
            return dict(self._metadata)

    def __repr__(self) -> str:
        return (
            f"<Server(id={self._id!r}, name={self.name!r}, status={self.status!r}, "
            f"flavor_id={self.flavor_id!r}, image_id={self.image_id!r})>"
        )
