from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from nova_compute.compute.exceptions import ServiceNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Service:
    name: str
    type: str
    region: Optional[str]
    publicURL: str


class Identity(Protocol):
    def service_by_name(self, name: str, region: str | None = None) -> Service: ...

    def token(self) -> str: ...


def _public_endpoints(entry: dict[str, Any]):
    """Yield (region, url) for every public endpoint of a catalog entry (v2 or v3)."""
    for ep in entry.get("endpoints") or []:
        region = ep.get("region") or ep.get("region_id")
        if "publicURL" in ep:
            yield region, ep["publicURL"]
        elif ep.get("interface") == "public" and ep.get("url"):
            yield region, ep["url"]


class CatalogIdentity:
    """
    Identity over an already-issued token and its Keystone service catalog.

    Both catalog shapes are understood: v2 entries carry ``publicURL`` per
    endpoint, v3 entries list one endpoint per ``interface``.
    """

    def __init__(self, catalog: Sequence[dict[str, Any]], token: str) -> None:
        self._catalog = list(catalog)
        self._token = token

    def token(self) -> str:
        return self._token

    def service_by_name(self, name: str, region: str | None = None) -> Service:
        # Nova registers as name "nova", type "compute"; either one matches.
        for entry in self._catalog:
            if name not in (entry.get("name"), entry.get("type")):
                continue
            for ep_region, url in _public_endpoints(entry):
                if region is None or ep_region == region:
                    logger.debug(f"Resolved service={name} region={ep_region} url={url}")
                    return Service(
                        name=entry.get("name") or name,
                        type=entry.get("type") or name,
                        region=ep_region,
                        publicURL=url,
                    )
        raise ServiceNotFound(name, region)
