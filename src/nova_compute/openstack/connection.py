from __future__ import annotations

import logging

from openstack import connection

from nova_compute.compute.client import Compute
from nova_compute.compute.identity import CatalogIdentity
from nova_compute.compute.transport import HttpxTransport
from nova_compute.config import ComputeConfig

logger = logging.getLogger(__name__)


def get_conn(cloud: str | None = None, region: str | None = None, interface: str = "public"):
    """
    Create an OpenStack SDK connection.

    Uses the same auth as the `openstack` CLI: env vars or clouds.yaml.
    DevStack commonly publishes only PUBLIC endpoints, so that is the default.
    """
    kwargs = {"cloud": cloud, "interface": interface}
    if region:
        kwargs["region_name"] = region

    return connection.from_config(**kwargs)


def identity_from_conn(conn) -> CatalogIdentity:
    """Authenticate ``conn`` and expose its token and service catalog."""
    access = conn.session.auth.get_access(conn.session)
    return CatalogIdentity(access.service_catalog.catalog, access.auth_token)


def get_compute(config: ComputeConfig) -> Compute:
    transport = HttpxTransport(timeout=config.timeout)
    if config.has_direct_credentials:
        logger.debug(f"Using configured endpoint {config.endpoint}")
        return Compute(config.token, config.endpoint, transport=transport)

    conn = get_conn(cloud=config.cloud, region=config.region, interface=config.interface)
    identity = identity_from_conn(conn)
    return Compute.from_identity(identity, config.region, transport=transport)
