from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from keystoneauth1 import exceptions as ks_exc
from openstack.exceptions import SDKException
from rich import print
from rich.markup import escape
from rich.table import Table

from nova_compute.compute.exceptions import ComputeError
from nova_compute.config import load_config

app = typer.Typer(add_completion=False)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, help="YAML file with cloud/region/endpoint/token"),
    cloud: Optional[str] = typer.Option(None, help="Cloud name from clouds.yaml"),
    region: Optional[str] = typer.Option(None, help="Region; first compute endpoint if omitted"),
    log_level: str = typer.Option(
        os.environ.get("NOVA_COMPUTE_LOG_LEVEL", "WARNING"), help="Logging level"
    ),
):
    _configure_logging(log_level)
    ctx.obj = load_config(config, cloud=cloud, region=region)


def _run(ctx: typer.Context, op):
    """Build a Compute from the context config and run ``op(compute)`` to completion."""
    from nova_compute.openstack.connection import get_compute

    try:
        compute = get_compute(ctx.obj)
        return asyncio.run(op(compute))
    except (ComputeError, SDKException, ks_exc.ClientException) as e:
        print(f"[red]{type(e).__name__}:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def servers(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, min=0, help="Maximum number of servers"),
    marker: Optional[str] = typer.Option(None, help="Id of the last server of the previous page"),
):
    rows = _run(ctx, lambda c: c.servers(limit=limit, marker=marker))

    t = Table(title="Servers")
    t.add_column("ID")
    t.add_column("Name")
    t.add_column("Status")
    t.add_column("Flavor")
    t.add_column("Image")
    for s in rows:
        t.add_row(str(s.id), str(s.name), str(s.status), str(s.flavor_id or ""), str(s.image_id or ""))
    print(t)


@app.command()
def flavors(ctx: typer.Context):
    rows = _run(ctx, lambda c: c.flavors())

    t = Table(title="Flavors")
    t.add_column("ID")
    t.add_column("Name")
    t.add_column("VCPUs")
    t.add_column("RAM(MB)")
    t.add_column("Disk(GB)")
    for f in rows:
        t.add_row(str(f.get("id")), str(f.get("name")), str(f.get("vcpus", "")), str(f.get("ram", "")), str(f.get("disk", "")))
    print(t)


@app.command()
def flavor(ctx: typer.Context, flavor_id: str):
    print(_run(ctx, lambda c: c.flavor(flavor_id)))


@app.command()
def metadata(ctx: typer.Context, server_id: str):
    """
    Fetch the metadata key/value pairs of one server.
    """
    from nova_compute.compute.server import Server

    async def op(compute):
        server = Server(server_id, None, compute.token, compute.url(), transport=compute.transport)
        return await server.list_metadata()

    md = _run(ctx, op)

    t = Table(title=f"Metadata for {server_id}")
    t.add_column("Key")
    t.add_column("Value")
    for k, v in sorted(md.items()):
        t.add_row(str(k), str(v))
    print(t)


if __name__ == "__main__":
    app()
