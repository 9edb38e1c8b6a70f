"""Click commands: run the server, or fetch and print the topology graph."""

from __future__ import annotations

import asyncio
import json
from collections import Counter

import click

from kubescope.errors import FetchError
from kubescope.graph import GraphModel
from kubescope.observability.logging import setup_logging


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """kubescope: Kubernetes cluster topology dashboard."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


@cli.command()
def serve() -> None:
    """Run the API server (configured from KUBESCOPE_* variables)."""
    from kubescope.app import main

    asyncio.run(main())


@cli.command()
@click.option("--url", default="http://localhost:8888", show_default=True, help="kubescope server URL.")
@click.option("--json", "as_json", is_flag=True, help="Print the graph elements as JSON.")
@click.pass_context
def graph(ctx: click.Context, url: str, as_json: bool) -> None:
    """Fetch the cluster aggregate and print the topology graph."""
    from kubescope.client import TopologyView

    setup_logging(ctx.obj["log_level"])
    view = TopologyView(url)
    try:
        model = asyncio.run(view.refresh())
    except FetchError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps(model.to_elements(), indent=2))
        return
    click.echo(format_summary(model))


def format_summary(model: GraphModel) -> str:
    """One line per element kind plus any skipped entities."""
    counts = Counter(node.kind.value for node in model.nodes)
    counts.update(edge.kind.value for edge in model.edges)
    lines = [f"{kind}: {count}" for kind, count in sorted(counts.items())]
    lines.append(f"total: {len(model)}")
    for skipped in model.skipped:
        ref = f" ({skipped.ref})" if skipped.ref else ""
        lines.append(f"skipped {skipped.kind}{ref}: {skipped.reason}")
    return "\n".join(lines)
