"""Consumer side of the topology endpoint.

``TopologyView`` mirrors what the dashboard frontend does on every fetch
cycle: one uncached GET of ``/metrics/kubeGraph``, validation of the body
against :class:`AggregateResponse`, a full graph rebuild, and a single
assignment that replaces the previous graph.
"""

from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError

from kubescope.errors import FetchError
from kubescope.graph import GraphModel, build_topology_graph
from kubescope.models.resources import AggregateResponse

_log = structlog.get_logger(component="client")

_GRAPH_PATH = "/metrics/kubeGraph"


async def fetch_aggregate(base_url: str, client: httpx.AsyncClient | None = None) -> AggregateResponse:
    """GET the aggregate topology payload from a kubescope server.

    Raises:
        FetchError: on transport errors, non-2xx responses or a body that
            does not match the AggregateResponse schema.
    """
    url = base_url.rstrip("/") + _GRAPH_PATH
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=30.0)
    try:
        response = await http.get(url, headers={"Cache-Control": "no-store"})
    except httpx.HTTPError as exc:
        raise FetchError("kubeGraph", exc) from exc
    finally:
        if owns_client:
            await http.aclose()

    if not response.is_success:
        raise FetchError("kubeGraph", f"HTTP {response.status_code}")
    try:
        return AggregateResponse.model_validate_json(response.content)
    except ValidationError as exc:
        raise FetchError("kubeGraph", exc) from exc


class TopologyView:
    """Holds the graph currently shown to the user.

    Args:
        base_url: Root URL of the kubescope server.
        client:   Optional shared httpx client (tests inject a MockTransport).
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None) -> None:
        self._base_url = base_url
        self._client = client
        self.graph = GraphModel()

    async def refresh(self) -> GraphModel:
        """Fetch and rebuild.  On failure the previous graph is kept and the error re-raised."""
        try:
            aggregate = await fetch_aggregate(self._base_url, self._client)
        except FetchError as exc:
            _log.warning("topology_refresh_failed", error=str(exc))
            raise
        graph = build_topology_graph(aggregate)
        self.graph = graph
        _log.info("topology_refreshed", elements=len(graph), skipped=len(graph.skipped))
        return graph
