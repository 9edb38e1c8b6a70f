"""Dashboard routes, mounted under ``/metrics``.

Every handler builds a fresh pipeline for the request and runs it.  Pipeline
failures propagate to the ``PipelineFailure`` handler registered in
:mod:`kubescope.api.app`; handlers never return partial data.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Path, Query, Request
from fastapi.responses import JSONResponse

from kubescope.api.schemas import ErrorResponse, GraphElementsResponse
from kubescope.graph import build_topology_graph
from kubescope.models.resources import DeletedPod, NodeHealth, PodSummary
from kubescope.pipeline import (
    build_delete_pod_pipeline,
    build_node_health_pipeline,
    build_pods_pipeline,
    build_prometheus_pipeline,
    build_topology_pipeline,
)

router = APIRouter()

_DEFAULT_PROM_QUERY = "up"


@router.get("/prom")
async def prometheus_metrics(
    request: Request,
    query: str = Query(_DEFAULT_PROM_QUERY, min_length=1),
    start: str | None = None,
    end: str | None = None,
    step: str | None = None,
) -> Any:
    """Forward a PromQL query; a range query when start, end and step are set."""
    range_params = (start, end, step)
    if any(range_params) and not all(range_params):
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                status=400,
                message={"err": "start, end and step must be provided together"},
            ).model_dump(),
        )
    pipeline = build_prometheus_pipeline(request.app.state.prometheus, query, start, end, step)
    return await pipeline.run()


@router.get("/kubeNodes", response_model=list[NodeHealth])
async def kube_nodes(request: Request) -> list[NodeHealth]:
    return await build_node_health_pipeline(request.app.state.kube_fetcher).run()


@router.get("/kubeGraph")
async def kube_graph(request: Request) -> JSONResponse:
    """Aggregate nodes, pods, services and deployments in one response."""
    aggregate = await build_topology_pipeline(request.app.state.kube_fetcher).run()
    return JSONResponse(content=aggregate.to_wire())


@router.get("/kubeGraph/elements", response_model=GraphElementsResponse)
async def kube_graph_elements(request: Request) -> GraphElementsResponse:
    """Aggregate the cluster and return the built topology graph elements."""
    aggregate = await build_topology_pipeline(request.app.state.kube_fetcher).run()
    graph = build_topology_graph(aggregate)
    return GraphElementsResponse.model_validate(
        {
            "elements": graph.to_elements(),
            "skipped": [asdict(s) for s in graph.skipped],
        }
    )


@router.get("/kubePods", response_model=list[PodSummary])
async def kube_pods(request: Request) -> list[PodSummary]:
    return await build_pods_pipeline(request.app.state.kube_fetcher).run()


@router.get("/delete/{namespace}/{name}", response_model=DeletedPod)
async def delete_pod(
    request: Request,
    namespace: str = Path(min_length=1),
    name: str = Path(min_length=1),
) -> DeletedPod:
    return await build_delete_pod_pipeline(request.app.state.kube_fetcher, namespace, name).run()
