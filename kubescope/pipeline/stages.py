"""Stage definitions and pipeline factories for every dashboard endpoint.

Each factory builds a fresh :class:`Pipeline` per request; nothing here holds
state between calls.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from kubescope.collector.quantity import parse_cpu, parse_memory
from kubescope.models.resources import AggregateResponse, DeletedPod, NodeHealth, PodSummary
from kubescope.pipeline.base import Pipeline, PipelineContext, Stage

if TYPE_CHECKING:
    from kubescope.collector.kubernetes import KubernetesFetcher
    from kubescope.collector.prometheus import PrometheusClient

_log = structlog.get_logger(component="pipeline.stages")


# ---------------------------------------------------------------------------
# Topology
# ---------------------------------------------------------------------------


def build_topology_pipeline(fetcher: KubernetesFetcher) -> Pipeline[AggregateResponse]:
    """nodes -> pods -> services -> deployments, assembled into AggregateResponse.

    The stages do not depend on each other; the fixed order only makes the
    assembled response reproducible.
    """

    async def nodes(_ctx: PipelineContext) -> list[dict[str, Any]]:
        return await fetcher.list_nodes()

    async def pods(_ctx: PipelineContext) -> list[dict[str, Any]]:
        return await fetcher.list_pods()

    async def services(_ctx: PipelineContext) -> list[dict[str, Any]]:
        return await fetcher.list_services()

    async def deployments(_ctx: PipelineContext) -> list[dict[str, Any]]:
        return await fetcher.list_deployments()

    def assemble(ctx: PipelineContext) -> AggregateResponse:
        return AggregateResponse.model_validate(
            {
                "nodeList": ctx["nodes"],
                "pods": ctx["pods"],
                "services": ctx["services"],
                "deployments": ctx["deployments"],
            }
        )

    return Pipeline(
        "topology",
        [
            Stage("nodes", nodes),
            Stage("pods", pods),
            Stage("services", services),
            Stage("deployments", deployments),
        ],
        assemble,
    )


# ---------------------------------------------------------------------------
# Node health
# ---------------------------------------------------------------------------


def build_node_health_pipeline(fetcher: KubernetesFetcher) -> Pipeline[list[NodeHealth]]:
    """Enumerate nodes, then look up metrics-server usage for each of them."""

    async def nodes(_ctx: PipelineContext) -> list[dict[str, Any]]:
        return await fetcher.list_nodes()

    async def node_metrics(ctx: PipelineContext) -> dict[str, dict[str, Any] | None]:
        usage: dict[str, dict[str, Any] | None] = {}
        for name in _node_names(ctx["nodes"]):
            usage[name] = await fetcher.get_node_metrics(name)
        return usage

    def assemble(ctx: PipelineContext) -> list[NodeHealth]:
        metrics = ctx["node_metrics"]
        return [
            node_health(node, metrics.get(node["metadata"]["name"]))
            for node in ctx["nodes"]
            if (node.get("metadata") or {}).get("name")
        ]

    return Pipeline(
        "node_health",
        [Stage("nodes", nodes), Stage("node_metrics", node_metrics)],
        assemble,
    )


def _node_names(nodes: list[dict[str, Any]]) -> list[str]:
    names = []
    for node in nodes:
        name = (node.get("metadata") or {}).get("name")
        if not name:
            _log.warning("node_without_name_skipped")
            continue
        names.append(name)
    return names


def node_health(node: dict[str, Any], metrics: dict[str, Any] | None) -> NodeHealth:
    """Combine a Node object with its NodeMetrics sample (may be None).

    A quantity that cannot be parsed becomes None for that field only, so one
    odd node never fails the whole listing.
    """
    name = node["metadata"]["name"]
    status = node.get("status") or {}
    capacity = status.get("capacity") or {}
    allocatable = status.get("allocatable") or {}
    conditions = status.get("conditions") or []

    def quantity(parse: Callable[[Any], int], field: str, value: Any) -> int | None:
        try:
            return parse(value)
        except ValueError:
            _log.warning("unparseable_quantity", node=name, field=field, value=value)
            return None

    ready = any(c.get("type") == "Ready" and c.get("status") == "True" for c in conditions)
    memory_allocatable = quantity(
        parse_memory, "allocatable.memory", allocatable.get("memory") or capacity.get("memory")
    )

    usage = (metrics or {}).get("usage") or {}
    memory_usage = quantity(parse_memory, "usage.memory", usage["memory"]) if "memory" in usage else None
    cpu_usage = quantity(parse_cpu, "usage.cpu", usage["cpu"]) if "cpu" in usage else None

    percent = None
    if memory_usage is not None and memory_allocatable:
        percent = round(memory_usage / memory_allocatable * 100, 2)

    return NodeHealth(
        name=name,
        ready=ready,
        memory_capacity_bytes=quantity(parse_memory, "capacity.memory", capacity.get("memory")),
        memory_allocatable_bytes=memory_allocatable,
        memory_usage_bytes=memory_usage,
        memory_usage_percent=percent,
        cpu_capacity_millicores=quantity(parse_cpu, "capacity.cpu", capacity.get("cpu")),
        cpu_usage_millicores=cpu_usage,
    )


# ---------------------------------------------------------------------------
# Pods
# ---------------------------------------------------------------------------


def build_pods_pipeline(fetcher: KubernetesFetcher) -> Pipeline[list[PodSummary]]:
    async def pods(_ctx: PipelineContext) -> list[dict[str, Any]]:
        return await fetcher.list_pods()

    def assemble(ctx: PipelineContext) -> list[PodSummary]:
        summaries = []
        for pod in ctx["pods"]:
            summary = pod_summary(pod)
            if summary is not None:
                summaries.append(summary)
        return summaries

    return Pipeline("pods", [Stage("pods", pods)], assemble)


def pod_summary(pod: dict[str, Any]) -> PodSummary | None:
    metadata = pod.get("metadata") or {}
    if not metadata.get("name"):
        _log.warning("pod_without_name_skipped", namespace=metadata.get("namespace"))
        return None
    spec = pod.get("spec") or {}
    status = pod.get("status") or {}
    return PodSummary(
        name=metadata["name"],
        namespace=metadata.get("namespace") or "",
        node_name=spec.get("nodeName"),
        phase=status.get("phase") or "Unknown",
        containers=[c.get("name", "") for c in spec.get("containers") or []],
        restart_count=sum(cs.get("restartCount", 0) for cs in status.get("containerStatuses") or []),
    )


def build_delete_pod_pipeline(
    fetcher: KubernetesFetcher,
    namespace: str,
    name: str,
) -> Pipeline[DeletedPod]:
    async def deleted_pod(_ctx: PipelineContext) -> dict[str, Any]:
        return await fetcher.delete_pod(namespace, name)

    def assemble(ctx: PipelineContext) -> DeletedPod:
        metadata = ctx["deleted_pod"].get("metadata") or {}
        return DeletedPod(
            name=metadata.get("name") or name,
            namespace=metadata.get("namespace") or namespace,
            uid=metadata.get("uid"),
        )

    return Pipeline("delete_pod", [Stage("deleted_pod", deleted_pod)], assemble)


# ---------------------------------------------------------------------------
# Prometheus passthrough
# ---------------------------------------------------------------------------


def build_prometheus_pipeline(
    prometheus: PrometheusClient,
    query: str,
    start: str | None = None,
    end: str | None = None,
    step: str | None = None,
) -> Pipeline[dict[str, Any]]:
    """Instant query, or a range query when start, end and step are all given."""
    is_range = bool(start and end and step)

    async def counter_data(_ctx: PipelineContext) -> dict[str, Any]:
        if is_range:
            return await prometheus.query_range(query, start or "", end or "", step or "")
        return await prometheus.query(query)

    return Pipeline("prometheus", [Stage("counter_data", counter_data)], lambda ctx: ctx["counter_data"])
