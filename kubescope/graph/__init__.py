"""Cluster topology graph.

Turns an AggregateResponse (nodes, pods, services, deployments) into an
ordered list of typed node and edge elements grouped by namespace.
"""

from kubescope.graph.builder import build_topology_graph, namespace_parent_id
from kubescope.graph.models import (
    EdgeKind,
    ElementKind,
    GraphEdge,
    GraphModel,
    GraphNode,
    SkippedEntity,
)

__all__ = [
    "EdgeKind",
    "ElementKind",
    "GraphEdge",
    "GraphModel",
    "GraphNode",
    "SkippedEntity",
    "build_topology_graph",
    "namespace_parent_id",
]
