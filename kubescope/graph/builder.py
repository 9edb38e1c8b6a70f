"""Build the cluster topology graph from an aggregate response.

Layout of the produced graph::

    cluster node ──node-to-namespace──▶ namespace hub ──namespace-to-pod──▶ pod
                                        └──────── inside <ns>_parent ───────┘

Every pod and every namespace hub is contained in its namespace's grouping
element (``<namespace>_parent``).  All node-to-namespace edges start at the
cluster anchor, the first cluster node emitted.

Ids are bare names.  When a namespace hub, grouping element or pod would
take an id already held by an element of another kind (a pod named like its
namespace, a cluster node named like a namespace), it is emitted as
``<namespace>/<id>`` instead and keeps its edges.  Two pods with the same
name keep the first one.

The build is pure and synchronous.  Entities that cannot be represented (no
name, or a same-kind duplicate) are logged, recorded in
:attr:`GraphModel.skipped` and left out; the rest of the graph is still
produced.
"""

from __future__ import annotations

import structlog

from kubescope.graph.models import (
    EdgeKind,
    ElementKind,
    GraphEdge,
    GraphModel,
    GraphNode,
    SkippedEntity,
)
from kubescope.models.resources import AggregateResponse, ClusterNode, Pod

_log = structlog.get_logger(component="graph.builder")

_PARENT_SUFFIX = "_parent"
_QUALIFIER = "/"


def namespace_parent_id(namespace: str) -> str:
    """Id of the grouping element that contains a namespace's hub and pods."""
    return f"{namespace}{_PARENT_SUFFIX}"


def build_topology_graph(response: AggregateResponse) -> GraphModel:
    """Transform *response* into a fresh :class:`GraphModel`.

    Deterministic for identical input order.  Services and deployments are
    not represented yet.
    """
    return _TopologyBuild().run(response)


class _TopologyBuild:
    """State for a single build call; never reused."""

    def __init__(self) -> None:
        self._model = GraphModel()
        # element id -> kind of the element that claimed it
        self._ids: dict[str, ElementKind | EdgeKind] = {}
        # namespace -> first-seen index, only used for the display group tag
        self._namespace_index: dict[str, int] = {}
        # namespace -> id actually emitted for its grouping element / hub
        self._parents: dict[str, str] = {}
        self._hubs: dict[str, str] = {}

    def run(self, response: AggregateResponse) -> GraphModel:
        self._index_namespaces(response.pods)
        anchor = self._add_cluster_nodes(response.node_list, response.pods)
        self._add_namespaces(anchor)
        self._add_pods(response.pods)

        _log.debug(
            "topology_graph_built",
            elements=len(self._model.elements),
            namespaces=len(self._namespace_index),
            skipped=len(self._model.skipped),
        )
        return self._model

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _index_namespaces(self, pods: list[Pod]) -> None:
        for pod in pods:
            if pod.namespace and pod.namespace not in self._namespace_index:
                self._namespace_index[pod.namespace] = len(self._namespace_index)

    def _add_cluster_nodes(self, nodes: list[ClusterNode], pods: list[Pod]) -> str | None:
        # Cluster nodes are not namespaced; tag each with the namespace of
        # the first pod scheduled on it so it shares that pod's colour.
        first_namespace: dict[str, str] = {}
        for pod in pods:
            if pod.node_name and pod.namespace:
                first_namespace.setdefault(pod.node_name, pod.namespace)

        anchor: str | None = None
        for node in nodes:
            name = node.name
            if not name:
                self._skip("ClusterNode", "missing metadata.name")
                continue
            added = self._add_node(
                GraphNode(
                    id=name,
                    label=name,
                    kind=ElementKind.CLUSTER_NODE,
                    group=self._group(first_namespace.get(name)),
                )
            )
            if added and anchor is None:
                anchor = name
        return anchor

    def _add_namespaces(self, anchor: str | None) -> None:
        if anchor is None and self._namespace_index:
            _log.info("no_cluster_anchor_namespace_edges_omitted", namespaces=len(self._namespace_index))

        for namespace, index in self._namespace_index.items():
            group = f"namespace{index}"

            parent_id = self._namespaced_id(namespace, namespace_parent_id(namespace), ElementKind.NAMESPACE_PARENT)
            if parent_id is None or not self._add_node(
                GraphNode(
                    id=parent_id,
                    label=namespace,
                    kind=ElementKind.NAMESPACE_PARENT,
                    group=group,
                    renderable=False,
                )
            ):
                continue
            self._parents[namespace] = parent_id

            hub_id = self._namespaced_id(namespace, namespace, ElementKind.NAMESPACE)
            if hub_id is None or not self._add_node(
                GraphNode(
                    id=hub_id,
                    label=namespace,
                    kind=ElementKind.NAMESPACE,
                    group=group,
                    parent=parent_id,
                )
            ):
                continue
            self._hubs[namespace] = hub_id

            if anchor is not None:
                self._add_edge(GraphEdge(source=anchor, target=hub_id, kind=EdgeKind.NODE_TO_NAMESPACE))

    def _add_pods(self, pods: list[Pod]) -> None:
        for pod in pods:
            name = pod.name
            if not name:
                self._skip("Pod", "missing metadata.name", pod.namespace or "")
                continue

            namespace = pod.namespace
            if not namespace:
                _log.warning("pod_without_namespace", pod=name)
                pod_id: str | None = name
            else:
                pod_id = self._namespaced_id(namespace, name, ElementKind.POD)
            if pod_id is None:
                self._skip(ElementKind.POD.value, "duplicate element id", name)
                continue

            added = self._add_node(
                GraphNode(
                    id=pod_id,
                    label=pod.primary_container_name or name,
                    kind=ElementKind.POD,
                    group=self._group(namespace),
                    parent=self._parents.get(namespace) if namespace else None,
                )
            )
            hub_id = self._hubs.get(namespace) if namespace else None
            if added and hub_id is not None:
                self._add_edge(GraphEdge(source=hub_id, target=pod_id, kind=EdgeKind.NAMESPACE_TO_POD))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _namespaced_id(self, namespace: str, preferred: str, kind: ElementKind) -> str | None:
        """Pick the id for an element that belongs to *namespace*.

        *preferred* is used when free.  When an element of another kind
        already holds it, the element moves to ``<namespace>/<preferred>``.
        Two elements of the same kind never share an id: the later one gets
        None and is skipped.
        """
        holder = self._ids.get(preferred)
        if holder is None:
            return preferred
        if holder is kind:
            return None
        qualified = f"{namespace}{_QUALIFIER}{preferred}"
        _log.info("graph_id_qualified", kind=kind.value, id=preferred, qualified=qualified, held_by=holder.value)
        return qualified

    def _group(self, namespace: str | None) -> str | None:
        if not namespace or namespace not in self._namespace_index:
            return None
        return f"namespace{self._namespace_index[namespace]}"

    def _add_node(self, node: GraphNode) -> bool:
        if node.id in self._ids:
            self._skip(node.kind.value, "duplicate element id", node.id)
            return False
        self._ids[node.id] = node.kind
        self._model.elements.append(node)
        return True

    def _add_edge(self, edge: GraphEdge) -> None:
        if edge.id in self._ids:
            self._skip(edge.kind.value, "duplicate element id", edge.id)
            return
        self._ids[edge.id] = edge.kind
        self._model.elements.append(edge)

    def _skip(self, kind: str, reason: str, ref: str = "") -> None:
        _log.warning("graph_entity_skipped", kind=kind, reason=reason, ref=ref)
        self._model.skipped.append(SkippedEntity(kind=kind, reason=reason, ref=ref))
