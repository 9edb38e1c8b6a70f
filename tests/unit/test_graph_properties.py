"""Property-based tests for the topology graph builder.

Uses hypothesis to generate clusters with arbitrary pod placement and
namespace repetition, and pod names that may coincide with namespace names,
cluster node names and grouping-element ids.  Validates that:
 1. Each referenced namespace yields exactly one hub and one grouping element
 2. Each namespaced pod yields exactly one parented element and one hub edge
 3. Pods without a namespace never create groups and never crash the build
 4. Node-to-namespace edges all start at the first cluster node (or are absent)
 5. Element ids are unique
"""

from __future__ import annotations

from collections import Counter

from hypothesis import given, settings
from hypothesis import strategies as st

from kubescope.graph import EdgeKind, ElementKind, build_topology_graph
from tests.factories import make_aggregate, make_node, make_pod

_NAMESPACES = ["default", "kube-system", "ns-a", "ns-b", "monitoring"]
_NODES = ["node-1", "node-2", "node-3", "node-4"]

_namespaces = st.sampled_from(["", *_NAMESPACES])
_node_names = st.lists(st.sampled_from(_NODES), unique=True, max_size=4)
_pod_names = st.one_of(
    st.integers(min_value=0, max_value=500).map(lambda i: f"pod-{i}"),
    st.sampled_from(_NAMESPACES + _NODES + [f"{ns}_parent" for ns in _NAMESPACES]),
)
_placements = st.lists(
    st.tuples(_pod_names, _namespaces, st.one_of(st.none(), st.sampled_from(_NODES))),
    unique_by=lambda placement: placement[0],
    max_size=40,
)


def _cluster(node_names: list[str], placements: list[tuple[str, str, str | None]]):
    pods = [make_pod(name, namespace, node=node) for name, namespace, node in placements]
    return make_aggregate(nodes=[make_node(name) for name in node_names], pods=pods), pods


def _hub_ids(graph) -> dict[str, str]:
    return {n.label: n.id for n in graph.nodes if n.kind is ElementKind.NAMESPACE}


@given(node_names=_node_names, placements=_placements)
@settings(max_examples=100)
def test_one_hub_and_one_group_per_namespace(node_names, placements) -> None:
    aggregate, _ = _cluster(node_names, placements)
    graph = build_topology_graph(aggregate)

    referenced = {namespace for _, namespace, _ in placements if namespace}
    hubs = Counter(n.label for n in graph.nodes if n.kind is ElementKind.NAMESPACE)
    parents = Counter(n.label for n in graph.nodes if n.kind is ElementKind.NAMESPACE_PARENT)

    assert set(hubs) == referenced
    assert set(parents) == referenced
    assert all(count == 1 for count in hubs.values())
    assert all(count == 1 for count in parents.values())


@given(node_names=_node_names, placements=_placements)
@settings(max_examples=100)
def test_each_namespaced_pod_has_one_element_and_one_edge(node_names, placements) -> None:
    aggregate, _ = _cluster(node_names, placements)
    graph = build_topology_graph(aggregate)
    hubs = _hub_ids(graph)
    parents = {n.label: n.id for n in graph.nodes if n.kind is ElementKind.NAMESPACE_PARENT}

    for name, namespace, _ in placements:
        if not namespace:
            continue
        elements = [n for n in graph.nodes if n.kind is ElementKind.POD and n.id in (name, f"{namespace}/{name}")]

        assert len(elements) == 1
        pod_id = elements[0].id
        assert elements[0].parent == parents[namespace]
        incoming = [e for e in graph.edges if e.target == pod_id]
        assert [(e.source, e.kind) for e in incoming] == [(hubs[namespace], EdgeKind.NAMESPACE_TO_POD)]


@given(node_names=_node_names, placements=_placements)
@settings(max_examples=100)
def test_pods_without_namespace_are_unparented_or_skipped(node_names, placements) -> None:
    aggregate, _ = _cluster(node_names, placements)
    graph = build_topology_graph(aggregate)
    skipped_refs = {s.ref for s in graph.skipped}

    for name, namespace, _ in placements:
        if namespace:
            continue
        element = graph.get(name)
        if element is not None and element.kind is ElementKind.POD:
            assert element.parent is None
            assert element.group is None
            assert not [e for e in graph.edges if e.target == name]
        else:
            # name already held by a node, hub or grouping element
            assert name in skipped_refs


@given(node_names=_node_names, placements=_placements)
@settings(max_examples=100)
def test_namespace_edges_start_at_cluster_anchor(node_names, placements) -> None:
    aggregate, _ = _cluster(node_names, placements)
    graph = build_topology_graph(aggregate)

    ns_edges = [e for e in graph.edges if e.kind is EdgeKind.NODE_TO_NAMESPACE]

    if not node_names:
        assert ns_edges == []
    else:
        assert {e.source for e in ns_edges} <= {node_names[0]}
        assert sorted(e.target for e in ns_edges) == sorted(_hub_ids(graph).values())


@given(node_names=_node_names, placements=_placements)
@settings(max_examples=100)
def test_ids_unique_and_only_unnamespaced_clashes_skipped(node_names, placements) -> None:
    aggregate, _ = _cluster(node_names, placements)
    graph = build_topology_graph(aggregate)

    ids = [element.id for element in graph.elements]
    unnamespaced = {name for name, namespace, _ in placements if not namespace}
    referenced = {namespace for _, namespace, _ in placements if namespace}

    assert len(ids) == len(set(ids))
    assert all(s.kind == "pod" and s.ref in unnamespaced for s in graph.skipped)
    assert len(graph.nodes) == len(node_names) + 2 * len(referenced) + len(placements) - len(graph.skipped)
