"""Unit tests for the topology graph builder."""

from __future__ import annotations

from structlog.testing import capture_logs

from kubescope.graph import (
    EdgeKind,
    ElementKind,
    GraphEdge,
    GraphNode,
    build_topology_graph,
    namespace_parent_id,
)
from tests.factories import make_aggregate, make_deployment, make_node, make_pod, make_service


def _ids(graph) -> list[str]:
    return [element.id for element in graph.elements]


# ---------------------------------------------------------------------------
# Basic shape
# ---------------------------------------------------------------------------


class TestSingleNamespace:
    def test_one_node_two_pods_in_one_namespace(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1")],
                pods=[make_pod("p1", "a"), make_pod("p2", "a")],
            )
        )

        assert _ids(graph) == ["n1", "a_parent", "a", "n1->a", "p1", "a->p1", "p2", "a->p2"]
        assert len(graph.nodes) == 5
        assert len(graph.edges) == 3
        assert graph.skipped == []

    def test_pods_and_hub_are_contained_in_namespace_parent(self) -> None:
        graph = build_topology_graph(
            make_aggregate(nodes=[make_node("n1")], pods=[make_pod("p1", "a"), make_pod("p2", "a")])
        )

        assert graph.get("p1").parent == "a_parent"
        assert graph.get("p2").parent == "a_parent"
        assert graph.get("a").parent == "a_parent"
        assert graph.get("a_parent").parent is None
        assert graph.get("n1").parent is None

    def test_element_kinds(self) -> None:
        graph = build_topology_graph(make_aggregate(nodes=[make_node("n1")], pods=[make_pod("p1", "a")]))

        assert graph.get("n1").kind is ElementKind.CLUSTER_NODE
        assert graph.get("a_parent").kind is ElementKind.NAMESPACE_PARENT
        assert graph.get("a").kind is ElementKind.NAMESPACE
        assert graph.get("p1").kind is ElementKind.POD
        assert graph.get("n1->a").kind is EdgeKind.NODE_TO_NAMESPACE
        assert graph.get("a->p1").kind is EdgeKind.NAMESPACE_TO_POD

    def test_namespace_parent_is_not_renderable(self) -> None:
        graph = build_topology_graph(make_aggregate(nodes=[make_node("n1")], pods=[make_pod("p1", "a")]))

        assert graph.get("a_parent").renderable is False
        assert all(node.renderable for node in graph.nodes if node.kind is not ElementKind.NAMESPACE_PARENT)

    def test_pod_label_is_primary_container_name(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1")],
                pods=[make_pod("api-7f9c", "a", containers=["api", "sidecar"])],
            )
        )

        assert graph.get("api-7f9c").label == "api"

    def test_pod_without_containers_is_labelled_by_name(self) -> None:
        graph = build_topology_graph(
            make_aggregate(nodes=[make_node("n1")], pods=[make_pod("job-x", "a", containers=[])])
        )

        assert graph.get("job-x").label == "job-x"

    def test_namespace_parent_id(self) -> None:
        assert namespace_parent_id("kube-system") == "kube-system_parent"


# ---------------------------------------------------------------------------
# Namespace grouping
# ---------------------------------------------------------------------------


class TestNamespaceGrouping:
    def test_namespace_elements_created_once_for_many_pods(self) -> None:
        pods = [make_pod(f"p{i}", "busy") for i in range(25)]
        graph = build_topology_graph(make_aggregate(nodes=[make_node("n1")], pods=pods))

        hubs = [n for n in graph.nodes if n.kind is ElementKind.NAMESPACE]
        parents = [n for n in graph.nodes if n.kind is ElementKind.NAMESPACE_PARENT]
        assert [h.id for h in hubs] == ["busy"]
        assert [p.id for p in parents] == ["busy_parent"]
        assert len([e for e in graph.edges if e.kind is EdgeKind.NAMESPACE_TO_POD]) == 25

    def test_namespaces_indexed_in_first_seen_order(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1")],
                pods=[make_pod("p1", "zeta"), make_pod("p2", "alpha"), make_pod("p3", "zeta")],
            )
        )

        assert graph.get("zeta").group == "namespace0"
        assert graph.get("alpha").group == "namespace1"
        assert graph.get("p2").classes == ["pod", "namespace1"]
        assert _ids(graph)[1:7] == ["zeta_parent", "zeta", "n1->zeta", "alpha_parent", "alpha", "n1->alpha"]

    def test_every_namespace_edge_starts_at_first_cluster_node(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1"), make_node("n2")],
                pods=[make_pod("p1", "a", node="n2"), make_pod("p2", "b", node="n2")],
            )
        )

        ns_edges = [e for e in graph.edges if e.kind is EdgeKind.NODE_TO_NAMESPACE]
        assert [(e.source, e.target) for e in ns_edges] == [("n1", "a"), ("n1", "b")]

    def test_cluster_node_group_comes_from_first_scheduled_pod(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1"), make_node("n2"), make_node("idle")],
                pods=[
                    make_pod("p1", "a", node="n1"),
                    make_pod("p2", "b", node="n2"),
                    make_pod("p3", "a", node="n2"),
                ],
            )
        )

        assert graph.get("n1").group == "namespace0"
        assert graph.get("n2").group == "namespace1"
        assert graph.get("idle").group is None
        assert graph.get("idle").classes == ["cluster-node"]

    def test_namespace_index_is_local_to_each_build(self) -> None:
        build_topology_graph(make_aggregate(nodes=[make_node("n1")], pods=[make_pod("p1", "first")]))
        graph = build_topology_graph(make_aggregate(nodes=[make_node("n1")], pods=[make_pod("p1", "second")]))

        assert graph.get("second").group == "namespace0"


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestEdgeCases:
    def test_empty_response_builds_empty_graph(self) -> None:
        graph = build_topology_graph(make_aggregate())
        assert len(graph) == 0
        assert graph.skipped == []

    def test_zero_cluster_nodes_omits_namespace_edges(self) -> None:
        graph = build_topology_graph(make_aggregate(nodes=[], pods=[make_pod("p1", "a", node=None)]))

        assert _ids(graph) == ["a_parent", "a", "p1", "a->p1"]
        assert not [e for e in graph.edges if e.kind is EdgeKind.NODE_TO_NAMESPACE]

    def test_pods_with_falsy_namespace_get_no_group(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1")],
                pods=[make_pod("p1", ""), make_pod("p2", None), make_pod("p3", "a")],
            )
        )

        assert [n.id for n in graph.nodes if n.kind is ElementKind.NAMESPACE] == ["a"]
        assert graph.get("p1").parent is None
        assert graph.get("p2").parent is None
        assert not [e for e in graph.edges if e.target in ("p1", "p2")]
        assert graph.get("_parent") is None

    def test_nameless_node_is_skipped_and_next_node_anchors(self) -> None:
        with capture_logs() as logs:
            graph = build_topology_graph(
                make_aggregate(nodes=[make_node(None), make_node("n2")], pods=[make_pod("p1", "a", node="n2")])
            )

        assert graph.get("n2->a") is not None
        assert [(s.kind, s.reason) for s in graph.skipped] == [("ClusterNode", "missing metadata.name")]
        assert any(entry["event"] == "graph_entity_skipped" for entry in logs)

    def test_nameless_pod_is_skipped(self) -> None:
        graph = build_topology_graph(
            make_aggregate(nodes=[make_node("n1")], pods=[make_pod(None, "a"), make_pod("p2", "a")])
        )

        assert _ids(graph) == ["n1", "a_parent", "a", "n1->a", "p2", "a->p2"]
        assert graph.skipped[0].kind == "Pod"
        assert graph.skipped[0].ref == "a"

    def test_same_pod_name_in_two_namespaces_keeps_first(self) -> None:
        graph = build_topology_graph(
            make_aggregate(nodes=[make_node("n1")], pods=[make_pod("web", "a"), make_pod("web", "b")])
        )

        pods = [n for n in graph.nodes if n.kind is ElementKind.POD]
        assert len(pods) == 1
        assert pods[0].parent == "a_parent"
        assert graph.get("b->web") is None
        assert graph.get("b") is not None
        assert [(s.kind, s.ref) for s in graph.skipped] == [("pod", "web")]

    def test_node_named_like_namespace_qualifies_the_hub(self) -> None:
        graph = build_topology_graph(make_aggregate(nodes=[make_node("a")], pods=[make_pod("p1", "a", node="a")]))

        assert _ids(graph) == ["a", "a_parent", "a/a", "a->a/a", "p1", "a/a->p1"]
        assert graph.get("a").kind is ElementKind.CLUSTER_NODE
        assert graph.get("a/a").kind is ElementKind.NAMESPACE
        assert graph.get("a/a").label == "a"
        assert graph.get("p1").parent == "a_parent"
        assert graph.skipped == []

    def test_pod_named_like_its_namespace_is_qualified(self) -> None:
        with capture_logs() as logs:
            graph = build_topology_graph(make_aggregate(nodes=[make_node("n1")], pods=[make_pod("web", "web")]))

        assert _ids(graph) == ["n1", "web_parent", "web", "n1->web", "web/web", "web->web/web"]
        pod = graph.get("web/web")
        assert pod.kind is ElementKind.POD
        assert pod.parent == "web_parent"
        assert pod.label == "web-app"
        assert graph.skipped == []
        assert any(entry["event"] == "graph_id_qualified" for entry in logs)

    def test_pod_named_like_cluster_node_or_grouping_element_is_qualified(self) -> None:
        graph = build_topology_graph(
            make_aggregate(
                nodes=[make_node("n1")],
                pods=[make_pod("p1", "a"), make_pod("n1", "b"), make_pod("a_parent", "b")],
            )
        )

        assert graph.get("n1").kind is ElementKind.CLUSTER_NODE
        assert graph.get("b/n1").parent == "b_parent"
        assert graph.get("b->b/n1") is not None
        assert graph.get("a_parent").kind is ElementKind.NAMESPACE_PARENT
        assert graph.get("b/a_parent").kind is ElementKind.POD
        assert graph.get("b->b/a_parent") is not None
        assert graph.skipped == []

    def test_services_and_deployments_do_not_change_graph(self) -> None:
        nodes = [make_node("n1")]
        pods = [make_pod("p1", "a")]
        plain = build_topology_graph(make_aggregate(nodes=nodes, pods=pods))
        enriched = build_topology_graph(
            make_aggregate(nodes=nodes, pods=pods, services=[make_service()], deployments=[make_deployment()])
        )

        assert plain.to_elements() == enriched.to_elements()

    def test_build_is_deterministic(self) -> None:
        aggregate = make_aggregate(
            nodes=[make_node("n1"), make_node("n2")],
            pods=[make_pod("p1", "a"), make_pod("p2", "b", node="n2"), make_pod("p3", "a")],
        )

        assert build_topology_graph(aggregate).to_elements() == build_topology_graph(aggregate).to_elements()


# ---------------------------------------------------------------------------
# Element serialisation
# ---------------------------------------------------------------------------


class TestElementSerialisation:
    def test_node_element(self) -> None:
        node = GraphNode(id="p1", label="app", kind=ElementKind.POD, group="namespace0", parent="a_parent")
        assert node.to_element() == {
            "group": "nodes",
            "data": {"id": "p1", "label": "app", "renderable": True, "parent": "a_parent"},
            "classes": ["pod", "namespace0"],
        }

    def test_node_element_without_parent_omits_key(self) -> None:
        node = GraphNode(id="n1", label="n1", kind=ElementKind.CLUSTER_NODE)
        assert "parent" not in node.to_element()["data"]
        assert node.to_element()["classes"] == ["cluster-node"]

    def test_edge_element(self) -> None:
        edge = GraphEdge(source="a", target="p1", kind=EdgeKind.NAMESPACE_TO_POD)
        assert edge.to_element() == {
            "group": "edges",
            "data": {"id": "a->p1", "source": "a", "target": "p1"},
            "classes": ["namespace-to-pod"],
        }
