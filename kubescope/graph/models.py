"""Data structures for the cluster topology graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ElementKind(StrEnum):
    """Kinds of graph nodes; the value doubles as the primary style class."""

    CLUSTER_NODE = "cluster-node"
    NAMESPACE_PARENT = "namespace-parent"
    NAMESPACE = "namespace"
    POD = "pod"


class EdgeKind(StrEnum):
    """Kinds of graph edges; the value is the style class."""

    NODE_TO_NAMESPACE = "node-to-namespace"
    NAMESPACE_TO_POD = "namespace-to-pod"


@dataclass(frozen=True)
class GraphNode:
    """A node element.

    ``parent`` is a containment relation (compound node), not an edge.
    ``renderable`` marks elements the render adapter attaches its own
    per-node payload to; grouping elements are drawn as plain boxes.
    """

    id: str
    label: str
    kind: ElementKind
    group: str | None = None  # "namespace<N>" display tag
    parent: str | None = None
    renderable: bool = True

    @property
    def classes(self) -> list[str]:
        return [self.kind.value] + ([self.group] if self.group else [])

    def to_element(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "label": self.label, "renderable": self.renderable}
        if self.parent is not None:
            data["parent"] = self.parent
        return {"group": "nodes", "data": data, "classes": self.classes}


@dataclass(frozen=True)
class GraphEdge:
    """A directed, typed edge between two node elements."""

    source: str
    target: str
    kind: EdgeKind

    @property
    def id(self) -> str:
        return f"{self.source}->{self.target}"

    def to_element(self) -> dict[str, Any]:
        return {
            "group": "edges",
            "data": {"id": self.id, "source": self.source, "target": self.target},
            "classes": [self.kind.value],
        }


@dataclass(frozen=True)
class SkippedEntity:
    """Diagnostic for an entity the builder left out of the graph."""

    kind: str
    reason: str
    ref: str = ""


@dataclass
class GraphModel:
    """Ordered graph elements produced by one build.

    Never mutated after the builder returns; a new fetch cycle produces a new
    model.
    """

    elements: list[GraphNode | GraphEdge] = field(default_factory=list)
    skipped: list[SkippedEntity] = field(default_factory=list)

    @property
    def nodes(self) -> list[GraphNode]:
        return [e for e in self.elements if isinstance(e, GraphNode)]

    @property
    def edges(self) -> list[GraphEdge]:
        return [e for e in self.elements if isinstance(e, GraphEdge)]

    def get(self, element_id: str) -> GraphNode | GraphEdge | None:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def __len__(self) -> int:
        return len(self.elements)

    def to_elements(self) -> list[dict[str, Any]]:
        """Render every element as Cytoscape-style JSON, in build order."""
        return [element.to_element() for element in self.elements]
