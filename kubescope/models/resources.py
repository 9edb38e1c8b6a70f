"""Wire schema for Kubernetes entities and aggregate responses.

The models validate the JSON that crosses the transport boundary.  They keep
unknown fields (``extra="allow"``) so a raw Kubernetes object survives a
validate/dump round trip unchanged, and they accept both the camelCase wire
names and the snake_case attribute names.

Identity fields (``metadata.name``, ``metadata.namespace``) are optional on
purpose: the graph builder, not the schema, decides what to do with an entity
that lacks them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _KubeModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class ObjectMeta(_KubeModel):
    """Subset of ``metadata`` the dashboard reads."""

    name: str | None = None
    namespace: str | None = None
    uid: str | None = None
    labels: dict[str, str] | None = None


class Container(_KubeModel):
    name: str | None = None
    image: str | None = None


class PodSpec(_KubeModel):
    node_name: str | None = Field(default=None, alias="nodeName")
    containers: list[Container] = Field(default_factory=list)


class ClusterNode(_KubeModel):
    """A compute host.  Identity is ``metadata.name``."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: dict[str, Any] = Field(default_factory=dict)
    status: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str | None:
        return self.metadata.name


class Pod(_KubeModel):
    """A pod.  Identity is the bare ``metadata.name``."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)
    status: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str | None:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    @property
    def node_name(self) -> str | None:
        return self.spec.node_name

    @property
    def primary_container_name(self) -> str | None:
        """Name of the first container, used only as a display label."""
        if not self.spec.containers:
            return None
        return self.spec.containers[0].name


class AggregateResponse(_KubeModel):
    """Nodes, pods, services and deployments gathered by one topology pipeline run.

    All four lists are required.  Services and deployments are carried
    verbatim and are not interpreted by the graph builder.
    """

    node_list: list[ClusterNode] = Field(alias="nodeList")
    pods: list[Pod]
    services: list[dict[str, Any]]
    deployments: list[dict[str, Any]]

    def to_wire(self) -> dict[str, Any]:
        """Serialise to the ``{nodeList, pods, services, deployments}`` JSON shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Pipeline summaries
# ---------------------------------------------------------------------------


class NodeHealth(BaseModel):
    """Memory and CPU usage summary for one cluster node.

    Quantity fields are None when the node did not report a parseable value.
    """

    name: str
    ready: bool
    memory_capacity_bytes: int | None = None
    memory_allocatable_bytes: int | None = None
    memory_usage_bytes: int | None = None
    memory_usage_percent: float | None = None
    cpu_capacity_millicores: int | None = None
    cpu_usage_millicores: int | None = None


class PodSummary(BaseModel):
    """Flattened pod view returned by the pod listing endpoint."""

    name: str
    namespace: str
    node_name: str | None = None
    phase: str = "Unknown"
    containers: list[str] = Field(default_factory=list)
    restart_count: int = 0


class DeletedPod(BaseModel):
    """Confirmation returned after a pod deletion request was accepted."""

    name: str
    namespace: str
    uid: str | None = None
    status: str = "deleted"
