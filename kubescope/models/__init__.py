"""Core data structures for kubescope."""

from kubescope.models.config import KubeScopeConfig
from kubescope.models.resources import (
    AggregateResponse,
    ClusterNode,
    Container,
    DeletedPod,
    NodeHealth,
    ObjectMeta,
    Pod,
    PodSpec,
    PodSummary,
)

__all__ = [
    "AggregateResponse",
    "ClusterNode",
    "Container",
    "DeletedPod",
    "KubeScopeConfig",
    "NodeHealth",
    "ObjectMeta",
    "Pod",
    "PodSpec",
    "PodSummary",
]
