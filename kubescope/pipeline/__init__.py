"""Aggregation pipelines.

Exposes:
    Pipeline, PipelineContext, Stage -- the ordered stage runner.
    build_*_pipeline                 -- one factory per dashboard endpoint.
"""

from kubescope.pipeline.base import ASSEMBLE_STAGE, Pipeline, PipelineContext, Stage
from kubescope.pipeline.stages import (
    build_delete_pod_pipeline,
    build_node_health_pipeline,
    build_pods_pipeline,
    build_prometheus_pipeline,
    build_topology_pipeline,
)

__all__ = [
    "ASSEMBLE_STAGE",
    "Pipeline",
    "PipelineContext",
    "Stage",
    "build_delete_pod_pipeline",
    "build_node_health_pipeline",
    "build_pods_pipeline",
    "build_prometheus_pipeline",
    "build_topology_pipeline",
]
