"""Exceptions shared across the fetch, pipeline and graph layers."""

from __future__ import annotations


class FetchError(Exception):
    """An external collaborator (Kubernetes API, Prometheus) failed.

    Attributes:
        resource: What was being fetched, e.g. ``"pods"`` or ``"node_metrics/n1"``.
        cause:    The underlying client exception, if any.
    """

    def __init__(self, resource: str, cause: BaseException | str) -> None:
        super().__init__(f"Failed to fetch {resource}: {cause}")
        self.resource = resource
        self.cause = cause


class PipelineFailure(Exception):
    """Raised when a pipeline stage fails; no partial result is produced."""

    def __init__(self, pipeline: str, stage: str, cause: BaseException) -> None:
        super().__init__(f"Pipeline '{pipeline}' failed at stage '{stage}': {cause}")
        self.pipeline = pipeline
        self.stage = stage
        self.cause = cause

