"""Transport-level response schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Envelope for every non-2xx response: ``{status, message}``."""

    status: int
    message: dict[str, Any]


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class GraphElement(BaseModel):
    """One Cytoscape-style element as consumed by the render adapter."""

    group: Literal["nodes", "edges"]
    data: dict[str, Any]
    classes: list[str] = Field(default_factory=list)


class SkippedEntityOut(BaseModel):
    kind: str
    reason: str
    ref: str = ""


class GraphElementsResponse(BaseModel):
    elements: list[GraphElement]
    skipped: list[SkippedEntityOut] = Field(default_factory=list)
