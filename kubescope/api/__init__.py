"""REST API layer for kubescope.

Exposes:
    create_app -- FastAPI application factory.
    build_app  -- Alias for create_app (used by kubescope.app bootstrap).
"""

from kubescope.api.app import create_app

build_app = create_app

__all__ = ["build_app", "create_app"]
