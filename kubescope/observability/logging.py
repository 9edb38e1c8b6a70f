"""Structured logging for kubescope.

kubescope code logs through structlog.  uvicorn and kubernetes-asyncio log
through the standard library; their records are passed through the same
timestamp and level processors and rendered as JSON too, so stderr carries
exactly one JSON object per line whatever the source.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

# Libraries that log request/response bodies at DEBUG.  They never go below
# WARNING, even when kubescope itself runs at debug.
_QUIET_LOGGERS = ("uvicorn.access", "kubernetes_asyncio.client.rest", "httpx", "httpcore")


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
    ]


def setup_logging(level: str = "info", stream: IO[str] | None = None) -> None:
    """Configure structlog and the stdlib root logger for JSON output.

    Args:
        level:  Minimum level name (``debug``, ``info``, ``warning``, ``error``).
        stream: Output stream; stderr when omitted.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    output = stream or sys.stderr

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(output)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*_shared_processors(), structlog.stdlib.add_logger_name],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
