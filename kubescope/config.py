"""Configuration loading from environment variables."""

from __future__ import annotations

import os
from urllib.parse import urlparse

from kubescope.models.config import (
    APIConfig,
    KubernetesConfig,
    KubeScopeConfig,
    LogConfig,
    PrometheusConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBESCOPE_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError:
        raise ValueError(f"KUBESCOPE_{key} must be an integer, got {raw!r}") from None
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid Prometheus URL: {value!r}")
    return value.rstrip("/")


def load_config() -> KubeScopeConfig:
    """Load configuration from KUBESCOPE_* environment variables."""
    return KubeScopeConfig(
        kubernetes=KubernetesConfig(
            context=_env("KUBE_CONTEXT", ""),
            request_timeout=_env_int("KUBE_REQUEST_TIMEOUT", 30, min_val=1, max_val=300),
        ),
        prometheus=PrometheusConfig(
            url=_validate_url(_env("PROMETHEUS_URL", "http://localhost:9090")),
            timeout_seconds=_env_int("PROMETHEUS_TIMEOUT", 10, min_val=1, max_val=120),
        ),
        api=APIConfig(
            host=_env("API_HOST", "0.0.0.0"),
            port=_env_int("API_PORT", 8888, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
