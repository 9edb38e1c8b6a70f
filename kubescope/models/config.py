"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubernetesConfig:
    """Kubernetes API client configuration."""

    context: str = ""
    request_timeout: int = 30


@dataclass
class PrometheusConfig:
    """Prometheus HTTP API configuration."""

    url: str = "http://localhost:9090"
    timeout_seconds: int = 10


@dataclass
class APIConfig:
    """REST API configuration."""

    host: str = "0.0.0.0"
    port: int = 8888


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeScopeConfig:
    """Top-level kubescope configuration."""

    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    prometheus: PrometheusConfig = field(default_factory=PrometheusConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
