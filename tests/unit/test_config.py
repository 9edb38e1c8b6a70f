"""Tests for environment-based configuration loading."""

from __future__ import annotations

import pytest

from kubescope.config import load_config


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "API_PORT",
        "API_HOST",
        "LOG_LEVEL",
        "PROMETHEUS_URL",
        "PROMETHEUS_TIMEOUT",
        "KUBE_CONTEXT",
        "KUBE_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(f"KUBESCOPE_{key}", raising=False)

    config = load_config()

    assert config.api.port == 8888
    assert config.api.host == "0.0.0.0"
    assert config.log.level == "info"
    assert config.prometheus.url == "http://localhost:9090"
    assert config.prometheus.timeout_seconds == 10
    assert config.kubernetes.context == ""
    assert config.kubernetes.request_timeout == 30


def test_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KUBESCOPE_API_PORT", "9000")
    monkeypatch.setenv("KUBESCOPE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("KUBESCOPE_PROMETHEUS_URL", "https://prom.example.com/")
    monkeypatch.setenv("KUBESCOPE_KUBE_CONTEXT", "staging")

    config = load_config()

    assert config.api.port == 9000
    assert config.log.level == "debug"
    assert config.prometheus.url == "https://prom.example.com"
    assert config.kubernetes.context == "staging"


def test_numeric_values_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KUBESCOPE_API_PORT", "80")
    monkeypatch.setenv("KUBESCOPE_PROMETHEUS_TIMEOUT", "999")
    monkeypatch.setenv("KUBESCOPE_KUBE_REQUEST_TIMEOUT", "0")

    config = load_config()

    assert config.api.port == 1024
    assert config.prometheus.timeout_seconds == 120
    assert config.kubernetes.request_timeout == 1


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("LOG_LEVEL", "verbose"),
        ("PROMETHEUS_URL", "prometheus:9090"),
        ("PROMETHEUS_URL", "ftp://prom"),
        ("API_PORT", "not-a-number"),
    ],
)
def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(f"KUBESCOPE_{key}", value)
    with pytest.raises(ValueError):
        load_config()
