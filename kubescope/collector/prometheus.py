"""Prometheus HTTP API client.

Only the two query endpoints the dashboard forwards are implemented:

    GET /api/v1/query?query=<promql>
    GET /api/v1/query_range?query=<promql>&start=<ts>&end=<ts>&step=<step>

The ``data`` member of a successful response is returned unchanged; any
transport error, non-2xx status or ``"status": "error"`` body raises
:class:`~kubescope.errors.FetchError`.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from kubescope.errors import FetchError

_log = structlog.get_logger(component="collector.prometheus")


class PrometheusClient:
    """Async Prometheus query client.

    Args:
        base_url:  Prometheus root URL, e.g. ``http://prometheus:9090``.
        timeout:   HTTP request timeout in seconds.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Prometheus base_url must not be empty")
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    async def query(self, promql: str) -> dict[str, Any]:
        """Run an instant query."""
        return await self._get("/api/v1/query", {"query": promql})

    async def query_range(self, promql: str, start: str, end: str, step: str) -> dict[str, Any]:
        """Run a range query over ``[start, end]`` at *step* resolution."""
        return await self._get(
            "/api/v1/query_range",
            {"query": promql, "start": start, "end": end, "step": step},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            _log.warning("prometheus_request_timeout", path=path, url=self._base_url)
            raise FetchError("prometheus", exc) from exc
        except httpx.HTTPError as exc:
            _log.warning("prometheus_http_error", path=path, error=str(exc))
            raise FetchError("prometheus", exc) from exc

        if not response.is_success:
            _log.warning(
                "prometheus_non_2xx_response",
                path=path,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise FetchError("prometheus", f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise FetchError("prometheus", exc) from exc
        if not isinstance(body, dict):
            raise FetchError("prometheus", "unexpected response body")
        if body.get("status") != "success":
            raise FetchError("prometheus", body.get("error", "query failed"))
        return body.get("data", {})  # type: ignore[no-any-return]
