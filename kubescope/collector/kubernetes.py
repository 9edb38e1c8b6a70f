"""Kubernetes API fetchers backed by kubernetes-asyncio.

Every public coroutine performs exactly one logical fetch and either returns
plain JSON-shaped dicts (camelCase keys, as served by the API) or raises
:class:`~kubescope.errors.FetchError`.  No caching and no retries happen here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp
import structlog
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from kubescope.errors import FetchError
from kubescope.models.config import KubernetesConfig

_log = structlog.get_logger(component="collector.kubernetes")

_METRICS_GROUP = "metrics.k8s.io"
_METRICS_VERSION = "v1beta1"

# Exceptions that mean "the API could not be reached or refused the call".
_CLIENT_ERRORS = (ApiException, aiohttp.ClientError, asyncio.TimeoutError)


class KubernetesFetcher:
    """Thin async facade over CoreV1Api, AppsV1Api and CustomObjectsApi.

    Args:
        api_client:      A configured ``kubernetes_asyncio.client.ApiClient``.
        request_timeout: Per-call timeout in seconds passed as ``_request_timeout``.
    """

    def __init__(self, api_client: Any, request_timeout: int = 30) -> None:
        self._api_client = api_client
        self._core = k8s_client.CoreV1Api(api_client)
        self._apps = k8s_client.AppsV1Api(api_client)
        self._custom = k8s_client.CustomObjectsApi(api_client)
        self._timeout = request_timeout

    async def list_nodes(self) -> list[dict[str, Any]]:
        return await self._list("nodes", self._core.list_node)

    async def list_pods(self) -> list[dict[str, Any]]:
        return await self._list("pods", self._core.list_pod_for_all_namespaces)

    async def list_services(self) -> list[dict[str, Any]]:
        return await self._list("services", self._core.list_service_for_all_namespaces)

    async def list_deployments(self) -> list[dict[str, Any]]:
        return await self._list("deployments", self._apps.list_deployment_for_all_namespaces)

    async def get_node_metrics(self, name: str) -> dict[str, Any] | None:
        """Return the ``metrics.k8s.io`` NodeMetrics object for *name*.

        Returns None when metrics-server has no sample for the node yet (404).
        """
        try:
            return await self._custom.get_cluster_custom_object(
                _METRICS_GROUP,
                _METRICS_VERSION,
                "nodes",
                name,
                _request_timeout=self._timeout,
            )
        except ApiException as exc:
            if exc.status == 404:
                _log.debug("node_metrics_missing", node=name)
                return None
            raise FetchError(f"node_metrics/{name}", exc) from exc
        except _CLIENT_ERRORS as exc:
            raise FetchError(f"node_metrics/{name}", exc) from exc

    async def delete_pod(self, namespace: str, name: str) -> dict[str, Any]:
        """Request deletion of a pod and return the API's view of it."""
        try:
            result = await self._core.delete_namespaced_pod(
                name,
                namespace,
                _request_timeout=self._timeout,
            )
        except _CLIENT_ERRORS as exc:
            raise FetchError(f"pod/{namespace}/{name}", exc) from exc
        _log.info("pod_delete_requested", namespace=namespace, pod=name)
        return self._api_client.sanitize_for_serialization(result)  # type: ignore[no-any-return]

    async def close(self) -> None:
        await self._api_client.close()

    async def _list(
        self,
        resource: str,
        list_fn: Callable[..., Awaitable[Any]],
    ) -> list[dict[str, Any]]:
        try:
            response = await list_fn(_request_timeout=self._timeout)
        except _CLIENT_ERRORS as exc:
            raise FetchError(resource, exc) from exc
        items = self._api_client.sanitize_for_serialization(response.items)
        _log.debug("listed", resource=resource, count=len(items))
        return items  # type: ignore[no-any-return]


async def connect(config: KubernetesConfig) -> KubernetesFetcher:
    """Load in-cluster config, falling back to kubeconfig, and build a fetcher."""
    try:
        k8s_config.load_incluster_config()
        _log.info("k8s client configured from in-cluster service account")
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config(context=config.context or None)
        _log.info("k8s client configured from kubeconfig", context=config.context or "current")

    return KubernetesFetcher(k8s_client.ApiClient(), request_timeout=config.request_timeout)
