"""Application bootstrap for kubescope.

Startup order: config -> logging -> K8s client -> Prometheus client -> REST.

Every component that starts successfully pushes a closer onto a stack;
``stop()`` pops the stack, so teardown is always the exact reverse of what
actually started.  A failing closer is logged and the rest still run.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from kubescope import __version__
from kubescope.collector.kubernetes import KubernetesFetcher
from kubescope.collector.kubernetes import connect as connect_kubernetes
from kubescope.collector.prometheus import PrometheusClient
from kubescope.config import load_config
from kubescope.models.config import KubeScopeConfig
from kubescope.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15

_Closer = Callable[[], Awaitable[None]]


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeScopeApp:
    """Owns the fetchers and the REST server for one process.

    ``stop()`` is idempotent and safe on an app that never started.
    """

    def __init__(self, config: KubeScopeConfig | None = None) -> None:
        self.config = config
        self.kube_fetcher: KubernetesFetcher | None = None
        self.prometheus: PrometheusClient | None = None

        self._server: Any = None
        self._server_task: asyncio.Task[None] | None = None
        self._closers: list[tuple[str, _Closer]] = []
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start every component in dependency order.

        Raises:
            _ComponentError: naming the first component that failed.
        """
        if self.config is None:
            self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kubescope_starting", version=__version__)

        self.kube_fetcher = await self._start("k8s_client", self._connect_kubernetes)
        self._closers.append(("k8s_client", self.kube_fetcher.close))

        self.prometheus = await self._start("prometheus", self._connect_prometheus)
        self._closers.append(("prometheus", self.prometheus.close))

        await self._start("rest", self._start_rest)
        self._closers.append(("rest", self._stop_rest))

        self._running = True
        self._log.info("kubescope_started", host=self.config.api.host, port=self.config.api.port)

    async def _start(self, name: str, starter: Callable[[], Awaitable[Any]]) -> Any:
        assert self._log is not None
        self._log.debug("component_starting", component=name)
        try:
            return await starter()
        except Exception as exc:
            raise _ComponentError(name, exc) from exc

    async def _connect_kubernetes(self) -> KubernetesFetcher:
        assert self.config is not None
        return await connect_kubernetes(self.config.kubernetes)

    async def _connect_prometheus(self) -> PrometheusClient:
        assert self.config is not None
        return PrometheusClient(self.config.prometheus.url, timeout=self.config.prometheus.timeout_seconds)

    async def _start_rest(self) -> None:
        import uvicorn

        from kubescope.api import build_app

        assert self.config is not None
        fastapi_app = build_app(
            kube_fetcher=self.kube_fetcher,
            prometheus=self.prometheus,
            config=self.config,
        )
        server = uvicorn.Server(
            uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # root logger is already JSON via setup_logging
                access_log=False,
            )
        )
        self._server = server
        self._server_task = asyncio.create_task(server.serve(), name="rest-server")
        self._server_task.add_done_callback(self._on_server_exit)

    def _on_server_exit(self, task: asyncio.Task[None]) -> None:
        # uvicorn returning on its own (bind failure, its own signal handling)
        # ends the process main loop.
        if self._running and self._log is not None:
            self._log.warning("rest_server_exited", cancelled=task.cancelled())
        self._running = False

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Run the closers of every started component in reverse order."""
        if not self._closers and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kubescope_stopping")
        self._running = False

        while self._closers:
            name, closer = self._closers.pop()
            try:
                await asyncio.wait_for(closer(), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("component_close_timed_out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
            except Exception as exc:
                log.error("component_close_failed", component=name, error=str(exc))

        self.kube_fetcher = None
        self.prometheus = None
        log.info("kubescope_stopped")

    async def _stop_rest(self) -> None:
        """Ask uvicorn to drain, cancelling it only if the grace period runs out."""
        if self._server is not None:
            self._server.should_exit = True
        task, self._server_task = self._server_task, None
        self._server = None
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=_SHUTDOWN_GRACE_SECONDS - 1)
        except TimeoutError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: KubeScopeConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeScopeApp(config)
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await app.start()
        while app.running and not shutdown.is_set():
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=1)
            except TimeoutError:
                continue
    except _ComponentError as exc:
        get_logger("app").critical("fatal_startup_error", component=exc.component, error=str(exc.cause))
        raise SystemExit(1) from exc
    finally:
        await app.stop()
