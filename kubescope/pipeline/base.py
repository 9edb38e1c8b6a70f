"""Ordered fetch pipeline with a shared per-request context.

A :class:`Pipeline` runs its stages strictly in declaration order.  Each stage
reads whatever earlier stages put into the :class:`PipelineContext` and writes
its own result under its key.  The first failing stage aborts the run; the
caller gets a single :class:`~kubescope.errors.PipelineFailure` naming that
stage, with the original exception chained.  No partial result is ever
assembled.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from kubescope.errors import PipelineFailure

_log = structlog.get_logger(component="pipeline")

T = TypeVar("T")

# Stage name reported when every fetch succeeded but building the result failed.
ASSEMBLE_STAGE = "assemble"


class PipelineContext(Mapping[str, Any]):
    """Per-invocation store of stage results.

    Only the pipeline writes to it.  Reading a key no earlier stage produced
    raises ``KeyError`` with the list of available keys.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def __getitem__(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError:
            raise KeyError(f"{key!r} not in pipeline context (have: {sorted(self._data)})") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def _set(self, key: str, value: Any) -> None:
        self._data[key] = value


@dataclass(frozen=True)
class Stage:
    """One fetch step.

    Attributes:
        name: Stage name reported in failures and logs.
        run:  Coroutine function receiving the context built so far.
        key:  Context key for the result; defaults to ``name``.
    """

    name: str
    run: Callable[[PipelineContext], Awaitable[Any]]
    key: str = ""

    @property
    def result_key(self) -> str:
        return self.key or self.name


class Pipeline(Generic[T]):
    """A named, ordered sequence of stages plus an assembly function."""

    def __init__(
        self,
        name: str,
        stages: Sequence[Stage],
        assemble: Callable[[PipelineContext], T],
    ) -> None:
        if not stages:
            raise ValueError("Pipeline requires at least one stage")
        keys = [stage.result_key for stage in stages]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate stage keys in pipeline {name!r}: {keys}")
        self.name = name
        self.stages = tuple(stages)
        self._assemble = assemble

    async def run(self) -> T:
        """Execute every stage in order and assemble the result.

        Raises:
            PipelineFailure: wrapping the first stage exception, or the
                assembly error (stage ``"assemble"``).
        """
        context = PipelineContext()
        log = _log.bind(pipeline=self.name)

        for stage in self.stages:
            try:
                result = await stage.run(context)
            except Exception as exc:
                log.warning("stage_failed", stage=stage.name, error=str(exc))
                raise PipelineFailure(self.name, stage.name, exc) from exc
            context._set(stage.result_key, result)
            log.debug("stage_completed", stage=stage.name)

        try:
            return self._assemble(context)
        except Exception as exc:
            log.warning("assembly_failed", error=str(exc))
            raise PipelineFailure(self.name, ASSEMBLE_STAGE, exc) from exc

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, stages={[s.name for s in self.stages]})"
