"""Routes corpus tasks to a process pool and hands back futures."""

from __future__ import annotations

from concurrent.futures import Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, Tuple, TypeVar

from .errors import PoolFault
from .logging import configure_worker_logging, current_level, get_logger
from .models import ErasureResult, Task, ValidationResult
from .toolchain.formatter import Formatter
from .validators.typed import erase_file
from .validators.untyped import classify_file

logger = get_logger("dispatcher")

T = TypeVar("T")


@dataclass(frozen=True)
class ClassifyRequest:
    task: Task


@dataclass(frozen=True)
class EraseRequest:
    task: Task
    indent_size: int = 4
    formatter_command: Tuple[str, ...] = ()


@lru_cache(maxsize=None)
def _formatter(indent_size: int, command: Tuple[str, ...]) -> Formatter:
    return Formatter(indent_size=indent_size, command=command)


def run_classify(request: ClassifyRequest) -> Optional[ValidationResult]:
    """Worker entry point for the untyped stream."""
    task = request.task
    kind = classify_file(Path(task.path), task.requested_kind)
    if kind is None:
        return None
    return ValidationResult(id=task.id, path=task.path, kind=kind)


def run_erase(request: EraseRequest) -> Optional[ErasureResult]:
    """Worker entry point for the typed stream."""
    task = request.task
    formatter = _formatter(request.indent_size, request.formatter_command)
    output = erase_file(Path(task.path), task.requested_kind, formatter=formatter)
    if output is None:
        return None
    return ErasureResult(
        id=task.id,
        path=task.path,
        kind=output.kind,
        typed_source=output.typed_source,
        untyped_output=output.untyped_output,
    )


class TaskDispatcher:
    """Submits requests to a bounded worker pool.

    With ``workers=0`` requests run inline and the returned futures are
    already resolved.
    """

    def __init__(self, workers: int) -> None:
        if workers < 0:
            raise ValueError("workers must be zero or positive")
        self.workers = workers
        self._executor: Optional[ProcessPoolExecutor] = None

    def __enter__(self) -> "TaskDispatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def submit_classify(self, request: ClassifyRequest) -> "Future[Optional[ValidationResult]]":
        return self._submit(run_classify, request)

    def submit_erase(self, request: EraseRequest) -> "Future[Optional[ErasureResult]]":
        return self._submit(run_erase, request)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _submit(self, fn: Callable[..., T], request: object) -> "Future[T]":
        if self.workers == 0:
            return _run_inline(fn, request)
        executor = self._ensure_executor()
        try:
            return executor.submit(fn, request)
        except (BrokenProcessPool, RuntimeError) as exc:
            raise PoolFault(f"Failed to submit task to worker pool: {exc}") from exc

    def _ensure_executor(self) -> ProcessPoolExecutor:
        if self._executor is None:
            try:
                self._executor = ProcessPoolExecutor(
                    max_workers=self.workers,
                    initializer=configure_worker_logging,
                    initargs=(current_level(),),
                )
            except (OSError, ValueError) as exc:
                raise PoolFault(f"Unable to start worker pool: {exc}") from exc
            logger.debug("Started worker pool with %d processes", self.workers)
        return self._executor


def _run_inline(fn: Callable[..., T], request: object) -> "Future[T]":
    future: "Future[T]" = Future()
    try:
        future.set_result(fn(request))
    except Exception as exc:  # surfaced when the aggregator reads the future
        future.set_exception(exc)
    return future


def resolved(value: T) -> "Future[T]":
    """Return a future that already holds ``value``."""
    future: "Future[T]" = Future()
    future.set_result(value)
    return future


__all__ = [
    "ClassifyRequest",
    "EraseRequest",
    "TaskDispatcher",
    "resolved",
    "run_classify",
    "run_erase",
]
