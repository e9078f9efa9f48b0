"""Collects worker results in ID order and writes the staged corpus."""

from __future__ import annotations

import csv
import shutil
from concurrent.futures import Future
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, TextIO, Tuple, Union

from .errors import BaselineError, PoolFault
from .logging import get_logger
from .models import Dialect, ErasureResult, ManifestRow, Task, ValidationResult

logger = get_logger("aggregator")

MANIFEST_FILENAME = "_list.csv"

Result = Union[ValidationResult, ErasureResult]
Pending = Tuple[Task, "Future[Optional[Result]]"]


@dataclass
class RunSummary:
    untyped_accepted: int = 0
    untyped_rejected: int = 0
    typed_accepted: int = 0
    typed_rejected: int = 0

    @property
    def accepted(self) -> int:
        return self.untyped_accepted + self.typed_accepted

    @property
    def rejected(self) -> int:
        return self.untyped_rejected + self.typed_rejected

    @property
    def total(self) -> int:
        return self.accepted + self.rejected


class ManifestWriter:
    """Writes manifest rows and artifacts into the staging directory."""

    def __init__(self, staging_dir: Path, corpus_root: Path) -> None:
        self.staging_dir = Path(staging_dir).resolve()
        self.corpus_root = Path(corpus_root).resolve()
        self._handle: Optional[TextIO] = None
        self._writer = None

    @property
    def manifest_path(self) -> Path:
        return self.staging_dir / MANIFEST_FILENAME

    def reset(self) -> None:
        """Remove and recreate the staging directory."""
        if self.staging_dir == self.corpus_root or self.staging_dir in self.corpus_root.parents:
            raise BaselineError(
                f"Refusing to wipe {self.staging_dir}: it contains the corpus root"
            )
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)
        self.staging_dir.mkdir(parents=True)

    def __enter__(self) -> "ManifestWriter":
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        self._handle = self.manifest_path.open("w", encoding="utf-8", newline="")
        self._writer = csv.writer(self._handle, lineterminator="\n")
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._writer = None

    def write_untyped(self, result: ValidationResult) -> None:
        shutil.copyfile(result.path, self.staging_dir / str(result.id))
        self._append(ManifestRow(result.id, self._relative(result.path), Dialect.UNTYPED, result.kind))

    def write_typed(self, result: ErasureResult) -> None:
        _write_text(self.staging_dir / f"{result.id}.input", result.typed_source)
        _write_text(self.staging_dir / f"{result.id}.output", result.untyped_output)
        self._append(ManifestRow(result.id, self._relative(result.path), Dialect.TYPED, result.kind))

    def _append(self, row: ManifestRow) -> None:
        if self._writer is None:
            raise BaselineError("ManifestWriter must be used as a context manager")
        self._writer.writerow(row.as_record())

    def _relative(self, path: str) -> str:
        return Path(path).resolve().relative_to(self.corpus_root).as_posix()


def _write_text(path: Path, text: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(text)


def aggregate(
    untyped: Sequence[Pending],
    typed: Sequence[Pending],
    writer: ManifestWriter,
    *,
    progress_every: int = 500,
    on_result: Optional[Callable[[Task, Optional[Result]], None]] = None,
) -> RunSummary:
    """Wait for every future in submission order and record accepted files."""
    summary = RunSummary()
    total = len(untyped) + len(typed)
    resolved_count = 0

    for dialect, pending in ((Dialect.UNTYPED, untyped), (Dialect.TYPED, typed)):
        for task, future in pending:
            result = _wait(task, future)
            if on_result is not None:
                on_result(task, result)

            if result is None:
                if dialect is Dialect.UNTYPED:
                    summary.untyped_rejected += 1
                else:
                    summary.typed_rejected += 1
            elif isinstance(result, ErasureResult):
                writer.write_typed(result)
                summary.typed_accepted += 1
            else:
                writer.write_untyped(result)
                summary.untyped_accepted += 1

            resolved_count += 1
            if progress_every and resolved_count % progress_every == 0:
                logger.debug("Resolved %d/%d results", resolved_count, total)

    logger.info(
        "Accepted %d of %d files (%d untyped, %d typed)",
        summary.accepted,
        summary.total,
        summary.untyped_accepted,
        summary.typed_accepted,
    )
    return summary


def _wait(task: Task, future: "Future[Optional[Result]]") -> Optional[Result]:
    try:
        return future.result()
    except BrokenProcessPool as exc:
        raise PoolFault(f"Worker pool failed while processing {task.path}: {exc}") from exc


__all__ = ["MANIFEST_FILENAME", "ManifestWriter", "RunSummary", "aggregate"]
