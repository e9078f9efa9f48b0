"""Pipeline orchestration: walk, dispatch, aggregate."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .aggregator import ManifestWriter, Pending, Result, RunSummary, aggregate
from .config import BaselineConfig
from .dispatcher import ClassifyRequest, EraseRequest, TaskDispatcher, resolved
from .logging import get_logger
from .models import Task
from .stores import CachedOutcome, ResultCache, cache_key
from .toolchain.formatter import Formatter
from .walker import CorpusWalker, WalkResult


@dataclass
class PipelineOutcome:
    """What a pipeline run produced."""

    staging_dir: Path
    manifest_path: Path
    summary: RunSummary
    cache_hits: int = 0


class Pipeline:
    """Runs one corpus generation pass as configured by :class:`BaselineConfig`."""

    def __init__(
        self,
        config: BaselineConfig,
        *,
        walker: CorpusWalker | None = None,
        cache: ResultCache | None = None,
        use_cache: bool = True,
        progress_every: int = 500,
    ) -> None:
        self.config = config
        self.walker = walker or CorpusWalker(
            exclude_paths=config.exclude_paths,
            incompatible_paths=config.incompatible_paths,
            skip_dirs=[config.staging_dir],
        )
        self.formatter = Formatter(
            indent_size=config.formatter.indent_size,
            command=config.formatter.command,
        )
        if cache is None and use_cache and config.cache.enabled:
            cache = ResultCache(config.cache.path)
        self.cache = cache if use_cache else None
        self.progress_every = progress_every
        self.logger = get_logger("orchestrator")
        self._cache_keys: Dict[int, str] = {}
        self._cache_hits = 0

    def run(self, root: Path | str | None = None) -> PipelineOutcome:
        """Generate the corpus for ``root`` (defaults to the config root)."""
        corpus_root = Path(root or self.config.root).expanduser().resolve()
        self.logger.info("Starting corpus generation for %s", corpus_root)
        self.formatter.ensure_available()

        walk = self.walker.walk(corpus_root)
        writer = ManifestWriter(self.config.staging_dir, walk.root)
        writer.reset()
        self.logger.debug("Staging directory reset at %s", writer.staging_dir)

        self._cache_keys = {}
        self._cache_hits = 0
        with TaskDispatcher(self.config.workers) as dispatcher:
            untyped, typed = self._submit(walk, dispatcher)
            self.logger.info(
                "Submitted %d tasks to %d workers (%d from cache)",
                walk.total,
                self.config.workers,
                self._cache_hits,
            )
            with writer:
                summary = aggregate(
                    untyped,
                    typed,
                    writer,
                    progress_every=self.progress_every,
                    on_result=self._remember if self.cache is not None else None,
                )

        if self.cache is not None:
            self.cache.prune(set(self._cache_keys.values()))
            self.cache.persist()

        self.logger.info("Corpus written to %s", writer.staging_dir)
        return PipelineOutcome(
            staging_dir=writer.staging_dir,
            manifest_path=writer.manifest_path,
            summary=summary,
            cache_hits=self._cache_hits,
        )

    def _submit(
        self, walk: WalkResult, dispatcher: TaskDispatcher
    ) -> Tuple[List[Pending], List[Pending]]:
        untyped: List[Pending] = []
        for task in walk.untyped:
            future = self._cached(task)
            if future is None:
                future = dispatcher.submit_classify(ClassifyRequest(task))
            untyped.append((task, future))

        command = tuple(self.config.formatter.command)
        typed: List[Pending] = []
        for task in walk.typed:
            future = self._cached(task)
            if future is None:
                request = EraseRequest(
                    task,
                    indent_size=self.config.formatter.indent_size,
                    formatter_command=command,
                )
                future = dispatcher.submit_erase(request)
            typed.append((task, future))
        return untyped, typed

    def _cached(self, task: Task) -> Optional["Future[Optional[Result]]"]:
        if self.cache is None:
            return None
        try:
            data = Path(task.path).read_bytes()
        except OSError:
            return None
        key = cache_key(task.dialect, task.requested_kind, self.formatter.signature, data)
        self._cache_keys[task.id] = key
        outcome = self.cache.get(key)
        if outcome is None or outcome.dialect is not task.dialect:
            return None
        self._cache_hits += 1
        return resolved(outcome.to_result(task))

    def _remember(self, task: Task, result: Optional[Result]) -> None:
        key = self._cache_keys.get(task.id)
        if key is None or self.cache is None:
            return
        if self.cache.get(key) is None:
            self.cache.store(key, CachedOutcome.from_result(task.dialect, result))


def generate(config: BaselineConfig, root: Path | str | None = None) -> PipelineOutcome:
    """Convenience wrapper running a :class:`Pipeline` once."""
    return Pipeline(config).run(root)


__all__ = ["Pipeline", "PipelineOutcome", "generate"]
