"""Corpus walking: discovers candidate files and assigns their task IDs."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import CorpusEntry, Dialect, Task

logger = get_logger("walker")

# Longest suffixes first so `.d.ts` wins over `.ts`.
_DECLARATION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")

_CLASSIFICATION = {
    ".js": (Dialect.UNTYPED, None),
    ".mjs": (Dialect.UNTYPED, True),
    ".cjs": (Dialect.UNTYPED, False),
    ".ts": (Dialect.TYPED, None),
    ".mts": (Dialect.TYPED, True),
    ".cts": (Dialect.TYPED, False),
}


@dataclass
class IgnoreRule:
    """A gitignore-style exclusion parsed from ``exclude_paths``."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def classify_path(name: str) -> Optional[Tuple[Dialect, Optional[bool]]]:
    """Return ``(dialect, forced module flag)`` for a file name, or ``None`` to skip it."""
    lowered = name.lower()
    if lowered.endswith(_DECLARATION_SUFFIXES):
        return None
    return _CLASSIFICATION.get(os.path.splitext(lowered)[1])


def declares_module(directory: Path) -> bool:
    """Whether ``directory/package.json`` declares ``"type": "module"``."""
    manifest = directory / "package.json"
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError):
        return False
    return isinstance(data, dict) and data.get("type") == "module"


class IdAllocator:
    """Hands out consecutive task IDs for one walk."""

    def __init__(self, start: int = 0) -> None:
        self._next = start

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        return value

    @property
    def allocated(self) -> int:
        return self._next


@dataclass
class WalkResult:
    root: Path
    entries: List[CorpusEntry] = field(default_factory=list)
    untyped: List[Task] = field(default_factory=list)
    typed: List[Task] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.untyped) + len(self.typed)


class CorpusWalker:
    """Walks a corpus depth-first, files before subdirectories, in sorted order."""

    def __init__(
        self,
        *,
        exclude_paths: Iterable[str] = (),
        incompatible_paths: Iterable[str] = (),
        skip_dirs: Iterable[Path] = (),
    ) -> None:
        self._rules = [rule for rule in map(build_ignore_rule, exclude_paths) if rule is not None]
        self._incompatible = [path.strip("/") for path in incompatible_paths if path.strip("/")]
        self._skip_dirs = {Path(path).resolve() for path in skip_dirs}

    def walk(self, root: Path | str) -> WalkResult:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Corpus path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Corpus path is not a directory: {root}")

        ids = IdAllocator()
        result = WalkResult(root=root_path)
        stack: List[Tuple[Path, bool]] = [(root_path, False)]

        while stack:
            directory, parent_module = stack.pop()
            module_context = parent_module or declares_module(directory)
            files, subdirs = self._list(directory, root_path)

            for path in files:
                self._visit_file(path, root_path, module_context, ids, result)

            # Reversed so the first sorted subdirectory is popped next.
            for subdir in reversed(subdirs):
                stack.append((subdir, module_context))

        logger.info(
            "Discovered %d untyped and %d typed files under %s",
            len(result.untyped),
            len(result.typed),
            root_path,
        )
        return result

    def _list(self, directory: Path, root: Path) -> Tuple[List[Path], List[Path]]:
        files: List[Path] = []
        subdirs: List[Path] = []
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            logger.warning("Skipping unreadable directory %s: %s", directory, exc)
            return files, subdirs

        for entry in entries:
            path = Path(entry.path)
            rel_path = path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if path.resolve() in self._skip_dirs:
                    continue
                if should_ignore(rel_path, True, self._rules):
                    continue
                subdirs.append(path)
            elif entry.is_file():
                if should_ignore(rel_path, False, self._rules):
                    continue
                files.append(path)
        return files, subdirs

    def _visit_file(
        self, path: Path, root: Path, module_context: bool, ids: IdAllocator, result: WalkResult
    ) -> None:
        classification = classify_path(path.name)
        if classification is None:
            return
        dialect, forced = classification
        rel_path = path.relative_to(root).as_posix()
        if dialect is Dialect.UNTYPED and self._is_incompatible(rel_path):
            return

        if forced is not None:
            module: Optional[bool] = forced
        else:
            module = True if module_context else None

        task = Task(id=ids.allocate(), path=str(path), dialect=dialect, module=module)
        result.entries.append(CorpusEntry(path=str(path), dialect=dialect, module=bool(module)))
        if dialect is Dialect.UNTYPED:
            result.untyped.append(task)
        else:
            result.typed.append(task)

    def _is_incompatible(self, rel_path: str) -> bool:
        return any(
            rel_path == prefix or rel_path.startswith(f"{prefix}/") for prefix in self._incompatible
        )


__all__ = [
    "CorpusWalker",
    "IdAllocator",
    "IgnoreRule",
    "WalkResult",
    "build_ignore_rule",
    "classify_path",
    "declares_module",
    "should_ignore",
]
