"""Persistent cache of per-file worker results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import hashlib
import json
from pathlib import Path
from typing import Dict, Iterable, Optional

from .. import __version__
from ..models import Dialect, ErasureResult, SourceKind, Task, ValidationResult

_CACHE_VERSION = 1


@dataclass(frozen=True)
class CachedOutcome:
    """Outcome of one file; ``kind`` is ``None`` when the file was rejected."""

    dialect: Dialect
    kind: Optional[SourceKind]
    typed_source: Optional[str] = None
    untyped_output: Optional[str] = None

    def to_result(self, task: Task):  # type: ignore[no-untyped-def]
        if self.kind is None:
            return None
        if self.dialect is Dialect.UNTYPED:
            return ValidationResult(id=task.id, path=task.path, kind=self.kind)
        return ErasureResult(
            id=task.id,
            path=task.path,
            kind=self.kind,
            typed_source=self.typed_source or "",
            untyped_output=self.untyped_output or "",
        )

    @classmethod
    def from_result(cls, dialect: Dialect, result) -> "CachedOutcome":  # type: ignore[no-untyped-def]
        if result is None:
            return cls(dialect=dialect, kind=None)
        if isinstance(result, ErasureResult):
            return cls(
                dialect=dialect,
                kind=result.kind,
                typed_source=result.typed_source,
                untyped_output=result.untyped_output,
            )
        return cls(dialect=dialect, kind=result.kind)


def cache_key(
    dialect: Dialect, requested_kind: Optional[SourceKind], signature: str, data: bytes
) -> str:
    """Fingerprint everything a worker result depends on.

    The package version stands in for the erasure rules, so upgrading
    invalidates results computed by older code.
    """
    digest = hashlib.sha256()
    kind = requested_kind.value if requested_kind else "-"
    for part in (__version__, dialect.value, kind, signature):
        digest.update(part.encode("utf-8"))
        digest.update(b"\0")
    digest.update(data)
    return digest.hexdigest()


class ResultCache:
    """Stores worker outcomes keyed by :func:`cache_key`."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[CachedOutcome]:
        entry = self._entries.get(key)
        if not entry:
            return None
        return _outcome_from_dict(entry)

    def store(self, key: str, outcome: CachedOutcome) -> None:
        payload = _outcome_to_dict(outcome)
        payload["updated_at"] = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        self._entries[key] = payload
        self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> None:
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        if removed:
            for key in removed:
                self._entries.pop(key, None)
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str) and isinstance(raw, dict) and _outcome_from_dict(raw) is not None
        }
        self._dirty = False


def _outcome_to_dict(outcome: CachedOutcome) -> Dict[str, object]:
    return {
        "dialect": outcome.dialect.value,
        "kind": outcome.kind.value if outcome.kind else None,
        "typed_source": outcome.typed_source,
        "untyped_output": outcome.untyped_output,
    }


def _outcome_from_dict(payload: Dict[str, object]) -> Optional[CachedOutcome]:
    try:
        dialect = Dialect(payload.get("dialect"))
        kind_value = payload.get("kind")
        kind = SourceKind(kind_value) if kind_value is not None else None
    except ValueError:
        return None
    typed_source = payload.get("typed_source")
    untyped_output = payload.get("untyped_output")
    if dialect is Dialect.TYPED and kind is not None:
        if not isinstance(typed_source, str) or not isinstance(untyped_output, str):
            return None
        return CachedOutcome(dialect, kind, typed_source, untyped_output)
    return CachedOutcome(dialect, kind)


__all__ = ["CachedOutcome", "ResultCache", "cache_key"]
