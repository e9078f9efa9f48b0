"""Core data models shared across baselinegen components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class Dialect(str, Enum):
    """Source dialect of a corpus file."""

    TYPED = "typed"
    UNTYPED = "untyped"


class SourceKind(str, Enum):
    """Whether a file is parsed as an ES module or a classic script."""

    MODULE = "module"
    SCRIPT = "script"

    @classmethod
    def from_flag(cls, module: Optional[bool]) -> Optional["SourceKind"]:
        if module is None:
            return None
        return cls.MODULE if module else cls.SCRIPT


@dataclass(frozen=True)
class CorpusEntry:
    """A file discovered by the walker."""

    path: str
    dialect: Dialect
    module: bool


@dataclass(frozen=True)
class Task:
    """Unit of work for a single corpus file.

    ``module`` is ``True``/``False`` when the file's kind is forced by its
    extension or an enclosing module context and ``None`` when the worker must
    infer it.
    """

    id: int
    path: str
    dialect: Dialect
    module: Optional[bool]

    @property
    def requested_kind(self) -> Optional[SourceKind]:
        return SourceKind.from_flag(self.module)


@dataclass(frozen=True)
class ValidationResult:
    """Accepted untyped file; the original bytes are the artifact."""

    id: int
    path: str
    kind: SourceKind


@dataclass(frozen=True)
class ErasureResult:
    """Accepted typed file with its input fixture and expected output."""

    id: int
    path: str
    kind: SourceKind
    typed_source: str
    untyped_output: str


@dataclass(frozen=True)
class ManifestRow:
    """One line of the corpus manifest."""

    id: int
    path: str
    dialect: Dialect
    kind: SourceKind

    def as_record(self) -> List[str]:
        return [str(self.id), self.path, self.dialect.value, self.kind.value]


__all__ = [
    "CorpusEntry",
    "Dialect",
    "ErasureResult",
    "ManifestRow",
    "SourceKind",
    "Task",
    "ValidationResult",
]
