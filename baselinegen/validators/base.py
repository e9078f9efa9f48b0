"""Helpers shared by the untyped and typed validators."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from tree_sitter import Tree

from ..errors import InvalidSyntax, UnreadableSource, UnsupportedConstruct
from ..models import SourceKind
from ..toolchain.parser import Toolchain

KindLike = Union[SourceKind, str, None]

BOM = "\ufeff"


def coerce_kind(kind: KindLike) -> Optional[SourceKind]:
    if kind is None or isinstance(kind, SourceKind):
        return kind
    return SourceKind(kind)


def read_source(path: Path) -> str:
    """Read a corpus file as UTF-8 text."""
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise UnreadableSource(f"Cannot read {path}: {exc}") from exc


def ensure_valid(toolchain: Toolchain, tree: Tree, *, what: str = "source") -> None:
    """Raise when the tree carries a syntax diagnostic or inline markup."""
    diagnostics = toolchain.diagnostics(tree)
    if diagnostics:
        first = diagnostics[0]
        raise InvalidSyntax(f"{what}: {first}", line=first.line, column=first.column)
    if toolchain.contains_markup(tree):
        raise UnsupportedConstruct(f"{what}: inline markup expressions are not supported")


def resolve_kind(toolchain: Toolchain, tree: Tree, requested: Optional[SourceKind]) -> SourceKind:
    """Honor a requested kind verbatim, otherwise infer it from module syntax."""
    if requested is not None:
        return requested
    return SourceKind.MODULE if toolchain.is_external_module(tree) else SourceKind.SCRIPT


__all__ = ["BOM", "KindLike", "coerce_kind", "ensure_valid", "read_source", "resolve_kind"]
