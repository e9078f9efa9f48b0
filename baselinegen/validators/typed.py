"""Erasure of typed (TypeScript) files into an input/output fixture pair.

The typed file is parsed, checked for diagnostics, and its codegen-requiring
declarations are removed by patching spans of the original text. The patched
text is the transpiler input fixture. Inert type syntax is then erased from it
the same way and the result is formatted into the expected output fixture.
Every intermediate text must parse cleanly, so a bad patch rejects the file
instead of producing a wrong baseline.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import ConfigError, RejectedSource
from ..logging import get_logger
from ..models import Dialect, SourceKind
from ..toolchain.formatter import Formatter
from ..toolchain.parser import Toolchain, get_toolchain
from ..toolchain.strip import rewrite_export_require, strip_codegen, strip_types
from .base import BOM, KindLike, coerce_kind, ensure_valid, read_source, resolve_kind

logger = get_logger("validators.typed")


@dataclass(frozen=True)
class ErasureOutput:
    typed_source: str
    untyped_output: str
    kind: SourceKind


def check_typed(
    text: str,
    requested_kind: KindLike = None,
    *,
    formatter: Formatter | None = None,
    toolchain: Toolchain | None = None,
) -> ErasureOutput:
    """Erase ``text`` or raise the reason it is rejected."""
    toolchain = toolchain or get_toolchain()
    formatter = formatter or Formatter(toolchain=toolchain)
    requested = coerce_kind(requested_kind)

    if text.startswith(BOM):
        text = text[len(BOM) :]
    source = text.encode("utf-8")
    tree = toolchain.parse(source, Dialect.TYPED)
    rewritten = rewrite_export_require(tree, source)
    if rewritten != source:
        source = rewritten
        tree = toolchain.parse(source, Dialect.TYPED)
    ensure_valid(toolchain, tree)
    kind = resolve_kind(toolchain, tree, requested)

    typed_bytes = strip_codegen(tree, source)
    typed_tree = toolchain.parse(typed_bytes, Dialect.TYPED)
    ensure_valid(toolchain, typed_tree, what="codegen-stripped source")

    untyped_bytes = strip_types(typed_tree, typed_bytes)
    untyped_tree = toolchain.parse(untyped_bytes, Dialect.UNTYPED)
    ensure_valid(toolchain, untyped_tree, what="erased output")

    output = formatter.format(untyped_bytes.decode("utf-8"))
    return ErasureOutput(typed_source=typed_bytes.decode("utf-8"), untyped_output=output, kind=kind)


def erase(
    text: str,
    requested_kind: KindLike = None,
    *,
    formatter: Formatter | None = None,
    toolchain: Toolchain | None = None,
) -> Optional[ErasureOutput]:
    """Return the erased fixture pair, or ``None`` when the file cannot be erased."""
    try:
        return check_typed(text, requested_kind, formatter=formatter, toolchain=toolchain)
    except RejectedSource:
        return None
    except ConfigError:
        raise
    except Exception:
        logger.debug("Erasure failed unexpectedly", exc_info=True)
        return None


def erase_file(
    path: Path,
    requested_kind: KindLike = None,
    *,
    formatter: Formatter | None = None,
    toolchain: Toolchain | None = None,
) -> Optional[ErasureOutput]:
    try:
        text = read_source(path)
    except RejectedSource:
        return None
    return erase(text, requested_kind, formatter=formatter, toolchain=toolchain)


__all__ = ["ErasureOutput", "check_typed", "erase", "erase_file"]
