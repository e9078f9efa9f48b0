"""Validation and module/script classification of untyped (JavaScript) files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..errors import RejectedSource
from ..logging import get_logger
from ..models import Dialect, SourceKind
from ..toolchain.parser import Toolchain, get_toolchain
from .base import KindLike, coerce_kind, ensure_valid, read_source, resolve_kind

logger = get_logger("validators.untyped")


def check_untyped(
    text: str, requested_kind: KindLike = None, *, toolchain: Toolchain | None = None
) -> SourceKind:
    """Return the kind of ``text`` or raise the reason it is rejected."""
    toolchain = toolchain or get_toolchain()
    requested = coerce_kind(requested_kind)
    tree = toolchain.parse(text.encode("utf-8"), Dialect.UNTYPED)
    ensure_valid(toolchain, tree)
    return resolve_kind(toolchain, tree, requested)


def classify(
    text: str, requested_kind: KindLike = None, *, toolchain: Toolchain | None = None
) -> Optional[SourceKind]:
    """Return the kind of an untyped source, or ``None`` when it cannot be classified."""
    try:
        return check_untyped(text, requested_kind, toolchain=toolchain)
    except RejectedSource:
        return None
    except Exception:
        logger.debug("Classification failed unexpectedly", exc_info=True)
        return None


def classify_file(
    path: Path, requested_kind: KindLike = None, *, toolchain: Toolchain | None = None
) -> Optional[SourceKind]:
    try:
        text = read_source(path)
    except RejectedSource:
        return None
    return classify(text, requested_kind, toolchain=toolchain)


__all__ = ["check_untyped", "classify", "classify_file"]
