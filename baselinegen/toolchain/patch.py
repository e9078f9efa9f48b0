"""Byte-span edits applied over unmodified source text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence


class OverlappingEdits(ValueError):
    """Raised when two edits touch the same bytes."""


@dataclass(frozen=True, order=True)
class Edit:
    """Replace ``source[start:end]`` with ``replacement``; an insertion has ``start == end``."""

    start: int
    end: int
    replacement: bytes = b""

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid edit span [{self.start}, {self.end})")


def sort_edits(edits: Iterable[Edit]) -> List[Edit]:
    """Return edits ordered by position, rejecting overlaps.

    Edits may touch (one ends where the next starts) but never share a byte.
    Two insertions at the same offset keep their original relative order.
    """
    ordered = sorted(enumerate(edits), key=lambda item: (item[1].start, item[1].end, item[0]))
    result: List[Edit] = []
    for _, edit in ordered:
        if result and edit.start < result[-1].end:
            previous = result[-1]
            raise OverlappingEdits(
                f"Edit [{edit.start}, {edit.end}) overlaps [{previous.start}, {previous.end})"
            )
        result.append(edit)
    return result


def apply_edits(source: bytes, edits: Sequence[Edit]) -> bytes:
    """Splice the untouched segments of ``source`` around the replacements."""
    if not edits:
        return source
    segments: List[bytes] = []
    cursor = 0
    for edit in sort_edits(edits):
        if edit.end > len(source):
            raise ValueError(f"Edit [{edit.start}, {edit.end}) exceeds source length {len(source)}")
        segments.append(source[cursor : edit.start])
        segments.append(edit.replacement)
        cursor = edit.end
    segments.append(source[cursor:])
    return b"".join(segments)


__all__ = ["Edit", "OverlappingEdits", "apply_edits", "sort_edits"]
