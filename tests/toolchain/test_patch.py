from __future__ import annotations

import pytest

from baselinegen.toolchain.patch import Edit, OverlappingEdits, apply_edits, sort_edits


def test_apply_edits_splices_complement_segments() -> None:
    source = b"let a: string = 1;"
    assert apply_edits(source, [Edit(5, 13)]) == b"let a = 1;"


def test_apply_edits_without_edits_returns_source() -> None:
    assert apply_edits(b"abc", []) == b"abc"


def test_apply_edits_accepts_unsorted_input() -> None:
    source = b"0123456789"
    edits = [Edit(8, 9, b"x"), Edit(1, 3)]
    assert apply_edits(source, edits) == b"034567x9"


def test_insertions_at_same_offset_keep_submission_order() -> None:
    edits = [Edit(2, 2, b"a"), Edit(2, 2, b"b")]
    assert apply_edits(b"xxxx", edits) == b"xxabxx"


def test_overlapping_edits_are_rejected() -> None:
    with pytest.raises(OverlappingEdits):
        sort_edits([Edit(0, 5), Edit(3, 8)])


def test_adjacent_edits_are_allowed() -> None:
    assert apply_edits(b"abcdef", [Edit(0, 2), Edit(2, 4)]) == b"ef"


def test_edit_validates_span() -> None:
    with pytest.raises(ValueError):
        Edit(5, 2)
    with pytest.raises(ValueError):
        Edit(-1, 2)


def test_edit_past_end_of_source_is_rejected() -> None:
    with pytest.raises(ValueError):
        apply_edits(b"abc", [Edit(1, 10)])
