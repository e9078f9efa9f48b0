from __future__ import annotations

from pathlib import Path

import pytest
from tree_sitter import Tree

from baselinegen.errors import InvalidSyntax, UnsupportedConstruct
from baselinegen.models import Dialect, SourceKind
from baselinegen.toolchain.parser import Toolchain
from baselinegen.validators import check_untyped, classify, classify_file


def test_script_is_inferred_without_module_syntax() -> None:
    assert classify("var a = require('a');\na();\n") is SourceKind.SCRIPT


def test_module_is_inferred_from_import() -> None:
    assert classify("import a from 'a';\nexport default a;\n") is SourceKind.MODULE


def test_module_is_inferred_from_import_meta() -> None:
    assert classify("console.log(import.meta.url);\n") is SourceKind.MODULE


def test_requested_kind_is_returned_unconditionally() -> None:
    assert classify("export const a = 1;\n", SourceKind.SCRIPT) is SourceKind.SCRIPT
    assert classify("var a = 1;\n", "module") is SourceKind.MODULE


def test_syntax_error_is_rejected() -> None:
    assert classify("a +") is None
    with pytest.raises(InvalidSyntax) as excinfo:
        check_untyped("a +")
    assert excinfo.value.line == 1


def test_inline_markup_is_rejected_regardless_of_kind() -> None:
    assert classify("let a = <div/>;\n") is None
    assert classify("let a = <div/>;\n", SourceKind.MODULE) is None
    with pytest.raises(UnsupportedConstruct):
        check_untyped("let a = <div/>;\n")


def test_classify_file_reads_utf8(tmp_path: Path) -> None:
    path = tmp_path / "a.js"
    path.write_text("const s = 'héllo';\n", encoding="utf-8")
    assert classify_file(path) is SourceKind.SCRIPT


def test_classify_file_rejects_undecodable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "bad.js"
    path.write_bytes(b"var a = '\xff\xfe';\n")
    assert classify_file(path) is None


def test_classify_file_rejects_missing_file(tmp_path: Path) -> None:
    assert classify_file(tmp_path / "missing.js") is None


class _FaultyToolchain(Toolchain):
    def parse(self, source: bytes, dialect: Dialect) -> Tree:
        raise RuntimeError("parser fault")


def test_unexpected_parser_failure_is_a_rejection() -> None:
    assert classify("let a = 1;", toolchain=_FaultyToolchain()) is None


def test_unexpected_parser_failure_in_file_is_a_rejection(tmp_path: Path) -> None:
    path = tmp_path / "a.js"
    path.write_text("let a = 1;\n", encoding="utf-8")
    assert classify_file(path, toolchain=_FaultyToolchain()) is None
