from __future__ import annotations

from baselinegen.models import Dialect
from baselinegen.toolchain.parser import Toolchain, get_toolchain, iter_nodes, node_text


def _parse(toolchain: Toolchain, text: str, dialect: Dialect = Dialect.UNTYPED):
    return toolchain.parse(text.encode("utf-8"), dialect)


def test_get_toolchain_is_cached_per_process() -> None:
    assert get_toolchain() is get_toolchain()


def test_valid_source_has_no_diagnostics(toolchain: Toolchain) -> None:
    tree = _parse(toolchain, "let a = 1;\nfunction f(x) { return x * 2; }\n")
    assert toolchain.diagnostics(tree) == []


def test_truncated_expression_reports_diagnostic(toolchain: Toolchain) -> None:
    tree = _parse(toolchain, "a +")
    diagnostics = toolchain.diagnostics(tree)
    assert diagnostics
    assert diagnostics[0].line == 1


def test_type_annotation_is_an_error_in_untyped_dialect(toolchain: Toolchain) -> None:
    tree = _parse(toolchain, "let a: string = 1;")
    assert toolchain.diagnostics(tree)


def test_type_annotation_is_valid_in_typed_dialect(toolchain: Toolchain) -> None:
    tree = _parse(toolchain, "let a: string = 'x';", Dialect.TYPED)
    assert toolchain.diagnostics(tree) == []


def test_external_module_detection(toolchain: Toolchain) -> None:
    assert toolchain.is_external_module(_parse(toolchain, "import a from 'a';\n"))
    assert toolchain.is_external_module(_parse(toolchain, "export const a = 1;\n"))
    assert toolchain.is_external_module(_parse(toolchain, "console.log(import.meta.url);\n"))
    assert not toolchain.is_external_module(_parse(toolchain, "const a = require('a');\n"))


def test_dynamic_import_does_not_make_a_module(toolchain: Toolchain) -> None:
    tree = _parse(toolchain, "import('a').then(function (m) { return m; });\n")
    assert not toolchain.is_external_module(tree)


def test_contains_markup(toolchain: Toolchain) -> None:
    assert toolchain.contains_markup(_parse(toolchain, "let a = <div/>;\n"))
    assert toolchain.contains_markup(_parse(toolchain, "let a = <p>hi</p>;\n"))
    assert not toolchain.contains_markup(_parse(toolchain, "let a = b < c;\n"))


def test_iter_nodes_yields_in_source_order(toolchain: Toolchain) -> None:
    source = b"a; b; c;"
    tree = toolchain.parse(source, Dialect.UNTYPED)
    identifiers = [
        node_text(node, source) for node in iter_nodes(tree.root_node) if node.type == "identifier"
    ]
    assert identifiers == ["a", "b", "c"]
