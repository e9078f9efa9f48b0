from __future__ import annotations

import textwrap

from baselinegen.models import Dialect
from baselinegen.toolchain.parser import Toolchain
from baselinegen.toolchain.strip import rewrite_export_require, strip_codegen, strip_types


def _codegen(toolchain: Toolchain, text: str) -> str:
    source = textwrap.dedent(text).encode("utf-8")
    return strip_codegen(toolchain.parse(source, Dialect.TYPED), source).decode("utf-8")


def _types(toolchain: Toolchain, text: str) -> str:
    source = textwrap.dedent(text).encode("utf-8")
    return strip_types(toolchain.parse(source, Dialect.TYPED), source).decode("utf-8")


def test_exported_enum_is_removed_and_ambient_enum_kept(toolchain: Toolchain) -> None:
    result = _codegen(toolchain, "export enum A {}\ndeclare enum E {}\n")
    assert result == "\ndeclare enum E {}\n"


def test_namespace_is_removed(toolchain: Toolchain) -> None:
    result = _codegen(toolchain, "namespace N { export const a = 1; }\nlet b = 2;\n")
    assert result == "\nlet b = 2;\n"


def test_ambient_namespace_is_kept_verbatim(toolchain: Toolchain) -> None:
    source = "declare namespace N {\n  enum Inner { A }\n}\n"
    assert _codegen(toolchain, source) == source


def test_codegen_strip_preserves_untouched_text(toolchain: Toolchain) -> None:
    source = "// header\nconst  a : number=1 ;   /* keep */\n"
    assert _codegen(toolchain, source) == source


def test_bodiless_accessor_is_removed(toolchain: Toolchain) -> None:
    result = _codegen(
        toolchain,
        """
        class A {
          get x(): number;
          y() {}
        }
        """,
    )
    assert "get x" not in result
    assert ";" not in result
    assert "y() {}" in result


def test_exported_import_require_loses_export(toolchain: Toolchain) -> None:
    result = _codegen(toolchain, "export import fs = require('fs');\n")
    assert result.startswith("import fs = require(")
    assert "export" not in result


def test_rewrite_export_require_yields_parseable_import(toolchain: Toolchain) -> None:
    source = b"export import fs = require('fs');\nfs.readFileSync('a');\n"

    rewritten = rewrite_export_require(toolchain.parse(source, Dialect.TYPED), source)

    assert rewritten == b"import fs = require('fs');\nfs.readFileSync('a');\n"
    assert toolchain.diagnostics(toolchain.parse(rewritten, Dialect.TYPED)) == []


def test_rewrite_export_require_leaves_other_exports_alone(toolchain: Toolchain) -> None:
    source = b"export const a = 1;\nexport import B = A.B;\ndeclare module 'm' { export import x = require('x'); }\n"
    assert rewrite_export_require(toolchain.parse(source, Dialect.TYPED), source) == source


def test_bodiless_accessor_is_removed_with_its_semicolon(toolchain: Toolchain) -> None:
    result = _codegen(toolchain, "class A { get x(): number; constructor() ; m() {} }")
    assert result == "class A {   m() {} }"


def test_variable_annotation_is_erased(toolchain: Toolchain) -> None:
    assert _types(toolchain, "let a: string = 1;;;") == "let a = 1;;;"


def test_function_signature_types_are_erased(toolchain: Toolchain) -> None:
    result = _types(toolchain, "function f<T>(x: T, y?: number): T { return x; }")
    assert result == "function f(x, y) { return x; }"


def test_interface_and_alias_statements_are_removed(toolchain: Toolchain) -> None:
    result = _types(toolchain, "interface I { a: number }\ntype T = string;\nconst b = 1;\n")
    assert "interface" not in result
    assert "type T" not in result
    assert result.strip() == "const b = 1;"


def test_type_assertions_and_non_null_are_erased(toolchain: Toolchain) -> None:
    assert _types(toolchain, "const a = b as any;") == "const a = b;"
    assert _types(toolchain, "const c = d satisfies object;") == "const c = d;"
    assert _types(toolchain, "a!.b;") == "a.b;"


def test_class_members_are_erased(toolchain: Toolchain) -> None:
    result = _types(
        toolchain,
        """
        class A implements I {
          private x: number = 1;
          constructor(public y: string) {}
        }
        """,
    )
    assert "implements" not in result
    assert "private" not in result
    assert "public" not in result
    assert "class A {" in result
    assert "x = 1;" in result
    assert "constructor(y) { this.y = y;}" in result


def test_type_only_imports_are_removed(toolchain: Toolchain) -> None:
    result = _types(
        toolchain,
        "import type { A } from './a';\nimport { b, type C } from './b';\n",
    )
    assert "./a" not in result
    assert "type" not in result
    assert "import { b" in result


def test_export_assignment_becomes_module_exports(toolchain: Toolchain) -> None:
    assert _types(toolchain, "export = foo;") == "module.exports = foo;"


def test_erased_output_parses_as_javascript(toolchain: Toolchain) -> None:
    source = textwrap.dedent(
        """
        abstract class Base<T> {
          protected abstract value(): T;
          readonly name?: string;
        }
        export function id<T>(x: T): T {
          return x!;
        }
        """
    ).encode("utf-8")
    erased = strip_types(toolchain.parse(source, Dialect.TYPED), source)
    tree = toolchain.parse(erased, Dialect.UNTYPED)
    assert toolchain.diagnostics(tree) == []
