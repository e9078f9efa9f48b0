"""Span-patch visitors that turn typed sources into their erased forms.

Two passes run over tree-sitter trees of the typed dialect:

* :func:`strip_codegen` removes declarations whose non-ambient form emits
  runtime code (enums and namespaces) together with two constructs the
  reference and production transpilers disagree on. The result is still
  typed source and becomes the transpiler's input fixture.
* :func:`strip_types` removes every remaining piece of inert type syntax and
  yields plain JavaScript.

Both passes only compute byte edits over the text they were given, so every
untouched byte (whitespace, comments, quoting) survives unchanged.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from tree_sitter import Node, Tree

from .parser import iter_nodes
from .patch import Edit, apply_edits, sort_edits

_PRUNE = object()

_NodeKey = Tuple[int, int, str]

# Declarations that need generated code unless they are ambient.
CODEGEN_DECLARATIONS = {"enum_declaration", "module", "internal_module"}

# Statements that only exist in the type system.
TYPE_ONLY_STATEMENTS = {
    "interface_declaration",
    "type_alias_declaration",
    "ambient_declaration",
    "function_signature",
}

# Type syntax removed wherever it is reached outside of another removed node.
TYPE_NODES = {
    "type_annotation",
    "type_arguments",
    "type_parameters",
    "asserts_annotation",
    "type_predicate_annotation",
}

_CLASS_SIGNATURES = {"method_signature", "abstract_method_signature", "index_signature"}
_MEMBER_MODIFIERS = {"accessibility_modifier", "override_modifier", "readonly"}
_PARAMETERS = {"required_parameter", "optional_parameter"}

# Statements that end with a block and therefore cannot continue into the next line.
_BLOCK_STATEMENTS = {
    "class_declaration",
    "abstract_class_declaration",
    "function_declaration",
    "generator_function_declaration",
    "statement_block",
    "if_statement",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "try_statement",
    "switch_statement",
    "labeled_statement",
}

# First bytes of a statement that would be parsed as a continuation of an
# unterminated previous line.
_CONTINUATION_STARTS = {b"(", b"[", b"`", b"+", b"-", b"/", b"<"}


def _key(node: Node) -> _NodeKey:
    return (node.start_byte, node.end_byte, node.type)


def _significant(node: Optional[Node], step: Callable[[Node], Optional[Node]]) -> Optional[Node]:
    while node is not None and node.type == "comment":
        node = step(node)
    return node


class _SpanVisitor:
    """Walks a tree with an explicit stack and records edits from per-type handlers.

    A handler returns ``_PRUNE`` to skip the node's subtree, or a sequence of
    children that it already rewrote and that must not be visited.
    """

    handlers: Dict[str, str] = {}

    def __init__(self, source: bytes) -> None:
        self.source = source
        self.edits: List[Edit] = []
        self._removed_statements: Set[_NodeKey] = set()

    def collect(self, root: Node) -> List[Edit]:
        stack = [root]
        while stack:
            node = stack.pop()
            children = node.children
            method = self.handlers.get(node.type)
            if method is not None:
                outcome = getattr(self, method)(node)
                if outcome is _PRUNE:
                    continue
                if outcome:
                    skipped = {_key(child) for child in outcome}
                    children = [child for child in children if _key(child) not in skipped]
            stack.extend(reversed(children))
        return sort_edits(self.edits)

    def text(self, node: Node) -> bytes:
        return self.source[node.start_byte : node.end_byte]

    def remove(self, node: Node) -> None:
        self.edits.append(Edit(node.start_byte, node.end_byte))

    def remove_member(self, node: Node) -> None:
        """Remove a class member together with the `;` that terminates it."""
        end = node.end_byte
        cursor = end
        while cursor < len(self.source) and self.source[cursor : cursor + 1] in b" \t":
            cursor += 1
        if self.source[cursor : cursor + 1] == b";":
            end = cursor + 1
        self.edits.append(Edit(node.start_byte, end))

    def remove_token(self, node: Node) -> None:
        """Remove a keyword together with the whitespace that follows it."""
        following = node.next_sibling
        end = following.start_byte if following is not None else node.end_byte
        self.edits.append(Edit(node.start_byte, end))

    def remove_list_item(self, node: Node) -> None:
        """Remove a comma separated item and the separator after it."""
        end = node.end_byte
        comma = _significant(node.next_sibling, lambda n: n.next_sibling)
        if comma is not None and comma.type == ",":
            after = comma.next_sibling
            end = after.start_byte if after is not None else comma.end_byte
        self.edits.append(Edit(node.start_byte, end))

    def remove_statement(self, node: Node) -> None:
        self.edits.append(Edit(node.start_byte, node.end_byte, self._separator_for(node)))
        self._removed_statements.add(_key(node))

    def _separator_for(self, node: Node) -> bytes:
        """Return ``;`` when dropping ``node`` would glue its neighbours into one statement."""
        following = _significant(node.next_sibling, lambda n: n.next_sibling)
        if following is None or following.type == "}":
            return b""
        if self.source[following.start_byte : following.start_byte + 1] not in _CONTINUATION_STARTS:
            return b""
        previous = node.prev_sibling
        while previous is not None and (
            previous.type == "comment" or _key(previous) in self._removed_statements
        ):
            previous = previous.prev_sibling
        if previous is None or previous.type == "{":
            return b""
        previous_text = self.text(previous).rstrip()
        if previous_text.endswith(b";"):
            return b""
        if previous_text.endswith(b"}") and previous.type in _BLOCK_STATEMENTS:
            return b""
        return b";"


def _statement_for(node: Node) -> Node:
    parent = node.parent
    if parent is not None and parent.type in {"export_statement", "expression_statement"}:
        return parent
    return node


def _is_bodiless_class_member(node: Node, source: bytes) -> bool:
    parent = node.parent
    if parent is None or parent.type != "class_body":
        return False
    if any(child.type in {"get", "set"} for child in node.children):
        return True
    name = node.child_by_field_name("name")
    return name is not None and source[name.start_byte : name.end_byte] == b"constructor"


class ExportRequireRewriter(_SpanVisitor):
    """Turns `export import a = require("a")` into `import a = require("a")`.

    The typed grammar splits the exported form after `require`, leaving the
    argument list as a separate statement, so this runs before validation.
    """

    handlers = {
        "ambient_declaration": "_prune",
        "export_statement": "_export_statement",
    }

    def _prune(self, node: Node) -> object:
        return _PRUNE

    def _export_statement(self, node: Node) -> object:
        children = node.children
        for index, child in enumerate(children[:-1]):
            if child.type != "export":
                continue
            target = children[index + 1]
            if self._is_import_require(node, target):
                self.edits.append(Edit(child.start_byte, target.start_byte))
                return _PRUNE
            break
        return None

    def _is_import_require(self, statement: Node, target: Node) -> bool:
        if target.type not in {"import", "import_statement", "import_alias"}:
            return False
        if any(node.type == "import_require_clause" for node in iter_nodes(statement)):
            return True
        if not self.text(statement).rstrip(b"; \t\r\n").endswith(b"require"):
            return False
        following = statement.next_sibling
        if following is None:
            return False
        return self.source[following.start_byte : following.start_byte + 1] == b"("


class CodegenStripper(ExportRequireRewriter):
    """Removes non-ambient enums and namespaces and applies transpiler parity patches."""

    handlers = {
        "ambient_declaration": "_prune",
        "interface_declaration": "_prune",
        "type_alias_declaration": "_prune",
        "type_annotation": "_prune",
        "enum_declaration": "_codegen_declaration",
        "module": "_codegen_declaration",
        "internal_module": "_codegen_declaration",
        "method_signature": "_method_signature",
        "export_statement": "_export_statement",
    }

    def _codegen_declaration(self, node: Node) -> object:
        self.remove_statement(_statement_for(node))
        return _PRUNE

    def _method_signature(self, node: Node) -> object:
        # `get a();` and `constructor();` get a synthesized body from tsc but
        # are dropped by the production transpiler.
        if _is_bodiless_class_member(node, self.source):
            self.remove_member(node)
        return _PRUNE


class TypeEraser(_SpanVisitor):
    """Removes inert type syntax from codegen-free typed source."""

    handlers = {
        **{name: "_type_node" for name in TYPE_NODES},
        **{name: "_type_only_statement" for name in TYPE_ONLY_STATEMENTS},
        **{name: "_remove_member" for name in _CLASS_SIGNATURES},
        "export_statement": "_export_statement",
        "import_statement": "_import_statement",
        "import_alias": "_import_alias",
        "import_specifier": "_type_specifier",
        "export_specifier": "_type_specifier",
        "class_declaration": "_class",
        "class": "_class",
        "abstract_class_declaration": "_class",
        "implements_clause": "_implements_clause",
        "public_field_definition": "_field",
        "method_definition": "_method",
        "required_parameter": "_parameter",
        "optional_parameter": "_parameter",
        "variable_declarator": "_variable_declarator",
        "as_expression": "_trailing_type_operator",
        "satisfies_expression": "_trailing_type_operator",
        "non_null_expression": "_non_null",
    }

    def _type_node(self, node: Node) -> object:
        self.remove(node)
        return _PRUNE

    def _type_only_statement(self, node: Node) -> object:
        self.remove_statement(node)
        return _PRUNE

    def _remove_member(self, node: Node) -> object:
        self.remove_member(node)
        return _PRUNE

    def _export_statement(self, node: Node) -> object:
        if any(child.type in TYPE_ONLY_STATEMENTS for child in node.named_children):
            self.remove_statement(node)
            return _PRUNE
        children = node.children
        for index, child in enumerate(children[:-1]):
            if child.type != "export":
                continue
            following = children[index + 1]
            if following.type in {"type", "as"}:
                # `export type { A }` and `export as namespace A`
                self.remove_statement(node)
                return _PRUNE
            if following.type == "=" and index + 2 < len(children):
                value = children[index + 2]
                self.edits.append(Edit(child.start_byte, value.start_byte, b"module.exports = "))
                return [child, following]
            break
        return None

    def _import_statement(self, node: Node) -> object:
        children = node.children
        if len(children) > 1 and children[1].type in {"type", "typeof"}:
            self.remove_statement(node)
            return _PRUNE
        for child in children:
            if child.type == "import_require_clause":
                self.edits.append(Edit(node.start_byte, child.start_byte, b"const "))
                return _PRUNE
        return None

    def _import_alias(self, node: Node) -> object:
        name = node.named_children[0] if node.named_children else None
        if name is not None:
            self.edits.append(Edit(node.start_byte, name.start_byte, b"var "))
        return _PRUNE

    def _type_specifier(self, node: Node) -> object:
        children = node.children
        if len(children) > 1 and children[0].type in {"type", "typeof"}:
            self.remove_list_item(node)
            return _PRUNE
        return None

    def _class(self, node: Node) -> Sequence[Node]:
        rewritten = [child for child in node.children if child.type == "abstract"]
        for child in rewritten:
            self.remove_token(child)
        return rewritten

    def _implements_clause(self, node: Node) -> object:
        previous = node.prev_sibling
        if previous is None and node.parent is not None and node.parent.type == "class_heritage":
            # Without `extends` the clause is the whole heritage; drop the space before it too.
            previous = node.parent.prev_sibling
        start = previous.end_byte if previous is not None else node.start_byte
        self.edits.append(Edit(start, node.end_byte))
        return _PRUNE

    def _field(self, node: Node) -> object:
        if any(child.type in {"declare", "abstract"} for child in node.children):
            self.remove_member(node)
            return _PRUNE
        return self._strip_modifiers(node, _MEMBER_MODIFIERS, {"?", "!"})

    def _method(self, node: Node) -> Sequence[Node]:
        rewritten = self._strip_modifiers(node, {"accessibility_modifier", "override_modifier"}, {"?"})
        name = node.child_by_field_name("name")
        if name is not None and self.text(name) == b"constructor":
            self._assign_parameter_properties(node)
        return rewritten

    def _parameter(self, node: Node) -> object:
        pattern = node.child_by_field_name("pattern")
        if pattern is not None and pattern.type == "this":
            self.remove_list_item(node)
            return _PRUNE
        return self._strip_modifiers(node, _MEMBER_MODIFIERS, {"?"})

    def _variable_declarator(self, node: Node) -> Sequence[Node]:
        definite = [child for child in node.children if child.type == "!"]
        for child in definite:
            self.remove(child)
        return definite

    def _trailing_type_operator(self, node: Node) -> Sequence[Node]:
        # `value as T` / `value satisfies T` keep only `value`.
        children = node.children
        expression = children[0]
        self.edits.append(Edit(expression.end_byte, node.end_byte))
        return children[1:]

    def _non_null(self, node: Node) -> Sequence[Node]:
        bang = node.children[-1]
        if bang.type != "!":
            return []
        self.remove(bang)
        return [bang]

    def _strip_modifiers(self, node: Node, keywords: Set[str], markers: Set[str]) -> List[Node]:
        rewritten: List[Node] = []
        for child in node.children:
            if child.type in keywords:
                self.remove_token(child)
                rewritten.append(child)
            elif child.type in markers:
                self.remove(child)
                rewritten.append(child)
        return rewritten

    def _assign_parameter_properties(self, method: Node) -> None:
        parameters = method.child_by_field_name("parameters")
        body = method.child_by_field_name("body")
        if parameters is None or body is None or not body.children:
            return
        names: List[bytes] = []
        for parameter in parameters.named_children:
            if parameter.type not in _PARAMETERS:
                continue
            if not any(child.type in _MEMBER_MODIFIERS for child in parameter.children):
                continue
            pattern = parameter.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "identifier":
                names.append(self.text(pattern))
        if not names:
            return

        assignments = b"".join(b" this." + name + b" = " + name + b";" for name in names)
        insert_at = body.children[0].end_byte
        first = _significant(body.children[1] if len(body.children) > 1 else None, lambda n: n.next_sibling)
        if first is not None and _is_super_call(first):
            insert_at = first.end_byte
            if not self.text(first).rstrip().endswith(b";"):
                assignments = b";" + assignments
        self.edits.append(Edit(insert_at, insert_at, assignments))


def _is_super_call(statement: Node) -> bool:
    if statement.type != "expression_statement" or not statement.named_children:
        return False
    expression = statement.named_children[0]
    if expression.type != "call_expression":
        return False
    function = expression.child_by_field_name("function")
    return function is not None and function.type == "super"


def codegen_edits(tree: Tree, source: bytes) -> List[Edit]:
    return CodegenStripper(source).collect(tree.root_node)


def type_edits(tree: Tree, source: bytes) -> List[Edit]:
    return TypeEraser(source).collect(tree.root_node)


def rewrite_export_require(tree: Tree, source: bytes) -> bytes:
    """Return ``source`` with exported import-require declarations un-exported."""
    return apply_edits(source, ExportRequireRewriter(source).collect(tree.root_node))


def strip_codegen(tree: Tree, source: bytes) -> bytes:
    """Return ``source`` without codegen-requiring declarations."""
    return apply_edits(source, codegen_edits(tree, source))


def strip_types(tree: Tree, source: bytes) -> bytes:
    """Return the JavaScript left after removing all type syntax from ``source``."""
    return apply_edits(source, type_edits(tree, source))


__all__ = [
    "CODEGEN_DECLARATIONS",
    "CodegenStripper",
    "ExportRequireRewriter",
    "TYPE_NODES",
    "TYPE_ONLY_STATEMENTS",
    "TypeEraser",
    "codegen_edits",
    "rewrite_export_require",
    "strip_codegen",
    "strip_types",
    "type_edits",
]
