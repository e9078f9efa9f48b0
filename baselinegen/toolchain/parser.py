"""Tree-sitter backed reference parser for both source dialects."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Iterator, List

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from ..models import Dialect

_GRAMMARS: Dict[Dialect, Callable[[], object]] = {
    Dialect.TYPED: tree_sitter_typescript.language_typescript,
    Dialect.UNTYPED: tree_sitter_javascript.language,
}

_MODULE_STATEMENTS = {"import_statement", "export_statement"}

_MARKUP_NODES = {
    "jsx_element",
    "jsx_self_closing_element",
    "jsx_opening_element",
    "jsx_fragment",
}


@dataclass(frozen=True)
class Diagnostic:
    """Syntax problem reported by the parser, 1-based position."""

    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and its descendants in source order without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


class Toolchain:
    """Parses sources and answers the questions the validators ask of a tree."""

    def __init__(self) -> None:
        self._parsers: Dict[Dialect, Parser] = {}

    def parse(self, source: bytes, dialect: Dialect) -> Tree:
        return self._get_parser(dialect).parse(source)

    def _get_parser(self, dialect: Dialect) -> Parser:
        parser = self._parsers.get(dialect)
        if parser is not None:
            return parser
        parser = Parser(Language(_GRAMMARS[dialect]()))
        self._parsers[dialect] = parser
        return parser

    @staticmethod
    def diagnostics(tree: Tree) -> List[Diagnostic]:
        """Collect ERROR and MISSING nodes, visiting only subtrees that contain errors."""
        root = tree.root_node
        if not root.has_error:
            return []
        found: List[Diagnostic] = []
        stack = [root]
        while stack:
            node = stack.pop()
            row, column = node.start_point
            if node.is_missing:
                found.append(Diagnostic(f"missing {node.type!r}", row + 1, column + 1))
                continue
            if node.type == "ERROR":
                found.append(Diagnostic("unexpected syntax", row + 1, column + 1))
                continue
            stack.extend(reversed([child for child in node.children if child.has_error]))
        if not found:
            row, column = root.start_point
            found.append(Diagnostic("unexpected syntax", row + 1, column + 1))
        return found

    @staticmethod
    def is_external_module(tree: Tree) -> bool:
        """Return True when the program has top-level import/export syntax or uses ``import.meta``."""
        root = tree.root_node
        if any(child.type in _MODULE_STATEMENTS for child in root.named_children):
            return True
        for node in iter_nodes(root):
            if node.type == "meta_property" and node.child_count and node.children[0].type == "import":
                return True
        return False

    @staticmethod
    def contains_markup(tree: Tree) -> bool:
        return any(node.type in _MARKUP_NODES for node in iter_nodes(tree.root_node))


@lru_cache(maxsize=None)
def get_toolchain() -> Toolchain:
    """Return the toolchain of the current process; parsers are never shared across workers."""
    return Toolchain()


__all__ = ["Diagnostic", "Toolchain", "get_toolchain", "iter_nodes", "node_text"]
