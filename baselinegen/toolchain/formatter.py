"""Deterministic formatting of erased JavaScript output."""

from __future__ import annotations

import shutil
import subprocess
from typing import List, Optional, Sequence

import jsbeautifier

from ..errors import ConfigError, FormatError
from ..models import Dialect
from .parser import Toolchain, get_toolchain, iter_nodes
from .patch import Edit, apply_edits

# Statement lists in which a lone `;` can be dropped without changing meaning.
_STATEMENT_LISTS = {"program", "statement_block", "switch_case", "switch_default"}


class Formatter:
    """Normalizes JavaScript so two semantically equal outputs compare equal as text.

    Comments and redundant `;` tokens are removed first, then the code
    is pretty-printed either by jsbeautifier or by an external command that
    reads stdin and writes stdout.
    """

    def __init__(
        self,
        *,
        indent_size: int = 4,
        command: Optional[Sequence[str]] = None,
        toolchain: Toolchain | None = None,
    ) -> None:
        self.indent_size = indent_size
        self.command: List[str] = list(command or [])
        self._toolchain = toolchain

    @property
    def signature(self) -> str:
        """Identity of the formatter output, used to key cached results."""
        if self.command:
            return "command:" + " ".join(self.command)
        return f"jsbeautifier:{jsbeautifier.__version__}:{self.indent_size}"

    def ensure_available(self) -> None:
        if self.command and shutil.which(self.command[0]) is None:
            raise ConfigError(f"Formatter executable '{self.command[0]}' was not found on PATH")

    def format(self, text: str) -> str:
        normalized = self.normalize(text)
        if self.command:
            return self._run_command(normalized)
        return self._beautify(normalized)

    def normalize(self, text: str) -> str:
        toolchain = self._toolchain or get_toolchain()
        source = text.encode("utf-8")
        tree = toolchain.parse(source, Dialect.UNTYPED)
        diagnostics = toolchain.diagnostics(tree)
        if diagnostics:
            raise FormatError(f"Cannot format invalid JavaScript: {diagnostics[0]}")

        edits: List[Edit] = []
        for node in iter_nodes(tree.root_node):
            if node.type == "comment":
                edits.append(Edit(node.start_byte, node.end_byte, _comment_replacement(source, node)))
            elif node.type == "empty_statement":
                parent = node.parent
                if parent is not None and parent.type in _STATEMENT_LISTS:
                    edits.append(Edit(node.start_byte, node.end_byte))
            elif node.type == "class_body":
                edits.extend(_empty_class_elements(node))
        # Leading whitespace would become the base indent of every line.
        return apply_edits(source, edits).decode("utf-8").lstrip()

    def _beautify(self, text: str) -> str:
        options = jsbeautifier.default_options()
        options.indent_size = self.indent_size
        options.indent_char = " "
        options.preserve_newlines = False
        options.end_with_newline = True
        options.eol = "\n"
        return jsbeautifier.beautify(text, options)

    def _run_command(self, text: str) -> str:
        try:
            completed = subprocess.run(
                self.command,
                input=text,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise ConfigError(f"Unable to locate formatter '{self.command[0]}'") from exc
        except subprocess.CalledProcessError as exc:
            raise FormatError(
                f"Formatter failed with exit code {exc.returncode}: {exc.stderr.strip()}"
            ) from exc
        return completed.stdout


def _empty_class_elements(body) -> List[Edit]:  # type: ignore[no-untyped-def]
    """Edits removing `;` class elements that do not terminate a field."""
    edits: List[Edit] = []
    previous = None
    for child in body.children:
        if child.type == "comment":
            continue
        if child.type == ";" and (previous is None or previous.type != "field_definition"):
            edits.append(Edit(child.start_byte, child.end_byte))
        previous = child
    return edits


def _comment_replacement(source: bytes, node) -> bytes:  # type: ignore[no-untyped-def]
    text = source[node.start_byte : node.end_byte]
    if text.startswith(b"//"):
        return b""
    # A block comment spanning lines still terminates the line for ASI.
    return b"\n" if b"\n" in text or b"\r" in text else b" "


__all__ = ["Formatter"]
