"""Reference toolchain: parsing, span patching, type erasure and formatting."""

from .formatter import Formatter
from .parser import Diagnostic, Toolchain, get_toolchain
from .patch import Edit, OverlappingEdits, apply_edits, sort_edits
from .strip import strip_codegen, strip_types

__all__ = [
    "Diagnostic",
    "Edit",
    "Formatter",
    "OverlappingEdits",
    "Toolchain",
    "apply_edits",
    "get_toolchain",
    "sort_edits",
    "strip_codegen",
    "strip_types",
]
