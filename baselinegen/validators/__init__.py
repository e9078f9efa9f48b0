"""Per-file acceptance checks run inside the worker pool."""

from .base import read_source
from .typed import ErasureOutput, check_typed, erase, erase_file
from .untyped import check_untyped, classify, classify_file

__all__ = [
    "ErasureOutput",
    "check_typed",
    "check_untyped",
    "classify",
    "classify_file",
    "erase",
    "erase_file",
    "read_source",
]
