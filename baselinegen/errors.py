"""Error taxonomy shared by the pipeline stages."""

from __future__ import annotations


class BaselineError(RuntimeError):
    """Base class for baselinegen failures."""


class ConfigError(BaselineError):
    """Raised when the configuration file cannot be parsed."""


class PoolFault(BaselineError):
    """Raised when the worker pool cannot be spawned or a task transport breaks."""


class RejectedSource(BaselineError):
    """A single source file is excluded from the corpus."""


class InvalidSyntax(RejectedSource):
    """The reference toolchain reported a syntax diagnostic."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class UnsupportedConstruct(RejectedSource):
    """The source uses syntax the oracle corpus does not cover (inline markup)."""


class UnreadableSource(RejectedSource):
    """The file could not be read or decoded."""


class FormatError(RejectedSource):
    """The formatter failed on the erased output."""


__all__ = [
    "BaselineError",
    "ConfigError",
    "FormatError",
    "InvalidSyntax",
    "PoolFault",
    "RejectedSource",
    "UnreadableSource",
    "UnsupportedConstruct",
]
