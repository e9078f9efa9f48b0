"""Reference oracle corpus generator for type-erasure transpilers."""

__version__ = "0.1.0"

__all__ = ["__version__"]
