"""Persistent stores used across pipeline runs."""

from .result_cache import CachedOutcome, ResultCache, cache_key

__all__ = ["CachedOutcome", "ResultCache", "cache_key"]
