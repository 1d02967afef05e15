"""
Console caching package.

Provides the response cache used by the action layer to avoid repeated
backend reads within a short window. Prefer short TTLs and explicit
invalidation from the mutating side.
"""

from .response_cache import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
