"""TTL caching for generated query lists."""

from .ttl_cache import CacheError, TTLCache

__all__ = ["CacheError", "TTLCache"]
