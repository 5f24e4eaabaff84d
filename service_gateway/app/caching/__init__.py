"""
Gateway caching package.

Provides the in-process TTL cache used by the API Gateway to avoid
redundant calls to quota-limited upstream APIs. Entries expire lazily on
read; there is no background sweep.
"""

from .response_cache import CacheEntry, ResponseCache, make_cache_key

__all__ = ["CacheEntry", "ResponseCache", "make_cache_key"]
