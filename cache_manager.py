#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Cache Manager for the Shorts Slider backend.

Keeps track of the application's caches so administrative actions (purge,
statistics) can reach all of them through one object.
"""

import asyncio
from typing import Any, Callable, Dict

from logging_config import StructuredLogger
from utils import TTLCache

logger = StructuredLogger(__name__)


class CacheManager:
    """Registry of named caches.

    Key-value caches (``TTLCache``) support prefix purges; functions decorated
    with ``functools.lru_cache`` can be registered so they are cleared too.
    """

    def __init__(self):
        self._kv_caches: Dict[str, TTLCache] = {}
        self._func_caches: Dict[str, Callable] = {}
        self._lock = asyncio.Lock()

    async def register_cache(self, name: str, cache: TTLCache) -> None:
        """Register a key-value cache under a unique name."""
        async with self._lock:
            self._kv_caches[name] = cache
            logger.debug(f"Registered cache: {name}")

    def register_func_cache(self, name: str, func: Callable) -> None:
        """Register a function with @lru_cache decorator."""
        if hasattr(func, 'cache_clear'):
            self._func_caches[name] = func
            logger.debug(f"Registered function cache: {name}")
        else:
            logger.warning(f"Function {name} does not have cache_clear method, not registering")

    async def purge_prefix(self, prefix: str) -> Dict[str, int]:
        """Delete every entry under ``prefix`` from all registered key-value caches.

        Returns:
            dict: Number of entries removed per cache.
        """
        results: Dict[str, int] = {}
        for name, cache in self._kv_caches.items():
            results[name] = await cache.purge_prefix(prefix)
        logger.info(f"Purged cache prefix '{prefix}'", prefix=prefix, results=results)
        return results

    async def clear_all_caches(self) -> Dict[str, Any]:
        """Clear every registered cache.

        Returns:
            dict: Entries removed per key-value cache and the number of
            function caches cleared.
        """
        logger.info("Clearing all registered caches...")
        results: Dict[str, Any] = {}

        for name, cache in self._kv_caches.items():
            results[f"cache_{name}"] = await cache.clear()

        for func in self._func_caches.values():
            func.cache_clear()
        results["function_caches_cleared"] = len(self._func_caches)

        logger.info(f"Cache clearing complete. Results: {results}")
        return results

    async def get_stats(self) -> Dict[str, Any]:
        """Get statistics for all registered caches."""
        stats: Dict[str, Any] = {}

        for name, cache in self._kv_caches.items():
            stats[f"cache_{name}"] = await cache.get_stats()

        for name, func in self._func_caches.items():
            if hasattr(func, 'cache_info'):
                info = func.cache_info()
                lookups = info.hits + info.misses
                stats[f"func_cache_{name}"] = {
                    "hits": info.hits,
                    "misses": info.misses,
                    "maxsize": info.maxsize,
                    "currsize": info.currsize,
                    "hit_ratio": info.hits / lookups if lookups > 0 else 0,
                }
            else:
                stats[f"func_cache_{name}"] = "No cache_info method available"

        return stats
