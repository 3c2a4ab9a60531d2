#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Cache-backed playlist pipeline.

Ties together parameter resolution, cache key derivation, the key-value
cache, the YouTube fetcher and payload normalization. Every call returns a
``PlaylistResult``; expected failures never escape as exceptions.

There is no single-flight protection: concurrent misses on the same key each
fetch, and the last write wins.
"""

import time
from typing import Any, Dict, Mapping, Optional

from config import config
from exceptions import PlaylistFetchError
from logging_config import StructuredLogger
from models import PlaylistQuery, PlaylistResult, SliderDefaults
from services.cache_keys import derive_key
from services.config_resolver import resolve
from services.normalizer import normalize
from services.youtube_api import PlaylistFetcher
from utils import TTLCache

logger = StructuredLogger(__name__)


class PlaylistPipeline:
    """Serves playlist videos from cache, fetching and caching on a miss."""

    def __init__(self, cache: TTLCache, fetcher: PlaylistFetcher,
                 key_prefix: Optional[str] = None,
                 description_words: int = config.DESCRIPTION_WORD_LIMIT):
        """Initialize the pipeline.

        Args:
            cache: Key-value store holding playlist entries.
            fetcher: Playlist fetcher used on cache misses.
            key_prefix: Cache namespace; defaults to ``config.CACHE_KEY_PREFIX``.
            description_words: Word limit applied to descriptions.
        """
        self.cache = cache
        self.fetcher = fetcher
        self.key_prefix = key_prefix or config.CACHE_KEY_PREFIX
        self.description_words = description_words
        self._stats = {
            "requests": 0,
            "invalid_config": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "fetch_failures": 0,
            "empty_results": 0,
            "cache_writes": 0,
        }

    async def get_videos(self, query: PlaylistQuery) -> PlaylistResult:
        """Return the videos for a validated query.

        Args:
            query: Query whose fields have already been clamped.

        Returns:
            PlaylistResult: ``SUCCESS`` with the records, or one of
            ``INVALID_CONFIG``, ``FETCH_FAILURE``, ``EMPTY_RESULT``.
        """
        self._stats["requests"] += 1

        reason = query.invalid_reason()
        if reason is not None:
            self._stats["invalid_config"] += 1
            logger.warning(f"Rejected playlist query: {reason}", reason=reason,
                           playlist_id=query.playlist_id)
            return PlaylistResult.invalid_config(reason)

        key = derive_key(query.playlist_id, query.max_results, query.cache_ttl_seconds,
                         prefix=self.key_prefix)
        log = logger.bind(playlist_id=query.playlist_id, cache_key=key)

        cached = await self.cache.get(key)
        if cached is not None:
            self._stats["cache_hits"] += 1
            log.debug("Playlist cache hit")
            return PlaylistResult.success(cached, cache_key=key, cache_hit=True)

        self._stats["cache_misses"] += 1
        log.debug("Playlist cache miss, querying YouTube API")

        start = time.monotonic()
        try:
            payload = await self.fetcher.fetch(query.playlist_id, query.max_results, query.api_key)
        except PlaylistFetchError as e:
            self._stats["fetch_failures"] += 1
            log.warning(f"Playlist fetch failed: {e.message}", reason=e.reason, status=e.status)
            return PlaylistResult.fetch_failure(e.reason, cache_key=key, status=e.status)

        videos = tuple(normalize(payload, query.thumbnail_quality, self.description_words))
        if not videos:
            self._stats["empty_results"] += 1
            log.info("Playlist returned no valid videos; not caching")
            return PlaylistResult.empty(cache_key=key)

        await self.cache.put(key, videos, ttl_seconds=query.cache_ttl_seconds)
        self._stats["cache_writes"] += 1
        log.info(
            f"Cached {len(videos)} videos for {query.cache_ttl_seconds}s",
            video_count=len(videos),
            ttl=query.cache_ttl_seconds,
            fetch_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return PlaylistResult.success(videos, cache_key=key, cache_hit=False)

    async def render(self, request_params: Optional[Mapping[str, Any]],
                     defaults: Optional[SliderDefaults] = None,
                     stored_api_key: str = "") -> PlaylistResult:
        """Resolve caller parameters, then fetch.

        The resolved play mode and layout options are attached to the result
        whatever its kind.
        """
        resolved = resolve(request_params, defaults, stored_api_key)
        if not resolved.is_valid:
            self._stats["requests"] += 1
            self._stats["invalid_config"] += 1
            logger.warning(f"Invalid slider parameters: {resolved.reason}", reason=resolved.reason)
            result = PlaylistResult.invalid_config(resolved.reason)
        else:
            result = await self.get_videos(resolved.query)
        return result.with_presentation(resolved.play_mode, resolved.layout)

    async def purge_cache(self) -> int:
        """Delete every playlist entry in this pipeline's namespace."""
        count = await self.cache.purge_prefix(self.key_prefix)
        logger.info(f"Purged {count} playlist cache entries", prefix=self.key_prefix, purged=count)
        return count

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self._stats)
        stats["fetcher"] = self.fetcher.get_stats()
        return stats
