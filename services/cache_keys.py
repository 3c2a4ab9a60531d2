#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Cache key derivation for playlist entries."""

import hashlib
from typing import Optional

from config import config


def derive_key(playlist_id: str, max_results: int, cache_ttl_seconds: int,
               prefix: Optional[str] = None) -> str:
    """Return the namespaced cache key for a playlist query.

    The key is ``prefix + md5(playlist_id|max_results|cache_ttl_seconds)``.
    Fields are joined with a separator so that, for example, ``(1, 3600)`` and
    ``(13, 600)`` cannot collide. Thumbnail quality and API key are not part
    of the key.

    Args:
        playlist_id: Validated playlist identifier.
        max_results: Clamped result-size bound.
        cache_ttl_seconds: Clamped TTL.
        prefix: Namespace tag; defaults to ``config.CACHE_KEY_PREFIX``.
    """
    if prefix is None:
        prefix = config.CACHE_KEY_PREFIX
    raw = f"{playlist_id}|{int(max_results)}|{int(cache_ttl_seconds)}"
    return prefix + hashlib.md5(raw.encode("utf-8")).hexdigest()
