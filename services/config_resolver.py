#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Resolution of slider parameters.

Merges caller-supplied parameters over the stored defaults over hardcoded
fallbacks and validates every field. Pure: reads nothing but its arguments.
"""

from typing import Any, Mapping, Optional

from models import (LAYOUT_OPTIONS, OPTION_ALIASES, PlaylistQuery, ResolvedConfig,
                    SliderDefaults, coerce_option, option_fallback)
from text_processing import clean_text


def _first_present(params: Mapping[str, Any], name: str) -> Any:
    """Return the first non-empty value among ``name`` and its aliases."""
    for alias in OPTION_ALIASES.get(name, (name,)):
        value = params.get(alias)
        if value is not None and value != "":
            return value
    return None


def resolve_option(name: str, params: Mapping[str, Any],
                   defaults: Optional[SliderDefaults]) -> Any:
    """Resolve one tunable option: request value, then stored default, then fallback."""
    value = coerce_option(name, _first_present(params, name))
    if value is None and defaults is not None:
        value = coerce_option(name, getattr(defaults, name, None))
    if value is None:
        value = option_fallback(name)
    return value


def resolve(request_params: Optional[Mapping[str, Any]],
            defaults: Optional[SliderDefaults] = None,
            stored_api_key: str = "") -> ResolvedConfig:
    """Produce the validated configuration for one slider render.

    Args:
        request_params: Flat mapping of caller parameters. ``playlist`` and
            ``playlist_id`` are both accepted, as are ``max`` and ``max_videos``.
        defaults: Per-deployment defaults; None means factory defaults.
        stored_api_key: Deployment API key used when the caller gives none.

    Returns:
        ResolvedConfig: Always returned; ``reason`` is set when the playlist ID
        or API key is unusable, in which case nothing may be fetched.
    """
    params = request_params or {}

    playlist_id = clean_text(_first_present(params, "playlist"))
    api_key = clean_text(params.get("api_key") or stored_api_key)

    query = PlaylistQuery(
        playlist_id=playlist_id,
        max_results=resolve_option("max", params, defaults),
        thumbnail_quality=resolve_option("thumb_quality", params, defaults),
        cache_ttl_seconds=resolve_option("cache_ttl", params, defaults),
        api_key=api_key,
    )
    layout = {name: resolve_option(name, params, defaults) for name in LAYOUT_OPTIONS}

    return ResolvedConfig(
        query=query,
        play_mode=resolve_option("play", params, defaults),
        layout=layout,
        reason=query.invalid_reason(),
    )
