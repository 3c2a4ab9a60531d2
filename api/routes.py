#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API Routes for the Shorts Slider backend using FastAPI.

Defines the slider data endpoint, health check and the administrative
endpoints (cache purge, settings, statistics).
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from __init__ import __version__ as app_version
from api.dependencies import (get_cache_manager, get_defaults_store, get_pipeline,
                              is_privileged, require_admin)
from cache_manager import CacheManager
from config import config
from exceptions import InvalidInputError, handle_exception
from logging_config import StructuredLogger
from models import (ApiKeyUpdate, ErrorResponse, PurgeResponse, ResultKind,
                    SettingsResponse, UninstallResponse, VideoItem, VideosResponse)
from services.defaults_store import DefaultsStore
from services.pipeline import PlaylistPipeline

logger = StructuredLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    ResultKind.INVALID_CONFIG: status.HTTP_400_BAD_REQUEST,
    ResultKind.FETCH_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ResultKind.EMPTY_RESULT: status.HTTP_404_NOT_FOUND,
}

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid playlist ID or API key"},
    401: {"model": ErrorResponse, "description": "Admin token missing or invalid"},
    404: {"model": ErrorResponse, "description": "Playlist has no valid videos"},
    502: {"model": ErrorResponse, "description": "YouTube API request failed"},
    503: {"model": ErrorResponse, "description": "Service not initialized"},
}


@router.get("/health", summary="Health Check")
async def health_check(pipeline: PlaylistPipeline = Depends(get_pipeline)):
    """Report service status and version."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service_version": app_version,
    }


@router.get(
    "/api/videos",
    response_model=VideosResponse,
    responses=ERROR_RESPONSES,
    summary="Playlist videos for the slider",
    description="Resolves the slider parameters (query string) against the stored defaults "
                "and returns the playlist's videos, served from cache when possible.",
)
async def get_videos(
    request: Request,
    privileged: bool = Depends(is_privileged),
    pipeline: PlaylistPipeline = Depends(get_pipeline),
    store: DefaultsStore = Depends(get_defaults_store),
):
    """Return the videos for the playlist named in the query string.

    ``playlist``/``playlist_id`` and ``max``/``max_videos`` are both accepted.
    Errors carry a detailed message only for callers presenting the admin token.
    """
    params = dict(request.query_params)
    defaults, stored_api_key = await asyncio.to_thread(store.read_settings)
    result = await pipeline.render(
        params,
        defaults=defaults,
        stored_api_key=stored_api_key or config.API_KEY,
    )

    if result.ok:
        return VideosResponse(
            videos=[VideoItem.from_record(video) for video in result.videos],
            count=len(result.videos),
            cache_hit=result.cache_hit,
            play_mode=result.play_mode,
            layout=result.layout,
        )

    error = ErrorResponse(
        detail=result.user_message(privileged),
        error_code=result.kind.name,
        reason=result.reason if privileged else None,
    )
    return JSONResponse(
        status_code=ERROR_STATUS[result.kind],
        content=error.model_dump(exclude_none=True),
        headers={"X-Error-Code": result.kind.name},
    )


@router.post(
    "/api/cache/purge",
    response_model=PurgeResponse,
    responses=ERROR_RESPONSES,
    summary="Purge cached playlists",
)
async def purge_cache(
    _: str = Depends(require_admin),
    pipeline: PlaylistPipeline = Depends(get_pipeline),
):
    """Delete every cached playlist so the next render re-fetches from YouTube."""
    purged = await pipeline.purge_cache()
    logger.warning(f"Playlist cache purged by admin request: {purged} entries", purged=purged)
    return PurgeResponse(purged=purged, prefix=pipeline.key_prefix)


@router.get("/api/settings", response_model=SettingsResponse, responses=ERROR_RESPONSES)
async def get_settings(
    _: str = Depends(require_admin),
    store: DefaultsStore = Depends(get_defaults_store),
):
    """Return the stored slider defaults."""
    defaults, stored_api_key = await asyncio.to_thread(store.read_settings)
    return SettingsResponse(
        defaults=defaults,
        api_key_configured=bool(stored_api_key or config.API_KEY),
    )


@router.put("/api/settings", response_model=SettingsResponse, responses=ERROR_RESPONSES)
async def save_settings(
    values: Dict[str, Any] = Body(...),
    _: str = Depends(require_admin),
    store: DefaultsStore = Depends(get_defaults_store),
):
    """Sanitize and save new slider defaults; out-of-range values are clamped."""
    await asyncio.to_thread(store.save_defaults, values)
    defaults, stored_api_key = await asyncio.to_thread(store.read_settings)
    return SettingsResponse(
        defaults=defaults,
        api_key_configured=bool(stored_api_key or config.API_KEY),
    )


@router.delete("/api/settings", response_model=UninstallResponse, responses=ERROR_RESPONSES)
async def uninstall(
    _: str = Depends(require_admin),
    pipeline: PlaylistPipeline = Depends(get_pipeline),
    store: DefaultsStore = Depends(get_defaults_store),
):
    """Remove the stored settings and API key and purge every cached playlist.

    Renders afterwards use factory defaults until settings are saved again.
    """
    removed = await asyncio.to_thread(store.uninstall)
    purged = await pipeline.purge_cache()
    logger.warning(f"Settings removed by admin request; {purged} cache entries purged",
                   removed=removed, purged=purged)
    return UninstallResponse(removed=removed, purged=purged)


@router.put("/api/settings/api-key", responses=ERROR_RESPONSES)
async def save_api_key(
    update: ApiKeyUpdate,
    _: str = Depends(require_admin),
    store: DefaultsStore = Depends(get_defaults_store),
):
    """Save the deployment API key used when a render does not supply one."""
    try:
        key = await asyncio.to_thread(store.save_api_key, update.api_key)
    except InvalidInputError as e:
        raise handle_exception(e)
    return {"api_key_configured": bool(key)}


@router.get("/api/stats", responses=ERROR_RESPONSES)
async def get_stats(
    _: str = Depends(require_admin),
    pipeline: PlaylistPipeline = Depends(get_pipeline),
    manager: CacheManager = Depends(get_cache_manager),
):
    """Pipeline counters and cache statistics."""
    return {
        "pipeline": pipeline.get_stats(),
        "caches": await manager.get_stats(),
    }
