#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main FastAPI application setup for the Shorts Slider backend.

Builds the services on startup (defaults store, cache, fetcher, pipeline),
registers CORS and includes the API routes.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __init__ import __version__
from api import dependencies, routes
from cache_manager import CacheManager
from config import config
from logging_config import StructuredLogger
from services.defaults_store import DefaultsStore
from services.pipeline import PlaylistPipeline
from services.youtube_api import PlaylistFetcher
from text_processing import CACHED_FUNCTIONS
from utils import TTLCache

logger = StructuredLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: initialize services on startup, release on shutdown."""
    logger.info("Starting Shorts Slider application lifespan...")

    store = DefaultsStore(config.DEFAULTS_FILE)
    store.activate()

    playlist_cache = TTLCache(maxsize=config.CACHE_MAX_ENTRIES)
    manager = CacheManager()
    await manager.register_cache("playlists", playlist_cache)
    for name, func in CACHED_FUNCTIONS.items():
        manager.register_func_cache(name, func)

    dependencies.defaults_store = store
    dependencies.cache_manager = manager
    dependencies.pipeline = PlaylistPipeline(
        cache=playlist_cache,
        fetcher=PlaylistFetcher(timeout=config.API_TIMEOUT_SECONDS),
        key_prefix=config.CACHE_KEY_PREFIX,
    )

    if not (store.get_api_key() or config.API_KEY):
        logger.warning("No YouTube API key configured; renders must pass api_key until one is saved.")
    if not config.ADMIN_TOKEN:
        logger.warning("SHORTS_ADMIN_TOKEN is not set; administrative endpoints are disabled.")

    logger.info("Shorts Slider services initialized.")

    yield

    logger.info("Shutting down Shorts Slider application lifespan...")
    await manager.clear_all_caches()
    dependencies.pipeline = None
    dependencies.defaults_store = None
    dependencies.cache_manager = None
    logger.info("Lifespan cleanup finished.")


app = FastAPI(
    lifespan=lifespan,
    title="Shorts Slider API",
    description="Cached YouTube playlist data for the horizontal video slider.",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"]
)
logger.debug(f"CORS Middleware added. Allowed origins: {config.ALLOWED_ORIGINS}")

app.include_router(routes.router)
