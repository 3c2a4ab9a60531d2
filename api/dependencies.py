#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI dependency injection functions for the Shorts Slider services.

Provides the pipeline, defaults store and cache manager to route handlers,
and decides whether a caller is privileged (admin token presented).
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from cache_manager import CacheManager
from config import config
from exceptions import AdminAuthError
from logging_config import StructuredLogger
from services.defaults_store import DefaultsStore
from services.pipeline import PlaylistPipeline

logger = StructuredLogger(__name__)

# --- Global Service Instances ---
# Populated during application lifespan startup.
pipeline: Optional[PlaylistPipeline] = None
defaults_store: Optional[DefaultsStore] = None
cache_manager: Optional[CacheManager] = None

admin_token_header = APIKeyHeader(name=config.ADMIN_TOKEN_HEADER, auto_error=False)


def _unavailable(component: str) -> HTTPException:
    logger.critical(f"Dependency Error: {component} not initialized.", exc_info=False)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Service Initialization Error: {component} is not available.",
        headers={"X-Error-Code": "SERVICE_UNAVAILABLE"}
    )


def get_pipeline() -> PlaylistPipeline:
    """Return the initialized playlist pipeline or fail with 503."""
    if not pipeline:
        raise _unavailable("Playlist pipeline")
    return pipeline


def get_defaults_store() -> DefaultsStore:
    """Return the initialized defaults store or fail with 503."""
    if not defaults_store:
        raise _unavailable("Defaults store")
    return defaults_store


def get_cache_manager() -> CacheManager:
    """Return the initialized cache manager or fail with 503."""
    if not cache_manager:
        raise _unavailable("Cache manager")
    return cache_manager


def token_is_valid(token: Optional[str]) -> bool:
    """True when an admin token is configured and ``token`` matches it."""
    expected = config.ADMIN_TOKEN
    if not expected or not token:
        return False
    return secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def is_privileged(token: Optional[str] = Security(admin_token_header)) -> bool:
    """Whether the caller may see detailed error messages."""
    return token_is_valid(token)


def require_admin(token: Optional[str] = Security(admin_token_header)) -> str:
    """Guard for administrative endpoints.

    Raises:
        HTTPException: 401 when the admin token is missing or wrong.
    """
    if not token_is_valid(token):
        logger.warning("Rejected administrative request without a valid token")
        raise AdminAuthError().to_http_exception()
    return token
