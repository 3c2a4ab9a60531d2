#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Configuration module for the Shorts Slider backend.

Defines process-wide settings and loads overrides from environment variables.
Per-deployment slider defaults (the values an administrator edits) live in
the defaults store, not here.
"""

import os
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Default configuration values
_CONFIG_DEFAULTS: Dict[str, Any] = {
    # API Configuration
    "API_KEY": "",
    "API_KEY_ENV_VAR": "YOUTUBE_API_KEY",
    "API_KEY_SALT_ENV_VAR": "SHORTS_API_KEY_SALT",  # Both set: stored key is encrypted
    "API_KEY_PASSWORD_ENV_VAR": "SHORTS_API_KEY_PASSWORD",
    "API_KEY_KDF_ITERATIONS": 100000,
    "API_BASE_SERVICE": "youtube",
    "API_VERSION": "v3",
    "API_TIMEOUT_SECONDS": 15.0,  # Single attempt, no retries
    "USER_AGENT_NAME": "shorts-slider",

    # Playlist limits
    "MAX_VIDEOS_LIMIT": 50,  # Max allowed by playlistItems.list
    "DEFAULT_MAX_VIDEOS": 20,
    "DESCRIPTION_WORD_LIMIT": 20,

    # Caching
    "CACHE_KEY_PREFIX": "yt_shorts_",
    "MIN_CACHE_TTL": 300,  # 5 minutes
    "MAX_CACHE_TTL": 604800,  # 7 days
    "DEFAULT_CACHE_TTL": 86400,  # 1 day
    "CACHE_MAX_ENTRIES": 512,
    "CACHE_EVICTION_PERCENT": 20,  # Percentage of entries to evict when cache is full

    # Defaults store
    "DEFAULTS_FILE": "shorts_slider_defaults.json",

    # Administration
    "ADMIN_TOKEN": "",
    "ADMIN_TOKEN_HEADER": "X-Admin-Token",
    "GENERIC_ERROR_MESSAGE": "Content temporarily unavailable.",

    # Encoding
    "DEFAULT_ENCODING": "utf-8",

    # Logging
    "LOG_FILE": "shorts_slider_backend.log",

    # CORS
    "ALLOWED_ORIGINS": [
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
}


class Config:
    """Configuration class that loads values from environment variables."""

    def __init__(self, load_from_env=True):
        """Initialize configuration with default values and optionally from environment.

        Args:
            load_from_env: Whether to load values from environment variables
        """
        for key, value in _CONFIG_DEFAULTS.items():
            # Copy lists so instances never share mutable defaults
            setattr(self, key, list(value) if isinstance(value, list) else value)

        if load_from_env:
            self.load_from_env()

    def load_from_env(self):
        """Load configuration values from environment variables."""
        self.API_KEY = os.environ.get(self.API_KEY_ENV_VAR, self.API_KEY)
        self.ADMIN_TOKEN = os.environ.get("SHORTS_ADMIN_TOKEN", self.ADMIN_TOKEN)
        self.DEFAULTS_FILE = os.environ.get("SHORTS_DEFAULTS_FILE", self.DEFAULTS_FILE)
        self.LOG_FILE = os.environ.get("SHORTS_LOG_FILE", self.LOG_FILE)

        prefix = os.environ.get("CACHE_KEY_PREFIX")
        if prefix is not None:
            if prefix.strip():
                self.CACHE_KEY_PREFIX = prefix.strip()
            else:
                logger.warning("Empty CACHE_KEY_PREFIX ignored; prefix purge needs a namespace.")

        env_origins = os.environ.get("ALLOWED_ORIGINS", "")
        if env_origins:
            origins = [origin.strip() for origin in env_origins.split(",")]
            self.ALLOWED_ORIGINS = [o for o in origins if o]
            logger.info(f"CORS origins set from environment: {self.ALLOWED_ORIGINS}")

        self._load_float_from_env("API_TIMEOUT_SECONDS")
        self._load_int_from_env("CACHE_MAX_ENTRIES")
        self._load_int_from_env("CACHE_EVICTION_PERCENT")
        self._load_int_from_env("DESCRIPTION_WORD_LIMIT")

        if not self.API_KEY:
            logger.info(
                f"No API key in env var {self.API_KEY_ENV_VAR}; "
                "the stored key or per-request overrides will be used."
            )

    def _load_int_from_env(self, key):
        """Load an integer value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, int(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid integer value for {key}: {env_value}")
        return False

    def _load_float_from_env(self, key):
        """Load a float value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, float(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid float value for {key}: {env_value}")
        return False


# Create a single instance of Config to be imported by other modules
config = Config(load_from_env=True)
