#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Utility classes for the Shorts Slider backend.

Includes the in-process key-value cache used for playlist entries, the
encryption helper for the stored API key and a performance timer for
logging slow operations.
"""

import asyncio
import os
import time
from base64 import urlsafe_b64encode
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from config import config
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


# --- Performance Timer ---

@contextmanager
def performance_timer(operation_name: str, threshold_ms: float = 100.0):
    """Context manager for timing operations with threshold-based logging.

    Logs at INFO when the block exceeds ``threshold_ms``, WARNING when it
    exceeds ten times that, otherwise DEBUG.

    Args:
        operation_name: A descriptive name for the operation being timed.
        threshold_ms: Threshold in milliseconds.
    """
    start_time = time.monotonic()
    try:
        yield
    finally:
        duration_ms = (time.monotonic() - start_time) * 1000

        log_data = {
            "operation": operation_name,
            "duration_ms": round(duration_ms, 2),
            "threshold_ms": threshold_ms
        }

        if duration_ms > threshold_ms * 10:
            logger.warning(f"SLOW OPERATION: '{operation_name}' took {duration_ms:.2f}ms", **log_data)
        elif duration_ms > threshold_ms:
            logger.info(f"Performance watch: '{operation_name}' took {duration_ms:.2f}ms", **log_data)
        else:
            logger.debug(f"Performance: '{operation_name}' completed in {duration_ms:.2f}ms", **log_data)


# --- TTL Cache ---

class TTLCache:
    """Key-value store with a per-entry time-to-live and LRU eviction.

    Every entry carries its own expiry instant, set when it is written. Expired
    entries read as absent and are dropped on access. Single-key operations
    are atomic with respect to other coroutines (``asyncio.Lock``); entries are
    replaced wholesale, never updated in place.
    """

    def __init__(self, maxsize: int = config.CACHE_MAX_ENTRIES,
                 default_ttl_seconds: Optional[float] = None,
                 eviction_percent: int = config.CACHE_EVICTION_PERCENT,
                 clock=time.monotonic):
        """Initialize the cache.

        Args:
            maxsize: Maximum number of entries. Must be > 0.
            default_ttl_seconds: TTL used by ``put`` when none is given.
                None means such entries never expire.
            eviction_percent: Percentage (1-100) of entries to evict when full.
            clock: Monotonic time source, replaceable in tests.
        """
        if maxsize <= 0:
            raise ValueError("TTLCache maxsize must be greater than 0")
        self.maxsize = maxsize
        self.default_ttl_seconds = default_ttl_seconds
        self.eviction_percent = max(1, min(int(eviction_percent), 100))
        self._num_to_evict = max(1, int(self.maxsize * (self.eviction_percent / 100.0)))
        self._clock = clock

        self._cache: "OrderedDict[str, Any]" = OrderedDict()
        self._expiry: Dict[str, Optional[float]] = {}
        self._lock = asyncio.Lock()

        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "ttl_expirations": 0,
            "writes": 0,
        }
        logger.debug(f"TTLCache initialized: maxsize={maxsize}, default_ttl={default_ttl_seconds}s")

    def _is_expired(self, key: str) -> bool:
        expiry_time = self._expiry.get(key)
        return expiry_time is not None and self._clock() >= expiry_time

    async def get(self, key: str) -> Optional[Any]:
        """Return the value stored under ``key``, or None if absent or expired."""
        async with self._lock:
            if key not in self._cache:
                self._stats["misses"] += 1
                return None

            if self._is_expired(key):
                self._stats["ttl_expirations"] += 1
                self._stats["misses"] += 1
                self._cache.pop(key, None)
                self._expiry.pop(key, None)
                return None

            value = self._cache[key]
            self._cache.move_to_end(key)
            self._stats["hits"] += 1
            return value

    async def put(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        Args:
            key: Cache key.
            value: Value to store; callers should pass immutable values.
            ttl_seconds: Lifetime of this entry; falls back to the default TTL.
        """
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl_seconds must be positive")

        async with self._lock:
            if key not in self._cache and len(self._cache) >= self.maxsize:
                self._evict_items()

            self._cache[key] = value
            self._cache.move_to_end(key)
            self._expiry[key] = self._clock() + ttl if ttl is not None else None
            self._stats["writes"] += 1

    def _evict_items(self) -> None:
        """Drop expired entries first, then least recently used ones."""
        expired = [k for k in self._cache if self._is_expired(k)]
        for k in expired:
            self._cache.pop(k, None)
            self._expiry.pop(k, None)
            self._stats["ttl_expirations"] += 1
        if expired:
            return

        for _ in range(self._num_to_evict):
            if not self._cache:
                break
            old_key, _ = self._cache.popitem(last=False)
            self._expiry.pop(old_key, None)
            self._stats["evictions"] += 1

    async def remove(self, key: str) -> bool:
        """Remove one entry. Returns True if it was present."""
        async with self._lock:
            if key in self._cache:
                self._cache.pop(key)
                self._expiry.pop(key, None)
                return True
            return False

    async def purge_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``.

        Args:
            prefix: Key namespace to delete. Must be non-empty.

        Returns:
            int: Number of entries removed, expired ones included.
        """
        if not prefix:
            raise ValueError("Refusing to purge with an empty prefix")
        async with self._lock:
            doomed = [k for k in self._cache if k.startswith(prefix)]
            for k in doomed:
                self._cache.pop(k, None)
                self._expiry.pop(k, None)
            return len(doomed)

    async def clear(self) -> int:
        """Remove all entries. Returns the number removed."""
        async with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._expiry.clear()
            return count

    async def size(self) -> int:
        async with self._lock:
            return len(self._cache)

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache usage statistics."""
        async with self._lock:
            stats = self._stats.copy()
            stats["size"] = len(self._cache)
            stats["maxsize"] = self.maxsize
            total_lookups = stats["hits"] + stats["misses"]
            stats["hit_ratio"] = (stats["hits"] / total_lookups) if total_lookups > 0 else 0.0
            return stats


# --- API Key Encryption ---

class SecureApiKeyManager:
    """Encrypts the stored API key with Fernet.

    The Fernet key is derived (PBKDF2-SHA256) from a password and salt read
    from environment variables. When either is missing, encryption is
    unavailable and callers keep the key in plain text.
    """

    def __init__(self, key_salt_env_var: str = config.API_KEY_SALT_ENV_VAR,
                 key_password_env_var: str = config.API_KEY_PASSWORD_ENV_VAR,
                 iterations: int = config.API_KEY_KDF_ITERATIONS):
        """Initialize the key manager.

        Args:
            key_salt_env_var: Environment variable name for the encryption salt.
            key_password_env_var: Environment variable name for the encryption password.
            iterations: PBKDF2 iteration count.
        """
        self.key_salt_env_var = key_salt_env_var
        self.key_password_env_var = key_password_env_var
        self.iterations = iterations
        self._fernet: Optional[Fernet] = None

        self._initialize_encryption()

    def _initialize_encryption(self) -> None:
        """Sets up the Fernet cipher if password and salt are available."""
        password = os.environ.get(self.key_password_env_var, "").encode(config.DEFAULT_ENCODING)
        salt = os.environ.get(self.key_salt_env_var, "").encode(config.DEFAULT_ENCODING)

        if not (password and salt):
            logger.info(
                f"{self.key_password_env_var} or {self.key_salt_env_var} not set; "
                "the stored API key is kept in plain text."
            )
            return

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=self.iterations,
        )
        self._fernet = Fernet(urlsafe_b64encode(kdf.derive(password)))
        logger.info("API key encryption initialized successfully.")

    @property
    def encryption_available(self) -> bool:
        return self._fernet is not None

    def encrypt_key(self, key: str) -> str:
        """Encrypt an API key.

        Returns:
            str: The Fernet token.

        Raises:
            ValueError: If encryption is not available.
        """
        if self._fernet is None:
            raise ValueError("Encryption not available, cannot encrypt key.")
        return self._fernet.encrypt(key.encode(config.DEFAULT_ENCODING)).decode(config.DEFAULT_ENCODING)

    def decrypt_key(self, token: str) -> str:
        """Decrypt a token produced by ``encrypt_key``.

        Raises:
            ValueError: If encryption is not available.
            cryptography.fernet.InvalidToken: If the password or salt changed, or
                the token was tampered with.
        """
        if self._fernet is None:
            raise ValueError("Encryption not available, cannot decrypt key.")
        return self._fernet.decrypt(token.encode(config.DEFAULT_ENCODING)).decode(config.DEFAULT_ENCODING)
