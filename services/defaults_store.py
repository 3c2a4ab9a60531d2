#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Persistence of the per-deployment slider defaults and stored API key.

The document is a small JSON file::

    {"api_key": "", "api_key_encrypted": "gAAAA...", "defaults": {"max": 20, ...}}

The key is stored encrypted when ``SecureApiKeyManager`` has a password and
salt, otherwise in ``api_key`` as plain text. The document is created with
factory values on activation, rewritten only through the administrative save
methods and read once per render.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from cryptography.fernet import InvalidToken

from config import config
from exceptions import InvalidInputError
from logging_config import StructuredLogger
from models import API_KEY_RE, SliderDefaults
from text_processing import clean_text
from utils import SecureApiKeyManager

logger = StructuredLogger(__name__)


class DefaultsStore:
    """JSON-file store for ``SliderDefaults`` and the deployment API key.

    Methods are blocking; async callers run them through ``asyncio.to_thread``.
    """

    def __init__(self, path: Union[str, Path, None] = None,
                 key_manager: Optional[SecureApiKeyManager] = None):
        self.path = Path(path or config.DEFAULTS_FILE)
        self.key_manager = key_manager or SecureApiKeyManager()
        # Serializes read-modify-write cycles between worker threads
        self._write_lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding=config.DEFAULT_ENCODING) as f:
                document = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.error(f"Could not read defaults file {self.path}: {e}", path=str(self.path))
            return {}
        return document if isinstance(document, dict) else {}

    def _write(self, document: Dict[str, Any]) -> None:
        """Write the document atomically (temp file, then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".defaults-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding=config.DEFAULT_ENCODING) as f:
                json.dump(document, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def _defaults_from(document: Mapping[str, Any]) -> SliderDefaults:
        raw = document.get("defaults")
        return SliderDefaults.model_validate(raw if isinstance(raw, dict) else {})

    def _api_key_from(self, document: Mapping[str, Any]) -> str:
        token = document.get("api_key_encrypted")
        if isinstance(token, str) and token:
            if not self.key_manager.encryption_available:
                logger.error("Stored API key is encrypted but no password/salt is configured",
                             exc_info=False)
                return ""
            try:
                return self.key_manager.decrypt_key(token)
            except (InvalidToken, ValueError) as e:
                logger.error(f"Could not decrypt stored API key: {type(e).__name__}", exc_info=False)
                return ""
        value = document.get("api_key", "")
        return value if isinstance(value, str) else ""

    def exists(self) -> bool:
        return self.path.is_file()

    def activate(self) -> SliderDefaults:
        """Create the document with factory defaults if it does not exist yet."""
        with self._write_lock:
            if not self.exists():
                self._write({"api_key": "", "defaults": SliderDefaults().model_dump()})
                logger.info(f"Created defaults file {self.path}", path=str(self.path))
        return self.load()

    def read_settings(self) -> Tuple[SliderDefaults, str]:
        """Return the defaults and the stored API key from a single read."""
        document = self._read()
        return self._defaults_from(document), self._api_key_from(document)

    def load(self) -> SliderDefaults:
        """Return the stored defaults, sanitized; factory values for anything missing."""
        return self._defaults_from(self._read())

    def get_api_key(self) -> str:
        return self._api_key_from(self._read())

    def save_defaults(self, values: Optional[Mapping[str, Any]]) -> SliderDefaults:
        """Sanitize and persist new defaults.

        Missing or malformed fields take their factory value, numeric fields
        are clamped into range.
        """
        defaults = SliderDefaults.model_validate(dict(values or {}))
        with self._write_lock:
            document = self._read()
            document["defaults"] = defaults.model_dump()
            self._write(document)
        logger.info("Slider defaults saved", path=str(self.path))
        return defaults

    def save_api_key(self, value: Optional[str]) -> str:
        """Persist the deployment API key; an empty value clears it.

        Raises:
            InvalidInputError: If a non-empty key is not 39 characters of
                ``[A-Za-z0-9_-]``. The stored key is left unchanged.
        """
        key = clean_text(value)
        if key and not API_KEY_RE.match(key):
            logger.warning("Rejected API key with invalid format")
            raise InvalidInputError("Invalid YouTube API key format. Please check your key.")

        with self._write_lock:
            document = self._read()
            document.pop("api_key_encrypted", None)
            document["api_key"] = key
            if key and self.key_manager.encryption_available:
                document["api_key_encrypted"] = self.key_manager.encrypt_key(key)
                document["api_key"] = ""
            elif key:
                logger.warning(
                    f"Storing API key in plain text; set {config.API_KEY_PASSWORD_ENV_VAR} "
                    f"and {config.API_KEY_SALT_ENV_VAR} to encrypt it."
                )
            self._write(document)

        logger.info("API key saved" if key else "API key cleared", api_key=key)
        return key

    def uninstall(self) -> bool:
        """Delete the document. Returns True if a file was removed."""
        with self._write_lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                return False
        logger.info(f"Removed defaults file {self.path}", path=str(self.path))
        return True
