#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
YouTube Data API client for playlist items.

Issues exactly one ``playlistItems.list`` call per fetch, with a fixed
timeout and an identifying user agent. Failures are raised as
``PlaylistFetchError`` with a reason code; nothing is retried here.
"""

import asyncio
import http.client
from typing import Any, Callable, Dict, Optional

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiClientError, HttpError
from googleapiclient.http import set_user_agent

from __init__ import __version__
from config import config
from exceptions import PlaylistFetchError
from logging_config import StructuredLogger
from utils import performance_timer

logger = StructuredLogger(__name__)


class PlaylistFetcher:
    """Fetches raw ``playlistItems`` payloads from the YouTube Data API v3."""

    def __init__(self, timeout: float = config.API_TIMEOUT_SECONDS,
                 user_agent: Optional[str] = None,
                 http_factory: Optional[Callable[[], Any]] = None):
        """Initialize the fetcher.

        Args:
            timeout: Socket timeout in seconds for the single request.
            user_agent: User agent string; defaults to ``shorts-slider/<version>``.
            http_factory: Returns the transport for one request. Defaults to a
                fresh ``httplib2.Http`` with ``timeout``; tests pass a mock.
        """
        self.timeout = timeout
        self.user_agent = user_agent or f"{config.USER_AGENT_NAME}/{__version__}"
        self._http_factory = http_factory or (lambda: httplib2.Http(timeout=self.timeout))
        self.api_calls_count = 0
        self.api_failures_count = 0

    def _build_service(self, api_key: str):
        http = set_user_agent(self._http_factory(), self.user_agent)
        return build(
            config.API_BASE_SERVICE,
            config.API_VERSION,
            developerKey=api_key,
            http=http,
            cache_discovery=False,
            static_discovery=True,
        )

    def _fetch_sync(self, playlist_id: str, max_results: int, api_key: str) -> Dict[str, Any]:
        """Blocking fetch; runs in a worker thread."""
        log = logger.bind(playlist_id=playlist_id, max_results=max_results)

        try:
            service = self._build_service(api_key)
        except Exception as e:
            log.error(f"Could not build YouTube API client: {e}")
            raise PlaylistFetchError("client_error", f"Could not build YouTube API client: {e}") from e

        request = service.playlistItems().list(
            part="snippet",
            playlistId=playlist_id,
            maxResults=max_results,
        )

        self.api_calls_count += 1
        try:
            with performance_timer("youtube.playlistItems.list", threshold_ms=1000):
                payload = request.execute(num_retries=0)
        except HttpError as e:
            status_code = int(getattr(e.resp, "status", 0) or 0)
            log.warning(f"YouTube API returned error code: {status_code}", status=status_code)
            raise PlaylistFetchError("http_error", f"YouTube API returned error code: {status_code}",
                                     status_code=status_code) from e
        except ValueError as e:
            # Older client releases raise on undecodable bodies instead of returning them
            log.warning(f"YouTube API response JSON decode error: {e}")
            raise PlaylistFetchError("malformed_json", "YouTube API response JSON decode error") from e
        except (httplib2.HttpLib2Error, http.client.HTTPException, OSError, GoogleApiClientError) as e:
            log.warning(f"YouTube API request failed: {e}", error=str(e))
            raise PlaylistFetchError("transport_error", f"YouTube API request failed: {e}") from e

        return self._check_payload(payload, log)

    @staticmethod
    def _check_payload(payload: Any, log: StructuredLogger) -> Dict[str, Any]:
        if payload is None or payload == "" or payload == b"":
            log.warning("YouTube API returned empty response")
            raise PlaylistFetchError("empty_body", "YouTube API returned empty response")
        if not isinstance(payload, dict):
            log.warning("YouTube API response is not a JSON object")
            raise PlaylistFetchError("malformed_json", "YouTube API response JSON decode error")
        items = payload.get("items")
        if not items or not isinstance(items, list):
            log.warning("YouTube API returned no items or invalid format")
            raise PlaylistFetchError("missing_items", "YouTube API returned no items or invalid format")
        return payload

    async def fetch(self, playlist_id: str, max_results: int, api_key: str) -> Dict[str, Any]:
        """Fetch one page of playlist items.

        Args:
            playlist_id: Validated playlist ID.
            max_results: Number of items to request (1-50).
            api_key: YouTube Data API key.

        Returns:
            dict: Decoded API payload with a non-empty ``items`` list.

        Raises:
            PlaylistFetchError: On transport failure, non-2xx status, empty or
                undecodable body, or a missing/empty ``items`` array.
        """
        logger.debug(f"Fetching playlist {playlist_id} (maxResults={max_results})",
                     playlist_id=playlist_id, max_results=max_results)
        try:
            return await asyncio.to_thread(self._fetch_sync, playlist_id, max_results, api_key)
        except PlaylistFetchError:
            self.api_failures_count += 1
            raise

    def get_stats(self) -> Dict[str, int]:
        return {
            "api_calls": self.api_calls_count,
            "api_failures": self.api_failures_count,
        }
