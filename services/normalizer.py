#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Validation and normalization of ``playlistItems`` payloads.

Turns the raw API payload into an ordered list of ``VideoRecord`` objects.
Items that cannot be validated are skipped, never patched up.
"""

from typing import Any, Dict, List, Optional

from config import config
from logging_config import StructuredLogger
from models import VIDEO_ID_RE, VideoRecord
from text_processing import clean_multiline_text, clean_text, clean_url, trim_words

logger = StructuredLogger(__name__)

# Tried after the requested quality, in order
THUMBNAIL_FALLBACK_CHAIN = ("medium", "high", "default")


def select_thumbnail(thumbnails: Any, requested_quality: str) -> str:
    """Pick a thumbnail URL: requested quality, then medium, high, default.

    Returns:
        str: The first URL found along the chain, or an empty string.
    """
    if not isinstance(thumbnails, dict):
        return ""
    for quality in (requested_quality, *THUMBNAIL_FALLBACK_CHAIN):
        entry = thumbnails.get(quality)
        if isinstance(entry, dict) and entry.get("url"):
            return clean_url(entry["url"])
    return ""


def _extract_video_id(item: Any) -> Optional[str]:
    if not isinstance(item, dict):
        return None
    snippet = item.get("snippet")
    if not isinstance(snippet, dict):
        return None
    resource = snippet.get("resourceId")
    if not isinstance(resource, dict) or resource.get("videoId") is None:
        return None
    return clean_text(resource["videoId"])


def normalize_item(item: Any, requested_quality: str,
                   description_words: int = config.DESCRIPTION_WORD_LIMIT) -> Optional[VideoRecord]:
    """Build a ``VideoRecord`` from one playlist item, or None if it must be skipped."""
    video_id = _extract_video_id(item)
    if video_id is None or not VIDEO_ID_RE.match(video_id):
        return None

    snippet: Dict[str, Any] = item["snippet"]
    return VideoRecord(
        video_id=video_id,
        title=clean_text(snippet.get("title")),
        description=trim_words(clean_multiline_text(snippet.get("description")), description_words),
        thumbnail_url=select_thumbnail(snippet.get("thumbnails"), requested_quality),
        published_at=clean_text(snippet.get("publishedAt")),
    )


def normalize(payload: Any, requested_quality: str,
              description_words: int = config.DESCRIPTION_WORD_LIMIT) -> List[VideoRecord]:
    """Parse a raw ``playlistItems`` payload into validated records.

    Args:
        payload: Decoded API response; expected to hold an ``items`` list.
        requested_quality: Preferred thumbnail quality tier.
        description_words: Word limit for descriptions.

    Returns:
        list: Records in API order. Empty if nothing survived validation.
    """
    items = payload.get("items") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        return []

    videos: List[VideoRecord] = []
    for position, item in enumerate(items):
        record = normalize_item(item, requested_quality, description_words)
        if record is None:
            logger.debug(f"Skipping invalid playlist item at position {position}", position=position)
            continue
        videos.append(record)

    skipped = len(items) - len(videos)
    if skipped:
        logger.info(f"Skipped {skipped} of {len(items)} playlist items", skipped=skipped, total=len(items))
    return videos
