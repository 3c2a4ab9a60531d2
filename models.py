#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Pydantic models and dataclasses for the Shorts Slider backend: option rules,
playlist queries, video records, pipeline results and API payloads.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from config import config
from text_processing import clean_hex_color, clean_text, clamp, to_bool, to_int

PLAYLIST_ID_RE = re.compile(r"^PL[A-Za-z0-9_-]{32}$")
API_KEY_RE = re.compile(r"^[A-Za-z0-9_-]{39}$")
VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")

THUMBNAIL_QUALITIES = ("default", "medium", "high", "standard", "maxres")
PLAY_MODES = ("inline", "popup", "redirect")
THUMB_HEIGHTS = ("auto", "80", "120", "160", "180", "200", "240", "300", "350",
                 "400", "450", "500", "550", "600", "650")

# name: (low, high, fallback)
INT_OPTIONS: Dict[str, Tuple[int, int, int]] = {
    "max": (1, config.MAX_VIDEOS_LIMIT, config.DEFAULT_MAX_VIDEOS),
    "cache_ttl": (config.MIN_CACHE_TTL, config.MAX_CACHE_TTL, config.DEFAULT_CACHE_TTL),
    "max_width": (200, 2000, 1450),
    "cols_desktop": (1, 12, 6),
    "cols_tablet": (1, 8, 3),
    "cols_mobile": (1, 4, 2),
    "gap": (0, 100, 20),
    "border_radius": (0, 50, 16),
    "controls_spacing": (20, 200, 56),
    "controls_spacing_tablet": (20, 200, 56),
    "controls_spacing_mobile": (20, 200, 56),
    "controls_bottom_spacing": (10, 100, 20),
    "arrow_border_radius": (0, 50, 0),
    "arrow_padding": (0, 20, 3),
    "arrow_width": (20, 100, 35),
    "arrow_height": (20, 100, 35),
    "arrow_icon_size": (12, 48, 28),
}

# name: (allowed values, fallback)
CHOICE_OPTIONS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "play": (PLAY_MODES, "inline"),
    "thumb_quality": (THUMBNAIL_QUALITIES, "medium"),
    "thumb_height": (THUMB_HEIGHTS, "auto"),
}

COLOR_OPTIONS: Dict[str, str] = {
    "title_color": "#111111",
    "title_hover_color": "#000000",
    "arrow_bg_color": "#111111",
    "arrow_hover_bg_color": "#000000",
    "arrow_icon_color": "#ffffff",
    "pagination_dot_color": "#cfcfcf",
    "pagination_active_dot_color": "#111111",
}

BOOL_OPTIONS: Dict[str, bool] = {
    "center_on_click": True,
}

# Historical parameter names still accepted from callers
OPTION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "playlist": ("playlist", "playlist_id"),
    "max": ("max", "max_videos"),
}

LAYOUT_OPTIONS = tuple(
    name for name in (*INT_OPTIONS, *CHOICE_OPTIONS, *COLOR_OPTIONS, *BOOL_OPTIONS)
    if name not in ("max", "cache_ttl", "play", "thumb_quality")
)


def option_fallback(name: str) -> Any:
    """Hardcoded fallback for a tunable option."""
    if name in INT_OPTIONS:
        return INT_OPTIONS[name][2]
    if name in CHOICE_OPTIONS:
        return CHOICE_OPTIONS[name][1]
    if name in COLOR_OPTIONS:
        return COLOR_OPTIONS[name]
    if name in BOOL_OPTIONS:
        return BOOL_OPTIONS[name]
    raise KeyError(name)


def coerce_option(name: str, value: Any) -> Optional[Any]:
    """Validate one tunable option.

    Numeric options are clamped into range, choices must match exactly and
    colours are normalized. Returns None when the value is absent or cannot
    be interpreted, so the caller can fall through to the next source.
    """
    if value is None:
        return None
    if name in INT_OPTIONS:
        low, high, _ = INT_OPTIONS[name]
        number = to_int(value)
        return None if number is None else clamp(number, low, high)
    if name in CHOICE_OPTIONS:
        allowed, _ = CHOICE_OPTIONS[name]
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            return None
        text = clean_text(value)
        return text if text in allowed else None
    if name in COLOR_OPTIONS:
        if value == "":
            return None
        color = clean_hex_color(value, "")
        return color or None
    if name in BOOL_OPTIONS:
        return to_bool(value)
    raise KeyError(name)


class SliderDefaults(BaseModel):
    """Per-deployment fallback values for every tunable slider option.

    Unknown keys are ignored and every malformed value is replaced by the
    field's factory default, so loading never fails.
    """

    model_config = ConfigDict(extra="ignore")

    max: int = option_fallback("max")
    play: str = option_fallback("play")
    cache_ttl: int = option_fallback("cache_ttl")
    max_width: int = option_fallback("max_width")
    thumb_height: str = option_fallback("thumb_height")
    cols_desktop: int = option_fallback("cols_desktop")
    cols_tablet: int = option_fallback("cols_tablet")
    cols_mobile: int = option_fallback("cols_mobile")
    gap: int = option_fallback("gap")
    center_on_click: bool = option_fallback("center_on_click")
    thumb_quality: str = option_fallback("thumb_quality")
    border_radius: int = option_fallback("border_radius")
    title_color: str = option_fallback("title_color")
    title_hover_color: str = option_fallback("title_hover_color")
    controls_spacing: int = option_fallback("controls_spacing")
    controls_spacing_tablet: int = option_fallback("controls_spacing_tablet")
    controls_spacing_mobile: int = option_fallback("controls_spacing_mobile")
    controls_bottom_spacing: int = option_fallback("controls_bottom_spacing")
    arrow_border_radius: int = option_fallback("arrow_border_radius")
    arrow_padding: int = option_fallback("arrow_padding")
    arrow_width: int = option_fallback("arrow_width")
    arrow_height: int = option_fallback("arrow_height")
    arrow_bg_color: str = option_fallback("arrow_bg_color")
    arrow_hover_bg_color: str = option_fallback("arrow_hover_bg_color")
    arrow_icon_color: str = option_fallback("arrow_icon_color")
    arrow_icon_size: int = option_fallback("arrow_icon_size")
    pagination_dot_color: str = option_fallback("pagination_dot_color")
    pagination_active_dot_color: str = option_fallback("pagination_active_dot_color")

    @field_validator("*", mode="before")
    @classmethod
    def sanitize_option(cls, v: Any, info: ValidationInfo) -> Any:
        """Clamp or replace each value using the shared option rules."""
        coerced = coerce_option(info.field_name, v)
        if coerced is None:
            return option_fallback(info.field_name)
        return coerced


@dataclass(frozen=True)
class VideoRecord:
    """One validated playlist entry, safe to cache and to hand to the renderer."""

    video_id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str = ""
    published_at: str = ""

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"

    @property
    def embed_url(self) -> str:
        return f"https://www.youtube.com/embed/{self.video_id}"


@dataclass(frozen=True)
class PlaylistQuery:
    """Validated inputs of one playlist fetch."""

    playlist_id: str
    max_results: int = config.DEFAULT_MAX_VIDEOS
    thumbnail_quality: str = "medium"
    cache_ttl_seconds: int = config.DEFAULT_CACHE_TTL
    api_key: str = field(default="", repr=False)

    def __post_init__(self):
        # Queries built without the resolver get the same clamps
        for attr, option in (("max_results", "max"), ("cache_ttl_seconds", "cache_ttl")):
            low, high, fallback = INT_OPTIONS[option]
            number = to_int(getattr(self, attr))
            object.__setattr__(self, attr, fallback if number is None else clamp(number, low, high))
        if self.thumbnail_quality not in THUMBNAIL_QUALITIES:
            object.__setattr__(self, "thumbnail_quality", option_fallback("thumb_quality"))

    def invalid_reason(self) -> Optional[str]:
        """Name the first failed credential check, or None when usable."""
        if not self.playlist_id:
            return "missing_playlist_id"
        if not PLAYLIST_ID_RE.match(self.playlist_id):
            return "invalid_playlist_id"
        if not self.api_key:
            return "missing_api_key"
        if not API_KEY_RE.match(self.api_key):
            return "invalid_api_key"
        return None

    @property
    def is_valid(self) -> bool:
        return self.invalid_reason() is None


@dataclass(frozen=True)
class ResolvedConfig:
    """Outcome of merging request parameters over stored defaults.

    ``query`` is always populated with the clamped values; ``reason`` is set
    when the playlist ID or API key did not survive validation.
    """

    query: PlaylistQuery
    play_mode: str = "inline"
    layout: Dict[str, Any] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.reason is None


class ResultKind(str, Enum):
    SUCCESS = "success"
    INVALID_CONFIG = "invalid_config"
    FETCH_FAILURE = "fetch_failure"
    EMPTY_RESULT = "empty_result"


REASON_MESSAGES: Dict[str, str] = {
    "missing_playlist_id": "Playlist ID is required.",
    "invalid_playlist_id": "Invalid playlist ID format.",
    "missing_api_key": "YouTube API key is required. Please configure it in the admin panel.",
    "invalid_api_key": "Invalid YouTube API key format. Please check your key.",
    "client_error": "YouTube API client could not be configured.",
    "transport_error": "YouTube API request failed.",
    "http_error": "YouTube API returned an error status.",
    "empty_body": "YouTube API returned an empty response.",
    "malformed_json": "YouTube API response could not be decoded.",
    "missing_items": "YouTube API returned no items or invalid format.",
    "no_valid_videos": "No videos found or error fetching playlist. "
                       "Please check your playlist ID and API key.",
}


@dataclass(frozen=True)
class PlaylistResult:
    """Discriminated outcome of a pipeline run.

    Only ``SUCCESS`` carries videos. The other kinds carry a ``reason`` code
    and a ``detail`` message meant for privileged viewers.
    """

    kind: ResultKind
    videos: Tuple[VideoRecord, ...] = ()
    reason: Optional[str] = None
    detail: str = ""
    cache_key: Optional[str] = None
    cache_hit: bool = False
    play_mode: str = "inline"
    layout: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, videos, cache_key: str, cache_hit: bool) -> "PlaylistResult":
        return cls(ResultKind.SUCCESS, videos=tuple(videos), cache_key=cache_key,
                   cache_hit=cache_hit)

    @classmethod
    def invalid_config(cls, reason: str) -> "PlaylistResult":
        return cls(ResultKind.INVALID_CONFIG, reason=reason,
                   detail=REASON_MESSAGES.get(reason, reason))

    @classmethod
    def fetch_failure(cls, reason: str, cache_key: Optional[str] = None,
                      status: Optional[int] = None) -> "PlaylistResult":
        detail = REASON_MESSAGES.get(reason, reason)
        if status is not None:
            detail = f"YouTube API returned error code: {status}"
        return cls(ResultKind.FETCH_FAILURE, reason=reason, detail=detail, cache_key=cache_key)

    @classmethod
    def empty(cls, cache_key: Optional[str] = None) -> "PlaylistResult":
        return cls(ResultKind.EMPTY_RESULT, reason="no_valid_videos",
                   detail=REASON_MESSAGES["no_valid_videos"], cache_key=cache_key)

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.SUCCESS

    def with_presentation(self, play_mode: str, layout: Dict[str, Any]) -> "PlaylistResult":
        return replace(self, play_mode=play_mode, layout=dict(layout))

    def user_message(self, privileged: bool) -> str:
        """Message for the viewer: detailed for admins, generic for everyone else."""
        if self.ok:
            return ""
        if privileged:
            return self.detail
        return config.GENERIC_ERROR_MESSAGE


# --- API payloads ---

class VideoItem(BaseModel):
    """One video as returned to the slider, with its watch and embed URLs."""

    video_id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str = ""
    published_at: str = ""
    url: str = Field(..., description="Watch page, used by the redirect play mode.")
    embed_url: str = Field(..., description="Player URL, used by the inline and popup play modes.")

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoItem":
        return cls(
            video_id=record.video_id,
            title=record.title,
            description=record.description,
            thumbnail_url=record.thumbnail_url,
            published_at=record.published_at,
            url=record.url,
            embed_url=record.embed_url,
        )


class VideosResponse(BaseModel):
    """Response of ``GET /api/videos``."""

    videos: List[VideoItem] = Field(..., description="Validated videos in playlist order.")
    count: int = Field(..., description="Number of videos returned.")
    cache_hit: bool = Field(False, description="Whether the videos were served from cache.")
    play_mode: str = Field("inline", description="How the slider should open a video.")
    layout: Dict[str, Any] = Field(default_factory=dict, description="Resolved cosmetic options.")


class ErrorResponse(BaseModel):
    """Model for error responses."""

    detail: str = Field(..., description="Error message; generic for unprivileged callers.")
    error_code: Optional[str] = Field(None, description="Machine-readable error kind.")
    reason: Optional[str] = Field(None, description="Specific failure reason (privileged callers only).")


class PurgeResponse(BaseModel):
    purged: int = Field(..., description="Number of cache entries removed.")
    prefix: str


class UninstallResponse(BaseModel):
    removed: bool = Field(..., description="Whether a stored settings document was deleted.")
    purged: int = Field(..., description="Number of cache entries removed.")


class ApiKeyUpdate(BaseModel):
    api_key: str = Field("", description="YouTube Data API v3 key; empty clears it.")


class SettingsResponse(BaseModel):
    defaults: SliderDefaults
    api_key_configured: bool
