#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Text cleaning helpers for playlist metadata.

Everything coming back from the YouTube API is treated as untrusted and
reduced to plain text before it is cached or returned.
"""

import html
import math
import re
from functools import lru_cache
from typing import Any, Optional
from urllib.parse import urlsplit

_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[0-9a-fA-F]{2}")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_SPACE_RE = re.compile(r"[ \t\r\n]+")
_LINE_SPACE_RE = re.compile(r"[ \t]+")
_HEX_RE = re.compile(r"[^0-9a-fA-F]")

ELLIPSIS = "…"


def _strip_markup(text: str) -> str:
    text = html.unescape(text)
    text = _TAG_RE.sub("", text)
    text = _CONTROL_RE.sub("", text)
    return _OCTET_RE.sub("", text)


@lru_cache(maxsize=1024)
def _clean_line(text: str) -> str:
    return _SPACE_RE.sub(" ", _strip_markup(text)).strip()


@lru_cache(maxsize=256)
def _clean_lines(text: str) -> str:
    text = _strip_markup(text).replace("\r\n", "\n").replace("\r", "\n")
    lines = [_LINE_SPACE_RE.sub(" ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


def clean_text(value: Any) -> str:
    """Reduce a value to single-line plain text.

    Decodes HTML entities, removes tags, control characters and percent-encoded
    octets, collapses whitespace runs and trims the result.
    """
    if value is None:
        return ""
    return _clean_line(str(value))


def clean_multiline_text(value: Any) -> str:
    """Like ``clean_text`` but keeps line breaks."""
    if value is None:
        return ""
    return _clean_lines(str(value))


def trim_words(text: str, num_words: int = 20, more: str = ELLIPSIS) -> str:
    """Trim text to ``num_words`` words, appending ``more`` when truncated."""
    words = text.split()
    if len(words) <= num_words:
        return " ".join(words)
    return " ".join(words[:num_words]) + more


def clean_url(value: Any) -> str:
    """Return the URL if it is an absolute http(s) URL, otherwise an empty string."""
    if not isinstance(value, str):
        return ""
    url = value.strip().replace(" ", "%20")
    if _CONTROL_RE.search(url):
        return ""
    parts = urlsplit(url)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return ""
    return url


def clean_hex_color(value: Any, default: str) -> str:
    """Normalize a hex colour to ``#rrggbb``; 3-digit forms are expanded.

    Non-hex characters are dropped first, so ``"#FFF"`` and ``"fff"`` are both
    accepted. Anything that does not leave 3 or 6 digits returns ``default``.
    """
    if value is None or value == "":
        return default
    digits = _HEX_RE.sub("", str(value))
    if len(digits) == 6:
        return "#" + digits.lower()
    if len(digits) == 3:
        return "#" + "".join(c * 2 for c in digits.lower())
    return default


def to_int(value: Any) -> Optional[int]:
    """Parse an integer from an int or numeric string; None when not numeric.

    Booleans and non-finite floats are rejected; finite floats are truncated.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return None
    if isinstance(value, float):
        # inf and nan have no integer value
        return int(value) if math.isfinite(value) else None
    return None


def to_bool(value: Any) -> Optional[bool]:
    """Parse a boolean flag; None when the value is not recognizable."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off", ""):
            return False
    return None


def clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


# Memoized helpers, exposed so their caches can be registered and cleared
CACHED_FUNCTIONS = {
    "clean_text": _clean_line,
    "clean_multiline_text": _clean_lines,
}
