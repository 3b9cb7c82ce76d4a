from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")

MIN_TITLE_LENGTH = 5
MIN_CHANNEL_LENGTH = 2
MIN_CITATION_LENGTH = 16

# Filler the upstream model produces when it invents a video.
PLACEHOLDER_URL_TOKENS = ("example", "abc123", "xyz")
PLACEHOLDER_TITLE_TOKENS = ("fake", "example")

NO_RESULTS_PHRASES = (
    "no real medical videos found",
    "no videos found",
)

CITATION_KEYWORDS = ("study", "article", "research", "journal", "guideline")

_MARKUP_RE = re.compile(r"[*\[\]]")
_ORDINAL_PREFIX_RE = re.compile(r"^\d+[.)]\s*")
_BULLET_PREFIX_RE = re.compile(r"^(?:[-•]|\*(?!\*))\s*")
_BOLD_LABEL_PREFIX_RE = re.compile(r'^\*\*[^"*]*\*\*\s*')
_SEPARATOR_RE = re.compile(r"[-–—]")
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_LINK_RE = re.compile(r"https?://", re.IGNORECASE)
_CURLY_QUOTES = str.maketrans({"“": '"', "”": '"'})


def is_valid_video_id(video_id: str | None) -> bool:
    if not video_id or not isinstance(video_id, str):
        return False
    return bool(VIDEO_ID_RE.match(video_id))


def extract_video_id(url: str | None) -> str | None:
    """Return the 11-character id from a watch URL or a short link.

    Accepted shapes: ``youtube.com/watch?v=<id>`` (any subdomain, any
    parameter order) and ``youtu.be/<id>``.
    """
    if not url or not isinstance(url, str):
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https"):
        return None

    host = (parsed.hostname or "").lower()
    if host == "youtu.be" or host.endswith(".youtu.be"):
        candidate = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    elif host == "youtube.com" or host.endswith(".youtube.com"):
        if parsed.path.rstrip("/") != "/watch":
            return None
        values = parse_qs(parsed.query).get("v") or [""]
        candidate = values[0]
    else:
        return None

    return candidate if is_valid_video_id(candidate) else None


def strip_markup(text: str) -> str:
    """Drop emphasis markers and brackets left over from markdown."""
    return _MARKUP_RE.sub("", text).strip()


def looks_fabricated(url: str, title: str) -> bool:
    lowered_title = title.lower()
    if any(token in url for token in PLACEHOLDER_URL_TOKENS):
        return True
    return any(token in lowered_title for token in PLACEHOLDER_TITLE_TOKENS)


def passes_length_gates(title: str, channel: str) -> bool:
    return len(title) >= MIN_TITLE_LENGTH and len(channel) >= MIN_CHANNEL_LENGTH


def has_no_results_marker(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in NO_RESULTS_PHRASES)


def normalize_citation_line(line: str) -> str:
    """Strip the ordinal or bullet prefix and a leading bold label."""
    text = line.strip().translate(_CURLY_QUOTES)
    text = _ORDINAL_PREFIX_RE.sub("", text, count=1)
    text = _BULLET_PREFIX_RE.sub("", text, count=1)
    text = _BOLD_LABEL_PREFIX_RE.sub("", text, count=1)
    return text.strip()


def is_citation_text(text: str) -> bool:
    """Check a normalized line for the claim-bearing citation shape."""
    if '"' not in text or len(text) < MIN_CITATION_LENGTH:
        return False
    if text.startswith('"') and _SEPARATOR_RE.search(text, 1):
        return True
    lowered = text.lower()
    return bool(
        _YEAR_RE.search(text)
        or _LINK_RE.search(text)
        or any(keyword in lowered for keyword in CITATION_KEYWORDS)
    )
