from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

THUMBNAIL_URL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/hqdefault.jpg"

_CLAIM_RE = re.compile(r'^"([^"]+)"\s*-\s*(.+)', re.DOTALL)
_LINK_RE = re.compile(r"(https?://\S+)")


@dataclass(frozen=True)
class CitationRecord:
    """A claim-bearing citation line, stored in its normalized form.

    The core never decomposes the text. `claim`, `source` and `segments`
    are best-effort helpers for renderers.
    """

    text: str

    @property
    def claim(self) -> str | None:
        match = _CLAIM_RE.match(self.text)
        return match.group(1) if match else None

    @property
    def source(self) -> str | None:
        match = _CLAIM_RE.match(self.text)
        return match.group(2).strip() if match else None

    def segments(self) -> list[tuple[str, str]]:
        """Split the text after the claim into ("text" | "link", value) parts."""
        remainder = self.source if self.claim is not None else self.text
        parts: list[tuple[str, str]] = []
        last = 0
        for match in _LINK_RE.finditer(remainder or ""):
            if match.start() > last:
                parts.append(("text", remainder[last:match.start()]))
            parts.append(("link", match.group(1)))
            last = match.end()
        if remainder and last < len(remainder):
            parts.append(("text", remainder[last:]))
        return parts

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class VideoRecord:
    """One validated video announcement, rebuilt from scratch on every pass."""

    title: str
    channel: str
    url: str
    video_id: str
    description: str | None = None
    citations: tuple[CitationRecord, ...] = field(default_factory=tuple)

    @property
    def thumbnail_url(self) -> str:
        return THUMBNAIL_URL_TEMPLATE.format(video_id=self.video_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "channel": self.channel,
            "url": self.url,
            "video_id": self.video_id,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "citations": [c.text for c in self.citations],
        }
