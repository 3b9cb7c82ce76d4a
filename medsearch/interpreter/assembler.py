from __future__ import annotations

import codecs
import json
from typing import Any, Callable

from loguru import logger

DATA_PREFIX = "data:"
DONE_TOKEN = "[DONE]"


class StreamAssembler:
    """Accumulate SSE fragments into one growing text buffer.

    Fragments may split lines anywhere (bytes are decoded incrementally, so
    a multi-byte character may be split too). Only complete lines are
    interpreted. ``feed`` returns True, and ``on_change`` fires, whenever a
    fragment completed at least one line.
    """

    def __init__(self, on_change: Callable[["StreamAssembler"], None] | None = None):
        self.on_change = on_change
        self.citation_urls: list[str] = []
        self.done = False
        self.lines_seen = 0
        self.lines_skipped = 0
        self._content = ""
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def content(self) -> str:
        return self._content

    def feed(self, fragment: str | bytes) -> bool:
        if self.done:
            return False
        if isinstance(fragment, bytes):
            fragment = self._decoder.decode(fragment)

        pieces = (self._pending + fragment).split("\n")
        self._pending = pieces.pop()
        if not pieces:
            return False

        for line in pieces:
            self._process_line(line)
            if self.done:
                self._pending = ""
                break
        self._notify()
        return True

    def close(self) -> bool:
        """Treat whatever is still pending as the final line."""
        if self.done:
            return False
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not tail.strip():
            return False
        self._process_line(tail)
        self._notify()
        return True

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _process_line(self, line: str) -> None:
        self.lines_seen += 1
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            # Blank separators, comments and `event:` lines carry no payload.
            return

        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_TOKEN:
            self.done = True
            return

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            self.lines_skipped += 1
            logger.warning(f"Failed to parse SSE data: {data[:200]!r} ({e})")
            return

        text = _delta_text(payload)
        if text:
            self._content += text

        citations = _citation_urls(payload)
        if citations:
            self.citation_urls = citations


def _delta_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


def _citation_urls(payload: Any) -> list[str]:
    if not isinstance(payload, dict):
        return []
    citations = payload.get("citations")
    if not isinstance(citations, list):
        return []
    return [c for c in citations if isinstance(c, str) and c]
