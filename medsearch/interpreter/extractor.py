"""Rebuild the video collection from the full response text seen so far.

Every call re-derives the whole collection from scratch. Sections that are
incomplete or malformed are skipped, because most intermediate states of a
streamed answer are simply not finished yet.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from medsearch.interpreter import validation
from medsearch.models.video import CitationRecord, VideoRecord

DEFAULT_MAX_CITATIONS = 4

# `**Label:**` with the colon inside or just outside the emphasis.
_LABEL = r"\*\*{label}(?::\*\*|\*\*:)"
# Value may sit on the label's line or start up to two blank lines below it.
_LEAD = r"[ \t]*(?:\n[ \t]*){0,3}"
_NEXT_LABEL = r"\*\*(?:Video|Title|Channel|URL|Description|Citations)\b"
# Leading emphasis (`**Bold title**`) belongs to the value; another label does not.
_TEXT_VALUE = rf"(?!{_NEXT_LABEL})\**(?:(?!\*\*)[^\n])+"
_URL_VALUE = r"https?://(?:(?!\*\*)\S)+"
# Trailing punctuation and inline reference markers such as `[1]`.
_URL_TAIL_RE = re.compile(r"(?:\[\d*\]?|[).,;:>\]])+$")

_ANNOUNCEMENT_RE = re.compile(r"\*\*Video|" + _LABEL.format(label="Title"))
_CITATIONS_LABEL_RE = re.compile(_LABEL.format(label="Citations"))


@dataclass(frozen=True)
class FieldRule:
    """Label-anchored grammar rule for one field of a video section.

    The value ends at the next ``**`` (the next label), a newline, or the
    end of the section.
    """

    name: str
    pattern: re.Pattern[str]

    def find(self, section: str) -> str | None:
        match = self.pattern.search(section)
        if not match:
            return None
        value = match.group("value").strip()
        return value or None


def _field_rule(name: str, label: str, value: str = _TEXT_VALUE) -> FieldRule:
    return FieldRule(
        name=name,
        pattern=re.compile(_LABEL.format(label=label) + _LEAD + f"(?P<value>{value})"),
    )


TITLE_RULE = _field_rule("title", "Title")
CHANNEL_RULE = _field_rule("channel", "Channel")
URL_RULE = _field_rule("url", "URL", value=_URL_VALUE)
DESCRIPTION_RULE = _field_rule("description", "Description")


@dataclass(frozen=True)
class Extraction:
    """Result of one pass: the records plus the no-results override flag."""

    videos: tuple[VideoRecord, ...]
    no_results: bool = False


def segment_sections(text: str) -> list[str]:
    """Cut the text at the start of every video announcement marker.

    Text before the first marker forms its own section, and the trailing
    section is kept even though it may still be growing.
    """
    bounds = [0]
    for match in _ANNOUNCEMENT_RE.finditer(text):
        if match.start() > bounds[-1]:
            bounds.append(match.start())
    bounds.append(len(text))
    sections = (text[start:end] for start, end in zip(bounds, bounds[1:]))
    return [section for section in sections if section.strip()]


def extract_citations(block: str, *, max_citations: int = DEFAULT_MAX_CITATIONS) -> list[CitationRecord]:
    """Collect claim-bearing lines from a citations block, in source order."""
    citations: list[CitationRecord] = []
    for line in block.split("\n"):
        if len(citations) >= max_citations:
            break
        text = validation.normalize_citation_line(line)
        if validation.is_citation_text(text):
            citations.append(CitationRecord(text=text))
    return citations


def _citations_block(section: str) -> str | None:
    match = _CITATIONS_LABEL_RE.search(section)
    if not match:
        return None
    return section[match.end():]


def parse_section(
    section: str,
    *,
    seen_ids: set[str] | frozenset[str] = frozenset(),
    max_citations: int = DEFAULT_MAX_CITATIONS,
) -> VideoRecord | None:
    """Turn one candidate section into a record, or None if it does not qualify."""
    raw_title = TITLE_RULE.find(section)
    raw_channel = CHANNEL_RULE.find(section)
    raw_url = URL_RULE.find(section)
    if not raw_title or not raw_channel or not raw_url:
        return None

    title = validation.strip_markup(raw_title)
    channel = validation.strip_markup(raw_channel)
    url = _URL_TAIL_RE.sub("", raw_url)

    video_id = validation.extract_video_id(url)
    if video_id is None:
        return None
    if validation.looks_fabricated(url, raw_title):
        return None
    if not validation.passes_length_gates(title, channel):
        return None
    if video_id in seen_ids:
        return None

    description = DESCRIPTION_RULE.find(section)
    block = _citations_block(section)
    citations = extract_citations(block, max_citations=max_citations) if block else []

    return VideoRecord(
        title=title,
        channel=channel,
        url=url,
        video_id=video_id,
        description=description,
        citations=tuple(citations),
    )


def extract_videos(text: str, *, max_citations: int = DEFAULT_MAX_CITATIONS) -> list[VideoRecord]:
    """Derive the ordered, deduplicated video list from the full text."""
    if not text or not isinstance(text, str):
        return []

    videos: list[VideoRecord] = []
    seen_ids: set[str] = set()
    for section in segment_sections(text):
        video = parse_section(section, seen_ids=seen_ids, max_citations=max_citations)
        if video is None:
            continue
        seen_ids.add(video.video_id)
        videos.append(video)
    return videos


def interpret(text: str, *, max_citations: int = DEFAULT_MAX_CITATIONS) -> Extraction:
    """Run a full pass, applying the no-results override last."""
    if not text or not isinstance(text, str):
        return Extraction(videos=())
    if validation.has_no_results_marker(text):
        return Extraction(videos=(), no_results=True)
    return Extraction(videos=tuple(extract_videos(text, max_citations=max_citations)))
