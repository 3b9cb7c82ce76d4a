"""Per-turn ownership of the streamed buffer and its published collection.

A turn is one user query and its streamed answer. Every mutation names the
turn it belongs to; once a later turn has begun, anything addressed to an
earlier turn is ignored. Collections are replaced wholesale, never edited.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable
from uuid import uuid4

from medsearch.config import settings
from medsearch.interpreter.assembler import StreamAssembler
from medsearch.interpreter.extractor import interpret
from medsearch.models.video import CitationRecord, VideoRecord
from medsearch.services.logger import log_extraction_pass


@dataclass(frozen=True)
class PublishedResult:
    turn_id: int
    query: str
    content: str = ""
    videos: tuple[VideoRecord, ...] = ()
    citation_urls: tuple[str, ...] = ()
    no_results: bool = False
    complete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "turn_id": self.turn_id,
            "query": self.query,
            "videos": [v.to_dict() for v in self.videos],
            "citation_urls": list(self.citation_urls),
            "no_results": self.no_results,
            "complete": self.complete,
        }


class Turn:
    def __init__(self, turn_id: int, query: str, *, max_citations: int):
        self.id = turn_id
        self.query = query
        self.max_citations = max_citations
        self.assembler = StreamAssembler()
        self.frozen = False
        self._extracted: tuple[VideoRecord, ...] = ()
        self._enriched: dict[str, tuple[CitationRecord, ...]] = {}
        self.result = PublishedResult(turn_id=turn_id, query=query)

    def refresh(self) -> PublishedResult:
        """Run one extraction pass and apply the publishing rule."""
        content = self.assembler.content
        extraction = interpret(content, max_citations=self.max_citations)
        if extraction.no_results:
            self._extracted = ()
        elif extraction.videos:
            self._extracted = extraction.videos
        # An empty pass keeps the previous collection.

        log_extraction_pass(
            turn_id=self.id,
            records=len(extraction.videos),
            content_chars=len(content),
            published=bool(extraction.videos) or extraction.no_results,
            no_results=extraction.no_results,
        )
        return self._publish(no_results=extraction.no_results)

    def enrich(self, video_id: str, citations: Iterable[CitationRecord]) -> PublishedResult:
        self._enriched[video_id] = tuple(citations)
        return self._publish(no_results=self.result.no_results)

    def _publish(self, *, no_results: bool) -> PublishedResult:
        videos = tuple(self._with_enrichment(v) for v in self._extracted)
        self.result = PublishedResult(
            turn_id=self.id,
            query=self.query,
            content=self.assembler.content,
            videos=videos,
            citation_urls=tuple(self.assembler.citation_urls),
            no_results=no_results,
            complete=self.frozen,
        )
        return self.result

    def _with_enrichment(self, video: VideoRecord) -> VideoRecord:
        extra = self._enriched.get(video.video_id)
        if video.citations or not extra:
            return video
        return replace(video, citations=extra)


class Conversation:
    """Owns the sequence of turns for one user and gates every update."""

    def __init__(
        self,
        conversation_id: str | None = None,
        *,
        max_citations: int | None = None,
        max_history: int | None = None,
    ):
        self.id = conversation_id or uuid4().hex
        self.max_citations = (
            max_citations if max_citations is not None else settings.max_citations_per_video
        )
        self.max_history = max(
            max_history if max_history is not None else settings.max_history_turns, 0
        )
        self.history: list[PublishedResult] = []
        self._turn_counter = 0
        self._current: Turn | None = None

    @property
    def current_turn_id(self) -> int | None:
        return self._current.id if self._current else None

    @property
    def latest(self) -> PublishedResult | None:
        return self._current.result if self._current else None

    def is_current(self, turn_id: int) -> bool:
        return self._current is not None and self._current.id == turn_id

    def begin_turn(self, query: str) -> int:
        if self._current is not None:
            self._current.frozen = True
            self.history.append(self._current.result)
            # Oldest archived turns go first.
            del self.history[: max(len(self.history) - self.max_history, 0)]
        self._turn_counter += 1
        self._current = Turn(self._turn_counter, query, max_citations=self.max_citations)
        return self._current.id

    def feed(self, turn_id: int, fragment: str | bytes) -> PublishedResult | None:
        """Apply one fragment; returns the new result if a line completed."""
        turn = self._live_turn(turn_id)
        if turn is None or not turn.assembler.feed(fragment):
            return None
        return turn.refresh()

    def finish(self, turn_id: int, *, flush: bool = True) -> PublishedResult | None:
        """Close the stream for a turn and freeze it against further fragments."""
        turn = self._live_turn(turn_id)
        if turn is None:
            return None
        if flush:
            turn.assembler.close()
        turn.frozen = True
        return turn.refresh()

    def apply_enrichment(
        self,
        turn_id: int,
        video_id: str,
        citations: Iterable[CitationRecord],
    ) -> PublishedResult | None:
        """Completion callback for per-video enrichment; allowed after freeze."""
        if not self.is_current(turn_id):
            return None
        return self._current.enrich(video_id, citations)

    def _live_turn(self, turn_id: int) -> Turn | None:
        if not self.is_current(turn_id) or self._current.frozen:
            return None
        return self._current
