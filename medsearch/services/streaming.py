from __future__ import annotations

from typing import Any

from medsearch.interpreter.turns import PublishedResult
from medsearch.models.events import EventType, SSEEvent


def search_started(query: str, conversation_id: str, turn_id: int) -> SSEEvent:
    return SSEEvent(
        event=EventType.SEARCH_STARTED,
        data={"query": query, "conversation_id": conversation_id, "turn_id": turn_id},
    )


def videos_updated(result: PublishedResult) -> SSEEvent:
    """Emit the full replacement collection for a turn."""
    return SSEEvent(
        event=EventType.VIDEOS_UPDATED,
        data={
            "turn_id": result.turn_id,
            "videos": [video.to_dict() for video in result.videos],
        },
    )


def citations_updated(turn_id: int, citation_urls: list[str] | tuple[str, ...]) -> SSEEvent:
    return SSEEvent(
        event=EventType.CITATIONS_UPDATED,
        data={"turn_id": turn_id, "citation_urls": list(citation_urls)},
    )


def no_results(turn_id: int, query: str) -> SSEEvent:
    return SSEEvent(event=EventType.NO_RESULTS, data={"turn_id": turn_id, "query": query})


def search_complete(result: PublishedResult, runtime_ms: int | None = None) -> SSEEvent:
    data: dict[str, Any] = {
        "turn_id": result.turn_id,
        "videos_count": len(result.videos),
        "citation_urls": list(result.citation_urls),
        "no_results": result.no_results,
    }
    if runtime_ms is not None:
        data["runtime_ms"] = runtime_ms
    return SSEEvent(event=EventType.SEARCH_COMPLETE, data=data)


def link_checked(video_id: str, status: str) -> SSEEvent:
    return SSEEvent(event=EventType.LINK_CHECKED, data={"video_id": video_id, "status": status})


def enrichment_completed(video_id: str, citations_count: int, error: str | None = None) -> SSEEvent:
    data: dict[str, Any] = {"video_id": video_id, "citations_count": citations_count}
    if error:
        data["error"] = error
    return SSEEvent(event=EventType.ENRICHMENT_COMPLETED, data=data)


def error(message: str, stage: str | None = None) -> SSEEvent:
    data: dict[str, Any] = {"message": message}
    if stage:
        data["stage"] = stage
    return SSEEvent(event=EventType.ERROR, data=data)
