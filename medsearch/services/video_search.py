"""Drive one search turn: stream, interpret, publish, then run advisory tasks."""
from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from contextlib import aclosing
from typing import AsyncGenerator, Callable

from loguru import logger

from medsearch.config import settings
from medsearch.interpreter.turns import Conversation, PublishedResult
from medsearch.models.events import SSEEvent
from medsearch.services import logger as log_service
from medsearch.services import perplexity, streaming
from medsearch.services.enrichment import CitationEnricher
from medsearch.services.perplexity import TransportError
from medsearch.services.prober import LinkProber

USER_ERROR_MESSAGE = "Failed to send message. Please try again."

Transport = Callable[[str], AsyncGenerator[str | bytes, None]]

# Least recently used first.
_conversations: OrderedDict[str, Conversation] = OrderedDict()


def get_conversation(conversation_id: str | None = None) -> Conversation:
    """Return the conversation with this id, creating it if needed."""
    if conversation_id and conversation_id in _conversations:
        _conversations.move_to_end(conversation_id)
        return _conversations[conversation_id]
    conversation = Conversation(conversation_id)
    _conversations[conversation.id] = conversation
    while len(_conversations) > max(settings.max_conversations, 1):
        evicted_id, _ = _conversations.popitem(last=False)
        logger.debug(f"Evicted conversation {evicted_id} from memory")
    return conversation


def find_conversation(conversation_id: str) -> Conversation | None:
    conversation = _conversations.get(conversation_id)
    if conversation is not None:
        _conversations.move_to_end(conversation_id)
    return conversation


def conversation_count() -> int:
    return len(_conversations)


def _changes(previous: PublishedResult | None, current: PublishedResult) -> list[SSEEvent]:
    events: list[SSEEvent] = []
    if previous is None or previous.videos != current.videos:
        if current.videos or previous is not None:
            events.append(streaming.videos_updated(current))
    if current.citation_urls and (previous is None or previous.citation_urls != current.citation_urls):
        events.append(streaming.citations_updated(current.turn_id, current.citation_urls))
    return events


async def search_videos(
    query: str,
    *,
    conversation: Conversation | None = None,
    transport: Transport | None = None,
    probe_links: bool | None = None,
    enrich: bool | None = None,
    prober: LinkProber | None = None,
    enricher: CitationEnricher | None = None,
) -> AsyncGenerator[SSEEvent, None]:
    """Run one turn and yield events as the published collection evolves."""
    conversation = conversation or get_conversation()
    stream = transport or perplexity.stream_search
    probe_links = settings.link_probe_enabled if probe_links is None else probe_links
    enrich = settings.enrichment_enabled if enrich is None else enrich

    turn_id = conversation.begin_turn(query)
    t0 = time.monotonic()
    log_service.log_event(
        event_type="search_started",
        message="Video search started",
        conversation_id=conversation.id,
        turn_id=turn_id,
        query=query[:100],
    )
    yield streaming.search_started(query, conversation.id, turn_id)

    previous: PublishedResult | None = None
    try:
        async with aclosing(stream(query)) as fragments:
            async for fragment in fragments:
                if not conversation.is_current(turn_id):
                    logger.info(f"Turn {turn_id} superseded; dropping the rest of its stream")
                    return
                result = conversation.feed(turn_id, fragment)
                if result is None:
                    continue
                for event in _changes(previous, result):
                    yield event
                previous = result
    except TransportError as e:
        if not conversation.is_current(turn_id):
            logger.info(f"Turn {turn_id} superseded before its stream failed: {e}")
            return
        log_service.log_event(
            event_type="stream_error",
            message="Upstream stream failed",
            error=str(e),
            conversation_id=conversation.id,
            turn_id=turn_id,
        )
        conversation.finish(turn_id, flush=False)
        yield streaming.error(USER_ERROR_MESSAGE, stage="transport")
        return

    result = conversation.finish(turn_id)
    if result is None:
        return
    for event in _changes(previous, result):
        yield event
    if result.no_results:
        yield streaming.no_results(turn_id, query)

    runtime_ms = int((time.monotonic() - t0) * 1000)
    logger.info(
        f"Search complete: turn={turn_id} videos={len(result.videos)} runtime={runtime_ms}ms"
    )
    yield streaming.search_complete(result, runtime_ms=runtime_ms)

    if probe_links and result.videos:
        prober = prober or LinkProber()
        probes = prober.probe_all(v.video_id for v in result.videos)
        async with aclosing(probes) as outcomes:
            async for video_id, status in outcomes:
                if not conversation.is_current(turn_id):
                    return
                yield streaming.link_checked(video_id, status.value)

    if enrich and result.videos:
        enrichment = _enrich(conversation, turn_id, result, enricher or CitationEnricher())
        async with aclosing(enrichment) as events:
            async for event in events:
                yield event


async def _enrich(
    conversation: Conversation,
    turn_id: int,
    result: PublishedResult,
    enricher: CitationEnricher,
) -> AsyncGenerator[SSEEvent, None]:
    tasks = enricher.schedule(result.videos)
    if not tasks:
        return
    previous = result
    try:
        for next_done in asyncio.as_completed(list(tasks.values())):
            outcome = await next_done
            yield streaming.enrichment_completed(
                outcome.video_id, len(outcome.citations), error=outcome.error
            )
            if not outcome.citations:
                continue
            updated = conversation.apply_enrichment(turn_id, outcome.video_id, outcome.citations)
            if updated is None:
                return
            for event in _changes(previous, updated):
                yield event
            previous = updated
    finally:
        for task in tasks.values():
            task.cancel()
