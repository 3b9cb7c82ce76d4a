from __future__ import annotations

import json as _json

from fastapi import APIRouter, HTTPException
from sse_starlette.sse import EventSourceResponse

from medsearch.models.schemas import SearchRequest, SearchResultResponse
from medsearch.services import logger as log_service
from medsearch.services import streaming
from medsearch.services import video_search

router = APIRouter(prefix="/api/search", tags=["search"])


@router.post("/stream")
async def stream_search(request: SearchRequest):
    """SSE endpoint streaming the evolving video collection for one query."""
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query is required")

    conversation = video_search.get_conversation(request.conversation_id)

    async def event_generator():
        try:
            async for event in video_search.search_videos(query, conversation=conversation):
                yield {
                    "event": event.event.value,
                    "data": _json.dumps(event.data),
                }
        except Exception as e:
            log_service.log_event(
                event_type="stream_error",
                message="Unhandled error in search stream",
                error=str(e),
                conversation_id=conversation.id,
            )
            error_event = streaming.error(video_search.USER_ERROR_MESSAGE)
            yield {
                "event": error_event.event.value,
                "data": _json.dumps(error_event.data),
            }

    return EventSourceResponse(event_generator())


@router.get("/{conversation_id}", response_model=SearchResultResponse)
async def get_search_result(conversation_id: str):
    """Return the latest published collection for a conversation."""
    conversation = video_search.find_conversation(conversation_id)
    if conversation is None or conversation.latest is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return SearchResultResponse.from_result(conversation.id, conversation.latest)
