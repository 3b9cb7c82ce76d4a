from __future__ import annotations

from fastapi import APIRouter

from medsearch.api.deps import get_suggested_topics, get_trusted_channels
from medsearch.models.schemas import ChannelInfo, ChannelsResponse, SuggestionsResponse

router = APIRouter(prefix="/api", tags=["channels"])


@router.get("/channels", response_model=ChannelsResponse)
async def list_channels():
    """List the trusted medical institutions."""
    return ChannelsResponse(channels=[ChannelInfo(**c) for c in get_trusted_channels()])


@router.get("/suggestions", response_model=SuggestionsResponse)
async def list_suggestions():
    return SuggestionsResponse(topics=get_suggested_topics())
