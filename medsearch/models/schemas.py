from __future__ import annotations

from pydantic import BaseModel

from medsearch.interpreter.turns import PublishedResult
from medsearch.models.video import CitationRecord, VideoRecord


# --- Requests ---


class SearchRequest(BaseModel):
    query: str
    conversation_id: str | None = None


# --- Responses ---


class CitationResponse(BaseModel):
    text: str
    claim: str | None = None
    source: str | None = None

    @classmethod
    def from_record(cls, citation: CitationRecord) -> "CitationResponse":
        return cls(text=citation.text, claim=citation.claim, source=citation.source)


class VideoResponse(BaseModel):
    title: str
    channel: str
    url: str
    video_id: str
    description: str | None = None
    thumbnail_url: str
    citations: list[CitationResponse] = []

    @classmethod
    def from_record(cls, video: VideoRecord) -> "VideoResponse":
        return cls(
            title=video.title,
            channel=video.channel,
            url=video.url,
            video_id=video.video_id,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            citations=[CitationResponse.from_record(c) for c in video.citations],
        )


class SearchResultResponse(BaseModel):
    conversation_id: str
    turn_id: int
    query: str
    videos: list[VideoResponse]
    citation_urls: list[str]
    no_results: bool
    complete: bool

    @classmethod
    def from_result(cls, conversation_id: str, result: PublishedResult) -> "SearchResultResponse":
        return cls(
            conversation_id=conversation_id,
            turn_id=result.turn_id,
            query=result.query,
            videos=[VideoResponse.from_record(v) for v in result.videos],
            citation_urls=list(result.citation_urls),
            no_results=result.no_results,
            complete=result.complete,
        )


class ChannelInfo(BaseModel):
    name: str


class ChannelsResponse(BaseModel):
    channels: list[ChannelInfo]


class SuggestionsResponse(BaseModel):
    topics: list[str]
