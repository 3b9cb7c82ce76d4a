from __future__ import annotations

import json

from medsearch.interpreter.turns import PublishedResult
from medsearch.models.events import EventType, SSEEvent
from medsearch.models.schemas import SearchResultResponse
from medsearch.models.video import CitationRecord, VideoRecord
from medsearch.services import streaming

VIDEO = VideoRecord(
    title="Understanding Diabetes",
    channel="Mayo Clinic",
    url="https://youtu.be/9bZkp7q19f0",
    video_id="9bZkp7q19f0",
    citations=(CitationRecord('"Fiber helps" - 2022 NIH article https://nih.gov/a'),),
)


def test_citation_claim_and_source():
    citation = VIDEO.citations[0]

    assert citation.claim == "Fiber helps"
    assert citation.source == "2022 NIH article https://nih.gov/a"
    assert str(citation) == citation.text


def test_citation_segments_split_links():
    assert VIDEO.citations[0].segments() == [
        ("text", "2022 NIH article "),
        ("link", "https://nih.gov/a"),
    ]


def test_citation_without_claim_shape():
    citation = CitationRecord('According to "the trial" in 2021')

    assert citation.claim is None
    assert citation.source is None
    assert citation.segments() == [("text", 'According to "the trial" in 2021')]


def test_video_to_dict():
    data = VIDEO.to_dict()

    assert data["thumbnail_url"] == "https://img.youtube.com/vi/9bZkp7q19f0/hqdefault.jpg"
    assert data["citations"] == ['"Fiber helps" - 2022 NIH article https://nih.gov/a']
    assert data["description"] is None


def test_sse_event_format():
    event = SSEEvent(event=EventType.LINK_CHECKED, data={"video_id": "9bZkp7q19f0", "status": "broken"})

    assert event.format() == (
        'event: link_checked\ndata: {"video_id": "9bZkp7q19f0", "status": "broken"}\n\n'
    )


def test_streaming_constructors():
    result = PublishedResult(turn_id=2, query="diabetes", videos=(VIDEO,), citation_urls=("https://a",))

    updated = streaming.videos_updated(result)
    assert updated.event == EventType.VIDEOS_UPDATED
    assert updated.data["videos"][0]["video_id"] == "9bZkp7q19f0"

    complete = streaming.search_complete(result, runtime_ms=12)
    assert complete.data == {
        "turn_id": 2,
        "videos_count": 1,
        "citation_urls": ["https://a"],
        "no_results": False,
        "runtime_ms": 12,
    }

    assert streaming.error("boom").data == {"message": "boom"}
    assert streaming.error("boom", stage="transport").data["stage"] == "transport"
    assert "error" not in streaming.enrichment_completed("9bZkp7q19f0", 0).data
    json.dumps(streaming.citations_updated(2, ("https://a",)).data)


def test_search_result_response():
    result = PublishedResult(turn_id=1, query="diabetes", videos=(VIDEO,), complete=True)

    response = SearchResultResponse.from_result("conv", result)

    assert response.videos[0].citations[0].claim == "Fiber helps"
    assert response.complete is True
