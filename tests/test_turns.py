from __future__ import annotations

from medsearch.interpreter.turns import Conversation, PublishedResult
from medsearch.models.video import CitationRecord

ANNOUNCEMENT = (
    "**Title:** Understanding Diabetes\n"
    "**Channel:** Mayo Clinic\n"
    "**URL:** https://youtu.be/9bZkp7q19f0"
)

CITATION = CitationRecord('"Diet matters a lot" - 2020 NIH study')


def _conversation_with_video(make_sse_payload) -> tuple[Conversation, int]:
    conversation = Conversation("c-1")
    turn_id = conversation.begin_turn("diabetes")
    conversation.feed(turn_id, make_sse_payload(ANNOUNCEMENT))
    return conversation, turn_id


def test_feed_publishes_once_a_line_completes(make_sse_payload):
    conversation = Conversation()
    turn_id = conversation.begin_turn("diabetes")
    line = make_sse_payload(ANNOUNCEMENT)

    assert conversation.feed(turn_id, line[:20]) is None
    result = conversation.feed(turn_id, line[20:])

    assert isinstance(result, PublishedResult)
    assert [v.video_id for v in result.videos] == ["9bZkp7q19f0"]
    assert result.query == "diabetes"
    assert result.complete is False
    assert conversation.latest is result


def test_empty_pass_keeps_previous_collection(make_sse_payload):
    conversation, turn_id = _conversation_with_video(make_sse_payload)

    # The id grows to twelve characters, so this pass finds nothing.
    result = conversation.feed(turn_id, make_sse_payload("x"))

    assert [v.video_id for v in result.videos] == ["9bZkp7q19f0"]


def test_no_results_clears_collection(make_sse_payload):
    conversation, turn_id = _conversation_with_video(make_sse_payload)

    result = conversation.feed(turn_id, make_sse_payload("\nNo videos found for this query."))

    assert result.videos == ()
    assert result.no_results is True


def test_stale_turn_is_inert(make_sse_payload):
    conversation, first = _conversation_with_video(make_sse_payload)
    second = conversation.begin_turn("asthma")

    assert conversation.feed(first, make_sse_payload("more")) is None
    assert conversation.finish(first) is None
    assert conversation.apply_enrichment(first, "9bZkp7q19f0", [CITATION]) is None
    assert conversation.current_turn_id == second
    assert conversation.latest.videos == ()


def test_begin_turn_archives_previous_result(make_sse_payload):
    conversation, first = _conversation_with_video(make_sse_payload)
    conversation.begin_turn("asthma")

    assert len(conversation.history) == 1
    archived = conversation.history[0]
    assert archived.turn_id == first
    assert [v.video_id for v in archived.videos] == ["9bZkp7q19f0"]


def test_finish_flushes_and_freezes():
    conversation = Conversation()
    turn_id = conversation.begin_turn("diabetes")
    conversation.feed(turn_id, 'data: {"choices": [{"delta": {"content": "**Title:** Understanding Diabetes\\n"}}]}\n')
    conversation.feed(
        turn_id,
        'data: {"choices": [{"delta": {"content": "**Channel:** Mayo Clinic\\n**URL:** https://youtu.be/9bZkp7q19f0"}}]}',
    )

    result = conversation.finish(turn_id)

    assert result.complete is True
    assert [v.video_id for v in result.videos] == ["9bZkp7q19f0"]
    assert conversation.feed(turn_id, "data: {}\n") is None


def test_enrichment_fills_videos_without_citations(make_sse_payload):
    conversation, turn_id = _conversation_with_video(make_sse_payload)
    conversation.finish(turn_id)

    result = conversation.apply_enrichment(turn_id, "9bZkp7q19f0", [CITATION])

    assert result.videos[0].citations == (CITATION,)
    assert result.complete is True


def test_enrichment_survives_later_passes(make_sse_payload):
    conversation, turn_id = _conversation_with_video(make_sse_payload)
    conversation.apply_enrichment(turn_id, "9bZkp7q19f0", [CITATION])

    result = conversation.feed(turn_id, make_sse_payload("\n"))

    assert result.videos[0].citations == (CITATION,)


def test_inline_citations_take_precedence(make_sse_payload):
    conversation = Conversation()
    turn_id = conversation.begin_turn("diabetes")
    inline = '"Fiber improves glycemic control" - 2022 NIH article'
    conversation.feed(turn_id, make_sse_payload(ANNOUNCEMENT + "\n**Citations:**\n" + inline + "\n"))

    result = conversation.apply_enrichment(turn_id, "9bZkp7q19f0", [CITATION])

    assert [c.text for c in result.videos[0].citations] == [inline]


def test_conversation_ids():
    assert Conversation("abc").id == "abc"
    assert Conversation().id != Conversation().id


def test_max_citations_is_applied(make_sse_payload):
    conversation = Conversation(max_citations=1)
    turn_id = conversation.begin_turn("diabetes")
    lines = "\n".join(f'"Claim number {n}" - 202{n} journal review' for n in range(3))

    result = conversation.feed(turn_id, make_sse_payload(ANNOUNCEMENT + "\n**Citations:**\n" + lines + "\n"))

    assert len(result.videos[0].citations) == 1


def test_result_to_dict(make_sse_payload):
    conversation, turn_id = _conversation_with_video(make_sse_payload)
    data = conversation.latest.to_dict()

    assert data["turn_id"] == turn_id
    assert data["videos"][0]["thumbnail_url"] == "https://img.youtube.com/vi/9bZkp7q19f0/hqdefault.jpg"
    assert data["no_results"] is False


def test_history_keeps_only_the_latest_turns():
    conversation = Conversation(max_history=2)
    for query in ("first", "second", "third", "fourth"):
        conversation.begin_turn(query)

    assert [r.query for r in conversation.history] == ["second", "third"]
    assert conversation.latest.query == "fourth"


def test_history_cap_of_zero_keeps_nothing():
    conversation = Conversation(max_history=0)
    conversation.begin_turn("first")
    conversation.begin_turn("second")

    assert conversation.history == []
