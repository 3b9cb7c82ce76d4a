from __future__ import annotations

import json

import pytest

RESPONSE_TEXT = """**Medical Video Search Results**

**Video 1:**
**Title:** Understanding Type 2 Diabetes
**Channel:** Cleveland Clinic
**URL:** https://www.youtube.com/watch?v=dQw4w9WgXcQ
**Description:** Overview of causes and day-to-day management.
**Citations:**
"Exercise reduces risk" - 2023 Mayo Clinic study https://example-journal.org/x
Some unrelated text
"Metformin is first-line therapy" - 2024 ADA guidelines https://diabetesjournals.org/care

---

**Video 2:**
**Title:** Diabetes Diet Basics
**Channel:** Johns Hopkins Medicine
**URL:** https://youtu.be/9bZkp7q19f0
**Description:** What to eat and what to limit.
**Citations:**
1. "Fiber improves glycemic control" - 2022 NIH article https://nih.gov/a
"""


def sse_payload(content: str | None = None, citations: list[str] | None = None) -> str:
    payload: dict = {"choices": [{"delta": {"content": content} if content is not None else {}}]}
    if citations is not None:
        payload["citations"] = citations
    return f"data: {json.dumps(payload)}\n\n"


def sse_body(text: str, *, delta_size: int = 7, citations: list[str] | None = None) -> str:
    """Frame text as an upstream SSE body, one small delta per event."""
    events = [sse_payload(text[i:i + delta_size]) for i in range(0, len(text), delta_size)]
    if citations is not None:
        events.append(sse_payload("", citations=citations))
    events.append("data: [DONE]\n\n")
    return "".join(events)


@pytest.fixture
def response_text() -> str:
    return RESPONSE_TEXT


@pytest.fixture
def make_sse_payload():
    return sse_payload


@pytest.fixture
def make_sse_body():
    return sse_body
