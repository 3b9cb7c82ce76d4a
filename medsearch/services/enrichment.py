from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Iterable

from loguru import logger

from medsearch.config import settings
from medsearch.interpreter.extractor import extract_citations
from medsearch.llm_client import client as llm_client, get_model
from medsearch.models.video import CitationRecord, VideoRecord
from medsearch.services.logger import log_llm_call
from medsearch.services.prompt_store import render_prompt


@dataclass
class EnrichmentOutcome:
    video_id: str
    citations: tuple[CitationRecord, ...] = ()
    error: str | None = None


class CitationEnricher:
    """Second pass that asks for citations for one video at a time.

    Only videos without inline citations are scheduled. Each task finishes
    independently; callers feed outcomes back through the turn that owns
    the collection.
    """

    name = "citation_enricher"

    def __init__(
        self,
        *,
        model: str | None = None,
        max_citations: int | None = None,
        max_parallel: int | None = None,
    ):
        self.model = model or get_model()
        self.max_citations = (
            max_citations if max_citations is not None else settings.max_enrichment_citations
        )
        self.semaphore = asyncio.Semaphore(
            max(max_parallel if max_parallel is not None else settings.max_parallel_enrichment, 1)
        )
        self.client: Any = None

    def schedule(self, videos: Iterable[VideoRecord]) -> dict[str, asyncio.Task[EnrichmentOutcome]]:
        tasks: dict[str, asyncio.Task[EnrichmentOutcome]] = {}
        for video in videos:
            if video.citations or video.video_id in tasks:
                continue
            tasks[video.video_id] = asyncio.create_task(
                self._run_one(video), name=f"enrich:{video.video_id}"
            )
        return tasks

    async def _run_one(self, video: VideoRecord) -> EnrichmentOutcome:
        async with self.semaphore:
            try:
                citations = await self.fetch_citations(video)
            except Exception as e:
                logger.warning(f"Citation enrichment failed for {video.video_id}: {e}")
                return EnrichmentOutcome(video_id=video.video_id, error=str(e))
        return EnrichmentOutcome(video_id=video.video_id, citations=citations)

    async def fetch_citations(self, video: VideoRecord) -> tuple[CitationRecord, ...]:
        active_client = self.client or llm_client()
        messages = [
            {
                "role": "system",
                "content": render_prompt(
                    "enrichment.system_prompt", max_citations=self.max_citations
                ),
            },
            {
                "role": "user",
                "content": render_prompt(
                    "enrichment.user_prompt",
                    title=video.title,
                    channel=video.channel,
                    url=video.url,
                ),
            },
        ]

        t0 = time.monotonic()
        response = await active_client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=1024,
        )
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        usage = getattr(response, "usage", None)
        log_llm_call(
            model=self.model,
            caller=self.name,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=elapsed_ms,
        )

        text = response.choices[0].message.content or ""
        return tuple(extract_citations(text, max_citations=self.max_citations))
