from __future__ import annotations

import asyncio
from enum import Enum
from typing import AsyncIterator, Iterable

import httpx
from loguru import logger

from medsearch.config import settings
from medsearch.interpreter.validation import is_valid_video_id
from medsearch.models.video import THUMBNAIL_URL_TEMPLATE


class LinkStatus(str, Enum):
    UNKNOWN = "unknown"
    PLAUSIBLE = "plausible"
    BROKEN = "broken"


class LinkProber:
    """Passive existence check: does the platform serve a thumbnail for the id?

    The outcome is advisory display state only and never filters the
    collection.
    """

    def __init__(self, *, timeout: float | None = None, max_parallel: int | None = None):
        self.timeout = timeout if timeout is not None else settings.link_probe_timeout_s
        self.max_parallel = max_parallel if max_parallel is not None else settings.max_parallel_probes

    async def probe(self, video_id: str, *, client: httpx.AsyncClient | None = None) -> LinkStatus:
        if not is_valid_video_id(video_id):
            return LinkStatus.BROKEN
        if client is None:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as own_client:
                return await self._fetch(video_id, own_client)
        return await self._fetch(video_id, client)

    async def _fetch(self, video_id: str, client: httpx.AsyncClient) -> LinkStatus:
        url = THUMBNAIL_URL_TEMPLATE.format(video_id=video_id)
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"Thumbnail probe failed for {video_id}: {e}")
            return LinkStatus.UNKNOWN

        if response.is_success:
            return LinkStatus.PLAUSIBLE
        if 400 <= response.status_code < 500:
            return LinkStatus.BROKEN
        return LinkStatus.UNKNOWN

    async def probe_all(self, video_ids: Iterable[str]) -> AsyncIterator[tuple[str, LinkStatus]]:
        """Probe ids in parallel, yielding outcomes in completion order."""
        unique_ids = list(dict.fromkeys(video_ids))
        if not unique_ids:
            return
        semaphore = asyncio.Semaphore(max(self.max_parallel, 1))

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:

            async def run_one(video_id: str) -> tuple[str, LinkStatus]:
                async with semaphore:
                    return video_id, await self.probe(video_id, client=client)

            tasks = [asyncio.create_task(run_one(v)) for v in unique_ids]
            try:
                for next_done in asyncio.as_completed(tasks):
                    yield await next_done
            finally:
                for task in tasks:
                    task.cancel()
