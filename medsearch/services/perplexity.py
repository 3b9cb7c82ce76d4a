from __future__ import annotations

import time
from typing import Any, AsyncIterator

import httpx

from medsearch.config import settings
from medsearch.services.logger import log_llm_call
from medsearch.services.prompt_store import render_prompt

TRUSTED_CHANNELS = (
    "Cleveland Clinic",
    "Johns Hopkins Medicine",
    "Harvard Medical School",
    "Stanford Medicine",
    "Mount Sinai Health System",
    "WebMD",
    "MedlinePlus (NIH)",
    "Mayo Clinic",
    "UCLA Health",
    "NYU Langone Health",
    "Mass General Brigham",
    "UCSF Health",
)

NO_RESULTS_MESSAGE = "No real medical videos found for this topic. Try different search terms."


class TransportError(RuntimeError):
    """The upstream stream could not be opened or broke off midway."""


def build_messages(query: str) -> list[dict[str, str]]:
    values = {
        "query": query,
        "channel_list": ", ".join(TRUSTED_CHANNELS),
        "no_results_message": NO_RESULTS_MESSAGE,
    }
    return [
        {"role": "system", "content": render_prompt("search.system_prompt", **values)},
        {"role": "user", "content": render_prompt("search.user_prompt", **values)},
    ]


def build_payload(query: str) -> dict[str, Any]:
    return {
        "model": settings.perplexity_model,
        "messages": build_messages(query),
        "stream": True,
        "search_domain_filter": settings.search_domain_list,
        "search_mode": "web",
        "web_search_options": {
            "search_context_size": settings.search_context_size,
            "search_recency": settings.search_recency,
        },
    }


async def stream_search(query: str) -> AsyncIterator[bytes]:
    """Stream the raw SSE body of a video search, chunk by chunk."""
    if not settings.perplexity_api_key:
        raise TransportError("PERPLEXITY_API_KEY is not configured")

    url = f"{settings.perplexity_base_url.rstrip('/')}/chat/completions"
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.perplexity_api_key}",
    }
    t0 = time.monotonic()
    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout_s) as client:
            async with client.stream("POST", url, json=build_payload(query), headers=headers) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    yield chunk
    except httpx.HTTPError as e:
        log_llm_call(
            model=settings.perplexity_model,
            caller="video_search",
            duration_ms=int((time.monotonic() - t0) * 1000),
            status="error",
            error=str(e),
        )
        raise TransportError(f"Perplexity API error: {e}") from e

    log_llm_call(
        model=settings.perplexity_model,
        caller="video_search",
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
