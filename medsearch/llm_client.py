"""OpenAI-compatible client factory for non-streaming Perplexity calls."""
from __future__ import annotations

from typing import Any

from medsearch.config import settings


def get_client() -> Any:
    """Get an AsyncOpenAI client pointed at the Perplexity API."""
    from openai import AsyncOpenAI

    base_url = settings.perplexity_base_url.strip() or "https://api.perplexity.ai"
    return AsyncOpenAI(
        api_key=settings.perplexity_api_key,
        base_url=base_url,
    )


def get_model() -> str:
    """Get the model id used for per-video enrichment."""
    if settings.enrichment_model:
        return settings.enrichment_model
    return settings.perplexity_model


_client: Any | None = None


def client() -> Any:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
