from __future__ import annotations

from medsearch.services.perplexity import TRUSTED_CHANNELS

SUGGESTED_TOPICS = (
    "Diabetes management",
    "Heart disease prevention",
    "Mental health awareness",
    "Nutrition and diet",
)


def get_trusted_channels() -> list[dict[str, str]]:
    """Return the institutions the upstream search is asked to draw from."""
    return [{"name": name} for name in TRUSTED_CHANNELS]


def get_suggested_topics() -> list[str]:
    return list(SUGGESTED_TOPICS)
