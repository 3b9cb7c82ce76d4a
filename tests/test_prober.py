from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest

from medsearch.services.prober import LinkProber, LinkStatus


class FakeClient:
    def __init__(self, statuses: dict[str, int | Exception], **kwargs):
        self.statuses = statuses
        self.requested: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url: str):
        self.requested.append(url)
        video_id = url.split("/vi/")[1].split("/")[0]
        status = self.statuses[video_id]
        if isinstance(status, Exception):
            raise status
        return SimpleNamespace(status_code=status, is_success=200 <= status < 300)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (200, LinkStatus.PLAUSIBLE),
        (404, LinkStatus.BROKEN),
        (503, LinkStatus.UNKNOWN),
        (httpx.ConnectError("unreachable"), LinkStatus.UNKNOWN),
    ],
)
async def test_probe_maps_thumbnail_response(status, expected):
    client = FakeClient({"dQw4w9WgXcQ": status})

    result = await LinkProber().probe("dQw4w9WgXcQ", client=client)

    assert result == expected
    assert client.requested == ["https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"]


@pytest.mark.asyncio
async def test_malformed_id_is_broken_without_a_request():
    client = FakeClient({})

    assert await LinkProber().probe("short", client=client) == LinkStatus.BROKEN
    assert client.requested == []


@pytest.mark.asyncio
async def test_probe_all_deduplicates_and_shares_one_client():
    fake = FakeClient({"dQw4w9WgXcQ": 200, "9bZkp7q19f0": 404})

    with patch("medsearch.services.prober.httpx.AsyncClient", return_value=fake):
        outcomes = [
            pair
            async for pair in LinkProber(max_parallel=2).probe_all(
                ["dQw4w9WgXcQ", "9bZkp7q19f0", "dQw4w9WgXcQ"]
            )
        ]

    assert dict(outcomes) == {
        "dQw4w9WgXcQ": LinkStatus.PLAUSIBLE,
        "9bZkp7q19f0": LinkStatus.BROKEN,
    }
    assert len(fake.requested) == 2


@pytest.mark.asyncio
async def test_probe_all_with_no_ids():
    assert [pair async for pair in LinkProber().probe_all([])] == []
