import asyncio

import pytest

from conftest import FakeProvider, make_track
from tunebridge.services.music_providers.base import Platform, RateLimitedError
from tunebridge.services.playlist_sync.matcher import build_search_query, match_track


def test_build_search_query_joins_title_and_artists():
    track = make_track("t1", "Harder Better", "Daft Punk", "Guest")
    assert build_search_query(track) == "Harder Better Daft Punk Guest"


def test_match_track_takes_the_first_result_only():
    youtube = FakeProvider(Platform.GOOGLE)
    first = make_track("v1", "Song (Official Video)", "Band", platform=Platform.GOOGLE)
    second = make_track("v2", "Song", "Band", platform=Platform.GOOGLE)
    youtube.search_results["Song Band"] = [first, second]

    matched = asyncio.run(match_track(make_track("t1", "Song", "Band"), youtube))
    assert matched == first
    assert youtube.calls == [("search", "Song Band", 1)]


def test_match_track_returns_none_for_empty_results():
    youtube = FakeProvider(Platform.GOOGLE)
    assert asyncio.run(match_track(make_track("t1", "Unknown", "Nobody"), youtube)) is None


def test_match_track_propagates_provider_errors():
    youtube = FakeProvider(Platform.GOOGLE)
    youtube.search_errors["Song Band"] = RateLimitedError("quota", status_code=403)
    with pytest.raises(RateLimitedError):
        asyncio.run(match_track(make_track("t1", "Song", "Band"), youtube))
