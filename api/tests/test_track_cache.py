import asyncio

import pytest

from conftest import make_track
from tunebridge.services.music_providers.base import TransientNetworkError
from tunebridge.services.playlist_sync.locks import OperationInProgressError, SourcePlaylistLocks
from tunebridge.services.playlist_sync.track_cache import PlaylistTrackCache, move_item


def _tracks():
    return [make_track(f"t{i}", f"Song {i}", "Artist") for i in range(4)]


def test_move_item_places_entry_at_target_index():
    tracks = _tracks()
    assert [track.id for track in move_item(tracks, 0, 2)] == ["t1", "t2", "t0", "t3"]
    assert [track.id for track in move_item(tracks, 3, 0)] == ["t3", "t0", "t1", "t2"]
    assert [track.id for track in tracks] == ["t0", "t1", "t2", "t3"]
    with pytest.raises(IndexError):
        move_item(tracks, 0, 4)


def test_reorder_applies_locally_after_remote_success():
    cache = PlaylistTrackCache()
    cache.put("src-1", _tracks())
    seen_during_remote: list[list[str]] = []

    async def _remote():
        seen_during_remote.append([track.id for track in cache.get("src-1")])

    result = asyncio.run(cache.reorder("src-1", 1, 3, _remote))

    assert [track.id for track in result] == ["t0", "t2", "t3", "t1"]
    assert seen_during_remote == [["t0", "t2", "t3", "t1"]]


def test_reorder_restores_snapshot_when_remote_fails():
    cache = PlaylistTrackCache()
    cache.put("src-1", _tracks())

    async def _remote():
        raise TransientNetworkError("boom")

    with pytest.raises(TransientNetworkError):
        asyncio.run(cache.reorder("src-1", 0, 3, _remote))
    assert [track.id for track in cache.get("src-1")] == ["t0", "t1", "t2", "t3"]


def test_reorder_requires_a_cached_list():
    cache = PlaylistTrackCache()

    async def _remote():
        return None

    with pytest.raises(KeyError):
        asyncio.run(cache.reorder("missing", 0, 1, _remote))


def test_append_only_touches_cached_playlists():
    cache = PlaylistTrackCache()
    cache.append("src-1", make_track("t9", "New", "Z"))
    assert cache.get("src-1") is None
    cache.put("src-1", _tracks())
    cache.append("src-1", make_track("t9", "New", "Z"))
    assert cache.get("src-1")[-1].id == "t9"
    cache.invalidate("src-1")
    assert cache.get("src-1") is None


def test_locks_reject_a_second_job_for_the_same_playlist():
    locks = SourcePlaylistLocks()

    async def _scenario():
        async with locks.hold("src-1"):
            assert locks.is_held("src-1")
            with pytest.raises(OperationInProgressError):
                async with locks.hold("src-1"):
                    pass
            async with locks.hold("src-2"):
                assert locks.is_held("src-2")
        assert not locks.is_held("src-1")

    asyncio.run(_scenario())


def test_locks_release_when_the_job_fails():
    locks = SourcePlaylistLocks()

    async def _failing():
        async with locks.hold("src-1"):
            raise RuntimeError("job failed")

    with pytest.raises(RuntimeError):
        asyncio.run(_failing())
    assert not locks.is_held("src-1")
