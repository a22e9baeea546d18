import asyncio

import pytest

from conftest import FakeProvider, make_track
from tunebridge.services.music_providers.base import Platform, TransientNetworkError
from tunebridge.services.playlist_sync.link_registry import LinkRegistry
from tunebridge.services.playlist_sync.locks import OperationInProgressError
from tunebridge.services.playlist_sync.orchestrator import TransferOrchestrator
from tunebridge.services.playlist_sync.report import TransferStatus, TransferStepName
from tunebridge.services.playlist_sync.session import (
    NotLinkedError,
    ReportNotFoundError,
    SessionStore,
    SourceChangedError,
    SyncSession,
)
from tunebridge.services.playlist_sync.sync_engine import SyncEngine, SyncStatus


def _transferred_session():
    spotify = FakeProvider(Platform.SPOTIFY)
    youtube = FakeProvider(Platform.GOOGLE)
    tracks = [make_track(f"t{i}", f"Song {i}", "Artist") for i in range(3)]
    playlist = spotify.add_playlist("src-1", "Road Trip", tracks)
    for track in tracks:
        youtube.search_results[f"{track.title} Artist"] = [
            make_track(f"yt-{track.id}", track.title, "Artist", platform=Platform.GOOGLE)
        ]
    session = SyncSession("s", registry=LinkRegistry())
    orchestrator = TransferOrchestrator(spotify, youtube)
    report = session.start_transfer(orchestrator, playlist)
    asyncio.run(session.run_transfer(orchestrator, playlist, report))
    return session, spotify, youtube


def test_linking_a_transfer_records_exact_mappings():
    session, spotify, youtube = _transferred_session()

    link = session.link_from_report("src-1")

    assert link.destination_playlist_id == session.get_report("src-1").destination_playlist_id
    assert link.destination_platform == Platform.GOOGLE
    handles = [item.placement_handle for item in youtube.items[link.destination_playlist_id]]
    assert [mapping.destination_playlist_item_id for mapping in link.track_mappings] == handles


def test_missing_report_and_link_raise_lookup_errors():
    session = SyncSession("s", registry=LinkRegistry())
    with pytest.raises(ReportNotFoundError):
        session.get_report("nope")
    with pytest.raises(NotLinkedError):
        session.get_link("nope")
    with pytest.raises(NotLinkedError):
        session.unlink("nope")


def test_a_running_transfer_blocks_another_start():
    session, spotify, youtube = _transferred_session()
    orchestrator = TransferOrchestrator(spotify, youtube)
    playlist = spotify.playlists["src-1"]

    async def _scenario():
        async with session.locks.hold("src-1"):
            with pytest.raises(OperationInProgressError):
                session.start_transfer(orchestrator, playlist)

    asyncio.run(_scenario())
    # a finished report may be replaced by a new transfer
    assert session.start_transfer(orchestrator, playlist).steps == []


def test_link_existing_backfills_by_position():
    spotify = FakeProvider(Platform.SPOTIFY)
    youtube = FakeProvider(Platform.GOOGLE)
    spotify.add_playlist("src-1", "Mix", [make_track("t1", "One", "A"), make_track("t2", "Two", "B")])
    youtube.add_playlist(
        "dst-1",
        "Mix",
        [make_track("v1", "One", "A", platform=Platform.GOOGLE), make_track("v2", "Two", "B", platform=Platform.GOOGLE)],
    )
    session = SyncSession("s", registry=LinkRegistry())

    link = asyncio.run(session.link_existing(spotify, youtube, "src-1", "dst-1"))

    assert link.destination_playlist_url == youtube.playlists["dst-1"].url
    assert [mapping.source_track_id for mapping in link.track_mappings] == ["t1", "t2"]
    assert link.track_mappings[1].destination_playlist_item_id == youtube.items["dst-1"][1].placement_handle
    assert [track.id for track in session.track_cache.get("src-1")] == ["t1", "t2"]


def test_reorder_applied_to_source_then_destination():
    session, spotify, youtube = _transferred_session()
    link = session.link_from_report("src-1")
    engine = SyncEngine(session.registry, lambda platform: youtube)

    outcome = asyncio.run(session.propagate_reorder(engine, "src-1", "t0", 0, 2, source_provider=spotify))

    assert outcome.status == SyncStatus.SYNCED
    assert spotify.track_ids("src-1") == ["t1", "t2", "t0"]
    assert youtube.track_ids(link.destination_playlist_id) == ["yt-t1", "yt-t2", "yt-t0"]
    assert [track.id for track in session.track_cache.get("src-1")] == ["t1", "t2", "t0"]


def test_failed_source_move_restores_cache_and_skips_destination():
    session, spotify, youtube = _transferred_session()
    link = session.link_from_report("src-1")
    spotify.reorder_error = TransientNetworkError("boom", status_code=500)
    engine = SyncEngine(session.registry, lambda platform: youtube)

    with pytest.raises(TransientNetworkError):
        asyncio.run(session.propagate_reorder(engine, "src-1", "t0", 0, 2, source_provider=spotify))

    assert [track.id for track in session.track_cache.get("src-1")] == ["t0", "t1", "t2"]
    assert youtube.track_ids(link.destination_playlist_id) == ["yt-t0", "yt-t1", "yt-t2"]
    assert not session.locks.is_held("src-1")


def test_source_move_checks_the_track_is_still_in_place():
    session, spotify, youtube = _transferred_session()
    session.link_from_report("src-1")
    engine = SyncEngine(session.registry, lambda platform: youtube)

    with pytest.raises(SourceChangedError):
        asyncio.run(session.propagate_reorder(engine, "src-1", "t2", 0, 1, source_provider=spotify))


def test_session_store_creates_sessions_on_first_use():
    store = SessionStore()
    first = store.get_or_create("abc")
    assert store.get_or_create("abc") is first
    assert store.get_or_create(None).session_id == "default"
    assert store.get_or_create("  ").session_id == "default"
    assert store.get_or_create("other") is not first


def test_unexpected_transfer_failure_still_ends_the_report():
    spotify = FakeProvider(Platform.SPOTIFY)
    youtube = FakeProvider(Platform.GOOGLE)
    playlist = spotify.add_playlist("src-1", "Road Trip", [make_track("t0", "Song 0", "Artist")])
    spotify.list_error = RuntimeError("decoder blew up")
    session = SyncSession("s", registry=LinkRegistry())
    orchestrator = TransferOrchestrator(spotify, youtube)
    report = session.start_transfer(orchestrator, playlist)

    with pytest.raises(RuntimeError):
        asyncio.run(session.run_transfer(orchestrator, playlist, report))

    assert report.is_terminal
    assert report.current_step.step == TransferStepName.MATCHING_AND_ADDING
    assert report.current_step.status == TransferStatus.ERROR
    assert "decoder blew up" in report.current_step.message
    assert report.finished_at is not None
    assert not session.locks.is_held("src-1")
    spotify.list_error = None
    assert session.start_transfer(orchestrator, playlist).steps == []


def test_add_applied_to_source_then_destination():
    session, spotify, youtube = _transferred_session()
    link = session.link_from_report("src-1")
    youtube.search_results["New Artist"] = [make_track("yt-new", "New", "Artist", platform=Platform.GOOGLE)]
    engine = SyncEngine(session.registry, lambda platform: youtube)

    outcome = asyncio.run(
        session.propagate_add(engine, "src-1", make_track("t9", "New", "Artist"), source_provider=spotify)
    )

    assert outcome.status == SyncStatus.SYNCED
    assert spotify.track_ids("src-1") == ["t0", "t1", "t2", "t9"]
    assert youtube.track_ids(link.destination_playlist_id)[-1] == "yt-new"


def test_failed_source_add_is_not_mirrored():
    session, spotify, youtube = _transferred_session()
    link = session.link_from_report("src-1")
    spotify.add_errors["t9"] = TransientNetworkError("boom", status_code=500)
    engine = SyncEngine(session.registry, lambda platform: youtube)

    with pytest.raises(TransientNetworkError):
        asyncio.run(
            session.propagate_add(engine, "src-1", make_track("t9", "New", "Artist"), source_provider=spotify)
        )

    assert youtube.track_ids(link.destination_playlist_id) == ["yt-t0", "yt-t1", "yt-t2"]
    assert not session.locks.is_held("src-1")
