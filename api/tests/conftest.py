import os
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("LINK_STORE_BACKEND", "memory")
os.environ.setdefault("MAX_TRANSFER_TRACKS", "500")

from tunebridge.db.session import Base
import tunebridge.models  # noqa: F401
from main import app
from tunebridge.services.music_providers import session as provider_session
from tunebridge.services.music_providers.base import (
    Platform,
    PlatformPlaylist,
    PlatformTrack,
    PlaylistItem,
    TransientNetworkError,
)
from tunebridge.services.playlist_sync.session import session_store


class FakeProvider:
    """In-memory stand-in for a platform adapter.

    ``search_results`` maps an exact search query to its ranked results.
    Errors can be injected per query (``search_errors``), per track id
    (``add_errors``) or for whole operations.
    """

    def __init__(self, platform: Platform = Platform.SPOTIFY, atomic_reorder: bool | None = None):
        self.platform = platform
        self.label = platform.value.title()
        self.supports_atomic_reorder = (
            platform == Platform.SPOTIFY if atomic_reorder is None else atomic_reorder
        )
        self.playlists: dict[str, PlatformPlaylist] = {}
        self.items: dict[str, list[PlaylistItem]] = {}
        self.search_results: dict[str, list[PlatformTrack]] = {}
        self.search_errors: dict[str, Exception] = {}
        self.add_errors: dict[str, Exception] = {}
        self.create_error: Exception | None = None
        self.list_error: Exception | None = None
        self.reorder_error: Exception | None = None
        self.calls: list[tuple] = []
        self._counter = 0

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _handle_for(self, track: PlatformTrack) -> str:
        if self.supports_atomic_reorder:
            return track.external_uri or track.id
        return self._next("item")

    def add_playlist(self, playlist_id: str, title: str, tracks: list[PlatformTrack]) -> PlatformPlaylist:
        playlist = PlatformPlaylist(
            id=playlist_id,
            title=title,
            platform=self.platform,
            description=f"{title} description",
            track_count=len(tracks),
            url=f"https://{self.platform.value}.test/playlist/{playlist_id}",
        )
        self.playlists[playlist_id] = playlist
        self.items[playlist_id] = [
            PlaylistItem(placement_handle=self._handle_for(track), track=track, position=index)
            for index, track in enumerate(tracks)
        ]
        return playlist

    def track_ids(self, playlist_id: str) -> list[str]:
        return [item.track.id for item in self.items.get(playlist_id, [])]

    def _renumber(self, playlist_id: str) -> None:
        self.items[playlist_id] = [
            PlaylistItem(item.placement_handle, item.track, index)
            for index, item in enumerate(self.items[playlist_id])
        ]

    async def list_playlists(self):
        return list(self.playlists.values())

    async def get_playlist(self, playlist_id: str):
        playlist = self.playlists.get(playlist_id)
        if playlist is None:
            raise TransientNetworkError("Playlist not found", status_code=404, platform=self.platform)
        return playlist

    async def list_playlist_items(self, playlist_id: str):
        self.calls.append(("list", playlist_id))
        if self.list_error is not None:
            raise self.list_error
        return list(self.items.get(playlist_id, []))

    async def list_tracks(self, playlist_id: str):
        return [item.track for item in await self.list_playlist_items(playlist_id)]

    async def search_tracks(self, query: str, limit: int = 10):
        self.calls.append(("search", query, limit))
        if query in self.search_errors:
            raise self.search_errors[query]
        return self.search_results.get(query, [])[:limit]

    async def create_playlist(self, title: str, description: str | None = None, is_public: bool | None = None):
        self.calls.append(("create", title))
        if self.create_error is not None:
            raise self.create_error
        playlist_id = self._next("created")
        return self.add_playlist(playlist_id, title, [])

    async def add_track(self, playlist_id: str, track: PlatformTrack):
        return await self.add_track_at_position(playlist_id, track, len(self.items.get(playlist_id, [])))

    async def add_track_at_position(self, playlist_id: str, track: PlatformTrack, position: int):
        self.calls.append(("add", playlist_id, track.id, position))
        if track.id in self.add_errors:
            raise self.add_errors[track.id]
        handle = self._handle_for(track)
        items = self.items.setdefault(playlist_id, [])
        items.insert(position, PlaylistItem(handle, track, position))
        self._renumber(playlist_id)
        return handle

    async def remove_track(self, playlist_id: str, placement_handle: str):
        self.calls.append(("remove", playlist_id, placement_handle))
        self.items[playlist_id] = [
            item for item in self.items.get(playlist_id, []) if item.placement_handle != placement_handle
        ]
        self._renumber(playlist_id)

    async def reorder_track(self, playlist_id, placement_handle, from_index, to_index, track=None):
        self.calls.append(("reorder", playlist_id, placement_handle, from_index, to_index))
        if self.reorder_error is not None:
            raise self.reorder_error
        items = self.items[playlist_id]
        moved = items.pop(from_index)
        if self.supports_atomic_reorder:
            items.insert(to_index, moved)
            self._renumber(playlist_id)
            return placement_handle
        if track is None:
            raise ValueError("reorder needs the track to reinsert")
        handle = self._next("item")
        items.insert(to_index, PlaylistItem(handle, moved.track, to_index))
        self._renumber(playlist_id)
        return handle


def make_track(track_id: str, title: str, *artists: str, platform: Platform = Platform.SPOTIFY) -> PlatformTrack:
    return PlatformTrack(
        id=track_id,
        title=title,
        artist_names=tuple(artists),
        external_uri=f"{platform.value}:track:{track_id}" if platform == Platform.SPOTIFY else track_id,
        platform=platform,
    )


TEST_DATABASE_URL = "sqlite+pysqlite://"


def _create_test_engine():
    """Create an in-memory SQLite engine for tests."""
    return create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(scope="session")
def test_engine():
    """Provide a session-scoped SQLAlchemy engine with tables created."""
    engine = _create_test_engine()
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture()
def sync_session_id():
    return f"session-{uuid.uuid4().hex}"


@pytest.fixture()
def spotify():
    return FakeProvider(Platform.SPOTIFY)


@pytest.fixture()
def youtube():
    return FakeProvider(Platform.GOOGLE)


@pytest.fixture()
def provider_stub(monkeypatch, spotify, youtube):
    """Route every provider client the API builds to the in-memory fakes."""
    fakes = {Platform.SPOTIFY: spotify, Platform.GOOGLE: youtube}

    def _factory(platform, access_token: str):
        return fakes[Platform(platform)]

    monkeypatch.setattr(provider_session, "get_music_provider", _factory)
    return fakes


@pytest.fixture()
def token_headers():
    return {"X-Spotify-Token": "spotify-token", "X-Google-Token": "google-token"}


@pytest.fixture()
def client():
    """Provide a TestClient with fresh sync sessions."""
    session_store.clear()
    with TestClient(app) as test_client:
        yield test_client
    session_store.clear()
