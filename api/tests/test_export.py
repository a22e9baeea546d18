from datetime import datetime, timezone

import pytest

from tunebridge.services.music_providers.base import Platform, PlatformPlaylist, PlatformTrack
from tunebridge.services.playlist_sync.export import build_playlist_export, export_filename

EXPORTED_AT = datetime(2024, 5, 17, 12, 30, tzinfo=timezone.utc)


def _spotify_tracks():
    return [
        PlatformTrack(
            id="t1",
            title="Song One",
            artist_names=("A", "B"),
            album_name="Album",
            duration_ms=123457,
            platform=Platform.SPOTIFY,
            url="https://open.spotify.com/track/t1",
            isrc="USABC",
            release_date="2019",
            track_number=3,
            disc_number=1,
        ),
        PlatformTrack(id="t2", title="Song Two", platform=Platform.SPOTIFY),
    ]


def test_export_copies_track_fields_unchanged():
    playlist = PlatformPlaylist(
        id="pl-1",
        title="Road Trip",
        platform=Platform.SPOTIFY,
        description="Summer",
        url="https://open.spotify.com/playlist/pl-1",
    )
    tracks = _spotify_tracks()

    document = build_playlist_export(playlist, tracks, exported_at=EXPORTED_AT)

    assert document.playlist.trackCount == len(tracks)
    assert document.playlist.platform == "spotify"
    assert document.playlist.exportedAt == EXPORTED_AT.isoformat()
    assert document.playlist.externalUrl == "https://open.spotify.com/playlist/pl-1"
    for exported, track in zip(document.tracks, tracks):
        assert exported.name == track.title
        assert exported.album == track.album_name
        assert exported.duration_ms == track.duration_ms
    first = document.tracks[0]
    assert first.spotify_id == "t1"
    assert first.youtube_id is None
    assert first.artists == ["A", "B"]
    assert first.isrc == "USABC"
    assert first.external_urls.spotify == "https://open.spotify.com/track/t1"
    assert document.tracks[1].external_urls.spotify == "https://open.spotify.com/track/t2"


def test_youtube_export_uses_youtube_ids():
    playlist = PlatformPlaylist(id="yt-1", title="Videos", platform=Platform.GOOGLE)
    tracks = [PlatformTrack(id="vid-1", title="Clip", platform=Platform.GOOGLE)]

    document = build_playlist_export(playlist, tracks, exported_at=EXPORTED_AT)

    assert document.playlist.platform == "youtube"
    assert document.tracks[0].youtube_id == "vid-1"
    assert document.tracks[0].spotify_id is None
    assert document.tracks[0].external_urls.youtube == "https://www.youtube.com/watch?v=vid-1"


def test_empty_playlist_exports_zero_tracks():
    playlist = PlatformPlaylist(id="pl-1", title="Empty", platform=Platform.SPOTIFY)
    document = build_playlist_export(playlist, [], exported_at=EXPORTED_AT)
    assert document.playlist.trackCount == 0
    assert document.tracks == []


def test_export_requires_a_platform():
    with pytest.raises(ValueError):
        build_playlist_export(PlatformPlaylist(id="pl-1", title="Unknown"), [])


def test_export_filename_slugifies_name_and_adds_date():
    playlist = PlatformPlaylist(id="pl-1", title="Road Trip: 2024!", platform=Platform.SPOTIFY)
    assert export_filename(playlist, EXPORTED_AT) == "road-trip--2024--2024-05-17.json"
