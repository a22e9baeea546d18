"""Structured playlist export documents."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Sequence

from tunebridge.schemas.export import ExportedPlaylistMeta, ExportedTrack, ExternalUrls, PlaylistExport
from tunebridge.services.music_providers.base import Platform, PlatformPlaylist, PlatformTrack

EXPORT_PLATFORM_NAMES = {
    Platform.SPOTIFY: "spotify",
    Platform.GOOGLE: "youtube",
    Platform.APPLE: "apple",
}


def _export_track(track: PlatformTrack, platform: Platform | None) -> ExportedTrack:
    spotify_id = track.id if platform == Platform.SPOTIFY else None
    youtube_id = track.id if platform == Platform.GOOGLE else None
    external_urls = None
    if spotify_id:
        external_urls = ExternalUrls(spotify=track.url or f"https://open.spotify.com/track/{spotify_id}")
    elif youtube_id:
        external_urls = ExternalUrls(youtube=track.url or f"https://www.youtube.com/watch?v={youtube_id}")
    return ExportedTrack(
        name=track.title,
        artists=list(track.artist_names),
        album=track.album_name,
        duration_ms=track.duration_ms,
        isrc=track.isrc,
        spotify_id=spotify_id,
        youtube_id=youtube_id,
        external_urls=external_urls,
        release_date=track.release_date,
        track_number=track.track_number,
        disc_number=track.disc_number,
    )


def build_playlist_export(
    playlist: PlatformPlaylist,
    tracks: Sequence[PlatformTrack],
    exported_at: datetime | None = None,
) -> PlaylistExport:
    """Convert a playlist and its tracks into the export document. No side effects."""
    platform = playlist.platform
    if platform is None:
        raise ValueError("Playlist platform is required for export")
    moment = exported_at or datetime.now(timezone.utc)
    return PlaylistExport(
        playlist=ExportedPlaylistMeta(
            name=playlist.title,
            description=playlist.description or None,
            platform=EXPORT_PLATFORM_NAMES[platform],
            exportedAt=moment.isoformat(),
            trackCount=len(tracks),
            playlistId=playlist.id,
            externalUrl=playlist.url,
        ),
        tracks=[_export_track(track, track.platform or platform) for track in tracks],
    )


def export_filename(playlist: PlatformPlaylist, exported_at: datetime | None = None) -> str:
    """Return ``<playlist-name>-YYYY-MM-DD.json`` with unsafe characters dashed."""
    moment = exported_at or datetime.now(timezone.utc)
    safe_name = re.sub(r"[^a-z0-9]", "-", playlist.title, flags=re.IGNORECASE).lower()
    return f"{safe_name}-{moment.date().isoformat()}.json"
