"""Playlist export document schemas."""
from typing import Literal

from pydantic import BaseModel, Field

ExportPlatform = Literal["spotify", "youtube", "apple"]


class ExportedPlaylistMeta(BaseModel):
    name: str
    description: str | None = None
    platform: ExportPlatform
    exportedAt: str
    trackCount: int
    playlistId: str
    externalUrl: str | None = None


class ExternalUrls(BaseModel):
    spotify: str | None = None
    youtube: str | None = None


class ExportedTrack(BaseModel):
    name: str
    artists: list[str] = Field(default_factory=list)
    album: str | None = None
    duration_ms: int | None = None
    isrc: str | None = None
    spotify_id: str | None = None
    youtube_id: str | None = None
    external_urls: ExternalUrls | None = None
    release_date: str | None = None
    track_number: int | None = None
    disc_number: int | None = None


class PlaylistExport(BaseModel):
    playlist: ExportedPlaylistMeta
    tracks: list[ExportedTrack] = Field(default_factory=list)
