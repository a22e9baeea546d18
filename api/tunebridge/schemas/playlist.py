"""Provider playlist and track schemas"""
from typing import Literal

from pydantic import BaseModel, Field

MusicProvider = Literal["spotify", "google", "apple"]


class PlatformPlaylistOut(BaseModel):
    provider: MusicProvider
    id: str
    title: str
    description: str | None = None
    track_count: int | None = None
    owner_name: str | None = None
    is_public: bool | None = None
    is_collaborative: bool | None = None
    url: str | None = None


class PlatformTrackOut(BaseModel):
    id: str
    title: str
    artist_names: list[str] = Field(default_factory=list)
    album_name: str | None = None
    duration_ms: int | None = None
    external_uri: str | None = None
    url: str | None = None
    isrc: str | None = None
    release_date: str | None = None
    track_number: int | None = None
    disc_number: int | None = None


class PlatformTrackIn(BaseModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    artist_names: list[str] = Field(default_factory=list)
    album_name: str | None = None
    duration_ms: int | None = Field(default=None, ge=0)
    external_uri: str | None = None
    url: str | None = None
