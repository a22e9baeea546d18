"""Playlist link and sync schemas."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from tunebridge.schemas.playlist import MusicProvider, PlatformTrackIn

SyncStatusOut = Literal["synced", "not_linked", "no_mapping", "not_found", "ignored_failure"]


class LinkFromTransferCreate(BaseModel):
    source_playlist_id: str = Field(min_length=1)


class LinkExistingCreate(BaseModel):
    source_provider: MusicProvider
    source_playlist_id: str = Field(min_length=1)
    destination_provider: MusicProvider
    destination_playlist_id: str = Field(min_length=1)


class TrackMappingOut(BaseModel):
    source_track_id: str
    destination_playlist_item_id: str
    destination_track_external_id: str | None = None


class PlaylistLinkOut(BaseModel):
    source_playlist_id: str
    source_provider: MusicProvider | None = None
    destination_playlist_id: str
    destination_provider: MusicProvider | None = None
    destination_playlist_url: str | None = None
    created_at: datetime
    last_sync_at: datetime
    track_mappings: list[TrackMappingOut] = Field(default_factory=list)


class SyncAddRequest(BaseModel):
    track: PlatformTrackIn
    apply_to_source: bool = False


class SyncReorderRequest(BaseModel):
    source_track_id: str = Field(min_length=1)
    from_index: int = Field(ge=0)
    to_index: int = Field(ge=0)
    apply_to_source: bool = False

    @model_validator(mode="after")
    def validate_move(self) -> "SyncReorderRequest":
        if self.from_index == self.to_index:
            raise ValueError("from_index and to_index must differ")
        return self


class SyncOutcomeOut(BaseModel):
    status: SyncStatusOut
    message: str
    track_mapping: TrackMappingOut | None = None
    error: str | None = None
