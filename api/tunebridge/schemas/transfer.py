"""Transfer request and report schemas."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from tunebridge.schemas.playlist import MusicProvider

TransferStepNameOut = Literal["creating", "matching_and_adding", "completed"]
TransferStatusOut = Literal["loading", "success", "warning", "error"]


class TransferCreate(BaseModel):
    source_provider: MusicProvider
    source_playlist_id: str = Field(min_length=1)
    destination_provider: MusicProvider


class TransferStepOut(BaseModel):
    step: TransferStepNameOut
    status: TransferStatusOut
    message: str
    tracks_added: int | None = None
    total_tracks: int | None = None
    playlist_url: str | None = None


class FailedTrackOut(BaseModel):
    source_track_id: str
    title: str
    artist_names: list[str] = Field(default_factory=list)
    reason: str


class TransferReportOut(BaseModel):
    source_playlist_id: str
    source_provider: MusicProvider
    destination_provider: MusicProvider
    steps: list[TransferStepOut] = Field(default_factory=list)
    destination_playlist_id: str | None = None
    destination_url: str | None = None
    success_count: int
    total_tracks: int
    final_status: TransferStatusOut | None = None
    is_terminal: bool
    link_eligible: bool
    failed_tracks: list[FailedTrackOut] = Field(default_factory=list)
    auth_expired_provider: MusicProvider | None = None
    started_at: datetime
    finished_at: datetime | None = None
