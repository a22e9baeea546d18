"""Live transfer reports."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from tunebridge.services.music_providers.base import Platform


class TransferStepName(str, Enum):
    CREATING = "creating"
    MATCHING_AND_ADDING = "matching_and_adding"
    COMPLETED = "completed"


class TransferStatus(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class TransferStep:
    step: TransferStepName
    status: TransferStatus
    message: str
    tracks_added: int | None = None
    total_tracks: int | None = None
    playlist_url: str | None = None


@dataclass(frozen=True)
class TrackMapping:
    source_track_id: str
    destination_playlist_item_id: str
    destination_track_external_id: str | None = None


@dataclass(frozen=True)
class FailedTrack:
    source_track_id: str
    title: str
    artist_names: tuple[str, ...]
    reason: str


def classify_transfer_status(success_count: int, total_tracks: int) -> TransferStatus:
    """All tracks is success, at least half is a warning, anything less an error."""
    if success_count == total_tracks:
        return TransferStatus.SUCCESS
    if success_count * 2 >= total_tracks:
        return TransferStatus.WARNING
    return TransferStatus.ERROR


ReportListener = Callable[["TransferReport"], None]


@dataclass
class TransferReport:
    """Ordered lifecycle of one transfer attempt.

    Steps are only appended or replaced in place, never reordered.
    """

    source_playlist_id: str
    source_platform: Platform
    destination_platform: Platform
    steps: list[TransferStep] = field(default_factory=list)
    destination_playlist_id: str | None = None
    destination_url: str | None = None
    track_mappings: list[TrackMapping] = field(default_factory=list)
    failed_tracks: list[FailedTrack] = field(default_factory=list)
    success_count: int = 0
    total_tracks: int = 0
    auth_expired_platform: Platform | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    _listeners: list[ReportListener] = field(default_factory=list, repr=False, compare=False)

    def subscribe(self, listener: ReportListener) -> None:
        self._listeners.append(listener)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def set_step(
        self,
        step: TransferStepName,
        status: TransferStatus,
        message: str,
        **details,
    ) -> TransferStep:
        """Replace the step with the same name, or append it when new."""
        entry = TransferStep(step=step, status=status, message=message, **details)
        for index, existing in enumerate(self.steps):
            if existing.step == step:
                self.steps[index] = entry
                break
        else:
            self.steps.append(entry)
        if status != TransferStatus.LOADING and (
            step == TransferStepName.COMPLETED or status == TransferStatus.ERROR
        ):
            self.finished_at = datetime.now(timezone.utc)
        self._emit()
        return entry

    def fail(self, message: str) -> TransferStep:
        """Mark the running step as failed so the report ends in a terminal state."""
        current = self.current_step
        if current is not None and self.is_terminal:
            return current
        return self.set_step(
            current.step if current is not None else TransferStepName.CREATING,
            TransferStatus.ERROR,
            message,
            tracks_added=self.success_count if self.total_tracks else None,
            total_tracks=self.total_tracks or None,
        )

    @property
    def current_step(self) -> TransferStep | None:
        return self.steps[-1] if self.steps else None

    @property
    def completed_step(self) -> TransferStep | None:
        for entry in self.steps:
            if entry.step == TransferStepName.COMPLETED:
                return entry
        return None

    @property
    def is_terminal(self) -> bool:
        current = self.current_step
        if current is None:
            return False
        if current.step == TransferStepName.COMPLETED:
            return True
        return current.status == TransferStatus.ERROR

    @property
    def final_status(self) -> TransferStatus | None:
        completed = self.completed_step
        return completed.status if completed else None

    @property
    def link_eligible(self) -> bool:
        """A completed transfer with at least one added track may be linked."""
        return self.completed_step is not None and self.success_count > 0
