"""Local copies of source playlist track lists."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from tunebridge.services.music_providers.base import PlatformTrack

logger = logging.getLogger(__name__)

RemoteMove = Callable[[], Awaitable[object]]


def move_item(tracks: Sequence[PlatformTrack], from_index: int, to_index: int) -> list[PlatformTrack]:
    """Return a new list with the entry at ``from_index`` placed at ``to_index``."""
    if not 0 <= from_index < len(tracks) or not 0 <= to_index < len(tracks):
        raise IndexError(f"Cannot move {from_index} -> {to_index} in a list of {len(tracks)}")
    moved = list(tracks)
    track = moved.pop(from_index)
    moved.insert(to_index, track)
    return moved


class PlaylistTrackCache:
    """Cached source track lists. The platform stays authoritative."""

    def __init__(self) -> None:
        self._tracks: dict[str, tuple[PlatformTrack, ...]] = {}

    def get(self, playlist_id: str) -> tuple[PlatformTrack, ...] | None:
        return self._tracks.get(playlist_id)

    def put(self, playlist_id: str, tracks: Sequence[PlatformTrack]) -> None:
        self._tracks[playlist_id] = tuple(tracks)

    def append(self, playlist_id: str, track: PlatformTrack) -> None:
        if playlist_id in self._tracks:
            self._tracks[playlist_id] = (*self._tracks[playlist_id], track)

    def invalidate(self, playlist_id: str) -> None:
        self._tracks.pop(playlist_id, None)

    async def reorder(
        self,
        playlist_id: str,
        from_index: int,
        to_index: int,
        remote_move: RemoteMove,
    ) -> tuple[PlatformTrack, ...]:
        """Apply a move locally, then remotely; restore the snapshot if the remote call fails."""
        snapshot = self._tracks.get(playlist_id)
        if snapshot is None:
            raise KeyError(playlist_id)
        self._tracks[playlist_id] = tuple(move_item(snapshot, from_index, to_index))
        try:
            await remote_move()
        except Exception:
            logger.warning("Reorder of %s failed remotely, restoring local order", playlist_id)
            self._tracks[playlist_id] = snapshot
            raise
        return self._tracks[playlist_id]
