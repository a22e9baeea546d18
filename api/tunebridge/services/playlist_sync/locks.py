"""Single-flight guards keyed by source playlist id."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator


class OperationInProgressError(RuntimeError):
    """Raised when another job already owns the source playlist."""

    def __init__(self, source_playlist_id: str) -> None:
        super().__init__(f"Another operation is running for playlist {source_playlist_id}")
        self.source_playlist_id = source_playlist_id


class SourcePlaylistLocks:
    """Gives one transfer or sync job exclusive ownership of a source playlist.

    Everything runs on a single event loop, so the check and the claim below
    cannot interleave with another coroutine.
    """

    def __init__(self) -> None:
        self._active: set[str] = set()

    def is_held(self, source_playlist_id: str) -> bool:
        return source_playlist_id in self._active

    @asynccontextmanager
    async def hold(self, source_playlist_id: str) -> AsyncIterator[None]:
        if source_playlist_id in self._active:
            raise OperationInProgressError(source_playlist_id)
        self._active.add(source_playlist_id)
        try:
            yield
        finally:
            self._active.discard(source_playlist_id)
