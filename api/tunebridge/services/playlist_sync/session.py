"""Per-session state shared by transfer, link and sync operations."""
from __future__ import annotations

import logging

from tunebridge.config.settings import settings
from tunebridge.services.music_providers.base import (
    AuthExpiredError,
    MusicProviderClient,
    PlatformPlaylist,
    PlatformTrack,
)
from tunebridge.services.playlist_sync.link_registry import (
    LinkRegistry,
    LinkStore,
    PlaylistLink,
    backfill_positional,
    record_track_mappings,
)
from tunebridge.services.playlist_sync.locks import OperationInProgressError, SourcePlaylistLocks
from tunebridge.services.playlist_sync.orchestrator import TransferOrchestrator
from tunebridge.services.playlist_sync.report import TransferReport
from tunebridge.services.playlist_sync.sync_engine import SyncEngine, SyncOutcome
from tunebridge.services.playlist_sync.track_cache import PlaylistTrackCache

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


class NotLinkedError(LookupError):
    def __init__(self, source_playlist_id: str) -> None:
        super().__init__(f"Playlist {source_playlist_id} is not linked")
        self.source_playlist_id = source_playlist_id


class TransferNotEligibleError(RuntimeError):
    """Raised when a transfer has not finished or added nothing."""


class ReportNotFoundError(LookupError):
    def __init__(self, source_playlist_id: str) -> None:
        super().__init__(f"No transfer found for playlist {source_playlist_id}")
        self.source_playlist_id = source_playlist_id


class SourceChangedError(ValueError):
    """Raised when the source playlist no longer matches the requested move."""


def build_link_store(session_id: str) -> LinkStore:
    if settings.LINK_STORE_BACKEND == "database":
        from tunebridge.db.session import SessionLocal
        from tunebridge.services.playlist_sync.sql_link_registry import SqlLinkRegistry

        return SqlLinkRegistry(SessionLocal, session_id)
    return LinkRegistry()


class SyncSession:
    """Everything one user session owns: links, live reports, cached tracks and locks."""

    def __init__(self, session_id: str, registry: LinkStore | None = None) -> None:
        self.session_id = session_id
        self.registry = registry if registry is not None else build_link_store(session_id)
        self.reports: dict[str, TransferReport] = {}
        self.track_cache = PlaylistTrackCache()
        self.locks = SourcePlaylistLocks()

    def get_report(self, source_playlist_id: str) -> TransferReport:
        report = self.reports.get(source_playlist_id)
        if report is None:
            raise ReportNotFoundError(source_playlist_id)
        return report

    def get_link(self, source_playlist_id: str) -> PlaylistLink:
        link = self.registry.get(source_playlist_id)
        if link is None:
            raise NotLinkedError(source_playlist_id)
        return link

    def unlink(self, source_playlist_id: str) -> None:
        if not self.registry.unlink(source_playlist_id):
            raise NotLinkedError(source_playlist_id)
        self.track_cache.invalidate(source_playlist_id)

    def start_transfer(
        self,
        orchestrator: TransferOrchestrator,
        source_playlist: PlatformPlaylist,
    ) -> TransferReport:
        """Register a fresh report for the source playlist.

        A playlist with a running transfer or sync job cannot start another
        one. The report replaces any finished report for the same playlist.
        """
        existing = self.reports.get(source_playlist.id)
        if self.locks.is_held(source_playlist.id) or (existing is not None and not existing.is_terminal):
            raise OperationInProgressError(source_playlist.id)
        report = orchestrator.new_report(source_playlist)
        self.reports[source_playlist.id] = report
        return report

    async def run_transfer(
        self,
        orchestrator: TransferOrchestrator,
        source_playlist: PlatformPlaylist,
        report: TransferReport,
    ) -> TransferReport:
        async with self.locks.hold(source_playlist.id):
            try:
                await orchestrator.transfer(source_playlist, report)
            except AuthExpiredError as exc:
                logger.info(
                    "Transfer of %s stopped, %s authorization expired",
                    source_playlist.id,
                    report.auth_expired_platform.value if report.auth_expired_platform else "provider",
                )
                logger.debug("Auth failure detail: %s", exc)
            except Exception as exc:
                logger.exception("Transfer of %s failed unexpectedly", source_playlist.id)
                report.fail(f"Transfer failed: {exc}")
                raise
        return report

    def link_from_report(self, source_playlist_id: str) -> PlaylistLink:
        report = self.get_report(source_playlist_id)
        if not report.link_eligible or report.destination_playlist_id is None:
            raise TransferNotEligibleError(
                f"Transfer of {source_playlist_id} is not complete or added no tracks"
            )
        link = self.registry.link(
            source_playlist_id,
            report.destination_playlist_id,
            report.destination_url,
            source_platform=report.source_platform,
            destination_platform=report.destination_platform,
        )
        recorded = record_track_mappings(self.registry, source_playlist_id, report.track_mappings)
        logger.info("Linked %s with %s track mappings", source_playlist_id, recorded)
        return self.registry.get(source_playlist_id) or link

    async def link_existing(
        self,
        source_provider: MusicProviderClient,
        destination_provider: MusicProviderClient,
        source_playlist_id: str,
        destination_playlist_id: str,
    ) -> PlaylistLink:
        """Link an existing destination playlist and pair tracks by position."""
        async with self.locks.hold(source_playlist_id):
            source_tracks = list(await source_provider.list_tracks(source_playlist_id))
            destination = await destination_provider.get_playlist(destination_playlist_id)
            destination_items = list(await destination_provider.list_playlist_items(destination_playlist_id))
            self.registry.link(
                source_playlist_id,
                destination.id,
                destination.url,
                source_platform=source_provider.platform,
                destination_platform=destination_provider.platform,
            )
            backfill_positional(self.registry, source_playlist_id, source_tracks, destination_items)
            self.track_cache.put(source_playlist_id, source_tracks)
        return self.get_link(source_playlist_id)

    async def propagate_add(
        self,
        engine: SyncEngine,
        source_playlist_id: str,
        track: PlatformTrack,
        source_provider: MusicProviderClient | None = None,
    ) -> SyncOutcome:
        """Mirror a source add on the linked destination.

        With ``source_provider`` the track is first appended to the source
        playlist; a failure there propagates and nothing is mirrored.
        """
        async with self.locks.hold(source_playlist_id):
            if source_provider is not None:
                await source_provider.add_track(source_playlist_id, track)
                logger.info("Added %s to source playlist %s", track.id, source_playlist_id)
            outcome = await engine.propagate_add(source_playlist_id, track)
        self.track_cache.append(source_playlist_id, track)
        return outcome

    async def propagate_reorder(
        self,
        engine: SyncEngine,
        source_playlist_id: str,
        source_track_id: str,
        from_index: int,
        to_index: int,
        source_provider: MusicProviderClient | None = None,
    ) -> SyncOutcome:
        """Mirror a source move on the linked destination.

        With ``source_provider`` the move is first applied to the source
        playlist through the track cache; a failure there restores the cached
        order and propagates, and the destination is left alone.
        """
        async with self.locks.hold(source_playlist_id):
            if source_provider is not None:
                await self._move_source_track(
                    source_provider,
                    source_playlist_id,
                    source_track_id,
                    from_index,
                    to_index,
                )
            return await engine.propagate_reorder(source_playlist_id, source_track_id, from_index, to_index)

    async def _move_source_track(
        self,
        source_provider: MusicProviderClient,
        source_playlist_id: str,
        source_track_id: str,
        from_index: int,
        to_index: int,
    ) -> None:
        items = list(await source_provider.list_playlist_items(source_playlist_id))
        self.track_cache.put(source_playlist_id, [item.track for item in items])
        if not 0 <= from_index < len(items) or not 0 <= to_index < len(items):
            raise SourceChangedError(f"Move {from_index} -> {to_index} is outside a playlist of {len(items)}")
        item = items[from_index]
        if item.track.id != source_track_id:
            raise SourceChangedError(f"Track {source_track_id} is no longer at position {from_index}")

        async def _remote_move():
            return await source_provider.reorder_track(
                source_playlist_id,
                item.placement_handle,
                from_index,
                to_index,
                track=item.track,
            )

        await self.track_cache.reorder(source_playlist_id, from_index, to_index, _remote_move)


class SessionStore:
    """Sessions keyed by the caller-supplied session id, created on first use."""

    def __init__(self) -> None:
        self._sessions: dict[str, SyncSession] = {}

    def get_or_create(self, session_id: str | None = None) -> SyncSession:
        key = (session_id or "").strip() or DEFAULT_SESSION_ID
        session = self._sessions.get(key)
        if session is None:
            logger.debug("Creating sync session %s", key)
            session = SyncSession(key)
            self._sessions[key] = session
        return session

    def clear(self) -> None:
        self._sessions.clear()


session_store = SessionStore()
