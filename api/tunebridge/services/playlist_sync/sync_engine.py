"""Incremental propagation of source edits to a linked destination."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from tunebridge.services.music_providers.base import (
    AuthExpiredError,
    MusicProviderClient,
    Platform,
    PlatformTrack,
    ProviderError,
    ReorderFailedError,
)
from tunebridge.services.playlist_sync.link_registry import LinkStore, PlaylistLink
from tunebridge.services.playlist_sync.matcher import match_track
from tunebridge.services.playlist_sync.report import TrackMapping

logger = logging.getLogger(__name__)

ProviderResolver = Callable[[Platform | None], MusicProviderClient]


class SyncStatus(str, Enum):
    SYNCED = "synced"
    NOT_LINKED = "not_linked"
    NO_MAPPING = "no_mapping"
    NOT_FOUND = "not_found"
    IGNORED_FAILURE = "ignored_failure"


@dataclass
class SyncOutcome:
    """Result of one propagation attempt.

    Every status except ``SYNCED`` leaves the destination untouched or
    partially updated and ``last_sync_at`` unchanged. The source-side edit is
    never rolled back.
    """

    status: SyncStatus
    message: str
    track_mapping: TrackMapping | None = None
    error: ProviderError | None = None

    @property
    def synced(self) -> bool:
        return self.status == SyncStatus.SYNCED


class SyncEngine:
    def __init__(self, registry: LinkStore, resolve_provider: ProviderResolver) -> None:
        self.registry = registry
        self.resolve_provider = resolve_provider

    def _destination(self, link: PlaylistLink) -> MusicProviderClient:
        return self.resolve_provider(link.destination_platform)

    async def propagate_add(self, source_playlist_id: str, new_track: PlatformTrack) -> SyncOutcome:
        link = self.registry.get(source_playlist_id)
        if link is None:
            return SyncOutcome(SyncStatus.NOT_LINKED, "Playlist is not linked")

        destination = self._destination(link)
        try:
            matched = await match_track(new_track, destination)
        except ProviderError as exc:
            logger.warning("Sync search for %r failed: %s", new_track.title, exc)
            return SyncOutcome(SyncStatus.IGNORED_FAILURE, f"Search failed: {exc}", error=exc)
        if matched is None:
            logger.warning("Sync found no match for %r", new_track.title)
            return SyncOutcome(SyncStatus.NOT_FOUND, f"No match found for {new_track.title}")

        try:
            placement_handle = await destination.add_track(link.destination_playlist_id, matched)
        except (ProviderError, ValueError) as exc:
            logger.warning("Sync add of %r failed: %s", new_track.title, exc)
            error = exc if isinstance(exc, ProviderError) else None
            return SyncOutcome(SyncStatus.IGNORED_FAILURE, f"Add failed: {exc}", error=error)

        external_id = matched.external_uri or matched.id
        self.registry.record_track_mapping(source_playlist_id, new_track.id, placement_handle, external_id)
        self.registry.touch_sync(source_playlist_id)
        return SyncOutcome(
            SyncStatus.SYNCED,
            f"Added {new_track.title} to the linked playlist",
            track_mapping=TrackMapping(new_track.id, placement_handle, external_id),
        )

    async def propagate_reorder(
        self,
        source_playlist_id: str,
        source_track_id: str,
        from_index: int,
        to_index: int,
    ) -> SyncOutcome:
        link = self.registry.get(source_playlist_id)
        if link is None:
            return SyncOutcome(SyncStatus.NOT_LINKED, "Playlist is not linked")

        mapping = self.registry.get_track_mapping(source_playlist_id, source_track_id)
        if mapping is None:
            logger.warning("No mapping for track %s in %s", source_track_id, source_playlist_id)
            return SyncOutcome(SyncStatus.NO_MAPPING, f"No mapping recorded for track {source_track_id}")

        destination = self._destination(link)
        reinsert_track = None
        if mapping.destination_track_external_id:
            reinsert_track = PlatformTrack(
                id=mapping.destination_track_external_id,
                title=mapping.destination_track_external_id,
                external_uri=mapping.destination_track_external_id,
                platform=link.destination_platform,
            )
        try:
            placement_handle = await destination.reorder_track(
                link.destination_playlist_id,
                mapping.destination_playlist_item_id,
                from_index,
                to_index,
                track=reinsert_track,
            )
        except ReorderFailedError as exc:
            logger.warning("Sync reorder of %s failed: %s", source_track_id, exc)
            return self._reorder_failed(source_playlist_id, source_track_id, mapping, exc)
        except (ProviderError, ValueError) as exc:
            logger.warning("Sync reorder of %s failed: %s", source_track_id, exc)
            error = exc if isinstance(exc, ProviderError) else None
            return SyncOutcome(SyncStatus.IGNORED_FAILURE, f"Reorder failed: {exc}", mapping, error)

        if placement_handle and placement_handle != mapping.destination_playlist_item_id:
            self.registry.record_track_mapping(
                source_playlist_id,
                source_track_id,
                placement_handle,
                mapping.destination_track_external_id,
            )
            mapping = TrackMapping(source_track_id, placement_handle, mapping.destination_track_external_id)
        self.registry.touch_sync(source_playlist_id)
        return SyncOutcome(
            SyncStatus.SYNCED,
            f"Moved track from {from_index} to {to_index}",
            track_mapping=mapping,
        )

    def _reorder_failed(
        self,
        source_playlist_id: str,
        source_track_id: str,
        mapping: TrackMapping,
        exc: ReorderFailedError,
    ) -> SyncOutcome:
        """Keep the mapping pointed at whatever entry is left after a failed emulated move."""
        error = exc.cause if isinstance(exc.cause, AuthExpiredError) else exc
        if exc.placement_handle is None:
            self.registry.forget_track_mapping(source_playlist_id, source_track_id)
            return SyncOutcome(
                SyncStatus.IGNORED_FAILURE,
                f"Reorder failed and the track was removed from the linked playlist: {exc}",
                error=error,
            )
        restored = TrackMapping(source_track_id, exc.placement_handle, mapping.destination_track_external_id)
        self.registry.record_track_mapping(
            source_playlist_id,
            source_track_id,
            restored.destination_playlist_item_id,
            restored.destination_track_external_id,
        )
        return SyncOutcome(SyncStatus.IGNORED_FAILURE, f"Reorder failed: {exc}", restored, error)
