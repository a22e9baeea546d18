"""Links between source playlists and their transferred copies."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Protocol, Sequence

from tunebridge.services.music_providers.base import Platform, PlatformTrack, PlaylistItem
from tunebridge.services.playlist_sync.report import TrackMapping

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PlaylistLink:
    source_playlist_id: str
    destination_playlist_id: str
    destination_playlist_url: str | None
    created_at: datetime
    last_sync_at: datetime
    source_platform: Platform | None = None
    destination_platform: Platform | None = None
    track_mappings: list[TrackMapping] = field(default_factory=list)


class LinkStore(Protocol):
    """Operations shared by the in-memory and database link stores."""

    def link(
        self,
        source_playlist_id: str,
        destination_playlist_id: str,
        destination_url: str | None,
        *,
        source_platform: Platform | None = None,
        destination_platform: Platform | None = None,
    ) -> PlaylistLink: ...

    def unlink(self, source_playlist_id: str) -> bool: ...

    def is_linked(self, source_playlist_id: str) -> bool: ...

    def get(self, source_playlist_id: str) -> PlaylistLink | None: ...

    def list_links(self) -> list[PlaylistLink]: ...

    def record_track_mapping(
        self,
        source_playlist_id: str,
        source_track_id: str,
        placement_handle: str,
        destination_track_external_id: str | None,
    ) -> None: ...

    def forget_track_mapping(self, source_playlist_id: str, source_track_id: str) -> bool: ...

    def touch_sync(self, source_playlist_id: str) -> None: ...

    def get_track_mapping(self, source_playlist_id: str, source_track_id: str) -> TrackMapping | None: ...


class LinkRegistry:
    """In-memory link store keyed by source playlist id.

    One instance belongs to one session; nothing here is shared process-wide.
    """

    def __init__(self) -> None:
        self._links: dict[str, PlaylistLink] = {}

    def link(
        self,
        source_playlist_id: str,
        destination_playlist_id: str,
        destination_url: str | None,
        *,
        source_platform: Platform | None = None,
        destination_platform: Platform | None = None,
    ) -> PlaylistLink:
        now = utcnow()
        if source_playlist_id in self._links:
            logger.info("Replacing existing link for %s", source_playlist_id)
        link = PlaylistLink(
            source_playlist_id=source_playlist_id,
            destination_playlist_id=destination_playlist_id,
            destination_playlist_url=destination_url,
            created_at=now,
            last_sync_at=now,
            source_platform=source_platform,
            destination_platform=destination_platform,
        )
        self._links[source_playlist_id] = link
        return link

    def unlink(self, source_playlist_id: str) -> bool:
        return self._links.pop(source_playlist_id, None) is not None

    def is_linked(self, source_playlist_id: str) -> bool:
        return source_playlist_id in self._links

    def get(self, source_playlist_id: str) -> PlaylistLink | None:
        return self._links.get(source_playlist_id)

    def list_links(self) -> list[PlaylistLink]:
        return list(self._links.values())

    def record_track_mapping(
        self,
        source_playlist_id: str,
        source_track_id: str,
        placement_handle: str,
        destination_track_external_id: str | None,
    ) -> None:
        link = self._links.get(source_playlist_id)
        if link is None:
            return
        mapping = TrackMapping(
            source_track_id=source_track_id,
            destination_playlist_item_id=placement_handle,
            destination_track_external_id=destination_track_external_id,
        )
        for index, existing in enumerate(link.track_mappings):
            if existing.source_track_id == source_track_id:
                link.track_mappings[index] = mapping
                return
        link.track_mappings.append(mapping)

    def forget_track_mapping(self, source_playlist_id: str, source_track_id: str) -> bool:
        link = self._links.get(source_playlist_id)
        if link is None:
            return False
        kept = [mapping for mapping in link.track_mappings if mapping.source_track_id != source_track_id]
        removed = len(kept) != len(link.track_mappings)
        link.track_mappings = kept
        return removed

    def touch_sync(self, source_playlist_id: str) -> None:
        link = self._links.get(source_playlist_id)
        if link is not None:
            link.last_sync_at = utcnow()

    def get_track_mapping(self, source_playlist_id: str, source_track_id: str) -> TrackMapping | None:
        link = self._links.get(source_playlist_id)
        if link is None:
            return None
        for mapping in link.track_mappings:
            if mapping.source_track_id == source_track_id:
                return mapping
        return None


def record_track_mappings(
    registry: LinkStore,
    source_playlist_id: str,
    mappings: Iterable[TrackMapping],
) -> int:
    """Record mappings captured while a transfer added tracks."""
    if not registry.is_linked(source_playlist_id):
        return 0
    recorded = 0
    for mapping in mappings:
        registry.record_track_mapping(
            source_playlist_id,
            mapping.source_track_id,
            mapping.destination_playlist_item_id,
            mapping.destination_track_external_id,
        )
        recorded += 1
    return recorded


def backfill_positional(
    registry: LinkStore,
    source_playlist_id: str,
    source_tracks: Sequence[PlatformTrack],
    destination_items: Sequence[PlaylistItem],
) -> int:
    """Pair destination item ``i`` with source track ``i`` and record each pair.

    Only correct when the original transfer added every track and neither
    playlist has been edited since; mismatches are not detected beyond a
    length check.
    """
    if not registry.is_linked(source_playlist_id):
        return 0
    if len(source_tracks) != len(destination_items):
        logger.warning(
            "Positional backfill for %s pairs %s source tracks with %s destination items",
            source_playlist_id,
            len(source_tracks),
            len(destination_items),
        )
    recorded = 0
    for track, item in zip(source_tracks, destination_items):
        registry.record_track_mapping(
            source_playlist_id,
            track.id,
            item.placement_handle,
            item.track.external_uri or item.track.id,
        )
        recorded += 1
    return recorded

