"""Database-backed link store."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from tunebridge.crud.playlist_link import playlist_link_crud
from tunebridge.crud.track_mapping import track_mapping_crud
from tunebridge.models.playlist_link import PlaylistLinkRecord, TrackMappingRecord
from tunebridge.services.music_providers.base import Platform
from tunebridge.services.playlist_sync.link_registry import PlaylistLink, utcnow
from tunebridge.services.playlist_sync.report import TrackMapping
from tunebridge.utils.timestamps import coerce_utc

logger = logging.getLogger(__name__)


def _platform(value: str | None) -> Platform | None:
    if not value:
        return None
    try:
        return Platform(value)
    except ValueError:
        logger.warning("Stored link references unknown platform %r", value)
        return None


def _to_mapping(record: TrackMappingRecord) -> TrackMapping:
    return TrackMapping(
        source_track_id=record.source_track_id,
        destination_playlist_item_id=record.destination_playlist_item_id,
        destination_track_external_id=record.destination_track_external_id,
    )


def _to_link(record: PlaylistLinkRecord) -> PlaylistLink:
    return PlaylistLink(
        source_playlist_id=record.source_playlist_id,
        destination_playlist_id=record.destination_playlist_id,
        destination_playlist_url=record.destination_playlist_url,
        created_at=coerce_utc(record.linked_at),
        last_sync_at=coerce_utc(record.last_sync_at),
        source_platform=_platform(record.source_platform),
        destination_platform=_platform(record.destination_platform),
        track_mappings=[_to_mapping(mapping) for mapping in record.track_mappings],
    )


class SqlLinkRegistry:
    """Link store persisted through SQLAlchemy, scoped to one session id."""

    def __init__(self, session_factory: Callable[[], Session], session_id: str) -> None:
        self._session_factory = session_factory
        self.session_id = session_id

    @contextmanager
    def _db(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def _get_record(self, db: Session, source_playlist_id: str) -> PlaylistLinkRecord | None:
        return playlist_link_crud.get_for_source(db, self.session_id, source_playlist_id)

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
        with self._db() as db:
            record = playlist_link_crud.replace_for_source(
                db,
                {
                    "session_id": self.session_id,
                    "source_platform": source_platform.value if source_platform else None,
                    "source_playlist_id": source_playlist_id,
                    "destination_platform": destination_platform.value if destination_platform else None,
                    "destination_playlist_id": destination_playlist_id,
                    "destination_playlist_url": destination_url,
                    "linked_at": now,
                    "last_sync_at": now,
                },
            )
            return _to_link(record)

    def unlink(self, source_playlist_id: str) -> bool:
        with self._db() as db:
            record = self._get_record(db, source_playlist_id)
            if record is None:
                return False
            playlist_link_crud.delete_obj(db, record)
            return True

    def is_linked(self, source_playlist_id: str) -> bool:
        with self._db() as db:
            return self._get_record(db, source_playlist_id) is not None

    def get(self, source_playlist_id: str) -> PlaylistLink | None:
        with self._db() as db:
            record = self._get_record(db, source_playlist_id)
            return _to_link(record) if record is not None else None

    def list_links(self) -> list[PlaylistLink]:
        with self._db() as db:
            return [_to_link(record) for record in playlist_link_crud.list_for_session(db, self.session_id)]

    def record_track_mapping(
        self,
        source_playlist_id: str,
        source_track_id: str,
        placement_handle: str,
        destination_track_external_id: str | None,
    ) -> None:
        with self._db() as db:
            record = self._get_record(db, source_playlist_id)
            if record is None:
                return
            track_mapping_crud.upsert(
                db,
                record.id,
                source_track_id,
                placement_handle,
                destination_track_external_id,
            )

    def forget_track_mapping(self, source_playlist_id: str, source_track_id: str) -> bool:
        with self._db() as db:
            record = self._get_record(db, source_playlist_id)
            if record is None:
                return False
            mapping = track_mapping_crud.get_for_source_track(db, record.id, source_track_id)
            if mapping is None:
                return False
            track_mapping_crud.delete_obj(db, mapping)
            return True

    def touch_sync(self, source_playlist_id: str) -> None:
        with self._db() as db:
            record = self._get_record(db, source_playlist_id)
            if record is not None:
                playlist_link_crud.update(db, record, {"last_sync_at": utcnow()})

    def get_track_mapping(self, source_playlist_id: str, source_track_id: str) -> TrackMapping | None:
        with self._db() as db:
            record = self._get_record(db, source_playlist_id)
            if record is None:
                return None
            mapping = track_mapping_crud.get_for_source_track(db, record.id, source_track_id)
            return _to_mapping(mapping) if mapping is not None else None
