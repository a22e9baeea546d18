"""Track mapping CRUD helpers."""
from sqlalchemy.orm import Session

from tunebridge.crud.base import BaseCRUD
from tunebridge.models.playlist_link import TrackMappingRecord


class TrackMappingCRUD(BaseCRUD[TrackMappingRecord]):
    def get_for_source_track(
        self,
        db: Session,
        link_id: int,
        source_track_id: str,
    ) -> TrackMappingRecord | None:
        return (
            db.query(TrackMappingRecord)
            .filter(
                TrackMappingRecord.link_id == link_id,
                TrackMappingRecord.source_track_id == source_track_id,
            )
            .first()
        )

    def upsert(
        self,
        db: Session,
        link_id: int,
        source_track_id: str,
        destination_playlist_item_id: str,
        destination_track_external_id: str | None,
    ) -> TrackMappingRecord:
        """Create the mapping or overwrite the one recorded for this source track."""
        values = {
            "destination_playlist_item_id": destination_playlist_item_id,
            "destination_track_external_id": destination_track_external_id,
        }
        existing = self.get_for_source_track(db, link_id, source_track_id)
        if existing is not None:
            return self.update(db, existing, values)
        return self.create(db, {"link_id": link_id, "source_track_id": source_track_id, **values})


track_mapping_crud = TrackMappingCRUD(TrackMappingRecord)
