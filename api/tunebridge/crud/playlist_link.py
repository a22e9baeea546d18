"""Playlist link CRUD helpers."""
from sqlalchemy.orm import Session

from tunebridge.crud.base import BaseCRUD
from tunebridge.models.playlist_link import PlaylistLinkRecord


class PlaylistLinkCRUD(BaseCRUD[PlaylistLinkRecord]):
    def get_for_source(
        self,
        db: Session,
        session_id: str,
        source_playlist_id: str,
    ) -> PlaylistLinkRecord | None:
        return (
            db.query(PlaylistLinkRecord)
            .filter(
                PlaylistLinkRecord.session_id == session_id,
                PlaylistLinkRecord.source_playlist_id == source_playlist_id,
            )
            .first()
        )

    def list_for_session(self, db: Session, session_id: str) -> list[PlaylistLinkRecord]:
        return (
            db.query(PlaylistLinkRecord)
            .filter(PlaylistLinkRecord.session_id == session_id)
            .order_by(PlaylistLinkRecord.linked_at.asc(), PlaylistLinkRecord.id.asc())
            .all()
        )

    def replace_for_source(self, db: Session, data: dict) -> PlaylistLinkRecord:
        """Drop any link (and its mappings) for the source, then create a new one."""
        existing = self.get_for_source(db, data["session_id"], data["source_playlist_id"])
        if existing is not None:
            self.delete_obj(db, existing)
        return self.create(db, data)


playlist_link_crud = PlaylistLinkCRUD(PlaylistLinkRecord)
