"""Persisted playlist links and their track mappings."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tunebridge.models.base import BaseModel


class PlaylistLinkRecord(BaseModel):
    """Association between a source playlist and its transferred copy."""

    __tablename__ = "playlist_links"
    __table_args__ = (
        UniqueConstraint("session_id", "source_playlist_id", name="uq_playlist_links_session_source"),
    )

    session_id: Mapped[str] = mapped_column(nullable=False, index=True)
    source_platform: Mapped[str | None]
    source_playlist_id: Mapped[str] = mapped_column(nullable=False, index=True)
    destination_platform: Mapped[str | None]
    destination_playlist_id: Mapped[str] = mapped_column(nullable=False)
    destination_playlist_url: Mapped[str | None]
    linked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_sync_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    track_mappings: Mapped[list["TrackMappingRecord"]] = relationship(
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="TrackMappingRecord.id",
    )


class TrackMappingRecord(BaseModel):
    """Source track to destination placement handle for one link."""

    __tablename__ = "track_mappings"
    __table_args__ = (
        UniqueConstraint("link_id", "source_track_id", name="uq_track_mappings_link_source_track"),
    )

    link_id: Mapped[int] = mapped_column(
        ForeignKey("playlist_links.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_track_id: Mapped[str] = mapped_column(nullable=False)
    destination_playlist_item_id: Mapped[str] = mapped_column(nullable=False)
    destination_track_external_id: Mapped[str | None]

    link: Mapped["PlaylistLinkRecord"] = relationship(back_populates="track_mappings")
