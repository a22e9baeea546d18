from tunebridge.models.base import BaseModel
from tunebridge.models.playlist_link import PlaylistLinkRecord, TrackMappingRecord

__all__ = [
    "BaseModel",
    "PlaylistLinkRecord",
    "TrackMappingRecord",
]
