from tunebridge.services.playlist_sync.link_registry import LinkRegistry, LinkStore, PlaylistLink
from tunebridge.services.playlist_sync.locks import OperationInProgressError, SourcePlaylistLocks
from tunebridge.services.playlist_sync.matcher import build_search_query, match_track
from tunebridge.services.playlist_sync.orchestrator import TransferOrchestrator
from tunebridge.services.playlist_sync.report import (
    TrackMapping,
    TransferReport,
    TransferStatus,
    TransferStepName,
    classify_transfer_status,
)
from tunebridge.services.playlist_sync.session import (
    NotLinkedError,
    ReportNotFoundError,
    SessionStore,
    SourceChangedError,
    SyncSession,
    TransferNotEligibleError,
    session_store,
)
from tunebridge.services.playlist_sync.sync_engine import SyncEngine, SyncOutcome, SyncStatus

__all__ = [
    "LinkRegistry",
    "LinkStore",
    "PlaylistLink",
    "OperationInProgressError",
    "SourcePlaylistLocks",
    "build_search_query",
    "match_track",
    "TransferOrchestrator",
    "TrackMapping",
    "TransferReport",
    "TransferStatus",
    "TransferStepName",
    "classify_transfer_status",
    "NotLinkedError",
    "ReportNotFoundError",
    "SessionStore",
    "SourceChangedError",
    "SyncSession",
    "TransferNotEligibleError",
    "session_store",
    "SyncEngine",
    "SyncOutcome",
    "SyncStatus",
]
