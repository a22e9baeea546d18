"""Playlist link routes"""
from fastapi import APIRouter, Depends, HTTPException, status

from tunebridge.api.v1.dependencies import (
    ProviderTokens,
    get_provider_tokens,
    get_sync_session,
    provider_http_error,
)
from tunebridge.schemas.link import (
    LinkExistingCreate,
    LinkFromTransferCreate,
    PlaylistLinkOut,
    TrackMappingOut,
)
from tunebridge.services.music_providers import ProviderError
from tunebridge.services.playlist_sync.link_registry import PlaylistLink
from tunebridge.services.playlist_sync.locks import OperationInProgressError
from tunebridge.services.playlist_sync.session import (
    NotLinkedError,
    ReportNotFoundError,
    SyncSession,
    TransferNotEligibleError,
)

router = APIRouter()


def to_playlist_link_out(link: PlaylistLink) -> PlaylistLinkOut:
    return PlaylistLinkOut(
        source_playlist_id=link.source_playlist_id,
        source_provider=link.source_platform.value if link.source_platform else None,
        destination_playlist_id=link.destination_playlist_id,
        destination_provider=link.destination_platform.value if link.destination_platform else None,
        destination_playlist_url=link.destination_playlist_url,
        created_at=link.created_at,
        last_sync_at=link.last_sync_at,
        track_mappings=[
            TrackMappingOut(
                source_track_id=mapping.source_track_id,
                destination_playlist_item_id=mapping.destination_playlist_item_id,
                destination_track_external_id=mapping.destination_track_external_id,
            )
            for mapping in link.track_mappings
        ],
    )


@router.post("", response_model=PlaylistLinkOut, status_code=status.HTTP_201_CREATED)
def link_transferred_playlist(
    payload: LinkFromTransferCreate,
    session: SyncSession = Depends(get_sync_session),
):
    """Link a source playlist to the copy its last transfer created."""
    try:
        link = session.link_from_report(payload.source_playlist_id)
    except ReportNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TransferNotEligibleError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return to_playlist_link_out(link)


@router.post("/existing", response_model=PlaylistLinkOut, status_code=status.HTTP_201_CREATED)
async def link_existing_playlist(
    payload: LinkExistingCreate,
    session: SyncSession = Depends(get_sync_session),
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """Link to an already transferred playlist, pairing tracks by position."""
    if payload.source_provider == payload.destination_provider:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Source and destination providers must differ",
        )
    source = tokens.client(payload.source_provider)
    destination = tokens.client(payload.destination_provider)
    try:
        link = await session.link_existing(
            source,
            destination,
            payload.source_playlist_id,
            payload.destination_playlist_id,
        )
    except OperationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ProviderError as exc:
        raise provider_http_error(exc) from exc
    return to_playlist_link_out(link)


@router.get("", response_model=list[PlaylistLinkOut])
def list_links(session: SyncSession = Depends(get_sync_session)):
    return [to_playlist_link_out(link) for link in session.registry.list_links()]


@router.get("/{source_playlist_id}", response_model=PlaylistLinkOut)
def get_link(source_playlist_id: str, session: SyncSession = Depends(get_sync_session)):
    try:
        link = session.get_link(source_playlist_id)
    except NotLinkedError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return to_playlist_link_out(link)


@router.delete("/{source_playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_link(source_playlist_id: str, session: SyncSession = Depends(get_sync_session)):
    """Stop syncing a playlist. Both playlists are left as they are."""
    try:
        session.unlink(source_playlist_id)
    except NotLinkedError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return None
