"""Incremental sync routes"""
from fastapi import APIRouter, Depends, HTTPException, status

from tunebridge.api.v1.dependencies import (
    ProviderTokens,
    get_provider_tokens,
    get_sync_session,
    provider_http_error,
)
from tunebridge.schemas.link import SyncAddRequest, SyncOutcomeOut, SyncReorderRequest, TrackMappingOut
from tunebridge.services.music_providers import AuthExpiredError, Platform, PlatformTrack, ProviderError
from tunebridge.services.playlist_sync.locks import OperationInProgressError
from tunebridge.services.playlist_sync.session import SourceChangedError, SyncSession
from tunebridge.services.playlist_sync.sync_engine import SyncEngine, SyncOutcome

router = APIRouter()


def _to_sync_outcome_out(outcome: SyncOutcome) -> SyncOutcomeOut:
    mapping = outcome.track_mapping
    return SyncOutcomeOut(
        status=outcome.status.value,
        message=outcome.message,
        track_mapping=(
            TrackMappingOut(
                source_track_id=mapping.source_track_id,
                destination_playlist_item_id=mapping.destination_playlist_item_id,
                destination_track_external_id=mapping.destination_track_external_id,
            )
            if mapping
            else None
        ),
        error=str(outcome.error) if outcome.error else None,
    )


def _sync_engine(session: SyncSession, tokens: ProviderTokens) -> SyncEngine:
    def _resolve(platform: Platform | None):
        if platform is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Link does not record its destination provider",
            )
        return tokens.client(platform)

    return SyncEngine(session.registry, _resolve)


def _source_client(session: SyncSession, tokens: ProviderTokens, source_playlist_id: str):
    link = session.registry.get(source_playlist_id)
    if link is None or link.source_platform is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Playlist {source_playlist_id} is not linked",
        )
    return tokens.client(link.source_platform)


def _checked_outcome(outcome: SyncOutcome) -> SyncOutcomeOut:
    """Surface expired authorization as a 401 so the caller can re-authenticate."""
    if isinstance(outcome.error, AuthExpiredError):
        raise provider_http_error(outcome.error)
    return _to_sync_outcome_out(outcome)


@router.post("/{source_playlist_id}/tracks", response_model=SyncOutcomeOut)
async def sync_added_track(
    source_playlist_id: str,
    payload: SyncAddRequest,
    session: SyncSession = Depends(get_sync_session),
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """Mirror a track added to the source playlist onto its linked copy.

    With ``apply_to_source`` the track is added to the source playlist first.
    """
    link = session.registry.get(source_playlist_id)
    track = PlatformTrack(
        id=payload.track.id,
        title=payload.track.title,
        artist_names=tuple(payload.track.artist_names),
        album_name=payload.track.album_name,
        duration_ms=payload.track.duration_ms,
        external_uri=payload.track.external_uri,
        platform=link.source_platform if link else None,
        url=payload.track.url,
    )
    source_provider = _source_client(session, tokens, source_playlist_id) if payload.apply_to_source else None
    try:
        outcome = await session.propagate_add(
            _sync_engine(session, tokens),
            source_playlist_id,
            track,
            source_provider=source_provider,
        )
    except OperationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ProviderError as exc:
        raise provider_http_error(exc) from exc
    return _checked_outcome(outcome)


@router.post("/{source_playlist_id}/reorder", response_model=SyncOutcomeOut)
async def sync_reordered_track(
    source_playlist_id: str,
    payload: SyncReorderRequest,
    session: SyncSession = Depends(get_sync_session),
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """Mirror a source move onto the linked copy.

    With ``apply_to_source`` the move is made on the source playlist first.
    """
    source_provider = _source_client(session, tokens, source_playlist_id) if payload.apply_to_source else None
    try:
        outcome = await session.propagate_reorder(
            _sync_engine(session, tokens),
            source_playlist_id,
            payload.source_track_id,
            payload.from_index,
            payload.to_index,
            source_provider=source_provider,
        )
    except OperationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SourceChangedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ProviderError as exc:
        raise provider_http_error(exc) from exc
    return _checked_outcome(outcome)
