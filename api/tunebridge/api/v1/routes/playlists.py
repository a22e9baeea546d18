"""Provider playlist routes"""
from fastapi import APIRouter, Depends, Query, Response

from tunebridge.api.v1.dependencies import ProviderTokens, get_provider_tokens, provider_http_error
from tunebridge.schemas.export import PlaylistExport
from tunebridge.schemas.playlist import MusicProvider, PlatformPlaylistOut, PlatformTrackOut
from tunebridge.services.music_providers import PlatformPlaylist, PlatformTrack, ProviderError
from tunebridge.services.playlist_sync.export import build_playlist_export, export_filename

router = APIRouter()


def _to_platform_playlist_out(playlist: PlatformPlaylist, provider: str) -> PlatformPlaylistOut:
    return PlatformPlaylistOut(
        provider=playlist.platform.value if playlist.platform else provider,
        id=playlist.id,
        title=playlist.title,
        description=playlist.description,
        track_count=playlist.track_count,
        owner_name=playlist.owner_name,
        is_public=playlist.is_public,
        is_collaborative=playlist.is_collaborative,
        url=playlist.url,
    )


def to_platform_track_out(track: PlatformTrack) -> PlatformTrackOut:
    return PlatformTrackOut(
        id=track.id,
        title=track.title,
        artist_names=list(track.artist_names),
        album_name=track.album_name,
        duration_ms=track.duration_ms,
        external_uri=track.external_uri,
        url=track.url,
        isrc=track.isrc,
        release_date=track.release_date,
        track_number=track.track_number,
        disc_number=track.disc_number,
    )


@router.get("/providers/{provider}", response_model=list[PlatformPlaylistOut])
async def list_provider_playlists(
    provider: MusicProvider,
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """List the caller's playlists on a platform."""
    client = tokens.client(provider)
    try:
        playlists = await client.list_playlists()
    except ProviderError as exc:
        raise provider_http_error(exc, client.platform) from exc
    return [_to_platform_playlist_out(playlist, provider) for playlist in playlists]


@router.get("/providers/{provider}/search", response_model=list[PlatformTrackOut])
async def search_provider_tracks(
    provider: MusicProvider,
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """Search tracks on a platform by free text."""
    client = tokens.client(provider)
    try:
        tracks = await client.search_tracks(q, limit=limit)
    except ProviderError as exc:
        raise provider_http_error(exc, client.platform) from exc
    return [to_platform_track_out(track) for track in tracks]


@router.get("/providers/{provider}/{playlist_id}/tracks", response_model=list[PlatformTrackOut])
async def list_provider_playlist_tracks(
    provider: MusicProvider,
    playlist_id: str,
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    client = tokens.client(provider)
    try:
        tracks = await client.list_tracks(playlist_id)
    except ProviderError as exc:
        raise provider_http_error(exc, client.platform) from exc
    return [to_platform_track_out(track) for track in tracks]


@router.get("/providers/{provider}/{playlist_id}/export", response_model=PlaylistExport)
async def export_provider_playlist(
    provider: MusicProvider,
    playlist_id: str,
    response: Response,
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """Export a playlist and its tracks as a downloadable JSON document."""
    client = tokens.client(provider)
    try:
        playlist = await client.get_playlist(playlist_id)
        tracks = await client.list_tracks(playlist_id)
    except ProviderError as exc:
        raise provider_http_error(exc, client.platform) from exc
    if playlist.platform is None:
        playlist.platform = client.platform
    document = build_playlist_export(playlist, tracks)
    response.headers["Content-Disposition"] = f'attachment; filename="{export_filename(playlist)}"'
    return document
