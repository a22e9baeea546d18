"""Playlist transfer routes"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from tunebridge.api.v1.dependencies import (
    ProviderTokens,
    get_provider_tokens,
    get_sync_session,
    provider_http_error,
)
from tunebridge.schemas.transfer import FailedTrackOut, TransferCreate, TransferReportOut, TransferStepOut
from tunebridge.services.music_providers import ProviderError
from tunebridge.services.playlist_sync.locks import OperationInProgressError
from tunebridge.services.playlist_sync.orchestrator import TransferOrchestrator
from tunebridge.services.playlist_sync.report import TransferReport
from tunebridge.services.playlist_sync.session import ReportNotFoundError, SyncSession

router = APIRouter()


def to_transfer_report_out(report: TransferReport) -> TransferReportOut:
    return TransferReportOut(
        source_playlist_id=report.source_playlist_id,
        source_provider=report.source_platform.value,
        destination_provider=report.destination_platform.value,
        steps=[
            TransferStepOut(
                step=step.step.value,
                status=step.status.value,
                message=step.message,
                tracks_added=step.tracks_added,
                total_tracks=step.total_tracks,
                playlist_url=step.playlist_url,
            )
            for step in report.steps
        ],
        destination_playlist_id=report.destination_playlist_id,
        destination_url=report.destination_url,
        success_count=report.success_count,
        total_tracks=report.total_tracks,
        final_status=report.final_status.value if report.final_status else None,
        is_terminal=report.is_terminal,
        link_eligible=report.link_eligible,
        failed_tracks=[
            FailedTrackOut(
                source_track_id=failed.source_track_id,
                title=failed.title,
                artist_names=list(failed.artist_names),
                reason=failed.reason,
            )
            for failed in report.failed_tracks
        ],
        auth_expired_provider=report.auth_expired_platform.value if report.auth_expired_platform else None,
        started_at=report.started_at,
        finished_at=report.finished_at,
    )


@router.post("", response_model=TransferReportOut, status_code=status.HTTP_202_ACCEPTED)
async def start_transfer(
    payload: TransferCreate,
    background_tasks: BackgroundTasks,
    session: SyncSession = Depends(get_sync_session),
    tokens: ProviderTokens = Depends(get_provider_tokens),
):
    """Start copying a playlist to another platform; poll the report for progress."""
    if payload.source_provider == payload.destination_provider:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Source and destination providers must differ",
        )
    source = tokens.client(payload.source_provider)
    destination = tokens.client(payload.destination_provider)
    try:
        source_playlist = await source.get_playlist(payload.source_playlist_id)
    except ProviderError as exc:
        raise provider_http_error(exc, source.platform) from exc

    orchestrator = TransferOrchestrator(source, destination)
    try:
        report = session.start_transfer(orchestrator, source_playlist)
    except OperationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    background_tasks.add_task(session.run_transfer, orchestrator, source_playlist, report)
    return to_transfer_report_out(report)


@router.get("/{source_playlist_id}", response_model=TransferReportOut)
def get_transfer(
    source_playlist_id: str,
    session: SyncSession = Depends(get_sync_session),
):
    try:
        report = session.get_report(source_playlist_id)
    except ReportNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return to_transfer_report_out(report)
