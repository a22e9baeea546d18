"""One-shot playlist transfer between platforms."""
from __future__ import annotations

import logging

from tunebridge.config.settings import settings
from tunebridge.services.music_providers.base import (
    AuthExpiredError,
    MusicProviderClient,
    PlatformPlaylist,
    PlatformTrack,
    ProviderError,
)
from tunebridge.services.playlist_sync.matcher import match_track
from tunebridge.services.playlist_sync.report import (
    FailedTrack,
    ReportListener,
    TrackMapping,
    TransferReport,
    TransferStatus,
    TransferStepName,
    classify_transfer_status,
)

logger = logging.getLogger(__name__)

CREATING_MESSAGE = "Creating a new playlist..."
ADDING_MESSAGE = "Adding the tracks to the created playlist..."
NO_TRACKS_MESSAGE = "No tracks found in playlist"
NO_MATCH_REASON = "no match found"
LIMIT_REASON = "transfer limit reached"


def _failed(track: PlatformTrack, reason: str) -> FailedTrack:
    return FailedTrack(
        source_track_id=track.id,
        title=track.title,
        artist_names=track.artist_names,
        reason=reason,
    )


class TransferOrchestrator:
    """Recreates a source playlist on a destination platform, track by track.

    Tracks are processed strictly in order, one network call at a time, so the
    destination keeps the source ordering and the report can show progress
    after every track. Only playlist creation and source listing end the
    transfer early; per-track misses and add failures are tallied and skipped.
    """

    def __init__(
        self,
        source_provider: MusicProviderClient,
        destination_provider: MusicProviderClient,
        max_tracks: int | None = None,
    ) -> None:
        self.source_provider = source_provider
        self.destination_provider = destination_provider
        self.max_tracks = settings.MAX_TRANSFER_TRACKS if max_tracks is None else max_tracks

    def new_report(self, source_playlist: PlatformPlaylist) -> TransferReport:
        return TransferReport(
            source_playlist_id=source_playlist.id,
            source_platform=self.source_provider.platform,
            destination_platform=self.destination_provider.platform,
        )

    async def transfer(
        self,
        source_playlist: PlatformPlaylist,
        report: TransferReport | None = None,
        on_update: ReportListener | None = None,
    ) -> TransferReport:
        report = report or self.new_report(source_playlist)
        if on_update is not None:
            report.subscribe(on_update)

        report.set_step(TransferStepName.CREATING, TransferStatus.LOADING, CREATING_MESSAGE)
        try:
            created = await self.destination_provider.create_playlist(
                source_playlist.title,
                source_playlist.description,
            )
        except ProviderError as exc:
            logger.warning("Creating destination for %s failed: %s", source_playlist.id, exc)
            self._fail_step(
                report,
                TransferStepName.CREATING,
                f"Could not create playlist: {exc}",
                exc,
                self.destination_provider,
            )
            if isinstance(exc, AuthExpiredError):
                raise
            return report
        report.destination_playlist_id = created.id
        report.destination_url = created.url
        report.set_step(TransferStepName.CREATING, TransferStatus.SUCCESS, CREATING_MESSAGE)

        report.set_step(TransferStepName.MATCHING_AND_ADDING, TransferStatus.LOADING, ADDING_MESSAGE)
        try:
            tracks = list(await self.source_provider.list_tracks(source_playlist.id))
        except ProviderError as exc:
            logger.warning("Listing tracks of %s failed: %s", source_playlist.id, exc)
            self._fail_step(
                report,
                TransferStepName.MATCHING_AND_ADDING,
                f"Could not load source tracks: {exc}",
                exc,
                self.source_provider,
            )
            if isinstance(exc, AuthExpiredError):
                raise
            return report
        if not tracks:
            report.set_step(TransferStepName.MATCHING_AND_ADDING, TransferStatus.ERROR, NO_TRACKS_MESSAGE)
            return report

        report.total_tracks = len(tracks)
        processable = tracks[: self.max_tracks]
        for track in tracks[self.max_tracks :]:
            report.failed_tracks.append(_failed(track, LIMIT_REASON))

        for index, track in enumerate(processable, start=1):
            try:
                await self._transfer_track(report, created.id, track)
            except AuthExpiredError as exc:
                logger.info("Transfer of %s stopped: %s", source_playlist.id, exc)
                self._fail_step(
                    report,
                    TransferStepName.MATCHING_AND_ADDING,
                    f"Authorization expired after {index - 1}/{report.total_tracks} tracks",
                    exc,
                    self.destination_provider,
                )
                raise
            report.set_step(
                TransferStepName.MATCHING_AND_ADDING,
                TransferStatus.LOADING,
                f"Matching tracks: {index}/{report.total_tracks} ({report.success_count} added)",
                tracks_added=report.success_count,
                total_tracks=report.total_tracks,
            )

        report.set_step(
            TransferStepName.MATCHING_AND_ADDING,
            TransferStatus.SUCCESS,
            ADDING_MESSAGE,
            tracks_added=report.success_count,
            total_tracks=report.total_tracks,
        )
        final_status = classify_transfer_status(report.success_count, report.total_tracks)
        report.set_step(
            TransferStepName.COMPLETED,
            final_status,
            f"{report.success_count}/{report.total_tracks} of tracks added",
            tracks_added=report.success_count,
            total_tracks=report.total_tracks,
            playlist_url=report.destination_url,
        )
        logger.info(
            "Transfer of %s finished with %s (%s/%s)",
            source_playlist.id,
            final_status.value,
            report.success_count,
            report.total_tracks,
        )
        return report

    async def _transfer_track(self, report: TransferReport, destination_id: str, track: PlatformTrack) -> None:
        try:
            matched = await match_track(track, self.destination_provider)
        except AuthExpiredError:
            raise
        except (ProviderError, ValueError) as exc:
            logger.warning("Search failed for track %r: %s", track.title, exc)
            report.failed_tracks.append(_failed(track, f"search failed: {exc}"))
            return
        if matched is None:
            logger.warning("No match for track %r", track.title)
            report.failed_tracks.append(_failed(track, NO_MATCH_REASON))
            return
        try:
            placement_handle = await self.destination_provider.add_track(destination_id, matched)
        except AuthExpiredError:
            raise
        except (ProviderError, ValueError) as exc:
            logger.warning("Failed to add track %r: %s", track.title, exc)
            report.failed_tracks.append(_failed(track, f"add failed: {exc}"))
            return
        report.success_count += 1
        report.track_mappings.append(
            TrackMapping(
                source_track_id=track.id,
                destination_playlist_item_id=placement_handle,
                destination_track_external_id=matched.external_uri or matched.id,
            )
        )

    def _fail_step(
        self,
        report: TransferReport,
        step: TransferStepName,
        message: str,
        exc: ProviderError,
        provider: MusicProviderClient,
    ) -> None:
        if isinstance(exc, AuthExpiredError):
            report.auth_expired_platform = provider.platform
        report.set_step(
            step,
            TransferStatus.ERROR,
            message,
            tracks_added=report.success_count if report.total_tracks else None,
            total_tracks=report.total_tracks or None,
        )
