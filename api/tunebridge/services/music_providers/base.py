"""Base classes for music provider integrations."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Sequence

import httpx

logger = logging.getLogger(__name__)


class Platform(str, Enum):
    SPOTIFY = "spotify"
    GOOGLE = "google"
    APPLE = "apple"


class ProviderError(Exception):
    """Base class for failures reported by a provider adapter."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        platform: Platform | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.platform = platform


class AuthExpiredError(ProviderError):
    """Raised when the provider token is missing, invalid or expired."""


class RateLimitedError(ProviderError):
    """Raised when the provider throttles the caller. Retryable after backoff."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
        platform: Platform | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, platform=platform)
        self.retry_after = retry_after


class TransientNetworkError(ProviderError):
    """Raised for network failures and non-auth provider errors. Retryable."""


class ReorderFailedError(TransientNetworkError):
    """Raised when an emulated move removed the entry but could not reinsert it at the target.

    ``placement_handle`` is the handle of the entry put back at its original
    position, or ``None`` when the entry could not be restored either.
    """

    def __init__(
        self,
        message: str,
        placement_handle: str | None = None,
        cause: ProviderError | None = None,
        platform: Platform | None = None,
    ) -> None:
        super().__init__(message, status_code=cause.status_code if cause else None, platform=platform)
        self.placement_handle = placement_handle
        self.cause = cause


class UnsupportedPlatformError(ValueError):
    """Raised when no adapter exists for a platform."""


@dataclass(frozen=True)
class PlatformTrack:
    id: str
    title: str
    artist_names: tuple[str, ...] = ()
    album_name: str | None = None
    duration_ms: int | None = None
    external_uri: str | None = None
    platform: Platform | None = None
    url: str | None = None
    isrc: str | None = None
    release_date: str | None = None
    track_number: int | None = None
    disc_number: int | None = None


@dataclass
class PlatformPlaylist:
    id: str
    title: str
    platform: Platform | None = None
    description: str | None = None
    track_count: int | None = None
    owner_name: str | None = None
    is_public: bool | None = None
    is_collaborative: bool | None = None
    url: str | None = None


@dataclass(frozen=True)
class PlaylistItem:
    """One entry of a playlist, addressable through its placement handle."""

    placement_handle: str
    track: PlatformTrack
    position: int


@dataclass
class _ErrorContext:
    status_code: int
    message: str | None = None
    reasons: list[str] = field(default_factory=list)
    retry_after: float | None = None


def _parse_retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if not raw:
        return None
    try:
        seconds = float(raw.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class MusicProviderClient:
    """Abstract provider client interface.

    Adapters translate platform HTTP failures into ``AuthExpiredError``,
    ``RateLimitedError`` or ``TransientNetworkError``. Listing operations
    paginate internally and either return the complete set or raise; partial
    pages are never returned.
    """

    platform: Platform
    label: str = "Provider"
    supports_atomic_reorder: bool = False
    rate_limit_reasons: frozenset[str] = frozenset()

    def __init__(self, access_token: str, timeout: float = 15.0):
        self.access_token = access_token
        self.timeout = timeout
        self.base_url = ""

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    @asynccontextmanager
    async def _api_client(self) -> AsyncIterator[httpx.AsyncClient]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                yield client
        except httpx.HTTPError as exc:
            raise TransientNetworkError(
                f"{self.label} request failed: {exc}",
                platform=self.platform,
            ) from exc

    @staticmethod
    def _extract_error_context(payload: Any, status_code: int) -> _ErrorContext:
        context = _ErrorContext(status_code=status_code)
        if not isinstance(payload, dict):
            return context
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
            if isinstance(message, str) and message.strip():
                context.message = message.strip()
            # Google APIs list machine-readable reasons under error.errors[].reason
            errors = error_payload.get("errors")
            if isinstance(errors, list):
                for item in errors:
                    if isinstance(item, dict) and isinstance(item.get("reason"), str):
                        context.reasons.append(item["reason"])
        elif isinstance(error_payload, str) and error_payload.strip():
            context.message = error_payload.strip()
        if context.message is None:
            message = payload.get("message")
            if isinstance(message, str) and message.strip():
                context.message = message.strip()
        return context

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            try:
                payload = exc.response.json()
            except ValueError:
                payload = None
            context = self._extract_error_context(payload, status_code)
            context.retry_after = _parse_retry_after(exc.response)
            detail_suffix = f": {context.message}" if context.message else ""

            if status_code == 429 or (
                status_code == 403 and self.rate_limit_reasons.intersection(context.reasons)
            ):
                raise RateLimitedError(
                    f"{self.label} rate limit reached ({status_code}){detail_suffix}",
                    status_code=status_code,
                    retry_after=context.retry_after,
                    platform=self.platform,
                ) from exc
            if status_code in {401, 403}:
                raise AuthExpiredError(
                    f"{self.label} authorization expired or invalid",
                    status_code=status_code,
                    platform=self.platform,
                ) from exc
            raise TransientNetworkError(
                f"{self.label} API error ({status_code}){detail_suffix}",
                status_code=status_code,
                platform=self.platform,
            ) from exc

    def _page_payload(self, response: httpx.Response) -> dict[str, Any]:
        payload = self._json_payload(response)
        if not isinstance(payload, dict):
            raise TransientNetworkError(
                f"{self.label} returned an unreadable page",
                status_code=response.status_code,
                platform=self.platform,
            )
        return payload

    @staticmethod
    def _json_payload(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def list_playlists(self) -> Sequence[PlatformPlaylist]:
        raise NotImplementedError

    async def get_playlist(self, playlist_id: str) -> PlatformPlaylist:
        raise NotImplementedError

    async def list_playlist_items(self, playlist_id: str) -> Sequence[PlaylistItem]:
        raise NotImplementedError

    async def list_tracks(self, playlist_id: str) -> Sequence[PlatformTrack]:
        items = await self.list_playlist_items(playlist_id)
        return [item.track for item in items]

    async def search_tracks(self, query: str, limit: int = 10) -> Sequence[PlatformTrack]:
        """Search tracks by free-text query, in the provider's relevance order."""
        raise NotImplementedError

    async def create_playlist(
        self,
        title: str,
        description: str | None = None,
        is_public: bool | None = None,
    ) -> PlatformPlaylist:
        raise NotImplementedError

    async def add_track(self, playlist_id: str, track: PlatformTrack) -> str:
        """Append a track and return its placement handle."""
        raise NotImplementedError

    async def add_track_at_position(self, playlist_id: str, track: PlatformTrack, position: int) -> str:
        """Insert a track at ``position`` and return its placement handle."""
        raise NotImplementedError

    async def remove_track(self, playlist_id: str, placement_handle: str) -> None:
        raise NotImplementedError

    async def reorder_track(
        self,
        playlist_id: str,
        placement_handle: str,
        from_index: int,
        to_index: int,
        track: PlatformTrack | None = None,
    ) -> str:
        """Move one entry from ``from_index`` so it ends up at ``to_index``.

        Returns the placement handle of the moved entry. Providers without a
        native move fall back to delete + reinsert, which yields a new handle
        and needs ``track`` to know what to reinsert. When the reinsert fails
        the entry is put back at ``from_index`` and ``ReorderFailedError``
        carries the handle it got there.
        """
        if track is None:
            raise ValueError(f"{self.label} reorder needs the track to reinsert")
        logger.debug(
            "Emulating %s reorder of %s from %s to %s",
            self.label,
            placement_handle,
            from_index,
            to_index,
        )
        await self.remove_track(playlist_id, placement_handle)
        try:
            return await self.add_track_at_position(playlist_id, track, to_index)
        except ProviderError as exc:
            logger.warning(
                "Reinserting %s at %s failed, restoring it at %s: %s",
                placement_handle,
                to_index,
                from_index,
                exc,
            )
            try:
                restored_handle = await self.add_track_at_position(playlist_id, track, from_index)
            except ProviderError as restore_exc:
                logger.error("Restoring %s in %s failed: %s", placement_handle, playlist_id, restore_exc)
                raise ReorderFailedError(
                    f"{self.label} reorder removed the track and could not restore it: {exc}",
                    cause=exc,
                    platform=self.platform,
                ) from exc
            raise ReorderFailedError(
                f"{self.label} reorder failed, track restored at position {from_index}: {exc}",
                placement_handle=restored_handle,
                cause=exc,
                platform=self.platform,
            ) from exc
