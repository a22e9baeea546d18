"""Spotify provider integration."""

from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import urlparse

from tunebridge.config.settings import settings
from tunebridge.services.music_providers.base import (
    MusicProviderClient,
    Platform,
    PlatformPlaylist,
    PlatformTrack,
    PlaylistItem,
    TransientNetworkError,
)


class SpotifyProvider(MusicProviderClient):
    platform = Platform.SPOTIFY
    label = "Spotify"
    supports_atomic_reorder = True

    def __init__(self, access_token: str, timeout: float | None = None):
        super().__init__(access_token, timeout=timeout or settings.PROVIDER_HTTP_TIMEOUT_SECONDS)
        self.base_url = settings.SPOTIFY_API_BASE_URL or "https://api.spotify.com/v1"

    @staticmethod
    def _extract_playlist_track_count(payload: Any) -> int | None:
        if not isinstance(payload, dict):
            return None
        # Spotify has returned playlist totals in `tracks.total` historically
        # and now returns `items.total` in current payloads.
        for key in ("tracks", "items"):
            container = payload.get(key)
            if not isinstance(container, dict):
                continue
            raw_total = container.get("total")
            if isinstance(raw_total, int):
                return raw_total
        return None

    @staticmethod
    def _clean_id(value: str) -> str | None:
        cleaned = value.strip()
        return cleaned or None

    @classmethod
    def _extract_id_from_open_url(cls, url: str, resource: str) -> str | None:
        try:
            parsed = urlparse(url)
        except ValueError:
            return None
        host = (parsed.netloc or "").lower()
        if "spotify.com" not in host:
            return None
        segments = [segment for segment in parsed.path.split("/") if segment]
        if not segments:
            return None
        if segments[0].lower().startswith("intl-") and len(segments) > 1:
            segments = segments[1:]
        for index, segment in enumerate(segments):
            if segment.lower() != resource:
                continue
            if index + 1 >= len(segments):
                return None
            return cls._clean_id(segments[index + 1])
        return None

    @classmethod
    def _normalize_resource_id(cls, value: str, resource: str) -> str | None:
        raw_value = value.strip()
        if not raw_value:
            return None
        prefix = f"spotify:{resource}:"
        if raw_value.lower().startswith(prefix):
            return cls._clean_id(raw_value.split(":", 2)[-1])
        if raw_value.startswith("http://") or raw_value.startswith("https://"):
            return cls._extract_id_from_open_url(raw_value, resource)
        if "open.spotify.com/" in raw_value.lower():
            return cls._extract_id_from_open_url(f"https://{raw_value}", resource)
        return cls._clean_id(raw_value)

    @classmethod
    def _to_track_uri(cls, track: PlatformTrack) -> str:
        if track.external_uri and track.external_uri.startswith("spotify:track:"):
            return track.external_uri
        normalized_track_id = cls._normalize_resource_id(track.external_uri or track.id, "track")
        if not normalized_track_id:
            raise ValueError(f"Track {track.title!r} has no Spotify identifier")
        return f"spotify:track:{normalized_track_id}"

    def _require_playlist_id(self, playlist_id: str) -> str:
        normalized = self._normalize_resource_id(playlist_id, "playlist")
        if not normalized:
            raise ValueError("Playlist id is required")
        return normalized

    def _to_platform_playlist(self, payload: Any) -> PlatformPlaylist | None:
        if not isinstance(payload, dict):
            return None
        playlist_id = self._clean_id(str(payload.get("id") or ""))
        if not playlist_id:
            return None
        external_urls = payload.get("external_urls")
        playlist_url = external_urls.get("spotify") if isinstance(external_urls, dict) else None
        owner = payload.get("owner")
        owner_name = None
        if isinstance(owner, dict):
            owner_name = owner.get("display_name") or owner.get("id")
        return PlatformPlaylist(
            id=playlist_id,
            title=payload.get("name") or "Untitled",
            platform=self.platform,
            description=payload.get("description") or None,
            track_count=self._extract_playlist_track_count(payload),
            owner_name=owner_name if isinstance(owner_name, str) else None,
            is_public=payload.get("public") if isinstance(payload.get("public"), bool) else None,
            is_collaborative=(
                payload.get("collaborative") if isinstance(payload.get("collaborative"), bool) else None
            ),
            url=playlist_url if isinstance(playlist_url, str) else None,
        )

    def _to_platform_track(self, payload: Any) -> PlatformTrack | None:
        if not isinstance(payload, dict):
            return None
        track_id = self._clean_id(str(payload.get("id") or ""))
        if not track_id:
            return None
        artist_names: list[str] = []
        artists_payload = payload.get("artists")
        if isinstance(artists_payload, list):
            for artist_payload in artists_payload:
                if not isinstance(artist_payload, dict):
                    continue
                name = artist_payload.get("name")
                if isinstance(name, str) and name.strip():
                    artist_names.append(name.strip())
        album_name = None
        release_date = None
        album_payload = payload.get("album")
        if isinstance(album_payload, dict):
            album_name = album_payload.get("name")
            release_date = album_payload.get("release_date")
        external_urls = payload.get("external_urls")
        track_url = external_urls.get("spotify") if isinstance(external_urls, dict) else None
        external_ids = payload.get("external_ids")
        isrc = external_ids.get("isrc") if isinstance(external_ids, dict) else None
        uri = payload.get("uri")
        duration_ms = payload.get("duration_ms")
        track_number = payload.get("track_number")
        disc_number = payload.get("disc_number")
        return PlatformTrack(
            id=track_id,
            title=payload.get("name") or "Untitled",
            artist_names=tuple(artist_names),
            album_name=album_name if isinstance(album_name, str) else None,
            duration_ms=duration_ms if isinstance(duration_ms, int) else None,
            external_uri=uri if isinstance(uri, str) and uri else f"spotify:track:{track_id}",
            platform=self.platform,
            url=track_url if isinstance(track_url, str) else None,
            isrc=isrc if isinstance(isrc, str) else None,
            release_date=release_date if isinstance(release_date, str) else None,
            track_number=track_number if isinstance(track_number, int) else None,
            disc_number=disc_number if isinstance(disc_number, int) else None,
        )

    async def _fetch_current_user_id(self, client) -> str:
        response = await client.get("/me", headers=self._headers())
        self._raise_for_status(response)
        payload = self._json_payload(response)
        user_id = self._clean_id(str(payload.get("id") or "")) if isinstance(payload, dict) else None
        if not user_id:
            raise TransientNetworkError("Unable to fetch Spotify user profile", status_code=502)
        return user_id

    async def list_playlists(self) -> Sequence[PlatformPlaylist]:
        playlists: list[PlatformPlaylist] = []
        next_url: str | None = "/me/playlists"
        params: dict[str, int] | None = {"limit": 50}
        async with self._api_client() as client:
            while next_url:
                response = await client.get(next_url, headers=self._headers(), params=params)
                self._raise_for_status(response)
                payload = self._page_payload(response)
                items = payload.get("items")
                if isinstance(items, list):
                    for item in items:
                        mapped = self._to_platform_playlist(item)
                        if mapped:
                            playlists.append(mapped)
                raw_next = payload.get("next")
                next_url = raw_next if isinstance(raw_next, str) and raw_next else None
                params = None
        return playlists

    async def get_playlist(self, playlist_id: str) -> PlatformPlaylist:
        normalized_id = self._require_playlist_id(playlist_id)
        async with self._api_client() as client:
            response = await client.get(f"/playlists/{normalized_id}", headers=self._headers())
            self._raise_for_status(response)
            payload = self._json_payload(response)
        mapped = self._to_platform_playlist(payload)
        if not mapped:
            raise TransientNetworkError("Unable to load Spotify playlist", status_code=502)
        return mapped

    async def list_playlist_items(self, playlist_id: str) -> Sequence[PlaylistItem]:
        normalized_id = self._require_playlist_id(playlist_id)
        items: list[PlaylistItem] = []
        next_url: str | None = f"/playlists/{normalized_id}/items"
        params: dict[str, int] | None = {"limit": 100, "offset": 0}
        # Positions count every entry, including local files we cannot map.
        position = 0
        async with self._api_client() as client:
            while next_url:
                response = await client.get(next_url, headers=self._headers(), params=params)
                self._raise_for_status(response)
                payload = self._page_payload(response)
                page_items = payload.get("items")
                if isinstance(page_items, list):
                    for entry in page_items:
                        if not isinstance(entry, dict):
                            continue
                        # Spotify currently returns playlist entries as `item`,
                        # while older payloads and some SDK shapes use `track`.
                        track_payload = entry.get("item")
                        if not isinstance(track_payload, dict):
                            track_payload = entry.get("track")
                        mapped = self._to_platform_track(track_payload)
                        if mapped:
                            items.append(
                                PlaylistItem(
                                    placement_handle=mapped.external_uri or mapped.id,
                                    track=mapped,
                                    position=position,
                                )
                            )
                        position += 1
                raw_next = payload.get("next")
                next_url = raw_next if isinstance(raw_next, str) and raw_next else None
                params = None
        return items

    async def search_tracks(self, query: str, limit: int = 10) -> Sequence[PlatformTrack]:
        search_query = query.strip()
        if not search_query:
            return []
        safe_limit = max(1, min(limit, 50))
        async with self._api_client() as client:
            response = await client.get(
                "/search",
                headers=self._headers(),
                params={
                    "q": search_query,
                    "type": "track",
                    "limit": safe_limit,
                },
            )
            self._raise_for_status(response)
            payload = self._json_payload(response)
        if not isinstance(payload, dict):
            return []
        tracks_payload = payload.get("tracks")
        if not isinstance(tracks_payload, dict):
            return []
        items = tracks_payload.get("items")
        if not isinstance(items, list):
            return []
        results: list[PlatformTrack] = []
        for item in items:
            mapped = self._to_platform_track(item)
            if mapped:
                results.append(mapped)
        return results

    async def create_playlist(
        self,
        title: str,
        description: str | None = None,
        is_public: bool | None = None,
    ) -> PlatformPlaylist:
        async with self._api_client() as client:
            user_id = await self._fetch_current_user_id(client)
            response = await client.post(
                f"/users/{user_id}/playlists",
                headers=self._headers(),
                json={
                    "name": title,
                    "description": description or "",
                    "public": True if is_public is None else bool(is_public),
                },
            )
            self._raise_for_status(response)
            payload = self._json_payload(response)
        mapped = self._to_platform_playlist(payload)
        if not mapped:
            raise TransientNetworkError("Unable to create Spotify playlist", status_code=502)
        if mapped.description is None:
            mapped.description = description
        return mapped

    async def _insert_track(self, playlist_id: str, track: PlatformTrack, position: int | None) -> str:
        normalized_id = self._require_playlist_id(playlist_id)
        track_uri = self._to_track_uri(track)
        body: dict[str, Any] = {"uris": [track_uri]}
        if position is not None:
            body["position"] = max(0, position)
        async with self._api_client() as client:
            response = await client.post(
                f"/playlists/{normalized_id}/items",
                headers=self._headers(),
                json=body,
            )
            self._raise_for_status(response)
        # Spotify has no per-entry id; the track URI addresses the entry.
        return track_uri

    async def add_track(self, playlist_id: str, track: PlatformTrack) -> str:
        return await self._insert_track(playlist_id, track, None)

    async def add_track_at_position(self, playlist_id: str, track: PlatformTrack, position: int) -> str:
        return await self._insert_track(playlist_id, track, position)

    async def remove_track(self, playlist_id: str, placement_handle: str) -> None:
        normalized_id = self._require_playlist_id(playlist_id)
        track_id = self._normalize_resource_id(placement_handle, "track")
        if not track_id:
            raise ValueError("Placement handle is required")
        async with self._api_client() as client:
            response = await client.request(
                "DELETE",
                f"/playlists/{normalized_id}/items",
                headers=self._headers(),
                json={"tracks": [{"uri": f"spotify:track:{track_id}"}]},
            )
            self._raise_for_status(response)

    async def reorder_track(
        self,
        playlist_id: str,
        placement_handle: str,
        from_index: int,
        to_index: int,
        track: PlatformTrack | None = None,
    ) -> str:
        if from_index < 0 or to_index < 0:
            raise ValueError("Reorder indexes must be non-negative")
        normalized_id = self._require_playlist_id(playlist_id)
        if from_index == to_index:
            return placement_handle
        # insert_before counts positions before the range is removed.
        insert_before = to_index + 1 if to_index > from_index else to_index
        async with self._api_client() as client:
            response = await client.put(
                f"/playlists/{normalized_id}/items",
                headers=self._headers(),
                json={
                    "range_start": from_index,
                    "insert_before": insert_before,
                    "range_length": 1,
                },
            )
            self._raise_for_status(response)
        return placement_handle
