"""YouTube (Google) provider integration."""

from __future__ import annotations

from typing import Any, Sequence

from tunebridge.config.settings import settings
from tunebridge.services.music_providers.base import (
    MusicProviderClient,
    Platform,
    PlatformPlaylist,
    PlatformTrack,
    PlaylistItem,
    TransientNetworkError,
)

YOUTUBE_MUSIC_CATEGORY_ID = "10"
TOPIC_CHANNEL_SUFFIX = " - Topic"
PAGE_SIZE = 50


def playlist_url(playlist_id: str) -> str:
    return f"https://www.youtube.com/playlist?list={playlist_id}"


def video_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


class YouTubeProvider(MusicProviderClient):
    platform = Platform.GOOGLE
    label = "YouTube"
    supports_atomic_reorder = False
    rate_limit_reasons = frozenset({"quotaExceeded", "rateLimitExceeded", "userRateLimitExceeded"})

    def __init__(self, access_token: str, timeout: float | None = None):
        super().__init__(access_token, timeout=timeout or settings.PROVIDER_HTTP_TIMEOUT_SECONDS)
        self.base_url = settings.YOUTUBE_API_BASE_URL or "https://www.googleapis.com/youtube/v3"

    @staticmethod
    def _artist_from_channel(channel_title: Any) -> tuple[str, ...]:
        if not isinstance(channel_title, str) or not channel_title.strip():
            return ()
        name = channel_title.strip()
        if name.endswith(TOPIC_CHANNEL_SUFFIX):
            name = name[: -len(TOPIC_CHANNEL_SUFFIX)].strip()
        return (name,) if name else ()

    def _to_platform_playlist(self, payload: Any) -> PlatformPlaylist | None:
        if not isinstance(payload, dict):
            return None
        playlist_id = payload.get("id")
        if not isinstance(playlist_id, str) or not playlist_id.strip():
            return None
        snippet = payload.get("snippet") if isinstance(payload.get("snippet"), dict) else {}
        content_details = payload.get("contentDetails")
        item_count = content_details.get("itemCount") if isinstance(content_details, dict) else None
        status = payload.get("status")
        privacy = status.get("privacyStatus") if isinstance(status, dict) else None
        return PlatformPlaylist(
            id=playlist_id,
            title=snippet.get("title") or "Untitled",
            platform=self.platform,
            description=snippet.get("description") or None,
            track_count=item_count if isinstance(item_count, int) else None,
            owner_name=snippet.get("channelTitle") if isinstance(snippet.get("channelTitle"), str) else None,
            is_public=(privacy == "public") if isinstance(privacy, str) else None,
            is_collaborative=False,
            url=playlist_url(playlist_id),
        )

    def _video_track(self, video_id: str, snippet: dict, channel_title: Any) -> PlatformTrack:
        return PlatformTrack(
            id=video_id,
            title=snippet.get("title") or "Untitled",
            artist_names=self._artist_from_channel(channel_title),
            album_name=None,
            duration_ms=None,
            external_uri=video_id,
            platform=self.platform,
            url=video_url(video_id),
        )

    def _to_playlist_item(self, payload: Any, fallback_position: int) -> PlaylistItem | None:
        if not isinstance(payload, dict):
            return None
        item_id = payload.get("id")
        snippet = payload.get("snippet")
        if not isinstance(item_id, str) or not isinstance(snippet, dict):
            return None
        content_details = payload.get("contentDetails")
        video_id = content_details.get("videoId") if isinstance(content_details, dict) else None
        if not video_id:
            resource = snippet.get("resourceId")
            video_id = resource.get("videoId") if isinstance(resource, dict) else None
        if not isinstance(video_id, str) or not video_id:
            return None
        position = snippet.get("position")
        return PlaylistItem(
            placement_handle=item_id,
            track=self._video_track(video_id, snippet, snippet.get("videoOwnerChannelTitle")),
            position=position if isinstance(position, int) else fallback_position,
        )

    def _to_search_track(self, payload: Any) -> PlatformTrack | None:
        if not isinstance(payload, dict):
            return None
        id_payload = payload.get("id")
        video_id = id_payload.get("videoId") if isinstance(id_payload, dict) else None
        snippet = payload.get("snippet")
        if not isinstance(video_id, str) or not video_id or not isinstance(snippet, dict):
            return None
        return self._video_track(video_id, snippet, snippet.get("channelTitle"))

    async def list_playlists(self) -> Sequence[PlatformPlaylist]:
        playlists: list[PlatformPlaylist] = []
        page_token: str | None = None
        async with self._api_client() as client:
            while True:
                params: dict[str, Any] = {
                    "part": "snippet,contentDetails,status",
                    "mine": "true",
                    "maxResults": PAGE_SIZE,
                }
                if page_token:
                    params["pageToken"] = page_token
                response = await client.get("/playlists", headers=self._headers(), params=params)
                self._raise_for_status(response)
                payload = self._page_payload(response)
                items = payload.get("items")
                if isinstance(items, list):
                    for item in items:
                        mapped = self._to_platform_playlist(item)
                        if mapped:
                            playlists.append(mapped)
                raw_token = payload.get("nextPageToken")
                page_token = raw_token if isinstance(raw_token, str) and raw_token else None
                if not page_token:
                    break
        return playlists

    async def get_playlist(self, playlist_id: str) -> PlatformPlaylist:
        if not playlist_id.strip():
            raise ValueError("Playlist id is required")
        async with self._api_client() as client:
            response = await client.get(
                "/playlists",
                headers=self._headers(),
                params={"part": "snippet,contentDetails,status", "id": playlist_id.strip()},
            )
            self._raise_for_status(response)
            payload = self._json_payload(response)
        items = payload.get("items") if isinstance(payload, dict) else None
        mapped = self._to_platform_playlist(items[0]) if isinstance(items, list) and items else None
        if not mapped:
            raise TransientNetworkError("Unable to load YouTube playlist", status_code=404)
        return mapped

    async def list_playlist_items(self, playlist_id: str) -> Sequence[PlaylistItem]:
        if not playlist_id.strip():
            raise ValueError("Playlist id is required")
        items: list[PlaylistItem] = []
        page_token: str | None = None
        position = 0
        async with self._api_client() as client:
            while True:
                params: dict[str, Any] = {
                    "part": "snippet,contentDetails",
                    "playlistId": playlist_id.strip(),
                    "maxResults": PAGE_SIZE,
                }
                if page_token:
                    params["pageToken"] = page_token
                response = await client.get("/playlistItems", headers=self._headers(), params=params)
                self._raise_for_status(response)
                payload = self._page_payload(response)
                page_items = payload.get("items")
                if isinstance(page_items, list):
                    for entry in page_items:
                        mapped = self._to_playlist_item(entry, position)
                        if mapped:
                            items.append(mapped)
                        position += 1
                raw_token = payload.get("nextPageToken")
                page_token = raw_token if isinstance(raw_token, str) and raw_token else None
                if not page_token:
                    break
        return items

    async def search_tracks(self, query: str, limit: int = 10) -> Sequence[PlatformTrack]:
        search_query = query.strip()
        if not search_query:
            return []
        safe_limit = max(1, min(limit, PAGE_SIZE))
        async with self._api_client() as client:
            response = await client.get(
                "/search",
                headers=self._headers(),
                params={
                    "part": "snippet",
                    "type": "video",
                    "videoCategoryId": YOUTUBE_MUSIC_CATEGORY_ID,
                    "q": search_query,
                    "maxResults": safe_limit,
                },
            )
            self._raise_for_status(response)
            payload = self._json_payload(response)
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        results: list[PlatformTrack] = []
        for item in items:
            mapped = self._to_search_track(item)
            if mapped:
                results.append(mapped)
        return results

    async def create_playlist(
        self,
        title: str,
        description: str | None = None,
        is_public: bool | None = None,
    ) -> PlatformPlaylist:
        privacy = "public" if is_public else "private"
        async with self._api_client() as client:
            response = await client.post(
                "/playlists",
                headers=self._headers(),
                params={"part": "snippet,status"},
                json={
                    "snippet": {
                        "title": title,
                        "description": description or "",
                        "defaultLanguage": "en",
                    },
                    "status": {"privacyStatus": privacy},
                },
            )
            self._raise_for_status(response)
            payload = self._json_payload(response)
        mapped = self._to_platform_playlist(payload)
        if not mapped:
            raise TransientNetworkError("Unable to create YouTube playlist", status_code=502)
        mapped.track_count = mapped.track_count or 0
        return mapped

    @staticmethod
    def _video_id(track: PlatformTrack) -> str:
        video_id = track.external_uri or track.id
        if not video_id:
            raise ValueError(f"Track {track.title!r} has no YouTube video id")
        return video_id

    async def _insert_item(self, playlist_id: str, track: PlatformTrack, position: int | None) -> str:
        snippet: dict[str, Any] = {
            "playlistId": playlist_id,
            "resourceId": {"kind": "youtube#video", "videoId": self._video_id(track)},
        }
        if position is not None:
            snippet["position"] = max(0, position)
        async with self._api_client() as client:
            response = await client.post(
                "/playlistItems",
                headers=self._headers(),
                params={"part": "snippet"},
                json={"snippet": snippet},
            )
            self._raise_for_status(response)
            payload = self._json_payload(response)
        item_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(item_id, str) or not item_id:
            raise TransientNetworkError("YouTube did not return a playlist item id", status_code=502)
        return item_id

    async def add_track(self, playlist_id: str, track: PlatformTrack) -> str:
        return await self._insert_item(playlist_id, track, None)

    async def add_track_at_position(self, playlist_id: str, track: PlatformTrack, position: int) -> str:
        return await self._insert_item(playlist_id, track, position)

    async def remove_track(self, playlist_id: str, placement_handle: str) -> None:
        if not placement_handle:
            raise ValueError("Placement handle is required")
        async with self._api_client() as client:
            response = await client.request(
                "DELETE",
                "/playlistItems",
                headers=self._headers(),
                params={"id": placement_handle},
            )
            self._raise_for_status(response)
