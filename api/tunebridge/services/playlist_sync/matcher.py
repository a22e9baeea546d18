"""Search-based track matching across platforms."""
from __future__ import annotations

import logging

from tunebridge.services.music_providers.base import MusicProviderClient, PlatformTrack

logger = logging.getLogger(__name__)


def build_search_query(track: PlatformTrack) -> str:
    """Return ``title`` followed by every artist name, space separated."""
    return " ".join([track.title, *track.artist_names]).strip()


async def match_track(track: PlatformTrack, on_platform: MusicProviderClient) -> PlatformTrack | None:
    """Return the destination platform's top search hit for ``track``.

    The first result is accepted as-is; there is no duration or artist
    cross-check, so a same-title different-song hit is returned unchanged.
    ``None`` means the search came back empty. Provider errors propagate.
    """
    query = build_search_query(track)
    if not query:
        return None
    results = await on_platform.search_tracks(query, limit=1)
    if not results:
        logger.debug("No match for %r", query)
        return None
    return results[0]
