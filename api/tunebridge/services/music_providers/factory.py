"""Factory for music provider clients."""

from tunebridge.services.music_providers.base import (
    MusicProviderClient,
    Platform,
    UnsupportedPlatformError,
)
from tunebridge.services.music_providers.spotify import SpotifyProvider
from tunebridge.services.music_providers.youtube import YouTubeProvider

PROVIDER_CLASSES: dict[Platform, type[MusicProviderClient]] = {
    Platform.SPOTIFY: SpotifyProvider,
    Platform.GOOGLE: YouTubeProvider,
}


def parse_platform(value: str | Platform) -> Platform:
    if isinstance(value, Platform):
        return value
    try:
        return Platform(value.strip().lower())
    except ValueError as exc:
        raise UnsupportedPlatformError(f"Unsupported provider: {value}") from exc


def get_music_provider(platform: str | Platform, access_token: str) -> MusicProviderClient:
    resolved = parse_platform(platform)
    provider_class = PROVIDER_CLASSES.get(resolved)
    if provider_class is None:
        raise UnsupportedPlatformError(f"Unsupported provider: {resolved.value}")
    return provider_class(access_token)
