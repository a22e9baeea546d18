from tunebridge.services.music_providers.base import (
    MusicProviderClient,
    Platform,
    PlatformPlaylist,
    PlatformTrack,
    PlaylistItem,
    ProviderError,
    AuthExpiredError,
    RateLimitedError,
    ReorderFailedError,
    TransientNetworkError,
    UnsupportedPlatformError,
)
from tunebridge.services.music_providers.factory import get_music_provider, parse_platform
from tunebridge.services.music_providers.session import get_provider_client

__all__ = [
    "MusicProviderClient",
    "Platform",
    "PlatformPlaylist",
    "PlatformTrack",
    "PlaylistItem",
    "ProviderError",
    "AuthExpiredError",
    "RateLimitedError",
    "ReorderFailedError",
    "TransientNetworkError",
    "UnsupportedPlatformError",
    "get_music_provider",
    "parse_platform",
    "get_provider_client",
]
