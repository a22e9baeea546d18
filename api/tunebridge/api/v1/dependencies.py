"""Request-scoped dependencies and provider error translation."""
from dataclasses import dataclass, field

from fastapi import Header, HTTPException, status

from tunebridge.services.music_providers import (
    AuthExpiredError,
    MusicProviderClient,
    Platform,
    ProviderError,
    RateLimitedError,
    UnsupportedPlatformError,
    get_provider_client,
    parse_platform,
)
from tunebridge.services.music_providers.factory import PROVIDER_CLASSES
from tunebridge.services.playlist_sync.session import SyncSession, session_store

AUTH_EXPIRED_HEADER = "X-Provider-Auth-Expired"
SESSION_HEADER = "X-Session-Id"


@dataclass
class ProviderTokens:
    """Bearer tokens the caller supplied, one per platform."""

    tokens: dict[Platform, str] = field(default_factory=dict)

    def client(self, platform: str | Platform) -> MusicProviderClient:
        try:
            resolved = parse_platform(platform)
            if resolved not in PROVIDER_CLASSES:
                raise UnsupportedPlatformError(f"Unsupported provider: {resolved.value}")
            return get_provider_client(resolved, self.tokens.get(resolved))
        except UnsupportedPlatformError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except ProviderError as exc:
            raise provider_http_error(exc) from exc


def get_provider_tokens(
    x_spotify_token: str | None = Header(None, alias="X-Spotify-Token"),
    x_google_token: str | None = Header(None, alias="X-Google-Token"),
    x_apple_token: str | None = Header(None, alias="X-Apple-Token"),
) -> ProviderTokens:
    tokens = {
        Platform.SPOTIFY: x_spotify_token,
        Platform.GOOGLE: x_google_token,
        Platform.APPLE: x_apple_token,
    }
    return ProviderTokens({platform: token.strip() for platform, token in tokens.items() if token and token.strip()})


def get_sync_session(x_session_id: str | None = Header(None, alias=SESSION_HEADER)) -> SyncSession:
    return session_store.get_or_create(x_session_id)


def provider_http_error(exc: ProviderError, platform: Platform | None = None) -> HTTPException:
    """Translate a provider failure into the HTTP error the UI expects."""
    if isinstance(exc, AuthExpiredError):
        expired = exc.platform or platform
        headers = {AUTH_EXPIRED_HEADER: expired.value if expired else "unknown"}
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc), headers=headers)
    if isinstance(exc, RateLimitedError):
        headers = None
        if exc.retry_after is not None:
            headers = {"Retry-After": str(int(exc.retry_after))}
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc), headers=headers)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
