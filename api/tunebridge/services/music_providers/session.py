"""Provider session helpers for token-scoped API clients."""
from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable

from tunebridge.services.music_providers.base import AuthExpiredError, Platform
from tunebridge.services.music_providers.factory import get_music_provider, parse_platform

logger = logging.getLogger(__name__)

AuthExpiredCallback = Callable[[Platform], Awaitable[str | None]]


class ProviderClientWithAuthCallback:
    """Thin proxy that hands auth failures to the token collaborator once.

    When a call fails with ``AuthExpiredError`` the callback is awaited. A
    returned token rebuilds the client and the call is retried once; ``None``
    lets the original error propagate.
    """

    def __init__(
        self,
        platform: str | Platform,
        access_token: str,
        on_auth_expired: AuthExpiredCallback | None = None,
    ) -> None:
        self._platform = parse_platform(platform)
        self._on_auth_expired = on_auth_expired
        self._client = get_music_provider(self._platform, access_token)

    @property
    def platform(self) -> Platform:
        return self._platform

    async def _refresh_access_token(self) -> bool:
        if self._on_auth_expired is None:
            return False
        try:
            next_access_token = await self._on_auth_expired(self._platform)
        except Exception:
            logger.exception("Auth-expired callback failed for %s", self._platform.value)
            return False
        if not next_access_token:
            return False
        self._client = get_music_provider(self._platform, next_access_token)
        return True

    def __getattr__(self, name: str):
        target = getattr(self._client, name)
        if not callable(target):
            return target
        if not inspect.iscoroutinefunction(target):
            return target

        async def _wrapped(*args, **kwargs):
            current = getattr(self._client, name)
            try:
                return await current(*args, **kwargs)
            except AuthExpiredError:
                logger.info("%s token expired during %s", self._platform.value, name)
                refreshed = await self._refresh_access_token()
                if not refreshed:
                    raise
                retry = getattr(self._client, name)
                return await retry(*args, **kwargs)

        return _wrapped


def get_provider_client(
    platform: str | Platform,
    access_token: str | None,
    on_auth_expired: AuthExpiredCallback | None = None,
):
    """Build a provider client tied to the caller's bearer token."""
    if not access_token:
        resolved = parse_platform(platform)
        raise AuthExpiredError(f"Missing access token for {resolved.value}", platform=resolved)
    return ProviderClientWithAuthCallback(platform, access_token, on_auth_expired=on_auth_expired)
