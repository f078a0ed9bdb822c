"""
OAuth2 client-credentials token helper.

Tokens are cached in memory per token endpoint and client id and refreshed
shortly before they expire.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from service_agents.auth import TokenReply
from service_agents.errors import TokenRetrievalError
from service_agents.settings import ServiceSettings

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PATH = "oauth2/token"
EXPIRY_MARGIN_SECONDS = 60


def token_url_for(settings: ServiceSettings) -> str:
    """Token endpoint: the service base url extended with the OAuth path addition."""
    addition = (settings.oauth_path_addition or DEFAULT_TOKEN_PATH).lstrip("/")
    return f"{settings.base_url}{addition}"


@dataclass(slots=True)
class _CachedToken:
    reply: TokenReply
    expires_at: float


class OAuthTokenHelper:
    """Retrieves and caches client-credentials access tokens."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        clock=time.monotonic,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=30.0)
        self._clock = clock
        self._cache: dict[tuple[str, str], _CachedToken] = {}
        self._lock = asyncio.Lock()

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def read_or_retrieve_token(self, settings: ServiceSettings) -> TokenReply:
        """Return a cached token for ``settings`` or fetch a new one."""
        url = token_url_for(settings)
        cache_key = (url, settings.oauth_client_id or "")

        async with self._lock:
            cached = self._cache.get(cache_key)
            if cached is not None and cached.expires_at > self._clock():
                return cached.reply

            reply = await self._retrieve(url, settings)
            lifetime = max(reply.expires_in - EXPIRY_MARGIN_SECONDS, 0)
            self._cache[cache_key] = _CachedToken(reply=reply, expires_at=self._clock() + lifetime)
            return reply

    async def _retrieve(self, url: str, settings: ServiceSettings) -> TokenReply:
        form = {
            "grant_type": "client_credentials",
            "client_id": settings.oauth_client_id or "",
            "client_secret": settings.oauth_client_secret or "",
        }
        if settings.oauth_scope:
            form["scope"] = settings.oauth_scope

        def _token_error(message: str, *, exc: Exception | None = None) -> TokenRetrievalError:
            logger.error(
                message,
                extra={"token_url": url, "client_id": settings.oauth_client_id},
                exc_info=exc,
            )
            return TokenRetrievalError(message)

        logger.debug("Requesting OAuth access token", extra={"token_url": url})
        try:
            response = await self._client.post(url, data=form, headers={"Accept": "application/json"})
        except httpx.TimeoutException as exc:
            raise _token_error(f"Token request to {url} timed out.", exc=exc) from exc
        except httpx.RequestError as exc:
            raise _token_error(f"Token request to {url} failed: {exc!s}", exc=exc) from exc

        if response.is_error:
            snippet = response.text.strip()
            if len(snippet) > 512:
                snippet = f"{snippet[:512]}..."
            raise _token_error(
                f"Token endpoint error ({response.status_code}) at {url}: {snippet or 'no body provided.'}"
            )

        try:
            payload: dict[str, Any] = response.json()
        except json.JSONDecodeError as exc:
            raise _token_error(f"Token endpoint {url} returned invalid JSON.", exc=exc) from exc

        access_token = payload.get("access_token")
        if not access_token:
            raise _token_error(f"Token endpoint {url} did not return an access_token.")

        try:
            expires_in = int(payload.get("expires_in", 0))
        except (TypeError, ValueError) as exc:
            raise _token_error(f"Token endpoint {url} returned an invalid expires_in.", exc=exc) from exc

        return TokenReply(access_token=access_token, expires_in=expires_in)
