"""
Authentication strategies applied to freshly built service agent clients.

Each auth scheme is mapped onto one small variant that carries only the values
it needs. ``resolve_auth_headers`` turns a variant into the default headers the
client will send, calling out to the identity or token collaborators when the
scheme requires it.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from service_agents.errors import ServiceAgentError, UnsupportedAuthSchemeError
from service_agents.settings import (
    DEFAULT_API_KEY_HEADER_NAME,
    AuthScheme,
    ServiceAgentSettings,
    ServiceSettings,
)

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"


@dataclass(frozen=True, slots=True)
class TokenReply:
    """Access token handed out by a token endpoint."""

    access_token: str
    expires_in: int


class UserTokenProvider(Protocol):
    """Source of the token belonging to the user on whose behalf we call out."""

    def current_user_token(self) -> str: ...


class TokenHelper(Protocol):
    """Obtains OAuth client-credentials tokens for a service."""

    async def read_or_retrieve_token(self, settings: ServiceSettings) -> TokenReply: ...


@dataclass(slots=True)
class ServiceAgentContext:
    """Collaborators available to the client factory and its extension hook."""

    user_token_provider: UserTokenProvider | None = None
    token_helper: TokenHelper | None = None

    def require_user_token_provider(self) -> UserTokenProvider:
        if self.user_token_provider is None:
            raise ServiceAgentError("Bearer authentication requires a user token provider.")
        return self.user_token_provider

    def require_token_helper(self) -> TokenHelper:
        if self.token_helper is None:
            raise ServiceAgentError("OAuth client credentials authentication requires a token helper.")
        return self.token_helper


@dataclass(frozen=True, slots=True)
class NoAuth:
    pass


@dataclass(frozen=True, slots=True)
class BearerAuth:
    pass


@dataclass(frozen=True, slots=True)
class ApiKeyAuth:
    header_name: str
    key: str | None


@dataclass(frozen=True, slots=True)
class BasicAuth:
    user_name: str | None
    password: str | None


@dataclass(frozen=True, slots=True)
class OAuthClientCredentialsAuth:
    settings: ServiceSettings


AuthStrategy = NoAuth | BearerAuth | ApiKeyAuth | BasicAuth | OAuthClientCredentialsAuth


def select_strategy(
    global_settings: ServiceAgentSettings,
    service_settings: ServiceSettings,
) -> AuthStrategy:
    """Pick the strategy for the configured auth scheme; other credential fields are ignored."""
    match service_settings.auth_scheme:
        case AuthScheme.NONE:
            return NoAuth()
        case AuthScheme.BEARER:
            return BearerAuth()
        case AuthScheme.API_KEY:
            if service_settings.use_global_api_key:
                key = global_settings.global_api_key
            else:
                key = service_settings.api_key
            return ApiKeyAuth(
                header_name=service_settings.api_key_header_name or DEFAULT_API_KEY_HEADER_NAME,
                key=key,
            )
        case AuthScheme.BASIC:
            return BasicAuth(
                user_name=service_settings.basic_auth_user_name,
                password=service_settings.basic_auth_password,
            )
        case AuthScheme.OAUTH_CLIENT_CREDENTIALS:
            return OAuthClientCredentialsAuth(settings=service_settings)
        case unknown:
            raise UnsupportedAuthSchemeError(f"Unsupported auth scheme: {unknown!r}")


def encode_basic_credentials(user_name: str | None, password: str | None) -> str:
    """Base64 encode ``user:password`` as used by the Basic scheme."""
    raw = f"{user_name or ''}:{password or ''}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


async def resolve_auth_headers(strategy: AuthStrategy, context: ServiceAgentContext) -> dict[str, str]:
    """Return the headers that carry the credential for ``strategy``."""
    match strategy:
        case NoAuth():
            return {}
        case BearerAuth():
            token = context.require_user_token_provider().current_user_token()
            logger.debug("Attaching user bearer token")
            return {AUTHORIZATION_HEADER: f"{AuthScheme.BEARER.value} {token}"}
        case ApiKeyAuth(header_name=header_name, key=key):
            logger.debug("Attaching api key header", extra={"header_name": header_name})
            return {header_name: key or ""}
        case BasicAuth(user_name=user_name, password=password):
            credential = encode_basic_credentials(user_name, password)
            return {AUTHORIZATION_HEADER: f"{AuthScheme.BASIC.value} {credential}"}
        case OAuthClientCredentialsAuth(settings=settings):
            reply = await context.require_token_helper().read_or_retrieve_token(settings)
            logger.debug(
                "Attaching OAuth access token",
                extra={"client_id": settings.oauth_client_id, "expires_in": reply.expires_in},
            )
            return {AUTHORIZATION_HEADER: f"{AuthScheme.BEARER.value} {reply.access_token}"}
        case _:
            raise UnsupportedAuthSchemeError(f"Unsupported auth strategy: {strategy!r}")
