"""
Service agents: configured httpx clients for named downstream services.

Settings describe where a service lives and how to authenticate; the
HttpClientFactory turns them into ready to use AsyncClient instances.
"""

from service_agents.auth import ServiceAgentContext, TokenHelper, TokenReply, UserTokenProvider
from service_agents.errors import (
    InsecureTransportError,
    ServiceAgentError,
    ServiceNotConfiguredError,
    TokenRetrievalError,
    UnsupportedAuthSchemeError,
)
from service_agents.http_client import HttpClientFactory
from service_agents.oauth import OAuthTokenHelper
from service_agents.settings import AuthScheme, HttpScheme, ServiceAgentSettings, ServiceSettings

__all__ = [
    "AuthScheme",
    "HttpClientFactory",
    "HttpScheme",
    "InsecureTransportError",
    "OAuthTokenHelper",
    "ServiceAgentContext",
    "ServiceAgentError",
    "ServiceAgentSettings",
    "ServiceNotConfiguredError",
    "ServiceSettings",
    "TokenHelper",
    "TokenReply",
    "TokenRetrievalError",
    "UnsupportedAuthSchemeError",
    "UserTokenProvider",
]
