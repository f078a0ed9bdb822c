"""Settings describing the downstream services a process talks to."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from dotenv import load_dotenv

from service_agents.errors import ServiceNotConfiguredError

ENV_PREFIX = "SERVICE_AGENTS_"
DEFAULT_API_KEY_HEADER_NAME = "ApiKey"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class HttpScheme(str, Enum):
    HTTP = "http"
    HTTPS = "https"


class AuthScheme(str, Enum):
    NONE = "None"
    BEARER = "Bearer"
    API_KEY = "ApiKey"
    BASIC = "Basic"
    OAUTH_CLIENT_CREDENTIALS = "OAuthClientCredentials"


@dataclass(frozen=True, slots=True)
class ServiceSettings:
    """Connection and authentication configuration for one downstream service."""

    host: str = ""
    path: str = ""
    scheme: HttpScheme = HttpScheme.HTTPS
    port: int | None = None
    auth_scheme: AuthScheme = AuthScheme.NONE
    api_key: str | None = None
    api_key_header_name: str | None = None
    use_global_api_key: bool = False
    basic_auth_user_name: str | None = None
    basic_auth_password: str | None = None
    oauth_client_id: str | None = None
    oauth_client_secret: str | None = None
    oauth_scope: str | None = None
    oauth_path_addition: str | None = None
    timeout: float = 30.0

    @property
    def base_url(self) -> str:
        """Return ``<scheme>://<host>[:port]/<path>/`` with exactly one trailing slash."""
        authority = self.host if self.port is None else f"{self.host}:{self.port}"
        path = self.path.strip("/")
        if not path:
            return f"{HttpScheme(self.scheme).value}://{authority}/"
        return f"{HttpScheme(self.scheme).value}://{authority}/{path}/"


@dataclass(frozen=True, slots=True)
class ServiceAgentSettings:
    """Process-wide container of per-service settings."""

    services: Mapping[str, ServiceSettings] = field(default_factory=dict)
    global_api_key: str | None = None

    def get_service(self, name: str) -> ServiceSettings:
        try:
            return self.services[name]
        except KeyError as exc:
            raise ServiceNotConfiguredError(f"No settings configured for service '{name}'.") from exc

    @classmethod
    def load(cls) -> "ServiceAgentSettings":
        """
        Load service settings from environment variables.

        SERVICE_AGENTS_SERVICES lists the service names; every service then reads
        SERVICE_AGENTS_<NAME>_<FIELD>, e.g. SERVICE_AGENTS_ORDERS_HOST. A local
        .env file is honoured through python-dotenv.
        """
        load_dotenv()

        names = [
            name.strip()
            for name in os.getenv(f"{ENV_PREFIX}SERVICES", "").split(",")
            if name.strip()
        ]
        services = {name: _load_service(name) for name in names}
        global_api_key = os.getenv(f"{ENV_PREFIX}GLOBAL_API_KEY", "").strip() or None

        return cls(services=services, global_api_key=global_api_key)


def _env_name(service_name: str, field_name: str) -> str:
    return f"{ENV_PREFIX}{service_name.upper().replace('-', '_')}_{field_name}"


def _get(service_name: str, field_name: str) -> str | None:
    value = os.getenv(_env_name(service_name, field_name), "").strip()
    return value or None


def _parse_bool(service_name: str, field_name: str) -> bool:
    raw = _get(service_name, field_name)
    if raw is None:
        return False
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{_env_name(service_name, field_name)} must be a boolean value.")


def _load_service(name: str) -> ServiceSettings:
    host = _get(name, "HOST")
    if not host:
        raise ValueError(f"{_env_name(name, 'HOST')} is required but was not provided.")

    scheme_raw = (_get(name, "SCHEME") or HttpScheme.HTTPS.value).lower()
    try:
        scheme = HttpScheme(scheme_raw)
    except ValueError as exc:
        raise ValueError(f"{_env_name(name, 'SCHEME')} must be 'http' or 'https'.") from exc

    auth_raw = _get(name, "AUTH_SCHEME") or AuthScheme.NONE.value
    auth_by_name = {member.value.lower(): member for member in AuthScheme}
    auth_scheme = auth_by_name.get(auth_raw.lower())
    if auth_scheme is None:
        allowed = ", ".join(member.value for member in AuthScheme)
        raise ValueError(f"{_env_name(name, 'AUTH_SCHEME')} must be one of: {allowed}.")

    port: int | None = None
    port_raw = _get(name, "PORT")
    if port_raw is not None:
        try:
            port = int(port_raw)
        except ValueError as exc:
            raise ValueError(f"{_env_name(name, 'PORT')} must be an integer.") from exc
        if port <= 0:
            raise ValueError(f"{_env_name(name, 'PORT')} must be greater than zero.")

    timeout_raw = _get(name, "TIMEOUT") or "30"
    try:
        timeout = float(timeout_raw)
    except ValueError as exc:
        raise ValueError(f"{_env_name(name, 'TIMEOUT')} must be a numeric value.") from exc
    if timeout <= 0:
        raise ValueError(f"{_env_name(name, 'TIMEOUT')} must be greater than zero.")

    return ServiceSettings(
        host=host,
        path=_get(name, "PATH") or "",
        scheme=scheme,
        port=port,
        auth_scheme=auth_scheme,
        api_key=_get(name, "API_KEY"),
        api_key_header_name=_get(name, "API_KEY_HEADER_NAME"),
        use_global_api_key=_parse_bool(name, "USE_GLOBAL_API_KEY"),
        basic_auth_user_name=_get(name, "BASIC_AUTH_USER_NAME"),
        basic_auth_password=_get(name, "BASIC_AUTH_PASSWORD"),
        oauth_client_id=_get(name, "OAUTH_CLIENT_ID"),
        oauth_client_secret=_get(name, "OAUTH_CLIENT_SECRET"),
        oauth_scope=_get(name, "OAUTH_SCOPE"),
        oauth_path_addition=_get(name, "OAUTH_PATH_ADDITION"),
        timeout=timeout,
    )
