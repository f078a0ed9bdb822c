"""HTTP client factory for calling configured downstream services."""

import logging
from typing import Callable

import httpx

from service_agents.auth import ServiceAgentContext, resolve_auth_headers, select_strategy
from service_agents.errors import InsecureTransportError
from service_agents.settings import AuthScheme, HttpScheme, ServiceAgentSettings, ServiceSettings

logger = logging.getLogger(__name__)

AfterClientCreated = Callable[[ServiceAgentContext, httpx.AsyncClient], None]


class HttpClientFactory:
    """Builds an AsyncClient per call, configured for one downstream service."""

    def __init__(
        self,
        context: ServiceAgentContext,
        after_client_created: AfterClientCreated | None = None,
    ) -> None:
        self._context = context
        self.after_client_created = after_client_created

    async def create_client(
        self,
        global_settings: ServiceAgentSettings,
        service_settings: ServiceSettings,
    ) -> httpx.AsyncClient:
        """
        Build an AsyncClient with base address, Accept header and credentials.

        Basic authentication over plain http is refused before any credential is
        read. Errors raised by the identity or token collaborators propagate
        unchanged and no client is returned.
        """
        if (
            service_settings.auth_scheme == AuthScheme.BASIC
            and service_settings.scheme != HttpScheme.HTTPS
        ):
            raise InsecureTransportError(
                HttpScheme(service_settings.scheme).value,
                service_settings.host,
                service_settings.path,
            )

        strategy = select_strategy(global_settings, service_settings)
        headers = {"Accept": "application/json"}
        headers.update(await resolve_auth_headers(strategy, self._context))

        client = httpx.AsyncClient(
            base_url=service_settings.base_url,
            headers=headers,
            timeout=service_settings.timeout,
        )
        logger.debug(
            "Created service agent client",
            extra={
                "base_url": service_settings.base_url,
                "auth_scheme": AuthScheme(service_settings.auth_scheme).value,
            },
        )

        if self.after_client_created is not None:
            try:
                self.after_client_created(self._context, client)
            except Exception:
                await client.aclose()
                raise
        return client

    async def create_named_client(
        self,
        global_settings: ServiceAgentSettings,
        service_name: str,
    ) -> httpx.AsyncClient:
        """Look up ``service_name`` and build its client."""
        return await self.create_client(global_settings, global_settings.get_service(service_name))
