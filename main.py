"""Entry point that builds a client for every configured service and reports it."""

import asyncio
import logging
import os

from service_agents import (
    HttpClientFactory,
    OAuthTokenHelper,
    ServiceAgentContext,
    ServiceAgentSettings,
)


class EnvironmentUserTokenProvider:
    """Reads the caller's bearer token from SERVICE_AGENTS_USER_TOKEN."""

    def current_user_token(self) -> str:
        token = os.getenv("SERVICE_AGENTS_USER_TOKEN", "").strip()
        if not token:
            raise ValueError("SERVICE_AGENTS_USER_TOKEN is required for Bearer services.")
        return token


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


async def describe_services(settings: ServiceAgentSettings) -> None:
    logger = logging.getLogger("service-agents")
    token_helper = OAuthTokenHelper()
    factory = HttpClientFactory(
        ServiceAgentContext(
            user_token_provider=EnvironmentUserTokenProvider(),
            token_helper=token_helper,
        )
    )

    try:
        for name in settings.services:
            client = await factory.create_named_client(settings, name)
            async with client:
                logger.info(
                    "Service %s -> %s (headers: %s)",
                    name,
                    client.base_url,
                    ", ".join(sorted(client.headers.keys())),
                )
    finally:
        await token_helper.aclose()


def main() -> None:
    """Load settings from the environment and build each configured client."""
    _configure_logging()
    logger = logging.getLogger("service-agents")
    settings = ServiceAgentSettings.load()
    if not settings.services:
        logger.warning("No services configured; set SERVICE_AGENTS_SERVICES.")
        return

    try:
        asyncio.run(describe_services(settings))
    except Exception:
        logger.exception("Building service clients failed.")
        raise


if __name__ == "__main__":
    main()
