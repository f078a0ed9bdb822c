from urllib.parse import parse_qs

import httpx
import pytest

from service_agents.errors import TokenRetrievalError
from service_agents.oauth import OAuthTokenHelper, token_url_for
from service_agents.settings import AuthScheme, ServiceSettings

SETTINGS = ServiceSettings(
    host="auth.test.be",
    path="api",
    auth_scheme=AuthScheme.OAUTH_CLIENT_CREDENTIALS,
    oauth_client_id="clientId",
    oauth_client_secret="clientSecret",
    oauth_scope="orders.read",
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _helper(handler, clock: FakeClock | None = None) -> OAuthTokenHelper:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OAuthTokenHelper(client, clock=clock or FakeClock())


def test_token_url_uses_path_addition() -> None:
    assert token_url_for(SETTINGS) == "https://auth.test.be/api/oauth2/token"
    custom = ServiceSettings(host="auth.test.be", oauth_path_addition="/connect/token")
    assert token_url_for(custom) == "https://auth.test.be/connect/token"


@pytest.mark.anyio
async def test_retrieves_token_with_client_credentials_grant() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert str(request.url) == "https://auth.test.be/api/oauth2/token"
        form = parse_qs(request.content.decode())
        assert form["grant_type"] == ["client_credentials"]
        assert form["client_id"] == ["clientId"]
        assert form["client_secret"] == ["clientSecret"]
        assert form["scope"] == ["orders.read"]
        return httpx.Response(200, json={"access_token": "AccessToken", "expires_in": 7200})

    helper = _helper(handler)
    reply = await helper.read_or_retrieve_token(SETTINGS)

    assert reply.access_token == "AccessToken"
    assert reply.expires_in == 7200
    await helper.aclose()


@pytest.mark.anyio
async def test_caches_token_until_shortly_before_expiry() -> None:
    issued: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        issued.append(f"token-{len(issued) + 1}")
        return httpx.Response(200, json={"access_token": issued[-1], "expires_in": 120})

    clock = FakeClock()
    helper = _helper(handler, clock)

    first = await helper.read_or_retrieve_token(SETTINGS)
    clock.now += 30
    second = await helper.read_or_retrieve_token(SETTINGS)
    clock.now += 31
    third = await helper.read_or_retrieve_token(SETTINGS)

    assert first.access_token == "token-1"
    assert second.access_token == "token-1"
    assert third.access_token == "token-2"
    assert len(issued) == 2
    await helper.aclose()


@pytest.mark.anyio
async def test_error_status_raises_token_retrieval_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid_client")

    helper = _helper(handler)
    with pytest.raises(TokenRetrievalError) as exc:
        await helper.read_or_retrieve_token(SETTINGS)
    assert "401" in str(exc.value)
    assert "invalid_client" in str(exc.value)
    await helper.aclose()


@pytest.mark.anyio
async def test_timeout_raises_token_retrieval_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.TimeoutException("mock timeout", request=request)

    helper = _helper(handler)
    with pytest.raises(TokenRetrievalError, match="timed out"):
        await helper.read_or_retrieve_token(SETTINGS)
    await helper.aclose()


@pytest.mark.anyio
async def test_missing_access_token_raises() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token_type": "Bearer"})

    helper = _helper(handler)
    with pytest.raises(TokenRetrievalError, match="access_token"):
        await helper.read_or_retrieve_token(SETTINGS)
    await helper.aclose()


@pytest.mark.anyio
async def test_invalid_json_raises() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    helper = _helper(handler)
    with pytest.raises(TokenRetrievalError, match="invalid JSON"):
        await helper.read_or_retrieve_token(SETTINGS)
    await helper.aclose()
