"""
Tests for the client credentials refresher.

The token endpoint is served by an httpx MockTransport.

Run with: pytest tests/test_auth.py -v
"""

import base64
from urllib.parse import parse_qs

import httpx
import pytest

from playlist_harvest.ingestion.auth import ClientCredentialsRefresher
from playlist_harvest.ingestion.base import AuthenticationError

TOKEN_URL = "https://accounts.example.com/api/token"


class TokenEndpoint:
    """Token endpoint handing out numbered tokens."""

    def __init__(self, status_code: int = 200, body=None):
        self.status_code = status_code
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None or self.status_code != 200:
            return httpx.Response(self.status_code, json=self.body or {})
        return httpx.Response(
            200,
            json={
                "access_token": f"token-{len(self.requests)}",
                "token_type": "Bearer",
                "expires_in": 3600,
            },
        )


def make_refresher(endpoint, client_id="client", client_secret="secret"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
    refresher = ClientCredentialsRefresher(
        client_id=client_id,
        client_secret=client_secret,
        token_url=TOKEN_URL,
        http_client=http_client,
    )
    return refresher, http_client


@pytest.mark.asyncio
async def test_exchange_uses_basic_auth_and_client_credentials_grant():
    endpoint = TokenEndpoint()
    refresher, http_client = make_refresher(endpoint)

    token = await refresher.ensure_token()

    assert token == "token-1"
    request = endpoint.requests[0]
    assert request.method == "POST"
    assert str(request.url) == TOKEN_URL
    expected = base64.b64encode(b"client:secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert parse_qs(request.content.decode()) == {"grant_type": ["client_credentials"]}

    await http_client.aclose()


@pytest.mark.asyncio
async def test_token_is_cached_until_forced():
    endpoint = TokenEndpoint()
    refresher, http_client = make_refresher(endpoint)

    first = await refresher.ensure_token()
    second = await refresher.ensure_token()
    forced = await refresher.ensure_token(force=True)

    assert first == second == "token-1"
    assert forced == "token-2"
    assert refresher.exchange_count == 2
    assert refresher.get_auth_headers() == {"Authorization": "Bearer token-2"}

    await http_client.aclose()


@pytest.mark.asyncio
async def test_invalidate_triggers_new_exchange():
    endpoint = TokenEndpoint()
    refresher, http_client = make_refresher(endpoint)

    await refresher.ensure_token()
    refresher.invalidate()

    assert refresher.is_token_expired()
    assert await refresher.ensure_token() == "token-2"

    await http_client.aclose()


@pytest.mark.asyncio
async def test_rejected_credentials_raise_authentication_error():
    endpoint = TokenEndpoint(status_code=400, body={"error": "invalid_client"})
    refresher, http_client = make_refresher(endpoint)

    with pytest.raises(AuthenticationError):
        await refresher.ensure_token()

    await http_client.aclose()


@pytest.mark.asyncio
async def test_missing_access_token_raises_authentication_error():
    endpoint = TokenEndpoint(body={"token_type": "Bearer"})
    refresher, http_client = make_refresher(endpoint)

    with pytest.raises(AuthenticationError):
        await refresher.ensure_token()

    await http_client.aclose()


@pytest.mark.asyncio
async def test_missing_credentials_raise_without_request():
    endpoint = TokenEndpoint()
    refresher, http_client = make_refresher(endpoint, client_id=None)

    with pytest.raises(AuthenticationError):
        await refresher.ensure_token()

    assert endpoint.requests == []
    await http_client.aclose()


@pytest.mark.asyncio
async def test_close_keeps_shared_client_open():
    endpoint = TokenEndpoint()
    refresher, http_client = make_refresher(endpoint)

    await refresher.close()

    assert not http_client.is_closed
    await http_client.aclose()
