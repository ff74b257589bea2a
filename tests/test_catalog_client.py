"""
Tests for the catalog API client.

The catalog is served by an httpx MockTransport.

Run with: pytest tests/test_catalog_client.py -v
"""

import httpx
import pytest

from playlist_harvest.ingestion.base import (
    EndpointError,
    NotFoundError,
    TokenExpiredError,
)
from playlist_harvest.ingestion.catalog import SpotifyCatalogClient
from playlist_harvest.ingestion.rate_limiter import FixedDelayRateLimiter
from tests.fixtures import (
    create_listing_payload,
    create_sample_raw_audio_features,
    create_sample_raw_playlists,
    create_sample_track_entries,
)
from tests.mocks.catalog import MockTokenProvider

API_URL = "https://api.example.com/v1"


class Catalog:
    """Routes catalog requests to canned responses."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, path, *responses):
        self.routes[path] = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get(request.url.path)
        if not responses:
            return httpx.Response(404, json={"error": {"status": 404}})
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )


@pytest.fixture
def catalog():
    return Catalog()


@pytest.fixture
def tokens():
    return MockTokenProvider()


@pytest.fixture
def make_client(catalog, tokens):
    clients = []

    def _make():
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(catalog))
        clients.append(http_client)
        return SpotifyCatalogClient(tokens, base_url=API_URL, http_client=http_client)

    return _make


@pytest.mark.asyncio
async def test_list_playlists_sends_paging_params_and_bearer(catalog, make_client):
    playlists = create_sample_raw_playlists(3)
    catalog.add(
        "/v1/users/spotify/playlists",
        httpx.Response(200, json=create_listing_payload(playlists, offset=0, limit=2)),
    )

    page = await make_client().list_playlists("spotify", offset=0, limit=2)

    assert page.total == 3
    assert [item["id"] for item in page.items] == ["pl0001", "pl0002"]
    request = catalog.requests[0]
    assert request.url.params["offset"] == "0"
    assert request.url.params["limit"] == "2"
    assert request.headers["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
async def test_get_playlist_followers_reads_total(catalog, make_client):
    catalog.add("/v1/playlists/pl0001", httpx.Response(200, json={"followers": {"total": 34500}}))

    followers = await make_client().get_playlist_followers("pl0001")

    assert followers == 34500
    assert catalog.requests[0].url.params["fields"] == "followers.total"


@pytest.mark.asyncio
async def test_list_playlist_tracks(catalog, make_client):
    entries = create_sample_track_entries(["tr1", "tr2"])
    catalog.add(
        "/v1/playlists/pl0001/tracks",
        httpx.Response(200, json=create_listing_payload(entries, limit=100)),
    )

    page = await make_client().list_playlist_tracks("pl0001", offset=0, limit=100)

    assert page.total == 2
    assert page.items[1]["track"]["id"] == "tr2"


@pytest.mark.asyncio
async def test_get_audio_features(catalog, make_client):
    catalog.add(
        "/v1/audio-features/tr1",
        httpx.Response(200, json=create_sample_raw_audio_features("tr1")),
    )

    features = await make_client().get_audio_features("tr1")

    assert features["tempo"] == pytest.approx(171.005)


@pytest.mark.asyncio
async def test_not_found_maps_to_not_found_error(make_client):
    with pytest.raises(NotFoundError) as exc_info:
        await make_client().get_playlist_followers("missing")

    assert exc_info.value.status == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 502])
async def test_other_errors_map_to_endpoint_error(catalog, make_client, status):
    catalog.add("/v1/audio-features/tr1", httpx.Response(status))

    with pytest.raises(EndpointError) as exc_info:
        await make_client().get_audio_features("tr1")

    assert exc_info.value.status == status


@pytest.mark.asyncio
async def test_expired_token_is_renewed_once_and_request_replayed(
    catalog, tokens, make_client
):
    catalog.add(
        "/v1/playlists/pl0001",
        httpx.Response(401, json={"error": {"status": 401}}),
        httpx.Response(200, json={"followers": {"total": 12}}),
    )

    followers = await make_client().get_playlist_followers("pl0001")

    assert followers == 12
    assert len(catalog.requests) == 2
    assert tokens.forced_calls == 1


@pytest.mark.asyncio
async def test_replay_after_401_waits_for_rate_limiter(catalog, tokens):
    waits = []

    async def record_sleep(delay):
        waits.append(delay)

    limiter = FixedDelayRateLimiter(delay_seconds=0.5, sleep=record_sleep)
    catalog.add(
        "/v1/playlists/pl0001",
        httpx.Response(401, json={"error": {"status": 401}}),
        httpx.Response(200, json={"followers": {"total": 12}}),
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(catalog))
    client = SpotifyCatalogClient(
        tokens, base_url=API_URL, http_client=http_client, rate_limiter=limiter
    )

    # The orchestrator throttles before every lookup
    await limiter.throttle()
    followers = await client.get_playlist_followers("pl0001")

    assert followers == 12
    assert len(catalog.requests) == 2
    assert limiter.request_count == 2
    assert waits == [0.5, 0.5]

    await http_client.aclose()


@pytest.mark.asyncio
async def test_successful_request_does_not_throttle_again(catalog, tokens):
    limiter = FixedDelayRateLimiter(delay_seconds=0)
    catalog.add(
        "/v1/audio-features/tr1",
        httpx.Response(200, json=create_sample_raw_audio_features("tr1")),
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(catalog))
    client = SpotifyCatalogClient(
        tokens, base_url=API_URL, http_client=http_client, rate_limiter=limiter
    )

    await client.get_audio_features("tr1")

    assert limiter.request_count == 0

    await http_client.aclose()


@pytest.mark.asyncio
async def test_persistent_401_raises_token_expired(catalog, tokens, make_client):
    catalog.add("/v1/playlists/pl0001", httpx.Response(401))

    with pytest.raises(TokenExpiredError):
        await make_client().get_playlist_followers("pl0001")

    assert len(catalog.requests) == 2
    assert tokens.forced_calls == 1


@pytest.mark.asyncio
async def test_transport_error_maps_to_endpoint_error(tokens):
    def failing(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(failing))
    client = SpotifyCatalogClient(tokens, base_url=API_URL, http_client=http_client)

    with pytest.raises(EndpointError):
        await client.get_audio_features("tr1")

    await http_client.aclose()
