"""
Tests for the booking platform API clients using a mocked transport.
"""

import asyncio

import httpx
import pytest

from src.data_acquisition.api_clients import (
    BookingApiClient,
    ShortLinkResolver,
    VenueApiClient,
)

BASE_URL = "https://api.example.com/api"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_venue_client_requests_events_and_city():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "_id": "club_1",
                        "mapLink": "https://maps.google.com/?q=25.2,55.27",
                        "events": [{"_id": "ev_1", "tickets": [{"_id": "t1", "quantitySold": 4}]}],
                    }
                ]
            },
        )

    async def run():
        async with _client(handler) as http:
            client = VenueApiClient(BASE_URL, auth_token="secret", http_client=http)
            return await client.get_approved_venues(city="Dubai")

    venues = asyncio.run(run())

    assert seen["path"] == "/api/venues"
    assert seen["params"] == {"includeEvents": "true", "city": "Dubai"}
    assert seen["auth"] == "Bearer secret"
    assert venues[0].id == "club_1"
    assert venues[0].tickets_sold == 4


def test_venue_client_omits_city_when_not_given():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"items": []})

    async def run():
        async with _client(handler) as http:
            return await VenueApiClient(BASE_URL, http_client=http).get_approved_venues()

    assert asyncio.run(run()) == []
    assert seen["params"] == {"includeEvents": "true"}


def test_venue_client_raises_on_server_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"message": "down"})

    async def run():
        async with _client(handler) as http:
            await VenueApiClient(BASE_URL, http_client=http).get_approved_venues()

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(run())


def test_booking_client_parses_orders():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "_id": "user_1",
                    "orders": [
                        {
                            "_id": "order_1",
                            "quantity": 2,
                            "isPaid": True,
                            "transactionId": "tx_9",
                            "event": {"_id": "ev_1", "name": "Friday Night"},
                            "club": {"_id": "club_1", "name": "Club", "city": "Dubai"},
                            "ticket": {"_id": "t1", "name": "GA", "price": 100},
                        }
                    ],
                },
            },
        )

    async def run():
        async with _client(handler) as http:
            return await BookingApiClient(BASE_URL, http_client=http).get_bookings("paid")

    response = asyncio.run(run())

    assert seen["path"] == "/api/bookings/paid"
    assert response.success is True
    assert response.orders[0].id == "order_1"
    assert response.orders[0].quantity == 2
    assert response.orders[0].is_paid is True
    assert response.orders[0].club["city"] == "Dubai"


def test_resolver_returns_location_header_without_following():
    seen = {"calls": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["calls"] += 1
        return httpx.Response(
            302,
            headers={"Location": "https://www.google.com/maps/place/X/@25.1,55.2,17z"},
        )

    async def run():
        async with _client(handler) as http:
            resolver = ShortLinkResolver(http_client=http)
            return await resolver.resolve("https://maps.app.goo.gl/abc123")

    assert asyncio.run(run()) == "https://www.google.com/maps/place/X/@25.1,55.2,17z"
    assert seen["calls"] == 1


def test_resolver_returns_none_without_location():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    async def run():
        async with _client(handler) as http:
            return await ShortLinkResolver(http_client=http).resolve("https://maps.app.goo.gl/x")

    assert asyncio.run(run()) is None


def test_resolver_swallows_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        async with _client(handler) as http:
            return await ShortLinkResolver(http_client=http).resolve("https://maps.app.goo.gl/x")

    assert asyncio.run(run()) is None


def test_resolver_adds_scheme_to_bare_short_link():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(
            301,
            headers={"Location": "https://www.google.com/maps?q=25.1,55.2"},
        )

    async def run():
        async with _client(handler) as http:
            resolver = ShortLinkResolver(http_client=http)
            assert resolver.is_short_link("maps.app.goo.gl/abc")
            return await resolver.resolve("maps.app.goo.gl/abc")

    assert asyncio.run(run()) == "https://www.google.com/maps?q=25.1,55.2"
    assert seen["url"] == "https://maps.app.goo.gl/abc"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://maps.app.goo.gl/gQAMWkrbs7zWdjZf6", True),
        ("maps.app.goo.gl/gQAMWkrbs7zWdjZf6", True),
        ("https://goo.gl/maps/abcdef", True),
        ("https://goo.gl/other", False),
        ("https://www.google.com/maps/place/@25.1,55.2", False),
        ("", False),
        (None, False),
    ],
)
def test_is_short_link(url, expected):
    resolver = ShortLinkResolver(http_client=httpx.AsyncClient())

    assert resolver.is_short_link(url) is expected
