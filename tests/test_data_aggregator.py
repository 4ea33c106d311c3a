"""
Tests for venue demand aggregation.
"""

import asyncio
import logging

import httpx
import pytest

from shared.models import VenueRecord
from src.data_acquisition.api_clients import ShortLinkResolver, VenueApiClient
from src.master_data_service.data_aggregator import DemandAggregator
from src.processing.grid_manager import cluster_points


class FakeVenueClient:
    """Stands in for VenueApiClient and records the requested city."""

    def __init__(self, venues):
        self.venues = [VenueRecord.from_dict(v) for v in venues]
        self.cities = []

    async def get_approved_venues(self, city=None):
        self.cities.append(city)
        return self.venues


class FakeResolver:
    def __init__(self, mapping):
        self.mapping = mapping
        self.resolved = []

    def is_short_link(self, url):
        return url.startswith("https://maps.app.goo.gl/")

    async def resolve(self, url):
        self.resolved.append(url)
        return self.mapping.get(url)


def _venue(venue_id, map_link, *sold_per_event):
    return {
        "_id": venue_id,
        "mapLink": map_link,
        "events": [
            {"_id": f"{venue_id}_ev{i}", "tickets": [{"_id": "t", "quantitySold": q} for q in sold]}
            for i, sold in enumerate(sold_per_event)
        ],
    }


def test_weight_is_total_tickets_sold_per_venue():
    client = FakeVenueClient(
        [_venue("club_1", "https://maps.google.com/?q=25.2,55.27", [2, 3], [4])]
    )

    points = asyncio.run(DemandAggregator(client).aggregate())

    assert len(points) == 1
    assert points[0].weight == 9
    assert points[0].venue_id == "club_1"
    assert (points[0].latitude, points[0].longitude) == (25.2, 55.27)


def test_missing_quantity_counts_as_zero():
    client = FakeVenueClient(
        [
            {
                "_id": "club_1",
                "mapLink": "https://maps.google.com/?q=25.2,55.27",
                "events": [{"_id": "ev", "tickets": [{"_id": "a"}, {"_id": "b", "quantitySold": 6}]}],
            }
        ]
    )

    points = asyncio.run(DemandAggregator(client).aggregate())

    assert points[0].weight == 6


def test_zero_demand_and_unlocated_venues_are_skipped(caplog):
    client = FakeVenueClient(
        [
            _venue("sold", "https://maps.google.com/?q=25.2,55.27", [5]),
            _venue("no_sales", "https://maps.google.com/?q=25.3,55.3", [0]),
            _venue("no_events", "https://maps.google.com/?q=25.4,55.4"),
            _venue("no_link", None, [7]),
            _venue("bad_link", "https://maps.google.com/place/Somewhere", [7]),
        ]
    )
    aggregator = DemandAggregator(client)

    with caplog.at_level(logging.WARNING):
        points = asyncio.run(aggregator.aggregate())

    assert [p.venue_id for p in points] == ["sold"]
    assert "bad_link" in caplog.text
    assert aggregator.last_result.venues_received == 5
    assert aggregator.last_result.venues_without_coordinates == 2
    assert aggregator.last_result.venues_without_demand == 2
    assert aggregator.last_result.total_weight == 5


def test_negative_demand_venue_is_skipped_without_failing_batch():
    """A corrupt negative sale count drops that venue only."""
    client = FakeVenueClient(
        [
            _venue("good", "https://maps.google.com/?q=25.2,55.27", [5]),
            _venue("bad", "https://maps.google.com/?q=25.3,55.3", [-1]),
            _venue("refunds", "https://maps.google.com/?q=25.4,55.4", [2, -3]),
        ]
    )
    aggregator = DemandAggregator(client)

    points = asyncio.run(aggregator.aggregate())

    assert [p.venue_id for p in points] == ["good"]
    assert aggregator.last_result.venues_without_demand == 2
    assert aggregator.last_result.total_weight == 5


def test_city_filter_is_forwarded():
    client = FakeVenueClient([])

    asyncio.run(DemandAggregator(client).aggregate(city="Abu Dhabi"))

    assert client.cities == ["Abu Dhabi"]


def test_short_links_are_resolved_before_extraction():
    resolver = FakeResolver(
        {"https://maps.app.goo.gl/abc": "https://www.google.com/maps/place/X/@25.1,55.2,17z"}
    )
    client = FakeVenueClient(
        [
            _venue("short", "https://maps.app.goo.gl/abc", [3]),
            _venue("dead_short", "https://maps.app.goo.gl/gone", [3]),
            _venue("long", "https://maps.google.com/?q=24.45,54.37", [1]),
        ]
    )

    points = asyncio.run(DemandAggregator(client, link_resolver=resolver).aggregate())

    assert sorted(p.venue_id for p in points) == ["long", "short"]
    assert sorted(resolver.resolved) == [
        "https://maps.app.goo.gl/abc",
        "https://maps.app.goo.gl/gone",
    ]


def test_same_bucket_venues_cluster_to_combined_weight():
    """Weights 5, 3 and 0 in one cell give one clustered point of weight 8."""
    client = FakeVenueClient(
        [
            _venue("a", "https://maps.google.com/?q=25.2001,55.2701", [5]),
            _venue("b", "https://maps.google.com/?q=25.2002,55.2702", [3]),
            _venue("c", "https://maps.google.com/?q=25.2003,55.2703", [0]),
        ]
    )

    points = asyncio.run(DemandAggregator(client).aggregate())
    clustered = cluster_points(points)

    assert len(points) == 2
    assert len(clustered) == 1
    assert clustered[0].weight == 8


def test_network_error_propagates():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            venue_client = VenueApiClient("https://api.example.com", http_client=http)
            resolver = ShortLinkResolver(http_client=http)
            await DemandAggregator(venue_client, resolver).aggregate()

    with pytest.raises(httpx.ConnectError):
        asyncio.run(run())


def test_end_to_end_with_mock_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "maps.app.goo.gl":
            return httpx.Response(
                301, headers={"Location": "https://maps.google.com/maps?ll=25.08,55.14"}
            )
        return httpx.Response(
            200,
            json={
                "items": [
                    _venue("club_1", "https://maps.app.goo.gl/xyz", [10, 2]),
                    _venue("club_2", "https://www.google.com/maps/@25.2,55.27,15z", [1]),
                ]
            },
        )

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            aggregator = DemandAggregator(
                VenueApiClient("https://api.example.com", http_client=http),
                ShortLinkResolver(http_client=http),
            )
            return await aggregator.aggregate(city="Dubai")

    points = {p.venue_id: p for p in asyncio.run(run())}

    assert points["club_1"].weight == 12
    assert (points["club_1"].latitude, points["club_1"].longitude) == (25.08, 55.14)
    assert points["club_2"].weight == 1
