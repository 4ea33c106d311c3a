# Demand Aggregator
"""
Demand aggregation service that turns approved venues into weighted heatmap points.

Each venue contributes one point at the coordinate found in its map link,
weighted by the number of tickets sold across its active events. Venues that
cannot be located or that have no sales contribute nothing.
"""

import asyncio
import logging
import time
from typing import List, Optional

from shared.models import AggregationResult, Coordinate, VenueRecord, WeightedPoint
from src.data_acquisition.api_clients import ShortLinkResolver, VenueApiClient
from src.processing.coordinate_extractor import extract_coordinates


class DemandAggregator:
    """
    Aggregates ticket demand per venue from the venue API.

    The venue client and short-link resolver are injected so the aggregator can
    share HTTP clients with the rest of the application and be stubbed in tests.
    """

    def __init__(
        self,
        venue_client: VenueApiClient,
        link_resolver: Optional[ShortLinkResolver] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.venue_client = venue_client
        self.link_resolver = link_resolver
        self.last_result: Optional[AggregationResult] = None

    async def aggregate(self, city: Optional[str] = None) -> List[WeightedPoint]:
        """
        Build weighted demand points for approved venues.

        Args:
            city: Optional city filter passed to the venue API

        Returns:
            One WeightedPoint per located venue with a positive ticket count;
            order is not significant
        """
        start_time = time.monotonic()
        self.logger.info(f"🏢 Aggregating venue demand (city={city or 'all'})")

        venues = await self.venue_client.get_approved_venues(city=city)
        coordinates = await asyncio.gather(
            *(self.resolve_coordinate(venue) for venue in venues)
        )

        points: List[WeightedPoint] = []
        unlocated = 0
        no_demand = 0
        for venue, coordinate in zip(venues, coordinates):
            if coordinate is None:
                unlocated += 1
                self.logger.warning(
                    f"⚠️ Skipping venue {venue.id}: no coordinate in map link {venue.map_link!r}"
                )
                continue

            weight = venue.tickets_sold
            if weight <= 0:
                no_demand += 1
                continue

            points.append(
                WeightedPoint(
                    latitude=coordinate.latitude,
                    longitude=coordinate.longitude,
                    weight=weight,
                    venue_id=venue.id,
                )
            )

        self.last_result = AggregationResult(
            city=city,
            venues_received=len(venues),
            venues_without_coordinates=unlocated,
            venues_without_demand=no_demand,
            points_emitted=len(points),
            total_weight=sum(p.weight for p in points),
            duration_seconds=time.monotonic() - start_time,
        )
        self._log_summary(self.last_result)

        return points

    async def resolve_coordinate(self, venue: VenueRecord) -> Optional[Coordinate]:
        """Find the coordinate of a venue, expanding short links first."""
        link = venue.map_link
        if not link:
            return None

        if self.link_resolver and self.link_resolver.is_short_link(link):
            resolved = await self.link_resolver.resolve(link)
            if not resolved:
                return None
            link = resolved

        return extract_coordinates(link)

    def _log_summary(self, result: AggregationResult):
        self.logger.info(
            f"✅ Aggregated {result.points_emitted} demand points "
            f"(weight={result.total_weight}) from {result.venues_received} venues "
            f"in {result.duration_seconds:.2f}s"
        )
        if result.venues_without_coordinates:
            self.logger.info(
                f"📍 {result.venues_without_coordinates} venues had no usable map link"
            )
        if result.venues_without_demand:
            self.logger.debug(
                f"{result.venues_without_demand} venues had no ticket sales"
            )
