"""
Wiring for the venue demand heatmap.

Builds controllers from settings with explicitly constructed, injected clients.
"""

import logging
from typing import Optional

import httpx

from config.settings import Settings, get_settings
from shared.models import Viewport
from src.data_acquisition.api_clients import (
    BookingApiClient,
    ShortLinkResolver,
    VenueApiClient,
)
from src.master_data_service.data_aggregator import DemandAggregator
from src.master_data_service.refresh_controller import (
    BookingsPollingController,
    HeatmapController,
)
from src.processing.grid_manager import HeatmapGrid

logger = logging.getLogger(__name__)


def build_http_client(settings: Optional[Settings] = None) -> httpx.AsyncClient:
    """Create the shared HTTP client used by every API client."""
    settings = settings or get_settings()
    return httpx.AsyncClient(timeout=settings.api.timeout_seconds)


def build_heatmap_controller(
    http_client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
    city: Optional[str] = None,
    viewport: Optional[Viewport] = None,
    enabled: bool = True,
) -> HeatmapController:
    """Assemble a heatmap controller on top of a shared HTTP client."""
    settings = settings or get_settings()

    venue_client = VenueApiClient(
        settings.api.base_url,
        venues_path=settings.api.venues_path,
        auth_token=settings.api.auth_token,
        http_client=http_client,
    )
    resolver = ShortLinkResolver(
        short_link_hosts=settings.heatmap.short_link_hosts,
        http_client=http_client,
    )
    aggregator = DemandAggregator(venue_client, link_resolver=resolver)

    logger.debug(f"Built heatmap controller against {settings.api.base_url}")
    return HeatmapController(
        aggregator,
        city=city,
        viewport=viewport,
        enabled=enabled,
        grid=HeatmapGrid(settings.heatmap.bucket_size_degrees),
    )


def build_bookings_controller(
    http_client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
    status: str = "paid",
    enabled: bool = True,
) -> BookingsPollingController:
    """Assemble a booking list poller on top of a shared HTTP client."""
    settings = settings or get_settings()

    client = BookingApiClient(
        settings.api.base_url,
        bookings_path=settings.api.bookings_path,
        auth_token=settings.api.auth_token,
        http_client=http_client,
    )
    return BookingsPollingController(
        client,
        status=status,
        enabled=enabled,
        interval=settings.heatmap.poll_interval_seconds,
    )
