"""
Unified data models for the venue demand heatmap.

This module consolidates the geographic value types and the external record
shapes into a single location shared across the application.
"""

from .core_models import (
    AggregationResult,
    BookingResponse,
    Coordinate,
    FetchState,
    Order,
    Ticket,
    VenueEvent,
    VenueRecord,
    Viewport,
    WeightedPoint,
    is_valid_coordinate,
)

__all__ = [
    "AggregationResult",
    "BookingResponse",
    "Coordinate",
    "FetchState",
    "Order",
    "Ticket",
    "VenueEvent",
    "VenueRecord",
    "Viewport",
    "WeightedPoint",
    "is_valid_coordinate",
]
