"""
Core data models for the venue demand heatmap.

This module contains the geographic value types shared by the extraction,
aggregation and clustering layers, plus the external venue and booking record
shapes consumed from the booking API.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from config.constants import (
    DEFAULT_REGION,
    LATITUDE_RANGE,
    LONGITUDE_RANGE,
    VIEWPORT_MIN_DELTA_DEG,
    VIEWPORT_PADDING_DEG,
)


class FetchState(Enum):
    """Enumeration of refresh controller states"""

    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check that a latitude/longitude pair lies within valid ranges."""
    return (
        LATITUDE_RANGE[0] <= latitude <= LATITUDE_RANGE[1]
        and LONGITUDE_RANGE[0] <= longitude <= LONGITUDE_RANGE[1]
    )


@dataclass(frozen=True)
class Coordinate:
    """Geographic coordinate in decimal degrees"""

    latitude: float
    longitude: float

    def __post_init__(self):
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(
                f"Coordinate out of range: ({self.latitude}, {self.longitude})"
            )


@dataclass(frozen=True)
class WeightedPoint:
    """Aggregated demand at one location"""

    latitude: float
    longitude: float
    weight: int
    venue_id: Optional[str] = None
    event_id: Optional[str] = None

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Weight must be non-negative, got {self.weight}")

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class Viewport:
    """Bounding box centered on (latitude, longitude) spanning +/- delta/2"""

    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float

    @property
    def min_latitude(self) -> float:
        return self.latitude - self.latitude_delta / 2

    @property
    def max_latitude(self) -> float:
        return self.latitude + self.latitude_delta / 2

    @property
    def min_longitude(self) -> float:
        return self.longitude - self.longitude_delta / 2

    @property
    def max_longitude(self) -> float:
        return self.longitude + self.longitude_delta / 2

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check whether a point lies inside the box (bounds inclusive)."""
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )

    @classmethod
    def fit(cls, coordinates: Iterable[Coordinate]) -> "Viewport":
        """
        Build a viewport enclosing all coordinates with a small padding.

        Args:
            coordinates: Marker coordinates to enclose

        Returns:
            Viewport centered on the bounds midpoint, or the default region
            when no coordinates are given
        """
        coordinates = list(coordinates)
        if not coordinates:
            return cls(**DEFAULT_REGION)

        latitudes = [c.latitude for c in coordinates]
        longitudes = [c.longitude for c in coordinates]
        min_lat, max_lat = min(latitudes), max(latitudes)
        min_lng, max_lng = min(longitudes), max(longitudes)

        return cls(
            latitude=(min_lat + max_lat) / 2,
            longitude=(min_lng + max_lng) / 2,
            latitude_delta=max(
                max_lat - min_lat + VIEWPORT_PADDING_DEG, VIEWPORT_MIN_DELTA_DEG
            ),
            longitude_delta=max(
                max_lng - min_lng + VIEWPORT_PADDING_DEG, VIEWPORT_MIN_DELTA_DEG
            ),
        )


def _record_id(data: Dict[str, Any]) -> Optional[str]:
    """Records arrive with either a Mongo-style `_id` or a plain `id`."""
    value = data.get("_id", data.get("id"))
    return str(value) if value is not None else None


@dataclass
class Ticket:
    """Ticket type attached to an event"""

    id: Optional[str]
    quantity_sold: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ticket":
        return cls(id=_record_id(data), quantity_sold=int(data.get("quantitySold") or 0))


@dataclass
class VenueEvent:
    """Active event nested under a venue record"""

    id: Optional[str]
    tickets: List[Ticket] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VenueEvent":
        return cls(
            id=_record_id(data),
            tickets=[Ticket.from_dict(t) for t in data.get("tickets") or []],
        )

    @property
    def tickets_sold(self) -> int:
        return sum(ticket.quantity_sold for ticket in self.tickets)


@dataclass
class VenueRecord:
    """Approved venue as returned by the venue API"""

    id: Optional[str]
    map_link: Optional[str] = None
    events: List[VenueEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VenueRecord":
        return cls(
            id=_record_id(data),
            map_link=data.get("mapLink"),
            events=[VenueEvent.from_dict(e) for e in data.get("events") or []],
        )

    @property
    def tickets_sold(self) -> int:
        """Total tickets sold across every active event of the venue."""
        return sum(event.tickets_sold for event in self.events)


@dataclass
class Order:
    """Booking order returned by the booking API"""

    id: Optional[str]
    quantity: int = 0
    is_paid: bool = False
    transaction_id: Optional[str] = None
    event: Dict[str, Any] = field(default_factory=dict)
    club: Dict[str, Any] = field(default_factory=dict)
    ticket: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            id=_record_id(data),
            quantity=int(data.get("quantity") or 0),
            is_paid=bool(data.get("isPaid", False)),
            transaction_id=data.get("transactionId"),
            event=data.get("event") or {},
            club=data.get("club") or {},
            ticket=data.get("ticket") or {},
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class BookingResponse:
    """Envelope of the booking list endpoint"""

    success: bool
    orders: List[Order] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookingResponse":
        payload = data.get("data") or {}
        return cls(
            success=bool(data.get("success", False)),
            orders=[Order.from_dict(o) for o in payload.get("orders") or []],
        )


@dataclass
class AggregationResult:
    """Result of one demand aggregation pass"""

    city: Optional[str]
    venues_received: int
    venues_without_coordinates: int
    venues_without_demand: int
    points_emitted: int
    total_weight: int
    duration_seconds: float
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now()
