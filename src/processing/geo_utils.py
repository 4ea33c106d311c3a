"""
Great-circle distance helpers.
"""

import math
from typing import Callable, Iterable, List, Optional, TypeVar

from config.constants import EARTH_RADIUS_M
from shared.models import Coordinate

T = TypeVar("T")


def haversine_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in meters."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push h marginally past 1 for antipodal points
    h = min(1.0, h)

    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def sort_by_distance(
    origin: Coordinate,
    items: Iterable[T],
    key: Callable[[T], Optional[Coordinate]],
) -> List[T]:
    """
    Sort items by distance from origin, nearest first.

    Args:
        origin: Reference coordinate (usually the user's location)
        items: Items to sort
        key: Returns the coordinate of an item, or None if it has none

    Returns:
        New list ordered by distance; items without a coordinate go last
        in their original order
    """

    def distance(item: T) -> float:
        coordinate = key(item)
        if coordinate is None:
            return math.inf
        return haversine_meters(origin, coordinate)

    return sorted(items, key=distance)


def format_distance(meters: float) -> str:
    """Human-readable straight-line distance, e.g. '1.25 km'."""
    return f"{meters / 1000:.2f} km"
