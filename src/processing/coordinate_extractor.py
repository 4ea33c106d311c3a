"""
Extracts coordinates from map links.

Venue map links arrive in several shapes (place pages, search links, legacy
`ll=` links). Each shape is matched with its own pattern, tried in a fixed
priority order.
"""

import logging
import re
from typing import Optional, Tuple

from shared.models import Coordinate, is_valid_coordinate

logger = logging.getLogger(__name__)

_NUMBER = r"(-?\d+\.\d+)"

# Tried in priority order; the first in-range match decides the result
COORDINATE_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("at", re.compile(rf"@{_NUMBER},{_NUMBER}")),
    ("query", re.compile(rf"q={_NUMBER},{_NUMBER}")),
    ("place", re.compile(rf"place/{_NUMBER},{_NUMBER}")),
    ("ll", re.compile(rf"ll={_NUMBER},{_NUMBER}")),
)


def extract_coordinates(link: str) -> Optional[Coordinate]:
    """
    Extract a coordinate pair from map link text.

    Args:
        link: Full map URL or any text containing one

    Returns:
        Coordinate for the first pattern whose decimal pair is in range, or
        None when no pattern yields a valid coordinate
    """
    if not link or not isinstance(link, str):
        return None

    for name, pattern in COORDINATE_PATTERNS:
        match = pattern.search(link)
        if not match:
            continue

        try:
            latitude = float(match.group(1))
            longitude = float(match.group(2))
        except ValueError:
            logger.debug(f"Unparseable '{name}' coordinate in link: {link}")
            continue

        if not is_valid_coordinate(latitude, longitude):
            logger.debug(
                f"Out of range '{name}' coordinate ({latitude}, {longitude}) in link"
            )
            continue

        return Coordinate(latitude, longitude)

    return None
