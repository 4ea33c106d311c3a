"""
Grid-based spatial clustering for the demand heatmap.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from config.constants import DEFAULT_BUCKET_SIZE_DEG
from shared.models import Viewport, WeightedPoint

BucketKey = Tuple[int, int]


@dataclass
class ClusterBucket:
    """Accumulates the points falling into one grid cell during a pass."""

    sum_latitude: float = 0.0
    sum_longitude: float = 0.0
    total_weight: int = 0
    count: int = 0

    def add(self, point: WeightedPoint):
        self.sum_latitude += point.latitude
        self.sum_longitude += point.longitude
        self.total_weight += point.weight
        self.count += 1

    def centroid(self) -> WeightedPoint:
        """Collapse the bucket into one point; identifiers are dropped."""
        return WeightedPoint(
            latitude=self.sum_latitude / self.count,
            longitude=self.sum_longitude / self.count,
            weight=self.total_weight,
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def bucket_key(
    latitude: float, longitude: float, bucket_size: float = DEFAULT_BUCKET_SIZE_DEG
) -> BucketKey:
    """Get the grid cell key for given coordinates."""
    return (
        _round_half_up(latitude / bucket_size),
        _round_half_up(longitude / bucket_size),
    )


def filter_to_viewport(
    points: Iterable[WeightedPoint], viewport: Optional[Viewport] = None
) -> List[WeightedPoint]:
    """Keep the points inside the viewport; all of them when there is none."""
    if viewport is None:
        return list(points)
    return [p for p in points if viewport.contains(p.latitude, p.longitude)]


def cluster_points(
    points: Iterable[WeightedPoint],
    viewport: Optional[Viewport] = None,
    bucket_size: float = DEFAULT_BUCKET_SIZE_DEG,
) -> List[WeightedPoint]:
    """
    Merge nearby points into grid-cell centroids.

    Args:
        points: Weighted points to cluster (not modified)
        viewport: Optional visible region; points outside are dropped
        bucket_size: Grid cell size in degrees

    Returns:
        One point per non-empty cell at the mean coordinate of its members,
        weighted by the sum of their weights, ordered by cell key
    """
    if bucket_size <= 0:
        raise ValueError(f"bucket_size must be positive, got {bucket_size}")

    buckets: Dict[BucketKey, ClusterBucket] = {}
    for point in filter_to_viewport(points, viewport):
        key = bucket_key(point.latitude, point.longitude, bucket_size)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = ClusterBucket()
        bucket.add(point)

    return [buckets[key].centroid() for key in sorted(buckets)]


def total_weight(points: Iterable[WeightedPoint]) -> int:
    """Sum of weights of the given points."""
    return sum(point.weight for point in points)


class HeatmapGrid:
    """Clusters weighted demand points on a fixed-size degree grid."""

    def __init__(self, bucket_size: Optional[float] = None):
        """
        Initialize heatmap grid.

        Args:
            bucket_size: Grid cell size in degrees
        """
        self.bucket_size = DEFAULT_BUCKET_SIZE_DEG if bucket_size is None else bucket_size

    def cluster(
        self, points: Iterable[WeightedPoint], viewport: Optional[Viewport] = None
    ) -> List[WeightedPoint]:
        """Cluster points against an optional viewport."""
        return cluster_points(points, viewport, self.bucket_size)

    def cell_for(self, latitude: float, longitude: float) -> BucketKey:
        return bucket_key(latitude, longitude, self.bucket_size)

    def export_grid_data(
        self, points: Iterable[WeightedPoint], viewport: Optional[Viewport] = None
    ) -> Dict:
        """Export clustered data for external use."""
        points = list(points)
        clustered = self.cluster(points, viewport)
        return {
            "bucket_size": self.bucket_size,
            "grid_stats": {
                "input_points": len(points),
                "clusters": len(clustered),
                "total_weight": total_weight(clustered),
            },
            "cells": [
                {"latitude": p.latitude, "longitude": p.longitude, "weight": p.weight}
                for p in clustered
            ],
        }
