# Master Data Service Package
"""
Demand aggregation and refresh lifecycle for the live venue heatmap.

Turns approved venues into weighted demand points and keeps heatmap and
booking data fresh without letting stale responses overwrite newer ones.
"""

from .data_aggregator import DemandAggregator
from .refresh_controller import (
    BookingsPollingController,
    HeatmapController,
    RefreshController,
)

__all__ = [
    "DemandAggregator",
    "RefreshController",
    "HeatmapController",
    "BookingsPollingController",
]
