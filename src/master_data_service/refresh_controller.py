# Refresh Controllers
"""
Fetch lifecycle management for live heatmap and booking data.

A controller owns at most one current fetch. Starting a new fetch cancels the
previous one, so only the most recently started request can ever write the
controller's results or error. Cancellation is expected control flow and is
never reported as an error.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config.constants import (
    BOOKINGS_ERROR_MESSAGE,
    BOOKINGS_UNSUCCESSFUL_MESSAGE,
    DEFAULT_BOOKING_STATUS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    HEATMAP_ERROR_MESSAGE,
)
from shared.models import FetchState, Order, Viewport, WeightedPoint
from src.data_acquisition.api_clients import ApiResponseError, BookingApiClient
from src.master_data_service.data_aggregator import DemandAggregator
from src.processing.grid_manager import HeatmapGrid

SleepFunc = Callable[[float], Awaitable[None]]


class RefreshController:
    """
    Base class running cancel-then-fetch cycles.

    Subclasses implement `_run_fetch` (the network work), `_apply_result`
    (store a successful result) and `_error_message` (text for a failure).
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(__name__)
        self.state = FetchState.IDLE
        self.last_outcome: Optional[FetchState] = None
        self.loading = False
        self.error: Optional[str] = None
        self._current_task: Optional[asyncio.Task] = None
        self._disposed = False

        # Statistics
        self._stats = {
            "fetches_started": 0,
            "fetches_succeeded": 0,
            "fetches_failed": 0,
            "fetches_cancelled": 0,
        }

    async def _run_fetch(self) -> Any:
        raise NotImplementedError

    def _apply_result(self, result: Any):
        raise NotImplementedError

    def _error_message(self, error: Exception) -> str:
        return str(error) or "Request failed"

    @property
    def is_fetching(self) -> bool:
        return self._current_task is not None and not self._current_task.done()

    def _start_fetch(self) -> asyncio.Task:
        """Cancel any outstanding fetch and start a new one."""
        if self._disposed:
            raise RuntimeError(f"{self.name} controller has been disposed")

        self._cancel_current()
        self.state = FetchState.FETCHING
        self.loading = True
        self._stats["fetches_started"] += 1

        task = asyncio.create_task(self._fetch_cycle())
        self._current_task = task
        return task

    def _cancel_current(self):
        task = self._current_task
        self._current_task = None
        if task is not None and not task.done():
            task.cancel()
            self._stats["fetches_cancelled"] += 1

    def _is_current(self) -> bool:
        return asyncio.current_task() is self._current_task

    async def _fetch_cycle(self):
        """Run one fetch; only the current task may write observable state."""
        try:
            result = await self._run_fetch()
        except asyncio.CancelledError:
            self.logger.debug(f"{self.name} fetch cancelled")
            raise
        except Exception as e:
            if not self._is_current():
                return
            self._stats["fetches_failed"] += 1
            self.error = self._error_message(e)
            self._finish(FetchState.FAILED)
            self.logger.error(f"❌ {self.name} fetch failed: {e}")
        else:
            if not self._is_current():
                return
            self._stats["fetches_succeeded"] += 1
            self._apply_result(result)
            self.error = None
            self._finish(FetchState.SUCCESS)

    def _finish(self, outcome: FetchState):
        self.last_outcome = outcome
        self.loading = False
        self.state = FetchState.IDLE
        self._current_task = None

    async def _wait(self, task: asyncio.Task):
        """Wait for a fetch without raising if it gets superseded."""
        await asyncio.wait({task})

    async def dispose(self):
        """Cancel outstanding work and release the controller."""
        if self._disposed:
            return
        self._disposed = True

        task = self._current_task
        self._cancel_current()
        if task is not None:
            await asyncio.wait({task})
            self.last_outcome = FetchState.CANCELLED
        self.loading = False
        self.state = FetchState.IDLE
        self.logger.debug(f"{self.name} controller disposed")

    def get_stats(self) -> Dict[str, int]:
        """Get fetch statistics."""
        return dict(self._stats)


class HeatmapController(RefreshController):
    """Keeps clustered venue demand for the map in sync with city and viewport."""

    def __init__(
        self,
        aggregator: DemandAggregator,
        city: Optional[str] = None,
        viewport: Optional[Viewport] = None,
        enabled: bool = True,
        grid: Optional[HeatmapGrid] = None,
    ):
        super().__init__("heatmap")
        self.aggregator = aggregator
        self.city = city
        self.viewport = viewport
        self.enabled = enabled
        self.grid = grid or HeatmapGrid()
        self.raw_points: List[WeightedPoint] = []

    @property
    def points(self) -> List[WeightedPoint]:
        """Clustered points of the last successful fetch within the viewport."""
        return self.grid.cluster(self.raw_points, self.viewport)

    async def mount(self):
        """Initial load."""
        await self.refresh()

    async def refresh(self):
        """Refetch demand now and wait for the result."""
        task = self._trigger()
        if task is not None:
            await self._wait(task)

    def _trigger(self) -> Optional[asyncio.Task]:
        if not self.enabled:
            self._cancel_current()
            self.raw_points = []
            self.loading = False
            self.state = FetchState.IDLE
            return None
        return self._start_fetch()

    def set_city(self, city: Optional[str]) -> Optional[asyncio.Task]:
        """Change the city filter; refetches when it actually changes."""
        if city == self.city:
            return None
        self.city = city
        return self._trigger()

    def set_enabled(self, enabled: bool) -> Optional[asyncio.Task]:
        if enabled == self.enabled:
            return None
        self.enabled = enabled
        return self._trigger()

    def set_viewport(self, viewport: Optional[Viewport]):
        """Move the visible region; clustering is recomputed, nothing is fetched."""
        self.viewport = viewport

    async def _run_fetch(self) -> List[WeightedPoint]:
        return await self.aggregator.aggregate(self.city)

    def _apply_result(self, result: List[WeightedPoint]):
        self.raw_points = list(result)

    def _error_message(self, error: Exception) -> str:
        return str(error) or HEATMAP_ERROR_MESSAGE


class BookingsPollingController(RefreshController):
    """Polls the booking list on a fixed interval."""

    def __init__(
        self,
        client: BookingApiClient,
        status: str = DEFAULT_BOOKING_STATUS,
        enabled: bool = True,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize the polling controller.

        Args:
            client: Booking API client
            status: Booking status to list ('paid' for active, 'scanned' for history)
            enabled: Whether periodic polling runs after the initial fetch
            interval: Seconds between polls
            sleep: Awaitable sleep used by the timer (asyncio.sleep by default)
        """
        super().__init__("bookings")
        self.client = client
        self.status = status
        self.enabled = enabled
        self.interval = interval
        self.refreshing = False
        self.bookings: List[Order] = []
        self._sleep = sleep or asyncio.sleep
        self._timer_task: Optional[asyncio.Task] = None

    @property
    def is_polling(self) -> bool:
        return self.enabled

    async def start(self):
        """Fetch once immediately, then start the timer if polling is enabled."""
        self._start_fetch()
        self._restart_timer()
        polling = f"every {self.interval}s" if self.enabled else "off"
        self.logger.info(
            f"📋 Bookings controller started (status={self.status}, polling={polling})"
        )

    async def refresh(self):
        """Manual pull-to-refresh, tracked separately from background loading."""
        self.refreshing = True
        try:
            await self._wait(self._start_fetch())
        finally:
            self.refreshing = False

    def set_status(self, status: str) -> Optional[asyncio.Task]:
        if status == self.status:
            return None
        self.status = status
        return self._start_fetch()

    def set_polling(self, enabled: bool, interval: Optional[float] = None):
        """Turn periodic polling on or off, optionally changing the interval."""
        self.enabled = enabled
        if interval is not None:
            self.interval = interval
        self._restart_timer()

    def _restart_timer(self):
        self._stop_timer()
        if self.enabled and not self._disposed:
            self._timer_task = asyncio.create_task(self._poll_loop())

    def _stop_timer(self):
        if self._timer_task is not None and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None

    async def _poll_loop(self):
        while not self._disposed:
            await self._sleep(self.interval)
            if self._disposed:
                break
            self._start_fetch()

    async def _run_fetch(self) -> List[Order]:
        response = await self.client.get_bookings(self.status)
        if not response.success:
            raise ApiResponseError(BOOKINGS_UNSUCCESSFUL_MESSAGE)
        return response.orders

    def _apply_result(self, result: List[Order]):
        self.bookings = list(result)

    def _error_message(self, error: Exception) -> str:
        if isinstance(error, ApiResponseError):
            return BOOKINGS_UNSUCCESSFUL_MESSAGE
        return BOOKINGS_ERROR_MESSAGE

    async def dispose(self):
        timer = self._timer_task
        self._stop_timer()
        if timer is not None:
            await asyncio.wait({timer})
        await super().dispose()
