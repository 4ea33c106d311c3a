"""
API client classes for the booking platform.

All network calls are coroutines on a shared httpx.AsyncClient so a caller can
cancel them mid-flight by cancelling the task awaiting them.
"""

import logging
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

import httpx

from config.constants import SHORT_LINK_HOSTS
from shared.models import BookingResponse, VenueRecord

logger = logging.getLogger(__name__)


class ApiResponseError(Exception):
    """Raised when the API answers but reports an unsuccessful result."""


class BaseApiClient:
    """Shared HTTP plumbing for the booking platform clients."""

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/json"}
        if auth_token:
            self.headers["Authorization"] = f"Bearer {auth_token}"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def _get_json(self, path: str, params: Optional[Dict] = None) -> Dict:
        """Make a GET request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} params={params}")

        response = await self._client.get(url, params=params, headers=self.headers)
        response.raise_for_status()
        return response.json()

    async def aclose(self):
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


class VenueApiClient(BaseApiClient):
    """Client for the approved-venue listing."""

    def __init__(self, base_url: str, venues_path: str = "/venues", **kwargs):
        super().__init__(base_url, **kwargs)
        self.venues_path = venues_path

    async def get_approved_venues(self, city: Optional[str] = None) -> List[VenueRecord]:
        """
        Fetch approved venues with their active events and tickets.

        Args:
            city: Optional city name to filter on server side

        Returns:
            List of VenueRecord objects
        """
        params = {"includeEvents": "true"}
        if city:
            params["city"] = city

        payload = await self._get_json(self.venues_path, params=params)
        items = (payload or {}).get("items") or []
        return [VenueRecord.from_dict(item) for item in items]


class BookingApiClient(BaseApiClient):
    """Client for the user booking list."""

    def __init__(self, base_url: str, bookings_path: str = "/bookings", **kwargs):
        super().__init__(base_url, **kwargs)
        self.bookings_path = bookings_path

    async def get_bookings(self, status: str) -> BookingResponse:
        """Fetch the bookings with a given status ('paid', 'scanned', ...)."""
        payload = await self._get_json(f"{self.bookings_path}/{status}")
        return BookingResponse.from_dict(payload or {})


def _with_scheme(url: str) -> str:
    """Short links are often shared without a scheme; assume https."""
    return url if "://" in url else f"https://{url}"


class ShortLinkResolver:
    """Resolves short map links to their long form by reading one redirect."""

    def __init__(
        self,
        short_link_hosts: Iterable[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.short_link_hosts = list(short_link_hosts or SHORT_LINK_HOSTS)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def is_short_link(self, url: str) -> bool:
        """Check whether a link points at one of the known short-link hosts."""
        if not url or not isinstance(url, str):
            return False

        parsed = urlparse(_with_scheme(url))
        host = (parsed.hostname or "").lower()
        if host.startswith("www."):
            host = host[4:]
        location = f"{host}{parsed.path}"

        for entry in self.short_link_hosts:
            entry_host = entry.split("/", 1)[0]
            if "/" in entry:
                if location == entry or location.startswith(f"{entry}/"):
                    return True
            elif host == entry_host:
                return True
        return False

    async def resolve(self, url: str) -> Optional[str]:
        """
        Read the redirect target of a short link.

        Args:
            url: Short link to resolve

        Returns:
            Value of the Location header, or None when there is none or the
            request failed
        """
        try:
            # Status is not validated: redirects are 3xx by nature
            response = await self._client.get(_with_scheme(url), follow_redirects=False)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Error resolving short URL {url}: {e}")
            return None

        location = response.headers.get("location")
        if not location:
            logger.warning(
                f"Short URL {url} returned {response.status_code} without a Location header"
            )
            return None
        return location

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()
