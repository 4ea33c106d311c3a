"""
Geospatial and refresh constants for the venue demand heatmap.
Tuning values shared by the coordinate, clustering and refresh layers.
"""

# Mean Earth radius used by the haversine distance (meters)
EARTH_RADIUS_M = 6_371_000

# Valid coordinate ranges
LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)

# Grid clustering bucket size in degrees (~1.1 km at the equator)
DEFAULT_BUCKET_SIZE_DEG = 0.01

# Region shown when there is nothing to fit a viewport around (New Delhi)
DEFAULT_REGION = {
    "latitude": 28.6139,
    "longitude": 77.2090,
    "latitude_delta": 0.5,
    "longitude_delta": 0.5,
}

# Padding and minimum span applied when fitting a viewport to markers
VIEWPORT_PADDING_DEG = 0.02
VIEWPORT_MIN_DELTA_DEG = 0.02

# Hosts (optionally with a path prefix) whose links redirect to a full map URL
SHORT_LINK_HOSTS = [
    "maps.app.goo.gl",
    "goo.gl/maps",
    "g.co/kgs",
]

# Booking list polling
DEFAULT_POLL_INTERVAL_SECONDS = 3.0
DEFAULT_BOOKING_STATUS = "paid"

# User-facing error messages
HEATMAP_ERROR_MESSAGE = "Failed to load heatmap"
BOOKINGS_UNSUCCESSFUL_MESSAGE = "Failed to fetch bookings"
BOOKINGS_ERROR_MESSAGE = "Something went wrong"
