"""Error types raised by the reverse geocoding engine.

All errors inherit from GeocodingError so callers can catch a single type.
Errors raised while talking to the store wrap the underlying duckdb error
as their ``__cause__``.
"""


class GeocodingError(Exception):
    """Base error for the reverse geocoder."""


class DatabaseImportError(GeocodingError):
    """A store could not be registered (malformed or unreadable metadata)."""


class GeometryDecodeError(GeocodingError):
    """A geometry blob read from the store is structurally invalid."""


class StoreAccessError(GeocodingError):
    """The underlying store is unreachable or rejected a query."""


class InterpolationError(GeocodingError):
    """A house-number specification could not be matched to its geometry."""
