"""Coordinate conversions between WGS84, local meters and Web Mercator."""
import math
from typing import Tuple

import numpy as np
from pyproj import Transformer

# WGS84 semi-major axis in meters
EARTH_RADIUS = 6378137.0
MAX_LATITUDE = 85.0511287798
MERCATOR_EXTENT = math.pi * EARTH_RADIUS

_TO_MERCATOR = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


def meters_per_degree(lat: float) -> Tuple[float, float]:
    """
    Local scale of one degree of longitude and latitude.
    
    Args:
        lat: Latitude at which the scale is evaluated
        
    Returns:
        Tuple of (meters per degree longitude, meters per degree latitude)
    """
    meters_per_lat = 2.0 * math.pi * EARTH_RADIUS / 360.0
    return (meters_per_lat * math.cos(math.radians(lat)), meters_per_lat)


def local_converter(lng: float, lat: float):
    """
    Return a coordinate transform from WGS84 into local meters centred on (lng, lat).
    
    The transform accepts and returns (N, 2) arrays so it can be applied
    with ``shapely.transform``.
    """
    center = np.array([lng, lat], dtype=float)
    scale = np.array(meters_per_degree(lat), dtype=float)
    return lambda coords: (coords - center) * scale


def to_mercator(lng: float, lat: float) -> Tuple[float, float]:
    """Project WGS84 coordinates to Web Mercator, clamping polar latitudes."""
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    lng = max(-180.0, min(180.0, lng))
    return _TO_MERCATOR.transform(lng, lat)
