"""
Coordinate utilities shared by routes, services and cache tiers.

SINGLE SOURCE OF TRUTH for:
- Coordinate validation (WGS84 ranges)
- Cache partition keys (coordinates quantized to 4 decimal places)

Location keys:
    4 decimal places ~ 11 m at the equator. Every request within that
    cell shares one cache entry, which bounds cache cardinality.

Uso:
    from backend.api.services.geographic_utils import (
        GeographicUtils,
        make_location_key,
    )

    GeographicUtils.validate_coordinates(lat, lon)
    key = make_location_key(lat, lon)  # "28.6139,77.2090"
"""

import math

from loguru import logger

from backend.core.errors import InvalidCoordinatesError

COORD_PRECISION = 4


def _quantize(value: float) -> str:
    text = f"{round(value, COORD_PRECISION):.{COORD_PRECISION}f}"
    # "-0.0000" and "0.0000" are the same cell
    if float(text) == 0.0:
        text = f"{0.0:.{COORD_PRECISION}f}"
    return text


def make_location_key(latitude: float, longitude: float) -> str:
    """
    Build the cache partition key for a coordinate pair.

    Args:
        latitude: Latitude (-90 to 90)
        longitude: Longitude (-180 to 180)

    Returns:
        "lat,lon" with both values fixed to 4 decimal places
    """
    return f"{_quantize(latitude)},{_quantize(longitude)}"


class GeographicUtils:
    """Coordinate checks with the standard WGS84 bounding box."""

    GLOBAL_BBOX = (-180.0, -90.0, 180.0, 90.0)
    """Bounding box Global (lon_min, lat_min, lon_max, lat_max)."""

    @staticmethod
    def is_valid_coordinate(lat: float, lon: float) -> bool:
        """
        Check that a coordinate pair is finite and inside WGS84 ranges.

        Args:
            lat: Latitude (-90 to 90)
            lon: Longitude (-180 to 180)

        Returns:
            bool: True if valid
        """
        if lat is None or lon is None:
            return False
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        lon_min, lat_min, lon_max, lat_max = GeographicUtils.GLOBAL_BBOX
        return (lat_min <= lat <= lat_max) and (lon_min <= lon <= lon_max)

    @staticmethod
    def validate_coordinates(lat: float, lon: float) -> None:
        """
        Raise if the coordinate pair is invalid.

        Raises:
            InvalidCoordinatesError: Out of range or not finite
        """
        if not GeographicUtils.is_valid_coordinate(lat, lon):
            logger.warning(f"⚠️  Invalid coordinates rejected: ({lat}, {lon})")
            raise InvalidCoordinatesError(lat, lon)
