import math
from dataclasses import dataclass
from math import radians, cos, sin, atan2, sqrt, degrees
from typing import Any

from src.transit_bc.exceptions import InvalidCoordinatesError


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


def _as_degrees(value: Any, name: str) -> float:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCoordinatesError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidCoordinatesError(f"{name} must be finite, got {value!r}")
    return value


@dataclass(frozen=True)
class Coordinates:
    """Geographic point with latitude and longitude in degrees."""
    lat: float
    lon: float

    def __post_init__(self):
        lat = _as_degrees(self.lat, "lat")
        lon = _as_degrees(self.lon, "lon")
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinatesError(f"lat out of range [-90, 90]: {lat}")
        if not -180.0 <= lon <= 180.0:
            raise InvalidCoordinatesError(f"lon out of range [-180, 180]: {lon}")
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lon", lon)

    @classmethod
    def parse(cls, value: Any) -> "Coordinates":
        """Build coordinates from the shapes clients send.

        Accepts:
            - [lat, lon] or (lat, lon)
            - {"lat": ..., "lng": ...}
            - {"lat": ..., "lon": ...}

        Raises:
            InvalidCoordinatesError: for any other shape or invalid values
        """
        if isinstance(value, Coordinates):
            return value
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise InvalidCoordinatesError(f"Expected [lat, lon], got {value!r}")
            return cls(value[0], value[1])
        if isinstance(value, dict) and "lat" in value:
            if "lng" in value:
                return cls(value["lat"], value["lng"])
            if "lon" in value:
                return cls(value["lat"], value["lon"])
        raise InvalidCoordinatesError(f"Unsupported coordinate format: {value!r}")

    def distance_to(self, other: "Coordinates") -> float:
        """Distance to another point in kilometers."""
        return haversine_distance_km(self, other)


def haversine_distance_km(a: Coordinates, b: Coordinates) -> float:
    """Calculate the great-circle distance between two points using the Haversine formula.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in kilometers
    """
    lat1_rad = radians(a.lat)
    lat2_rad = radians(b.lat)
    delta_lat = radians(b.lat - a.lat)
    delta_lon = radians(b.lon - a.lon)

    h = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    h = min(1.0, h)  # Rounding can push h just above 1 for antipodal points
    c = 2 * atan2(sqrt(h), sqrt(1 - h))

    return EARTH_RADIUS_KM * c


def bearing_degrees(a: Coordinates, b: Coordinates) -> float:
    """Calculate initial bearing from point a to point b.

    Returns:
        Bearing in degrees (0-360, where 0=North, 90=East, 180=South, 270=West)
    """
    lat1_rad = radians(a.lat)
    lat2_rad = radians(b.lat)
    delta_lon = radians(b.lon - a.lon)

    x = sin(delta_lon) * cos(lat2_rad)
    y = cos(lat1_rad) * sin(lat2_rad) - sin(lat1_rad) * cos(lat2_rad) * cos(delta_lon)

    initial_bearing = atan2(x, y)
    compass_bearing = (degrees(initial_bearing) + 360) % 360

    return round(compass_bearing, 1)
