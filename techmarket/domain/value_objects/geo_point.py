"""
Geolocation value object and great-circle distance.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    @classmethod
    def from_coordinates(cls, latitude: Any, longitude: Any) -> Optional["GeoPoint"]:
        """Build a point, or return None when the coordinates count as absent.

        Missing, non-numeric and zero components are all treated as absent,
        so ``(0, 0)`` placeholders never produce a location match.
        """
        lat = _to_float(latitude)
        lon = _to_float(longitude)
        if lat is None or lon is None or lat == 0 or lon == 0:
            return None
        return cls(latitude=lat, longitude=lon)

    def distance_km(self, other: "GeoPoint") -> float:
        """Haversine distance to another point."""
        return haversine_km(
            self.latitude, self.longitude, other.latitude, other.longitude
        )


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
