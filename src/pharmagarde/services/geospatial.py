"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..errors import ValidationError

EARTH_RADIUS_KM = 6371.0


def to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180.0)


def to_degrees(radians: float) -> float:
    return radians * (180.0 / math.pi)


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = to_radians(lat1), to_radians(lat2)
    d_phi = to_radians(lat2 - lat1)
    d_lambda = to_radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def validate_coordinate(latitude: float, longitude: float) -> None:
    """Raise ``ValidationError`` when a coordinate is outside the WGS84 ranges."""

    if not -90.0 <= latitude <= 90.0:
        raise ValidationError(f"Latitude {latitude} is outside [-90, 90]", field="latitude")
    if not -180.0 <= longitude <= 180.0:
        raise ValidationError(f"Longitude {longitude} is outside [-180, 180]", field="longitude")
