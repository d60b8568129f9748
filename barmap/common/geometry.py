"""Geodesic helpers for WGS84 coordinates."""

from __future__ import annotations

from typing import Any

from pyproj import Geod

_GEOD = Geod(ellps="WGS84")


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def valid_lat_lng(lat: float | None, lng: float | None) -> bool:
    if lat is None or lng is None:
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def distance_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    _az12, _az21, dist = _GEOD.inv(lng1, lat1, lng2, lat2)
    return dist
