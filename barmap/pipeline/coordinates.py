"""Coordinate overwrite policy.

A coordinate is a placeholder when the provider reports a city-level match or
when it sits within ``placeholder_radius_m`` of the configured city center.
A fresh result replaces the stored coordinate unless the fresh result is a
placeholder and the stored one is not.
"""

from __future__ import annotations

from barmap.common.geometry import distance_m
from barmap.common.models import BarRecord, GeoPoint

PLACEHOLDER_RESULT_TYPES = {"city", "county", "state", "country"}


def is_placeholder(lat: float, lng: float, region_config: dict, result_type: str | None = None) -> bool:
    if result_type and result_type.lower() in PLACEHOLDER_RESULT_TYPES:
        return True
    center = region_config["center"]
    radius = float(region_config["placeholder_radius_m"])
    return distance_m(lat, lng, center["lat"], center["lng"]) <= radius


def should_replace(record: BarRecord, candidate: GeoPoint, region_config: dict) -> bool:
    existing = record.coordinates
    if existing is None:
        return True
    if not is_placeholder(candidate.lat, candidate.lng, region_config, candidate.result_type):
        return True
    return is_placeholder(existing[0], existing[1], region_config)


def apply_coordinates(record: BarRecord, candidate: GeoPoint | None, region_config: dict) -> bool:
    """Store the candidate if policy allows; return True when coordinates changed."""
    if candidate is None or not should_replace(record, candidate, region_config):
        return False
    changed = record.coordinates != (candidate.lat, candidate.lng)
    record.lat = candidate.lat
    record.lng = candidate.lng
    return changed
