"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STORE_KEYS = (
    "id",
    "bar_name",
    "address",
    "correct_address",
    "location",
    "lat",
    "lng",
    "price",
    "opening_hours",
    "dance_floor",
    "dance_notes",
    "last_updated",
    "place_id",
    "photo_reference",
    "rating",
    "vibes",
    "moods",
)


@dataclass
class BarRecord:
    id: str
    name: str
    raw_address: str | None = None
    corrected_address: str | None = None
    lat: float | None = None
    lng: float | None = None
    price: int | None = None
    opening_hours: str | dict[str, Any] | list[Any] | None = None
    dance_floor: str = "unknown"
    dance_notes: str | None = None
    tags: list[str] = field(default_factory=list)
    moods: list[str] | None = None
    place_ref: str | None = None
    photo_reference: str | None = None
    rating: float | None = None
    last_updated: str | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is None or self.lng is None:
            return None
        return self.lat, self.lng

    @property
    def display_address(self) -> str | None:
        return self.corrected_address or self.raw_address

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "bar_name": self.name,
            "address": self.raw_address,
            "correct_address": self.corrected_address,
            "location": self.display_address,
            "lat": self.lat,
            "lng": self.lng,
            "price": self.price,
            "opening_hours": self.opening_hours,
            "dance_floor": self.dance_floor,
            "dance_notes": self.dance_notes,
            "last_updated": self.last_updated,
            "place_id": self.place_ref,
            "photo_reference": self.photo_reference,
            "rating": self.rating,
            "vibes": list(self.tags),
            "moods": list(self.moods) if self.moods is not None else None,
        }
        return {key: payload[key] for key in STORE_KEYS}


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float
    result_type: str | None = None


@dataclass(frozen=True)
class PlaceMatch:
    place_id: str | None
    name: str | None
    formatted_address: str | None
    lat: float | None
    lng: float | None


@dataclass(frozen=True)
class PlaceDetails:
    photo_reference: str | None = None
    rating: float | None = None
    user_ratings_total: int | None = None
    reviews: tuple[str, ...] = ()
