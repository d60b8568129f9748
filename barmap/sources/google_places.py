"""Google Places (legacy) find-place and details lookups."""

from __future__ import annotations

from typing import Any

from barmap.common.constants import PLACES_PROVIDER
from barmap.common.errors import InvalidCredentialError, StageError
from barmap.common.geometry import safe_float
from barmap.common.http import HttpClient
from barmap.common.models import PlaceDetails, PlaceMatch

FIND_FIELDS = "formatted_address,name,geometry,place_id"
PHOTO_RATING_FIELDS = "photos,rating"
REVIEW_FIELDS = "name,rating,user_ratings_total,reviews"
MAX_REVIEWS = 5


class PlacesApiError(StageError):
    error_code = "PLACES_API_ERROR"


def _check_status(payload: Any, accepted: set[str]) -> dict:
    if not isinstance(payload, dict):
        raise PlacesApiError("Places API returned a non-object payload")
    status = payload.get("status")
    if status in accepted:
        return payload
    message = payload.get("error_message") or status or "Places API error"
    lowered = str(message).lower()
    if status == "REQUEST_DENIED" or ("invalid" in lowered and "api key" in lowered):
        raise InvalidCredentialError(
            f"Google Places API key is invalid or the Places API is not enabled: {message}"
        )
    raise PlacesApiError(str(message))


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> list:
    return value if isinstance(value, list) else []


def parse_find_place(payload: Any) -> PlaceMatch | None:
    payload = _check_status(payload, {"OK", "ZERO_RESULTS"})
    candidates = _sequence(payload.get("candidates"))
    if not candidates:
        return None
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise PlacesApiError("Places API returned a malformed candidate")
    location = _mapping(_mapping(candidate.get("geometry")).get("location"))
    return PlaceMatch(
        place_id=candidate.get("place_id") or None,
        name=candidate.get("name") or None,
        formatted_address=candidate.get("formatted_address") or None,
        lat=safe_float(location.get("lat")),
        lng=safe_float(location.get("lng")),
    )


def parse_details(payload: Any, *, max_reviews: int = MAX_REVIEWS) -> PlaceDetails | None:
    if not isinstance(payload, dict) or payload.get("status") != "OK":
        return None
    result = payload.get("result")
    if not isinstance(result, dict):
        return None
    photos = _sequence(result.get("photos"))
    photo_reference = _mapping(photos[0]).get("photo_reference") if photos else None
    total = result.get("user_ratings_total")
    reviews = []
    for review in _sequence(result.get("reviews"))[:max_reviews]:
        text = _mapping(review).get("text")
        if isinstance(text, str) and text.strip():
            reviews.append(text.strip())
    return PlaceDetails(
        photo_reference=photo_reference if isinstance(photo_reference, str) and photo_reference else None,
        rating=safe_float(result.get("rating")),
        user_ratings_total=int(total) if isinstance(total, (int, float)) and not isinstance(total, bool) else None,
        reviews=tuple(reviews),
    )


class PlacesClient:
    def __init__(self, http_client: HttpClient, places_config: dict, api_key: str) -> None:
        self.http_client = http_client
        self.config = places_config
        self.api_key = api_key

    def location_bias(self) -> str:
        bias = self.config["bias"]
        return f"circle:{int(bias['radius_m'])}@{bias['lat']},{bias['lng']}"

    def build_query(self, name: str) -> str:
        return f"{name}{self.config['query_suffix']}"

    def find_place(self, name: str) -> PlaceMatch | None:
        params = {
            "input": self.build_query(name),
            "inputtype": "textquery",
            "fields": FIND_FIELDS,
            "locationbias": self.location_bias(),
            "key": self.api_key,
            "language": self.config.get("language", "sv"),
        }
        payload = self.http_client.get_json(
            self.config["find_endpoint"],
            provider=PLACES_PROVIDER,
            params=params,
        )
        return parse_find_place(payload)

    def place_details(self, place_id: str, *, fields: str = PHOTO_RATING_FIELDS, max_reviews: int = MAX_REVIEWS) -> PlaceDetails | None:
        params = {
            "place_id": place_id,
            "fields": fields,
            "key": self.api_key,
            "language": self.config.get("details_language", "en"),
        }
        payload = self.http_client.get_json(
            self.config["details_endpoint"],
            provider=PLACES_PROVIDER,
            params=params,
        )
        return parse_details(payload, max_reviews=max_reviews)
