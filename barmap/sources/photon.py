"""Address geocoding against the Photon (Komoot) search API."""

from __future__ import annotations

import re
from typing import Any

from barmap.common.constants import GEOCODER_PROVIDER
from barmap.common.geometry import safe_float, valid_lat_lng
from barmap.common.http import HttpClient, HttpRequestError
from barmap.common.models import GeoPoint

_WHITESPACE = re.compile(r"\s+")


def address_key(address: str) -> str:
    return _WHITESPACE.sub(" ", address.strip())


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def parse_photon_payload(payload: Any) -> GeoPoint | None:
    if not isinstance(payload, dict):
        return None
    features = payload.get("features")
    if not isinstance(features, list) or not features:
        return None
    feature = _mapping(features[0])
    coordinates = _mapping(feature.get("geometry")).get("coordinates")
    if not isinstance(coordinates, list) or len(coordinates) < 2:
        return None
    lng = safe_float(coordinates[0])
    lat = safe_float(coordinates[1])
    if not valid_lat_lng(lat, lng):
        return None
    result_type = _mapping(feature.get("properties")).get("type")
    return GeoPoint(lat=lat, lng=lng, result_type=result_type if isinstance(result_type, str) else None)


class PhotonGeocoder:
    """Forward geocoder with a memo table scoped to one instance (one run)."""

    def __init__(self, http_client: HttpClient, geocoder_config: dict, region_config: dict) -> None:
        self.http_client = http_client
        self.endpoint = geocoder_config["endpoint"]
        self.language = geocoder_config.get("language", "en")
        self.city = region_config["city"]
        self.suffix = region_config["geocode_suffix"]
        self.memo: dict[str, GeoPoint | None] = {}
        self.remote_calls = 0
        self.last_error: str | None = None

    def build_query(self, address: str) -> str:
        if self.city.lower() in address.lower():
            return address
        return f"{address}{self.suffix}"

    def geocode(self, address: str) -> GeoPoint | None:
        key = address_key(address)
        if not key:
            return None
        if key in self.memo:
            return self.memo[key]
        result = self._lookup(key)
        self.memo[key] = result
        return result

    def _lookup(self, address: str) -> GeoPoint | None:
        self.remote_calls += 1
        self.last_error = None
        params = {"q": self.build_query(address), "limit": 1, "lang": self.language}
        try:
            payload = self.http_client.get_json(self.endpoint, provider=GEOCODER_PROVIDER, params=params)
        except HttpRequestError as exc:
            self.last_error = str(exc)
            return None
        result = parse_photon_payload(payload)
        if result is None:
            self.last_error = "no usable result"
        return result
