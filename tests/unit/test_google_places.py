import pytest

from barmap.common.errors import InvalidCredentialError
from barmap.sources.google_places import (
    REVIEW_FIELDS,
    PlacesApiError,
    PlacesClient,
    parse_details,
    parse_find_place,
)

PLACES_CFG = {
    "find_endpoint": "https://places.test/find",
    "details_endpoint": "https://places.test/details",
    "query_suffix": ", Södermalm, Stockholm",
    "language": "sv",
    "details_language": "en",
    "bias": {"lat": 59.317, "lng": 18.07, "radius_m": 2500},
    "min_interval_seconds": 0.35,
}

FIND_OK = {
    "status": "OK",
    "candidates": [
        {
            "formatted_address": "Tjärhovsgatan 4, 116 21 Stockholm, Sverige",
            "name": "Kvarnen",
            "geometry": {"location": {"lat": 59.3148, "lng": 18.0735}},
            "place_id": "ChIJkvarnen",
        }
    ],
}


class FakeHttpClient:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def get_json(self, url, *, provider, params=None, **_kwargs):
        self.calls.append({"url": url, "provider": provider, "params": params})
        return self.payload


def test_find_place_builds_biased_query():
    client = FakeHttpClient(FIND_OK)
    places = PlacesClient(client, PLACES_CFG, "key-123")

    match = places.find_place("Kvarnen")

    params = client.calls[0]["params"]
    assert params["input"] == "Kvarnen, Södermalm, Stockholm"
    assert params["locationbias"] == "circle:2500@59.317,18.07"
    assert params["key"] == "key-123"
    assert client.calls[0]["provider"] == "google_places"
    assert match.place_id == "ChIJkvarnen"
    assert match.lat == 59.3148
    assert match.formatted_address.startswith("Tjärhovsgatan 4")


def test_find_place_zero_results_is_none():
    assert parse_find_place({"status": "ZERO_RESULTS", "candidates": []}) is None


def test_find_place_invalid_key_is_fatal():
    with pytest.raises(InvalidCredentialError):
        parse_find_place({"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."})


def test_find_place_other_status_is_per_record_error():
    with pytest.raises(PlacesApiError):
        parse_find_place({"status": "OVER_QUERY_LIMIT"})


def test_parse_details_extracts_photo_rating_and_reviews():
    payload = {
        "status": "OK",
        "result": {
            "photos": [{"photo_reference": "photo-1"}, {"photo_reference": "photo-2"}],
            "rating": 4.4,
            "user_ratings_total": 1203,
            "reviews": [{"text": f" review {idx} "} for idx in range(7)] + [{"text": ""}],
        },
    }

    details = parse_details(payload)

    assert details.photo_reference == "photo-1"
    assert details.rating == 4.4
    assert details.user_ratings_total == 1203
    assert details.reviews == ("review 0", "review 1", "review 2", "review 3", "review 4")


def test_parse_details_non_ok_is_none():
    assert parse_details({"status": "NOT_FOUND"}) is None


def test_place_details_requests_review_fields():
    client = FakeHttpClient({"status": "OK", "result": {}})
    places = PlacesClient(client, PLACES_CFG, "key-123")

    details = places.place_details("ChIJkvarnen", fields=REVIEW_FIELDS)

    assert client.calls[0]["params"]["fields"] == REVIEW_FIELDS
    assert client.calls[0]["params"]["language"] == "en"
    assert details.photo_reference is None
    assert details.reviews == ()


def test_find_place_malformed_candidate_is_per_record_error():
    with pytest.raises(PlacesApiError):
        parse_find_place({"status": "OK", "candidates": ["x"]})


def test_find_place_tolerates_malformed_geometry():
    match = parse_find_place({"status": "OK", "candidates": [{"place_id": "ChIJ1", "geometry": "x"}]})
    assert match.place_id == "ChIJ1"
    assert match.lat is None
    assert match.lng is None


@pytest.mark.parametrize(
    "result",
    ["garbage", None, ["x"]],
)
def test_parse_details_malformed_result_is_none(result):
    assert parse_details({"status": "OK", "result": result}) is None


def test_parse_details_skips_malformed_photos_and_reviews():
    details = parse_details(
        {
            "status": "OK",
            "result": {"photos": ["x"], "reviews": ["bad", {"text": 5}, {"text": "Good beer"}], "rating": "n/a"},
        }
    )

    assert details.photo_reference is None
    assert details.rating is None
    assert details.reviews == ("Good beer",)
