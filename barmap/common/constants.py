"""Application constants."""

USER_AGENT = "stockholm-barmap/1.0 (+bar map enrichment)"
COMMANDS = (
    "geocode",
    "places",
    "moods",
    "tags",
    "export-csv",
    "extract-embedded",
    "match",
)
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 1

MOOD_VOCABULARY = (
    "first_date",
    "third_date",
    "chill_date",
    "party_night",
    "chill_hangout",
    "group_friends",
    "cheap_night_out",
)

REVIEW_CSV_HEADERS = [
    "id",
    "bar_name",
    "address",
    "correct_address",
    "lat",
    "lng",
    "price",
    "opening_hours",
    "dance_floor",
    "dance_notes",
    "last_updated",
]

PLACES_PROVIDER = "google_places"
GEOCODER_PROVIDER = "photon"
CLASSIFIER_PROVIDER = "openai"

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "command",
    "record_id",
    "provider",
    "event",
    "status",
    "processed",
    "updated",
    "failed",
    "error_code",
    "message",
)
