from barmap.common.models import BarRecord, PlaceDetails
from barmap.pipeline.moods import apply_moods, build_mood_context, classify_moods, filter_moods

CLASSIFIER_CFG = {"model": "gpt-4o-mini", "temperature": 0.3, "max_tokens": 150}


class FakeChat:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def complete(self, **kwargs):
        self.calls.append(kwargs)
        return self.reply


def test_filter_moods_keeps_vocabulary_only_in_reply_order():
    assert filter_moods(["party_night", "rooftop", "first_date", "party_night", 3]) == [
        "party_night",
        "first_date",
    ]


def test_classify_moods_extracts_first_array_from_reply():
    chat = FakeChat('Sure! ["chill_date", "cheap_night_out", "karaoke"] hope that helps')

    labels = classify_moods(chat, "Name: Kvarnen", CLASSIFIER_CFG)

    assert labels == ["chill_date", "cheap_night_out"]
    assert chat.calls[0]["model"] == "gpt-4o-mini"
    assert chat.calls[0]["max_tokens"] == 150
    assert "Name: Kvarnen" in chat.calls[0]["user_prompt"]


def test_classify_moods_unparsable_reply_is_empty():
    assert classify_moods(FakeChat("no idea"), "ctx", CLASSIFIER_CFG) == []


def test_apply_moods_keeps_prior_when_nothing_valid():
    record = BarRecord(id="x", name="X", moods=["group_friends"])

    assert apply_moods(record, ["rooftop"]) is False
    assert record.moods == ["group_friends"]


def test_apply_moods_replaces_and_reports_change():
    record = BarRecord(id="x", name="X")

    assert apply_moods(record, ["party_night", "group_friends"]) is True
    assert record.moods == ["party_night", "group_friends"]
    assert apply_moods(record, ["party_night", "group_friends"]) is False


def test_build_mood_context_truncates_reviews_and_prefers_fresh_rating():
    record = BarRecord(id="x", name="Kvarnen", price=65, dance_floor="yes", tags=["party"], rating=3.0)
    details = PlaceDetails(rating=4.4, user_ratings_total=1203, reviews=("a" * 600, "short"))

    context = build_mood_context(record, details, review_chars=400)

    assert "Name: Kvarnen" in context
    assert "Price (cheapest beer SEK): 65" in context
    assert "Rating: 4.4" in context
    assert "Review count: 1203" in context
    assert "a" * 400 + "\n---\nshort" in context
    assert "a" * 401 not in context


def test_build_mood_context_without_details():
    context = build_mood_context(BarRecord(id="x", name="X"), None)
    assert "Rating: unknown" in context
    assert "(No review text)" in context
