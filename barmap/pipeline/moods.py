"""Closed-vocabulary mood classification through the chat collaborator."""

from __future__ import annotations

from typing import Iterable

from barmap.common.constants import MOOD_VOCABULARY
from barmap.common.models import BarRecord, PlaceDetails
from barmap.sources.openai_chat import ChatClient, extract_json_array

MOOD_DESCRIPTIONS = {
    "first_date": "good for a first date (not too loud, cozy, easy to talk)",
    "third_date": "romantic, more intimate, good for a later date",
    "chill_date": "relaxed date vibe, low key",
    "party_night": "dancing, loud, night out",
    "chill_hangout": "casual hangout, not necessarily a date",
    "group_friends": "good for groups",
    "cheap_night_out": "budget-friendly",
}

SYSTEM_PROMPT = (
    "You are a bar expert. Given information and reviews about a bar in Stockholm, "
    "assign one or more mood categories.\n"
    f"Categories (use exactly these slugs, no others): {', '.join(MOOD_VOCABULARY)}.\n"
    + "\n".join(f"- {slug}: {MOOD_DESCRIPTIONS[slug]}" for slug in MOOD_VOCABULARY)
    + '\n\nReply with ONLY a JSON array of slugs, e.g. ["chill_date","cheap_night_out"]. No explanation.'
)


def filter_moods(labels: Iterable[object]) -> list[str]:
    """Keep vocabulary labels only, de-duplicated, in reply order."""
    kept: list[str] = []
    for label in labels:
        if isinstance(label, str) and label in MOOD_VOCABULARY and label not in kept:
            kept.append(label)
    return kept


def build_mood_context(record: BarRecord, details: PlaceDetails | None, *, review_chars: int = 400) -> str:
    rating = record.rating
    review_count = None
    reviews: tuple[str, ...] = ()
    if details is not None:
        if details.rating is not None:
            rating = details.rating
        review_count = details.user_ratings_total
        reviews = details.reviews

    lines = [
        f"Name: {record.name}",
        f"Price (cheapest beer SEK): {record.price if record.price is not None else 'unknown'}",
        f"Rating: {rating if rating is not None else 'unknown'}",
        f"Review count: {review_count if review_count is not None else 'unknown'}",
        f"Dance floor: {record.dance_floor or 'unknown'}",
        f"Vibes: {', '.join(record.tags)}",
    ]
    if reviews:
        lines.append("Reviews:\n" + "\n---\n".join(text[:review_chars] for text in reviews))
    else:
        lines.append("(No review text)")
    return "\n".join(lines)


def classify_moods(client: ChatClient, context: str, classifier_config: dict) -> list[str]:
    reply = client.complete(
        model=classifier_config["model"],
        system_prompt=SYSTEM_PROMPT,
        user_prompt=f"Bar info and reviews:\n{context}\n\nReturn JSON array of mood slugs:",
        temperature=float(classifier_config["temperature"]),
        max_tokens=int(classifier_config["max_tokens"]),
    )
    labels = extract_json_array(reply)
    if labels is None:
        return []
    return filter_moods(labels)


def apply_moods(record: BarRecord, labels: list[str]) -> bool:
    """Assign validated moods; an empty result leaves prior moods untouched."""
    valid = filter_moods(labels)
    if not valid:
        return False
    changed = valid != record.moods
    record.moods = valid
    return changed
