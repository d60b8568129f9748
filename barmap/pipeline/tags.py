"""Deterministic vibe tags derived from record fields."""

from __future__ import annotations

from barmap.common.models import BarRecord

DEFAULT_HIGH_RATING_THRESHOLD = 4.2


def derive_tags(
    record: BarRecord,
    rating: float | None = None,
    *,
    high_rating_threshold: float = DEFAULT_HIGH_RATING_THRESHOLD,
) -> list[str]:
    tags: list[str] = []
    if (record.dance_floor or "").strip().lower() == "yes":
        tags.extend(["party", "girls-night"])
    if rating is not None and rating >= high_rating_threshold:
        tags.extend(["dating", "chill"])
    if not tags:
        tags.append("chill")
    return list(dict.fromkeys(tags))


def apply_tags(record: BarRecord, rating: float | None = None, *, high_rating_threshold: float = DEFAULT_HIGH_RATING_THRESHOLD) -> bool:
    tags = derive_tags(record, rating, high_rating_threshold=high_rating_threshold)
    changed = tags != record.tags
    record.tags = tags
    return changed
