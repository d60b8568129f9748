"""Stable record ids and carry-forward of enrichment from an existing store."""

from __future__ import annotations

from barmap.common.ids import name_key, slugify
from barmap.common.models import BarRecord


def _index(existing: list[BarRecord]) -> tuple[dict[str, BarRecord], dict[str, BarRecord]]:
    by_id: dict[str, BarRecord] = {}
    by_name: dict[str, BarRecord] = {}
    for record in existing:
        by_id.setdefault(record.id, record)
        key = name_key(record.name)
        if key:
            by_name.setdefault(key, record)
    return by_id, by_name


def _carry_forward(record: BarRecord, prior: BarRecord) -> None:
    if record.coordinates is None and prior.coordinates is not None:
        record.lat, record.lng = prior.lat, prior.lng
    if record.place_ref is None:
        record.place_ref = prior.place_ref
    if record.photo_reference is None:
        record.photo_reference = prior.photo_reference
    if record.rating is None:
        record.rating = prior.rating
    if not record.tags and prior.tags:
        record.tags = list(prior.tags)
    if record.moods is None and prior.moods is not None:
        record.moods = list(prior.moods)


def ensure_unique_ids(records: list[BarRecord]) -> None:
    seen: set[str] = set()
    for record in records:
        candidate = record.id
        suffix = 2
        while candidate in seen:
            candidate = f"{record.id}-{suffix}"
            suffix += 1
        record.id = candidate
        seen.add(candidate)


def reconcile_with_store(records: list[BarRecord], existing: list[BarRecord]) -> int:
    """Reuse existing ids by name and carry enrichment forward.

    A record whose id is only the slug of its name adopts the id of the stored
    record with the same name; any other record matches by id only. Returns
    the number of records matched.
    """
    by_id, by_name = _index(existing)
    matched = 0
    for record in records:
        prior = by_name.get(name_key(record.name)) if record.id == slugify(record.name) else None
        if prior is not None:
            record.id = prior.id
        else:
            prior = by_id.get(record.id)
        if prior is None:
            continue
        matched += 1
        _carry_forward(record, prior)
    ensure_unique_ids(records)
    return matched
