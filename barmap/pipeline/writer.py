"""JSON store and review CSV output."""

from __future__ import annotations

import json
from pathlib import Path

from barmap.common.constants import REVIEW_CSV_HEADERS
from barmap.common.fs import write_csv, write_json
from barmap.common.models import BarRecord


def _serialize_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value).strip()


def review_row(record: BarRecord) -> dict:
    row = {
        "id": record.id,
        "bar_name": record.name,
        "address": record.display_address,
        "correct_address": record.corrected_address,
        "lat": record.lat,
        "lng": record.lng,
        "price": record.price,
        "opening_hours": record.opening_hours,
        "dance_floor": record.dance_floor,
        "dance_notes": record.dance_notes,
        "last_updated": record.last_updated,
    }
    return {key: _serialize_value(row[key]) for key in REVIEW_CSV_HEADERS}


def write_store(path: Path, records: list[BarRecord]) -> Path:
    """Rewrite the whole store; never merges with what is on disk."""
    write_json(path, [record.to_dict() for record in records], sort_keys=False)
    return path


def write_review_csv(path: Path, records: list[BarRecord]) -> Path:
    write_csv(path, REVIEW_CSV_HEADERS, (review_row(record) for record in records), bom=True)
    return path
