"""Input readers and alias normalisation into BarRecord."""

from __future__ import annotations

import csv
import io
import json
import re
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from barmap.common.errors import InputError
from barmap.common.geometry import safe_float, valid_lat_lng
from barmap.common.ids import slugify
from barmap.common.models import BarRecord

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "name": ("bar_name", "name"),
    "raw_address": ("address", "full_address", "location"),
    "corrected_address": ("correct_address", "correctAddress"),
    "lat": ("lat", "latitude"),
    "lng": ("lng", "longitude", "lon"),
    "price": ("price", "cheapest_beer_sek"),
    "opening_hours": ("opening_hours", "openingHours", "hours"),
    "dance_floor": ("dance_floor", "danceFloor"),
    "dance_notes": ("dance_notes", "danceNotes"),
    "place_ref": ("place_id", "placeId"),
    "photo_reference": ("photo_reference", "photoReference"),
    "rating": ("rating",),
    "tags": ("vibes", "tags"),
    "moods": ("moods",),
    "last_updated": ("last_updated", "lastUpdated"),
}

ARRAY_KEYS = ("bars", "data")
EMBEDDED_PATTERN = re.compile(
    r'<script\s+type="application/json"\s+id="embedded-bars">([\s\S]*?)</script>'
)
_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def parse_csv_text(text: str) -> list[dict[str, str]]:
    """Parse delimited text with a header row into string mappings.

    Quoted fields may contain commas, newlines and doubled quotes. Values are
    trimmed; rows that are entirely blank are skipped.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        header = next(reader)
    except StopIteration:
        return []
    except csv.Error as exc:
        raise InputError(f"Unparsable CSV header: {exc}") from exc
    header = [column.strip() for column in header]

    rows: list[dict[str, str]] = []
    try:
        for values in reader:
            if not any(value.strip() for value in values):
                continue
            row = {}
            for idx, column in enumerate(header):
                row[column] = values[idx].strip() if idx < len(values) else ""
            rows.append(row)
    except csv.Error as exc:
        raise InputError(f"Unparsable CSV at line {reader.line_num}: {exc}") from exc
    return rows


def rows_from_json_payload(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        rows = None
        for key in ARRAY_KEYS:
            if isinstance(payload.get(key), list):
                rows = payload[key]
                break
        if rows is None:
            raise InputError("JSON object has no 'bars' or 'data' array")
    else:
        raise InputError("JSON source must be an array or an object")
    return [row for row in rows if isinstance(row, dict)]


def extract_embedded_json(html: str) -> list[dict[str, Any]]:
    match = EMBEDDED_PATTERN.search(html)
    if not match:
        raise InputError("Could not find #embedded-bars in HTML source")
    try:
        payload = json.loads(match.group(1).strip())
    except json.JSONDecodeError as exc:
        raise InputError(f"Embedded bar JSON is not valid: {exc}") from exc
    return rows_from_json_payload(payload)


def is_tabular(path: Path) -> bool:
    return path.suffix.lower() not in (".json", ".html", ".htm")


def read_rows(path: Path) -> list[dict[str, Any]]:
    """Read raw rows from a CSV, JSON, or HTML source, in source order."""
    if not path.exists():
        raise InputError(f"Input not found: {path}")
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Could not read input {path}: {exc}") from exc

    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InputError(f"Unparsable JSON in {path}: {exc}") from exc
        return rows_from_json_payload(payload)
    if suffix in (".html", ".htm"):
        return extract_embedded_json(text)
    return parse_csv_text(text)


def clean_text(value: Any) -> str | None:
    """Trim whitespace and one pair of wrapping quotes."""
    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        text = text[1:-1].strip()
    return text or None


def literal_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _first(row: Mapping[str, Any], aliases: Iterable[str], text: Callable[[Any], str | None]) -> Any:
    for alias in aliases:
        value = row.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and text(value) is None:
            continue
        return value
    return None


def parse_price(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_opening_hours(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    if text.startswith("{") or text.startswith('"'):
        candidate = text
        if candidate.startswith('"') and candidate.endswith('"'):
            candidate = candidate[1:-1].replace('""', '"')
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            return text
    return text


def parse_labels(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple, set)):
        items = [str(part).strip() for part in value]
    else:
        return None
    labels: list[str] = []
    for item in items:
        if item and item not in labels:
            labels.append(item)
    return labels


def _raw_address(row: Mapping[str, Any], text: Callable[[Any], str | None]) -> str | None:
    # `location` is the derived display address in stores written by this
    # package, so it only counts when no explicit address key exists.
    explicit = [alias for alias in FIELD_ALIASES["raw_address"] if alias != "location"]
    if any(alias in row for alias in explicit):
        return text(_first(row, explicit, text))
    return text(row.get("location"))


def normalize_row(row: Mapping[str, Any], *, tabular: bool = False) -> BarRecord:
    """Map every accepted alias onto the canonical BarRecord fields.

    Tabular rows come from hand-edited spreadsheets: their text values lose a
    pair of wrapping quotes, blank cells count as missing, and JSON-looking
    opening hours are decoded. Rows from JSON keep their text values as stored.
    """
    text = clean_text if tabular else literal_text

    def field(name: str) -> Any:
        return _first(row, FIELD_ALIASES[name], text)

    name = text(field("name"))
    if name is None or not name.strip():
        name = "Unknown"
    record_id = text(field("id"))
    if record_id is None or not record_id.strip():
        record_id = slugify(name)

    lat = safe_float(field("lat"))
    lng = safe_float(field("lng"))
    if not valid_lat_lng(lat, lng):
        lat, lng = None, None

    dance_floor = clean_text(field("dance_floor"))
    moods = field("moods")
    opening_hours = field("opening_hours")

    return BarRecord(
        id=record_id,
        name=name,
        raw_address=_raw_address(row, text),
        corrected_address=text(field("corrected_address")),
        lat=lat,
        lng=lng,
        price=parse_price(field("price")),
        opening_hours=parse_opening_hours(opening_hours) if tabular else opening_hours,
        dance_floor=dance_floor.lower() if dance_floor else "unknown",
        dance_notes=text(field("dance_notes")),
        tags=parse_labels(field("tags")) or [],
        moods=parse_labels(moods) if moods is not None else None,
        place_ref=text(field("place_ref")),
        photo_reference=text(field("photo_reference")),
        rating=safe_float(field("rating")),
        last_updated=text(field("last_updated")),
    )


def read_records(path: Path) -> list[BarRecord]:
    tabular = is_tabular(path)
    return [normalize_row(row, tabular=tabular) for row in read_rows(path)]
