"""Sequential enrichment passes over bar records."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Protocol

from barmap.common.constants import CLASSIFIER_PROVIDER, GEOCODER_PROVIDER, PLACES_PROVIDER
from barmap.common.errors import StageError
from barmap.common.logging import log_event, log_warning
from barmap.common.models import BarRecord, GeoPoint, PlaceDetails, PlaceMatch
from barmap.pipeline.address import resolve_address
from barmap.pipeline.coordinates import apply_coordinates
from barmap.pipeline.moods import apply_moods, build_mood_context, classify_moods
from barmap.pipeline.tags import DEFAULT_HIGH_RATING_THRESHOLD, apply_tags
from barmap.sources.google_places import REVIEW_FIELDS
from barmap.sources.openai_chat import ChatClient
from barmap.sources.reader import read_records

PLACE_RESULT_TYPE = "establishment"


class Geocoder(Protocol):
    last_error: str | None

    def geocode(self, address: str) -> GeoPoint | None: ...


class PlacesLookup(Protocol):
    def find_place(self, name: str) -> PlaceMatch | None: ...

    def place_details(self, place_id: str, **kwargs) -> PlaceDetails | None: ...


@dataclass
class RunCounters:
    processed: int = 0
    updated: int = 0
    failed: int = 0
    skipped: int = 0
    unchanged: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class RunContext:
    run_id: str
    command: str
    logger: logging.Logger
    progress_every: int = 15

    def progress(self, counters: RunCounters, total: int) -> None:
        if counters.processed % self.progress_every and counters.processed != total:
            return
        log_event(
            self.logger,
            f"Processed {counters.processed}/{total}",
            run_id=self.run_id,
            command=self.command,
            event="PROGRESS",
            status="ok",
            processed=counters.processed,
            updated=counters.updated,
            failed=counters.failed,
        )

    def record_failure(self, record: BarRecord, reason: str, *, provider: str | None = None, error_code: str | None = None) -> None:
        log_warning(
            self.logger,
            f"{record.name}: {reason}",
            run_id=self.run_id,
            command=self.command,
            record_id=record.id,
            provider=provider,
            event="RECORD_FAIL",
            status="error",
            error_code=error_code,
        )


def load_existing_store(path: Path) -> list[BarRecord]:
    if not path.exists():
        return []
    return read_records(path)


def run_geocode_pass(
    records: list[BarRecord],
    geocoder: Geocoder,
    region_config: dict,
    ctx: RunContext,
) -> RunCounters:
    counters = RunCounters()
    total = len(records)
    for record in records:
        counters.processed += 1
        address = resolve_address(record)
        if address is None:
            counters.skipped += 1
        else:
            point = geocoder.geocode(address)
            if point is None:
                counters.failed += 1
                ctx.record_failure(
                    record,
                    f"geocoding failed for {address!r}: {geocoder.last_error or 'cached miss'}",
                    provider=GEOCODER_PROVIDER,
                    error_code="GEOCODE_MISS",
                )
            elif apply_coordinates(record, point, region_config):
                counters.updated += 1
            else:
                counters.unchanged += 1
        ctx.progress(counters, total)
    return counters


def _apply_place_match(record: BarRecord, match: PlaceMatch, region_config: dict) -> bool:
    changed = False
    if match.formatted_address and match.lat is not None and match.lng is not None:
        point = GeoPoint(lat=match.lat, lng=match.lng, result_type=PLACE_RESULT_TYPE)
        changed = apply_coordinates(record, point, region_config)
        if record.corrected_address != match.formatted_address:
            record.corrected_address = match.formatted_address
            changed = True
    if match.place_id and record.place_ref != match.place_id:
        record.place_ref = match.place_id
        changed = True
    return changed


def _fetch_details(places: PlacesLookup, place_id: str, ctx: RunContext, record: BarRecord, **kwargs) -> PlaceDetails | None:
    try:
        return places.place_details(place_id, **kwargs)
    except StageError as exc:
        ctx.logger.debug(
            f"{record.name}: details lookup failed: {exc}",
            extra={"run_id": ctx.run_id, "command": ctx.command, "record_id": record.id, "provider": PLACES_PROVIDER},
        )
        return None


def run_places_pass(
    records: list[BarRecord],
    places: PlacesLookup,
    region_config: dict,
    ctx: RunContext,
    *,
    high_rating_threshold: float = DEFAULT_HIGH_RATING_THRESHOLD,
) -> RunCounters:
    counters = RunCounters()
    total = len(records)
    for record in records:
        counters.processed += 1
        changed = False
        match: PlaceMatch | None = None
        try:
            match = places.find_place(record.name)
        except StageError as exc:
            counters.failed += 1
            ctx.record_failure(record, str(exc), provider=PLACES_PROVIDER, error_code=exc.error_code)
        else:
            if match is None:
                counters.failed += 1
                ctx.record_failure(record, "no place found", provider=PLACES_PROVIDER, error_code="PLACE_NOT_FOUND")

        if match is not None:
            changed = _apply_place_match(record, match, region_config)
            if match.place_id:
                details = _fetch_details(places, match.place_id, ctx, record)
                if details is not None:
                    record.photo_reference = details.photo_reference or record.photo_reference
                    if details.rating is not None:
                        record.rating = details.rating

        if apply_tags(record, record.rating, high_rating_threshold=high_rating_threshold):
            changed = True
        if changed:
            counters.updated += 1
        elif match is not None:
            counters.unchanged += 1
        ctx.progress(counters, total)
    return counters


def run_mood_pass(
    records: list[BarRecord],
    places: PlacesLookup | None,
    chat: ChatClient,
    classifier_config: dict,
    ctx: RunContext,
) -> RunCounters:
    counters = RunCounters()
    total = len(records)
    for record in records:
        counters.processed += 1
        details = None
        if record.place_ref and places is not None:
            details = _fetch_details(
                places,
                record.place_ref,
                ctx,
                record,
                fields=REVIEW_FIELDS,
                max_reviews=int(classifier_config["max_reviews"]),
            )

        context = build_mood_context(record, details, review_chars=int(classifier_config["review_chars"]))
        try:
            labels = classify_moods(chat, context, classifier_config)
        except StageError as exc:
            counters.failed += 1
            ctx.record_failure(record, f"classification failed: {exc}", provider=CLASSIFIER_PROVIDER, error_code=exc.error_code)
            ctx.progress(counters, total)
            continue

        if not labels:
            counters.failed += 1
            ctx.record_failure(record, "classification returned no valid moods", provider=CLASSIFIER_PROVIDER, error_code="NO_VALID_MOODS")
        elif apply_moods(record, labels):
            counters.updated += 1
        else:
            counters.unchanged += 1
        ctx.progress(counters, total)
    return counters


def run_tags_pass(
    records: list[BarRecord],
    ctx: RunContext,
    *,
    high_rating_threshold: float = DEFAULT_HIGH_RATING_THRESHOLD,
) -> RunCounters:
    counters = RunCounters()
    total = len(records)
    for record in records:
        counters.processed += 1
        if apply_tags(record, record.rating, high_rating_threshold=high_rating_threshold):
            counters.updated += 1
        else:
            counters.unchanged += 1
        ctx.progress(counters, total)
    return counters
