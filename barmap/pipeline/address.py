"""Authoritative address resolution."""

from __future__ import annotations

from barmap.common.models import BarRecord
from barmap.sources.reader import clean_text

NULL_PLACEHOLDER = "null"


def _usable(value: str | None) -> str | None:
    text = clean_text(value)
    if text is None or text.lower() == NULL_PLACEHOLDER:
        return None
    return text


def resolve_address(record: BarRecord) -> str | None:
    """Corrected address wins over the captured one; placeholders resolve to None."""
    return _usable(record.corrected_address) or _usable(record.raw_address)
