"""Run and record identifier helpers."""

from __future__ import annotations

import re
from datetime import datetime, timezone

_WHITESPACE = re.compile(r"\s+")


def generate_run_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("run-%Y%m%dT%H%M%S%fZ")


def slugify(name: str) -> str:
    """Lower-case the name and join its words with hyphens."""
    return _WHITESPACE.sub("-", name.strip().lower())


def name_key(name: str | None) -> str:
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name.strip().lower())
