"""Match a free-text request to bar ids through the chat collaborator."""

from __future__ import annotations

import json
from dataclasses import dataclass

from barmap.common.errors import InputError
from barmap.common.models import BarRecord
from barmap.sources.openai_chat import ChatClient, extract_json_object

DEFAULT_REPLY = "Here are some matches."

SYSTEM_PROMPT = (
    "You are a helpful assistant for a Stockholm bar map. You ONLY recommend bars from the list below. "
    "Match the user's request to bar ids by vibe, type (gay bar, dance, date, chill, party, girls night), "
    'price, or name. Return a JSON object with exactly two keys: "barIds" (array of bar ids from the list '
    'that match) and "reply" (one short friendly sentence in English). If nothing matches well, return a few '
    'closest matches anyway. Use only the "id" values from the list.'
)


@dataclass(frozen=True)
class MatchResult:
    bar_ids: list[str]
    reply: str

    def to_dict(self) -> dict:
        return {"barIds": list(self.bar_ids), "reply": self.reply}


def summarize_bar(record: BarRecord) -> str:
    hours = record.opening_hours
    if hours is not None and not isinstance(hours, str):
        hours = json.dumps(hours, ensure_ascii=False)
    price = f"{record.price} kr" if record.price is not None else "unknown"
    notes = f" | {record.dance_notes}" if record.dance_notes else ""
    vibes = ", ".join(record.tags) or "none"
    return (
        f'- id: "{record.id}" | name: "{record.name}" | vibes: {vibes} | '
        f"dance_floor: {record.dance_floor}{notes} | beer: {price} | hours: {hours or 'unknown'}"
    )


def parse_match_reply(reply: str, known_ids: set[str]) -> MatchResult:
    parsed = extract_json_object(reply)
    if parsed is None:
        return MatchResult(bar_ids=[], reply=DEFAULT_REPLY)
    raw_ids = parsed.get("barIds")
    bar_ids: list[str] = []
    if isinstance(raw_ids, list):
        for bar_id in raw_ids:
            if isinstance(bar_id, str) and bar_id in known_ids and bar_id not in bar_ids:
                bar_ids.append(bar_id)
    text = parsed.get("reply")
    return MatchResult(bar_ids=bar_ids, reply=text if isinstance(text, str) and text.strip() else DEFAULT_REPLY)


def match_bars(message: str, records: list[BarRecord], client: ChatClient, matcher_config: dict) -> MatchResult:
    message = (message or "").strip()
    if not message:
        raise InputError('Missing "message" for bar matching')

    bar_list = "\n".join(summarize_bar(record) for record in records)
    user_prompt = (
        f"Bar list:\n{bar_list}\n\nUser request: {message}\n\n"
        'Respond with JSON only: {"barIds": ["id1", "id2"], "reply": "Your short message"}'
    )
    reply = client.complete(
        model=matcher_config["model"],
        system_prompt=SYSTEM_PROMPT,
        user_prompt=user_prompt,
        temperature=float(matcher_config["temperature"]),
        max_tokens=int(matcher_config["max_tokens"]),
    )
    return parse_match_reply(reply, {record.id for record in records})
