"""Chat-completion client for the text-classification collaborator."""

from __future__ import annotations

import json
import re
from typing import Any

from barmap.common.constants import CLASSIFIER_PROVIDER
from barmap.common.errors import InvalidCredentialError
from barmap.common.http import HttpClient, HttpRequestError

_ARRAY = re.compile(r"\[[\s\S]*?\]")
_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_array(text: str) -> list[Any] | None:
    match = _ARRAY.search(text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, list) else None


def extract_json_object(text: str) -> dict[str, Any] | None:
    match = _OBJECT.search(text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class ChatClient:
    def __init__(self, http_client: HttpClient, endpoint: str, api_key: str) -> None:
        self.http_client = http_client
        self.endpoint = endpoint
        self.api_key = api_key

    def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            data = self.http_client.post_json(
                self.endpoint,
                provider=CLASSIFIER_PROVIDER,
                payload=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except HttpRequestError as exc:
            if exc.status_code == 401:
                raise InvalidCredentialError("OpenAI rejected the configured API key") from exc
            raise

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return content.strip() if isinstance(content, str) else ""
