import pytest

from barmap.common.errors import InvalidCredentialError
from barmap.common.http import HttpRequestError
from barmap.sources.openai_chat import ChatClient, extract_json_array, extract_json_object


class FakeHttpClient:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post_json(self, url, *, provider, payload, headers=None, **_kwargs):
        self.calls.append({"url": url, "provider": provider, "payload": payload, "headers": headers})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _complete(client):
    return ChatClient(client, "https://chat.test/v1/chat/completions", "sk-test").complete(
        model="gpt-4o-mini",
        system_prompt="system",
        user_prompt="user",
        temperature=0.3,
        max_tokens=150,
    )


def test_complete_returns_stripped_content_and_sends_bearer_key():
    client = FakeHttpClient({"choices": [{"message": {"content": '  ["chill_date"] '}}]})

    assert _complete(client) == '["chill_date"]'
    assert client.calls[0]["provider"] == "openai"
    assert client.calls[0]["headers"] == {"Authorization": "Bearer sk-test"}
    assert client.calls[0]["payload"]["messages"][1] == {"role": "user", "content": "user"}


@pytest.mark.parametrize(
    "response",
    [
        {"choices": ["garbage"]},
        {"choices": "garbage"},
        {"choices": []},
        {"choices": [{"message": "garbage"}]},
        {"choices": [{"message": {"content": 42}}]},
        ["not", "an", "object"],
    ],
)
def test_complete_malformed_reply_is_empty(response):
    assert _complete(FakeHttpClient(response)) == ""


def test_complete_unauthorized_is_invalid_credential():
    with pytest.raises(InvalidCredentialError):
        _complete(FakeHttpClient(HttpRequestError("HTTP status: 401", status_code=401)))


def test_complete_other_http_errors_propagate():
    with pytest.raises(HttpRequestError):
        _complete(FakeHttpClient(HttpRequestError("HTTP status: 500", status_code=500)))


def test_extract_json_helpers():
    assert extract_json_array('Here: ["a", "b"] and [1]') == ["a", "b"]
    assert extract_json_array("[not json]") is None
    assert extract_json_object('```json\n{"barIds": []}\n```') == {"barIds": []}
    assert extract_json_object("nothing") is None
