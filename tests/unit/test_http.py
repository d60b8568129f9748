from __future__ import annotations

import pytest
import requests

from barmap.common.http import (
    HttpClient,
    HttpRequestError,
    MinIntervalLimiter,
    ProviderRateLimiter,
    RetryConfig,
    RetryableHttpError,
)


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.text = text

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_http_get_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.get_json("https://example.com", provider="photon")

    assert payload == {"ok": True}


def test_http_post_json_sends_body_and_headers(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, {"choices": []})

    monkeypatch.setattr(client.session, "request", fake_request)
    client.post_json("https://example.com/chat", provider="openai", payload={"a": 1}, headers={"Authorization": "Bearer k"})

    assert seen["method"] == "POST"
    assert seen["json"] == {"a": 1}
    assert seen["headers"]["Authorization"] == "Bearer k"
    assert seen["headers"]["Content-Type"] == "application/json"


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com", provider="photon")


def test_http_client_error_carries_status_code(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(401, text="unauthorized"))

    with pytest.raises(HttpRequestError) as excinfo:
        client.get_json("https://example.com", provider="openai")

    assert excinfo.value.status_code == 401
    assert excinfo.value.body == "unauthorized"


def test_http_network_error_is_wrapped(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    def boom(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", boom)

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com", provider="photon")


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com", provider="photon")


def test_http_retries_retryable_errors_when_configured(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=2, multiplier=0.0, max_wait=0.0))
    responses = [FakeResponse(503), FakeResponse(200, {"ok": True})]
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: responses.pop(0))
    monkeypatch.setattr("time.sleep", lambda _seconds: None)

    assert client.get_json("https://example.com", provider="photon") == {"ok": True}


def test_min_interval_limiter_waits_between_calls():
    fake = FakeClock()
    limiter = MinIntervalLimiter(0.25, clock=fake.clock, sleep=fake.sleep)

    limiter.acquire()
    fake.now += 0.1
    limiter.acquire()

    assert fake.sleeps == [pytest.approx(0.15)]


def test_min_interval_limiter_does_not_wait_after_interval_elapsed():
    fake = FakeClock()
    limiter = MinIntervalLimiter(0.25, clock=fake.clock, sleep=fake.sleep)

    limiter.acquire()
    fake.now += 1.0
    limiter.acquire()

    assert fake.sleeps == []


def test_provider_rate_limiter_keeps_separate_budgets():
    fake = FakeClock()
    limiter = ProviderRateLimiter({"photon": 0.25, "google_places": 0.35}, clock=fake.clock, sleep=fake.sleep)

    limiter.acquire("photon")
    limiter.acquire("google_places")
    limiter.acquire("google_places")

    assert fake.sleeps == [pytest.approx(0.35)]


def test_provider_limiter_reuses_one_limiter_per_provider():
    fake = FakeClock()
    limiter = ProviderRateLimiter({"photon": 0.25}, clock=fake.clock, sleep=fake.sleep)

    limiter.acquire("photon")
    first = limiter.limiters["photon"]
    limiter.acquire("photon")

    assert limiter.limiters["photon"] is first
    assert first.interval_sec == 0.25
    assert sorted(limiter.limiters) == ["photon"]
