"""
Tests for the per-client sliding-window rate limiter.
"""
import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app.core.rate_limit import check_rate_limit, get_client_ip, rate_limit_store, reset_rate_limits


def make_request(client_ip="10.0.0.1", forwarded=None):
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": (client_ip, 5000)})


@pytest.fixture(autouse=True)
def clean_store():
    reset_rate_limits()
    yield
    reset_rate_limits()


def test_client_ip_prefers_first_forwarded_hop():
    assert get_client_ip(make_request(forwarded="203.0.113.7, 10.0.0.2")) == "203.0.113.7"
    assert get_client_ip(make_request(client_ip="10.0.0.9")) == "10.0.0.9"


def test_limit_rejects_with_retry_after():
    request = make_request()
    for i in range(3):
        check_rate_limit(request, max_requests=3, window_seconds=60, now=1000.0 + i)

    with pytest.raises(HTTPException) as exc_info:
        check_rate_limit(request, max_requests=3, window_seconds=60, now=1010.0)

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers["Retry-After"] == "50"


def test_window_slides():
    request = make_request()
    check_rate_limit(request, max_requests=1, window_seconds=60, now=1000.0)

    check_rate_limit(request, max_requests=1, window_seconds=60, now=1061.0)

    assert list(rate_limit_store["10.0.0.1"]) == [1061.0]


def test_expired_buckets_are_dropped():
    for i in range(20):
        check_rate_limit(make_request(client_ip=f"10.1.0.{i}"), max_requests=5, window_seconds=60, now=1000.0)
    assert len(rate_limit_store) == 20

    check_rate_limit(make_request(client_ip="10.2.0.1"), max_requests=5, window_seconds=60, now=2000.0)

    assert list(rate_limit_store) == ["10.2.0.1"]


def test_generation_endpoint_returns_429(client, auth, llm, monkeypatch):
    monkeypatch.setattr("app.core.config.RATE_LIMIT_REQUESTS", 1)
    llm.queue({"milestones": [{"title": "Basics"}]}, {"questions": []})
    body = {"goal": "Learn Go", "userId": "user_1"}

    first = client.post("/roadmaps/generate", json=body, headers=auth("user_1"))
    second = client.post("/roadmaps/generate", json=body, headers=auth("user_1"))

    assert first.status_code == 200
    assert second.status_code == 429
    assert "Retry-After" in second.headers
