import pytest
from fastapi.testclient import TestClient

from admission import FixedWindowRateLimiter, OriginPolicy
from config import Settings
from main import create_app


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.mark.parametrize(
    "origin,production,expected",
    [
        (None, True, True),
        ("https://studio.example.com", True, True),
        ("https://studio.example.com/", True, True),
        ("https://evil.example.com", True, False),
        ("http://localhost:5173", True, False),
        ("http://localhost:5173", False, True),
        ("http://127.0.0.1:8080", False, True),
        ("http://[::1]:3000", False, True),
        ("http://app.localhost", False, True),
        ("http://localhost.evil.com", False, False),
        ("https://evil.example.com", False, False),
    ],
)
def test_origin_policy(origin, production, expected):
    policy = OriginPolicy(["https://studio.example.com"], production=production)
    assert policy.allows(origin) is expected


def test_wildcard_allows_any_origin():
    policy = OriginPolicy(["*"], production=True)
    assert policy.allows("https://anything.example.org")


def _client(store, **overrides):
    settings = Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="test-key",
        allowed_origins=["https://studio.example.com"],
        **overrides,
    )
    return TestClient(create_app(settings=settings, store=store))


def test_production_rejects_unlisted_origin_before_routing(store):
    client = _client(store, environment="production")
    res = client.get("/api/gallery", headers={"Origin": "http://localhost:3000"})
    assert res.status_code == 403
    assert res.json() == {"error": "Not allowed by CORS"}
    assert store.calls == []


def test_development_admits_loopback_origin(store):
    client = _client(store, environment="development")
    res = client.get("/api/gallery", headers={"Origin": "http://localhost:3000"})
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert res.headers["access-control-allow-credentials"] == "true"


def test_listed_origin_gets_cors_headers(store):
    client = _client(store, environment="production")
    res = client.get("/api/gallery", headers={"Origin": "https://studio.example.com"})
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "https://studio.example.com"


def test_request_without_origin_is_admitted(store):
    client = _client(store, environment="production")
    assert client.get("/api/gallery").status_code == 200


def test_preflight_for_listed_origin(store):
    client = _client(store, environment="production")
    res = client.options(
        "/api/gallery",
        headers={
            "Origin": "https://studio.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "https://studio.example.com"


def test_rate_limiter_fixed_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=900, clock=clock)

    assert limiter.hit("1.2.3.4")
    assert limiter.hit("1.2.3.4")
    assert not limiter.hit("1.2.3.4")
    assert limiter.hit("5.6.7.8")
    assert limiter.remaining("1.2.3.4") == 0

    clock.now += 300
    assert limiter.retry_after("1.2.3.4") == 600

    clock.now += 600
    assert limiter.hit("1.2.3.4")
    assert limiter.remaining("1.2.3.4") == 1


def test_rate_limiter_prunes_expired_windows():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=10, clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    clock.now += 10
    limiter.hit("c")
    assert set(limiter._windows) == {"c"}


def test_rate_limiter_sweeps_at_most_once_per_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=10, clock=clock)
    for i in range(50):
        limiter.hit(f"10.0.0.{i}")

    clock.now += 4
    limiter.hit("late")
    # Nothing has expired yet and the first window is not over: no sweep.
    assert limiter._last_prune == 1000.0
    assert len(limiter._windows) == 51

    clock.now += 6
    limiter.hit("later")
    assert limiter._last_prune == 1010.0
    assert set(limiter._windows) == {"late", "later"}

    clock.now += 1
    limiter.hit("next")
    assert limiter._last_prune == 1010.0


def test_api_requests_over_limit_get_429(store):
    client = _client(store, rate_limit_max=2)
    first = client.get("/api/gallery")
    assert first.headers["ratelimit-limit"] == "2"
    assert first.headers["ratelimit-remaining"] == "1"
    assert client.get("/api/testimonials").status_code == 200

    res = client.post("/api/contact", json={"name": "A", "email": "a@x.com", "subject": "Hi", "message": "Test"})
    assert res.status_code == 429
    assert res.json() == {"error": "Too many requests, please try again later."}
    assert int(res.headers["retry-after"]) > 0
    assert store.count("contact_submissions") == 0


def test_health_is_not_rate_limited(store):
    client = _client(store, rate_limit_max=1)
    for _ in range(3):
        assert client.get("/health").status_code == 200
