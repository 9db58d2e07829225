import types
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace.utils.rate_limit import optional_rate_limit, rate_limit_health_info


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.post("/limitedA", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_a():
        return {"ok": True}

    @app.post("/limitedB", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_b():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app


def test_rate_limit_fallback_blocks_after_limit(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app(times=2, seconds=60))

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 429


def test_rate_limit_is_per_path_and_client_ip(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app(times=1, seconds=60))

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 429
    # path B: indépendant de A
    assert client.post("/limitedB").status_code == 200
    # autre IP derrière un proxy: compteur séparé
    assert client.post("/limitedA", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 200


def test_rate_limit_window_expires(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app(times=1, seconds=60))
    now = [1000.0]
    monkeypatch.setattr("marketplace.utils.rate_limit.time", types.SimpleNamespace(time=lambda: now[0]))

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 429
    now[0] += 61
    assert client.post("/limitedA").status_code == 200


def test_rate_limit_disabled_flag_bypasses_limit():
    app = _make_app(times=1, seconds=60)
    app.state.rate_limit_enabled = False
    client = TestClient(app)

    for _ in range(3):
        assert client.post("/limitedA").status_code == 200


def test_rate_limit_health_info_reports_fallback(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    app = _make_app()
    app.state.rate_limit_enabled = False
    info = TestClient(app).get("/rl_info").json()
    assert info["enabled"] is False
    assert info["local_fallback"] is True


def test_rate_limit_health_info_redis_details(monkeypatch):
    from fastapi_limiter import FastAPILimiter

    monkeypatch.setattr(FastAPILimiter, "redis", object(), raising=False)
    monkeypatch.setenv("RATE_LIMIT_REDIS_URL", "redis://localhost:6379/0")
    app = _make_app()
    app.state.rate_limit_enabled = True

    info = TestClient(app).get("/rl_info").json()
    assert info["ready"] is True
    assert info["backend"] == "redis"
    assert info["redis"] == {"scheme": "redis", "host": "localhost", "port": 6379}


def _limiter_raising(exc):
    class _Limiter:
        def __init__(self, times, seconds, identifier=None):
            self.times = times

        async def __call__(self, request, response):
            raise exc

    return _Limiter


def test_redis_outage_lets_requests_through(monkeypatch):
    monkeypatch.setattr(
        "fastapi_limiter.depends.RateLimiter", _limiter_raising(RedisConnectionError("Connection refused"))
    )
    app = _make_app(times=1, seconds=60)
    app.state.rate_limit_enabled = True
    client = TestClient(app)

    for _ in range(3):
        assert client.post("/limitedA").status_code == 200


def test_limiter_rejection_is_not_swallowed(monkeypatch):
    monkeypatch.setattr(
        "fastapi_limiter.depends.RateLimiter", _limiter_raising(HTTPException(status_code=429, detail="Too Many Requests"))
    )
    app = _make_app(times=1, seconds=60)
    app.state.rate_limit_enabled = True

    assert TestClient(app).post("/limitedA").status_code == 429
