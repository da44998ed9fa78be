import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.core.rate_limit import SlidingWindowRateLimiter
from app.db.session import Base
from app.main import create_app


def test_limiter_allows_up_to_limit() -> None:
    limiter = SlidingWindowRateLimiter(window_seconds=60)
    for i in range(3):
        assert limiter.hit("guest:1.2.3.4", 3, now=100.0 + i) is None
    retry_after = limiter.hit("guest:1.2.3.4", 3, now=103.0)
    assert retry_after == 58


def test_limiter_window_slides() -> None:
    limiter = SlidingWindowRateLimiter(window_seconds=10)
    assert limiter.hit("k", 1, now=0.0) is None
    assert limiter.hit("k", 1, now=5.0) is not None
    assert limiter.hit("k", 1, now=10.5) is None


def test_limiter_keys_are_independent() -> None:
    limiter = SlidingWindowRateLimiter(window_seconds=60)
    assert limiter.hit("guest:a", 1, now=0.0) is None
    assert limiter.hit("guest:b", 1, now=0.0) is None
    assert limiter.hit("guest:a", 1, now=1.0) is not None
    limiter.reset()
    assert limiter.hit("guest:a", 1, now=1.0) is None


def test_limiter_forgets_idle_keys() -> None:
    limiter = SlidingWindowRateLimiter(window_seconds=60)
    for i in range(10_000):
        assert limiter.hit(f"guest:10.0.{i // 256}.{i % 256}", 30, now=0.0) is None
    assert len(limiter) == 10_000

    assert limiter.hit("guest:192.168.0.1", 30, now=1_000_000.0) is None
    assert len(limiter) == 1


def test_limiter_keeps_keys_active_in_window() -> None:
    limiter = SlidingWindowRateLimiter(window_seconds=10)
    assert limiter.hit("old", 5, now=0.0) is None
    assert limiter.hit("recent", 5, now=8.0) is None
    assert limiter.hit("new", 5, now=12.0) is None
    assert len(limiter) == 2
    # "recent" still holds its hit from 8.0
    assert limiter.hit("recent", 1, now=12.0) is not None


@pytest.mark.asyncio
async def test_guest_limit_returns_429() -> None:
    app = create_app(Settings(RATE_LIMIT_ENABLED=True))
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            for _ in range(30):
                assert (await client.get("/api/departments")).status_code == 200
            response = await client.get("/api/departments")
            assert response.status_code == 429
            assert response.json() == {
                "error": "Too many requests.",
                "message": "Guest request limit exceeded (30 per minute). Please sign up for higher limits.",
            }
            assert int(response.headers["Retry-After"]) >= 1

            # Health checks are never throttled
            assert (await client.get("/api/health")).status_code == 200
    finally:
        await app.state.engine.dispose()
