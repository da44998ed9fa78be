import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError


@pytest.mark.asyncio
async def test_health_ok(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_down_when_store_unreachable(app, client: AsyncClient) -> None:
    class BrokenSession:
        async def __aenter__(self):
            raise OSError("connection refused")

        async def __aexit__(self, *exc):
            return False

    app.state.sessionmaker = BrokenSession
    response = await client.get("/api/health")
    assert response.status_code == 503
    assert response.json() == {"status": "down"}


@pytest.mark.asyncio
async def test_store_failure_during_request_returns_503(app, client: AsyncClient) -> None:
    class DisconnectedSession:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        async def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, ConnectionError("server closed the connection"))

    app.state.sessionmaker = DisconnectedSession
    response = await client.get("/api/departments")
    assert response.status_code == 503
    assert response.json() == {"error": "Database unavailable"}
