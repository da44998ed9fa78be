import pytest
from httpx import AsyncClient


SIGN_UP = {
    "name": "Jane Doe",
    "email": "Jane@Example.com",
    "password": "StrongPass123",
    "role": "teacher",
}


@pytest.mark.asyncio
async def test_sign_up_opens_session(client: AsyncClient) -> None:
    response = await client.post("/api/auth/sign-up", json=SIGN_UP)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["token"]
    assert data["user"]["email"] == "jane@example.com"
    assert data["user"]["role"] == "teacher"

    session = await client.get(
        "/api/auth/session", headers={"Authorization": f"Bearer {data['token']}"}
    )
    assert session.status_code == 200
    assert session.json()["data"]["id"] == data["user"]["id"]


@pytest.mark.asyncio
async def test_sign_up_cannot_create_admin(client: AsyncClient) -> None:
    response = await client.post("/api/auth/sign-up", json={**SIGN_UP, "role": "admin"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_sign_up_duplicate_email(client: AsyncClient) -> None:
    assert (await client.post("/api/auth/sign-up", json=SIGN_UP)).status_code == 201
    response = await client.post("/api/auth/sign-up", json={**SIGN_UP, "email": "jane@example.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "User with this email already exists"}


@pytest.mark.asyncio
async def test_sign_up_short_password(client: AsyncClient) -> None:
    response = await client.post("/api/auth/sign-up", json={**SIGN_UP, "password": "short"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_sign_in(client: AsyncClient) -> None:
    await client.post("/api/auth/sign-up", json=SIGN_UP)

    response = await client.post(
        "/api/auth/sign-in", json={"email": "jane@example.com", "password": SIGN_UP["password"]}
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["name"] == "Jane Doe"

    response = await client.post(
        "/api/auth/sign-in", json={"email": "jane@example.com", "password": "wrong-password"}
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


@pytest.mark.asyncio
async def test_sign_out_revokes_token(client: AsyncClient) -> None:
    token = (await client.post("/api/auth/sign-up", json=SIGN_UP)).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = await client.post("/api/auth/sign-out", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True}

    response = await client.get("/api/auth/session", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: Invalid or expired token"}


@pytest.mark.asyncio
async def test_session_requires_token(client: AsyncClient) -> None:
    response = await client.get("/api/auth/session")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: Authentication required"}


@pytest.mark.asyncio
async def test_invalid_token_rejected_on_public_route(client: AsyncClient) -> None:
    response = await client.get("/api/departments", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_guest_can_read_but_not_write(client: AsyncClient) -> None:
    assert (await client.get("/api/departments")).status_code == 200
    response = await client.post("/api/departments", json={"code": "CSC", "name": "Computer Science"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_teacher_cannot_manage_departments(client: AsyncClient, teacher_headers) -> None:
    response = await client.post(
        "/api/departments", json={"code": "CSC", "name": "Computer Science"}, headers=teacher_headers
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Admin access required"}
