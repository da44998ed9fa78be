import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_user(client: AsyncClient, admin_headers, create_department) -> None:
    dept = await create_department()
    response = await client.post(
        "/api/users",
        json={"name": "Grace", "email": "Grace@Example.com", "role": "teacher", "departmentId": dept["id"]},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "grace@example.com"
    assert data["role"] == "teacher"
    assert isinstance(data["id"], str)
    assert "passwordHash" not in data


@pytest.mark.asyncio
async def test_create_user_requires_admin(client: AsyncClient, teacher_headers) -> None:
    response = await client.post(
        "/api/users",
        json={"name": "Eve", "email": "eve@example.com", "role": "admin"},
        headers=teacher_headers,
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Admin access required"}


@pytest.mark.asyncio
async def test_duplicate_email(client: AsyncClient, admin_headers, student) -> None:
    response = await client.post(
        "/api/users",
        json={"name": "Copy", "email": "student@example.com", "role": "student"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "User with this email already exists"}


@pytest.mark.asyncio
async def test_invalid_role_rejected(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/users",
        json={"name": "X", "email": "x@example.com", "role": "janitor"},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_and_filter_users(client: AsyncClient, admin, teacher, student) -> None:
    body = (await client.get("/api/users")).json()
    assert body["pagination"]["total"] == 3

    body = (await client.get("/api/users", params={"role": "teacher"})).json()
    assert [u["id"] for u in body["data"]] == [teacher[0].id]

    body = (await client.get("/api/users", params={"search": "STUDENT@"})).json()
    assert [u["id"] for u in body["data"]] == [student[0].id]


@pytest.mark.asyncio
async def test_get_user(client: AsyncClient, student) -> None:
    response = await client.get(f"/api/users/{student[0].id}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Sam Student"
    assert data["department"] is None

    response = await client.get("/api/users/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_patch_user(client: AsyncClient, admin_headers, student) -> None:
    response = await client.patch(
        f"/api/users/{student[0].id}", json={"name": "Samantha"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Samantha"
    assert data["email"] == "student@example.com"


@pytest.mark.asyncio
async def test_blank_name_rejected(client: AsyncClient, admin_headers, student) -> None:
    response = await client.post(
        "/api/users",
        json={"name": "   ", "email": "blank@example.com", "role": "student"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = await client.patch(
        f"/api/users/{student[0].id}", json={"name": " \t "}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_name_is_trimmed(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/users",
        json={"name": "  Grace Hopper  ", "email": "grace@example.com", "role": "teacher"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["data"]["name"] == "Grace Hopper"


@pytest.mark.asyncio
async def test_delete_teacher_of_class_blocked(
    client: AsyncClient, admin_headers, create_department, create_subject, create_class, teacher
) -> None:
    dept = await create_department()
    subject = await create_subject(dept["id"])
    await create_class(subject["id"], teacher[0].id)

    response = await client.delete(f"/api/users/{teacher[0].id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete user who is assigned as a class teacher"}


@pytest.mark.asyncio
async def test_delete_student(client: AsyncClient, admin_headers, student) -> None:
    response = await client.delete(f"/api/users/{student[0].id}", headers=admin_headers)
    assert response.status_code == 200
    assert (await client.get(f"/api/users/{student[0].id}")).status_code == 404
