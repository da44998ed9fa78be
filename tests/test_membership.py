"""Role-scoped user listings for departments and subjects."""

import pytest
from httpx import AsyncClient

from app.core.enums import UserRole


@pytest.fixture()
async def campus(user_factory, create_department, create_subject, create_class, enroll, teacher, student) -> dict:
    cs = await create_department("CSC", "Computer Science")
    math = await create_department("MTH", "Mathematics")
    programming = await create_subject(cs["id"], "CS101", "Programming")
    databases = await create_subject(cs["id"], "CS301", "Databases")
    calculus = await create_subject(math["id"], "MA101", "Calculus")

    # The student sits in two classes of the same department
    morning = await create_class(programming["id"], teacher[0].id, "Morning")
    evening = await create_class(databases["id"], teacher[0].id, "Evening")
    await enroll(student[0].id, morning["id"])
    await enroll(student[0].id, evening["id"])

    math_teacher, _ = await user_factory(UserRole.TEACHER, "euler@example.com", name="Leonhard")
    await create_class(calculus["id"], math_teacher.id, "Limits")

    staff, _ = await user_factory(
        UserRole.TEACHER, "staff@example.com", name="Assigned Staff", department_id=cs["id"]
    )
    return {
        "cs": cs,
        "math": math,
        "programming": programming,
        "calculus": calculus,
        "math_teacher": math_teacher,
        "staff": staff,
    }


@pytest.mark.asyncio
async def test_department_students_are_distinct(client: AsyncClient, campus, student) -> None:
    body = (await client.get(f"/api/departments/{campus['cs']['id']}/users", params={"role": "student"})).json()
    assert [u["id"] for u in body["data"]] == [student[0].id]
    assert body["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_department_teachers(client: AsyncClient, campus, teacher) -> None:
    body = (await client.get(f"/api/departments/{campus['cs']['id']}/users", params={"role": "teacher"})).json()
    assert [u["id"] for u in body["data"]] == [teacher[0].id]

    body = (await client.get(f"/api/departments/{campus['math']['id']}/users", params={"role": "teacher"})).json()
    assert [u["id"] for u in body["data"]] == [campus["math_teacher"].id]


@pytest.mark.asyncio
async def test_department_unscoped_uses_direct_assignment(client: AsyncClient, campus) -> None:
    body = (await client.get(f"/api/departments/{campus['cs']['id']}/users")).json()
    assert [u["id"] for u in body["data"]] == [campus["staff"].id]

    # Unknown roles fall back to the same path
    body = (await client.get(f"/api/departments/{campus['cs']['id']}/users", params={"role": "admin"})).json()
    assert [u["id"] for u in body["data"]] == [campus["staff"].id]


@pytest.mark.asyncio
async def test_subject_students_and_teachers(client: AsyncClient, campus, student, teacher) -> None:
    subject_id = campus["programming"]["id"]
    students = (await client.get(f"/api/subjects/{subject_id}/users", params={"role": "student"})).json()
    assert [u["id"] for u in students["data"]] == [student[0].id]

    teachers = (await client.get(f"/api/subjects/{subject_id}/users", params={"role": "teacher"})).json()
    assert [u["id"] for u in teachers["data"]] == [teacher[0].id]

    calculus_students = (
        await client.get(f"/api/subjects/{campus['calculus']['id']}/users", params={"role": "student"})
    ).json()
    assert calculus_students["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_subject_unscoped_uses_owning_department(client: AsyncClient, campus) -> None:
    body = (await client.get(f"/api/subjects/{campus['programming']['id']}/users")).json()
    assert [u["id"] for u in body["data"]] == [campus["staff"].id]


@pytest.mark.asyncio
async def test_member_search(client: AsyncClient, campus, student) -> None:
    url = f"/api/departments/{campus['cs']['id']}/users"
    body = (await client.get(url, params={"role": "student", "search": "sam"})).json()
    assert body["pagination"]["total"] == 1
    body = (await client.get(url, params={"role": "student", "search": "zzz"})).json()
    assert body["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_unknown_scope_is_empty(client: AsyncClient) -> None:
    for path in ("/api/departments/9999/users", "/api/subjects/9999/users?role=teacher"):
        response = await client.get(path)
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 0
