import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator, Dict, Optional, Tuple  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.auth.models import Session, User  # noqa: E402
from app.auth.security import create_session_token, hash_password  # noqa: E402
from app.core.config import Settings  # noqa: E402
from app.core.enums import UserRole  # noqa: E402
from app.db.session import Base  # noqa: E402
from app.main import create_app  # noqa: E402


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def make_user(
    db: AsyncSession,
    role: UserRole,
    email: str,
    name: Optional[str] = None,
    department_id: Optional[int] = None,
    password: Optional[str] = None,
) -> Tuple[User, str]:
    """Insert a user with an open session. Returns the user and its bearer token."""
    user = User(
        name=name or email.split("@")[0],
        email=email,
        role=role.value,
        department_id=department_id,
        password_hash=hash_password(password) if password else None,
    )
    db.add(user)
    await db.flush()
    token, expires_at = create_session_token()
    db.add(Session(token=token, user_id=user.id, expires_at=expires_at))
    await db.commit()
    return user, token


@pytest.fixture()
async def app() -> AsyncGenerator[FastAPI, None]:
    """Fresh application with its own in-memory database."""
    application = create_app(Settings())
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest.fixture()
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    async with app.state.sessionmaker() as session:
        yield session


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def admin(db_session: AsyncSession) -> Tuple[User, str]:
    return await make_user(db_session, UserRole.ADMIN, "admin@example.com", name="Ada Admin")


@pytest.fixture()
async def teacher(db_session: AsyncSession) -> Tuple[User, str]:
    return await make_user(db_session, UserRole.TEACHER, "teacher@example.com", name="Tom Teacher")


@pytest.fixture()
async def student(db_session: AsyncSession) -> Tuple[User, str]:
    return await make_user(db_session, UserRole.STUDENT, "student@example.com", name="Sam Student")


@pytest.fixture()
def admin_headers(admin) -> Dict[str, str]:
    return auth_headers(admin[1])


@pytest.fixture()
def teacher_headers(teacher) -> Dict[str, str]:
    return auth_headers(teacher[1])


@pytest.fixture()
def student_headers(student) -> Dict[str, str]:
    return auth_headers(student[1])


@pytest.fixture()
def create_department(client: AsyncClient, admin_headers):
    async def _create(code: str = "CSC", name: str = "Computer Science", **extra) -> dict:
        response = await client.post(
            "/api/departments",
            json={"code": code, "name": name, **extra},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def create_subject(client: AsyncClient, admin_headers):
    async def _create(department_id: int, code: str = "CS101", name: str = "Intro to Programming") -> dict:
        response = await client.post(
            "/api/subjects",
            json={"departmentId": department_id, "code": code, "name": name},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def create_class(client: AsyncClient, admin_headers):
    async def _create(subject_id: int, teacher_id: str, name: str = "Section A", **extra) -> dict:
        response = await client.post(
            "/api/classes",
            json={"subjectId": subject_id, "teacherId": teacher_id, "name": name, **extra},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def enroll(client: AsyncClient, admin_headers):
    async def _enroll(student_id: str, class_id: int):
        return await client.post(
            "/api/enrollments",
            json={"studentId": student_id, "classId": class_id},
            headers=admin_headers,
        )

    return _enroll


@pytest.fixture()
def user_factory(db_session: AsyncSession):
    """Create extra users inside a test: `user, token = await user_factory(UserRole.STUDENT, "x@example.com")`."""

    async def _make(role: UserRole, email: str, **kwargs) -> Tuple[User, str]:
        return await make_user(db_session, role, email, **kwargs)

    return _make
