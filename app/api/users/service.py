import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import outerjoin

from app.api.departments.schemas import DepartmentResponse
from app.api.query.membership import USER_SEARCH, Scope, resolve_members
from app.api.query.params import ListParams
from app.api.query.service import ListResource, run_list_query
from app.auth.models import User
from app.core.enums import MembershipRole, UserRole
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ReferentialBlockError,
    classify_integrity_error,
)
from app.core.models import Department
from app.core.schemas import PaginatedResponse
from app.core.services import apply_changes

from .schemas import UserCreate, UserResponse, UserUpdate, UserWithDepartment

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
DUPLICATE_EMAIL = "User with this email already exists"

USER_LIST = ListResource(
    entities=(User, Department),
    from_clause=outerjoin(User, Department, User.department_id == Department.id),
    order_column=User.created_at,
    tiebreak_column=User.id,
    searchable=USER_SEARCH,
)


def _with_department(user: User, department) -> UserWithDepartment:
    item = UserWithDepartment.model_validate(user)
    item.department = DepartmentResponse.model_validate(department) if department else None
    return item


def user_filters(params: ListParams) -> List:
    conditions = []
    role = params.first("role")
    if role:
        conditions.append(User.role == role)
    department_id = params.int_param("departmentId")
    if department_id is not None:
        conditions.append(User.department_id == department_id)
    return conditions


async def list_users(db: AsyncSession, params: ListParams) -> PaginatedResponse[UserWithDepartment]:
    page = await run_list_query(db, USER_LIST, params, user_filters)
    return PaginatedResponse[UserWithDepartment](
        data=[_with_department(user, department) for user, department in page.rows],
        pagination=page.pagination,
    )


async def list_scoped_users(
    db: AsyncSession,
    scope: Scope,
    params: ListParams,
) -> PaginatedResponse[UserResponse]:
    """Users of a department or subject; ?role=student|teacher selects the join path."""
    role = MembershipRole.from_param(params.first("role"))
    page = await resolve_members(db, scope, role, params)
    return PaginatedResponse[UserResponse](
        data=[UserResponse.model_validate(u) for u in page.rows],
        pagination=page.pagination,
    )


async def _get_user_row(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(USER_NOT_FOUND)
    return user


async def get_user(db: AsyncSession, user_id: str) -> UserWithDepartment:
    row = (
        await db.execute(
            select(User, Department)
            .select_from(User)
            .outerjoin(Department, User.department_id == Department.id)
            .where(User.id == user_id)
            .limit(1)
        )
    ).first()
    if not row:
        raise NotFoundError(USER_NOT_FOUND)
    return _with_department(*row)


def _raise_for_integrity(e: IntegrityError) -> None:
    kind = classify_integrity_error(e)
    if kind == "unique":
        raise ConflictError(DUPLICATE_EMAIL) from e
    if kind == "foreign_key":
        raise ReferentialBlockError("Department not found") from e


async def create_user(db: AsyncSession, payload: UserCreate) -> UserResponse:
    email = payload.email.lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(DUPLICATE_EMAIL)

    user = User(
        name=payload.name,
        email=email,
        role=payload.role.value,
        department_id=payload.department_id,
        image=payload.image,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        _raise_for_integrity(e)
        raise
    await db.refresh(user)
    logger.info("Created user %s with role %s", user.id, user.role)
    return UserResponse.model_validate(user)


async def update_user(db: AsyncSession, user_id: str, payload: UserUpdate) -> UserResponse:
    user = await _get_user_row(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email") is not None:
        changes["email"] = changes["email"].lower()
    if isinstance(changes.get("role"), UserRole):
        changes["role"] = changes["role"].value
    apply_changes(user, changes, required=("name", "email", "role"))
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        _raise_for_integrity(e)
        raise
    await db.refresh(user)
    return UserResponse.model_validate(user)


async def delete_user(db: AsyncSession, user_id: str) -> UserResponse:
    """Enrollments and sessions cascade; a user still teaching a class cannot be removed."""
    user = await _get_user_row(db, user_id)
    deleted = UserResponse.model_validate(user)
    try:
        await db.execute(delete(User).where(User.id == user_id))
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if classify_integrity_error(e) == "foreign_key":
            raise ReferentialBlockError("Cannot delete user who is assigned as a class teacher") from e
        raise
    logger.info("Deleted user %s", user_id)
    return deleted
