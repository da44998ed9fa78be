import logging

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.query.params import ListParams
from app.api.query.service import ListResource, run_list_query
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ReferentialBlockError,
    classify_integrity_error,
)
from app.core.models import Department, Enrollment, SchoolClass, Subject
from app.core.schemas import PaginatedResponse
from app.core.services import apply_changes

from .schemas import (
    DepartmentCreate,
    DepartmentDetail,
    DepartmentResponse,
    DepartmentTotals,
    DepartmentUpdate,
)

logger = logging.getLogger(__name__)

DEPARTMENT_NOT_FOUND = "Department not found"
DUPLICATE_CODE = "Department code already exists"
DELETE_BLOCKED = "Cannot delete department with existing subjects or users"

DEPARTMENT_LIST = ListResource(
    entities=(Department,),
    from_clause=Department,
    order_column=Department.created_at,
    tiebreak_column=Department.id,
    searchable=(Department.name, Department.code),
)


async def list_departments(db: AsyncSession, params: ListParams) -> PaginatedResponse[DepartmentResponse]:
    page = await run_list_query(db, DEPARTMENT_LIST, params)
    return PaginatedResponse[DepartmentResponse](
        data=[DepartmentResponse.model_validate(d) for d in page.rows],
        pagination=page.pagination,
    )


async def _get_department_row(db: AsyncSession, department_id: int) -> Department:
    dept = await db.get(Department, department_id)
    if not dept:
        raise NotFoundError(DEPARTMENT_NOT_FOUND)
    return dept


async def get_department(db: AsyncSession, department_id: int) -> DepartmentDetail:
    dept = await _get_department_row(db, department_id)

    subject_count = await db.execute(
        select(func.count()).select_from(Subject).where(Subject.department_id == department_id)
    )
    class_count = await db.execute(
        select(func.count())
        .select_from(SchoolClass)
        .join(Subject, SchoolClass.subject_id == Subject.id)
        .where(Subject.department_id == department_id)
    )
    student_count = await db.execute(
        select(func.count(distinct(Enrollment.student_id)))
        .select_from(Enrollment)
        .join(SchoolClass, Enrollment.class_id == SchoolClass.id)
        .join(Subject, SchoolClass.subject_id == Subject.id)
        .where(Subject.department_id == department_id)
    )
    return DepartmentDetail(
        department=DepartmentResponse.model_validate(dept),
        totals=DepartmentTotals(
            subjects=int(subject_count.scalar() or 0),
            classes=int(class_count.scalar() or 0),
            enrolled_students=int(student_count.scalar() or 0),
        ),
    )


async def create_department(db: AsyncSession, payload: DepartmentCreate) -> DepartmentResponse:
    existing = await db.execute(select(Department.id).where(Department.code == payload.code))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(DUPLICATE_CODE)

    dept = Department(
        code=payload.code,
        name=payload.name,
        description=payload.description,
    )
    db.add(dept)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if classify_integrity_error(e) == "unique":
            raise ConflictError(DUPLICATE_CODE) from e
        raise
    await db.refresh(dept)
    logger.info("Created department %s (%s)", dept.id, dept.code)
    return DepartmentResponse.model_validate(dept)


async def update_department(
    db: AsyncSession,
    department_id: int,
    payload: DepartmentUpdate,
) -> DepartmentResponse:
    dept = await _get_department_row(db, department_id)
    changes = payload.model_dump(exclude_unset=True)
    apply_changes(dept, changes, required=("code", "name"))
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if classify_integrity_error(e) == "unique":
            raise ConflictError(DUPLICATE_CODE) from e
        raise
    await db.refresh(dept)
    return DepartmentResponse.model_validate(dept)


async def delete_department(db: AsyncSession, department_id: int) -> DepartmentResponse:
    """Hard delete. Subjects restrict the delete; users are detached by the store (SET NULL)."""
    dept = await _get_department_row(db, department_id)
    deleted = DepartmentResponse.model_validate(dept)
    try:
        await db.execute(delete(Department).where(Department.id == department_id))
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if classify_integrity_error(e) == "foreign_key":
            raise ReferentialBlockError(DELETE_BLOCKED) from e
        raise
    logger.info("Deleted department %s", department_id)
    return deleted
