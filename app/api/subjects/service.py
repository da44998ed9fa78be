import logging
from typing import List

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import outerjoin

from app.api.departments.schemas import DepartmentResponse
from app.api.query.params import ListParams
from app.api.query.service import ListResource, contains, run_list_query
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
    SubjectCreate,
    SubjectDetail,
    SubjectResponse,
    SubjectTotals,
    SubjectUpdate,
    SubjectWithDepartment,
)

logger = logging.getLogger(__name__)

SUBJECT_NOT_FOUND = "Subject not found"
DUPLICATE_CODE = "Subject code already exists"

SUBJECT_LIST = ListResource(
    entities=(Subject, Department),
    from_clause=outerjoin(Subject, Department, Subject.department_id == Department.id),
    order_column=Subject.created_at,
    tiebreak_column=Subject.id,
    searchable=(Subject.name, Subject.code),
)


def _with_department(subject: Subject, department) -> SubjectWithDepartment:
    item = SubjectWithDepartment.model_validate(subject)
    item.department = DepartmentResponse.model_validate(department) if department else None
    return item


def subject_filters(params: ListParams) -> List:
    conditions = []
    # Department name lives in another table; escape LIKE metacharacters in the term
    department_term = params.first("department")
    if department_term:
        conditions.append(contains(Department.name, department_term, escape=True))
    department_id = params.int_param("departmentId")
    if department_id is not None:
        conditions.append(Subject.department_id == department_id)
    return conditions


async def list_subjects(db: AsyncSession, params: ListParams) -> PaginatedResponse[SubjectWithDepartment]:
    page = await run_list_query(db, SUBJECT_LIST, params, subject_filters)
    return PaginatedResponse[SubjectWithDepartment](
        data=[_with_department(subject, department) for subject, department in page.rows],
        pagination=page.pagination,
    )


async def list_department_subjects(
    db: AsyncSession,
    department_id: int,
    params: ListParams,
) -> PaginatedResponse[SubjectWithDepartment]:
    def _filters(p: ListParams) -> List:
        return [Subject.department_id == department_id]

    page = await run_list_query(db, SUBJECT_LIST, params, _filters)
    return PaginatedResponse[SubjectWithDepartment](
        data=[_with_department(subject, department) for subject, department in page.rows],
        pagination=page.pagination,
    )


async def _get_subject_row(db: AsyncSession, subject_id: int) -> Subject:
    subject = await db.get(Subject, subject_id)
    if not subject:
        raise NotFoundError(SUBJECT_NOT_FOUND)
    return subject


async def get_subject(db: AsyncSession, subject_id: int) -> SubjectDetail:
    row = (
        await db.execute(
            select(Subject, Department)
            .select_from(Subject)
            .outerjoin(Department, Subject.department_id == Department.id)
            .where(Subject.id == subject_id)
            .limit(1)
        )
    ).first()
    if not row:
        raise NotFoundError(SUBJECT_NOT_FOUND)
    subject, department = row

    class_count = await db.execute(
        select(func.count()).select_from(SchoolClass).where(SchoolClass.subject_id == subject_id)
    )
    student_count = await db.execute(
        select(func.count(distinct(Enrollment.student_id)))
        .select_from(Enrollment)
        .join(SchoolClass, Enrollment.class_id == SchoolClass.id)
        .where(SchoolClass.subject_id == subject_id)
    )
    return SubjectDetail(
        subject=_with_department(subject, department),
        totals=SubjectTotals(
            classes=int(class_count.scalar() or 0),
            enrolled_students=int(student_count.scalar() or 0),
        ),
    )


def _raise_for_integrity(e: IntegrityError) -> None:
    kind = classify_integrity_error(e)
    if kind == "unique":
        raise ConflictError(DUPLICATE_CODE) from e
    if kind == "foreign_key":
        raise ReferentialBlockError("Department not found") from e


async def create_subject(db: AsyncSession, payload: SubjectCreate) -> SubjectResponse:
    existing = await db.execute(select(Subject.id).where(Subject.code == payload.code))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(DUPLICATE_CODE)

    subject = Subject(
        department_id=payload.department_id,
        name=payload.name,
        code=payload.code,
        description=payload.description,
    )
    db.add(subject)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        _raise_for_integrity(e)
        raise
    await db.refresh(subject)
    logger.info("Created subject %s (%s)", subject.id, subject.code)
    return SubjectResponse.model_validate(subject)


async def update_subject(db: AsyncSession, subject_id: int, payload: SubjectUpdate) -> SubjectResponse:
    subject = await _get_subject_row(db, subject_id)
    changes = payload.model_dump(exclude_unset=True)
    apply_changes(subject, changes, required=("department_id", "name", "code"))
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        _raise_for_integrity(e)
        raise
    await db.refresh(subject)
    return SubjectResponse.model_validate(subject)


async def delete_subject(db: AsyncSession, subject_id: int) -> SubjectResponse:
    subject = await _get_subject_row(db, subject_id)
    deleted = SubjectResponse.model_validate(subject)
    # Classes (and through them enrollments) cascade
    await db.execute(delete(Subject).where(Subject.id == subject_id))
    await db.commit()
    logger.info("Deleted subject %s", subject_id)
    return deleted
