import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, join, outerjoin

from app.api.departments.schemas import DepartmentResponse
from app.api.query.membership import USER_SEARCH
from app.api.query.params import ListParams
from app.api.query.service import ListResource, run_list_query
from app.api.subjects.schemas import SubjectResponse
from app.api.users.schemas import UserResponse
from app.auth.models import User
from app.core.enums import ClassStatus
from app.core.exceptions import NotFoundError, ReferentialBlockError, classify_integrity_error
from app.core.models import Department, Enrollment, SchoolClass, Subject
from app.core.schemas import PaginatedResponse
from app.core.services import apply_changes

from .invite_code import generate_invite_code
from .schemas import ClassCreate, ClassDetail, ClassListItem, ClassResponse, ClassUpdate

logger = logging.getLogger(__name__)

INVITE_CODE_ATTEMPTS = 5

CLASS_NOT_FOUND = "Class not found"

Teacher = aliased(User, name="teacher")

# Classes with their subject and teacher; scoped listings filter on Subject columns.
CLASS_LIST = ListResource(
    entities=(SchoolClass, Subject, Teacher),
    from_clause=outerjoin(
        outerjoin(SchoolClass, Subject, SchoolClass.subject_id == Subject.id),
        Teacher,
        SchoolClass.teacher_id == Teacher.id,
    ),
    order_column=SchoolClass.created_at,
    tiebreak_column=SchoolClass.id,
    searchable=(SchoolClass.name, SchoolClass.invite_code),
)

# Students enrolled in one class
ROSTER = ListResource(
    entities=(User,),
    from_clause=join(Enrollment, User, Enrollment.student_id == User.id),
    order_column=User.created_at,
    tiebreak_column=User.id,
    searchable=USER_SEARCH,
    distinct_key=User.id,
)


def to_list_item(row) -> ClassListItem:
    school_class, subject, teacher = row
    item = ClassListItem.model_validate(school_class)
    item.subject = SubjectResponse.model_validate(subject) if subject else None
    item.teacher = UserResponse.model_validate(teacher) if teacher else None
    return item


def class_filters(params: ListParams) -> List:
    conditions = []
    subject_id = params.int_param("subjectId", "subject")
    if subject_id is not None:
        conditions.append(SchoolClass.subject_id == subject_id)
    teacher_id = params.first("teacherId", "teacher")
    if teacher_id:
        conditions.append(SchoolClass.teacher_id == teacher_id)
    status_term = params.first("status")
    if status_term in {s.value for s in ClassStatus}:
        conditions.append(SchoolClass.status == status_term)
    return conditions


async def list_classes(
    db: AsyncSession,
    params: ListParams,
    department_id: Optional[int] = None,
    subject_id: Optional[int] = None,
) -> PaginatedResponse[ClassListItem]:
    def _filters(p: ListParams) -> List:
        conditions = class_filters(p)
        if department_id is not None:
            conditions.append(Subject.department_id == department_id)
        if subject_id is not None:
            conditions.append(SchoolClass.subject_id == subject_id)
        return conditions

    page = await run_list_query(db, CLASS_LIST, params, _filters)
    return PaginatedResponse[ClassListItem](
        data=[to_list_item(row) for row in page.rows],
        pagination=page.pagination,
    )


async def get_class(db: AsyncSession, class_id: int) -> ClassDetail:
    stmt = (
        select(SchoolClass, Subject, Teacher, Department)
        .select_from(SchoolClass)
        .outerjoin(Subject, SchoolClass.subject_id == Subject.id)
        .outerjoin(Teacher, SchoolClass.teacher_id == Teacher.id)
        .outerjoin(Department, Subject.department_id == Department.id)
        .where(SchoolClass.id == class_id)
        .limit(1)
    )
    row = (await db.execute(stmt)).first()
    if not row:
        raise NotFoundError(CLASS_NOT_FOUND)
    school_class, subject, teacher, department = row
    detail = ClassDetail.model_validate(school_class)
    detail.subject = SubjectResponse.model_validate(subject) if subject else None
    detail.teacher = UserResponse.model_validate(teacher) if teacher else None
    detail.department = DepartmentResponse.model_validate(department) if department else None
    return detail


async def get_class_row(db: AsyncSession, class_id: int) -> SchoolClass:
    school_class = await db.get(SchoolClass, class_id)
    if not school_class:
        raise NotFoundError(CLASS_NOT_FOUND)
    return school_class


async def create_class(db: AsyncSession, payload: ClassCreate) -> ClassResponse:
    values = payload.model_dump()
    for attempt in range(1, INVITE_CODE_ATTEMPTS + 1):
        school_class = SchoolClass(**values, invite_code=generate_invite_code(), schedules=[])
        db.add(school_class)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            kind = classify_integrity_error(e)
            if kind == "foreign_key":
                raise ReferentialBlockError("Invalid subject or teacher") from e
            if kind == "unique" and attempt < INVITE_CODE_ATTEMPTS:
                logger.info("Invite code collision, retrying (attempt %d)", attempt)
                continue
            raise
        await db.refresh(school_class)
        logger.info("Created class %s (invite code %s)", school_class.id, school_class.invite_code)
        return ClassResponse.model_validate(school_class)


async def update_class(db: AsyncSession, class_id: int, payload: ClassUpdate) -> ClassResponse:
    school_class = await get_class_row(db, class_id)
    changes = payload.model_dump(exclude_unset=True)
    apply_changes(
        school_class,
        changes,
        required=("subject_id", "teacher_id", "name", "capacity", "status", "schedules"),
    )
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if classify_integrity_error(e) == "foreign_key":
            raise ReferentialBlockError("Invalid subject or teacher") from e
        raise
    await db.refresh(school_class)
    return ClassResponse.model_validate(school_class)


async def delete_class(db: AsyncSession, class_id: int) -> ClassResponse:
    school_class = await get_class_row(db, class_id)
    deleted = ClassResponse.model_validate(school_class)
    # Enrollments go with the class (ON DELETE CASCADE)
    await db.execute(delete(SchoolClass).where(SchoolClass.id == class_id))
    await db.commit()
    logger.info("Deleted class %s", class_id)
    return deleted


async def list_class_users(
    db: AsyncSession,
    class_id: int,
    params: ListParams,
) -> PaginatedResponse[UserResponse]:
    """Students enrolled in the class. Unlike department/subject scopes, a missing class is a 404."""
    await get_class_row(db, class_id)
    page = await run_list_query(
        db,
        ROSTER,
        params,
        lambda p: [Enrollment.class_id == class_id],
    )
    return PaginatedResponse[UserResponse](
        data=[UserResponse.model_validate(u) for u in page.rows],
        pagination=page.pagination,
    )
