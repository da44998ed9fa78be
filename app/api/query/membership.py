"""Role-scoped membership: which users belong to a department or a subject."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import join
from sqlalchemy.sql.elements import ColumnElement

from app.auth.models import User
from app.core.enums import MembershipRole
from app.core.models import Enrollment, SchoolClass, Subject

from .params import ListParams
from .service import ListPage, ListResource, run_list_query


class ScopeKind(str, Enum):
    DEPARTMENT = "department"
    SUBJECT = "subject"


@dataclass(frozen=True)
class Scope:
    kind: ScopeKind
    id: int

    @classmethod
    def department(cls, department_id: int) -> "Scope":
        return cls(ScopeKind.DEPARTMENT, department_id)

    @classmethod
    def subject(cls, subject_id: int) -> "Scope":
        return cls(ScopeKind.SUBJECT, subject_id)


USER_SEARCH = (User.name, User.email)


def _class_scope_filter(scope: Scope) -> ColumnElement:
    if scope.kind is ScopeKind.DEPARTMENT:
        return Subject.department_id == scope.id
    return SchoolClass.subject_id == scope.id


def membership_resource(scope: Scope, role: MembershipRole) -> ListResource:
    if role is MembershipRole.STUDENT:
        from_clause = join(
            join(
                join(Enrollment, SchoolClass, Enrollment.class_id == SchoolClass.id),
                Subject,
                SchoolClass.subject_id == Subject.id,
            ),
            User,
            Enrollment.student_id == User.id,
        )
        distinct_key = User.id
    elif role is MembershipRole.TEACHER:
        from_clause = join(
            join(SchoolClass, Subject, SchoolClass.subject_id == Subject.id),
            User,
            SchoolClass.teacher_id == User.id,
        )
        distinct_key = User.id
    elif scope.kind is ScopeKind.SUBJECT:
        # Users assigned directly to the department that owns the subject
        from_clause = join(User, Subject, User.department_id == Subject.department_id)
        distinct_key = None
    else:
        from_clause = User
        distinct_key = None

    return ListResource(
        entities=(User,),
        from_clause=from_clause,
        order_column=User.created_at,
        tiebreak_column=User.id,
        searchable=USER_SEARCH,
        distinct_key=distinct_key,
    )


def membership_filters(scope: Scope, role: MembershipRole):
    def _filters(params: ListParams) -> List[Optional[ColumnElement]]:
        if role in (MembershipRole.STUDENT, MembershipRole.TEACHER):
            return [_class_scope_filter(scope)]
        if scope.kind is ScopeKind.SUBJECT:
            return [Subject.id == scope.id]
        # Direct assignment only: enrollment and teaching are not consulted on this path
        return [User.department_id == scope.id]

    return _filters


async def resolve_members(
    db: AsyncSession,
    scope: Scope,
    role: MembershipRole,
    params: ListParams,
) -> ListPage:
    """
    Page of distinct users in scope for the given role.

    STUDENT: enrolled in a class of the scope. TEACHER: teaches a class of the
    scope. UNSCOPED: users whose own department_id matches (for a subject, the
    subject's department). A scope id that does not exist yields an empty page.
    """
    return await run_list_query(
        db,
        membership_resource(scope, role),
        params,
        membership_filters(scope, role),
    )
