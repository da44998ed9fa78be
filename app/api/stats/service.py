"""Dashboard aggregates over classes, enrollments and users."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.core.enums import UserRole
from app.core.models import Department, Enrollment, SchoolClass, Subject

from .schemas import (
    CapacityStatus,
    ClassesByDepartment,
    DashboardMetrics,
    DashboardStats,
    EnrollmentTrendPoint,
    RoleCount,
)

NO_DEPARTMENT = "No Department"
CAPACITY_SAMPLE_SIZE = 10


async def _count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return int(result.scalar() or 0)


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    day = func.date(Enrollment.created_at)
    trend_rows = (
        await db.execute(select(day.label("day"), func.count()).group_by(day).order_by(day))
    ).all()

    dept_name = func.coalesce(Department.name, NO_DEPARTMENT)
    dept_rows = (
        await db.execute(
            select(dept_name, func.count())
            .select_from(SchoolClass)
            .outerjoin(Subject, SchoolClass.subject_id == Subject.id)
            .outerjoin(Department, Subject.department_id == Department.id)
            .group_by(Department.name)
        )
    ).all()

    role_rows = (await db.execute(select(User.role, func.count()).group_by(User.role))).all()

    enrolled = (
        select(func.count())
        .select_from(Enrollment)
        .where(Enrollment.class_id == SchoolClass.id)
        .correlate(SchoolClass)
        .scalar_subquery()
    )
    capacity_rows = (
        await db.execute(
            select(SchoolClass.name, SchoolClass.capacity, enrolled)
            .order_by(SchoolClass.created_at.desc(), SchoolClass.id.desc())
            .limit(CAPACITY_SAMPLE_SIZE)
        )
    ).all()

    metrics = DashboardMetrics(
        total_students=await _count(
            db, select(func.count()).select_from(User).where(User.role == UserRole.STUDENT.value)
        ),
        total_teachers=await _count(
            db, select(func.count()).select_from(User).where(User.role == UserRole.TEACHER.value)
        ),
        total_classes=await _count(db, select(func.count()).select_from(SchoolClass)),
        total_enrollments=await _count(db, select(func.count()).select_from(Enrollment)),
    )

    return DashboardStats(
        enrollment_trends=[EnrollmentTrendPoint(date=str(d), count=c) for d, c in trend_rows],
        classes_by_dept=[ClassesByDepartment(department_name=n, count=c) for n, c in dept_rows],
        user_distribution=[RoleCount(role=r, count=c) for r, c in role_rows],
        capacity_status=[
            CapacityStatus(class_name=n, capacity=cap, enrolled=int(e or 0)) for n, cap, e in capacity_rows
        ],
        metrics=metrics,
    )
