from typing import List

from app.core.schemas import CamelModel


class EnrollmentTrendPoint(CamelModel):
    date: str
    count: int


class ClassesByDepartment(CamelModel):
    department_name: str
    count: int


class RoleCount(CamelModel):
    role: str
    count: int


class CapacityStatus(CamelModel):
    class_name: str
    capacity: int
    enrolled: int


class DashboardMetrics(CamelModel):
    total_students: int
    total_teachers: int
    total_classes: int
    total_enrollments: int


class DashboardStats(CamelModel):
    enrollment_trends: List[EnrollmentTrendPoint]
    classes_by_dept: List[ClassesByDepartment]
    user_distribution: List[RoleCount]
    capacity_status: List[CapacityStatus]
    metrics: DashboardMetrics
