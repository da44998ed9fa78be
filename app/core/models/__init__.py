from app.core.models.class_model import SchoolClass
from app.core.models.department import Department
from app.core.models.enrollment import Enrollment
from app.core.models.subject import Subject

__all__ = [
    "Department",
    "Enrollment",
    "SchoolClass",
    "Subject",
]
