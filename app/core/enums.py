from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class ClassStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class MembershipRole(str, Enum):
    """Join path used when listing the users of a department or subject."""

    STUDENT = "student"
    TEACHER = "teacher"
    UNSCOPED = "unscoped"

    @classmethod
    def from_param(cls, value: Optional[str]) -> "MembershipRole":
        if value == UserRole.STUDENT.value:
            return cls.STUDENT
        if value == UserRole.TEACHER.value:
            return cls.TEACHER
        return cls.UNSCOPED


# Rate limit buckets: authenticated roles plus anonymous callers
GUEST_ROLE = "guest"
