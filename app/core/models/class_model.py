"""Classes taught for a subject. Model named SchoolClass to avoid Python 'class' keyword."""
from sqlalchemy import JSON, Column, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB

from app.core.enums import ClassStatus
from app.core.models.base import TimestampMixin
from app.db.session import Base

DEFAULT_CAPACITY = 50


class SchoolClass(TimestampMixin, Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    invite_code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    banner_url = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=False, default=DEFAULT_CAPACITY)
    status = Column(
        Enum(
            ClassStatus,
            name="class_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ClassStatus.ACTIVE,
    )
    schedules = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
