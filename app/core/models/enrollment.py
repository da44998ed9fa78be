from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from app.core.models.base import TimestampMixin
from app.db.session import Base


class Enrollment(TimestampMixin, Base):
    """Student membership in a class. A student can be enrolled in a class only once."""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="enrollments_student_id_class_id_unq"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id = Column(
        Integer,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
