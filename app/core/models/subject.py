from sqlalchemy import Column, ForeignKey, Integer, String, Text

from app.core.models.base import TimestampMixin
from app.db.session import Base


class Subject(TimestampMixin, Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    department_id = Column(
        Integer,
        ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)
