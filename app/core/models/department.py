from sqlalchemy import Column, Integer, String, Text

from app.core.models.base import TimestampMixin
from app.db.session import Base


class Department(TimestampMixin, Base):
    """Academic department. Subjects block deletion; users are detached (department_id set null)."""

    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
