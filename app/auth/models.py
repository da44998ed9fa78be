import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from app.core.models.base import TimestampMixin
from app.db.session import Base


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(TimestampMixin, Base):
    """Admin, teacher or student. String ids so externally issued identifiers fit."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True, default=_new_user_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    # admin | teacher | student
    role = Column(String(50), nullable=False)
    department_id = Column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    image = Column(String(255), nullable=True)
    # Null for users created by an admin without credentials
    password_hash = Column(Text, nullable=True)


class Session(TimestampMixin, Base):
    """Bearer token sessions issued at sign-in."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(512), nullable=False, unique=True)
    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    ip_address = Column(String(255), nullable=True)
    user_agent = Column(Text, nullable=True)
