import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Session, User
from app.auth.schemas import CurrentUser, SessionResponse, SignInRequest, SignUpRequest
from app.auth.security import create_session_token, hash_password, verify_password
from app.core.exceptions import (
    ConflictError,
    ReferentialBlockError,
    UnauthorizedError,
    classify_integrity_error,
)

logger = logging.getLogger(__name__)


async def _open_session(
    db: AsyncSession,
    user: User,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SessionResponse:
    token, expires_at = create_session_token()
    db.add(
        Session(
            token=token,
            user_id=user.id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    await db.commit()
    return SessionResponse(
        token=token,
        expires_at=expires_at,
        user=CurrentUser.model_validate(user),
    )


async def sign_up(
    db: AsyncSession,
    payload: SignUpRequest,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SessionResponse:
    email = payload.email.lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("User with this email already exists")

    user = User(
        name=payload.name,
        email=email,
        role=payload.role.value,
        department_id=payload.department_id,
        image=payload.image,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        kind = classify_integrity_error(e)
        if kind == "unique":
            raise ConflictError("User with this email already exists") from e
        if kind == "foreign_key":
            raise ReferentialBlockError("Department not found") from e
        raise
    await db.refresh(user)
    logger.info("User %s signed up as %s", user.id, user.role)
    return await _open_session(db, user, ip_address, user_agent)


async def sign_in(
    db: AsyncSession,
    payload: SignInRequest,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SessionResponse:
    result = await db.execute(select(User).where(User.email == payload.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    return await _open_session(db, user, ip_address, user_agent)


async def sign_out(db: AsyncSession, token: str) -> bool:
    result = await db.execute(delete(Session).where(Session.token == token))
    await db.commit()
    return (result.rowcount or 0) > 0
