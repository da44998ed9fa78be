import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Session, User
from app.auth.schemas import CurrentUser
from app.auth.security import as_utc
from app.core.exceptions import UnauthorizedError
from app.db.session import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    """Resolve the caller from the bearer token.

    No Authorization header means a guest (None). A token that is unknown or
    expired is rejected even on public routes.
    """
    if credentials is None or not credentials.credentials:
        return None

    result = await db.execute(
        select(Session).where(Session.token == credentials.credentials).limit(1)
    )
    session = result.scalar_one_or_none()
    if not session or as_utc(session.expires_at) < datetime.now(timezone.utc):
        raise UnauthorizedError(
            "Unauthorized: Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, session.user_id)
    if not user:
        logger.warning("Session %s points to missing user %s", session.id, session.user_id)
        raise UnauthorizedError("Unauthorized: User not found", headers={"WWW-Authenticate": "Bearer"})

    return CurrentUser.model_validate(user)


async def get_current_user(
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    if current_user is None:
        raise UnauthorizedError(
            "Unauthorized: Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user
