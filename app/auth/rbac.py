from fastapi import Depends

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.enums import UserRole
from app.core.exceptions import ForbiddenError


def require_roles(*roles: UserRole):
    """
    Dependency factory to restrict a route to the given roles.

    Example:
        Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))
    """
    allowed = set(roles)
    label = "/".join(r.value.capitalize() for r in roles)

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise ForbiddenError(f"Forbidden: {label} access required")
        return current_user

    return _checker


require_admin = require_roles(UserRole.ADMIN)
require_staff = require_roles(UserRole.ADMIN, UserRole.TEACHER)
