# This project was developed with assistance from AI tools.
"""
Actor identity dependencies.

Token validation happens upstream; the gateway forwards the authenticated
actor as ``X-Actor-Id`` (UUID) and ``X-Actor-Role`` (``borrower`` or
``employee``). This layer trusts those headers and turns them into a
``UserContext``.

Set AUTH_DISABLED=true to act as a fixed development employee.
"""

import logging
import uuid
from typing import Annotated

from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.auth import build_user_context
from ..core.config import settings
from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_ROLE_HEADER = "X-Actor-Role"


def _parse_actor_id(raw: str | None) -> uuid.UUID:
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor identity",
        )
    try:
        return uuid.UUID(raw)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor identity",
        ) from exc


def _parse_role(raw: str | None) -> UserRole:
    try:
        return UserRole((raw or "").strip().lower())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No recognized role assigned",
        ) from exc


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency: build the UserContext from gateway headers."""
    if settings.AUTH_DISABLED:
        return build_user_context(UserRole.EMPLOYEE, uuid.UUID(settings.DEV_EMPLOYEE_ID))

    user_id = _parse_actor_id(request.headers.get(ACTOR_ID_HEADER))
    role = _parse_role(request.headers.get(ACTOR_ROLE_HEADER))
    return build_user_context(role, user_id)


# Type alias for use in route signatures
CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: restrict a route to specific roles.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles(UserRole.EMPLOYEE))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "RBAC denied: user=%s role=%s attempted route requiring %s",
                user.user_id,
                user.role.value,
                [r.value for r in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check
