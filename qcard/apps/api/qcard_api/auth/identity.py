"""Caller identity for API endpoints.

Authentication happens upstream (the web app's session layer). It forwards
the authenticated user's id in the X-User-ID header; this module only loads
that user and enforces which side of the marketplace they are on.

FLOW:
1. get_current_user: X-User-ID -> User (401 when absent or unknown)
2. require_studio / require_talent: User -> Studio / Profile
3. require_admin / require_super_admin: role gate

The resolved ids are pushed into the logging context vars so every log line
of the request carries user_id / studio_id, and onto request.state for the
completion log written by the middleware after the endpoint returns.
"""

import logging
from typing import Optional, Union

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from qcard_api.context import studio_id_var, user_id_var
from qcard_api.db.enums import TenantType, UserRole
from qcard_api.db.models import Profile, Studio, User
from qcard_api.db.session import get_db
from qcard_api.errors import AuthenticationRequiredError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

ADMIN_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value})


async def get_current_user(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    db: Session = Depends(get_db),
) -> User:
    """Load the user asserted by the upstream auth layer.

    Raises:
        AuthenticationRequiredError: Header missing or user unknown
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationRequiredError("Authentication required")

    user = db.get(User, x_user_id.strip())
    if user is None:
        logger.warning("Unknown user id asserted", extra={"event": "auth.unknown_user"})
        raise AuthenticationRequiredError("Authentication required")

    user_id_var.set(user.id)
    request.state.user_id = user.id
    return user


async def require_studio(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Studio:
    """Resolve the caller's studio.

    Raises:
        PermissionDeniedError: Caller is not on a STUDIO tenant
        NotFoundError: Studio not initialized yet (POST /v1/studio/init)
    """
    if user.tenant is None or user.tenant.type != TenantType.STUDIO.value:
        raise PermissionDeniedError("Only studio accounts can access this resource")

    studio = db.query(Studio).filter(Studio.tenant_id == user.tenant_id).first()
    if studio is None:
        raise NotFoundError("Studio not found. Initialize it with POST /v1/studio/init")

    studio_id_var.set(studio.id)
    request.state.studio_id = studio.id
    return studio


async def require_talent(user: User = Depends(get_current_user)) -> Profile:
    """Resolve the caller's talent profile (403 when there is none)."""
    if user.profile is None:
        raise PermissionDeniedError("Only talent accounts can access this resource")
    return user.profile


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow ADMIN and SUPER_ADMIN."""
    if user.role not in ADMIN_ROLES:
        logger.warning(
            "Admin access denied",
            extra={"event": "auth.admin_denied", "role": user.role},
        )
        raise PermissionDeniedError("Admin access required")
    return user


async def require_super_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.SUPER_ADMIN.value:
        logger.warning(
            "Super admin access denied",
            extra={"event": "auth.super_admin_denied", "role": user.role},
        )
        raise PermissionDeniedError("Super admin access required")
    return user


async def require_party(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Union[Studio, Profile]:
    """Resolve the caller as a messaging party: their studio or their profile."""
    if user.tenant is not None and user.tenant.type == TenantType.STUDIO.value:
        return await require_studio(request, user, db)
    return await require_talent(user)
