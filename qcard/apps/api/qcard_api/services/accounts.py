"""Account registration and role management."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from qcard_api.db.enums import TenantType, UserRole
from qcard_api.db.models import Profile, Studio, Tenant, User
from qcard_api.errors import ConflictError, NotFoundError
from qcard_api.services.common import clean, get_or_404, normalize_email
from qcard_api.services.external_actors import convert_external_actors_for_user

logger = logging.getLogger(__name__)


def default_studio_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}'s Studio"


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register_account(
    db: Session,
    *,
    email: str,
    first_name: str,
    last_name: str,
    account_type: TenantType,
    phone_number: Optional[str] = None,
    studio_name: Optional[str] = None,
) -> tuple[User, int]:
    """Create a tenant, its user and the matching studio or talent profile.

    TALENT accounts are then matched against studios' external actors by
    email/phone and the matches are converted.

    Returns:
        (user, number of external actors converted)

    Raises:
        ConflictError: Email already registered
    """
    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("A user with this email already exists")

    first_name = first_name.strip()
    last_name = last_name.strip()
    account_type = TenantType(account_type)

    if account_type == TenantType.STUDIO:
        tenant_name = clean(studio_name) or default_studio_name(first_name, last_name)
    else:
        tenant_name = f"{first_name} {last_name}"

    tenant = Tenant(name=tenant_name, type=account_type.value)
    db.add(tenant)
    db.flush()

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone_number=clean(phone_number),
        role=UserRole.USER.value,
        tenant_id=tenant.id,
    )
    db.add(user)
    db.flush()

    if account_type == TenantType.STUDIO:
        db.add(Studio(name=tenant_name, tenant_id=tenant.id))
    else:
        db.add(Profile(user_id=user.id))

    db.commit()
    db.refresh(user)

    logger.info(
        "Account registered",
        extra={"event": "account.registered", "user_id": user.id, "account_type": account_type.value},
    )

    converted = 0
    if account_type == TenantType.TALENT:
        converted = convert_external_actors_for_user(db, user)
    return user, converted


def set_user_role(db: Session, email: str, role: UserRole) -> User:
    """Promote or demote a user by email."""
    user = get_user_by_email(db, email)
    if user is None:
        raise NotFoundError(f"User not found: {email}")

    previous = user.role
    user.role = UserRole(role).value
    db.commit()
    db.refresh(user)

    logger.info(
        "User role changed",
        extra={"event": "user.role_changed", "target_user_id": user.id, "from": previous, "to": user.role},
    )
    return user


def set_user_role_by_id(db: Session, user_id: str, role: UserRole) -> User:
    user = get_or_404(db, User, user_id, "User not found")
    return set_user_role(db, user.email, role)


def list_users(db: Session, search: Optional[str] = None, role: Optional[UserRole] = None) -> list[User]:
    query = db.query(User)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            User.email.ilike(pattern) | User.first_name.ilike(pattern) | User.last_name.ilike(pattern)
        )
    if role:
        query = query.filter(User.role == UserRole(role).value)
    return query.order_by(User.created_at.desc()).all()


def delete_user(db: Session, user_id: str) -> None:
    """Delete a user; their profile and subscriptions cascade."""
    user = get_or_404(db, User, user_id, "User not found")
    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"event": "user.deleted", "target_user_id": user_id})


def get_studio_for_user(db: Session, user: User) -> Optional[Studio]:
    if not user.tenant_id:
        return None
    return db.query(Studio).filter(Studio.tenant_id == user.tenant_id).first()
