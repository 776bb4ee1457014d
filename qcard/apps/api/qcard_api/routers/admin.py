"""Admin endpoints.

Two kinds of protection:
- Platform management (/v1/admin/...) requires an ADMIN or SUPER_ADMIN user.
- POST /v1/admin/setup-defaults is an operator action protected by the
  X-Admin-Token header (constant-time compared with ADMIN_TOKEN), so it works
  before any admin user exists.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_admin
from qcard_api.config.env import get_admin_token
from qcard_api.context import request_id_var
from qcard_api.db.enums import ProfileType, UserRole
from qcard_api.db.models import User
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    AdminStatsResponse,
    AdminUserResponse,
    DiscountTierCreate,
    DiscountTierResponse,
    DiscountTierUpdate,
    FeatureFlagCreate,
    FeatureFlagResponse,
    FeatureFlagUpdate,
    FeatureOverrideRequest,
    FeatureOverrideResponse,
    IdListRequest,
    ProfileFieldCreate,
    ProfileFieldResponse,
    ProfileFieldUpdate,
    RegionalPlanCreate,
    RegionalPlanResponse,
    RegionalPlanUpdate,
    RoleUpdateRequest,
    SetupDefaultsResponse,
    StudioResponse,
    SubscriptionAssignRequest,
    SubscriptionPlanCreate,
    SubscriptionPlanResponse,
    SubscriptionPlanUpdate,
    SubscriptionResponse,
)
from qcard_api.services import accounts, admin_stats, catalog, custom_fields, studios, subscriptions
from qcard_api.services.common import get_or_404

router = APIRouter(prefix="/v1/admin", tags=["admin"])
fields_router = APIRouter(prefix="/v1/fields", tags=["fields"])
logger = logging.getLogger(__name__)


def _verify_admin_token(provided_token: str) -> None:
    """Verify the operator token using constant-time comparison.

    Raises:
        HTTPException 500: ADMIN_TOKEN not configured
        HTTPException 401: Token mismatch
    """
    try:
        expected_token = get_admin_token()
    except ValueError as e:
        logger.error(f"Admin token not configured: {e}", extra={"event": "admin.token_unconfigured"})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin token not configured on server",
        )

    if not secrets.compare_digest(provided_token, expected_token):
        logger.warning(
            "Invalid admin token attempt",
            extra={"event": "admin.auth_failed", "request_id": request_id_var.get()},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-Admin-Token",
            headers={"WWW-Authenticate": "Header"},
        )


# ============================================================================
# Operator
# ============================================================================


@router.post("/setup-defaults", response_model=SetupDefaultsResponse)
async def setup_defaults(
    x_admin_token: str = Header(..., alias="X-Admin-Token"),
    db: Session = Depends(get_db),
) -> SetupDefaultsResponse:
    """Seed default plans, feature flags, regions, regional plans and discount tiers.

    Idempotent: rows that already exist are left alone.
    """
    _verify_admin_token(x_admin_token)
    created = catalog.ensure_default_catalog(db)
    logger.info("Default catalog ensured", extra={"event": "admin.setup_defaults", **created})
    return SetupDefaultsResponse(**created)


# ============================================================================
# Dashboard, users, studios
# ============================================================================


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> AdminStatsResponse:
    return AdminStatsResponse(**admin_stats.collect_stats(db))


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return accounts.list_users(db, search, role)


def _ensure_can_manage(db: Session, admin: User, user_id: str) -> User:
    """Only a SUPER_ADMIN may change or remove another SUPER_ADMIN."""
    target = get_or_404(db, User, user_id, "User not found")
    if target.role == UserRole.SUPER_ADMIN.value and admin.role != UserRole.SUPER_ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")
    return target


@router.patch("/users/{user_id}/role", response_model=AdminUserResponse)
async def update_user_role(
    user_id: str,
    request: RoleUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Change a user's role.

    Raises:
        403: Only a SUPER_ADMIN may grant SUPER_ADMIN or change a SUPER_ADMIN
        404: User not found
    """
    if request.role == UserRole.SUPER_ADMIN and admin.role != UserRole.SUPER_ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")
    _ensure_can_manage(db, admin, user_id)
    return accounts.set_user_role_by_id(db, user_id, request.role)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> Response:
    if user_id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    _ensure_can_manage(db, admin, user_id)
    accounts.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/users/{user_id}/subscription",
    status_code=status.HTTP_201_CREATED,
    response_model=SubscriptionResponse,
)
async def assign_subscription(
    user_id: str,
    request: SubscriptionAssignRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Put a user on a plan (used in place of a payment checkout)."""
    user = get_or_404(db, User, user_id, "User not found")
    studio = accounts.get_studio_for_user(db, user)
    subscription = subscriptions.create_subscription(
        db, user, request.plan_id, request.status, studio_id=studio.id if studio else None
    )
    return subscriptions.serialize_subscription(db, subscription)


@router.put("/subscriptions/{subscription_id}/features", response_model=FeatureOverrideResponse)
async def set_feature_override(
    subscription_id: str,
    request: FeatureOverrideRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return subscriptions.set_feature_override(db, subscription_id, request.feature_key, request.value)


@router.get("/studios", response_model=list[StudioResponse])
async def list_studios(
    search: Optional[str] = None, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    return studios.list_studios(db, search)


@router.delete("/studios/{studio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_studio(
    studio_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)
) -> Response:
    studios.delete_studio(db, studio_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Custom profile fields
# ============================================================================


@router.get("/fields", response_model=list[ProfileFieldResponse])
async def list_all_fields(
    profile_type: Optional[ProfileType] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return custom_fields.list_fields(db, profile_type, include_hidden=True)


@router.post("/fields", status_code=status.HTTP_201_CREATED, response_model=ProfileFieldResponse)
async def create_field(
    request: ProfileFieldCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    return custom_fields.create_field(db, request)


@router.put("/fields/order", response_model=list[ProfileFieldResponse])
async def reorder_fields(
    request: IdListRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    return custom_fields.reorder_fields(db, request.ids)


@router.patch("/fields/{field_id}", response_model=ProfileFieldResponse)
async def update_field(
    field_id: str,
    request: ProfileFieldUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return custom_fields.update_field(db, field_id, request)


@router.delete("/fields/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_field(field_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> Response:
    """Delete a custom field (system fields are protected)."""
    custom_fields.delete_field(db, field_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@fields_router.get("/schema", response_model=list[ProfileFieldResponse])
async def field_schema(profile_type: Optional[ProfileType] = None, db: Session = Depends(get_db)):
    """Visible fields for rendering profile forms."""
    return custom_fields.list_fields(db, profile_type)


# ============================================================================
# Plans, regional plans, discount tiers, feature flags
# ============================================================================


@router.get("/plans", response_model=list[SubscriptionPlanResponse])
async def list_all_plans(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return subscriptions.list_plans(db, include_inactive=True)


@router.post("/plans", status_code=status.HTTP_201_CREATED, response_model=SubscriptionPlanResponse)
async def create_plan(
    request: SubscriptionPlanCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    return subscriptions.create_plan(db, request)


@router.patch("/plans/{plan_id}", response_model=SubscriptionPlanResponse)
async def update_plan(
    plan_id: str,
    request: SubscriptionPlanUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return subscriptions.update_plan(db, plan_id, request.model_dump(exclude_unset=True))


@router.delete("/plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(plan_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> Response:
    subscriptions.delete_plan(db, plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/regional-plans", response_model=list[RegionalPlanResponse])
async def list_all_regional_plans(
    region_id: Optional[str] = None, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    plans = subscriptions.list_regional_plans(db, region_id, include_inactive=True)
    return [subscriptions.serialize_regional_plan(plan) for plan in plans]


@router.post("/regional-plans", status_code=status.HTTP_201_CREATED, response_model=RegionalPlanResponse)
async def create_regional_plan(
    request: RegionalPlanCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    return subscriptions.serialize_regional_plan(subscriptions.create_regional_plan(db, request))


@router.patch("/regional-plans/{plan_id}", response_model=RegionalPlanResponse)
async def update_regional_plan(
    plan_id: str,
    request: RegionalPlanUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    plan = subscriptions.update_regional_plan(db, plan_id, request.model_dump(exclude_unset=True))
    return subscriptions.serialize_regional_plan(plan)


@router.delete("/regional-plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_regional_plan(
    plan_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)
) -> Response:
    subscriptions.delete_regional_plan(db, plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/discounts", response_model=list[DiscountTierResponse])
async def list_discount_tiers(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return subscriptions.list_discount_tiers(db)


@router.post("/discounts", status_code=status.HTTP_201_CREATED, response_model=DiscountTierResponse)
async def create_discount_tier(
    request: DiscountTierCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    """Create a tier (409 when one for this region count exists)."""
    return subscriptions.create_discount_tier(db, request)


@router.patch("/discounts/{tier_id}", response_model=DiscountTierResponse)
async def update_discount_tier(
    tier_id: str,
    request: DiscountTierUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return subscriptions.update_discount_tier(db, tier_id, request.model_dump(exclude_unset=True))


@router.delete("/discounts/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_discount_tier(
    tier_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)
) -> Response:
    subscriptions.delete_discount_tier(db, tier_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/feature-flags", response_model=list[FeatureFlagResponse])
async def list_feature_flags(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return subscriptions.list_feature_flags(db)


@router.post("/feature-flags", status_code=status.HTTP_201_CREATED, response_model=FeatureFlagResponse)
async def create_feature_flag(
    request: FeatureFlagCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    return subscriptions.create_feature_flag(db, request)


@router.patch("/feature-flags/{flag_id}", response_model=FeatureFlagResponse)
async def update_feature_flag(
    flag_id: str,
    request: FeatureFlagUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return subscriptions.update_feature_flag(db, flag_id, request.model_dump(exclude_unset=True))


@router.delete("/feature-flags/{flag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feature_flag(
    flag_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)
) -> Response:
    subscriptions.delete_feature_flag(db, flag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
