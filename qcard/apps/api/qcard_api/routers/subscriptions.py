"""Plan catalog, regional pricing and the caller's subscription.

There is no payment provider in the loop: checkout only produces a quote,
and subscriptions are assigned by admins (see routers/admin.py).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import get_current_user
from qcard_api.db.models import User
from qcard_api.db.session import get_db
from qcard_api.errors import NotFoundError
from qcard_api.schemas import (
    DiscountResponse,
    FeatureAccessResponse,
    RegionalPlanResponse,
    RegionCheckoutQuote,
    RegionCheckoutRequest,
    RegionSubscriptionCreate,
    RegionSubscriptionResponse,
    SubscriptionPlanResponse,
    SubscriptionResponse,
)
from qcard_api.services import subscriptions

router = APIRouter(prefix="/v1", tags=["subscriptions"])


# ============================================================================
# Catalog
# ============================================================================


@router.get("/plans", response_model=list[SubscriptionPlanResponse])
async def list_plans(db: Session = Depends(get_db)):
    return subscriptions.list_plans(db)


@router.get("/regional-plans", response_model=list[RegionalPlanResponse])
async def list_regional_plans(region_id: Optional[str] = None, db: Session = Depends(get_db)):
    return [subscriptions.serialize_regional_plan(plan) for plan in subscriptions.list_regional_plans(db, region_id)]


@router.get("/discounts/calculate", response_model=DiscountResponse)
async def calculate_discount(
    region_count: int = Query(..., ge=0), db: Session = Depends(get_db)
) -> DiscountResponse:
    return DiscountResponse(**subscriptions.calculate_multi_region_discount(db, region_count))


@router.post("/checkout/regions/quote", response_model=RegionCheckoutQuote)
async def quote_region_checkout(
    request: RegionCheckoutRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RegionCheckoutQuote:
    """Price a set of regional plans with the multi-region discount applied.

    Raises:
        404: A plan is missing or inactive
    """
    return RegionCheckoutQuote(**subscriptions.quote_region_checkout(db, request.region_plan_ids))


# ============================================================================
# Caller's subscription
# ============================================================================


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    subscription = subscriptions.get_current_subscription(db, user)
    if subscription is None:
        raise NotFoundError("No subscription found")
    return subscriptions.serialize_subscription(db, subscription)


@router.post("/subscription/cancel", response_model=SubscriptionResponse)
async def cancel_subscription(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Cancel at period end."""
    return subscriptions.serialize_subscription(db, subscriptions.cancel_subscription(db, user))


@router.post("/subscription/resume", response_model=SubscriptionResponse)
async def resume_subscription(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return subscriptions.serialize_subscription(db, subscriptions.resume_subscription(db, user))


@router.get("/subscription/regions", response_model=list[RegionSubscriptionResponse])
async def list_region_subscriptions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [
        subscriptions.serialize_region_subscription(rs)
        for rs in subscriptions.list_region_subscriptions(db, user)
    ]


@router.post(
    "/subscription/regions", status_code=status.HTTP_201_CREATED, response_model=RegionSubscriptionResponse
)
async def add_region_subscription(
    request: RegionSubscriptionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a regional add-on to the active main subscription.

    Raises:
        400: No active main subscription
        404: Regional plan not found
        409: Already subscribed to this regional plan
    """
    region_subscription = subscriptions.create_region_subscription(db, user, request.region_plan_id)
    return subscriptions.serialize_region_subscription(region_subscription)


@router.get("/features/{feature_key}", response_model=FeatureAccessResponse)
async def check_feature(
    feature_key: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> FeatureAccessResponse:
    return FeatureAccessResponse(
        feature_key=feature_key, has_access=subscriptions.has_feature_access(db, user, feature_key)
    )
