"""Plans, subscriptions, regional add-ons and feature access.

No payment provider is called here: prices are quoted, and subscription rows
are created directly (by an admin, or after an out-of-band checkout).
Money is handled as ``Decimal`` and rounded half-up to cents.
"""

import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from qcard_api.db.enums import ENTITLED_SUBSCRIPTION_STATUSES, SubscriptionStatus, UserRole
from qcard_api.db.models import (
    FeatureFlag,
    MultiRegionDiscount,
    Region,
    RegionSubscriptionPlan,
    Subscription,
    SubscriptionFeature,
    SubscriptionPlan,
    User,
    UserRegionSubscription,
)
from qcard_api.errors import ConflictError, DomainValidationError, NotFoundError
from qcard_api.services.common import apply_updates, get_or_404
from qcard_api.utils.clock import utcnow

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PERIOD_DAYS = {"month": 30, "year": 365}
ADMIN_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value})


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def regional_plan_features(region_name: str) -> list[str]:
    return [
        f"Access to {region_name} casting calls",
        "Regional talent search",
        "Location-based notifications",
    ]


# ============================================================================
# Plans
# ============================================================================


def list_plans(db: Session, include_inactive: bool = False) -> list[SubscriptionPlan]:
    query = db.query(SubscriptionPlan)
    if not include_inactive:
        query = query.filter(SubscriptionPlan.is_active.is_(True))
    return query.order_by(SubscriptionPlan.price, SubscriptionPlan.name).all()


def create_plan(db: Session, data) -> SubscriptionPlan:
    plan = SubscriptionPlan()
    apply_updates(plan, data.model_dump())
    db.add(plan)
    db.commit()
    db.refresh(plan)
    logger.info("Subscription plan created", extra={"event": "plan.created", "plan_id": plan.id})
    return plan


def update_plan(db: Session, plan_id: str, updates: dict) -> SubscriptionPlan:
    plan = get_or_404(db, SubscriptionPlan, plan_id, "Subscription plan not found")
    apply_updates(plan, updates)
    db.commit()
    db.refresh(plan)
    return plan


def delete_plan(db: Session, plan_id: str) -> None:
    plan = get_or_404(db, SubscriptionPlan, plan_id, "Subscription plan not found")
    if db.query(Subscription.id).filter(Subscription.plan_id == plan.id).first():
        raise ConflictError("Plan has subscribers; deactivate it instead")
    db.delete(plan)
    db.commit()


# ============================================================================
# Regional plans and discount tiers
# ============================================================================


def serialize_regional_plan(plan: RegionSubscriptionPlan) -> dict[str, Any]:
    return {
        "id": plan.id,
        "region_id": plan.region_id,
        "region_name": plan.region.name,
        "name": plan.name,
        "description": plan.description,
        "price": plan.price,
        "is_active": plan.is_active,
        "features": regional_plan_features(plan.region.name),
    }


def list_regional_plans(
    db: Session, region_id: Optional[str] = None, include_inactive: bool = False
) -> list[RegionSubscriptionPlan]:
    """Regional plans, cheapest first."""
    query = db.query(RegionSubscriptionPlan)
    if not include_inactive:
        query = query.filter(RegionSubscriptionPlan.is_active.is_(True))
    if region_id:
        query = query.filter(RegionSubscriptionPlan.region_id == region_id)
    return query.order_by(RegionSubscriptionPlan.price, RegionSubscriptionPlan.name).all()


def create_regional_plan(db: Session, data) -> RegionSubscriptionPlan:
    get_or_404(db, Region, data.region_id, "Region not found")
    plan = RegionSubscriptionPlan()
    apply_updates(plan, data.model_dump())
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def update_regional_plan(db: Session, plan_id: str, updates: dict) -> RegionSubscriptionPlan:
    plan = get_or_404(db, RegionSubscriptionPlan, plan_id, "Regional plan not found")
    apply_updates(plan, updates)
    db.commit()
    db.refresh(plan)
    return plan


def delete_regional_plan(db: Session, plan_id: str) -> None:
    plan = get_or_404(db, RegionSubscriptionPlan, plan_id, "Regional plan not found")
    if db.query(UserRegionSubscription.id).filter(UserRegionSubscription.region_plan_id == plan.id).first():
        raise ConflictError("Regional plan has subscribers; deactivate it instead")
    db.delete(plan)
    db.commit()


def list_discount_tiers(db: Session) -> list[MultiRegionDiscount]:
    return db.query(MultiRegionDiscount).order_by(MultiRegionDiscount.region_count).all()


def create_discount_tier(db: Session, data) -> MultiRegionDiscount:
    if db.query(MultiRegionDiscount).filter(MultiRegionDiscount.region_count == data.region_count).first():
        raise ConflictError(f"A discount tier for {data.region_count} regions already exists")
    tier = MultiRegionDiscount(
        region_count=data.region_count,
        discount_percentage=data.discount_percentage,
        active=data.active,
    )
    db.add(tier)
    db.commit()
    db.refresh(tier)
    return tier


def update_discount_tier(db: Session, tier_id: str, updates: dict) -> MultiRegionDiscount:
    tier = get_or_404(db, MultiRegionDiscount, tier_id, "Discount tier not found")
    apply_updates(tier, updates)
    db.commit()
    db.refresh(tier)
    return tier


def delete_discount_tier(db: Session, tier_id: str) -> None:
    tier = get_or_404(db, MultiRegionDiscount, tier_id, "Discount tier not found")
    db.delete(tier)
    db.commit()


def calculate_multi_region_discount(db: Session, region_count: int) -> dict[str, Any]:
    """Discount for ``region_count`` regions from the best applicable active tier.

    Returns:
        {"region_count", "discount_percentage", "discount_amount"} where
        discount_amount is the fraction (15% -> 0.15); zeros without a tier.
    """
    tier = (
        db.query(MultiRegionDiscount)
        .filter(MultiRegionDiscount.active.is_(True), MultiRegionDiscount.region_count <= region_count)
        .order_by(MultiRegionDiscount.region_count.desc())
        .first()
    )
    if tier is None:
        return {"region_count": region_count, "discount_percentage": Decimal("0"), "discount_amount": Decimal("0")}
    percentage = Decimal(tier.discount_percentage)
    return {
        "region_count": region_count,
        "discount_percentage": percentage,
        "discount_amount": percentage / Decimal(100),
    }


def quote_region_checkout(db: Session, region_plan_ids: list[str]) -> dict[str, Any]:
    """Price a set of regional plans.

    With more than one region the tier matching the exact region count applies.

    Raises:
        NotFoundError: Any plan missing or inactive
    """
    unique_ids = list(dict.fromkeys(region_plan_ids))
    plans = (
        db.query(RegionSubscriptionPlan)
        .filter(RegionSubscriptionPlan.id.in_(unique_ids), RegionSubscriptionPlan.is_active.is_(True))
        .all()
    )
    if len(plans) != len(unique_ids):
        raise NotFoundError("One or more regional plans were not found")

    subtotal = to_cents(sum((Decimal(plan.price) for plan in plans), Decimal("0")))
    percentage = Decimal("0")
    if len(plans) > 1:
        tier = (
            db.query(MultiRegionDiscount)
            .filter(MultiRegionDiscount.active.is_(True), MultiRegionDiscount.region_count == len(plans))
            .first()
        )
        if tier is not None:
            percentage = Decimal(tier.discount_percentage)

    discount = to_cents(subtotal * percentage / Decimal(100))
    total = subtotal - discount
    return {
        "region_count": len(plans),
        "subtotal": subtotal,
        "discount_percentage": percentage,
        "discount": discount,
        "total": total,
        "total_cents": int((total * 100).to_integral_value(rounding=ROUND_HALF_UP)),
    }


# ============================================================================
# Subscriptions
# ============================================================================


def get_current_subscription(db: Session, user: User) -> Optional[Subscription]:
    """The user's most recent main subscription, if any."""
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id)
        .order_by(Subscription.created_at.desc())
        .first()
    )


def get_entitled_subscription(db: Session, user: User) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id, Subscription.status.in_(ENTITLED_SUBSCRIPTION_STATUSES))
        .order_by(Subscription.created_at.desc())
        .first()
    )


def create_subscription(
    db: Session,
    user: User,
    plan_id: str,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    studio_id: Optional[str] = None,
) -> Subscription:
    plan = get_or_404(db, SubscriptionPlan, plan_id, "Subscription plan not found")
    start = utcnow()
    subscription = Subscription(
        user_id=user.id,
        studio_id=studio_id,
        plan_id=plan.id,
        status=SubscriptionStatus(status).value,
        current_period_start=start,
        current_period_end=start + timedelta(days=PERIOD_DAYS.get(plan.interval, 30)),
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)

    logger.info(
        "Subscription created",
        extra={"event": "subscription.created", "subscription_id": subscription.id, "plan_id": plan.id},
    )
    return subscription


def _require_subscription(db: Session, user: User) -> Subscription:
    subscription = get_current_subscription(db, user)
    if subscription is None:
        raise NotFoundError("No subscription found")
    return subscription


def cancel_subscription(db: Session, user: User) -> Subscription:
    """Cancel at period end; access continues until current_period_end."""
    subscription = _require_subscription(db, user)
    subscription.cancel_at_period_end = True
    subscription.canceled_at = utcnow()
    db.commit()
    db.refresh(subscription)
    logger.info("Subscription canceled", extra={"event": "subscription.canceled", "subscription_id": subscription.id})
    return subscription


def resume_subscription(db: Session, user: User) -> Subscription:
    subscription = _require_subscription(db, user)
    subscription.cancel_at_period_end = False
    subscription.canceled_at = None
    db.commit()
    db.refresh(subscription)
    logger.info("Subscription resumed", extra={"event": "subscription.resumed", "subscription_id": subscription.id})
    return subscription


def list_region_subscriptions(db: Session, user: User) -> list[UserRegionSubscription]:
    return (
        db.query(UserRegionSubscription)
        .filter(UserRegionSubscription.user_id == user.id)
        .order_by(UserRegionSubscription.created_at)
        .all()
    )


def create_region_subscription(db: Session, user: User, region_plan_id: str) -> UserRegionSubscription:
    """Attach a regional add-on to the user's active main subscription.

    The main subscription's multi_region_discount is then recalculated from
    the user's total regional subscription count.

    Raises:
        NotFoundError: Regional plan missing
        DomainValidationError: No ACTIVE/TRIALING main subscription
        ConflictError: User already subscribed to this regional plan
    """
    plan = db.get(RegionSubscriptionPlan, region_plan_id)
    if plan is None:
        raise NotFoundError("Regional plan not found")

    main = get_entitled_subscription(db, user)
    if main is None:
        raise DomainValidationError("An active main subscription is required")

    duplicate = (
        db.query(UserRegionSubscription)
        .filter(UserRegionSubscription.user_id == user.id, UserRegionSubscription.region_plan_id == plan.id)
        .first()
    )
    if duplicate:
        raise ConflictError("Already subscribed to this regional plan")

    region_subscription = UserRegionSubscription(
        user_id=user.id,
        region_plan_id=plan.id,
        main_subscription_id=main.id,
        status=SubscriptionStatus.ACTIVE.value,
        current_period_start=main.current_period_start,
        current_period_end=main.current_period_end,
    )
    db.add(region_subscription)
    db.flush()

    count = db.query(UserRegionSubscription).filter(UserRegionSubscription.user_id == user.id).count()
    main.multi_region_discount = calculate_multi_region_discount(db, count)["discount_percentage"]
    db.commit()
    db.refresh(region_subscription)

    logger.info(
        "Region subscription created",
        extra={
            "event": "region_subscription.created",
            "region_subscription_id": region_subscription.id,
            "region_plan_id": plan.id,
            "region_count": count,
        },
    )
    return region_subscription


def serialize_subscription(db: Session, subscription: Subscription) -> dict[str, Any]:
    regions = (
        db.query(UserRegionSubscription)
        .filter(UserRegionSubscription.main_subscription_id == subscription.id)
        .order_by(UserRegionSubscription.created_at)
        .all()
    )
    return {
        "id": subscription.id,
        "plan_id": subscription.plan_id,
        "plan_name": subscription.plan.name,
        "status": subscription.status,
        "current_period_start": subscription.current_period_start,
        "current_period_end": subscription.current_period_end,
        "cancel_at_period_end": subscription.cancel_at_period_end,
        "canceled_at": subscription.canceled_at,
        "multi_region_discount": subscription.multi_region_discount,
        "region_subscriptions": [serialize_region_subscription(rs) for rs in regions],
    }


def serialize_region_subscription(region_subscription: UserRegionSubscription) -> dict[str, Any]:
    plan = region_subscription.region_plan
    return {
        "id": region_subscription.id,
        "region_plan_id": plan.id,
        "region_id": plan.region_id,
        "region_name": plan.region.name,
        "status": region_subscription.status,
        "current_period_start": region_subscription.current_period_start,
        "current_period_end": region_subscription.current_period_end,
    }


# ============================================================================
# Feature access
# ============================================================================


TRUTHY_FEATURE_STRINGS = frozenset({"true", "1", "yes", "on", "enabled"})
FALSY_FEATURE_STRINGS = frozenset({"false", "0", "no", "off", "disabled", ""})


def feature_value_enabled(value: Any) -> bool:
    """Read a per-subscription override value as on/off.

    Raises:
        DomainValidationError: A string that is not a recognised on/off word
    """
    if isinstance(value, str):
        word = value.strip().lower()
        if word in TRUTHY_FEATURE_STRINGS:
            return True
        if word in FALSY_FEATURE_STRINGS:
            return False
        raise DomainValidationError(f"Feature value must be on or off, got {value!r}")
    if isinstance(value, dict):
        return feature_value_enabled(value.get("enabled", False))
    return bool(value)


def has_feature_access(db: Session, user: User, feature_key: str) -> bool:
    """Whether ``user`` may use ``feature_key``.

    Admins always may. Subscribers are decided by a per-subscription
    override if one exists, else by their plan's feature list. Everyone
    else gets the flag's default (unknown flags are off).
    """
    if user.role in ADMIN_ROLES:
        return True

    subscription = get_entitled_subscription(db, user)
    if subscription is not None:
        override = (
            db.query(SubscriptionFeature)
            .filter(
                SubscriptionFeature.subscription_id == subscription.id,
                SubscriptionFeature.feature_key == feature_key,
            )
            .first()
        )
        if override is not None:
            return feature_value_enabled(override.feature_value)
        return feature_key in (subscription.plan.features or [])

    flag = db.query(FeatureFlag).filter(FeatureFlag.key == feature_key).first()
    return bool(flag.default_value) if flag else False


def set_feature_override(db: Session, subscription_id: str, feature_key: str, value: Any) -> SubscriptionFeature:
    feature_value_enabled(value)
    subscription = get_or_404(db, Subscription, subscription_id, "Subscription not found")
    override = (
        db.query(SubscriptionFeature)
        .filter(SubscriptionFeature.subscription_id == subscription.id, SubscriptionFeature.feature_key == feature_key)
        .first()
    )
    if override is None:
        override = SubscriptionFeature(subscription_id=subscription.id, feature_key=feature_key, feature_value=value)
        db.add(override)
    else:
        override.feature_value = value
    db.commit()
    db.refresh(override)
    return override


def list_feature_flags(db: Session) -> list[FeatureFlag]:
    return db.query(FeatureFlag).order_by(FeatureFlag.key).all()


def create_feature_flag(db: Session, data) -> FeatureFlag:
    if db.query(FeatureFlag).filter(FeatureFlag.key == data.key).first():
        raise ConflictError(f"Feature flag '{data.key}' already exists")
    flag = FeatureFlag()
    apply_updates(flag, data.model_dump())
    db.add(flag)
    db.commit()
    db.refresh(flag)
    return flag


def update_feature_flag(db: Session, flag_id: str, updates: dict) -> FeatureFlag:
    flag = get_or_404(db, FeatureFlag, flag_id, "Feature flag not found")
    apply_updates(flag, updates)
    db.commit()
    db.refresh(flag)
    return flag


def delete_feature_flag(db: Session, flag_id: str) -> None:
    flag = get_or_404(db, FeatureFlag, flag_id, "Feature flag not found")
    db.delete(flag)
    db.commit()
