"""Default catalogue: plans, feature flags, regions, regional plans, discount tiers.

The same rows are inserted by the seed migration; ``ensure_default_catalog``
fills in whatever is missing on databases created another way.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from qcard_api.db.models import FeatureFlag, MultiRegionDiscount, Region, RegionSubscriptionPlan, SubscriptionPlan

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "name": "Basic",
        "description": "For individual talent and small studios",
        "price": Decimal("19.99"),
        "interval": "month",
        "features": ["basic_messaging", "max_locations_1", "subscribed"],
    },
    {
        "name": "Pro",
        "description": "For growing studios",
        "price": Decimal("39.99"),
        "interval": "month",
        "features": [
            "unlimited_messaging",
            "advanced_search",
            "questionnaires",
            "max_locations_5",
            "subscribed",
        ],
    },
    {
        "name": "Business",
        "description": "For production companies",
        "price": Decimal("99.99"),
        "interval": "month",
        "features": [
            "unlimited_messaging",
            "advanced_search",
            "questionnaires",
            "unlimited_locations",
            "custom_branding",
            "external_actors",
            "priority_support",
            "subscribed",
        ],
    },
]

DEFAULT_FEATURE_FLAGS = [
    ("advanced_search", "Advanced Search", "Filter talent by detailed attributes"),
    ("questionnaires", "Questionnaires", "Send questionnaires to talent"),
    ("unlimited_messaging", "Unlimited Messaging", "Message without monthly limits"),
    ("external_actors", "External Actors", "Manage actors who are not on the platform"),
    ("casting_calls", "Casting Calls", "Post casting calls"),
    ("custom_branding", "Custom Branding", "Studio branding on public pages"),
    ("multiple_projects", "Multiple Projects", "Run more than one project at a time"),
    ("subscribed", "Subscribed", "Holds any paid plan"),
]

DEFAULT_REGIONS = [
    ("West Coast", "California, Oregon and Washington"),
    ("Southwest", "Arizona, New Mexico, Nevada and Texas"),
    ("Mountain West", "Colorado, Idaho, Montana, Utah and Wyoming"),
    ("Midwest", "Illinois, Michigan, Minnesota, Ohio and neighbours"),
    ("Southeast", "Florida, Georgia, the Carolinas and neighbours"),
    ("Northeast", "New York, New England, New Jersey and Pennsylvania"),
]

REGIONAL_PLAN_PRICE = Decimal("19.99")

DEFAULT_DISCOUNT_TIERS = [
    (2, Decimal("10")),
    (3, Decimal("15")),
    (4, Decimal("20")),
    (5, Decimal("25")),
    (6, Decimal("30")),
]


def ensure_default_catalog(db: Session) -> dict[str, int]:
    """Insert missing default catalogue rows; safe to call repeatedly.

    Returns:
        Number of rows created per kind
    """
    created = {
        "plans_created": 0,
        "feature_flags_created": 0,
        "regions_created": 0,
        "regional_plans_created": 0,
        "discounts_created": 0,
    }

    for plan in DEFAULT_PLANS:
        if db.query(SubscriptionPlan).filter(SubscriptionPlan.name == plan["name"]).first() is None:
            db.add(SubscriptionPlan(**plan))
            created["plans_created"] += 1

    for key, name, description in DEFAULT_FEATURE_FLAGS:
        if db.query(FeatureFlag).filter(FeatureFlag.key == key).first() is None:
            db.add(FeatureFlag(key=key, name=name, description=description, default_value=False))
            created["feature_flags_created"] += 1

    for name, description in DEFAULT_REGIONS:
        region = db.query(Region).filter(Region.name == name).first()
        if region is None:
            region = Region(name=name, description=description)
            db.add(region)
            db.flush()
            created["regions_created"] += 1

        plan_name = f"{name} Basic"
        exists = (
            db.query(RegionSubscriptionPlan)
            .filter(RegionSubscriptionPlan.region_id == region.id, RegionSubscriptionPlan.name == plan_name)
            .first()
        )
        if exists is None:
            db.add(
                RegionSubscriptionPlan(
                    region_id=region.id,
                    name=plan_name,
                    description=f"Basic access to the {name} region",
                    price=REGIONAL_PLAN_PRICE,
                )
            )
            created["regional_plans_created"] += 1

    for region_count, percentage in DEFAULT_DISCOUNT_TIERS:
        if db.query(MultiRegionDiscount).filter(MultiRegionDiscount.region_count == region_count).first() is None:
            db.add(MultiRegionDiscount(region_count=region_count, discount_percentage=percentage, active=True))
            created["discounts_created"] += 1

    db.commit()
    logger.info("Default catalogue ensured", extra={"event": "catalog.ensured", **created})
    return created
