"""Talent profiles: attributes, skills, regions and studio-side talent search."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from qcard_api.db.models import Location, Profile, Region, Skill, User
from qcard_api.services.common import apply_updates, get_or_404, load_by_ids

logger = logging.getLogger(__name__)


def get_or_create_skills(db: Session, names: list[str]) -> list[Skill]:
    """Resolve skill names, creating Skill rows on first use (case-insensitive)."""
    skills = []
    seen = set()
    for raw in names:
        name = raw.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        skill = db.query(Skill).filter(Skill.name.ilike(name)).first()
        if skill is None:
            skill = Skill(name=name)
            db.add(skill)
            db.flush()
        skills.append(skill)
    return skills


def update_profile(db: Session, profile: Profile, updates: dict) -> Profile:
    apply_updates(profile, updates)
    db.commit()
    db.refresh(profile)
    return profile


def set_profile_skills(db: Session, profile: Profile, names: list[str]) -> Profile:
    profile.skills = get_or_create_skills(db, names)
    db.commit()
    db.refresh(profile)
    return profile


def set_profile_regions(db: Session, profile: Profile, region_ids: list[str]) -> Profile:
    """Replace the profile's regions.

    Raises:
        DomainValidationError: Any id is not a known region
    """
    profile.regions = load_by_ids(db, Region, region_ids, "region")
    db.commit()
    db.refresh(profile)
    logger.info(
        "Profile regions updated",
        extra={"event": "profile.regions_updated", "profile_id": profile.id, "count": len(profile.regions)},
    )
    return profile


def set_profile_locations(db: Session, profile: Profile, location_ids: list[str]) -> Profile:
    profile.locations = load_by_ids(db, Location, location_ids, "location")
    db.commit()
    db.refresh(profile)
    return profile


def get_profile(db: Session, profile_id: str) -> Profile:
    return get_or_404(db, Profile, profile_id, "Talent profile not found")


def search_talent(
    db: Session,
    *,
    query: Optional[str] = None,
    gender: Optional[str] = None,
    ethnicity: Optional[str] = None,
    skill: Optional[str] = None,
    region_id: Optional[str] = None,
    available_only: bool = False,
    limit: int = 50,
) -> list[Profile]:
    """Studio-side talent search over profile attributes."""
    q = db.query(Profile).join(User, User.id == Profile.user_id)
    if query:
        pattern = f"%{query.strip()}%"
        q = q.filter(User.first_name.ilike(pattern) | User.last_name.ilike(pattern))
    if gender:
        q = q.filter(Profile.gender.ilike(gender))
    if ethnicity:
        q = q.filter(Profile.ethnicity.ilike(f"%{ethnicity}%"))
    if skill:
        q = q.filter(Profile.skills.any(Skill.name.ilike(skill)))
    if region_id:
        q = q.filter(Profile.regions.any(Region.id == region_id))
    if available_only:
        q = q.filter(Profile.availability.is_(True))
    return q.order_by(User.last_name, User.first_name).limit(limit).all()
