"""Suggested roles for a talent profile.

Suggestions are drawn from the regions the user subscribes to (active or
trialing regional add-ons). Two sources are scored:

- active talent requirements of live projects, scored on gender, age,
  ethnicity, height and skills; kept at ``REQUIREMENT_THRESHOLD`` or more
- open casting calls of live projects located in a subscribed region; a
  flat ``CASTING_CALL_BASE`` plus the skill bonus

Results are ordered by score, best first.
"""

import logging
from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from qcard_api.db.enums import ENTITLED_SUBSCRIPTION_STATUSES, CastingCallStatus, ProjectStatus
from qcard_api.db.models import (
    CastingCall,
    Location,
    Profile,
    Project,
    Region,
    RegionSubscriptionPlan,
    TalentRequirement,
    UserRegionSubscription,
)
from qcard_api.utils.clock import utcnow

logger = logging.getLogger(__name__)

NO_REGIONS_MESSAGE = "No active region subscriptions found. Subscribe to regions to see suggested roles."
CLOSED_PROJECT_STATUSES = (
    ProjectStatus.COMPLETED.value,
    ProjectStatus.CANCELLED.value,
    ProjectStatus.ARCHIVED.value,
)

REQUIREMENT_THRESHOLD = 30
CASTING_CALL_BASE = 40
SKILL_POINTS = 5
SKILL_CAP = 25


def age_on(birth_date: Optional[date], today: date) -> Optional[int]:
    if birth_date is None:
        return None
    before_birthday = (today.month, today.day) < (birth_date.month, birth_date.day)
    return today.year - birth_date.year - before_birthday


def _as_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def skill_bonus(profile_skills: list[str], wanted: Iterable[str]) -> tuple[int, Optional[str]]:
    """Points for profile skills overlapping ``wanted`` (substring either way)."""
    wanted = [w for w in wanted if w]
    matching = [skill for skill in profile_skills if any(w in skill or skill in w for w in wanted)]
    if not matching:
        return 0, None
    return min(SKILL_CAP, len(matching) * SKILL_POINTS), f"{len(matching)} matching skills"


def score_requirement(
    requirement: TalentRequirement, profile: Profile, profile_skills: list[str], age: Optional[int]
) -> tuple[int, list[str]]:
    score, reasons = 0, []

    if requirement.gender and profile.gender:
        if requirement.gender.lower() == profile.gender.lower():
            score += 20
            reasons.append("Gender match")
    else:
        score += 10

    min_age, max_age = _as_int(requirement.min_age), _as_int(requirement.max_age)
    if age is not None and min_age is not None and max_age is not None:
        if min_age <= age <= max_age:
            score += 20
            reasons.append("Age match")
    elif age is not None and min_age is not None and age >= min_age:
        score += 15
        reasons.append("Above minimum age")
    elif age is not None and max_age is not None and age <= max_age:
        score += 15
        reasons.append("Below maximum age")
    else:
        score += 10

    if requirement.ethnicity and profile.ethnicity:
        wanted, actual = requirement.ethnicity.lower(), profile.ethnicity.lower()
        if wanted in actual or actual in wanted:
            score += 15
            reasons.append("Ethnicity match")
    else:
        score += 5

    if requirement.height and profile.height:
        score += 10
        reasons.append("Height considered")

    if requirement.skills and profile_skills:
        points, reason = skill_bonus(profile_skills, (s.strip() for s in requirement.skills.lower().split(",")))
        if reason:
            score += points
            reasons.append(reason)

    return score, reasons


def _subscribed_regions(db: Session, profile: Profile) -> list[Region]:
    return (
        db.query(Region)
        .join(RegionSubscriptionPlan, RegionSubscriptionPlan.region_id == Region.id)
        .join(UserRegionSubscription, UserRegionSubscription.region_plan_id == RegionSubscriptionPlan.id)
        .filter(
            UserRegionSubscription.user_id == profile.user_id,
            UserRegionSubscription.status.in_(ENTITLED_SUBSCRIPTION_STATUSES),
        )
        .order_by(Region.name)
        .all()
    )


def _requirement_role(requirement: TalentRequirement) -> dict[str, Any]:
    age_range = None
    if requirement.min_age or requirement.max_age:
        age_range = f"{requirement.min_age or ''} - {requirement.max_age or ''}"
    return {
        "id": requirement.id,
        "title": requirement.title,
        "description": requirement.description,
        "gender": requirement.gender,
        "age_range": age_range,
        "skills": requirement.skills,
        "requirements": None,
    }


def suggested_roles(db: Session, profile: Profile, today: Optional[date] = None) -> dict[str, Any]:
    regions = _subscribed_regions(db, profile)
    if not regions:
        return {"message": NO_REGIONS_MESSAGE, "suggested_roles": [], "subscribed_regions": []}

    region_ids = [region.id for region in regions]
    location_ids = [loc_id for (loc_id,) in db.query(Location.id).filter(Location.region_id.in_(region_ids))]
    locations = {loc.id: loc for loc in db.query(Location).filter(Location.id.in_(location_ids))}

    calls_in_regions = (
        db.query(CastingCall)
        .join(Project, Project.id == CastingCall.project_id)
        .filter(
            CastingCall.status == CastingCallStatus.OPEN.value,
            or_(CastingCall.location_id.in_(location_ids), CastingCall.region_id.in_(region_ids)),
            Project.status.notin_(CLOSED_PROJECT_STATUSES),
        )
        .order_by(CastingCall.created_at)
        .all()
    )
    requirements = (
        db.query(TalentRequirement)
        .join(Project, Project.id == TalentRequirement.project_id)
        .filter(TalentRequirement.is_active.is_(True), Project.status.notin_(CLOSED_PROJECT_STATUSES))
        .order_by(TalentRequirement.created_at)
        .all()
    )
    projects = {
        project.id: project
        for project in db.query(Project).filter(
            Project.id.in_(list({c.project_id for c in calls_in_regions} | {r.project_id for r in requirements}))
        )
    }

    profile_skills = [skill.name.lower() for skill in profile.skills]
    age = age_on(profile.date_of_birth, today or utcnow().date())
    calls_by_project: dict[str, list[CastingCall]] = {}
    for call in calls_in_regions:
        calls_by_project.setdefault(call.project_id, []).append(call)

    def _location(location_id: Optional[str]) -> Optional[dict[str, str]]:
        location = locations.get(location_id)
        return {"id": location.id, "name": location.name} if location else None

    def _entry(kind: str, project: Project, role: dict, score: int, reasons: list[str], where: list) -> dict:
        return {
            "id": role["id"],
            "type": kind,
            "project_id": project.id,
            "project_title": project.title,
            "studio_id": project.studio_id,
            "studio_name": project.studio.name,
            "role": role,
            "match_score": score,
            "match_reasons": reasons,
            "locations": where,
        }

    roles = []
    for requirement in requirements:
        score, reasons = score_requirement(requirement, profile, profile_skills, age)
        if score < REQUIREMENT_THRESHOLD:
            continue
        project = projects[requirement.project_id]
        where = []
        for call in calls_by_project.get(project.id, []):
            location = _location(call.location_id)
            if location and location not in where:
                where.append(location)
        roles.append(_entry("requirement", project, _requirement_role(requirement), score, reasons, where))

    for call in calls_in_regions:
        score, reasons = CASTING_CALL_BASE, ["In your subscribed region"]
        points, reason = skill_bonus(profile_skills, [skill.name.lower() for skill in call.skills])
        if reason:
            score += points
            reasons.append(reason)
        role = {
            "id": call.id,
            "title": call.title,
            "description": call.description,
            "gender": call.gender,
            "age_range": call.age_range,
            "skills": ", ".join(skill.name for skill in call.skills) or None,
            "requirements": call.requirements,
        }
        location = _location(call.location_id)
        roles.append(
            _entry("casting_call", projects[call.project_id], role, score, reasons, [location] if location else [])
        )

    roles.sort(key=lambda entry: entry["match_score"], reverse=True)
    logger.info(
        "Suggested roles computed",
        extra={"event": "talent.suggested_roles", "profile_id": profile.id, "count": len(roles)},
    )
    return {"message": None, "suggested_roles": roles, "subscribed_regions": regions}
