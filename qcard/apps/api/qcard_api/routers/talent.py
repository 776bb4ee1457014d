"""Talent profile endpoints (talent side)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_talent
from qcard_api.db.models import Profile
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    FieldValueResponse,
    FieldValuesUpdate,
    IdListRequest,
    LocationResponse,
    ProfileResponse,
    ProfileUpdate,
    SkillsUpdate,
)
from qcard_api.services import custom_fields, profiles

router = APIRouter(prefix="/v1/talent/profile", tags=["talent"])


@router.get("", response_model=ProfileResponse)
async def get_profile(profile: Profile = Depends(require_talent)) -> Profile:
    return profile


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdate,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
) -> Profile:
    return profiles.update_profile(db, profile, request.model_dump(exclude_unset=True))


@router.put("/skills", response_model=ProfileResponse)
async def set_skills(
    request: SkillsUpdate,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
) -> Profile:
    return profiles.set_profile_skills(db, profile, request.skills)


@router.put("/regions", response_model=ProfileResponse)
async def set_regions(
    request: IdListRequest,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
) -> Profile:
    """Replace the profile's regions (400 on unknown ids)."""
    return profiles.set_profile_regions(db, profile, request.ids)


@router.get("/locations", response_model=list[LocationResponse])
async def get_locations(profile: Profile = Depends(require_talent)):
    return profile.locations


@router.put("/locations", response_model=list[LocationResponse])
async def set_locations(
    request: IdListRequest,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    return profiles.set_profile_locations(db, profile, request.ids).locations


@router.get("/fields", response_model=list[FieldValueResponse])
async def get_field_values(profile: Profile = Depends(require_talent), db: Session = Depends(get_db)):
    return custom_fields.get_field_values(db, profile)


@router.put("/fields", response_model=list[FieldValueResponse])
async def set_field_values(
    request: FieldValuesUpdate,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    custom_fields.set_field_values(db, profile, request.values)
    return custom_fields.get_field_values(db, profile)
