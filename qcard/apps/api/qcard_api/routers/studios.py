"""Studio profile endpoints (studio side)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import get_current_user, require_studio
from qcard_api.db.models import Studio, User
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    FieldValueResponse,
    FieldValuesUpdate,
    IdListRequest,
    LocationResponse,
    ProfileResponse,
    RegionBrief,
    StudioNoteRequest,
    StudioNoteResponse,
    StudioResponse,
    StudioUpdate,
)
from qcard_api.services import custom_fields, profiles, studios

router = APIRouter(prefix="/v1/studio", tags=["studio"])


@router.post("/init", response_model=StudioResponse)
async def init_studio(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Studio:
    """Create the caller's studio if it does not exist yet (idempotent)."""
    return studios.init_studio(db, user)


@router.get("", response_model=StudioResponse)
async def get_studio(studio: Studio = Depends(require_studio)) -> Studio:
    return studio


@router.patch("", response_model=StudioResponse)
async def update_studio(
    request: StudioUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> Studio:
    return studios.update_studio(db, studio, request.model_dump(exclude_unset=True))


@router.get("/regions", response_model=list[RegionBrief])
async def get_studio_regions(studio: Studio = Depends(require_studio)):
    return studio.regions


@router.put("/regions", response_model=list[RegionBrief])
async def set_studio_regions(
    request: IdListRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return studios.set_studio_regions(db, studio, request.ids).regions


@router.get("/locations", response_model=list[LocationResponse])
async def get_studio_locations(studio: Studio = Depends(require_studio)):
    return studio.locations


@router.put("/locations", response_model=list[LocationResponse])
async def set_studio_locations(
    request: IdListRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return studios.set_studio_locations(db, studio, request.ids).locations


@router.get("/fields", response_model=list[FieldValueResponse])
async def get_studio_field_values(studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return custom_fields.get_field_values(db, studio)


@router.put("/fields", response_model=list[FieldValueResponse])
async def set_studio_field_values(
    request: FieldValuesUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    custom_fields.set_field_values(db, studio, request.values)
    return custom_fields.get_field_values(db, studio)


@router.get("/talent-search", response_model=list[ProfileResponse])
async def talent_search(
    q: Optional[str] = Query(None, description="Name contains"),
    gender: Optional[str] = None,
    ethnicity: Optional[str] = None,
    skill: Optional[str] = None,
    region_id: Optional[str] = None,
    available_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return profiles.search_talent(
        db,
        query=q,
        gender=gender,
        ethnicity=ethnicity,
        skill=skill,
        region_id=region_id,
        available_only=available_only,
        limit=limit,
    )


@router.get("/talent/{profile_id}", response_model=ProfileResponse, status_code=status.HTTP_200_OK)
async def get_talent_profile(
    profile_id: str,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return profiles.get_profile(db, profile_id)


# ============================================================================
# Notes on talent
# ============================================================================


@router.get("/talent/{profile_id}/notes", response_model=list[StudioNoteResponse])
async def list_talent_notes(profile_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return studios.list_notes(db, studio, profile_id)


@router.post(
    "/talent/{profile_id}/notes", status_code=status.HTTP_201_CREATED, response_model=StudioNoteResponse
)
async def create_talent_note(
    profile_id: str,
    request: StudioNoteRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    """Add a note visible only to this studio.

    Raises:
        400: Blank content
        404: Profile not found
    """
    return studios.create_note(db, studio, profile_id, request.content)


@router.get("/notes/{note_id}", response_model=StudioNoteResponse)
async def get_note(note_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return studios.get_note(db, studio, note_id)


@router.patch("/notes/{note_id}", response_model=StudioNoteResponse)
async def update_note(
    note_id: str,
    request: StudioNoteRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return studios.update_note(db, studio, note_id, request.content)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    studios.delete_note(db, studio, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
