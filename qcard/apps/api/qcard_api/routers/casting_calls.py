"""Casting call endpoints.

Studios publish and review under /v1/studio/casting-calls; talent browses
and applies under /v1/casting-calls and /v1/talent/applications.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_studio, require_talent
from qcard_api.db.enums import (
    CastingCallStatus,
    CompensationType,
    ExperienceLevel,
    GenderRequirement,
    RoleType,
)
from qcard_api.db.models import Profile, Studio
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    ApplicationBrief,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusUpdate,
    CastingCallCreate,
    CastingCallInvitationBatchResponse,
    CastingCallInvitationCreate,
    CastingCallInvitationResponse,
    CastingCallResponse,
    CastingCallUpdate,
    OpenCastingCallResponse,
)
from qcard_api.services import casting_calls

studio_router = APIRouter(prefix="/v1/studio/casting-calls", tags=["casting-calls"])
router = APIRouter(prefix="/v1", tags=["casting-calls"])


# ============================================================================
# Studio side
# ============================================================================


@studio_router.get("", response_model=list[CastingCallResponse])
async def list_studio_casting_calls(
    status_filter: Optional[CastingCallStatus] = Query(None, alias="status"),
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_calls.list_studio_casting_calls(db, studio, status_filter)


@studio_router.post("", status_code=status.HTTP_201_CREATED, response_model=CastingCallResponse)
async def create_casting_call(
    request: CastingCallCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    """Publish a casting call.

    Raises:
        404: Referenced project, location or region not found
    """
    return casting_calls.create_casting_call(db, studio, request)


@studio_router.get("/{casting_call_id}", response_model=CastingCallResponse)
async def get_studio_casting_call(
    casting_call_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return casting_calls.get_studio_casting_call(db, studio, casting_call_id)


@studio_router.patch("/{casting_call_id}", response_model=CastingCallResponse)
async def update_casting_call(
    casting_call_id: str,
    request: CastingCallUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_calls.update_casting_call(db, studio, casting_call_id, request.model_dump(exclude_unset=True))


@studio_router.delete("/{casting_call_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_casting_call(
    casting_call_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    casting_calls.delete_casting_call(db, studio, casting_call_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@studio_router.get("/{casting_call_id}/applications", response_model=list[ApplicationResponse])
async def list_applications(
    casting_call_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return casting_calls.list_applications(db, studio, casting_call_id)


@studio_router.post(
    "/{casting_call_id}/invitations",
    status_code=status.HTTP_201_CREATED,
    response_model=CastingCallInvitationBatchResponse,
)
async def invite_to_casting_call(
    casting_call_id: str,
    request: CastingCallInvitationCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> CastingCallInvitationBatchResponse:
    """Message talent an invitation to apply.

    Raises:
        400: No valid talent profiles
        404: Casting call not found
        409: Every selected talent was already invited
    """
    sent, skipped = casting_calls.invite_to_casting_call(
        db, studio, casting_call_id, request.profile_ids, request.message
    )
    return CastingCallInvitationBatchResponse(
        message=f"Sent {len(sent)} invitation(s)", count=len(sent), skipped=skipped
    )


@studio_router.get("/{casting_call_id}/invitations", response_model=list[CastingCallInvitationResponse])
async def list_casting_call_invitations(
    casting_call_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return casting_calls.list_casting_call_invitations(db, studio, casting_call_id)


@studio_router.patch("/applications/{application_id}", response_model=ApplicationResponse)
async def review_application(
    application_id: str,
    request: ApplicationStatusUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_calls.update_application_status(db, studio, application_id, request.status)


# ============================================================================
# Talent side
# ============================================================================


@router.get("/casting-calls", response_model=list[OpenCastingCallResponse])
async def list_open_casting_calls(
    region_id: Optional[str] = None,
    location_id: Optional[str] = None,
    project_id: Optional[str] = None,
    compensation_type: Optional[CompensationType] = None,
    experience_level: Optional[ExperienceLevel] = None,
    gender: Optional[GenderRequirement] = None,
    role_type: Optional[RoleType] = None,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
) -> list[OpenCastingCallResponse]:
    """OPEN casting calls, each with the caller's application (or null)."""
    calls = casting_calls.list_open_casting_calls(
        db,
        region_id=region_id,
        location_id=location_id,
        project_id=project_id,
        compensation_type=compensation_type,
        experience_level=experience_level,
        gender=gender,
        role_type=role_type,
    )
    applied = casting_calls.applications_by_call(db, profile, [call.id for call in calls])

    listings = []
    for call in calls:
        listing = OpenCastingCallResponse.model_validate(call)
        if call.id in applied:
            listing.application = ApplicationBrief.model_validate(applied[call.id])
        listings.append(listing)
    return listings


@router.get("/casting-calls/{casting_call_id}", response_model=CastingCallResponse)
async def get_casting_call(
    casting_call_id: str, profile: Profile = Depends(require_talent), db: Session = Depends(get_db)
):
    return casting_calls.get_casting_call(db, casting_call_id)


@router.post(
    "/casting-calls/{casting_call_id}/apply",
    status_code=status.HTTP_201_CREATED,
    response_model=ApplicationResponse,
)
async def apply_to_casting_call(
    casting_call_id: str,
    request: ApplicationCreate,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    """Apply to an OPEN casting call.

    Raises:
        400: Message length, call closed, or already applied
        404: Casting call not found
    """
    return casting_calls.apply_to_casting_call(db, profile, casting_call_id, request.message)


@router.get("/talent/applications", response_model=list[ApplicationResponse])
async def list_my_applications(profile: Profile = Depends(require_talent), db: Session = Depends(get_db)):
    return casting_calls.list_talent_applications(db, profile)
