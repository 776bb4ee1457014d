"""Casting code endpoints.

Studio management lives under /v1/studio/casting-codes. The public pair
GET /v1/casting-codes/{code} and POST /v1/casting-codes/submit need no
identity: applicants reach them from a QR code or shared link.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_studio
from qcard_api.db.models import Studio
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    CastingCodeCreate,
    CastingCodeResponse,
    CastingCodeSubmitRequest,
    CastingCodeSubmitResponse,
    CastingCodeUpdate,
    CastingSubmissionResponse,
    CastingSubmissionStatusUpdate,
    PublicCastingCodeResponse,
    QRCodeResponse,
)
from qcard_api.services import casting_codes

studio_router = APIRouter(prefix="/v1/studio/casting-codes", tags=["casting-codes"])
public_router = APIRouter(prefix="/v1/casting-codes", tags=["casting-codes"])


# ============================================================================
# Studio side
# ============================================================================


@studio_router.get("", response_model=list[CastingCodeResponse])
async def list_casting_codes(
    project_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_codes.list_casting_codes(db, studio, project_id, is_active)


@studio_router.post("", status_code=status.HTTP_201_CREATED, response_model=CastingCodeResponse)
async def create_casting_code(
    request: CastingCodeCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_codes.create_casting_code(db, studio, request)


@studio_router.patch("/submissions/{submission_id}", response_model=CastingSubmissionResponse)
async def update_submission_status(
    submission_id: str,
    request: CastingSubmissionStatusUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_codes.update_submission_status(db, studio, submission_id, request.status)


@studio_router.get("/{casting_code_id}", response_model=CastingCodeResponse)
async def get_casting_code(
    casting_code_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return casting_codes.get_casting_code(db, studio, casting_code_id)


@studio_router.patch("/{casting_code_id}", response_model=CastingCodeResponse)
async def update_casting_code(
    casting_code_id: str,
    request: CastingCodeUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return casting_codes.update_casting_code(db, studio, casting_code_id, request.model_dump(exclude_unset=True))


@studio_router.delete("/{casting_code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_casting_code(
    casting_code_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    casting_codes.delete_casting_code(db, studio, casting_code_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@studio_router.get("/{casting_code_id}/qr", response_model=QRCodeResponse)
async def get_qr_code(
    casting_code_id: str,
    size: int = Query(casting_codes.QR_DEFAULT_SIZE),
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> QRCodeResponse:
    """QR code PNG (data URL) pointing at the public application page.

    Raises:
        400: size outside 100-1000
    """
    casting_code = casting_codes.get_casting_code(db, studio, casting_code_id)
    return QRCodeResponse(**casting_codes.build_qr_code(casting_code.code, size))


@studio_router.get("/{casting_code_id}/submissions", response_model=list[CastingSubmissionResponse])
async def list_submissions(
    casting_code_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return casting_codes.list_submissions(db, studio, casting_code_id)


# ============================================================================
# Public
# ============================================================================


@public_router.post("/submit", status_code=status.HTTP_201_CREATED, response_model=CastingCodeSubmitResponse)
async def submit_casting_code(
    request: CastingCodeSubmitRequest, db: Session = Depends(get_db)
) -> CastingCodeSubmitResponse:
    """Submit an application against a casting code.

    Raises:
        400: Code inactive or expired
        404: Invalid casting code
    """
    result = casting_codes.submit_casting_code(
        db,
        code=request.code,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone_number=request.phone_number,
        message=request.message,
        survey_responses=request.survey_responses,
    )
    return CastingCodeSubmitResponse(**result)


@public_router.get("/{code}", response_model=PublicCastingCodeResponse)
async def get_public_casting_code(code: str, db: Session = Depends(get_db)) -> PublicCastingCodeResponse:
    return PublicCastingCodeResponse(**casting_codes.describe_public_code(db, code))
