"""External actor endpoints (studio contact list and CSV import)."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_studio
from qcard_api.db.enums import ExternalActorStatus
from qcard_api.db.models import Studio
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    ExternalActorCreate,
    ExternalActorImportRequest,
    ExternalActorImportResponse,
    ExternalActorResponse,
    ExternalActorUpdate,
)
from qcard_api.services import external_actors

router = APIRouter(prefix="/v1/studio/external-actors", tags=["external-actors"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[ExternalActorResponse])
async def list_external_actors(
    status_filter: Optional[ExternalActorStatus] = Query(None, alias="status"),
    project_id: Optional[str] = None,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    search: Optional[str] = None,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return external_actors.list_external_actors(
        db,
        studio,
        status=status_filter,
        project_id=project_id,
        email=email,
        phone_number=phone_number,
        search=search,
    )


@router.get("/search", response_model=list[ExternalActorResponse])
async def search_external_actors(
    q: str = Query(..., min_length=1),
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return external_actors.search_external_actors(db, studio, q)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ExternalActorResponse)
async def add_external_actor(
    request: ExternalActorCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    """Add one actor.

    Raises:
        400: Name missing, or neither email nor phone given
        409: Same email, or same name and phone, already in the studio
    """
    return external_actors.add_external_actor(
        db,
        studio,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone_number=request.phone_number,
        notes=request.notes,
        project_id=request.project_id,
    )


@router.post("/import", response_model=ExternalActorImportResponse)
async def import_external_actors(
    request: ExternalActorImportRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> ExternalActorImportResponse:
    """Bulk import from CSV text.

    Row-level problems are reported in ``errors``; the request only fails
    when the CSV as a whole cannot be parsed.
    """
    result = external_actors.import_external_actors_csv(db, studio, request.csv_data, request.project_id)
    return ExternalActorImportResponse(**result)


@router.get("/{actor_id}", response_model=ExternalActorResponse)
async def get_external_actor(actor_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return external_actors.get_external_actor(db, studio, actor_id)


@router.patch("/{actor_id}", response_model=ExternalActorResponse)
async def update_external_actor(
    actor_id: str,
    request: ExternalActorUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return external_actors.update_external_actor(db, studio, actor_id, request.model_dump(exclude_unset=True))


@router.delete("/{actor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_external_actor(
    actor_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    external_actors.delete_external_actor(db, studio, actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
