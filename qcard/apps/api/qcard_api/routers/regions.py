"""Region and location endpoints.

Anyone signed in can read regions and locations and add a location.
Region writes are SUPER_ADMIN only; re-homing a location is admin only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import get_current_user, require_admin, require_super_admin
from qcard_api.db.models import User
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    LocationCreate,
    LocationResponse,
    LocationUpdate,
    RegionCreate,
    RegionResponse,
    RegionUpdate,
)
from qcard_api.services import regions

router = APIRouter(prefix="/v1", tags=["regions"])


# ============================================================================
# Regions
# ============================================================================


@router.get("/regions", response_model=list[RegionResponse])
async def list_regions(
    include_stats: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return regions.list_regions(db, include_stats)


@router.post("/regions", status_code=status.HTTP_201_CREATED, response_model=RegionResponse)
async def create_region(
    request: RegionCreate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Create a region.

    Raises:
        400: Region name is required
        409: Name already taken (case-insensitive)
    """
    return regions.create_region(db, request.name, request.description)


@router.get("/regions/{region_id}", response_model=RegionResponse)
async def get_region(region_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return regions.get_region(db, region_id)


@router.patch("/regions/{region_id}", response_model=RegionResponse)
async def update_region(
    region_id: str,
    request: RegionUpdate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return regions.update_region(db, region_id, request.model_dump(exclude_unset=True))


@router.delete("/regions/{region_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_region(
    region_id: str, admin: User = Depends(require_super_admin), db: Session = Depends(get_db)
) -> Response:
    regions.delete_region(db, region_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Locations
# ============================================================================


@router.get("/locations", response_model=list[LocationResponse])
async def list_locations(
    region_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return regions.list_locations(db, region_id)


@router.post("/locations", status_code=status.HTTP_201_CREATED, response_model=LocationResponse)
async def create_location(
    request: LocationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return regions.create_location(db, request.name, request.region_id)


@router.patch("/locations/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    request: LocationUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Rename a location or move it between regions (region_id=null detaches)."""
    return regions.update_location(db, location_id, request.model_dump(exclude_unset=True))
