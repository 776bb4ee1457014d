"""Regions and the locations grouped under them."""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from qcard_api.db.models import CastingCall, Location, Region, profile_regions, studio_regions
from qcard_api.errors import ConflictError, DomainValidationError
from qcard_api.services.common import get_or_404

logger = logging.getLogger(__name__)


def _counts_by_region(db: Session, column) -> dict[str, int]:
    rows = db.query(column, func.count()).filter(column.isnot(None)).group_by(column).all()
    return {region_id: count for region_id, count in rows}


def region_stats(db: Session) -> dict[str, dict[str, int]]:
    """Per-region counts of locations, casting calls, profiles and studios."""
    locations = _counts_by_region(db, Location.region_id)
    casting_calls = _counts_by_region(db, CastingCall.region_id)
    profiles = _counts_by_region(db, profile_regions.c.region_id)
    studios = _counts_by_region(db, studio_regions.c.region_id)
    region_ids = db.query(Region.id).all()
    return {
        rid: {
            "locations": locations.get(rid, 0),
            "casting_calls": casting_calls.get(rid, 0),
            "profiles": profiles.get(rid, 0),
            "studios": studios.get(rid, 0),
        }
        for (rid,) in region_ids
    }


def list_regions(db: Session, include_stats: bool = False) -> list[dict]:
    """Regions ordered by name, each optionally carrying usage counts."""
    regions = db.query(Region).order_by(Region.name).all()
    stats = region_stats(db) if include_stats else {}
    return [
        {
            "id": region.id,
            "name": region.name,
            "description": region.description,
            "created_at": region.created_at,
            "stats": stats.get(region.id) if include_stats else None,
        }
        for region in regions
    ]


def _check_name(db: Session, name: Optional[str], exclude_id: Optional[str] = None) -> str:
    name = (name or "").strip()
    if not name:
        raise DomainValidationError("Region name is required")
    query = db.query(Region).filter(func.lower(Region.name) == name.lower())
    if exclude_id:
        query = query.filter(Region.id != exclude_id)
    if query.first():
        raise ConflictError(f"A region named '{name}' already exists")
    return name


def create_region(db: Session, name: str, description: Optional[str] = None) -> Region:
    region = Region(name=_check_name(db, name), description=description)
    db.add(region)
    db.commit()
    db.refresh(region)
    logger.info("Region created", extra={"event": "region.created", "region_id": region.id})
    return region


def get_region(db: Session, region_id: str) -> Region:
    return get_or_404(db, Region, region_id, "Region not found")


def update_region(db: Session, region_id: str, updates: dict) -> Region:
    region = get_region(db, region_id)
    if "name" in updates:
        region.name = _check_name(db, updates["name"], exclude_id=region.id)
    if "description" in updates:
        region.description = updates["description"]
    db.commit()
    db.refresh(region)
    return region


def delete_region(db: Session, region_id: str) -> None:
    """Delete a region; locations and casting calls are detached, regional plans removed."""
    region = get_region(db, region_id)
    db.delete(region)
    db.commit()
    logger.info("Region deleted", extra={"event": "region.deleted", "region_id": region_id})


def list_locations(db: Session, region_id: Optional[str] = None) -> list[Location]:
    query = db.query(Location)
    if region_id:
        query = query.filter(Location.region_id == region_id)
    return query.order_by(Location.name).all()


def create_location(db: Session, name: str, region_id: Optional[str] = None) -> Location:
    if region_id:
        get_region(db, region_id)
    location = Location(name=name.strip(), region_id=region_id)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


def update_location(db: Session, location_id: str, updates: dict) -> Location:
    """PATCH a location; ``region_id: None`` detaches it from its region."""
    location = get_or_404(db, Location, location_id, "Location not found")
    if "region_id" in updates:
        if updates["region_id"]:
            get_region(db, updates["region_id"])
        location.region_id = updates["region_id"] or None
    if updates.get("name"):
        location.name = updates["name"].strip()
    db.commit()
    db.refresh(location)

    logger.info(
        "Location updated",
        extra={"event": "location.updated", "location_id": location.id, "region_id": location.region_id},
    )
    return location
