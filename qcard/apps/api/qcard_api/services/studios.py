"""Studio lifecycle, studio profile and private notes on talent."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from qcard_api.db.enums import TenantType
from qcard_api.db.models import Location, Profile, Region, Studio, StudioNote, Tenant, User
from qcard_api.errors import DomainValidationError, NotFoundError, PermissionDeniedError
from qcard_api.services.accounts import default_studio_name, get_studio_for_user
from qcard_api.services.common import apply_updates, get_or_404, load_by_ids

logger = logging.getLogger(__name__)


def init_studio(db: Session, user: User) -> Studio:
    """Return the user's studio, creating it (and a STUDIO tenant) when missing.

    Raises:
        PermissionDeniedError: User belongs to a TALENT tenant
    """
    tenant = user.tenant
    if tenant is not None and tenant.type != TenantType.STUDIO.value:
        raise PermissionDeniedError("Only studio accounts can initialize a studio")

    studio = get_studio_for_user(db, user)
    if studio is not None:
        return studio

    name = default_studio_name(user.first_name or "", user.last_name or "").strip()
    if tenant is None:
        tenant = Tenant(name=name, type=TenantType.STUDIO.value)
        db.add(tenant)
        db.flush()
        user.tenant = tenant

    studio = Studio(name=tenant.name or name, tenant_id=tenant.id)
    db.add(studio)
    db.commit()
    db.refresh(studio)

    logger.info("Studio initialized", extra={"event": "studio.initialized", "studio_id": studio.id})
    return studio


def update_studio(db: Session, studio: Studio, updates: dict) -> Studio:
    apply_updates(studio, updates)
    db.commit()
    db.refresh(studio)
    return studio


def set_studio_regions(db: Session, studio: Studio, region_ids: list[str]) -> Studio:
    studio.regions = load_by_ids(db, Region, region_ids, "region")
    db.commit()
    db.refresh(studio)
    return studio


def set_studio_locations(db: Session, studio: Studio, location_ids: list[str]) -> Studio:
    studio.locations = load_by_ids(db, Location, location_ids, "location")
    db.commit()
    db.refresh(studio)
    return studio


def list_studios(db: Session, search: Optional[str] = None) -> list[Studio]:
    query = db.query(Studio)
    if search:
        query = query.filter(Studio.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Studio.name).all()


def delete_studio(db: Session, studio_id: str) -> None:
    """Delete a studio.

    Projects, casting calls, questionnaires, external actors and casting
    codes are removed by the database's ON DELETE CASCADE rules.
    """
    studio = get_or_404(db, Studio, studio_id, "Studio not found")
    db.delete(studio)
    db.commit()
    logger.info("Studio deleted", extra={"event": "studio.deleted", "deleted_studio_id": studio_id})


# ============================================================================
# Notes on talent
# ============================================================================

NOTE_MAX = 5000


def _note_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise DomainValidationError("Note content is required")
    if len(content) > NOTE_MAX:
        raise DomainValidationError(f"Note content must be at most {NOTE_MAX} characters")
    return content


def list_notes(db: Session, studio: Studio, profile_id: str) -> list[StudioNote]:
    """This studio's notes about one profile, newest first."""
    return (
        db.query(StudioNote)
        .filter(StudioNote.studio_id == studio.id, StudioNote.profile_id == profile_id)
        .order_by(StudioNote.created_at.desc())
        .all()
    )


def create_note(db: Session, studio: Studio, profile_id: str, content: Optional[str]) -> StudioNote:
    content = _note_content(content)
    profile = get_or_404(db, Profile, profile_id, "Profile not found")
    note = StudioNote(studio_id=studio.id, profile_id=profile.id, content=content)
    db.add(note)
    db.commit()
    db.refresh(note)
    logger.info("Studio note created", extra={"event": "studio_note.created", "note_id": note.id})
    return note


def get_note(db: Session, studio: Studio, note_id: str) -> StudioNote:
    """Raises NotFoundError for unknown ids and for another studio's notes."""
    note = db.query(StudioNote).filter(StudioNote.id == note_id, StudioNote.studio_id == studio.id).first()
    if note is None:
        raise NotFoundError("Note not found")
    return note


def update_note(db: Session, studio: Studio, note_id: str, content: Optional[str]) -> StudioNote:
    note = get_note(db, studio, note_id)
    note.content = _note_content(content)
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, studio: Studio, note_id: str) -> None:
    note = get_note(db, studio, note_id)
    db.delete(note)
    db.commit()
    logger.info("Studio note deleted", extra={"event": "studio_note.deleted", "note_id": note_id})
