"""External actors: studio-managed contacts who are not platform users yet.

An actor becomes CONVERTED when a talent account with the same email or
phone number exists (at creation time) or signs up later
(``convert_external_actors_for_user``).
"""

import logging
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from qcard_api.db.enums import ExternalActorStatus
from qcard_api.db.models import ExternalActor, ExternalActorProject, Project, ProjectMember, Studio, User
from qcard_api.errors import ConflictError, DomainValidationError, NotFoundError
from qcard_api.services.common import apply_updates, clean, normalize_email
from qcard_api.services.csv_import import parse_external_actor_csv
from qcard_api.utils.clock import utcnow

logger = logging.getLogger(__name__)

DEFAULT_CONVERTED_ROLE = "Talent"


def _studio_project(db: Session, studio: Studio, project_id: str) -> Project:
    project = (
        db.query(Project).filter(Project.id == project_id, Project.studio_id == studio.id).first()
    )
    if project is None:
        raise NotFoundError("Project not found")
    return project


def find_duplicate(
    db: Session,
    studio_id: str,
    first_name: str,
    last_name: str,
    email: Optional[str],
    phone_number: Optional[str],
) -> Optional[ExternalActor]:
    """Same email within the studio, or (without email) same name and phone."""
    query = db.query(ExternalActor).filter(ExternalActor.studio_id == studio_id)
    if email:
        return query.filter(ExternalActor.email == email).first()
    return query.filter(
        ExternalActor.first_name == first_name,
        ExternalActor.last_name == last_name,
        ExternalActor.phone_number == phone_number,
    ).first()


def link_actor_to_project(
    db: Session, actor: ExternalActor, project_id: str, role: Optional[str] = None
) -> ExternalActorProject:
    """Return the actor/project link, creating it when missing."""
    link = (
        db.query(ExternalActorProject)
        .filter(
            ExternalActorProject.external_actor_id == actor.id,
            ExternalActorProject.project_id == project_id,
        )
        .first()
    )
    if link is None:
        link = ExternalActorProject(external_actor_id=actor.id, project_id=project_id, role=role)
        db.add(link)
        db.flush()
    return link


def _create_actor(
    db: Session,
    studio: Studio,
    *,
    first_name: str,
    last_name: str,
    email: Optional[str],
    phone_number: Optional[str],
    notes: Optional[str],
    project: Optional[Project],
) -> ExternalActor:
    actor = ExternalActor(
        studio_id=studio.id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone_number=phone_number,
        notes=notes,
        status=ExternalActorStatus.ACTIVE.value,
    )

    if email:
        user = db.query(User).filter(User.email == email).first()
        if user is not None and user.profile is not None:
            actor.status = ExternalActorStatus.CONVERTED.value
            actor.converted_profile_id = user.profile.id
            actor.converted_to_user_id = user.id
            actor.converted_to_talent_at = utcnow()

    db.add(actor)
    db.flush()

    if project is not None:
        link_actor_to_project(db, actor, project.id)
    return actor


def add_external_actor(
    db: Session,
    studio: Studio,
    *,
    first_name: str,
    last_name: str,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    notes: Optional[str] = None,
    project_id: Optional[str] = None,
) -> ExternalActor:
    """Add a single actor to the studio's contact list.

    Raises:
        DomainValidationError: Name missing, or neither email nor phone given
        ConflictError: Actor already exists in this studio
        NotFoundError: project_id is not one of the studio's projects
    """
    first_name = clean(first_name)
    last_name = clean(last_name)
    email = normalize_email(email)
    phone_number = clean(phone_number)

    if not first_name or not last_name or not (email or phone_number):
        raise DomainValidationError(
            "Missing required fields: First Name, Last Name, Email or Phone Number"
        )

    if find_duplicate(db, studio.id, first_name, last_name, email, phone_number):
        raise ConflictError("An external actor with this email already exists in your studio")

    project = _studio_project(db, studio, project_id) if project_id else None
    actor = _create_actor(
        db,
        studio,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone_number=phone_number,
        notes=clean(notes),
        project=project,
    )
    db.commit()
    db.refresh(actor)

    logger.info(
        "External actor added",
        extra={
            "event": "external_actor.created",
            "external_actor_id": actor.id,
            "studio_id": studio.id,
            "status": actor.status,
        },
    )
    return actor


def import_external_actors_csv(
    db: Session, studio: Studio, csv_text: str, project_id: Optional[str] = None
) -> dict:
    """Bulk-add actors from CSV text.

    Row failures are collected instead of aborting the upload.

    Returns:
        {"success": int, "errors": [{"row", "email", "error"}], "duplicates": int}

    Raises:
        DomainValidationError: CSV could not be parsed
        NotFoundError: project_id is not one of the studio's projects
    """
    project = _studio_project(db, studio, project_id) if project_id else None
    rows = parse_external_actor_csv(csv_text)

    results: dict = {"success": 0, "errors": [], "duplicates": 0}
    for row in rows:
        missing = row.missing_fields()
        if missing:
            results["errors"].append(
                {
                    "row": row.row,
                    "email": row.email or "Missing",
                    "error": f"Missing required fields: {', '.join(missing)}",
                }
            )
            continue

        email = None
        if row.email:
            try:
                email = validate_email(row.email, check_deliverability=False).normalized.lower()
            except EmailNotValidError as e:
                results["errors"].append({"row": row.row, "email": row.email, "error": f"email: {e}"})
                continue

        if find_duplicate(db, studio.id, row.first_name, row.last_name, email, row.phone_number):
            results["duplicates"] += 1
            continue

        _create_actor(
            db,
            studio,
            first_name=row.first_name,
            last_name=row.last_name,
            email=email,
            phone_number=row.phone_number,
            notes=row.notes,
            project=project,
        )
        results["success"] += 1

    db.commit()

    logger.info(
        "External actors imported",
        extra={
            "event": "external_actor.imported",
            "studio_id": studio.id,
            "rows": len(rows),
            "created_count": results["success"],
            "duplicates": results["duplicates"],
            "failed": len(results["errors"]),
        },
    )
    return results


def list_external_actors(
    db: Session,
    studio: Studio,
    *,
    status: Optional[ExternalActorStatus] = None,
    project_id: Optional[str] = None,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    search: Optional[str] = None,
) -> list[ExternalActor]:
    query = db.query(ExternalActor).filter(ExternalActor.studio_id == studio.id)
    if status:
        query = query.filter(ExternalActor.status == ExternalActorStatus(status).value)
    if project_id:
        query = query.join(
            ExternalActorProject, ExternalActorProject.external_actor_id == ExternalActor.id
        ).filter(ExternalActorProject.project_id == project_id)
    if email:
        query = query.filter(ExternalActor.email == normalize_email(email))
    if phone_number:
        query = query.filter(ExternalActor.phone_number == phone_number.strip())
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(ExternalActor.first_name).like(pattern),
                func.lower(ExternalActor.last_name).like(pattern),
                func.lower(ExternalActor.email).like(pattern),
                ExternalActor.phone_number.like(pattern),
            )
        )
    return query.order_by(ExternalActor.last_name, ExternalActor.first_name).all()


def search_external_actors(db: Session, studio: Studio, term: str) -> list[ExternalActor]:
    """Case-insensitive substring match on name, email or phone."""
    return list_external_actors(db, studio, search=term)


def get_external_actor(db: Session, studio: Studio, actor_id: str) -> ExternalActor:
    actor = (
        db.query(ExternalActor)
        .filter(ExternalActor.id == actor_id, ExternalActor.studio_id == studio.id)
        .first()
    )
    if actor is None:
        raise NotFoundError("External actor not found")
    return actor


def update_external_actor(db: Session, studio: Studio, actor_id: str, updates: dict) -> ExternalActor:
    actor = get_external_actor(db, studio, actor_id)
    if "email" in updates:
        updates["email"] = normalize_email(updates["email"])
        if updates["email"] and updates["email"] != actor.email:
            clash = find_duplicate(db, studio.id, actor.first_name, actor.last_name, updates["email"], None)
            if clash is not None:
                raise ConflictError("An external actor with this email already exists in your studio")
    apply_updates(actor, updates)
    db.commit()
    db.refresh(actor)
    return actor


def delete_external_actor(db: Session, studio: Studio, actor_id: str) -> None:
    actor = get_external_actor(db, studio, actor_id)
    db.delete(actor)
    db.commit()
    logger.info(
        "External actor deleted",
        extra={"event": "external_actor.deleted", "external_actor_id": actor_id, "studio_id": studio.id},
    )


def convert_external_actors_for_user(db: Session, user: User) -> int:
    """Convert every non-converted actor matching the user's email or phone.

    Each project the actor was linked to gains a ProjectMember for the user's
    profile, unless one already exists.

    Returns:
        Number of actors converted
    """
    profile = user.profile
    if profile is None:
        return 0

    match = [ExternalActor.email == user.email]
    if user.phone_number:
        match.append(ExternalActor.phone_number == user.phone_number)

    actors = (
        db.query(ExternalActor)
        .filter(ExternalActor.status != ExternalActorStatus.CONVERTED.value, or_(*match))
        .all()
    )
    if not actors:
        return 0

    now = utcnow()
    for actor in actors:
        actor.status = ExternalActorStatus.CONVERTED.value
        actor.converted_to_talent_at = now
        actor.converted_profile_id = profile.id
        actor.converted_to_user_id = user.id

        links = db.query(ExternalActorProject).filter(ExternalActorProject.external_actor_id == actor.id).all()
        for link in links:
            member = (
                db.query(ProjectMember)
                .filter(ProjectMember.project_id == link.project_id, ProjectMember.profile_id == profile.id)
                .first()
            )
            if member is None:
                db.add(
                    ProjectMember(
                        project_id=link.project_id,
                        profile_id=profile.id,
                        role=link.role or DEFAULT_CONVERTED_ROLE,
                        notes=f"Converted from external actor: {actor.email or actor.phone_number}",
                    )
                )
                db.flush()

    db.commit()

    logger.info(
        "External actors converted",
        extra={"event": "external_actor.converted", "user_id": user.id, "count": len(actors)},
    )
    return len(actors)
