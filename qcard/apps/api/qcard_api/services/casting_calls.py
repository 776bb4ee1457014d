"""Casting calls and the applications talent submit against them."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from qcard_api.db.enums import (
    ApplicationStatus,
    CastingCallStatus,
    CompensationType,
    ExperienceLevel,
    GenderRequirement,
    RoleType,
)
from qcard_api.db.models import Application, CastingCall, Location, Message, Profile, Project, Region, Studio
from qcard_api.errors import ConflictError, DomainValidationError, NotFoundError
from qcard_api.services.common import apply_updates, get_or_404
from qcard_api.services.profiles import get_or_create_skills

logger = logging.getLogger(__name__)

MIN_APPLICATION_MESSAGE = 10
MAX_APPLICATION_MESSAGE = 1000
INVITATION_MESSAGE = (
    "You've been invited to apply for a casting call: {title}. "
    "Visit your opportunities page to learn more and apply."
)


def _check_references(db: Session, studio: Studio, values: dict) -> None:
    if values.get("project_id"):
        project = db.get(Project, values["project_id"])
        if project is None or project.studio_id != studio.id:
            raise NotFoundError("Project not found")
    if values.get("location_id"):
        get_or_404(db, Location, values["location_id"], "Location not found")
    if values.get("region_id"):
        get_or_404(db, Region, values["region_id"], "Region not found")


def create_casting_call(db: Session, studio: Studio, data) -> CastingCall:
    values = data.model_dump(exclude={"skills"})
    _check_references(db, studio, values)

    casting_call = CastingCall(studio_id=studio.id)
    apply_updates(casting_call, values)
    casting_call.skills = get_or_create_skills(db, data.skills)
    db.add(casting_call)
    db.commit()
    db.refresh(casting_call)

    logger.info(
        "Casting call created",
        extra={"event": "casting_call.created", "casting_call_id": casting_call.id, "studio_id": studio.id},
    )
    return casting_call


def list_studio_casting_calls(
    db: Session, studio: Studio, status: Optional[CastingCallStatus] = None
) -> list[CastingCall]:
    query = db.query(CastingCall).filter(CastingCall.studio_id == studio.id)
    if status:
        query = query.filter(CastingCall.status == CastingCallStatus(status).value)
    return query.order_by(CastingCall.created_at.desc()).all()


def get_studio_casting_call(db: Session, studio: Studio, casting_call_id: str) -> CastingCall:
    casting_call = (
        db.query(CastingCall)
        .filter(CastingCall.id == casting_call_id, CastingCall.studio_id == studio.id)
        .first()
    )
    if casting_call is None:
        raise NotFoundError("Casting call not found")
    return casting_call


def update_casting_call(db: Session, studio: Studio, casting_call_id: str, updates: dict) -> CastingCall:
    casting_call = get_studio_casting_call(db, studio, casting_call_id)
    skills = updates.pop("skills", None)
    _check_references(db, studio, updates)
    apply_updates(casting_call, updates)
    if skills is not None:
        casting_call.skills = get_or_create_skills(db, skills)
    if casting_call.start_date and casting_call.end_date and casting_call.end_date < casting_call.start_date:
        raise DomainValidationError("end_date must not be before start_date")
    db.commit()
    db.refresh(casting_call)
    return casting_call


def delete_casting_call(db: Session, studio: Studio, casting_call_id: str) -> None:
    """Delete a casting call; its applications cascade."""
    casting_call = get_studio_casting_call(db, studio, casting_call_id)
    db.delete(casting_call)
    db.commit()
    logger.info(
        "Casting call deleted", extra={"event": "casting_call.deleted", "casting_call_id": casting_call_id}
    )


def list_open_casting_calls(
    db: Session,
    *,
    region_id: Optional[str] = None,
    location_id: Optional[str] = None,
    project_id: Optional[str] = None,
    compensation_type: Optional[CompensationType] = None,
    experience_level: Optional[ExperienceLevel] = None,
    gender: Optional[GenderRequirement] = None,
    role_type: Optional[RoleType] = None,
) -> list[CastingCall]:
    """OPEN casting calls for talent browsing, newest first."""
    query = db.query(CastingCall).filter(CastingCall.status == CastingCallStatus.OPEN.value)
    if region_id:
        query = query.filter(CastingCall.region_id == region_id)
    if location_id:
        query = query.filter(CastingCall.location_id == location_id)
    if project_id:
        query = query.filter(CastingCall.project_id == project_id)
    if compensation_type:
        query = query.filter(CastingCall.compensation_type == CompensationType(compensation_type).value)
    if experience_level:
        query = query.filter(CastingCall.experience_level == ExperienceLevel(experience_level).value)
    if gender:
        query = query.filter(CastingCall.gender == GenderRequirement(gender).value)
    if role_type:
        query = query.filter(CastingCall.role_type == RoleType(role_type).value)
    return query.order_by(CastingCall.created_at.desc()).all()


def get_casting_call(db: Session, casting_call_id: str) -> CastingCall:
    return get_or_404(db, CastingCall, casting_call_id, "Casting call not found")


def apply_to_casting_call(db: Session, profile: Profile, casting_call_id: str, message: str) -> Application:
    """Submit a talent application.

    Raises:
        DomainValidationError: Message length out of range, call not OPEN,
            or the profile already applied
        NotFoundError: Casting call does not exist
    """
    message = (message or "").strip()
    if not MIN_APPLICATION_MESSAGE <= len(message) <= MAX_APPLICATION_MESSAGE:
        raise DomainValidationError(
            f"Message must be between {MIN_APPLICATION_MESSAGE} and {MAX_APPLICATION_MESSAGE} characters"
        )

    casting_call = get_casting_call(db, casting_call_id)
    if casting_call.status != CastingCallStatus.OPEN.value:
        raise DomainValidationError("This casting call is no longer accepting applications")

    existing = (
        db.query(Application)
        .filter(Application.profile_id == profile.id, Application.casting_call_id == casting_call.id)
        .first()
    )
    if existing:
        raise DomainValidationError("You have already applied to this casting call")

    application = Application(
        profile_id=profile.id,
        casting_call_id=casting_call.id,
        message=message,
        status=ApplicationStatus.PENDING.value,
    )
    db.add(application)
    db.commit()
    db.refresh(application)

    logger.info(
        "Application submitted",
        extra={"event": "application.submitted", "application_id": application.id, "casting_call_id": casting_call.id},
    )
    return application


def list_talent_applications(db: Session, profile: Profile) -> list[Application]:
    return (
        db.query(Application)
        .filter(Application.profile_id == profile.id)
        .order_by(Application.created_at.desc())
        .all()
    )


def list_applications(db: Session, studio: Studio, casting_call_id: str) -> list[Application]:
    casting_call = get_studio_casting_call(db, studio, casting_call_id)
    return (
        db.query(Application)
        .filter(Application.casting_call_id == casting_call.id)
        .order_by(Application.created_at.desc())
        .all()
    )


def update_application_status(
    db: Session, studio: Studio, application_id: str, status: ApplicationStatus
) -> Application:
    application = (
        db.query(Application)
        .join(CastingCall, CastingCall.id == Application.casting_call_id)
        .filter(Application.id == application_id, CastingCall.studio_id == studio.id)
        .first()
    )
    if application is None:
        raise NotFoundError("Application not found")
    application.status = ApplicationStatus(status).value
    db.commit()
    db.refresh(application)

    logger.info(
        "Application reviewed",
        extra={"event": "application.reviewed", "application_id": application.id, "status": application.status},
    )
    return application


# ============================================================================
# Invitations to apply
# ============================================================================


def invite_to_casting_call(
    db: Session, studio: Studio, casting_call_id: str, profile_ids: list[str], message: Optional[str] = None
) -> tuple[list[Message], int]:
    """Message each profile an invitation to apply, skipping profiles already invited.

    Returns:
        (invitation messages sent, number skipped)

    Raises:
        DomainValidationError: No ids given, or none is a talent profile
        ConflictError: Every profile was already invited to this call
        NotFoundError: Casting call not found for this studio
    """
    casting_call = get_studio_casting_call(db, studio, casting_call_id)
    unique_ids = list(dict.fromkeys(profile_ids))
    if not unique_ids:
        raise DomainValidationError("At least one talent must be selected")
    profiles = db.query(Profile).filter(Profile.id.in_(unique_ids)).all()
    if not profiles:
        raise DomainValidationError("No valid talent profiles found")

    already_invited = {
        profile_id
        for (profile_id,) in db.query(Message.talent_receiver_id).filter(
            Message.related_casting_call_id == casting_call.id,
            Message.studio_sender_id == studio.id,
            Message.talent_receiver_id.in_([profile.id for profile in profiles]),
        )
    }
    fresh = [profile for profile in profiles if profile.id not in already_invited]
    if not fresh:
        raise ConflictError("All selected talents have already been invited to this casting call")

    content = (message or "").strip() or INVITATION_MESSAGE.format(title=casting_call.title)
    sent = []
    for profile in fresh:
        invitation = Message(
            subject=f"Invitation to apply for casting call: {casting_call.title}",
            content=content,
            studio_sender_id=studio.id,
            talent_receiver_id=profile.id,
            related_casting_call_id=casting_call.id,
        )
        db.add(invitation)
        sent.append(invitation)
    db.commit()
    for invitation in sent:
        db.refresh(invitation)

    logger.info(
        "Casting call invitations sent",
        extra={"event": "casting_call.invitations_sent", "casting_call_id": casting_call.id, "count": len(sent)},
    )
    return sent, len(profiles) - len(fresh)


def list_casting_call_invitations(db: Session, studio: Studio, casting_call_id: str) -> list[dict[str, Any]]:
    """Invitations sent for a call, newest first, with whether each invitee has applied."""
    casting_call = get_studio_casting_call(db, studio, casting_call_id)
    invitations = (
        db.query(Message)
        .filter(Message.related_casting_call_id == casting_call.id, Message.studio_sender_id == studio.id)
        .order_by(Message.created_at.desc())
        .all()
    )
    profile_ids = [m.talent_receiver_id for m in invitations if m.talent_receiver_id]
    if not profile_ids:
        return []
    profiles = {p.id: p for p in db.query(Profile).filter(Profile.id.in_(profile_ids))}
    applications = {
        a.profile_id: a
        for a in db.query(Application).filter(
            Application.casting_call_id == casting_call.id, Application.profile_id.in_(profile_ids)
        )
    }

    results = []
    for invitation in invitations:
        if invitation.talent_receiver_id is None:
            continue
        profile = profiles[invitation.talent_receiver_id]
        application = applications.get(invitation.talent_receiver_id)
        results.append(
            {
                "id": invitation.id,
                "profile_id": invitation.talent_receiver_id,
                "talent_name": f"{profile.user.first_name or ''} {profile.user.last_name or ''}".strip(),
                "subject": invitation.subject,
                "content": invitation.content,
                "is_read": invitation.is_read,
                "sent_at": invitation.created_at,
                "has_responded": application is not None,
                "response_status": application.status if application else None,
                "response_date": application.created_at if application else None,
            }
        )
    return results


def applications_by_call(db: Session, profile: Profile, casting_call_ids: list[str]) -> dict[str, Application]:
    """The profile's application to each of the given calls, keyed by call id."""
    if not casting_call_ids:
        return {}
    return {
        application.casting_call_id: application
        for application in db.query(Application).filter(
            Application.profile_id == profile.id, Application.casting_call_id.in_(casting_call_ids)
        )
    }
