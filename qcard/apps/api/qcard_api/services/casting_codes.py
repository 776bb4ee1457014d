"""Casting codes: shareable codes (and QR images) that accept public submissions.

A code is six characters from an alphabet without look-alike glyphs
(no I, O, 0 or 1). Anyone holding the code may submit without an account;
submissions are matched to, or create, one of the studio's external actors.
"""

import base64
import io
import logging
import secrets
from typing import Any, Optional

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_L
from sqlalchemy import func
from sqlalchemy.orm import Session

from qcard_api.config.env import get_app_url
from qcard_api.db.enums import ExternalActorStatus, SubmissionStatus
from qcard_api.db.models import (
    CastingCode,
    CastingSubmission,
    CastingSubmissionSurvey,
    ExternalActor,
    Project,
    Studio,
    User,
)
from qcard_api.errors import ConflictError, DomainValidationError, NotFoundError
from qcard_api.services.common import apply_updates, clean, normalize_email
from qcard_api.services.external_actors import link_actor_to_project
from qcard_api.utils.clock import is_expired

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 20

QR_MIN_SIZE = 100
QR_MAX_SIZE = 1000
QR_DEFAULT_SIZE = 300

SUBMISSION_RECEIVED = "Your submission has been received successfully!"


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def generate_unique_code(db: Session) -> str:
    """Draw codes until one is not in use."""
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_code()
        if db.query(CastingCode.id).filter(CastingCode.code == code).first() is None:
            return code
    raise ConflictError("Could not allocate a unique casting code, please retry")


def application_url(code: str) -> str:
    return f"{get_app_url()}/apply/{code}"


def _studio_project_id(db: Session, studio: Studio, project_id: Optional[str]) -> Optional[str]:
    if not project_id:
        return None
    project = db.query(Project).filter(Project.id == project_id, Project.studio_id == studio.id).first()
    if project is None:
        raise NotFoundError("Project not found")
    return project.id


def _normalize_survey_fields(survey_fields: Optional[dict]) -> dict:
    if not survey_fields:
        return {"fields": []}
    fields = survey_fields.get("fields", [])
    if not isinstance(fields, list):
        raise DomainValidationError("survey_fields.fields must be a list")
    return {**survey_fields, "fields": fields}


# ============================================================================
# Studio-side management
# ============================================================================


def create_casting_code(db: Session, studio: Studio, data) -> CastingCode:
    casting_code = CastingCode(
        code=generate_unique_code(db),
        name=data.name.strip(),
        description=clean(data.description),
        studio_id=studio.id,
        project_id=_studio_project_id(db, studio, data.project_id),
        expires_at=data.expires_at,
        is_active=data.is_active,
        survey_fields=_normalize_survey_fields(data.survey_fields),
    )
    db.add(casting_code)
    db.commit()
    db.refresh(casting_code)

    logger.info(
        "Casting code created",
        extra={"event": "casting_code.created", "casting_code_id": casting_code.id, "studio_id": studio.id},
    )
    return casting_code


def list_casting_codes(
    db: Session, studio: Studio, project_id: Optional[str] = None, is_active: Optional[bool] = None
) -> list[CastingCode]:
    query = db.query(CastingCode).filter(CastingCode.studio_id == studio.id)
    if project_id:
        query = query.filter(CastingCode.project_id == project_id)
    if is_active is not None:
        query = query.filter(CastingCode.is_active.is_(is_active))
    return query.order_by(CastingCode.created_at.desc()).all()


def get_casting_code(db: Session, studio: Studio, casting_code_id: str) -> CastingCode:
    casting_code = (
        db.query(CastingCode)
        .filter(CastingCode.id == casting_code_id, CastingCode.studio_id == studio.id)
        .first()
    )
    if casting_code is None:
        raise NotFoundError("Casting code not found")
    return casting_code


def update_casting_code(db: Session, studio: Studio, casting_code_id: str, updates: dict) -> CastingCode:
    casting_code = get_casting_code(db, studio, casting_code_id)
    if "project_id" in updates:
        updates["project_id"] = _studio_project_id(db, studio, updates["project_id"])
    if "survey_fields" in updates:
        updates["survey_fields"] = _normalize_survey_fields(updates["survey_fields"])
    apply_updates(casting_code, updates)
    db.commit()
    db.refresh(casting_code)
    return casting_code


def delete_casting_code(db: Session, studio: Studio, casting_code_id: str) -> None:
    """Delete a code; its submissions and their surveys cascade."""
    casting_code = get_casting_code(db, studio, casting_code_id)
    db.delete(casting_code)
    db.commit()
    logger.info(
        "Casting code deleted", extra={"event": "casting_code.deleted", "casting_code_id": casting_code_id}
    )


def build_qr_code(code: str, size: int = QR_DEFAULT_SIZE) -> dict[str, str]:
    """Render the application URL for ``code`` as a PNG data URL.

    Args:
        code: Casting code
        size: Output edge length in pixels (100-1000)

    Returns:
        {"qr_code": "data:image/png;base64,...", "application_url": str}
    """
    if not QR_MIN_SIZE <= size <= QR_MAX_SIZE:
        raise DomainValidationError(f"size must be between {QR_MIN_SIZE} and {QR_MAX_SIZE}")

    url = application_url(code)
    qr = qrcode.QRCode(
        version=1,
        error_correction=ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB").resize((size, size), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return {"qr_code": f"data:image/png;base64,{encoded}", "application_url": url}


def list_submissions(db: Session, studio: Studio, casting_code_id: str) -> list[CastingSubmission]:
    casting_code = get_casting_code(db, studio, casting_code_id)
    return (
        db.query(CastingSubmission)
        .filter(CastingSubmission.casting_code_id == casting_code.id)
        .order_by(CastingSubmission.created_at.desc())
        .all()
    )


def update_submission_status(
    db: Session, studio: Studio, submission_id: str, status: SubmissionStatus
) -> CastingSubmission:
    submission = (
        db.query(CastingSubmission)
        .join(CastingCode, CastingCode.id == CastingSubmission.casting_code_id)
        .filter(CastingSubmission.id == submission_id, CastingCode.studio_id == studio.id)
        .first()
    )
    if submission is None:
        raise NotFoundError("Submission not found")
    submission.status = SubmissionStatus(status).value
    db.commit()
    db.refresh(submission)
    return submission


# ============================================================================
# Public submission flow
# ============================================================================


def get_usable_code(db: Session, code: str) -> CastingCode:
    """Resolve a public code, rejecting unknown, inactive and expired ones."""
    casting_code = db.query(CastingCode).filter(CastingCode.code == code.strip().upper()).first()
    if casting_code is None:
        raise NotFoundError("Invalid casting code")
    if not casting_code.is_active:
        raise DomainValidationError("This casting code is no longer active")
    if is_expired(casting_code.expires_at):
        raise DomainValidationError("This casting code has expired")
    return casting_code


def describe_public_code(db: Session, code: str) -> dict[str, Any]:
    casting_code = get_usable_code(db, code)
    studio = db.get(Studio, casting_code.studio_id)
    project = db.get(Project, casting_code.project_id) if casting_code.project_id else None
    return {
        "code": casting_code.code,
        "name": casting_code.name,
        "description": casting_code.description,
        "studio_name": studio.name,
        "project_title": project.title if project else None,
        "survey_fields": casting_code.survey_fields or {"fields": []},
    }


def _match_actor(
    db: Session, studio_id: str, first_name: str, last_name: str, email: Optional[str]
) -> Optional[ExternalActor]:
    query = db.query(ExternalActor).filter(ExternalActor.studio_id == studio_id)
    if email:
        actor = query.filter(ExternalActor.email == email).first()
        if actor is not None:
            return actor
    return query.filter(
        func.lower(ExternalActor.first_name) == first_name.lower(),
        func.lower(ExternalActor.last_name) == last_name.lower(),
    ).first()


def submit_casting_code(
    db: Session,
    *,
    code: str,
    first_name: str,
    last_name: str,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    message: Optional[str] = None,
    survey_responses: Optional[dict] = None,
) -> dict[str, Any]:
    """Record a public submission against a casting code.

    Raises:
        NotFoundError: Unknown code
        DomainValidationError: Code inactive or expired, or a name is blank
    """
    casting_code = get_usable_code(db, code)
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    missing = [label for label, value in (("First Name", first_name), ("Last Name", last_name)) if not value]
    if missing:
        raise DomainValidationError(f"Missing required fields: {', '.join(missing)}")
    email = normalize_email(email)
    phone_number = clean(phone_number)

    actor = _match_actor(db, casting_code.studio_id, first_name, last_name, email)
    if actor is None:
        actor = ExternalActor(
            studio_id=casting_code.studio_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone_number=phone_number,
            status=ExternalActorStatus.ACTIVE.value,
        )
        db.add(actor)
        db.flush()
    else:
        if email and not actor.email:
            actor.email = email
        if phone_number and not actor.phone_number:
            actor.phone_number = phone_number

    submission = CastingSubmission(
        casting_code_id=casting_code.id,
        external_actor_id=actor.id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone_number=phone_number,
        message=clean(message),
        status=SubmissionStatus.PENDING.value,
    )
    defined_fields = (casting_code.survey_fields or {}).get("fields") or []
    if survey_responses and defined_fields:
        submission.survey = CastingSubmissionSurvey(responses=survey_responses)
    db.add(submission)

    if casting_code.project_id:
        link_actor_to_project(db, actor, casting_code.project_id)

    db.commit()
    db.refresh(submission)

    existing_user = db.query(User.id).filter(User.email == email).first() if email else None

    logger.info(
        "Casting code submission received",
        extra={
            "event": "casting_code.submitted",
            "casting_code_id": casting_code.id,
            "submission_id": submission.id,
            "external_actor_id": actor.id,
        },
    )
    return {
        "success": True,
        "message": SUBMISSION_RECEIVED,
        "submission_id": submission.id,
        "create_account": existing_user is None,
        "user_data": {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone_number": phone_number,
        },
    }
