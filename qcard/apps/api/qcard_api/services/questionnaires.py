"""Questionnaires: builder, invitations, talent responses and studio review.

Builder rules (applied in one pass over the question list, in order):

- title 3-100 characters
- question text 3-200 characters, description at most 500
- SINGLE_CHOICE / MULTIPLE_CHOICE need two or more options, each labelled
- an option without a value gets the label, lower-cased, whitespace -> "_"
- a question's ``order`` is its position in the list
"""

import logging
import re
from typing import Any, Optional

from sqlalchemy.orm import Session

from qcard_api.db.enums import CHOICE_QUESTION_TYPES, InvitationStatus, QuestionType, ResponseStatus
from qcard_api.db.models import (
    Profile,
    QuestionAnswer,
    Questionnaire,
    QuestionnaireInvitation,
    QuestionnaireQuestion,
    QuestionnaireResponse,
    Studio,
)
from qcard_api.errors import ConflictError, DomainValidationError, NotFoundError
from qcard_api.utils.clock import is_expired, utcnow

logger = logging.getLogger(__name__)

TITLE_MIN, TITLE_MAX = 3, 100
QUESTION_TEXT_MIN, QUESTION_TEXT_MAX = 3, 200
QUESTION_DESCRIPTION_MAX = 500
MIN_CHOICE_OPTIONS = 2
INVITATION_MESSAGE_MAX = 500

RESPONDABLE_STATUSES = frozenset({InvitationStatus.PENDING.value, InvitationStatus.ACCEPTED.value})


# ============================================================================
# Builder validation
# ============================================================================


def option_value(label: str) -> str:
    return re.sub(r"\s+", "_", label.strip().lower())


def validate_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise DomainValidationError(f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters")
    return title


def validate_questions(questions: list) -> list[dict[str, Any]]:
    """Validate builder questions and return column values for each, in order.

    Raises:
        DomainValidationError: First rule violated, prefixed with "Question N"
    """
    validated = []
    for index, question in enumerate(questions):
        position = index + 1
        text = (question.text or "").strip()
        if not QUESTION_TEXT_MIN <= len(text) <= QUESTION_TEXT_MAX:
            raise DomainValidationError(
                f"Question {position}: text must be between {QUESTION_TEXT_MIN} and {QUESTION_TEXT_MAX} characters"
            )
        description = (question.description or "").strip() or None
        if description and len(description) > QUESTION_DESCRIPTION_MAX:
            raise DomainValidationError(
                f"Question {position}: description must be at most {QUESTION_DESCRIPTION_MAX} characters"
            )

        qtype = QuestionType(question.type)
        options = None
        if qtype in CHOICE_QUESTION_TYPES:
            if len(question.options) < MIN_CHOICE_OPTIONS:
                raise DomainValidationError(
                    f"Question {position}: choice questions need at least {MIN_CHOICE_OPTIONS} options"
                )
            options = []
            for option in question.options:
                label = (option.label or "").strip()
                if not label:
                    raise DomainValidationError(f"Question {position}: every option needs a label")
                options.append({"label": label, "value": (option.value or "").strip() or option_value(label)})

        validated.append(
            {
                "text": text,
                "description": description,
                "type": qtype.value,
                "is_required": question.is_required,
                "order": index,
                "options": options,
                "question_metadata": question.metadata,
            }
        )
    return validated


# ============================================================================
# Studio CRUD
# ============================================================================


def create_questionnaire(db: Session, studio: Studio, data) -> Questionnaire:
    title = validate_title(data.title)
    questions = validate_questions(data.questions)

    questionnaire = Questionnaire(
        title=title,
        description=(data.description or "").strip() or None,
        studio_id=studio.id,
        is_active=data.is_active,
        requires_approval=data.requires_approval,
    )
    questionnaire.questions = [QuestionnaireQuestion(**values) for values in questions]
    db.add(questionnaire)
    db.commit()
    db.refresh(questionnaire)

    logger.info(
        "Questionnaire created",
        extra={
            "event": "questionnaire.created",
            "questionnaire_id": questionnaire.id,
            "questions": len(questions),
        },
    )
    return questionnaire


def list_questionnaires(db: Session, studio: Studio) -> list[Questionnaire]:
    return (
        db.query(Questionnaire)
        .filter(Questionnaire.studio_id == studio.id)
        .order_by(Questionnaire.created_at.desc())
        .all()
    )


def get_questionnaire(db: Session, studio: Studio, questionnaire_id: str) -> Questionnaire:
    questionnaire = (
        db.query(Questionnaire)
        .filter(Questionnaire.id == questionnaire_id, Questionnaire.studio_id == studio.id)
        .first()
    )
    if questionnaire is None:
        raise NotFoundError("Questionnaire not found")
    return questionnaire


def update_questionnaire(db: Session, studio: Studio, questionnaire_id: str, data) -> Questionnaire:
    """Update fields; a given question list is merged into the existing one by question id.

    Raises:
        DomainValidationError: A question id does not belong to this questionnaire
        ConflictError: A question left out of the list already has submitted answers
    """
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    updates = data.model_dump(exclude_unset=True, exclude={"questions"})

    if "title" in updates:
        questionnaire.title = validate_title(updates["title"])
    if "description" in updates:
        questionnaire.description = (updates["description"] or "").strip() or None
    for flag in ("is_active", "requires_approval"):
        if updates.get(flag) is not None:
            setattr(questionnaire, flag, updates[flag])

    if data.questions is not None:
        _merge_questions(db, questionnaire, data.questions)

    db.commit()
    db.refresh(questionnaire)
    return questionnaire


def _merge_questions(db: Session, questionnaire: Questionnaire, submitted: list) -> None:
    existing = {question.id: question for question in questionnaire.questions}
    given_ids = [q.id for q in submitted if q.id is not None]
    unknown = [qid for qid in given_ids if qid not in existing]
    if unknown:
        raise DomainValidationError(f"Question(s) not in this questionnaire: {', '.join(unknown)}")
    if len(set(given_ids)) != len(given_ids):
        raise DomainValidationError("Each question may appear only once")

    removed = [qid for qid in existing if qid not in given_ids]
    if removed and db.query(QuestionAnswer.id).filter(QuestionAnswer.question_id.in_(removed)).first():
        raise ConflictError("Questions with submitted answers cannot be removed")

    merged = []
    for question, values in zip(submitted, validate_questions(submitted)):
        if question.id is None:
            merged.append(QuestionnaireQuestion(**values))
            continue
        current = existing[question.id]
        for column, value in values.items():
            setattr(current, column, value)
        merged.append(current)
    questionnaire.questions = merged


def delete_questionnaire(db: Session, studio: Studio, questionnaire_id: str) -> None:
    """Delete a questionnaire; questions, invitations, responses and answers cascade."""
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    db.delete(questionnaire)
    db.commit()
    logger.info(
        "Questionnaire deleted",
        extra={"event": "questionnaire.deleted", "questionnaire_id": questionnaire_id},
    )


def add_question(db: Session, studio: Studio, questionnaire_id: str, question) -> QuestionnaireQuestion:
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    values = validate_questions([question])[0]
    values["order"] = len(questionnaire.questions)
    new_question = QuestionnaireQuestion(**values)
    questionnaire.questions.append(new_question)
    db.commit()
    db.refresh(new_question)
    return new_question


def reorder_questions(
    db: Session, studio: Studio, questionnaire_id: str, question_ids: list[str]
) -> list[QuestionnaireQuestion]:
    """Set ``order`` to each question's position in ``question_ids``.

    Raises:
        DomainValidationError: ``question_ids`` is not exactly this questionnaire's question ids
    """
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    by_id = {question.id: question for question in questionnaire.questions}
    unknown = [qid for qid in question_ids if qid not in by_id]
    if unknown:
        raise DomainValidationError(f"Question(s) not in this questionnaire: {', '.join(unknown)}")
    if len(question_ids) != len(by_id) or set(question_ids) != set(by_id):
        raise DomainValidationError("Every question must appear exactly once in the new order")

    for index, qid in enumerate(question_ids):
        by_id[qid].order = index
    db.commit()
    db.expire(questionnaire, ["questions"])
    return list(questionnaire.questions)


# ============================================================================
# Invitations
# ============================================================================


def send_invitations(
    db: Session,
    studio: Studio,
    questionnaire_id: str,
    profile_ids: list[str],
    message: Optional[str] = None,
    expires_at=None,
) -> tuple[list[QuestionnaireInvitation], int]:
    """Invite profiles, skipping those already invited.

    Returns:
        (new invitations, number skipped)

    Raises:
        DomainValidationError: No profiles, message too long, or every
            profile already invited
        NotFoundError: Questionnaire or any profile missing
    """
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    unique_ids = list(dict.fromkeys(profile_ids))
    if not unique_ids:
        raise DomainValidationError("At least one talent must be selected")
    if message and len(message) > INVITATION_MESSAGE_MAX:
        raise DomainValidationError(f"Message must be at most {INVITATION_MESSAGE_MAX} characters")

    found = {row.id for row in db.query(Profile.id).filter(Profile.id.in_(unique_ids)).all()}
    missing = [pid for pid in unique_ids if pid not in found]
    if missing:
        raise NotFoundError(f"Talent profile(s) not found: {', '.join(missing)}")

    already = {
        row.profile_id
        for row in db.query(QuestionnaireInvitation.profile_id)
        .filter(
            QuestionnaireInvitation.questionnaire_id == questionnaire.id,
            QuestionnaireInvitation.profile_id.in_(unique_ids),
        )
        .all()
    }
    to_invite = [pid for pid in unique_ids if pid not in already]
    if not to_invite:
        raise DomainValidationError("All selected talents have already been invited to this questionnaire")

    invitations = [
        QuestionnaireInvitation(
            questionnaire_id=questionnaire.id,
            profile_id=pid,
            status=InvitationStatus.PENDING.value,
            message=message,
            expires_at=expires_at,
        )
        for pid in to_invite
    ]
    db.add_all(invitations)
    db.commit()
    for invitation in invitations:
        db.refresh(invitation)

    logger.info(
        "Questionnaire invitations sent",
        extra={
            "event": "questionnaire.invitations_sent",
            "questionnaire_id": questionnaire.id,
            "sent": len(invitations),
            "skipped": len(already),
        },
    )
    return invitations, len(already)


def list_questionnaire_invitations(
    db: Session, studio: Studio, questionnaire_id: str
) -> list[QuestionnaireInvitation]:
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    return (
        db.query(QuestionnaireInvitation)
        .filter(QuestionnaireInvitation.questionnaire_id == questionnaire.id)
        .order_by(QuestionnaireInvitation.sent_at.desc())
        .all()
    )


def list_talent_invitations(
    db: Session, profile: Profile, status: Optional[InvitationStatus] = None
) -> list[QuestionnaireInvitation]:
    query = db.query(QuestionnaireInvitation).filter(QuestionnaireInvitation.profile_id == profile.id)
    if status:
        query = query.filter(QuestionnaireInvitation.status == InvitationStatus(status).value)
    return query.order_by(QuestionnaireInvitation.sent_at.desc()).all()


def get_talent_invitation(db: Session, profile: Profile, invitation_id: str) -> QuestionnaireInvitation:
    invitation = (
        db.query(QuestionnaireInvitation)
        .filter(QuestionnaireInvitation.id == invitation_id, QuestionnaireInvitation.profile_id == profile.id)
        .first()
    )
    if invitation is None:
        raise NotFoundError("Invitation not found")
    return invitation


def accept_invitation(db: Session, profile: Profile, invitation_id: str) -> QuestionnaireInvitation:
    invitation = get_talent_invitation(db, profile, invitation_id)
    if invitation.status != InvitationStatus.PENDING.value:
        raise DomainValidationError(f"Invitation is already {invitation.status}")
    if is_expired(invitation.expires_at):
        raise DomainValidationError("This invitation has expired")
    invitation.status = InvitationStatus.ACCEPTED.value
    db.commit()
    db.refresh(invitation)
    return invitation


def decline_invitation(db: Session, profile: Profile, invitation_id: str) -> QuestionnaireInvitation:
    invitation = get_talent_invitation(db, profile, invitation_id)
    if invitation.status != InvitationStatus.PENDING.value:
        raise DomainValidationError(f"Invitation is already {invitation.status}")
    invitation.status = InvitationStatus.DECLINED.value
    db.commit()
    db.refresh(invitation)
    logger.info(
        "Questionnaire invitation declined",
        extra={"event": "questionnaire.invitation_declined", "invitation_id": invitation.id},
    )
    return invitation


# ============================================================================
# Responses
# ============================================================================


def _is_answered(question: QuestionnaireQuestion, answer) -> bool:
    if answer is None:
        return False
    if question.type in (QuestionType.SINGLE_CHOICE.value, QuestionType.MULTIPLE_CHOICE.value):
        return bool(answer.choice_values)
    if question.type == QuestionType.FILE_UPLOAD.value:
        return bool(answer.file_url and answer.file_url.strip())
    return bool(answer.text_value and answer.text_value.strip())


def respond(db: Session, profile: Profile, invitation_id: str, answers: list) -> QuestionnaireResponse:
    """Submit (or resubmit) answers for an invitation.

    A resubmission replaces the previous answers of the same response row.

    Raises:
        DomainValidationError: Invitation not open, expired, answer for an
            unknown question, or required question unanswered
    """
    invitation = get_talent_invitation(db, profile, invitation_id)
    if invitation.status not in RESPONDABLE_STATUSES:
        raise DomainValidationError(f"Invitation is already {invitation.status}")
    if is_expired(invitation.expires_at):
        raise DomainValidationError("This invitation has expired")

    questionnaire = invitation.questionnaire
    questions = {question.id: question for question in questionnaire.questions}

    by_question = {}
    for answer in answers:
        if answer.question_id not in questions:
            raise DomainValidationError(f"Question {answer.question_id} does not belong to this questionnaire")
        by_question[answer.question_id] = answer

    for question in questionnaire.questions:
        if question.is_required and not _is_answered(question, by_question.get(question.id)):
            raise DomainValidationError(f'Question "{question.text}" is required')

    status = ResponseStatus.SUBMITTED if questionnaire.requires_approval else ResponseStatus.APPROVED
    now = utcnow()

    response = (
        db.query(QuestionnaireResponse).filter(QuestionnaireResponse.invitation_id == invitation.id).first()
    )
    if response is None:
        response = QuestionnaireResponse(
            invitation_id=invitation.id,
            questionnaire_id=questionnaire.id,
            profile_id=profile.id,
        )
        db.add(response)
    else:
        response.answers.clear()
        db.flush()

    response.status = status.value
    response.submitted_at = now
    response.reviewed_at = None
    response.review_notes = None
    response.answers = [
        QuestionAnswer(
            question_id=answer.question_id,
            text_value=answer.text_value,
            choice_values=answer.choice_values,
            file_url=answer.file_url,
        )
        for answer in by_question.values()
    ]

    invitation.status = InvitationStatus.COMPLETED.value
    invitation.completed_at = now
    db.commit()
    db.refresh(response)

    logger.info(
        "Questionnaire response submitted",
        extra={
            "event": "questionnaire.response.submitted",
            "questionnaire_id": questionnaire.id,
            "response_id": response.id,
            "status": response.status,
        },
    )
    return response


def list_responses(db: Session, studio: Studio, questionnaire_id: str) -> list[QuestionnaireResponse]:
    questionnaire = get_questionnaire(db, studio, questionnaire_id)
    return (
        db.query(QuestionnaireResponse)
        .filter(QuestionnaireResponse.questionnaire_id == questionnaire.id)
        .order_by(QuestionnaireResponse.submitted_at.desc())
        .all()
    )


def review_response(
    db: Session, studio: Studio, response_id: str, status: str, notes: Optional[str] = None
) -> QuestionnaireResponse:
    response = (
        db.query(QuestionnaireResponse)
        .join(Questionnaire, Questionnaire.id == QuestionnaireResponse.questionnaire_id)
        .filter(QuestionnaireResponse.id == response_id, Questionnaire.studio_id == studio.id)
        .first()
    )
    if response is None:
        raise NotFoundError("Response not found")

    new_status = ResponseStatus(status)
    if new_status not in (ResponseStatus.APPROVED, ResponseStatus.REJECTED):
        raise DomainValidationError("Status must be APPROVED or REJECTED")

    response.status = new_status.value
    response.review_notes = notes
    response.reviewed_at = utcnow()
    db.commit()
    db.refresh(response)

    logger.info(
        "Questionnaire response reviewed",
        extra={"event": "questionnaire.response.reviewed", "response_id": response.id, "status": response.status},
    )
    return response
