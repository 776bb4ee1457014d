"""Questionnaire endpoints.

Studios build questionnaires and invite talent under
/v1/studio/questionnaires; talent answers under
/v1/talent/questionnaire-invitations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_studio, require_talent
from qcard_api.db.enums import InvitationStatus
from qcard_api.db.models import Profile, Studio
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    IdListRequest,
    InvitationResponse,
    QuestionIn,
    QuestionnaireAnswersResponse,
    QuestionnaireCreate,
    QuestionnaireDetailResponse,
    QuestionnaireSummaryResponse,
    QuestionnaireUpdate,
    QuestionResponse,
    RespondRequest,
    ReviewResponseRequest,
    SendInvitationsRequest,
    SendInvitationsResponse,
    TalentInvitationDetailResponse,
)
from qcard_api.services import questionnaires

studio_router = APIRouter(prefix="/v1/studio/questionnaires", tags=["questionnaires"])
talent_router = APIRouter(prefix="/v1/talent/questionnaire-invitations", tags=["questionnaires"])


# ============================================================================
# Builder
# ============================================================================


@studio_router.get("", response_model=list[QuestionnaireSummaryResponse])
async def list_questionnaires(studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return questionnaires.list_questionnaires(db, studio)


@studio_router.post("", status_code=status.HTTP_201_CREATED, response_model=QuestionnaireDetailResponse)
async def create_questionnaire(
    request: QuestionnaireCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    """Create a questionnaire with its questions.

    Raises:
        400: Title length, or a question failing validation ("Question N: ...")
    """
    return questionnaires.create_questionnaire(db, studio, request)


@studio_router.get("/{questionnaire_id}", response_model=QuestionnaireDetailResponse)
async def get_questionnaire(
    questionnaire_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return questionnaires.get_questionnaire(db, studio, questionnaire_id)


@studio_router.patch("/{questionnaire_id}", response_model=QuestionnaireDetailResponse)
async def update_questionnaire(
    questionnaire_id: str,
    request: QuestionnaireUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return questionnaires.update_questionnaire(db, studio, questionnaire_id, request)


@studio_router.delete("/{questionnaire_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_questionnaire(
    questionnaire_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    questionnaires.delete_questionnaire(db, studio, questionnaire_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@studio_router.post(
    "/{questionnaire_id}/questions", status_code=status.HTTP_201_CREATED, response_model=QuestionResponse
)
async def add_question(
    questionnaire_id: str,
    request: QuestionIn,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return questionnaires.add_question(db, studio, questionnaire_id, request)


@studio_router.put("/{questionnaire_id}/questions/order", response_model=list[QuestionResponse])
async def reorder_questions(
    questionnaire_id: str,
    request: IdListRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return questionnaires.reorder_questions(db, studio, questionnaire_id, request.ids)


# ============================================================================
# Invitations and responses (studio side)
# ============================================================================


@studio_router.get("/{questionnaire_id}/invitations", response_model=list[InvitationResponse])
async def list_invitations(
    questionnaire_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return questionnaires.list_questionnaire_invitations(db, studio, questionnaire_id)


@studio_router.post(
    "/{questionnaire_id}/invitations",
    status_code=status.HTTP_201_CREATED,
    response_model=SendInvitationsResponse,
)
async def send_invitations(
    questionnaire_id: str,
    request: SendInvitationsRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> SendInvitationsResponse:
    """Invite talent; profiles already invited are skipped and counted.

    Raises:
        400: Everyone selected was already invited
        404: Questionnaire or a profile not found
    """
    invitations, skipped = questionnaires.send_invitations(
        db, studio, questionnaire_id, request.profile_ids, request.message, request.expires_at
    )
    return SendInvitationsResponse(
        message=f"Successfully sent {len(invitations)} invitation(s)",
        invitations=[InvitationResponse.model_validate(inv) for inv in invitations],
        skipped=skipped,
    )


@studio_router.get("/{questionnaire_id}/responses", response_model=list[QuestionnaireAnswersResponse])
async def list_responses(
    questionnaire_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return questionnaires.list_responses(db, studio, questionnaire_id)


@studio_router.patch("/responses/{response_id}", response_model=QuestionnaireAnswersResponse)
async def review_response(
    response_id: str,
    request: ReviewResponseRequest,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return questionnaires.review_response(db, studio, response_id, request.status, request.notes)


# ============================================================================
# Talent side
# ============================================================================


@talent_router.get("", response_model=list[InvitationResponse])
async def list_my_invitations(
    status_filter: Optional[InvitationStatus] = Query(None, alias="status"),
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    return questionnaires.list_talent_invitations(db, profile, status_filter)


@talent_router.get("/{invitation_id}", response_model=TalentInvitationDetailResponse)
async def get_my_invitation(
    invitation_id: str, profile: Profile = Depends(require_talent), db: Session = Depends(get_db)
):
    return questionnaires.get_talent_invitation(db, profile, invitation_id)


@talent_router.post("/{invitation_id}/accept", response_model=InvitationResponse)
async def accept_invitation(
    invitation_id: str, profile: Profile = Depends(require_talent), db: Session = Depends(get_db)
):
    return questionnaires.accept_invitation(db, profile, invitation_id)


@talent_router.post("/{invitation_id}/decline", response_model=InvitationResponse)
async def decline_invitation(
    invitation_id: str, profile: Profile = Depends(require_talent), db: Session = Depends(get_db)
):
    return questionnaires.decline_invitation(db, profile, invitation_id)


@talent_router.post("/{invitation_id}/respond", response_model=QuestionnaireAnswersResponse)
async def respond(
    invitation_id: str,
    request: RespondRequest,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    """Submit answers; resubmitting replaces the previous answers.

    Raises:
        400: Invitation closed or expired, unknown question, or a required
            question left unanswered
    """
    return questionnaires.respond(db, profile, invitation_id, request.answers)
