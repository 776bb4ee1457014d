"""Questionnaires: builder validation, invitations, responses and review."""

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from conftest import auth_headers, make_studio_account, make_talent_account
from qcard_api.db.models import QuestionnaireInvitation, QuestionnaireResponse
from qcard_api.errors import DomainValidationError
from qcard_api.schemas import AnswerIn, QuestionIn, QuestionnaireCreate
from qcard_api.services import questionnaires
from qcard_api.utils.clock import utcnow

QUESTIONS = [
    {"text": "Where are you based?", "type": "SHORT_TEXT", "is_required": True},
    {
        "text": "Which days are you free?",
        "type": "MULTIPLE_CHOICE",
        "is_required": True,
        "options": [{"label": "Saturday Morning"}, {"label": "Sunday", "value": "sun"}],
    },
    {"text": "Headshot", "type": "FILE_UPLOAD"},
]


@pytest.fixture
def questionnaire(test_client, studio_account) -> dict:
    user, _ = studio_account
    response = test_client.post(
        "/v1/studio/questionnaires",
        json={"title": "Availability", "requires_approval": True, "questions": QUESTIONS},
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def invitation(test_client, studio_account, talent_user, questionnaire) -> dict:
    user, _ = studio_account
    response = test_client.post(
        f"/v1/studio/questionnaires/{questionnaire['id']}/invitations",
        json={"profile_ids": [talent_user.profile.id], "message": "Please fill this in"},
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    return response.json()["invitations"][0]


def _answers(questionnaire: dict, where: str = "Leeds") -> list[dict]:
    text_q, choice_q, _ = questionnaire["questions"]
    return [
        {"question_id": text_q["id"], "text_value": where},
        {"question_id": choice_q["id"], "choice_values": ["sun"]},
    ]


def answer_models(questionnaire: dict, where: str = "Leeds") -> list[AnswerIn]:
    return [AnswerIn(**answer) for answer in _answers(questionnaire, where)]


# ============================================================================
# Builder
# ============================================================================


class TestBuilder:
    def test_questions_are_ordered_and_option_values_defaulted(self, questionnaire):
        questions = questionnaire["questions"]

        assert [q["order"] for q in questions] == [0, 1, 2]
        assert questions[1]["options"] == [
            {"label": "Saturday Morning", "value": "saturday_morning"},
            {"label": "Sunday", "value": "sun"},
        ]
        assert questions[0]["options"] is None

    @pytest.mark.parametrize("title", ["ab", "x" * 101, "   "])
    def test_title_length(self, title):
        with pytest.raises(DomainValidationError, match="Title must be between 3 and 100 characters"):
            questionnaires.validate_title(title)

    def test_question_text_length_reports_position(self):
        questions = [QuestionIn(text="Fine question", type="SHORT_TEXT"), QuestionIn(text="no", type="LONG_TEXT")]

        with pytest.raises(DomainValidationError, match="Question 2: text must be between 3 and 200"):
            questionnaires.validate_questions(questions)

    def test_choice_question_needs_two_options(self):
        question = QuestionIn(text="Pick one", type="SINGLE_CHOICE", options=[{"label": "Only"}])

        with pytest.raises(DomainValidationError, match="at least 2 options"):
            questionnaires.validate_questions([question])

    def test_choice_options_need_labels(self):
        question = QuestionIn(text="Pick one", type="SINGLE_CHOICE", options=[{"label": "A"}, {"label": " "}])

        with pytest.raises(DomainValidationError, match="every option needs a label"):
            questionnaires.validate_questions([question])

    def test_update_replaces_questions(self, test_client, studio_account, questionnaire):
        user, _ = studio_account

        response = test_client.patch(
            f"/v1/studio/questionnaires/{questionnaire['id']}",
            json={"questions": [{"text": "Rate yourself", "type": "RATING"}]},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert [q["text"] for q in response.json()["questions"]] == ["Rate yourself"]

    def test_reorder_questions(self, test_client, studio_account, questionnaire):
        user, _ = studio_account
        ids = [q["id"] for q in questionnaire["questions"]]

        response = test_client.put(
            f"/v1/studio/questionnaires/{questionnaire['id']}/questions/order",
            json={"ids": list(reversed(ids))},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert [q["id"] for q in response.json()] == list(reversed(ids))

    def test_reorder_needs_every_question(self, test_client, studio_account, questionnaire):
        user, _ = studio_account
        ids = [q["id"] for q in questionnaire["questions"]]
        url = f"/v1/studio/questionnaires/{questionnaire['id']}/questions/order"

        partial = test_client.put(url, json={"ids": [ids[2], ids[0]]}, headers=auth_headers(user))
        repeated = test_client.put(url, json={"ids": [ids[0], ids[0], ids[1]]}, headers=auth_headers(user))

        assert partial.status_code == 400
        assert repeated.status_code == 400
        stored = test_client.get(f"/v1/studio/questionnaires/{questionnaire['id']}", headers=auth_headers(user))
        assert [q["id"] for q in stored.json()["questions"]] == ids
        assert [q["order"] for q in stored.json()["questions"]] == [0, 1, 2]

    def test_other_studio_cannot_see_questionnaire(self, test_client, db_session: Session, questionnaire):
        rival, _ = make_studio_account(db_session, email="rival@example.com")

        response = test_client.get(f"/v1/studio/questionnaires/{questionnaire['id']}", headers=auth_headers(rival))

        assert response.status_code == 404


# ============================================================================
# Invitations
# ============================================================================


class TestInvitations:
    def test_already_invited_profiles_are_skipped(
        self, test_client, db_session: Session, studio_account, talent_user, questionnaire, invitation
    ):
        user, _ = studio_account
        newcomer = make_talent_account(db_session, email="new@example.com")

        response = test_client.post(
            f"/v1/studio/questionnaires/{questionnaire['id']}/invitations",
            json={"profile_ids": [talent_user.profile.id, newcomer.profile.id]},
            headers=auth_headers(user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Successfully sent 1 invitation(s)"
        assert body["skipped"] == 1
        assert [inv["profile_id"] for inv in body["invitations"]] == [newcomer.profile.id]

    def test_everyone_already_invited(self, test_client, studio_account, talent_user, questionnaire, invitation):
        user, _ = studio_account

        response = test_client.post(
            f"/v1/studio/questionnaires/{questionnaire['id']}/invitations",
            json={"profile_ids": [talent_user.profile.id]},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "All selected talents have already been invited to this questionnaire"

    def test_unknown_profile(self, test_client, studio_account, questionnaire):
        user, _ = studio_account

        response = test_client.post(
            f"/v1/studio/questionnaires/{questionnaire['id']}/invitations",
            json={"profile_ids": ["ghost"]},
            headers=auth_headers(user),
        )

        assert response.status_code == 404

    def test_talent_sees_invitation_with_questions(self, test_client, talent_user, invitation):
        listed = test_client.get("/v1/talent/questionnaire-invitations", headers=auth_headers(talent_user)).json()
        assert [inv["id"] for inv in listed] == [invitation["id"]]

        detail = test_client.get(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}", headers=auth_headers(talent_user)
        ).json()
        assert detail["questionnaire"]["title"] == "Availability"
        assert len(detail["questionnaire"]["questions"]) == 3

    def test_accept_then_decline_is_rejected(self, test_client, talent_user, invitation):
        base = f"/v1/talent/questionnaire-invitations/{invitation['id']}"

        accepted = test_client.post(f"{base}/accept", headers=auth_headers(talent_user))
        declined = test_client.post(f"{base}/decline", headers=auth_headers(talent_user))

        assert accepted.json()["status"] == "ACCEPTED"
        assert declined.status_code == 400
        assert declined.json()["detail"] == "Invitation is already ACCEPTED"

    def test_decline(self, test_client, talent_user, invitation):
        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/decline", headers=auth_headers(talent_user)
        )

        assert response.json()["status"] == "DECLINED"

    def test_invitation_of_another_talent_is_404(self, test_client, db_session: Session, invitation):
        stranger = make_talent_account(db_session, email="stranger@example.com")

        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/accept", headers=auth_headers(stranger)
        )

        assert response.status_code == 404


# ============================================================================
# Responses
# ============================================================================


class TestResponses:
    def test_respond_completes_invitation(
        self, test_client, db_session: Session, talent_user, questionnaire, invitation
    ):
        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond",
            json={"answers": _answers(questionnaire)},
            headers=auth_headers(talent_user),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "SUBMITTED"
        assert len(body["answers"]) == 2

        stored = db_session.get(QuestionnaireInvitation, invitation["id"])
        assert stored.status == "COMPLETED"
        assert stored.completed_at is not None

    def test_required_question_missing(self, test_client, talent_user, questionnaire, invitation):
        text_q = questionnaire["questions"][0]

        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond",
            json={"answers": [{"question_id": text_q["id"], "text_value": "Leeds"}]},
            headers=auth_headers(talent_user),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == 'Question "Which days are you free?" is required'

    def test_blank_text_does_not_count_as_answer(self, test_client, talent_user, questionnaire, invitation):
        answers = _answers(questionnaire, where="   ")

        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond",
            json={"answers": answers},
            headers=auth_headers(talent_user),
        )

        assert response.json()["detail"] == 'Question "Where are you based?" is required'

    def test_answer_for_foreign_question(self, test_client, talent_user, questionnaire, invitation):
        answers = _answers(questionnaire) + [{"question_id": "elsewhere", "text_value": "?"}]

        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond",
            json={"answers": answers},
            headers=auth_headers(talent_user),
        )

        assert response.status_code == 400

    def test_no_approval_needed_means_approved(self, db_session: Session, studio_account, talent_user):
        _, studio = studio_account
        quick = questionnaires.create_questionnaire(
            db_session,
            studio,
            QuestionnaireCreate(title="Quick poll", requires_approval=False),
        )
        invitations, _ = questionnaires.send_invitations(db_session, studio, quick.id, [talent_user.profile.id])

        response = questionnaires.respond(db_session, talent_user.profile, invitations[0].id, [])

        assert response.status == "APPROVED"

    def test_completed_invitation_cannot_be_answered_again(self, test_client, talent_user, questionnaire, invitation):
        url = f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond"
        test_client.post(url, json={"answers": _answers(questionnaire)}, headers=auth_headers(talent_user))

        again = test_client.post(url, json={"answers": _answers(questionnaire)}, headers=auth_headers(talent_user))

        assert again.status_code == 400
        assert again.json()["detail"] == "Invitation is already COMPLETED"

    def test_reopened_invitation_replaces_answers(self, db_session: Session, talent_user, questionnaire, invitation):
        profile = talent_user.profile
        first = questionnaires.respond(db_session, profile, invitation["id"], answer_models(questionnaire, "Leeds"))

        stored = db_session.get(QuestionnaireInvitation, invitation["id"])
        stored.status = "ACCEPTED"
        db_session.commit()

        second = questionnaires.respond(db_session, profile, invitation["id"], answer_models(questionnaire, "York"))

        assert second.id == first.id
        assert db_session.query(QuestionnaireResponse).count() == 1
        texts = sorted(a.text_value for a in second.answers if a.text_value)
        assert texts == ["York"]

    def test_expired_invitation(self, db_session: Session, talent_user, questionnaire, invitation):
        stored = db_session.get(QuestionnaireInvitation, invitation["id"])
        stored.expires_at = utcnow() - timedelta(hours=1)
        db_session.commit()

        with pytest.raises(DomainValidationError, match="This invitation has expired"):
            questionnaires.respond(db_session, talent_user.profile, invitation["id"], answer_models(questionnaire))


class TestEditingAnsweredQuestionnaire:
    @pytest.fixture
    def answered(self, test_client, talent_user, questionnaire, invitation) -> dict:
        response = test_client.post(
            f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond",
            json={"answers": _answers(questionnaire)},
            headers=auth_headers(talent_user),
        )
        assert response.status_code == 200
        return response.json()

    def test_editing_questions_by_id_keeps_answers(
        self, test_client, db_session: Session, studio_account, questionnaire, answered
    ):
        user, _ = studio_account
        edited = [
            {**{k: q[k] for k in ("id", "text", "type", "is_required")}, "options": q["options"] or []}
            for q in questionnaire["questions"]
        ]
        edited[0]["text"] = "Which city are you based in?"
        edited.append({"text": "Any injuries?", "type": "LONG_TEXT"})

        response = test_client.patch(
            f"/v1/studio/questionnaires/{questionnaire['id']}",
            json={"questions": edited},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        questions = response.json()["questions"]
        assert [q["id"] for q in questions[:3]] == [q["id"] for q in questionnaire["questions"]]
        assert questions[0]["text"] == "Which city are you based in?"
        assert questions[3]["order"] == 3

        stored = db_session.get(QuestionnaireResponse, answered["id"])
        db_session.refresh(stored)
        assert sorted(a.text_value or "" for a in stored.answers) == ["", "Leeds"]

    def test_dropping_an_answered_question_is_a_conflict(
        self, test_client, db_session: Session, studio_account, questionnaire, answered
    ):
        user, _ = studio_account

        response = test_client.patch(
            f"/v1/studio/questionnaires/{questionnaire['id']}",
            json={"questions": [{"text": "Rate yourself", "type": "RATING"}]},
            headers=auth_headers(user),
        )

        assert response.status_code == 409
        stored = db_session.get(QuestionnaireResponse, answered["id"])
        db_session.refresh(stored)
        assert len(stored.answers) == 2

    def test_foreign_question_id_is_rejected(self, test_client, studio_account, questionnaire):
        user, _ = studio_account

        response = test_client.patch(
            f"/v1/studio/questionnaires/{questionnaire['id']}",
            json={"questions": [{"id": "not-a-question", "text": "Rate yourself", "type": "RATING"}]},
            headers=auth_headers(user),
        )

        assert response.status_code == 400


def test_studio_reviews_response(test_client, studio_account, talent_user, questionnaire, invitation) -> None:
    user, _ = studio_account
    test_client.post(
        f"/v1/talent/questionnaire-invitations/{invitation['id']}/respond",
        json={"answers": _answers(questionnaire)},
        headers=auth_headers(talent_user),
    )

    responses = test_client.get(
        f"/v1/studio/questionnaires/{questionnaire['id']}/responses", headers=auth_headers(user)
    ).json()
    assert len(responses) == 1

    reviewed = test_client.patch(
        f"/v1/studio/questionnaires/responses/{responses[0]['id']}",
        json={"status": "REJECTED", "notes": "Not available on shoot days"},
        headers=auth_headers(user),
    )

    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "REJECTED"
    assert reviewed.json()["reviewed_at"] is not None

    invalid = test_client.patch(
        f"/v1/studio/questionnaires/responses/{responses[0]['id']}",
        json={"status": "SUBMITTED"},
        headers=auth_headers(user),
    )
    assert invalid.status_code == 422

