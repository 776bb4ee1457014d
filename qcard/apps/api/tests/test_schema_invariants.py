"""
Schema-level guarantees: uniqueness constraints and referential actions.

These hold even when a caller bypasses the services, so the tests insert rows
directly and rely on the database (SQLite with foreign keys ON) to refuse or
clean up.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from conftest import make_studio_account, make_talent_account
from qcard_api.db.enums import FieldType, ProfileType, QuestionType
from qcard_api.db.models import (
    CastingCode,
    CastingSubmission,
    ExternalActor,
    ExternalActorProject,
    ProfileField,
    ProfileFieldValue,
    Project,
    ProjectMember,
    QuestionAnswer,
    Questionnaire,
    QuestionnaireInvitation,
    QuestionnaireQuestion,
    QuestionnaireResponse,
    Region,
    RegionSubscriptionPlan,
    Scene,
    StudioFieldValue,
    StudioNote,
    Subscription,
    SubscriptionPlan,
    UserRegionSubscription,
)
from qcard_api.utils.clock import utcnow


@pytest.fixture
def questionnaire_setup(db_session: Session):
    """Studio questionnaire with one question and one invited talent."""
    _, studio = make_studio_account(db_session)
    talent = make_talent_account(db_session)

    questionnaire = Questionnaire(title="Availability", studio_id=studio.id)
    question = QuestionnaireQuestion(text="Are you free in May?", type=QuestionType.YES_NO.value, order=0)
    questionnaire.questions = [question]
    db_session.add(questionnaire)
    db_session.flush()

    invitation = QuestionnaireInvitation(questionnaire_id=questionnaire.id, profile_id=talent.profile.id)
    db_session.add(invitation)
    db_session.commit()
    return studio, talent, questionnaire, question, invitation


# ============================================================================
# Uniqueness
# ============================================================================


def test_one_invitation_per_questionnaire_and_profile(db_session: Session, questionnaire_setup) -> None:
    """Inviting the same profile twice to one questionnaire is refused."""
    _, talent, questionnaire, _, _ = questionnaire_setup

    db_session.add(QuestionnaireInvitation(questionnaire_id=questionnaire.id, profile_id=talent.profile.id))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_one_response_per_invitation(db_session: Session, questionnaire_setup) -> None:
    _, talent, questionnaire, _, invitation = questionnaire_setup

    for _ in range(2):
        db_session.add(
            QuestionnaireResponse(
                invitation_id=invitation.id,
                questionnaire_id=questionnaire.id,
                profile_id=talent.profile.id,
            )
        )
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_one_answer_per_question_in_a_response(db_session: Session, questionnaire_setup) -> None:
    _, talent, questionnaire, question, invitation = questionnaire_setup

    response = QuestionnaireResponse(
        invitation_id=invitation.id, questionnaire_id=questionnaire.id, profile_id=talent.profile.id
    )
    db_session.add(response)
    db_session.flush()

    db_session.add_all(
        [
            QuestionAnswer(response_id=response.id, question_id=question.id, text_value="yes"),
            QuestionAnswer(response_id=response.id, question_id=question.id, text_value="no"),
        ]
    )
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_one_field_value_per_profile_and_field(db_session: Session) -> None:
    talent = make_talent_account(db_session)
    field = ProfileField(name="shoe_size", label="Shoe size", type=FieldType.NUMBER.value, order=0)
    db_session.add(field)
    db_session.flush()

    db_session.add_all(
        [
            ProfileFieldValue(profile_id=talent.profile.id, field_id=field.id, value="9"),
            ProfileFieldValue(profile_id=talent.profile.id, field_id=field.id, value="10"),
        ]
    )
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_one_field_value_per_studio_and_field(db_session: Session) -> None:
    _, studio = make_studio_account(db_session)
    field = ProfileField(
        name="union", label="Union", type=FieldType.TEXT.value, profile_type=ProfileType.STUDIO.value, order=0
    )
    db_session.add(field)
    db_session.flush()

    db_session.add_all(
        [
            StudioFieldValue(studio_id=studio.id, field_id=field.id, value="SAG"),
            StudioFieldValue(studio_id=studio.id, field_id=field.id, value="Equity"),
        ]
    )
    with pytest.raises(IntegrityError):
        db_session.commit()


# ============================================================================
# Referential actions
# ============================================================================


def test_deleting_studio_removes_its_aggregate(db_session: Session) -> None:
    """Projects, scenes, questionnaires, casting codes, actors and notes go with the studio."""
    _, studio = make_studio_account(db_session)
    talent = make_talent_account(db_session)
    project = Project(title="Pilot", studio_id=studio.id)
    db_session.add(project)
    db_session.flush()
    db_session.add(Scene(title="Cold open", project_id=project.id))
    db_session.add(Questionnaire(title="Intake", studio_id=studio.id))
    code = CastingCode(code="ABCDEF", name="Open call", studio_id=studio.id, survey_fields={"fields": []})
    db_session.add(code)
    actor = ExternalActor(first_name="Eve", last_name="Extra", email="eve@example.com", studio_id=studio.id)
    db_session.add(actor)
    db_session.flush()
    db_session.add(
        CastingSubmission(casting_code_id=code.id, first_name="Eve", last_name="Extra", external_actor_id=actor.id)
    )
    db_session.add(StudioNote(content="Strong audition", studio_id=studio.id, profile_id=talent.profile.id))
    db_session.commit()

    db_session.delete(studio)
    db_session.commit()
    db_session.expire_all()

    assert db_session.query(Project).count() == 0
    assert db_session.query(Scene).count() == 0
    assert db_session.query(Questionnaire).count() == 0
    assert db_session.query(CastingCode).count() == 0
    assert db_session.query(CastingSubmission).count() == 0
    assert db_session.query(ExternalActor).count() == 0
    assert db_session.query(StudioNote).count() == 0


def test_deleting_project_removes_members_and_actor_links(db_session: Session) -> None:
    _, studio = make_studio_account(db_session)
    talent = make_talent_account(db_session)
    project = Project(title="Pilot", studio_id=studio.id)
    actor = ExternalActor(first_name="Eve", last_name="Extra", email="eve@example.com", studio_id=studio.id)
    db_session.add_all([project, actor])
    db_session.flush()
    db_session.add(ProjectMember(project_id=project.id, profile_id=talent.profile.id, role="Lead"))
    db_session.add(ExternalActorProject(external_actor_id=actor.id, project_id=project.id))
    db_session.commit()

    db_session.delete(project)
    db_session.commit()
    db_session.expire_all()

    assert db_session.query(ProjectMember).count() == 0
    assert db_session.query(ExternalActorProject).count() == 0
    # The actor itself belongs to the studio, not the project
    assert db_session.query(ExternalActor).count() == 1


def test_deleting_questionnaire_removes_invitations_responses_and_answers(
    db_session: Session, questionnaire_setup
) -> None:
    _, talent, questionnaire, question, invitation = questionnaire_setup
    response = QuestionnaireResponse(
        invitation_id=invitation.id, questionnaire_id=questionnaire.id, profile_id=talent.profile.id
    )
    response.answers = [QuestionAnswer(question_id=question.id, text_value="yes")]
    db_session.add(response)
    db_session.commit()

    db_session.delete(questionnaire)
    db_session.commit()
    db_session.expire_all()

    assert db_session.query(QuestionnaireQuestion).count() == 0
    assert db_session.query(QuestionnaireInvitation).count() == 0
    assert db_session.query(QuestionnaireResponse).count() == 0
    assert db_session.query(QuestionAnswer).count() == 0


def test_region_subscription_requires_main_subscription(db_session: Session) -> None:
    """A regional add-on cannot exist without its main subscription."""
    talent = make_talent_account(db_session)
    region = Region(name="West Coast")
    db_session.add(region)
    db_session.flush()
    regional_plan = RegionSubscriptionPlan(region_id=region.id, name="West Coast Basic", price=Decimal("19.99"))
    db_session.add(regional_plan)
    db_session.flush()

    now = utcnow()
    db_session.add(
        UserRegionSubscription(
            user_id=talent.id,
            region_plan_id=regional_plan.id,
            main_subscription_id="missing-subscription",
            current_period_start=now,
            current_period_end=now,
        )
    )
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_region_subscription_goes_with_main_subscription(db_session: Session) -> None:
    talent = make_talent_account(db_session)
    plan = SubscriptionPlan(name="Basic", price=Decimal("19.99"), features=[])
    region = Region(name="West Coast")
    db_session.add_all([plan, region])
    db_session.flush()
    regional_plan = RegionSubscriptionPlan(region_id=region.id, name="West Coast Basic", price=Decimal("19.99"))
    db_session.add(regional_plan)
    db_session.flush()

    now = utcnow()
    main = Subscription(
        user_id=talent.id, plan_id=plan.id, current_period_start=now, current_period_end=now
    )
    db_session.add(main)
    db_session.flush()
    db_session.add(
        UserRegionSubscription(
            user_id=talent.id,
            region_plan_id=regional_plan.id,
            main_subscription_id=main.id,
            current_period_start=now,
            current_period_end=now,
        )
    )
    db_session.commit()

    db_session.delete(main)
    db_session.commit()
    db_session.expire_all()

    assert db_session.query(UserRegionSubscription).count() == 0
