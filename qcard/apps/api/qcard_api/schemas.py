"""Pydantic schemas for API requests/responses."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator

from qcard_api.db.enums import (
    ApplicationStatus,
    AssignmentStatus,
    CastingCallStatus,
    CompensationType,
    ExperienceLevel,
    FieldType,
    GenderRequirement,
    InvitationStatus,
    ProfileType,
    ProjectStatus,
    QuestionType,
    RoleType,
    SceneStatus,
    SubmissionStatus,
    SubscriptionStatus,
    TenantType,
    UserRole,
)


class ORMModel(BaseModel):
    """Response model populated from ORM attributes."""

    model_config = ConfigDict(from_attributes=True)


def _check_date_order(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end and end < start:
        raise ValueError("end_date must not be before start_date")


# ============================================================================
# Problem Details (RFC 9457)
# ============================================================================


class ProblemDetail(BaseModel):
    """RFC 9457 Problem Details for HTTP APIs."""

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str | dict = Field(..., description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="Opaque trace identifier")


class IdListRequest(BaseModel):
    """Ordered list of ids (reorder / replace-association requests)."""

    ids: list[str] = Field(default_factory=list, description="Entity ids, in the desired order")


# ============================================================================
# Accounts
# ============================================================================


class RegisterRequest(BaseModel):
    """Request for POST /v1/accounts."""

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    account_type: TenantType
    phone_number: Optional[str] = Field(None, max_length=40)
    studio_name: Optional[str] = Field(None, max_length=200, description="STUDIO accounts only")


class UserBrief(ORMModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserResponse(ORMModel):
    """Platform user."""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: UserRole
    tenant_id: Optional[str] = None
    created_at: datetime


class MeResponse(BaseModel):
    """Response for GET /v1/me."""

    user: UserResponse
    tenant_type: Optional[TenantType] = None
    profile_id: Optional[str] = None
    studio_id: Optional[str] = None
    external_actors_converted: int = 0


class RoleUpdateRequest(BaseModel):
    role: UserRole


class AdminUserResponse(UserResponse):
    tenant_type: Optional[TenantType] = None


# ============================================================================
# Studios, talent profiles, skills
# ============================================================================


class StudioResponse(ORMModel):
    id: str
    name: str
    description: Optional[str] = None
    tenant_id: str
    created_at: datetime
    updated_at: datetime


class StudioUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)


class StudioNoteRequest(BaseModel):
    content: str = Field(..., description="Note text (blank after trimming is rejected)")


class StudioNoteResponse(ORMModel):
    id: str
    content: str
    studio_id: str
    profile_id: str
    created_at: datetime
    updated_at: datetime


class SkillResponse(ORMModel):
    id: str
    name: str


class RegionBrief(ORMModel):
    id: str
    name: str


class ProfileResponse(ORMModel):
    """Talent profile with its skills and regions."""

    id: str
    user_id: str
    user: Optional[UserBrief] = None
    headshot_url: Optional[str] = None
    bio: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    hair_color: Optional[str] = None
    eye_color: Optional[str] = None
    availability: bool
    ethnicity: Optional[str] = None
    experience: Optional[str] = None
    gender: Optional[str] = None
    languages: Optional[str] = None
    date_of_birth: Optional[date] = None
    skills: list[SkillResponse] = []
    regions: list[RegionBrief] = []


class ProfileUpdate(BaseModel):
    headshot_url: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=5000)
    height: Optional[str] = None
    weight: Optional[str] = None
    hair_color: Optional[str] = None
    eye_color: Optional[str] = None
    availability: Optional[bool] = None
    ethnicity: Optional[str] = None
    experience: Optional[str] = None
    gender: Optional[str] = None
    languages: Optional[str] = None
    date_of_birth: Optional[date] = None


class SkillsUpdate(BaseModel):
    skills: list[str] = Field(default_factory=list, description="Skill names; created on first use")


# ============================================================================
# Custom profile fields
# ============================================================================


class FieldOptionIn(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    value: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = None
    is_default: bool = False


class FieldOptionResponse(ORMModel):
    id: str
    value: str
    label: str
    color: Optional[str] = None
    order: int
    is_default: bool


class ProfileFieldCreate(BaseModel):
    """Request for POST /v1/admin/fields."""

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$", max_length=64)
    label: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: FieldType = FieldType.TEXT
    profile_type: ProfileType = ProfileType.BOTH
    is_required: bool = False
    is_visible: bool = True
    default_value: Optional[str] = None
    placeholder: Optional[str] = None
    group_name: Optional[str] = None
    validation_rules: Optional[dict[str, Any]] = None
    options: list[FieldOptionIn] = []


class ProfileFieldUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[FieldType] = None
    profile_type: Optional[ProfileType] = None
    is_required: Optional[bool] = None
    is_visible: Optional[bool] = None
    default_value: Optional[str] = None
    placeholder: Optional[str] = None
    group_name: Optional[str] = None
    validation_rules: Optional[dict[str, Any]] = None
    options: Optional[list[FieldOptionIn]] = None


class ProfileFieldResponse(ORMModel):
    id: str
    name: str
    label: str
    description: Optional[str] = None
    type: FieldType
    profile_type: ProfileType
    is_required: bool
    is_visible: bool
    default_value: Optional[str] = None
    placeholder: Optional[str] = None
    order: int
    is_system: bool
    group_name: Optional[str] = None
    validation_rules: Optional[dict[str, Any]] = None
    options: list[FieldOptionResponse] = []


class FieldValuesUpdate(BaseModel):
    values: dict[str, Optional[str]] = Field(..., description="field_id -> value")


class FieldValueResponse(BaseModel):
    field_id: str
    name: str
    label: str
    value: Optional[str] = None


# ============================================================================
# Projects, members, scenes, talent requirements, project invitations
# ============================================================================


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus = ProjectStatus.PLANNING

    @model_validator(mode="after")
    def _dates(self) -> "ProjectCreate":
        _check_date_order(self.start_date, self.end_date)
        return self


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[ProjectStatus] = None


class ProjectResponse(ORMModel):
    id: str
    title: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus
    studio_id: str
    created_at: datetime
    updated_at: datetime


class ProjectMemberCreate(BaseModel):
    profile_id: str
    role: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class ProjectMemberResponse(ORMModel):
    id: str
    project_id: str
    profile_id: str
    role: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class SceneCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    location_id: Optional[str] = None
    shoot_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=1, description="Minutes")
    talent_needed: Optional[int] = Field(None, ge=0)
    status: SceneStatus = SceneStatus.PLANNING


class SceneUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    location_id: Optional[str] = None
    shoot_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=1)
    talent_needed: Optional[int] = Field(None, ge=0)
    status: Optional[SceneStatus] = None


class SceneResponse(ORMModel):
    id: str
    title: str
    description: Optional[str] = None
    location_id: Optional[str] = None
    shoot_date: Optional[datetime] = None
    duration: Optional[int] = None
    talent_needed: Optional[int] = None
    status: SceneStatus
    project_id: str
    created_at: datetime


class SceneTalentCreate(BaseModel):
    profile_id: str
    role: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)
    status: AssignmentStatus = AssignmentStatus.CONFIRMED


class SceneTalentResponse(ORMModel):
    id: str
    scene_id: str
    profile_id: str
    role: Optional[str] = None
    notes: Optional[str] = None
    status: AssignmentStatus
    created_at: datetime


class SceneExternalActorCreate(BaseModel):
    external_actor_id: str
    role: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class SceneExternalActorResponse(ORMModel):
    id: str
    scene_id: str
    external_actor_id: str
    role: Optional[str] = None
    notes: Optional[str] = None
    status: AssignmentStatus
    created_at: datetime


class TalentRequirementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    is_active: bool = True
    gender: Optional[str] = None
    min_age: Optional[str] = None
    max_age: Optional[str] = None
    ethnicity: Optional[str] = None
    height: Optional[str] = None
    skills: Optional[str] = None
    other_requirements: Optional[str] = None
    survey: Optional[dict[str, Any]] = None


class TalentRequirementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    gender: Optional[str] = None
    min_age: Optional[str] = None
    max_age: Optional[str] = None
    ethnicity: Optional[str] = None
    height: Optional[str] = None
    skills: Optional[str] = None
    other_requirements: Optional[str] = None
    survey: Optional[dict[str, Any]] = None


class TalentRequirementResponse(ORMModel):
    id: str
    title: str
    description: Optional[str] = None
    is_active: bool
    gender: Optional[str] = None
    min_age: Optional[str] = None
    max_age: Optional[str] = None
    ethnicity: Optional[str] = None
    height: Optional[str] = None
    skills: Optional[str] = None
    other_requirements: Optional[str] = None
    survey: Optional[dict[str, Any]] = None
    project_id: str
    created_at: datetime


class ProjectInvitationCreate(BaseModel):
    profile_ids: list[str] = Field(..., min_length=1, description="At least one talent must be selected")
    message: Optional[str] = Field(None, max_length=1000)
    role: Optional[str] = Field(None, max_length=100)
    expires_at: Optional[datetime] = None


class ProjectInvitationResponse(ORMModel):
    id: str
    project_id: str
    profile_id: str
    status: str
    message: Optional[str] = None
    role: Optional[str] = None
    sent_at: datetime
    responded_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ProjectInvitationBatchResponse(BaseModel):
    message: str
    count: int
    invitations: list[ProjectInvitationResponse]


class ProjectInvitationReply(BaseModel):
    status: Literal["ACCEPTED", "DECLINED"]


# ============================================================================
# Talent dashboard
# ============================================================================


class TalentProjectEntry(BaseModel):
    project: ProjectResponse
    studio_name: str
    role: Optional[str] = None
    assigned_scene_count: int


class TalentInvitedProjectEntry(BaseModel):
    project: ProjectResponse
    studio_name: str
    invitation: ProjectInvitationResponse


class TalentProjectsResponse(BaseModel):
    member_projects: list[TalentProjectEntry]
    invited_projects: list[TalentInvitedProjectEntry]


class TalentSceneEntry(BaseModel):
    scene: SceneResponse
    assigned: bool
    assignment_role: Optional[str] = None


class TalentProjectDetailResponse(BaseModel):
    project: ProjectResponse
    studio_name: str
    member_status: Literal["MEMBER", "INVITED"]
    role: Optional[str] = None
    invitation: Optional[ProjectInvitationResponse] = None
    scenes: list[TalentSceneEntry]


class CalendarEventResponse(BaseModel):
    id: str
    type: Literal["project", "scene"]
    title: str
    start: datetime
    end: Optional[datetime] = None
    all_day: bool
    project_id: str
    project_title: str
    studio: str
    role: str
    status: str
    notes: Optional[str] = None
    location: Optional[str] = None


class SuggestedRoleDetail(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    gender: Optional[str] = None
    age_range: Optional[str] = None
    skills: Optional[str] = None
    requirements: Optional[str] = None


class LocationBrief(BaseModel):
    id: str
    name: str


class SuggestedRole(BaseModel):
    id: str
    type: Literal["requirement", "casting_call"]
    project_id: str
    project_title: str
    studio_id: str
    studio_name: str
    role: SuggestedRoleDetail
    match_score: int
    match_reasons: list[str]
    locations: list[LocationBrief]


class SuggestedRolesResponse(BaseModel):
    message: Optional[str] = None
    suggested_roles: list[SuggestedRole]
    subscribed_regions: list[RegionBrief]


# ============================================================================
# Casting calls & applications
# ============================================================================


class CastingCallCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=10000)
    requirements: Optional[str] = None
    compensation: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: CastingCallStatus = CastingCallStatus.OPEN
    compensation_type: CompensationType = CompensationType.UNSPECIFIED
    experience_level: ExperienceLevel = ExperienceLevel.ANY
    age_range: Optional[str] = None
    gender: GenderRequirement = GenderRequirement.ANY
    role_type: RoleType = RoleType.UNSPECIFIED
    location_id: Optional[str] = None
    project_id: Optional[str] = None
    region_id: Optional[str] = None
    skills: list[str] = []

    @model_validator(mode="after")
    def _dates(self) -> "CastingCallCreate":
        _check_date_order(self.start_date, self.end_date)
        return self


class CastingCallUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=10000)
    requirements: Optional[str] = None
    compensation: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[CastingCallStatus] = None
    compensation_type: Optional[CompensationType] = None
    experience_level: Optional[ExperienceLevel] = None
    age_range: Optional[str] = None
    gender: Optional[GenderRequirement] = None
    role_type: Optional[RoleType] = None
    location_id: Optional[str] = None
    project_id: Optional[str] = None
    region_id: Optional[str] = None
    skills: Optional[list[str]] = None


class CastingCallResponse(ORMModel):
    id: str
    title: str
    description: str
    requirements: Optional[str] = None
    compensation: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: CastingCallStatus
    compensation_type: CompensationType
    experience_level: ExperienceLevel
    age_range: Optional[str] = None
    gender: GenderRequirement
    role_type: RoleType
    studio_id: str
    location_id: Optional[str] = None
    project_id: Optional[str] = None
    region_id: Optional[str] = None
    skills: list[SkillResponse] = []
    created_at: datetime


class ApplicationCreate(BaseModel):
    message: str = Field(..., description="Cover message (10-1000 characters)")


class ApplicationResponse(ORMModel):
    id: str
    status: ApplicationStatus
    message: Optional[str] = None
    profile_id: str
    casting_call_id: str
    created_at: datetime


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationBrief(ORMModel):
    id: str
    status: ApplicationStatus


class OpenCastingCallResponse(CastingCallResponse):
    """Casting call as listed to talent, with the caller's own application if any."""

    application: Optional[ApplicationBrief] = None


class CastingCallInvitationCreate(BaseModel):
    profile_ids: list[str]
    message: Optional[str] = Field(None, max_length=2000)


class CastingCallInvitationBatchResponse(BaseModel):
    message: str
    count: int
    skipped: int


class CastingCallInvitationResponse(BaseModel):
    id: str
    profile_id: str
    talent_name: str
    subject: Optional[str] = None
    content: str
    is_read: bool
    sent_at: datetime
    has_responded: bool
    response_status: Optional[ApplicationStatus] = None
    response_date: Optional[datetime] = None


# ============================================================================
# External actors
# ============================================================================


class ExternalActorCreate(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=40)
    notes: Optional[str] = Field(None, max_length=2000)
    project_id: Optional[str] = None


class ExternalActorUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=40)
    notes: Optional[str] = Field(None, max_length=2000)


class ExternalActorResponse(ORMModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    notes: Optional[str] = None
    status: str
    studio_id: str
    converted_to_talent_at: Optional[datetime] = None
    converted_profile_id: Optional[str] = None
    converted_to_user_id: Optional[str] = None
    created_at: datetime


class ExternalActorImportRequest(BaseModel):
    csv_data: str = Field(..., min_length=1, description="Raw CSV text with a header row")
    project_id: Optional[str] = None


class ImportRowError(BaseModel):
    row: int
    email: Optional[str] = None
    error: str


class ExternalActorImportResponse(BaseModel):
    success: int
    errors: list[ImportRowError]
    duplicates: int


# ============================================================================
# Casting codes
# ============================================================================


class CastingCodeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    project_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True
    survey_fields: Optional[dict[str, Any]] = Field(
        None, description='Survey definition, e.g. {"fields": [{"id": "...", "label": "..."}]}'
    )


class CastingCodeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    project_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None
    survey_fields: Optional[dict[str, Any]] = None


class CastingCodeResponse(ORMModel):
    id: str
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    expires_at: Optional[datetime] = None
    studio_id: str
    project_id: Optional[str] = None
    survey_fields: dict[str, Any]
    created_at: datetime


class PublicCastingCodeResponse(BaseModel):
    """What an unauthenticated applicant sees before submitting."""

    code: str
    name: str
    description: Optional[str] = None
    studio_name: str
    project_title: Optional[str] = None
    survey_fields: dict[str, Any]


class QRCodeResponse(BaseModel):
    qr_code: str = Field(..., description="PNG as a data: URL")
    application_url: str


class CastingCodeSubmitRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=40)
    message: Optional[str] = Field(None, max_length=2000)
    survey_responses: Optional[dict[str, Any]] = None


class CastingCodeSubmitResponse(BaseModel):
    success: bool
    message: str
    submission_id: str
    create_account: bool
    user_data: dict[str, Optional[str]]


class CastingSubmissionResponse(ORMModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    message: Optional[str] = None
    status: SubmissionStatus
    external_actor_id: Optional[str] = None
    casting_code_id: str
    survey_responses: Optional[dict[str, Any]] = None
    created_at: datetime


class CastingSubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus


# ============================================================================
# Questionnaires
# ============================================================================


class QuestionOptionIn(BaseModel):
    label: str = ""
    value: Optional[str] = None


class QuestionIn(BaseModel):
    """Builder question; validated as a whole list by the questionnaire service."""

    id: Optional[str] = Field(None, description="Existing question to update in place")
    text: str = ""
    description: Optional[str] = None
    type: QuestionType
    is_required: bool = False
    options: list[QuestionOptionIn] = []
    metadata: Optional[dict[str, Any]] = None


class QuestionnaireCreate(BaseModel):
    title: str
    description: Optional[str] = None
    is_active: bool = True
    requires_approval: bool = False
    questions: list[QuestionIn] = []


class QuestionnaireUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    requires_approval: Optional[bool] = None
    questions: Optional[list[QuestionIn]] = Field(
        None, description="Full question list; entries with an id update that question in place"
    )


class QuestionResponse(ORMModel):
    id: str
    text: str
    description: Optional[str] = None
    type: QuestionType
    is_required: bool
    order: int
    options: Optional[list[dict[str, Any]]] = None
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("question_metadata", "metadata")
    )


class QuestionnaireSummaryResponse(ORMModel):
    id: str
    title: str
    description: Optional[str] = None
    studio_id: str
    is_active: bool
    requires_approval: bool
    created_at: datetime
    updated_at: datetime


class QuestionnaireDetailResponse(QuestionnaireSummaryResponse):
    questions: list[QuestionResponse] = []


class SendInvitationsRequest(BaseModel):
    profile_ids: list[str] = Field(..., min_length=1, description="At least one talent must be selected")
    message: Optional[str] = Field(None, max_length=500)
    expires_at: Optional[datetime] = None


class InvitationResponse(ORMModel):
    id: str
    questionnaire_id: str
    profile_id: str
    status: InvitationStatus
    sent_at: datetime
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    message: Optional[str] = None


class SendInvitationsResponse(BaseModel):
    message: str
    invitations: list[InvitationResponse]
    skipped: int


class TalentInvitationDetailResponse(InvitationResponse):
    questionnaire: QuestionnaireDetailResponse


class AnswerIn(BaseModel):
    question_id: str
    text_value: Optional[str] = None
    choice_values: Optional[list[str]] = None
    file_url: Optional[str] = None


class RespondRequest(BaseModel):
    answers: list[AnswerIn] = []


class AnswerResponse(ORMModel):
    id: str
    question_id: str
    text_value: Optional[str] = None
    choice_values: Optional[list[str]] = None
    file_url: Optional[str] = None


class QuestionnaireAnswersResponse(ORMModel):
    """A talent's submitted answers to a questionnaire."""

    id: str
    invitation_id: str
    questionnaire_id: str
    profile_id: str
    status: str
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    answers: list[AnswerResponse] = []


class ReviewResponseRequest(BaseModel):
    status: Literal["APPROVED", "REJECTED"]
    notes: Optional[str] = Field(None, max_length=2000)


# ============================================================================
# Messaging
# ============================================================================


class MessageCreate(BaseModel):
    recipient_id: str = Field(..., description="Profile id (studio sender) or studio id (talent sender)")
    subject: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    related_project_id: Optional[str] = None
    related_casting_call_id: Optional[str] = None


class MessageResponse(ORMModel):
    id: str
    subject: Optional[str] = None
    content: str
    is_read: bool
    studio_sender_id: Optional[str] = None
    talent_receiver_id: Optional[str] = None
    talent_sender_id: Optional[str] = None
    studio_receiver_id: Optional[str] = None
    related_project_id: Optional[str] = None
    related_casting_call_id: Optional[str] = None
    created_at: datetime


class UnreadCountResponse(BaseModel):
    count: int


# ============================================================================
# Regions & locations
# ============================================================================


class RegionCreate(BaseModel):
    name: str = ""
    description: Optional[str] = Field(None, max_length=1000)


class RegionUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)


class RegionStats(BaseModel):
    locations: int
    casting_calls: int
    profiles: int
    studios: int


class RegionResponse(ORMModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    stats: Optional[RegionStats] = None


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    region_id: Optional[str] = None


class LocationUpdate(BaseModel):
    """PATCH body; send region_id=null to detach the location from its region."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    region_id: Optional[str] = None


class LocationResponse(ORMModel):
    id: str
    name: str
    region_id: Optional[str] = None
    created_at: datetime


# ============================================================================
# Plans, subscriptions, regional pricing, feature flags
# ============================================================================


class SubscriptionPlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    interval: Literal["month", "year"] = "month"
    features: list[str] = []
    is_active: bool = True
    stripe_price_id: Optional[str] = None


class SubscriptionPlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    interval: Optional[Literal["month", "year"]] = None
    features: Optional[list[str]] = None
    is_active: Optional[bool] = None
    stripe_price_id: Optional[str] = None


class SubscriptionPlanResponse(ORMModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    interval: str
    features: list[str]
    is_active: bool


class RegionalPlanCreate(BaseModel):
    region_id: str
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True
    stripe_price_id: Optional[str] = None


class RegionalPlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_active: Optional[bool] = None
    stripe_price_id: Optional[str] = None


class RegionalPlanResponse(BaseModel):
    id: str
    region_id: str
    region_name: str
    name: str
    description: Optional[str] = None
    price: float
    is_active: bool
    features: list[str]


class DiscountRequest(BaseModel):
    region_count: int = Field(..., ge=0)


class DiscountResponse(BaseModel):
    region_count: int
    discount_percentage: float
    discount_amount: float = Field(..., description="Fraction, e.g. 0.15 for 15%")


class DiscountTierCreate(BaseModel):
    region_count: int = Field(..., ge=2)
    discount_percentage: Decimal = Field(..., ge=0, le=100, max_digits=5, decimal_places=2)
    active: bool = True


class DiscountTierUpdate(BaseModel):
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    active: Optional[bool] = None


class DiscountTierResponse(ORMModel):
    id: str
    region_count: int
    discount_percentage: float
    active: bool


class RegionCheckoutRequest(BaseModel):
    region_plan_ids: list[str] = Field(..., min_length=1)


class RegionCheckoutQuote(BaseModel):
    region_count: int
    subtotal: float
    discount_percentage: float
    discount: float
    total: float
    total_cents: int


class SubscriptionAssignRequest(BaseModel):
    plan_id: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE


class RegionSubscriptionCreate(BaseModel):
    region_plan_id: str


class RegionSubscriptionResponse(BaseModel):
    id: str
    region_plan_id: str
    region_id: str
    region_name: str
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime


class SubscriptionResponse(BaseModel):
    id: str
    plan_id: str
    plan_name: str
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None
    multi_region_discount: Optional[float] = None
    region_subscriptions: list[RegionSubscriptionResponse] = []


class FeatureAccessResponse(BaseModel):
    feature_key: str
    has_access: bool


class FeatureFlagCreate(BaseModel):
    key: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$", max_length=64)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    default_value: bool = False


class FeatureFlagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    default_value: Optional[bool] = None


class FeatureFlagResponse(ORMModel):
    id: str
    key: str
    name: str
    description: Optional[str] = None
    default_value: bool


class FeatureOverrideRequest(BaseModel):
    feature_key: str = Field(..., min_length=1, max_length=64)
    value: Any


class FeatureOverrideResponse(ORMModel):
    id: str
    subscription_id: str
    feature_key: str
    feature_value: Any


# ============================================================================
# Admin
# ============================================================================


class ActivityItem(BaseModel):
    type: Literal["user", "project", "casting_call"]
    description: str
    timestamp: datetime


class AdminStatsResponse(BaseModel):
    users: int
    studios: int
    talents: int
    projects: int
    casting_calls: int
    recent_activity: list[ActivityItem]


class SetupDefaultsResponse(BaseModel):
    plans_created: int
    feature_flags_created: int
    regions_created: int
    regional_plans_created: int
    discounts_created: int
