"""SQLAlchemy ORM Models for QCard.

Referential actions live in the schema: every child row names its parent with
``ondelete=...`` so that removing a Studio, Project or Questionnaire cleans up
its aggregate in the database itself. ORM relationships that point at
children use ``passive_deletes=True`` and leave the work to the database.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    BOOLEAN,
    DATE,
    INTEGER,
    JSON,
    NUMERIC,
    TEXT,
    TIMESTAMP,
    Column,
    ForeignKey,
    Index,
    Table,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from qcard_api.db.enums import (
    ApplicationStatus,
    AssignmentStatus,
    CastingCallStatus,
    CompensationType,
    ExperienceLevel,
    ExternalActorStatus,
    FieldType,
    GenderRequirement,
    InvitationStatus,
    ProfileType,
    ProjectInvitationStatus,
    ProjectStatus,
    ResponseStatus,
    RoleType,
    SceneStatus,
    SubmissionStatus,
    SubscriptionStatus,
    UserRole,
)


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class TimestampMixin:
    """created_at / updated_at columns shared by every entity table."""

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


# ============================================================================
# Association tables (composite PKs, cascade on both sides)
# ============================================================================

profile_skills = Table(
    "profile_skills",
    Base.metadata,
    Column("profile_id", TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", TEXT, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

profile_locations = Table(
    "profile_locations",
    Base.metadata,
    Column("profile_id", TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("location_id", TEXT, ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True),
)

studio_locations = Table(
    "studio_locations",
    Base.metadata,
    Column("studio_id", TEXT, ForeignKey("studios.id", ondelete="CASCADE"), primary_key=True),
    Column("location_id", TEXT, ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True),
)

casting_call_skills = Table(
    "casting_call_skills",
    Base.metadata,
    Column("casting_call_id", TEXT, ForeignKey("casting_calls.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", TEXT, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

profile_regions = Table(
    "profile_regions",
    Base.metadata,
    Column("profile_id", TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("region_id", TEXT, ForeignKey("regions.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, default=_utcnow),
)

studio_regions = Table(
    "studio_regions",
    Base.metadata,
    Column("studio_id", TEXT, ForeignKey("studios.id", ondelete="CASCADE"), primary_key=True),
    Column("region_id", TEXT, ForeignKey("regions.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, default=_utcnow),
)


# ============================================================================
# Identity: tenants, users, talent profiles, studios
# ============================================================================


class Tenant(TimestampMixin, Base):
    """Tenant: either a studio organisation or an individual talent."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    type: Mapped[str] = mapped_column(TEXT, nullable=False)  # TenantType


class User(TimestampMixin, Base):
    """Platform account. Credentials live with the upstream auth provider."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    first_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True, index=True)
    role: Mapped[str] = mapped_column(TEXT, nullable=False, default=UserRole.USER.value)
    tenant_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("tenants.id", ondelete="SET NULL"), nullable=True
    )

    tenant: Mapped[Optional[Tenant]] = relationship()
    profile: Mapped[Optional["Profile"]] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def tenant_type(self) -> Optional[str]:
        return self.tenant.type if self.tenant else None


class Profile(TimestampMixin, Base):
    """Talent-side identity; one per user."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    headshot_url: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    height: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    weight: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    hair_color: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    eye_color: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    availability: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    ethnicity: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    experience: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    languages: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(DATE, nullable=True)

    user: Mapped[User] = relationship(back_populates="profile")
    skills: Mapped[list["Skill"]] = relationship(secondary=profile_skills, passive_deletes=True)
    locations: Mapped[list["Location"]] = relationship(secondary=profile_locations, passive_deletes=True)
    regions: Mapped[list["Region"]] = relationship(secondary=profile_regions, passive_deletes=True)


class Skill(Base):
    """Named skill shared by profiles and casting calls."""

    __tablename__ = "skills"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )


class Region(TimestampMixin, Base):
    """Geographic market (West Coast, Midwest, ...)."""

    __tablename__ = "regions"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)


class Location(TimestampMixin, Base):
    """City or venue; optionally grouped under a region."""

    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    region_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("regions.id", ondelete="SET NULL"), nullable=True, index=True
    )

    region: Mapped[Optional[Region]] = relationship()


class Studio(TimestampMixin, Base):
    """Production company; exactly one per STUDIO tenant."""

    __tablename__ = "studios"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    tenant_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False, unique=True
    )

    tenant: Mapped[Tenant] = relationship()
    locations: Mapped[list[Location]] = relationship(secondary=studio_locations, passive_deletes=True)
    regions: Mapped[list[Region]] = relationship(secondary=studio_regions, passive_deletes=True)


# ============================================================================
# Projects, scenes, casting calls
# ============================================================================


class Project(TimestampMixin, Base):
    """Production owned by a studio."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=ProjectStatus.PLANNING.value)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True
    )

    studio: Mapped[Studio] = relationship()
    scenes: Mapped[list["Scene"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Scene.created_at",
    )


class ProjectMember(TimestampMixin, Base):
    """Talent attached to a project (cast list)."""

    __tablename__ = "project_members"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    profile: Mapped[Profile] = relationship()

    __table_args__ = (
        UniqueConstraint("project_id", "profile_id", name="uq_project_members_project_profile"),
    )


class Scene(TimestampMixin, Base):
    """Shoot unit inside a project."""

    __tablename__ = "scenes"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    location_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )
    shoot_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(INTEGER, nullable=True)  # minutes
    talent_needed: Mapped[Optional[int]] = mapped_column(INTEGER, nullable=True)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=SceneStatus.PLANNING.value)
    project_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project: Mapped[Project] = relationship(back_populates="scenes")


class CastingCall(TimestampMixin, Base):
    """Role/opportunity that talent profiles apply to."""

    __tablename__ = "casting_calls"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[str] = mapped_column(TEXT, nullable=False)
    requirements: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    compensation: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=CastingCallStatus.OPEN.value)
    compensation_type: Mapped[str] = mapped_column(
        TEXT, nullable=False, default=CompensationType.UNSPECIFIED.value
    )
    experience_level: Mapped[str] = mapped_column(TEXT, nullable=False, default=ExperienceLevel.ANY.value)
    age_range: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    gender: Mapped[str] = mapped_column(TEXT, nullable=False, default=GenderRequirement.ANY.value)
    role_type: Mapped[str] = mapped_column(TEXT, nullable=False, default=RoleType.UNSPECIFIED.value)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )
    project_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True
    )
    region_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("regions.id", ondelete="SET NULL"), nullable=True, index=True
    )

    studio: Mapped[Studio] = relationship()
    skills: Mapped[list[Skill]] = relationship(secondary=casting_call_skills, passive_deletes=True)


class Application(TimestampMixin, Base):
    """A profile's application to a casting call."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=ApplicationStatus.PENDING.value)
    message: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    casting_call_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("casting_calls.id", ondelete="CASCADE"), nullable=False, index=True
    )

    profile: Mapped[Profile] = relationship()
    casting_call: Mapped[CastingCall] = relationship()

    __table_args__ = (
        UniqueConstraint("profile_id", "casting_call_id", name="uq_applications_profile_casting_call"),
    )


class TalentRequirement(TimestampMixin, Base):
    """Role profile a project needs to fill."""

    __tablename__ = "talent_requirements"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    gender: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    min_age: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    max_age: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    ethnicity: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    height: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    skills: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    other_requirements: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    survey: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    project_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )


class SceneTalent(TimestampMixin, Base):
    """Platform talent confirmed for a scene."""

    __tablename__ = "scene_talents"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    scene_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("scenes.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=AssignmentStatus.CONFIRMED.value)

    profile: Mapped[Profile] = relationship()

    __table_args__ = (UniqueConstraint("scene_id", "profile_id", name="uq_scene_talents_scene_profile"),)


class ProjectInvitation(TimestampMixin, Base):
    """Studio invitation for a talent to join a project."""

    __tablename__ = "project_invitations"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        TEXT, nullable=False, default=ProjectInvitationStatus.PENDING.value
    )
    message: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    role: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    responded_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    project: Mapped[Project] = relationship()


# ============================================================================
# External actors (studio-managed contacts, not yet platform users)
# ============================================================================


class ExternalActor(TimestampMixin, Base):
    """Studio-tracked contact; may later convert into a platform talent."""

    __tablename__ = "external_actors"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    email: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    first_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    last_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True, index=True)
    notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=ExternalActorStatus.ACTIVE.value)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False
    )
    converted_to_talent_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    converted_profile_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    converted_to_user_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        # Email is optional; uniqueness only applies when it is present.
        Index(
            "uq_external_actors_email_studio",
            "email",
            "studio_id",
            unique=True,
            postgresql_where=text("email IS NOT NULL"),
            sqlite_where=text("email IS NOT NULL"),
        ),
        Index("idx_external_actors_studio_name", "studio_id", "first_name", "last_name"),
    )


class ExternalActorProject(TimestampMixin, Base):
    """Link between an external actor and a project."""

    __tablename__ = "external_actor_projects"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    external_actor_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("external_actors.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (
        UniqueConstraint("external_actor_id", "project_id", name="uq_external_actor_projects_actor_project"),
    )


class SceneExternalActor(TimestampMixin, Base):
    """External actor confirmed for a scene."""

    __tablename__ = "scene_external_actors"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    scene_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("scenes.id", ondelete="CASCADE"), nullable=False
    )
    external_actor_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("external_actors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=AssignmentStatus.CONFIRMED.value)

    __table_args__ = (
        UniqueConstraint("scene_id", "external_actor_id", name="uq_scene_external_actors_scene_actor"),
    )


# ============================================================================
# Messaging
# ============================================================================


class Message(TimestampMixin, Base):
    """Direct message between a studio and a talent profile (either direction)."""

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    subject: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    content: Mapped[str] = mapped_column(TEXT, nullable=False)
    is_read: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    studio_sender_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="SET NULL"), nullable=True, index=True
    )
    talent_receiver_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    talent_sender_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    studio_receiver_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="SET NULL"), nullable=True, index=True
    )
    related_project_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    related_casting_call_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("casting_calls.id", ondelete="SET NULL"), nullable=True
    )


# ============================================================================
# Custom profile fields (admin-defined schema)
# ============================================================================


class ProfileField(TimestampMixin, Base):
    """Admin-defined custom field for talent and/or studio profiles."""

    __tablename__ = "profile_fields"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    label: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    type: Mapped[str] = mapped_column(TEXT, nullable=False, default=FieldType.TEXT.value)
    profile_type: Mapped[str] = mapped_column(TEXT, nullable=False, default=ProfileType.BOTH.value)
    is_required: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    is_visible: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    default_value: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    placeholder: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    order: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    is_system: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    group_name: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    validation_rules: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    options: Mapped[list["FieldOption"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FieldOption.order",
    )


class FieldOption(TimestampMixin, Base):
    """Choice for a DROPDOWN custom field."""

    __tablename__ = "field_options"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    value: Mapped[str] = mapped_column(TEXT, nullable=False)
    label: Mapped[str] = mapped_column(TEXT, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    order: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    is_default: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    field_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profile_fields.id", ondelete="CASCADE"), nullable=False, index=True
    )


class ProfileFieldValue(TimestampMixin, Base):
    """Custom field value for a talent profile (one per profile/field)."""

    __tablename__ = "profile_field_values"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    value: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profile_fields.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (UniqueConstraint("profile_id", "field_id", name="uq_profile_field_values_profile_field"),)


class StudioFieldValue(TimestampMixin, Base):
    """Custom field value for a studio (one per studio/field)."""

    __tablename__ = "studio_field_values"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    value: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profile_fields.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (UniqueConstraint("studio_id", "field_id", name="uq_studio_field_values_studio_field"),)


# ============================================================================
# Studio notes (private to the authoring studio)
# ============================================================================


class StudioNote(TimestampMixin, Base):
    """Free-text note a studio keeps about a talent profile."""

    __tablename__ = "studio_notes"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    content: Mapped[str] = mapped_column(TEXT, nullable=False)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (Index("ix_studio_notes_studio_profile", "studio_id", "profile_id"),)


# ============================================================================
# Questionnaires
# ============================================================================


class Questionnaire(TimestampMixin, Base):
    """Studio-authored form sent to selected talent."""

    __tablename__ = "questionnaires"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    requires_approval: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)

    questions: Mapped[list["QuestionnaireQuestion"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuestionnaireQuestion.order",
    )


class QuestionnaireQuestion(TimestampMixin, Base):
    """Single question; ``options`` holds [{label, value}] for choice types."""

    __tablename__ = "questionnaire_questions"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    questionnaire_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("questionnaires.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    type: Mapped[str] = mapped_column(TEXT, nullable=False)  # QuestionType
    is_required: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    order: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    options: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    question_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)


class QuestionnaireInvitation(TimestampMixin, Base):
    """Invitation for one profile to answer one questionnaire."""

    __tablename__ = "questionnaire_invitations"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    questionnaire_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("questionnaires.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=InvitationStatus.PENDING.value)
    sent_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    expires_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    questionnaire: Mapped[Questionnaire] = relationship()
    profile: Mapped[Profile] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "questionnaire_id", "profile_id", name="uq_questionnaire_invitations_questionnaire_profile"
        ),
    )


class QuestionnaireResponse(TimestampMixin, Base):
    """Submitted answers for an invitation (at most one per invitation)."""

    __tablename__ = "questionnaire_responses"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    invitation_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("questionnaire_invitations.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    questionnaire_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("questionnaires.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=ResponseStatus.SUBMITTED.value)
    submitted_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    review_notes: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    answers: Mapped[list["QuestionAnswer"]] = relationship(
        cascade="all, delete-orphan", passive_deletes=True
    )


class QuestionAnswer(TimestampMixin, Base):
    """Answer to one question within one response."""

    __tablename__ = "question_answers"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    response_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("questionnaire_responses.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("questionnaire_questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text_value: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    choice_values: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    __table_args__ = (UniqueConstraint("response_id", "question_id", name="uq_question_answers_response_question"),)


# ============================================================================
# Subscriptions, features, regional pricing
# ============================================================================


class SubscriptionPlan(TimestampMixin, Base):
    """Main subscription plan; ``features`` is a list of feature keys."""

    __tablename__ = "subscription_plans"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    price: Mapped[Decimal] = mapped_column(NUMERIC(10, 2), nullable=False)
    interval: Mapped[str] = mapped_column(TEXT, nullable=False, default="month")
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    stripe_price_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)


class Subscription(TimestampMixin, Base):
    """A user's main subscription."""

    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    studio_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="SET NULL"), nullable=True
    )
    plan_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("subscription_plans.id", ondelete="RESTRICT"), nullable=False
    )
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=SubscriptionStatus.ACTIVE.value)
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    current_period_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    cancel_at_period_end: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    multi_region_discount: Mapped[Optional[Decimal]] = mapped_column(NUMERIC(5, 2), nullable=True)

    plan: Mapped[SubscriptionPlan] = relationship()
    features: Mapped[list["SubscriptionFeature"]] = relationship(
        cascade="all, delete-orphan", passive_deletes=True
    )


class SubscriptionFeature(TimestampMixin, Base):
    """Per-subscription feature override."""

    __tablename__ = "subscription_features"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    subscription_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False
    )
    feature_key: Mapped[str] = mapped_column(TEXT, nullable=False)
    feature_value: Mapped[Any] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("subscription_id", "feature_key", name="uq_subscription_features_subscription_key"),
    )


class FeatureFlag(TimestampMixin, Base):
    """Global feature flag with a default for unsubscribed users."""

    __tablename__ = "feature_flags"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    key: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    default_value: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=False)


class RegionSubscriptionPlan(TimestampMixin, Base):
    """Add-on plan granting access to one region."""

    __tablename__ = "region_subscription_plans"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    region_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("regions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    price: Mapped[Decimal] = mapped_column(NUMERIC(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    stripe_price_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    region: Mapped[Region] = relationship()


class MultiRegionDiscount(TimestampMixin, Base):
    """Discount tier keyed on the number of regions subscribed."""

    __tablename__ = "multi_region_discounts"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    region_count: Mapped[int] = mapped_column(INTEGER, nullable=False, unique=True)
    discount_percentage: Mapped[Decimal] = mapped_column(NUMERIC(5, 2), nullable=False)
    active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)


class UserRegionSubscription(TimestampMixin, Base):
    """Regional add-on attached to a user's main subscription."""

    __tablename__ = "user_region_subscriptions"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    region_plan_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("region_subscription_plans.id", ondelete="RESTRICT"), nullable=False
    )
    main_subscription_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=SubscriptionStatus.ACTIVE.value)
    stripe_item_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    current_period_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    region_plan: Mapped[RegionSubscriptionPlan] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "region_plan_id", name="uq_user_region_subscriptions_user_plan"),
    )


# ============================================================================
# Casting codes (public QR submissions)
# ============================================================================


class CastingCode(TimestampMixin, Base):
    """Shareable code that accepts unauthenticated submissions."""

    __tablename__ = "casting_codes"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    code: Mapped[str] = mapped_column(TEXT, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    studio_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True
    )
    survey_fields: Mapped[dict] = mapped_column(JSON, nullable=False, default=lambda: {"fields": []})


class CastingSubmission(TimestampMixin, Base):
    """Submission made through a casting code."""

    __tablename__ = "casting_submissions"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    first_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    last_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    message: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    external_actor_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("external_actors.id", ondelete="SET NULL"), nullable=True, index=True
    )
    casting_code_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("casting_codes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(TEXT, nullable=False, default=SubmissionStatus.PENDING.value)
    converted_to_profile_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    converted_user_id: Mapped[Optional[str]] = mapped_column(
        TEXT, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    survey: Mapped[Optional["CastingSubmissionSurvey"]] = relationship(
        uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def survey_responses(self) -> Optional[dict]:
        return self.survey.responses if self.survey is not None else None


class CastingSubmissionSurvey(TimestampMixin, Base):
    """Custom survey answers attached to a submission."""

    __tablename__ = "casting_submission_surveys"

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=_uuid)
    submission_id: Mapped[str] = mapped_column(
        TEXT, ForeignKey("casting_submissions.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    responses: Mapped[dict] = mapped_column(JSON, nullable=False)
