"""Projects and everything hanging off them.

Scenes, cast members, scene assignments, talent requirements and project
invitations. All studio lookups are scoped to the calling studio; another
studio's project is reported as not found. Talent see the projects they are
cast in or invited to.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from qcard_api.db.enums import AssignmentStatus, ProjectInvitationStatus, ProjectStatus
from qcard_api.db.models import (
    ExternalActor,
    Location,
    Profile,
    Project,
    ProjectInvitation,
    ProjectMember,
    Scene,
    SceneExternalActor,
    SceneTalent,
    Studio,
    TalentRequirement,
)
from qcard_api.errors import ConflictError, DomainValidationError, NotFoundError, PermissionDeniedError
from qcard_api.services.common import apply_updates, get_or_404
from qcard_api.services.external_actors import link_actor_to_project
from qcard_api.utils.clock import is_expired, utcnow

logger = logging.getLogger(__name__)

CAST_MEMBER_ROLE = "Cast Member"
ACCEPTED_INVITATION_ROLE = "Talent"


# ============================================================================
# Projects
# ============================================================================


def create_project(db: Session, studio: Studio, data) -> Project:
    project = Project(studio_id=studio.id)
    apply_updates(project, data.model_dump())
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(
        "Project created", extra={"event": "project.created", "project_id": project.id, "studio_id": studio.id}
    )
    return project


def list_projects(db: Session, studio: Studio, status: Optional[ProjectStatus] = None) -> list[Project]:
    query = db.query(Project).filter(Project.studio_id == studio.id)
    if status:
        query = query.filter(Project.status == ProjectStatus(status).value)
    return query.order_by(Project.created_at.desc()).all()


def get_project(db: Session, studio: Studio, project_id: str) -> Project:
    project = db.query(Project).filter(Project.id == project_id, Project.studio_id == studio.id).first()
    if project is None:
        raise NotFoundError("Project not found")
    return project


def update_project(db: Session, studio: Studio, project_id: str, updates: dict) -> Project:
    project = get_project(db, studio, project_id)
    apply_updates(project, updates)
    if project.start_date and project.end_date and project.end_date < project.start_date:
        raise DomainValidationError("end_date must not be before start_date")
    db.commit()
    db.refresh(project)
    return project


def archive_project(db: Session, studio: Studio, project_id: str) -> Project:
    project = get_project(db, studio, project_id)
    project.status = ProjectStatus.ARCHIVED.value
    db.commit()
    db.refresh(project)
    logger.info("Project archived", extra={"event": "project.archived", "project_id": project.id})
    return project


def delete_project(db: Session, studio: Studio, project_id: str) -> None:
    """Delete a project; scenes, members, invitations and requirements cascade."""
    project = get_project(db, studio, project_id)
    db.delete(project)
    db.commit()
    logger.info("Project deleted", extra={"event": "project.deleted", "project_id": project_id})


# ============================================================================
# Members
# ============================================================================


def list_members(db: Session, studio: Studio, project_id: str) -> list[ProjectMember]:
    project = get_project(db, studio, project_id)
    return (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project.id)
        .order_by(ProjectMember.created_at)
        .all()
    )


def ensure_project_member(
    db: Session, project_id: str, profile_id: str, role: str, notes: Optional[str] = None
) -> ProjectMember:
    """Return the (project, profile) member row, creating it when missing."""
    member = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.profile_id == profile_id)
        .first()
    )
    if member is None:
        member = ProjectMember(project_id=project_id, profile_id=profile_id, role=role, notes=notes)
        db.add(member)
        db.flush()
    return member


def add_member(
    db: Session, studio: Studio, project_id: str, profile_id: str, role: Optional[str], notes: Optional[str]
) -> ProjectMember:
    project = get_project(db, studio, project_id)
    get_or_404(db, Profile, profile_id, "Talent profile not found")
    exists = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project.id, ProjectMember.profile_id == profile_id)
        .first()
    )
    if exists:
        raise ConflictError("Talent is already a member of this project")
    member = ProjectMember(project_id=project.id, profile_id=profile_id, role=role, notes=notes)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def remove_member(db: Session, studio: Studio, project_id: str, member_id: str) -> None:
    project = get_project(db, studio, project_id)
    member = (
        db.query(ProjectMember)
        .filter(ProjectMember.id == member_id, ProjectMember.project_id == project.id)
        .first()
    )
    if member is None:
        raise NotFoundError("Project member not found")
    db.delete(member)
    db.commit()


# ============================================================================
# Scenes
# ============================================================================


def _check_location(db: Session, location_id: Optional[str]) -> None:
    if location_id:
        get_or_404(db, Location, location_id, "Location not found")


def create_scene(db: Session, studio: Studio, project_id: str, data) -> Scene:
    project = get_project(db, studio, project_id)
    _check_location(db, data.location_id)
    scene = Scene(project_id=project.id)
    apply_updates(scene, data.model_dump())
    db.add(scene)
    db.commit()
    db.refresh(scene)
    logger.info("Scene created", extra={"event": "scene.created", "scene_id": scene.id, "project_id": project.id})
    return scene


def list_scenes(db: Session, studio: Studio, project_id: str) -> list[Scene]:
    return list(get_project(db, studio, project_id).scenes)


def get_scene(db: Session, studio: Studio, project_id: str, scene_id: str) -> Scene:
    project = get_project(db, studio, project_id)
    scene = db.query(Scene).filter(Scene.id == scene_id, Scene.project_id == project.id).first()
    if scene is None:
        raise NotFoundError("Scene not found")
    return scene


def update_scene(db: Session, studio: Studio, project_id: str, scene_id: str, updates: dict) -> Scene:
    scene = get_scene(db, studio, project_id, scene_id)
    _check_location(db, updates.get("location_id"))
    apply_updates(scene, updates)
    db.commit()
    db.refresh(scene)
    return scene


def delete_scene(db: Session, studio: Studio, project_id: str, scene_id: str) -> None:
    scene = get_scene(db, studio, project_id, scene_id)
    db.delete(scene)
    db.commit()


def list_scene_talent(db: Session, scene: Scene) -> list[SceneTalent]:
    return db.query(SceneTalent).filter(SceneTalent.scene_id == scene.id).order_by(SceneTalent.created_at).all()


def assign_scene_talent(
    db: Session,
    scene: Scene,
    profile_id: str,
    role: Optional[str] = None,
    notes: Optional[str] = None,
    status: AssignmentStatus = AssignmentStatus.CONFIRMED,
) -> SceneTalent:
    """Confirm a platform talent for a scene and add them to the project cast.

    Raises:
        NotFoundError: Profile does not exist
        DomainValidationError: Talent already assigned to the scene
    """
    get_or_404(db, Profile, profile_id, "Talent profile not found")
    existing = (
        db.query(SceneTalent).filter(SceneTalent.scene_id == scene.id, SceneTalent.profile_id == profile_id).first()
    )
    if existing:
        raise DomainValidationError("Talent is already assigned to this scene")

    assignment = SceneTalent(
        scene_id=scene.id,
        profile_id=profile_id,
        role=role,
        notes=notes,
        status=AssignmentStatus(status).value,
    )
    db.add(assignment)
    ensure_project_member(db, scene.project_id, profile_id, role=CAST_MEMBER_ROLE)
    db.commit()
    db.refresh(assignment)

    logger.info(
        "Scene talent assigned",
        extra={"event": "scene.talent_assigned", "scene_id": scene.id, "profile_id": profile_id},
    )
    return assignment


def remove_scene_talent(db: Session, scene: Scene, assignment_id: str) -> None:
    assignment = (
        db.query(SceneTalent).filter(SceneTalent.id == assignment_id, SceneTalent.scene_id == scene.id).first()
    )
    if assignment is None:
        raise NotFoundError("Scene talent not found")
    db.delete(assignment)
    db.commit()


def list_scene_external_actors(db: Session, scene: Scene) -> list[SceneExternalActor]:
    return (
        db.query(SceneExternalActor)
        .filter(SceneExternalActor.scene_id == scene.id)
        .order_by(SceneExternalActor.created_at)
        .all()
    )


def assign_scene_external_actor(
    db: Session,
    studio: Studio,
    scene: Scene,
    external_actor_id: str,
    role: Optional[str] = None,
    notes: Optional[str] = None,
) -> SceneExternalActor:
    """Confirm one of the studio's external actors for a scene.

    Raises:
        NotFoundError: Actor missing or owned by another studio
        ConflictError: Actor already assigned to the scene
    """
    actor = (
        db.query(ExternalActor)
        .filter(ExternalActor.id == external_actor_id, ExternalActor.studio_id == studio.id)
        .first()
    )
    if actor is None:
        raise NotFoundError("External actor not found")

    existing = (
        db.query(SceneExternalActor)
        .filter(SceneExternalActor.scene_id == scene.id, SceneExternalActor.external_actor_id == actor.id)
        .first()
    )
    if existing:
        raise ConflictError("External actor is already assigned to this scene")

    assignment = SceneExternalActor(scene_id=scene.id, external_actor_id=actor.id, role=role, notes=notes)
    db.add(assignment)
    link_actor_to_project(db, actor, scene.project_id, role=role)
    db.commit()
    db.refresh(assignment)

    logger.info(
        "Scene external actor assigned",
        extra={"event": "scene.external_actor_assigned", "scene_id": scene.id, "external_actor_id": actor.id},
    )
    return assignment


def remove_scene_external_actor(db: Session, scene: Scene, assignment_id: str) -> None:
    assignment = (
        db.query(SceneExternalActor)
        .filter(SceneExternalActor.id == assignment_id, SceneExternalActor.scene_id == scene.id)
        .first()
    )
    if assignment is None:
        raise NotFoundError("Scene external actor not found")
    db.delete(assignment)
    db.commit()


# ============================================================================
# Talent requirements
# ============================================================================


def _parse_age(value: Optional[str], label: str) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        age = int(str(value).strip())
    except ValueError:
        raise DomainValidationError(f"{label} must be a whole number") from None
    if age < 0:
        raise DomainValidationError(f"{label} must not be negative")
    return age


def _check_age_range(min_age: Optional[str], max_age: Optional[str]) -> None:
    low = _parse_age(min_age, "Minimum age")
    high = _parse_age(max_age, "Maximum age")
    if low is not None and high is not None and low > high:
        raise DomainValidationError("Minimum age cannot be greater than maximum age")


def create_requirement(db: Session, studio: Studio, project_id: str, data) -> TalentRequirement:
    project = get_project(db, studio, project_id)
    _check_age_range(data.min_age, data.max_age)
    requirement = TalentRequirement(project_id=project.id)
    apply_updates(requirement, data.model_dump())
    db.add(requirement)
    db.commit()
    db.refresh(requirement)
    return requirement


def list_requirements(db: Session, studio: Studio, project_id: str) -> list[TalentRequirement]:
    project = get_project(db, studio, project_id)
    return (
        db.query(TalentRequirement)
        .filter(TalentRequirement.project_id == project.id)
        .order_by(TalentRequirement.created_at)
        .all()
    )


def _get_requirement(db: Session, studio: Studio, project_id: str, requirement_id: str) -> TalentRequirement:
    project = get_project(db, studio, project_id)
    requirement = (
        db.query(TalentRequirement)
        .filter(TalentRequirement.id == requirement_id, TalentRequirement.project_id == project.id)
        .first()
    )
    if requirement is None:
        raise NotFoundError("Talent requirement not found")
    return requirement


def update_requirement(
    db: Session, studio: Studio, project_id: str, requirement_id: str, updates: dict
) -> TalentRequirement:
    requirement = _get_requirement(db, studio, project_id, requirement_id)
    _check_age_range(updates.get("min_age", requirement.min_age), updates.get("max_age", requirement.max_age))
    apply_updates(requirement, updates)
    db.commit()
    db.refresh(requirement)
    return requirement


def delete_requirement(db: Session, studio: Studio, project_id: str, requirement_id: str) -> None:
    requirement = _get_requirement(db, studio, project_id, requirement_id)
    db.delete(requirement)
    db.commit()


# ============================================================================
# Project invitations
# ============================================================================


def invite_talent_to_project(
    db: Session,
    studio: Studio,
    project_id: str,
    profile_ids: list[str],
    message: Optional[str] = None,
    role: Optional[str] = None,
    expires_at=None,
) -> list[ProjectInvitation]:
    """Create PENDING invitations for every existing talent profile given.

    Profiles with a live PENDING invitation to the project are skipped.

    Raises:
        DomainValidationError: None of the ids is a talent profile
        ConflictError: Every profile already has a pending invitation
    """
    project = get_project(db, studio, project_id)
    unique_ids = list(dict.fromkeys(profile_ids))
    profiles = db.query(Profile).filter(Profile.id.in_(unique_ids)).all() if unique_ids else []
    if not profiles:
        raise DomainValidationError("No valid talent profiles found")

    pending = {
        invitation.profile_id
        for invitation in db.query(ProjectInvitation).filter(
            ProjectInvitation.project_id == project.id,
            ProjectInvitation.profile_id.in_([profile.id for profile in profiles]),
            ProjectInvitation.status == ProjectInvitationStatus.PENDING.value,
        )
        if not is_expired(invitation.expires_at)
    }
    profiles = [profile for profile in profiles if profile.id not in pending]
    if not profiles:
        raise ConflictError("All selected talents already have a pending invitation to this project")

    invitations = []
    for profile in profiles:
        invitation = ProjectInvitation(
            project_id=project.id,
            profile_id=profile.id,
            status=ProjectInvitationStatus.PENDING.value,
            message=message,
            role=role,
            expires_at=expires_at,
        )
        db.add(invitation)
        invitations.append(invitation)
    db.commit()
    for invitation in invitations:
        db.refresh(invitation)

    logger.info(
        "Project invitations sent",
        extra={"event": "project.invitations_sent", "project_id": project.id, "count": len(invitations)},
    )
    return invitations


def list_project_invitations(db: Session, studio: Studio, project_id: str) -> list[ProjectInvitation]:
    project = get_project(db, studio, project_id)
    return (
        db.query(ProjectInvitation)
        .filter(ProjectInvitation.project_id == project.id)
        .order_by(ProjectInvitation.sent_at.desc())
        .all()
    )


def list_talent_project_invitations(
    db: Session, profile: Profile, status: Optional[ProjectInvitationStatus] = None
) -> list[ProjectInvitation]:
    query = db.query(ProjectInvitation).filter(ProjectInvitation.profile_id == profile.id)
    if status:
        query = query.filter(ProjectInvitation.status == ProjectInvitationStatus(status).value)
    return query.order_by(ProjectInvitation.sent_at.desc()).all()


def respond_to_project_invitation(
    db: Session, profile: Profile, invitation_id: str, status: str
) -> ProjectInvitation:
    """Accept or decline a PENDING project invitation.

    Accepting adds the talent to the project cast with the invitation's role.
    """
    invitation = (
        db.query(ProjectInvitation)
        .filter(ProjectInvitation.id == invitation_id, ProjectInvitation.profile_id == profile.id)
        .first()
    )
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.status != ProjectInvitationStatus.PENDING.value:
        raise DomainValidationError(f"Invitation is already {invitation.status}")
    if is_expired(invitation.expires_at):
        invitation.status = ProjectInvitationStatus.EXPIRED.value
        db.commit()
        raise DomainValidationError("This invitation has expired")

    new_status = ProjectInvitationStatus(status)
    if new_status not in (ProjectInvitationStatus.ACCEPTED, ProjectInvitationStatus.DECLINED):
        raise DomainValidationError("Status must be ACCEPTED or DECLINED")

    invitation.status = new_status.value
    invitation.responded_at = utcnow()
    if new_status == ProjectInvitationStatus.ACCEPTED:
        ensure_project_member(
            db, invitation.project_id, profile.id, role=invitation.role or ACCEPTED_INVITATION_ROLE
        )
    db.commit()
    db.refresh(invitation)

    logger.info(
        "Project invitation answered",
        extra={"event": "project.invitation_answered", "invitation_id": invitation.id, "status": invitation.status},
    )
    return invitation


# ============================================================================
# Talent view of projects
# ============================================================================

TALENT_PROJECT_LIMIT = 50
MEMBER, INVITED = "MEMBER", "INVITED"


def list_talent_projects(
    db: Session, profile: Profile, status: Optional[ProjectStatus] = None, limit: int = TALENT_PROJECT_LIMIT
) -> dict[str, list[dict[str, Any]]]:
    """Projects the profile is cast in, and projects it has been invited to.

    Both lists are most recently updated first; ``status`` and ``limit``
    apply to the cast list only.
    """
    memberships = (
        db.query(ProjectMember, Project)
        .join(Project, Project.id == ProjectMember.project_id)
        .filter(ProjectMember.profile_id == profile.id)
    )
    if status:
        memberships = memberships.filter(Project.status == ProjectStatus(status).value)
    memberships = memberships.order_by(Project.updated_at.desc()).limit(limit).all()

    assigned = dict(
        db.query(Scene.project_id, func.count(SceneTalent.id))
        .join(SceneTalent, SceneTalent.scene_id == Scene.id)
        .filter(SceneTalent.profile_id == profile.id)
        .group_by(Scene.project_id)
        .all()
    )
    invitations = (
        db.query(ProjectInvitation)
        .join(Project, Project.id == ProjectInvitation.project_id)
        .filter(ProjectInvitation.profile_id == profile.id)
        .order_by(Project.updated_at.desc(), ProjectInvitation.sent_at.desc())
        .all()
    )

    return {
        "member_projects": [
            {
                "project": project,
                "studio_name": project.studio.name,
                "role": member.role,
                "assigned_scene_count": assigned.get(project.id, 0),
            }
            for member, project in memberships
        ],
        "invited_projects": [
            {"project": invitation.project, "studio_name": invitation.project.studio.name, "invitation": invitation}
            for invitation in invitations
        ],
    }


def get_talent_project(db: Session, profile: Profile, project_id: str) -> dict[str, Any]:
    """A project as seen by a cast member or invitee.

    Raises:
        NotFoundError: Unknown project
        PermissionDeniedError: The profile is neither cast in nor invited to it
    """
    project = get_or_404(db, Project, project_id, "Project not found")
    member = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project.id, ProjectMember.profile_id == profile.id)
        .first()
    )
    invitation = (
        db.query(ProjectInvitation)
        .filter(ProjectInvitation.project_id == project.id, ProjectInvitation.profile_id == profile.id)
        .order_by(ProjectInvitation.sent_at.desc())
        .first()
    )
    if member is None and invitation is None:
        raise PermissionDeniedError("Access denied to this project")

    assignments = {
        assignment.scene_id: assignment
        for assignment in db.query(SceneTalent)
        .join(Scene, Scene.id == SceneTalent.scene_id)
        .filter(Scene.project_id == project.id, SceneTalent.profile_id == profile.id)
    }
    return {
        "project": project,
        "studio_name": project.studio.name,
        "member_status": MEMBER if member else INVITED,
        "role": member.role if member else None,
        "invitation": invitation,
        "scenes": [
            {
                "scene": scene,
                "assigned": scene.id in assignments,
                "assignment_role": assignments[scene.id].role if scene.id in assignments else None,
            }
            for scene in project.scenes
        ],
    }
