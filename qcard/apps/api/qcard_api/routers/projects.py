"""Project endpoints: projects, members, scenes, requirements, invitations.

Studio-scoped under /v1/projects; the talent side of project invitations
lives under /v1/talent/project-invitations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_studio, require_talent
from qcard_api.db.enums import ProjectInvitationStatus, ProjectStatus
from qcard_api.db.models import Profile, Studio
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    ProjectCreate,
    ProjectInvitationBatchResponse,
    ProjectInvitationCreate,
    ProjectInvitationReply,
    ProjectInvitationResponse,
    ProjectMemberCreate,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectUpdate,
    SceneCreate,
    SceneExternalActorCreate,
    SceneExternalActorResponse,
    SceneResponse,
    SceneTalentCreate,
    SceneTalentResponse,
    SceneUpdate,
    TalentRequirementCreate,
    TalentRequirementResponse,
    TalentRequirementUpdate,
)
from qcard_api.services import projects

router = APIRouter(prefix="/v1/projects", tags=["projects"])
talent_router = APIRouter(prefix="/v1/talent/project-invitations", tags=["talent"])


# ============================================================================
# Projects
# ============================================================================


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.list_projects(db, studio, status_filter)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProjectResponse)
async def create_project(
    request: ProjectCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.create_project(db, studio, request)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return projects.get_project(db, studio, project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: ProjectUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.update_project(db, studio, project_id, request.model_dump(exclude_unset=True))


@router.post("/{project_id}/archive", response_model=ProjectResponse)
async def archive_project(
    project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return projects.archive_project(db, studio, project_id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    projects.delete_project(db, studio, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Members
# ============================================================================


@router.get("/{project_id}/members", response_model=list[ProjectMemberResponse])
async def list_members(project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return projects.list_members(db, studio, project_id)


@router.post("/{project_id}/members", status_code=status.HTTP_201_CREATED, response_model=ProjectMemberResponse)
async def add_member(
    project_id: str,
    request: ProjectMemberCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.add_member(db, studio, project_id, request.profile_id, request.role, request.notes)


@router.delete("/{project_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: str,
    member_id: str,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> Response:
    projects.remove_member(db, studio, project_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Scenes
# ============================================================================


@router.get("/{project_id}/scenes", response_model=list[SceneResponse])
async def list_scenes(project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)):
    return projects.list_scenes(db, studio, project_id)


@router.post("/{project_id}/scenes", status_code=status.HTTP_201_CREATED, response_model=SceneResponse)
async def create_scene(
    project_id: str,
    request: SceneCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.create_scene(db, studio, project_id, request)


@router.get("/{project_id}/scenes/{scene_id}", response_model=SceneResponse)
async def get_scene(
    project_id: str, scene_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return projects.get_scene(db, studio, project_id, scene_id)


@router.patch("/{project_id}/scenes/{scene_id}", response_model=SceneResponse)
async def update_scene(
    project_id: str,
    scene_id: str,
    request: SceneUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.update_scene(db, studio, project_id, scene_id, request.model_dump(exclude_unset=True))


@router.delete("/{project_id}/scenes/{scene_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_scene(
    project_id: str, scene_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
) -> Response:
    projects.delete_scene(db, studio, project_id, scene_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/scenes/{scene_id}/talent", response_model=list[SceneTalentResponse])
async def list_scene_talent(
    project_id: str, scene_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    scene = projects.get_scene(db, studio, project_id, scene_id)
    return projects.list_scene_talent(db, scene)


@router.post(
    "/{project_id}/scenes/{scene_id}/talent",
    status_code=status.HTTP_201_CREATED,
    response_model=SceneTalentResponse,
)
async def assign_scene_talent(
    project_id: str,
    scene_id: str,
    request: SceneTalentCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    """Assign talent to a scene; also adds them to the project cast.

    Raises:
        400: Talent already assigned to this scene
        404: Scene or profile not found
    """
    scene = projects.get_scene(db, studio, project_id, scene_id)
    return projects.assign_scene_talent(db, scene, request.profile_id, request.role, request.notes, request.status)


@router.delete("/{project_id}/scenes/{scene_id}/talent/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_scene_talent(
    project_id: str,
    scene_id: str,
    assignment_id: str,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> Response:
    scene = projects.get_scene(db, studio, project_id, scene_id)
    projects.remove_scene_talent(db, scene, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/scenes/{scene_id}/external-actors", response_model=list[SceneExternalActorResponse])
async def list_scene_external_actors(
    project_id: str, scene_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    scene = projects.get_scene(db, studio, project_id, scene_id)
    return projects.list_scene_external_actors(db, scene)


@router.post(
    "/{project_id}/scenes/{scene_id}/external-actors",
    status_code=status.HTTP_201_CREATED,
    response_model=SceneExternalActorResponse,
)
async def assign_scene_external_actor(
    project_id: str,
    scene_id: str,
    request: SceneExternalActorCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    """Assign one of the studio's external actors to a scene.

    Raises:
        404: Actor not found in this studio
        409: Actor already assigned to this scene
    """
    scene = projects.get_scene(db, studio, project_id, scene_id)
    return projects.assign_scene_external_actor(
        db, studio, scene, request.external_actor_id, request.role, request.notes
    )


@router.delete(
    "/{project_id}/scenes/{scene_id}/external-actors/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_scene_external_actor(
    project_id: str,
    scene_id: str,
    assignment_id: str,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> Response:
    scene = projects.get_scene(db, studio, project_id, scene_id)
    projects.remove_scene_external_actor(db, scene, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Talent requirements
# ============================================================================


@router.get("/{project_id}/requirements", response_model=list[TalentRequirementResponse])
async def list_requirements(
    project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return projects.list_requirements(db, studio, project_id)


@router.post(
    "/{project_id}/requirements", status_code=status.HTTP_201_CREATED, response_model=TalentRequirementResponse
)
async def create_requirement(
    project_id: str,
    request: TalentRequirementCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.create_requirement(db, studio, project_id, request)


@router.patch("/{project_id}/requirements/{requirement_id}", response_model=TalentRequirementResponse)
async def update_requirement(
    project_id: str,
    requirement_id: str,
    request: TalentRequirementUpdate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
):
    return projects.update_requirement(
        db, studio, project_id, requirement_id, request.model_dump(exclude_unset=True)
    )


@router.delete("/{project_id}/requirements/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_requirement(
    project_id: str,
    requirement_id: str,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> Response:
    projects.delete_requirement(db, studio, project_id, requirement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Project invitations
# ============================================================================


@router.get("/{project_id}/invitations", response_model=list[ProjectInvitationResponse])
async def list_project_invitations(
    project_id: str, studio: Studio = Depends(require_studio), db: Session = Depends(get_db)
):
    return projects.list_project_invitations(db, studio, project_id)


@router.post(
    "/{project_id}/invitations",
    status_code=status.HTTP_201_CREATED,
    response_model=ProjectInvitationBatchResponse,
)
async def invite_talent(
    project_id: str,
    request: ProjectInvitationCreate,
    studio: Studio = Depends(require_studio),
    db: Session = Depends(get_db),
) -> ProjectInvitationBatchResponse:
    invitations = projects.invite_talent_to_project(
        db, studio, project_id, request.profile_ids, request.message, request.role, request.expires_at
    )
    return ProjectInvitationBatchResponse(
        message=f"Sent {len(invitations)} invitation(s)",
        count=len(invitations),
        invitations=[ProjectInvitationResponse.model_validate(inv) for inv in invitations],
    )


@talent_router.get("", response_model=list[ProjectInvitationResponse])
async def list_my_project_invitations(
    status_filter: Optional[ProjectInvitationStatus] = Query(None, alias="status"),
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    return projects.list_talent_project_invitations(db, profile, status_filter)


@talent_router.post("/{invitation_id}/respond", response_model=ProjectInvitationResponse)
async def respond_to_project_invitation(
    invitation_id: str,
    request: ProjectInvitationReply,
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    """Accept or decline; only PENDING invitations can be answered."""
    return projects.respond_to_project_invitation(db, profile, invitation_id, request.status)
