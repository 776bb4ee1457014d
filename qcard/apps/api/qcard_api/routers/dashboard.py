"""Talent dashboard: my projects, calendar and suggested roles."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from qcard_api.auth.identity import require_talent
from qcard_api.db.enums import ProjectStatus
from qcard_api.db.models import Profile
from qcard_api.db.session import get_db
from qcard_api.schemas import (
    CalendarEventResponse,
    SuggestedRolesResponse,
    TalentProjectDetailResponse,
    TalentProjectsResponse,
)
from qcard_api.services import calendar, projects, suggestions

router = APIRouter(prefix="/v1/talent", tags=["talent"])

ICS_FILENAME = "qcard-calendar.ics"


@router.get("/projects", response_model=TalentProjectsResponse)
async def list_my_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    limit: int = Query(projects.TALENT_PROJECT_LIMIT, ge=1, le=200),
    profile: Profile = Depends(require_talent),
    db: Session = Depends(get_db),
):
    return projects.list_talent_projects(db, profile, status_filter, limit)


@router.get("/projects/{project_id}", response_model=TalentProjectDetailResponse)
async def get_my_project(project_id: str, profile: Profile = Depends(require_talent), db: Session = Depends(get_db)):
    return projects.get_talent_project(db, profile, project_id)


@router.get("/calendar", response_model=list[CalendarEventResponse])
async def get_calendar(profile: Profile = Depends(require_talent), db: Session = Depends(get_db)):
    return calendar.calendar_events(db, profile)


@router.get("/calendar/export")
async def export_calendar(profile: Profile = Depends(require_talent), db: Session = Depends(get_db)) -> Response:
    """The calendar as an iCalendar attachment."""
    return Response(
        content=calendar.to_ics(calendar.calendar_events(db, profile)),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{ICS_FILENAME}"'},
    )


@router.get("/suggested-roles", response_model=SuggestedRolesResponse)
async def get_suggested_roles(profile: Profile = Depends(require_talent), db: Session = Depends(get_db)):
    return suggestions.suggested_roles(db, profile)
