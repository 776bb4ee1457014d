"""Talent calendar.

Two kinds of event:

- project: the start/end span of every project the talent is cast in
  (skipped when the project has neither date); always all-day
- scene: the shoot of every scene the talent is assigned to that has a
  shoot_date; ends ``duration`` minutes later, all-day when no duration

Events are ordered by start. ``to_ics`` renders them as an RFC 5545
VCALENDAR (via icalendar) for import into calendar apps.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from icalendar import Calendar, Event
from sqlalchemy.orm import Session

from qcard_api.db.models import Location, Profile, Project, ProjectMember, Scene, SceneTalent
from qcard_api.utils.clock import as_utc, utcnow

DEFAULT_ROLE = "Talent"
ICS_PRODID = "-//QCard//Calendar//EN"
ICS_UID_DOMAIN = "qcard.app"


def calendar_events(db: Session, profile: Profile) -> list[dict[str, Any]]:
    memberships = (
        db.query(ProjectMember, Project)
        .join(Project, Project.id == ProjectMember.project_id)
        .filter(ProjectMember.profile_id == profile.id)
        .all()
    )
    member_roles = {project.id: member.role for member, project in memberships}

    events = []
    for member, project in memberships:
        if project.start_date is None and project.end_date is None:
            continue
        events.append(
            {
                "id": f"project-{project.id}",
                "type": "project",
                "title": project.title,
                "start": as_utc(project.start_date or project.end_date),
                "end": as_utc(project.end_date),
                "all_day": True,
                "project_id": project.id,
                "project_title": project.title,
                "studio": project.studio.name,
                "role": member.role or DEFAULT_ROLE,
                "status": project.status,
                "notes": None,
                "location": None,
            }
        )

    assignments = (
        db.query(SceneTalent, Scene)
        .join(Scene, Scene.id == SceneTalent.scene_id)
        .filter(SceneTalent.profile_id == profile.id, Scene.shoot_date.isnot(None))
        .all()
    )
    location_ids = {scene.location_id for _, scene in assignments if scene.location_id}
    locations = {}
    if location_ids:
        locations = {loc.id: loc.name for loc in db.query(Location).filter(Location.id.in_(location_ids))}
    for assignment, scene in assignments:
        start = as_utc(scene.shoot_date)
        project = scene.project
        events.append(
            {
                "id": f"scene-{scene.id}",
                "type": "scene",
                "title": scene.title,
                "start": start,
                "end": start + timedelta(minutes=scene.duration) if scene.duration else start,
                "all_day": not scene.duration,
                "project_id": project.id,
                "project_title": project.title,
                "studio": project.studio.name,
                "role": assignment.role or member_roles.get(project.id) or DEFAULT_ROLE,
                "status": scene.status,
                "notes": assignment.notes,
                "location": locations.get(scene.location_id),
            }
        )

    events.sort(key=lambda event: event["start"])
    return events


# ============================================================================
# iCalendar export
# ============================================================================


def _description(event: dict[str, Any]) -> str:
    lines = [f"Role: {event['role']}"]
    if event.get("studio"):
        lines.append(f"Studio: {event['studio']}")
    if event.get("notes"):
        lines.append(f"Notes: {event['notes']}")
    if event["type"] == "scene":
        lines.append(f"Project: {event['project_title']}")
    return "\n".join(lines)


def to_ics(events: list[dict[str, Any]], now: Optional[datetime] = None) -> str:
    """Render events as a VCALENDAR document."""
    cal = Calendar()
    cal.add("prodid", ICS_PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    stamp = as_utc(now or utcnow())

    for item in events:
        summary = item["title"]
        if item["type"] == "scene":
            summary = f"{summary} ({item['project_title']})"

        event = Event()
        event.add("uid", f"{item['id']}@{ICS_UID_DOMAIN}")
        event.add("dtstamp", stamp)
        if item["all_day"]:
            # DTEND is exclusive for all-day events
            first_day = as_utc(item["start"]).date()
            last_day = as_utc(item["end"] or item["start"]).date()
            event.add("dtstart", first_day)
            event.add("dtend", last_day + timedelta(days=1))
        else:
            event.add("dtstart", as_utc(item["start"]))
            event.add("dtend", as_utc(item["end"]))
        event.add("summary", summary)
        event.add("description", _description(item))
        if item.get("location"):
            event.add("location", item["location"])
        cal.add_component(event)

    return cal.to_ical().decode("utf-8")
