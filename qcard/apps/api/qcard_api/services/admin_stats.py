"""Admin dashboard statistics."""

from sqlalchemy.orm import Session

from qcard_api.db.models import CastingCall, Profile, Project, Studio, User

RECENT_LIMIT = 5


def _studio_name(db: Session, studio_id: str) -> str:
    studio = db.get(Studio, studio_id)
    return studio.name if studio else "Unknown Studio"


def recent_activity(db: Session, limit: int = RECENT_LIMIT) -> list[dict]:
    """Newest users, projects and casting calls merged into one feed."""
    items = []

    for user in db.query(User).order_by(User.created_at.desc()).limit(limit).all():
        name = user.full_name or user.email
        items.append(
            {"type": "user", "description": f'New user "{name}" registered', "timestamp": user.created_at}
        )

    for project in db.query(Project).order_by(Project.created_at.desc()).limit(limit).all():
        items.append(
            {
                "type": "project",
                "description": f'New project "{project.title}" created by {_studio_name(db, project.studio_id)}',
                "timestamp": project.created_at,
            }
        )

    for call in db.query(CastingCall).order_by(CastingCall.created_at.desc()).limit(limit).all():
        items.append(
            {
                "type": "casting_call",
                "description": f'New casting call "{call.title}" posted by {_studio_name(db, call.studio_id)}',
                "timestamp": call.created_at,
            }
        )

    items.sort(key=lambda item: item["timestamp"], reverse=True)
    return items[:limit]


def collect_stats(db: Session) -> dict:
    return {
        "users": db.query(User).count(),
        "studios": db.query(Studio).count(),
        "talents": db.query(Profile).count(),
        "projects": db.query(Project).count(),
        "casting_calls": db.query(CastingCall).count(),
        "recent_activity": recent_activity(db),
    }
