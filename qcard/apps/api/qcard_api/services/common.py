"""Small helpers shared by the service modules."""

from typing import Optional, Type, TypeVar

from sqlalchemy.orm import Session

from qcard_api.errors import DomainValidationError, NotFoundError

T = TypeVar("T")


def get_or_404(db: Session, model: Type[T], entity_id: Optional[str], detail: str) -> T:
    """Load ``model`` by primary key or raise NotFoundError(detail)."""
    entity = db.get(model, entity_id) if entity_id else None
    if entity is None:
        raise NotFoundError(detail)
    return entity


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Lower-case and trim an email; empty strings become None."""
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def clean(value: Optional[str]) -> Optional[str]:
    """Trim a string; empty strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def apply_updates(entity: object, updates: dict) -> None:
    """Copy already-validated fields onto an ORM entity, unwrapping enums."""
    for key, value in updates.items():
        setattr(entity, key, getattr(value, "value", value))


def load_by_ids(db: Session, model: Type[T], ids: list[str], label: str) -> list[T]:
    """Load every id (deduplicated, order kept) or raise DomainValidationError."""
    unique_ids = list(dict.fromkeys(ids))
    rows = db.query(model).filter(model.id.in_(unique_ids)).all() if unique_ids else []
    if len(rows) != len(unique_ids):
        found = {row.id for row in rows}
        unknown = [i for i in unique_ids if i not in found]
        raise DomainValidationError(f"Unknown {label} id(s): {', '.join(unknown)}")
    by_id = {row.id: row for row in rows}
    return [by_id[i] for i in unique_ids]
