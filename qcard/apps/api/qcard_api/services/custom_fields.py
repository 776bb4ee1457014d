"""Admin-defined custom profile fields and their per-owner values."""

import logging
import re
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from qcard_api.db.enums import FieldType, ProfileType
from qcard_api.db.models import FieldOption, Profile, ProfileField, ProfileFieldValue, Studio, StudioFieldValue
from qcard_api.errors import ConflictError, DomainValidationError
from qcard_api.services.common import apply_updates, get_or_404, load_by_ids

logger = logging.getLogger(__name__)

_PHONE_RE = re.compile(r"^\+?[0-9 ()\-.]{7,20}$")
_TRUE_FALSE = {"true", "false"}

Owner = Union[Profile, Studio]


def _option_value(label: str, value: Optional[str]) -> str:
    return (value or "").strip() or re.sub(r"\s+", "_", label.strip().lower())


def _build_options(options: list) -> list[FieldOption]:
    return [
        FieldOption(
            value=_option_value(opt.label, opt.value),
            label=opt.label.strip(),
            color=opt.color,
            is_default=opt.is_default,
            order=index,
        )
        for index, opt in enumerate(options)
    ]


def create_field(db: Session, data) -> ProfileField:
    """Create a custom field (``data`` is a ProfileFieldCreate).

    Raises:
        ConflictError: Field name already taken
        DomainValidationError: DROPDOWN without options
    """
    if db.query(ProfileField).filter(ProfileField.name == data.name).first():
        raise ConflictError(f"A field named '{data.name}' already exists")
    if data.type == FieldType.DROPDOWN and not data.options:
        raise DomainValidationError("Dropdown fields need at least one option")

    next_order = db.query(ProfileField).count()
    values = data.model_dump(exclude={"options"})
    field = ProfileField(order=next_order)
    apply_updates(field, values)
    field.options = _build_options(data.options)
    db.add(field)
    db.commit()
    db.refresh(field)

    logger.info("Profile field created", extra={"event": "profile_field.created", "field_id": field.id})
    return field


def update_field(db: Session, field_id: str, data) -> ProfileField:
    field = get_or_404(db, ProfileField, field_id, "Field not found")
    updates = data.model_dump(exclude_unset=True, exclude={"options"})
    apply_updates(field, updates)
    if data.options is not None:
        field.options = _build_options(data.options)
    if field.type == FieldType.DROPDOWN.value and not field.options:
        raise DomainValidationError("Dropdown fields need at least one option")
    db.commit()
    db.refresh(field)
    return field


def delete_field(db: Session, field_id: str) -> None:
    field = get_or_404(db, ProfileField, field_id, "Field not found")
    if field.is_system:
        raise DomainValidationError("System fields cannot be deleted")
    db.delete(field)
    db.commit()
    logger.info("Profile field deleted", extra={"event": "profile_field.deleted", "field_id": field_id})


def reorder_fields(db: Session, field_ids: list[str]) -> list[ProfileField]:
    """Set each field's ``order`` to its position in ``field_ids``."""
    fields = load_by_ids(db, ProfileField, field_ids, "field")
    for index, field in enumerate(fields):
        field.order = index
    db.commit()
    return fields


def list_fields(
    db: Session, profile_type: Optional[ProfileType] = None, include_hidden: bool = False
) -> list[ProfileField]:
    """Fields applicable to ``profile_type`` (BOTH fields always apply)."""
    query = db.query(ProfileField)
    if profile_type and ProfileType(profile_type) != ProfileType.BOTH:
        query = query.filter(
            ProfileField.profile_type.in_([ProfileType(profile_type).value, ProfileType.BOTH.value])
        )
    if not include_hidden:
        query = query.filter(ProfileField.is_visible.is_(True))
    return query.order_by(ProfileField.order, ProfileField.name).all()


def validate_field_value(field: ProfileField, value: Optional[str]) -> Optional[str]:
    """Check ``value`` against the field type; returns the stored form.

    Raises:
        DomainValidationError: Value does not fit the field type or is missing
    """
    value = value.strip() if isinstance(value, str) else value
    if value in (None, ""):
        if field.is_required:
            raise DomainValidationError(f'Field "{field.label}" is required')
        return None

    kind = FieldType(field.type)
    if kind == FieldType.NUMBER:
        try:
            float(value)
        except ValueError:
            raise DomainValidationError(f'Field "{field.label}" must be a number') from None
    elif kind == FieldType.BOOLEAN:
        if value.lower() not in _TRUE_FALSE:
            raise DomainValidationError(f'Field "{field.label}" must be true or false')
        value = value.lower()
    elif kind == FieldType.DROPDOWN:
        allowed = {opt.value for opt in field.options}
        if value not in allowed:
            raise DomainValidationError(f'Field "{field.label}" must be one of: {", ".join(sorted(allowed))}')
    elif kind == FieldType.EMAIL:
        if "@" not in value:
            raise DomainValidationError(f'Field "{field.label}" must be an email address')
    elif kind == FieldType.URL:
        if not value.startswith(("http://", "https://")):
            raise DomainValidationError(f'Field "{field.label}" must be an http(s) URL')
    elif kind == FieldType.DATE:
        try:
            date.fromisoformat(value)
        except ValueError:
            raise DomainValidationError(f'Field "{field.label}" must be a date (YYYY-MM-DD)') from None
    elif kind == FieldType.PHONE:
        if not _PHONE_RE.match(value):
            raise DomainValidationError(f'Field "{field.label}" must be a phone number')
    return value


def _owner_binding(owner: Owner):
    if isinstance(owner, Profile):
        return ProfileFieldValue, ProfileFieldValue.profile_id, "profile_id", ProfileType.TALENT
    return StudioFieldValue, StudioFieldValue.studio_id, "studio_id", ProfileType.STUDIO


def set_field_values(db: Session, owner: Owner, values: dict[str, Optional[str]]) -> dict[str, Optional[str]]:
    """Upsert custom field values for a talent profile or a studio.

    At most one value row exists per (owner, field); an existing row is
    updated in place.

    Returns:
        field_id -> stored value for every field that was written
    """
    model, owner_column, owner_key, owner_type = _owner_binding(owner)
    fields = load_by_ids(db, ProfileField, list(values), "field")

    written = {}
    for field in fields:
        if field.profile_type not in (owner_type.value, ProfileType.BOTH.value):
            raise DomainValidationError(f'Field "{field.label}" does not apply to {owner_type.value.lower()} profiles')
        stored = validate_field_value(field, values[field.id])

        row = db.query(model).filter(owner_column == owner.id, model.field_id == field.id).first()
        if row is None:
            db.add(model(field_id=field.id, value=stored, **{owner_key: owner.id}))
        else:
            row.value = stored
        written[field.id] = stored

    db.commit()
    logger.info(
        "Custom field values saved",
        extra={"event": "profile_field.values_saved", "owner_type": owner_type.value, "count": len(written)},
    )
    return written


def get_field_values(db: Session, owner: Owner) -> list[dict]:
    """Visible fields applicable to the owner with their current values."""
    model, owner_column, _, owner_type = _owner_binding(owner)
    stored = {row.field_id: row.value for row in db.query(model).filter(owner_column == owner.id).all()}
    return [
        {"field_id": field.id, "name": field.name, "label": field.label, "value": stored.get(field.id)}
        for field in list_fields(db, owner_type)
    ]
