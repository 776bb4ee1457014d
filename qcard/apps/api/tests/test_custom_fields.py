"""Admin-defined profile fields and the values talent and studios store in them."""

import re

import pytest
from sqlalchemy.orm import Session

from conftest import auth_headers
from qcard_api.db.models import ProfileField, ProfileFieldValue
from qcard_api.errors import DomainValidationError
from qcard_api.schemas import ProfileFieldCreate
from qcard_api.services import custom_fields


def _field(db: Session, **kwargs) -> ProfileField:
    kwargs.setdefault("label", kwargs["name"].replace("_", " ").title())
    return custom_fields.create_field(db, ProfileFieldCreate(**kwargs))


# ============================================================================
# Value validation
# ============================================================================


class TestValidateFieldValue:
    @pytest.mark.parametrize(
        "field_type,value,expected",
        [
            ("NUMBER", "182.5", "182.5"),
            ("BOOLEAN", " TRUE ", "true"),
            ("DATE", "1990-04-01", "1990-04-01"),
            ("EMAIL", "agent@example.com", "agent@example.com"),
            ("URL", "https://reel.example/tara", "https://reel.example/tara"),
            ("PHONE", "+44 (0)20 7946 0000", "+44 (0)20 7946 0000"),
            ("TEXT", "  anything  ", "anything"),
        ],
    )
    def test_accepted(self, field_type, value, expected):
        field = ProfileField(name="f", label="Field", type=field_type, is_required=False)

        assert custom_fields.validate_field_value(field, value) == expected

    @pytest.mark.parametrize(
        "field_type,value,message",
        [
            ("NUMBER", "tall", 'Field "Field" must be a number'),
            ("BOOLEAN", "yes", 'Field "Field" must be true or false'),
            ("DATE", "01/04/1990", "must be a date"),
            ("EMAIL", "agent", "must be an email address"),
            ("URL", "reel.example", re.escape("must be an http(s) URL")),
            ("PHONE", "call me", "must be a phone number"),
        ],
    )
    def test_rejected(self, field_type, value, message):
        field = ProfileField(name="f", label="Field", type=field_type, is_required=False)

        with pytest.raises(DomainValidationError, match=message):
            custom_fields.validate_field_value(field, value)

    def test_required_blank(self):
        field = ProfileField(name="f", label="Height", type="NUMBER", is_required=True)

        with pytest.raises(DomainValidationError, match='Field "Height" is required'):
            custom_fields.validate_field_value(field, "  ")

    def test_optional_blank_is_cleared(self):
        field = ProfileField(name="f", label="Height", type="NUMBER", is_required=False)

        assert custom_fields.validate_field_value(field, "") is None

    def test_dropdown_checks_option_values(self, db_session: Session):
        field = _field(
            db_session,
            name="eye_colour",
            type="DROPDOWN",
            options=[{"label": "Dark Brown"}, {"label": "Blue", "value": "blu"}],
        )

        assert custom_fields.validate_field_value(field, "dark_brown") == "dark_brown"
        with pytest.raises(DomainValidationError, match="must be one of: blu, dark_brown"):
            custom_fields.validate_field_value(field, "Dark Brown")


# ============================================================================
# Field definitions
# ============================================================================


def test_dropdown_requires_options(db_session: Session) -> None:
    with pytest.raises(DomainValidationError, match="at least one option"):
        _field(db_session, name="eye_colour", type="DROPDOWN")


def test_field_names_are_unique(test_client, admin_user) -> None:
    body = {"name": "height_cm", "label": "Height (cm)", "type": "NUMBER"}

    first = test_client.post("/v1/admin/fields", json=body, headers=auth_headers(admin_user))
    second = test_client.post("/v1/admin/fields", json=body, headers=auth_headers(admin_user))

    assert first.status_code == 201
    assert first.json()["order"] == 0
    assert second.status_code == 409


def test_field_admin_requires_admin(test_client, talent_user) -> None:
    response = test_client.post(
        "/v1/admin/fields", json={"name": "height_cm", "label": "Height"}, headers=auth_headers(talent_user)
    )

    assert response.status_code == 403


def test_system_fields_cannot_be_deleted(test_client, db_session: Session, admin_user) -> None:
    field = _field(db_session, name="stage_name")
    field.is_system = True
    db_session.commit()

    response = test_client.delete(f"/v1/admin/fields/{field.id}", headers=auth_headers(admin_user))

    assert response.status_code == 400


def test_public_schema_filters_by_profile_type_and_visibility(test_client, db_session: Session) -> None:
    _field(db_session, name="agency", profile_type="STUDIO")
    _field(db_session, name="height_cm", profile_type="TALENT", type="NUMBER")
    _field(db_session, name="website", profile_type="BOTH", type="URL")
    _field(db_session, name="internal_rating", profile_type="TALENT", is_visible=False)

    response = test_client.get("/v1/fields/schema", params={"profile_type": "TALENT"})

    assert [f["name"] for f in response.json()] == ["height_cm", "website"]


def test_reorder_fields(test_client, db_session: Session, admin_user) -> None:
    a = _field(db_session, name="a_field")
    b = _field(db_session, name="b_field")

    response = test_client.put("/v1/admin/fields/order", json={"ids": [b.id, a.id]}, headers=auth_headers(admin_user))

    assert [f["name"] for f in response.json()] == ["b_field", "a_field"]


# ============================================================================
# Stored values
# ============================================================================


class TestFieldValues:
    def test_talent_values_upsert(self, test_client, db_session: Session, talent_user):
        height = _field(db_session, name="height_cm", profile_type="TALENT", type="NUMBER")
        headers = auth_headers(talent_user)

        test_client.put("/v1/talent/profile/fields", json={"values": {height.id: "180"}}, headers=headers)
        response = test_client.put("/v1/talent/profile/fields", json={"values": {height.id: "182"}}, headers=headers)

        assert response.status_code == 200
        assert response.json() == [{"field_id": height.id, "name": "height_cm", "label": "Height Cm", "value": "182"}]
        assert db_session.query(ProfileFieldValue).count() == 1

    def test_invalid_value_rejected(self, test_client, db_session: Session, talent_user):
        height = _field(db_session, name="height_cm", profile_type="TALENT", type="NUMBER")

        response = test_client.put(
            "/v1/talent/profile/fields", json={"values": {height.id: "tall"}}, headers=auth_headers(talent_user)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == 'Field "Height Cm" must be a number'

    def test_field_must_apply_to_owner(self, test_client, db_session: Session, studio_account):
        user, _ = studio_account
        height = _field(db_session, name="height_cm", profile_type="TALENT", type="NUMBER")

        response = test_client.put(
            "/v1/studio/fields", json={"values": {height.id: "180"}}, headers=auth_headers(user)
        )

        assert response.status_code == 400

    def test_studio_values(self, test_client, db_session: Session, studio_account):
        user, _ = studio_account
        agency = _field(db_session, name="agency", profile_type="STUDIO")
        website = _field(db_session, name="website", profile_type="BOTH", type="URL")

        response = test_client.put(
            "/v1/studio/fields",
            json={"values": {agency.id: "North Star", website.id: "https://north.example"}},
            headers=auth_headers(user),
        )

        values = {item["name"]: item["value"] for item in response.json()}
        assert values == {"agency": "North Star", "website": "https://north.example"}

    def test_unknown_field_id(self, test_client, talent_user):
        response = test_client.put(
            "/v1/talent/profile/fields", json={"values": {"ghost": "1"}}, headers=auth_headers(talent_user)
        )

        assert response.status_code == 400
        assert "Unknown field id(s): ghost" in response.json()["detail"]
