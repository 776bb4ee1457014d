"""External actors: CSV parsing, bulk import, duplicates and conversion to talent."""

import logging

import pytest
from sqlalchemy.orm import Session

from conftest import auth_headers, make_studio_account
from qcard_api.db.enums import ExternalActorStatus
from qcard_api.db.models import ExternalActor, ExternalActorProject, Project, ProjectMember
from qcard_api.errors import ConflictError, DomainValidationError
from qcard_api.services import external_actors
from qcard_api.services.csv_import import canonical_header, parse_external_actor_csv


# ============================================================================
# CSV parsing
# ============================================================================


class TestCSVParsing:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("First Name", "first_name"),
            ("firstName", "first_name"),
            (" first_name ", "first_name"),
            ("Surname", "last_name"),
            ("E-mail Address", "email"),
            ("Phone Number", "phone_number"),
            ("mobile", "phone_number"),
            ("Agency", None),
        ],
    )
    def test_header_aliases(self, header, expected):
        assert canonical_header(header) == expected

    def test_left_most_duplicate_column_wins(self):
        rows = parse_external_actor_csv("First Name,Last Name,Email,first_name\nAnn,Actor,ann@example.com,Zed\n")

        assert rows[0].first_name == "Ann"

    def test_blank_lines_skipped_and_ragged_rows_tolerated(self):
        csv_text = "First Name,Last Name,Email,Phone\n\nAnn,Actor\n  \nBob,Builder,bob@example.com,555,extra\n"

        rows = parse_external_actor_csv(csv_text)

        assert [r.row for r in rows] == [1, 2]
        assert rows[0].email is None and rows[0].phone_number is None
        assert rows[0].missing_fields() == ["Email or Phone Number"]
        assert rows[1].phone_number == "555"

    def test_byte_order_mark_is_ignored(self):
        rows = parse_external_actor_csv("\ufeffFirst Name,Last Name,Phone\nAnn,Actor,555\n")
        assert rows[0].first_name == "Ann"

    def test_empty_file_rejected(self):
        with pytest.raises(DomainValidationError, match="file is empty"):
            parse_external_actor_csv("   \n")

    def test_unrecognised_headers_rejected(self):
        with pytest.raises(DomainValidationError, match="no recognised column headers"):
            parse_external_actor_csv("Agency,Height\nCAA,180\n")


# ============================================================================
# Import
# ============================================================================


def test_import_reports_successes_errors_and_duplicates(db_session: Session, studio_account) -> None:
    _, studio = studio_account
    csv_text = (
        "First Name,Last Name,Email,Phone\n"
        "Ann,Actor,ann@example.com,\n"
        "Bob,,bob@example.com,\n"
        "Cat,Cast,not-an-email,\n"
        "Ann,Actor,ANN@example.com,\n"
        "Dan,Dancer,,555-0100\n"
    )

    result = external_actors.import_external_actors_csv(db_session, studio, csv_text)

    assert result["success"] == 2
    assert result["duplicates"] == 1
    assert [e["row"] for e in result["errors"]] == [2, 3]
    assert result["errors"][0]["error"] == "Missing required fields: Last Name"
    assert result["errors"][1]["email"] == "not-an-email"
    assert db_session.query(ExternalActor).filter(ExternalActor.studio_id == studio.id).count() == 2


def test_import_links_actors_to_project(db_session: Session, studio_account) -> None:
    _, studio = studio_account
    project = Project(title="Pilot", studio_id=studio.id)
    db_session.add(project)
    db_session.commit()

    external_actors.import_external_actors_csv(
        db_session, studio, "First Name,Last Name,Email\nAnn,Actor,ann@example.com\n", project_id=project.id
    )

    assert db_session.query(ExternalActorProject).filter(ExternalActorProject.project_id == project.id).count() == 1


def test_import_endpoint(test_client, studio_account) -> None:
    user, _ = studio_account
    response = test_client.post(
        "/v1/studio/external-actors/import",
        json={"csv_data": "First Name,Last Name,Phone\nAnn,Actor,555-0100\n"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json() == {"success": 1, "errors": [], "duplicates": 0}


def test_import_endpoint_with_info_logging(test_client, db_session: Session, studio_account, caplog) -> None:
    """The import summary log line must not break the response once rows are committed."""
    user, _ = studio_account
    caplog.set_level(logging.INFO)

    response = test_client.post(
        "/v1/studio/external-actors/import",
        json={"csv_data": "First Name,Last Name,Phone\nAnn,Actor,555-0100\n"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert db_session.query(ExternalActor).count() == 1
    imported = [r for r in caplog.records if getattr(r, "event", None) == "external_actor.imported"]
    assert len(imported) == 1
    assert imported[0].created_count == 1


def test_import_endpoint_rejects_unparseable_csv(test_client, studio_account) -> None:
    user, _ = studio_account
    response = test_client.post(
        "/v1/studio/external-actors/import",
        json={"csv_data": "Height,Weight\n180,80\n"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400


# ============================================================================
# Single actors
# ============================================================================


def test_add_requires_email_or_phone(db_session: Session, studio_account) -> None:
    _, studio = studio_account
    with pytest.raises(DomainValidationError, match="Missing required fields"):
        external_actors.add_external_actor(db_session, studio, first_name="Ann", last_name="Actor")


def test_same_email_is_a_duplicate_within_a_studio_only(db_session: Session, studio_account) -> None:
    _, studio = studio_account
    _, other_studio = make_studio_account(db_session, email="other@example.com")

    external_actors.add_external_actor(db_session, studio, first_name="Ann", last_name="Actor", email="ann@example.com")
    with pytest.raises(ConflictError):
        external_actors.add_external_actor(
            db_session, studio, first_name="Annie", last_name="Actor", email="Ann@Example.com"
        )

    # Another studio may track the same person
    actor = external_actors.add_external_actor(
        db_session, other_studio, first_name="Ann", last_name="Actor", email="ann@example.com"
    )
    assert actor.studio_id == other_studio.id


def test_search_matches_name_email_and_phone(test_client, db_session: Session, studio_account) -> None:
    user, studio = studio_account
    external_actors.add_external_actor(db_session, studio, first_name="Ann", last_name="Actor", email="ann@example.com")
    external_actors.add_external_actor(db_session, studio, first_name="Bob", last_name="Builder", phone_number="5550100")

    by_name = test_client.get("/v1/studio/external-actors/search", params={"q": "ann"}, headers=auth_headers(user))
    by_phone = test_client.get("/v1/studio/external-actors/search", params={"q": "0100"}, headers=auth_headers(user))

    assert [a["first_name"] for a in by_name.json()] == ["Ann"]
    assert [a["first_name"] for a in by_phone.json()] == ["Bob"]


def test_existing_talent_is_converted_immediately(db_session: Session, studio_account, talent_user) -> None:
    _, studio = studio_account

    actor = external_actors.add_external_actor(
        db_session, studio, first_name="Tara", last_name="Talent", email=talent_user.email
    )

    assert actor.status == ExternalActorStatus.CONVERTED.value
    assert actor.converted_profile_id == talent_user.profile.id
    assert actor.converted_to_user_id == talent_user.id


# ============================================================================
# Conversion on sign-up
# ============================================================================


def test_talent_signup_converts_matching_actors(test_client, db_session: Session, studio_account) -> None:
    """A new talent account claims actors matching its email or phone and joins their projects."""
    _, studio = studio_account
    project = Project(title="Pilot", studio_id=studio.id)
    db_session.add(project)
    db_session.commit()

    by_email = external_actors.add_external_actor(
        db_session, studio, first_name="Nia", last_name="New", email="nia@example.com", project_id=project.id
    )
    by_phone = external_actors.add_external_actor(
        db_session, studio, first_name="N.", last_name="New", phone_number="+1 555 0199"
    )

    response = test_client.post(
        "/v1/accounts",
        json={
            "email": "NIA@example.com",
            "first_name": "Nia",
            "last_name": "New",
            "account_type": "TALENT",
            "phone_number": "+1 555 0199",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["external_actors_converted"] == 2
    assert body["tenant_type"] == "TALENT"

    db_session.expire_all()
    for actor in (by_email, by_phone):
        refreshed = db_session.get(ExternalActor, actor.id)
        assert refreshed.status == ExternalActorStatus.CONVERTED.value
        assert refreshed.converted_profile_id == body["profile_id"]

    member = db_session.query(ProjectMember).filter(ProjectMember.project_id == project.id).one()
    assert member.profile_id == body["profile_id"]
    assert member.role == "Talent"


def test_studio_signup_converts_nothing(test_client, db_session: Session, studio_account) -> None:
    _, studio = studio_account
    external_actors.add_external_actor(db_session, studio, first_name="Sam", last_name="Other", email="sam@example.com")

    response = test_client.post(
        "/v1/accounts",
        json={"email": "sam@example.com", "first_name": "Sam", "last_name": "Other", "account_type": "STUDIO"},
    )

    assert response.status_code == 201
    assert response.json()["external_actors_converted"] == 0
    assert response.json()["studio_id"] is not None
