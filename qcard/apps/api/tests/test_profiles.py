"""Studio profile, talent profile and studio-side talent search."""

import pytest
from sqlalchemy.orm import Session

from conftest import auth_headers, make_talent_account
from qcard_api.db.models import Skill, Studio, User
from qcard_api.services import regions


@pytest.fixture
def studio_headers(studio_account) -> dict:
    user, _ = studio_account
    return auth_headers(user)


@pytest.fixture
def talent_headers(talent_user) -> dict:
    return auth_headers(talent_user)


# ============================================================================
# Studio
# ============================================================================


class TestStudioInit:
    def test_existing_studio_is_returned(self, test_client, studio_account, studio_headers):
        _, studio = studio_account

        response = test_client.post("/v1/studio/init", headers=studio_headers)

        assert response.status_code == 200
        assert response.json()["id"] == studio.id
        assert response.json()["name"] == "Sam Studio's Studio"

    def test_user_without_tenant_gets_one(self, test_client, db_session: Session):
        user = User(email="walkin@example.com", first_name="Wal", last_name="Kin")
        db_session.add(user)
        db_session.commit()

        first = test_client.post("/v1/studio/init", headers=auth_headers(user))
        second = test_client.post("/v1/studio/init", headers=auth_headers(user))

        assert first.json()["name"] == "Wal Kin's Studio"
        assert second.json()["id"] == first.json()["id"]
        assert db_session.query(Studio).count() == 1
        db_session.refresh(user)
        assert user.tenant.type == "STUDIO"

    def test_talent_cannot_init(self, test_client, talent_headers):
        assert test_client.post("/v1/studio/init", headers=talent_headers).status_code == 403


def test_update_studio(test_client, studio_headers) -> None:
    response = test_client.patch(
        "/v1/studio", json={"description": "Coastal dramas"}, headers=studio_headers
    )

    assert response.status_code == 200
    assert response.json()["description"] == "Coastal dramas"
    assert response.json()["name"] == "Sam Studio's Studio"


def test_studio_regions_and_locations(test_client, db_session: Session, studio_headers) -> None:
    west = regions.create_region(db_session, "West Coast")
    seattle = regions.create_location(db_session, "Seattle", west.id)

    set_regions = test_client.put("/v1/studio/regions", json={"ids": [west.id, west.id]}, headers=studio_headers)
    set_locations = test_client.put("/v1/studio/locations", json={"ids": [seattle.id]}, headers=studio_headers)
    unknown = test_client.put("/v1/studio/locations", json={"ids": ["nowhere"]}, headers=studio_headers)

    assert [r["name"] for r in set_regions.json()] == ["West Coast"]
    assert [loc["name"] for loc in set_locations.json()] == ["Seattle"]
    assert unknown.status_code == 400
    assert [loc["id"] for loc in test_client.get("/v1/studio/locations", headers=studio_headers).json()] == [
        seattle.id
    ]


# ============================================================================
# Talent profile
# ============================================================================


class TestTalentProfile:
    def test_update_attributes(self, test_client, talent_headers):
        response = test_client.patch(
            "/v1/talent/profile",
            json={"bio": "Stage and screen", "height": "5'9\"", "date_of_birth": "1990-04-01"},
            headers=talent_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["bio"] == "Stage and screen"
        assert body["date_of_birth"] == "1990-04-01"
        assert body["availability"] is True

    def test_skills_are_shared_rows(self, test_client, db_session: Session, talent_headers):
        other = make_talent_account(db_session, email="other@example.com")

        test_client.put("/v1/talent/profile/skills", json={"skills": ["Juggling"]}, headers=auth_headers(other))
        response = test_client.put(
            "/v1/talent/profile/skills", json={"skills": ["juggling", "Fencing", " "]}, headers=talent_headers
        )

        assert sorted(s["name"] for s in response.json()["skills"]) == ["Fencing", "Juggling"]
        assert db_session.query(Skill).count() == 2

    def test_regions_reject_unknown_ids(self, test_client, db_session: Session, talent_headers):
        west = regions.create_region(db_session, "West Coast")

        ok = test_client.put("/v1/talent/profile/regions", json={"ids": [west.id]}, headers=talent_headers)
        bad = test_client.put("/v1/talent/profile/regions", json={"ids": [west.id, "mars"]}, headers=talent_headers)

        assert [r["name"] for r in ok.json()["regions"]] == ["West Coast"]
        assert bad.status_code == 400
        assert bad.json()["detail"] == "Unknown region id(s): mars"

    def test_studio_has_no_talent_profile(self, test_client, studio_headers):
        assert test_client.get("/v1/talent/profile", headers=studio_headers).status_code == 403


# ============================================================================
# Talent search
# ============================================================================


class TestTalentSearch:
    @pytest.fixture
    def roster(self, test_client, db_session: Session) -> dict:
        west = regions.create_region(db_session, "West Coast")
        people = {
            "marina": make_talent_account(
                db_session, email="marina@example.com", first_name="Marina", last_name="Diaz"
            ),
            "otto": make_talent_account(db_session, email="otto@example.com", first_name="Otto", last_name="Berg"),
        }
        marina = auth_headers(people["marina"])
        test_client.patch("/v1/talent/profile", json={"gender": "Female"}, headers=marina)
        test_client.put("/v1/talent/profile/skills", json={"skills": ["Sailing"]}, headers=marina)
        test_client.put("/v1/talent/profile/regions", json={"ids": [west.id]}, headers=marina)
        test_client.patch(
            "/v1/talent/profile", json={"availability": False}, headers=auth_headers(people["otto"])
        )
        return {"west": west, **people}

    @pytest.mark.parametrize(
        "params",
        [{"q": "mari"}, {"gender": "female"}, {"skill": "sailing"}, {"available_only": "true"}],
    )
    def test_filters(self, test_client, studio_headers, roster, params):
        response = test_client.get("/v1/studio/talent-search", params=params, headers=studio_headers)

        assert [p["user"]["first_name"] for p in response.json()] == ["Marina"]

    def test_region_filter(self, test_client, studio_headers, roster):
        response = test_client.get(
            "/v1/studio/talent-search", params={"region_id": roster["west"].id}, headers=studio_headers
        )

        assert [p["id"] for p in response.json()] == [roster["marina"].profile.id]

    def test_ordered_by_last_name(self, test_client, studio_headers, roster):
        response = test_client.get("/v1/studio/talent-search", headers=studio_headers)

        assert [p["user"]["last_name"] for p in response.json()] == ["Berg", "Diaz"]

    def test_talent_cannot_search(self, test_client, talent_headers):
        assert test_client.get("/v1/studio/talent-search", headers=talent_headers).status_code == 403

    def test_view_single_profile(self, test_client, studio_headers, roster):
        found = test_client.get(f"/v1/studio/talent/{roster['otto'].profile.id}", headers=studio_headers)
        missing = test_client.get("/v1/studio/talent/missing", headers=studio_headers)

        assert found.json()["user"]["first_name"] == "Otto"
        assert missing.status_code == 404
