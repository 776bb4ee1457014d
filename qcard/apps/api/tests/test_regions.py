"""Regions, locations and per-region usage counts."""

import pytest
from sqlalchemy.orm import Session

from conftest import auth_headers
from qcard_api.db.models import CastingCall, Location, RegionSubscriptionPlan, profile_regions
from qcard_api.errors import ConflictError, DomainValidationError
from qcard_api.services import regions


@pytest.fixture
def west(db_session: Session):
    return regions.create_region(db_session, "West Coast", "CA, OR, WA")


# ============================================================================
# Regions
# ============================================================================


class TestRegionNames:
    def test_blank_name(self, db_session: Session):
        with pytest.raises(DomainValidationError, match="Region name is required"):
            regions.create_region(db_session, "   ")

    def test_duplicate_is_case_insensitive(self, db_session: Session, west):
        with pytest.raises(ConflictError):
            regions.create_region(db_session, "west coast")

    def test_rename_to_own_name_is_allowed(self, db_session: Session, west):
        renamed = regions.update_region(db_session, west.id, {"name": "WEST COAST"})

        assert renamed.name == "WEST COAST"


def test_region_admin_requires_super_admin(test_client, admin_user, super_admin_user) -> None:
    denied = test_client.post("/v1/regions", json={"name": "Alaska"}, headers=auth_headers(admin_user))
    created = test_client.post("/v1/regions", json={"name": "Alaska"}, headers=auth_headers(super_admin_user))
    blank = test_client.post("/v1/regions", json={"name": ""}, headers=auth_headers(super_admin_user))

    assert denied.status_code == 403
    assert created.status_code == 201
    assert blank.status_code == 400


def test_list_with_stats(test_client, db_session: Session, studio_account, talent_user, west) -> None:
    _, studio = studio_account
    regions.create_region(db_session, "Alaska")
    db_session.add_all(
        [
            Location(name="Santa Monica", region_id=west.id),
            Location(name="Portland", region_id=west.id),
            CastingCall(title="Surfer", description="Beach scene", studio_id=studio.id, region_id=west.id),
        ]
    )
    db_session.execute(profile_regions.insert().values(profile_id=talent_user.profile.id, region_id=west.id))
    db_session.commit()

    plain = test_client.get("/v1/regions", headers=auth_headers(talent_user)).json()
    with_stats = test_client.get(
        "/v1/regions", params={"include_stats": "true"}, headers=auth_headers(talent_user)
    ).json()

    assert [r["name"] for r in plain] == ["Alaska", "West Coast"]
    assert plain[0]["stats"] is None
    assert with_stats[0]["stats"] == {"locations": 0, "casting_calls": 0, "profiles": 0, "studios": 0}
    assert with_stats[1]["stats"] == {"locations": 2, "casting_calls": 1, "profiles": 1, "studios": 0}


def test_delete_detaches_locations_and_removes_plans(db_session: Session, seeded_catalog) -> None:
    plan = db_session.query(RegionSubscriptionPlan).first()
    region_id = plan.region_id
    location = regions.create_location(db_session, "Somewhere", region_id)

    regions.delete_region(db_session, region_id)

    db_session.expire_all()
    assert db_session.get(Location, location.id).region_id is None
    assert db_session.query(RegionSubscriptionPlan).filter(RegionSubscriptionPlan.region_id == region_id).count() == 0


# ============================================================================
# Locations
# ============================================================================


class TestLocations:
    def test_any_user_can_create(self, test_client, talent_user, west):
        response = test_client.post(
            "/v1/locations", json={"name": " Venice Beach ", "region_id": west.id}, headers=auth_headers(talent_user)
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Venice Beach"

    def test_unknown_region(self, test_client, talent_user):
        response = test_client.post(
            "/v1/locations", json={"name": "Nowhere", "region_id": "missing"}, headers=auth_headers(talent_user)
        )

        assert response.status_code == 404

    def test_filter_by_region(self, test_client, db_session: Session, talent_user, west):
        regions.create_location(db_session, "Seattle", west.id)
        regions.create_location(db_session, "Unassigned")

        response = test_client.get("/v1/locations", params={"region_id": west.id}, headers=auth_headers(talent_user))

        assert [loc["name"] for loc in response.json()] == ["Seattle"]

    def test_admin_detaches_location(self, test_client, db_session: Session, admin_user, west):
        location = regions.create_location(db_session, "Seattle", west.id)

        response = test_client.patch(
            f"/v1/locations/{location.id}", json={"region_id": None}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["region_id"] is None

    def test_rename_keeps_region(self, db_session: Session, west):
        location = regions.create_location(db_session, "Seatle", west.id)

        updated = regions.update_location(db_session, location.id, {"name": "Seattle"})

        assert updated.name == "Seattle"
        assert updated.region_id == west.id

    def test_non_admin_cannot_patch(self, test_client, db_session: Session, talent_user, west):
        location = regions.create_location(db_session, "Seattle", west.id)

        response = test_client.patch(
            f"/v1/locations/{location.id}", json={"name": "Tacoma"}, headers=auth_headers(talent_user)
        )

        assert response.status_code == 403
