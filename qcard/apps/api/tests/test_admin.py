"""Operator setup, dashboard stats and user administration."""

from sqlalchemy.orm import Session

from conftest import auth_headers
from qcard_api.db.models import SubscriptionPlan, User
from qcard_api.services import admin_stats


# ============================================================================
# Operator token
# ============================================================================


class TestSetupDefaults:
    def test_seeds_catalog(self, test_client, db_session: Session, monkeypatch):
        monkeypatch.setenv("ADMIN_TOKEN", "operator-secret")

        first = test_client.post("/v1/admin/setup-defaults", headers={"X-Admin-Token": "operator-secret"})
        second = test_client.post("/v1/admin/setup-defaults", headers={"X-Admin-Token": "operator-secret"})

        assert first.status_code == 200
        assert first.json()["plans_created"] == 3
        assert first.json()["discounts_created"] == 5
        assert set(second.json().values()) == {0}
        assert db_session.query(SubscriptionPlan).count() == 3

    def test_wrong_token(self, test_client, monkeypatch):
        monkeypatch.setenv("ADMIN_TOKEN", "operator-secret")

        response = test_client.post("/v1/admin/setup-defaults", headers={"X-Admin-Token": "guess"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Header"

    def test_unconfigured_token(self, test_client, monkeypatch):
        monkeypatch.delenv("ADMIN_TOKEN", raising=False)

        response = test_client.post("/v1/admin/setup-defaults", headers={"X-Admin-Token": "anything"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Admin token not configured on server"

    def test_missing_header(self, test_client):
        assert test_client.post("/v1/admin/setup-defaults").status_code == 422


# ============================================================================
# Dashboard
# ============================================================================


def test_stats(test_client, studio_account, talent_user, admin_user) -> None:
    studio_user, _ = studio_account
    test_client.post("/v1/projects", json={"title": "Harbour Lights"}, headers=auth_headers(studio_user))

    response = test_client.get("/v1/admin/stats", headers=auth_headers(admin_user))

    assert response.status_code == 200
    body = response.json()
    assert body["users"] == 3
    assert body["studios"] == 1
    assert body["talents"] == 2
    assert body["projects"] == 1
    assert body["casting_calls"] == 0
    assert {item["type"] for item in body["recent_activity"]} == {"user", "project"}


def test_recent_activity_is_capped(db_session: Session, studio_account, talent_user, admin_user) -> None:
    activity = admin_stats.recent_activity(db_session, limit=2)

    assert len(activity) == 2
    assert activity[0]["timestamp"] >= activity[1]["timestamp"]


def test_stats_require_admin(test_client, talent_user) -> None:
    assert test_client.get("/v1/admin/stats", headers=auth_headers(talent_user)).status_code == 403


# ============================================================================
# Users
# ============================================================================


class TestUsers:
    def test_search(self, test_client, studio_account, talent_user, admin_user):
        response = test_client.get("/v1/admin/users", params={"search": "TARA"}, headers=auth_headers(admin_user))

        assert [u["email"] for u in response.json()] == ["talent@example.com"]
        assert response.json()[0]["tenant_type"] == "TALENT"

    def test_filter_by_role(self, test_client, talent_user, admin_user):
        response = test_client.get("/v1/admin/users", params={"role": "ADMIN"}, headers=auth_headers(admin_user))

        assert [u["email"] for u in response.json()] == ["admin@example.com"]

    def test_admin_cannot_grant_super_admin(self, test_client, talent_user, admin_user):
        response = test_client.patch(
            f"/v1/admin/users/{talent_user.id}/role", json={"role": "SUPER_ADMIN"}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Super admin access required"

    def test_admin_can_grant_admin(self, test_client, talent_user, admin_user):
        response = test_client.patch(
            f"/v1/admin/users/{talent_user.id}/role", json={"role": "ADMIN"}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["role"] == "ADMIN"

    def test_super_admin_can_grant_super_admin(self, test_client, talent_user, super_admin_user):
        response = test_client.patch(
            f"/v1/admin/users/{talent_user.id}/role",
            json={"role": "SUPER_ADMIN"},
            headers=auth_headers(super_admin_user),
        )

        assert response.json()["role"] == "SUPER_ADMIN"

    def test_cannot_delete_self(self, test_client, admin_user):
        response = test_client.delete(f"/v1/admin/users/{admin_user.id}", headers=auth_headers(admin_user))

        assert response.status_code == 400
        assert response.json()["detail"] == "You cannot delete your own account"

    def test_delete_user(self, test_client, db_session: Session, talent_user, admin_user):
        user_id = talent_user.id

        response = test_client.delete(f"/v1/admin/users/{user_id}", headers=auth_headers(admin_user))

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(User, user_id) is None

    def test_admin_cannot_demote_or_delete_super_admin(
        self, test_client, db_session: Session, admin_user, super_admin_user
    ):
        demote = test_client.patch(
            f"/v1/admin/users/{super_admin_user.id}/role", json={"role": "USER"}, headers=auth_headers(admin_user)
        )
        delete = test_client.delete(f"/v1/admin/users/{super_admin_user.id}", headers=auth_headers(admin_user))

        assert demote.status_code == 403
        assert delete.status_code == 403
        db_session.expire_all()
        assert db_session.get(User, super_admin_user.id).role == "SUPER_ADMIN"

    def test_super_admin_can_demote_super_admin(self, test_client, db_session: Session, super_admin_user):
        other = User(email="root2@example.com", first_name="Ro", last_name="Ot", role="SUPER_ADMIN")
        db_session.add(other)
        db_session.commit()

        response = test_client.patch(
            f"/v1/admin/users/{other.id}/role", json={"role": "ADMIN"}, headers=auth_headers(super_admin_user)
        )

        assert response.status_code == 200
        assert response.json()["role"] == "ADMIN"

    def test_assign_subscription(self, test_client, db_session: Session, seeded_catalog, studio_account, admin_user):
        studio_user, _ = studio_account
        plan = db_session.query(SubscriptionPlan).filter(SubscriptionPlan.name == "Business").one()

        response = test_client.post(
            f"/v1/admin/users/{studio_user.id}/subscription",
            json={"plan_id": plan.id},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 201
        assert response.json()["plan_name"] == "Business"
        assert response.json()["status"] == "ACTIVE"
