"""Casting calls and talent applications."""

import pytest
from sqlalchemy.orm import Session

from conftest import auth_headers, make_studio_account, make_talent_account
from qcard_api.db.models import Application, Message, Skill


@pytest.fixture
def studio_headers(studio_account) -> dict:
    user, _ = studio_account
    return auth_headers(user)


@pytest.fixture
def talent_headers(talent_user) -> dict:
    return auth_headers(talent_user)


@pytest.fixture
def casting_call(test_client, studio_headers) -> dict:
    response = test_client.post(
        "/v1/studio/casting-calls",
        json={
            "title": "Fisherman, 40s",
            "description": "Weathered local for two shoot days",
            "compensation_type": "PAID",
            "role_type": "SUPPORTING",
            "skills": ["Rowing", "rowing", "Knots"],
        },
        headers=studio_headers,
    )
    assert response.status_code == 201
    return response.json()


def _apply(test_client, headers, casting_call_id: str, message: str = "I grew up on the coast."):
    return test_client.post(f"/v1/casting-calls/{casting_call_id}/apply", json={"message": message}, headers=headers)


# ============================================================================
# Studio side
# ============================================================================


def test_create_defaults_and_skills(db_session: Session, casting_call) -> None:
    assert casting_call["status"] == "OPEN"
    assert casting_call["experience_level"] == "ANY"
    assert sorted(s["name"] for s in casting_call["skills"]) == ["Knots", "Rowing"]
    assert db_session.query(Skill).count() == 2


def test_update_replaces_skills(test_client, studio_headers, casting_call) -> None:
    response = test_client.patch(
        f"/v1/studio/casting-calls/{casting_call['id']}",
        json={"skills": ["Swimming"], "status": "CLOSED"},
        headers=studio_headers,
    )

    assert response.status_code == 200
    assert [s["name"] for s in response.json()["skills"]] == ["Swimming"]
    assert response.json()["status"] == "CLOSED"


def test_project_must_belong_to_studio(test_client, db_session: Session, studio_headers) -> None:
    rival, _ = make_studio_account(db_session, email="rival@example.com")
    project = test_client.post("/v1/projects", json={"title": "Rival film"}, headers=auth_headers(rival)).json()

    response = test_client.post(
        "/v1/studio/casting-calls",
        json={"title": "Borrowed", "description": "Not ours", "project_id": project["id"]},
        headers=studio_headers,
    )

    assert response.status_code == 404


# ============================================================================
# Talent side
# ============================================================================


def test_open_calls_listing_filters(test_client, studio_headers, talent_headers, casting_call) -> None:
    test_client.post(
        "/v1/studio/casting-calls",
        json={"title": "Closed call", "description": "Already cast", "status": "CLOSED"},
        headers=studio_headers,
    )

    listed = test_client.get("/v1/casting-calls", headers=talent_headers).json()
    paid = test_client.get("/v1/casting-calls", params={"compensation_type": "UNPAID"}, headers=talent_headers).json()

    assert [c["id"] for c in listed] == [casting_call["id"]]
    assert paid == []


def test_studio_cannot_browse_as_talent(test_client, studio_headers, casting_call) -> None:
    assert test_client.get("/v1/casting-calls", headers=studio_headers).status_code == 403


class TestApplications:
    def test_apply(self, test_client, talent_headers, casting_call):
        response = _apply(test_client, talent_headers, casting_call["id"])

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"

        mine = test_client.get("/v1/talent/applications", headers=talent_headers).json()
        assert [a["casting_call_id"] for a in mine] == [casting_call["id"]]

    @pytest.mark.parametrize("message", ["too short", "x" * 1001, "         short       "])
    def test_message_length(self, test_client, talent_headers, casting_call, message):
        response = _apply(test_client, talent_headers, casting_call["id"], message)

        assert response.status_code == 400
        assert response.json()["detail"] == "Message must be between 10 and 1000 characters"

    def test_closed_call(self, test_client, studio_headers, talent_headers, casting_call):
        test_client.patch(
            f"/v1/studio/casting-calls/{casting_call['id']}", json={"status": "FILLED"}, headers=studio_headers
        )

        response = _apply(test_client, talent_headers, casting_call["id"])

        assert response.status_code == 400
        assert response.json()["detail"] == "This casting call is no longer accepting applications"

    def test_duplicate(self, test_client, talent_headers, casting_call):
        _apply(test_client, talent_headers, casting_call["id"])

        response = _apply(test_client, talent_headers, casting_call["id"])

        assert response.status_code == 400
        assert response.json()["detail"] == "You have already applied to this casting call"

    def test_unknown_call(self, test_client, talent_headers):
        assert _apply(test_client, talent_headers, "nope").status_code == 404

    def test_studio_reviews_applications(self, test_client, db_session: Session, studio_headers, casting_call):
        applicants = [make_talent_account(db_session, email=f"t{i}@example.com") for i in range(2)]
        for applicant in applicants:
            _apply(test_client, auth_headers(applicant), casting_call["id"])

        listed = test_client.get(
            f"/v1/studio/casting-calls/{casting_call['id']}/applications", headers=studio_headers
        ).json()
        assert len(listed) == 2

        response = test_client.patch(
            f"/v1/studio/casting-calls/applications/{listed[0]['id']}",
            json={"status": "SHORTLISTED"},
            headers=studio_headers,
        )

        assert response.status_code == 200
        assert db_session.get(Application, listed[0]["id"]).status == "SHORTLISTED"

    def test_other_studio_cannot_review(self, test_client, db_session: Session, talent_headers, casting_call):
        application = _apply(test_client, talent_headers, casting_call["id"]).json()
        rival, _ = make_studio_account(db_session, email="rival@example.com")

        response = test_client.patch(
            f"/v1/studio/casting-calls/applications/{application['id']}",
            json={"status": "REJECTED"},
            headers=auth_headers(rival),
        )

        assert response.status_code == 404

    def test_deleting_call_removes_applications(
        self, test_client, db_session: Session, studio_headers, talent_headers, casting_call
    ):
        _apply(test_client, talent_headers, casting_call["id"])

        response = test_client.delete(f"/v1/studio/casting-calls/{casting_call['id']}", headers=studio_headers)

        assert response.status_code == 204
        assert db_session.query(Application).count() == 0


def test_open_calls_carry_callers_application(
    test_client, db_session: Session, studio_headers, talent_headers, casting_call
) -> None:
    other = test_client.post(
        "/v1/studio/casting-calls", json={"title": "Ferry pilot", "description": "One day"}, headers=studio_headers
    ).json()
    application = _apply(test_client, talent_headers, casting_call["id"]).json()
    bystander = make_talent_account(db_session, email="bystander@example.com")

    mine = {c["id"]: c["application"] for c in test_client.get("/v1/casting-calls", headers=talent_headers).json()}
    theirs = test_client.get("/v1/casting-calls", headers=auth_headers(bystander)).json()

    assert mine[casting_call["id"]] == {"id": application["id"], "status": "PENDING"}
    assert mine[other["id"]] is None
    assert [c["application"] for c in theirs] == [None, None]


# ============================================================================
# Invitations
# ============================================================================


class TestCastingCallInvitations:
    def _invite(self, test_client, headers, casting_call_id, profile_ids, **body):
        return test_client.post(
            f"/v1/studio/casting-calls/{casting_call_id}/invitations",
            json={"profile_ids": profile_ids, **body},
            headers=headers,
        )

    def test_invite_sends_messages(self, test_client, db_session: Session, studio_headers, casting_call, talent_user):
        response = self._invite(test_client, studio_headers, casting_call["id"], [talent_user.profile.id])

        assert response.status_code == 201
        assert response.json() == {"message": "Sent 1 invitation(s)", "count": 1, "skipped": 0}
        message = db_session.query(Message).one()
        assert message.talent_receiver_id == talent_user.profile.id
        assert message.related_casting_call_id == casting_call["id"]
        assert "Fisherman, 40s" in message.content

    def test_custom_message_is_used(self, test_client, db_session: Session, studio_headers, casting_call, talent_user):
        self._invite(
            test_client, studio_headers, casting_call["id"], [talent_user.profile.id], message="  Come audition!  "
        )

        assert db_session.query(Message).one().content == "Come audition!"

    def test_already_invited_are_skipped(
        self, test_client, db_session: Session, studio_headers, casting_call, talent_user
    ):
        second = make_talent_account(db_session, email="second@example.com")
        self._invite(test_client, studio_headers, casting_call["id"], [talent_user.profile.id])

        response = self._invite(
            test_client, studio_headers, casting_call["id"], [talent_user.profile.id, second.profile.id]
        )

        assert response.json()["count"] == 1
        assert response.json()["skipped"] == 1
        assert db_session.query(Message).count() == 2

    def test_everyone_already_invited_is_a_conflict(self, test_client, studio_headers, casting_call, talent_user):
        self._invite(test_client, studio_headers, casting_call["id"], [talent_user.profile.id])

        response = self._invite(test_client, studio_headers, casting_call["id"], [talent_user.profile.id])

        assert response.status_code == 409

    @pytest.mark.parametrize("profile_ids", [[], ["no-such-profile"]])
    def test_no_valid_profiles(self, test_client, studio_headers, casting_call, profile_ids):
        response = self._invite(test_client, studio_headers, casting_call["id"], profile_ids)

        assert response.status_code == 400

    def test_other_studio_cannot_invite(self, test_client, db_session: Session, casting_call, talent_user):
        rival, _ = make_studio_account(db_session, email="rival@example.com")

        response = self._invite(test_client, auth_headers(rival), casting_call["id"], [talent_user.profile.id])

        assert response.status_code == 404

    def test_listing_tracks_responses(
        self, test_client, db_session: Session, studio_headers, talent_headers, casting_call, talent_user
    ):
        quiet = make_talent_account(db_session, email="quiet@example.com", first_name="Quinn", last_name="Quiet")
        self._invite(test_client, studio_headers, casting_call["id"], [talent_user.profile.id, quiet.profile.id])
        _apply(test_client, talent_headers, casting_call["id"])

        listed = test_client.get(
            f"/v1/studio/casting-calls/{casting_call['id']}/invitations", headers=studio_headers
        ).json()

        by_profile = {item["profile_id"]: item for item in listed}
        assert by_profile[talent_user.profile.id]["has_responded"] is True
        assert by_profile[talent_user.profile.id]["response_status"] == "PENDING"
        assert by_profile[quiet.profile.id]["has_responded"] is False
        assert by_profile[quiet.profile.id]["response_status"] is None
        assert by_profile[quiet.profile.id]["talent_name"] == "Quinn Quiet"
