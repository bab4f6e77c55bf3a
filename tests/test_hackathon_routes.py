"""HTTP surface of /api/hackathons."""

from datetime import timedelta

import pytest
from bson import ObjectId

from conftest import NOW, auth_headers, hackathon_payload
from htverse.identity import issue_token

BASE = "/api/hackathons"


@pytest.fixture
def hackathon(create_hackathon):
    return create_hackathon()


class TestCreateRoute:
    def test_admin_creates(self, client, admin):
        resp = client.post(BASE, json=hackathon_payload(), headers=auth_headers(admin))
        assert resp.status_code == 201

        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["status"] == "upcoming"
        assert data["participants"] == []
        assert data["registrationCount"] == 0
        assert data["spotsRemaining"] == 100
        assert data["isRegistrationOpen"] is True
        assert data["organizer"] == {"id": admin.id, "name": "Admin", "email": admin.email}

    def test_participant_forbidden(self, client, participant, store):
        resp = client.post(BASE, json=hackathon_payload(), headers=auth_headers(participant))
        assert resp.status_code == 403
        assert resp.json()["success"] is False
        assert store.count_hackathons() == 0

    def test_requires_token(self, client):
        resp = client.post(BASE, json=hackathon_payload())
        assert resp.status_code == 401
        assert resp.json()["error"] == "unauthorized"

    def test_schema_violation(self, client, organizer):
        resp = client.post(BASE, json=hackathon_payload(maxTeamSize=11), headers=auth_headers(organizer))
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Validation failed"
        assert [d["field"] for d in body["data"]["details"]] == ["maxTeamSize"]

    def test_unknown_category(self, client, organizer):
        resp = client.post(BASE, json=hackathon_payload(categories=["Knitting"]), headers=auth_headers(organizer))
        assert resp.status_code == 400

    def test_deadline_in_past(self, client, organizer):
        payload = hackathon_payload(registrationDeadline=(NOW - timedelta(days=1)).isoformat())
        resp = client.post(BASE, json=payload, headers=auth_headers(organizer))
        assert resp.status_code == 400
        assert resp.json()["error"] == "deadline_in_past"

    def test_end_before_start(self, client, organizer):
        payload = hackathon_payload(endDate=(NOW + timedelta(days=9)).isoformat())
        resp = client.post(BASE, json=payload, headers=auth_headers(organizer))
        assert resp.status_code == 400
        assert resp.json()["message"] == "End date must be after start date"


class TestListRoute:
    def test_envelope(self, client, create_hackathon):
        for _ in range(3):
            create_hackathon()
        resp = client.get(BASE, params={"limit": 2})
        assert resp.status_code == 200

        body = resp.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["pages"] == 2

    def test_anonymous_read(self, client, hackathon):
        resp = client.get(BASE)
        assert [h["id"] for h in resp.json()["data"]] == [hackathon.id]

    def test_unknown_sort_falls_back_to_newest(self, client, create_hackathon, clock):
        first = create_hackathon(title="First")
        clock.advance(minutes=1)
        second = create_hackathon(title="Second")
        resp = client.get(BASE, params={"sort": "random"})
        assert [h["id"] for h in resp.json()["data"]] == [second.id, first.id]

    def test_prize_sort(self, client, create_hackathon):
        create_hackathon(title="Small", prizePool=10)
        create_hackathon(title="Big", prizePool=10000)
        resp = client.get(BASE, params={"sort": "prize"})
        assert [h["title"] for h in resp.json()["data"]] == ["Big", "Small"]

    def test_status_filter(self, client, create_hackathon, clock):
        soon = create_hackathon(
            title="Soon",
            registrationDeadline=(NOW + timedelta(hours=1)).isoformat(),
            startDate=(NOW + timedelta(hours=2)).isoformat(),
        )
        create_hackathon(title="Later")
        clock.advance(hours=3)

        resp = client.get(BASE, params={"status": "ongoing"})
        data = resp.json()["data"]
        assert [h["id"] for h in data] == [soon.id]
        assert data[0]["status"] == "ongoing"

    def test_invalid_status(self, client):
        resp = client.get(BASE, params={"status": "paused"})
        assert resp.status_code == 400

    def test_limit_is_capped(self, client):
        resp = client.get(BASE, params={"limit": 500})
        assert resp.status_code == 400

    def test_category_filter(self, client, create_hackathon):
        create_hackathon(title="Chain", categories=["Blockchain"])
        create_hackathon(title="Web", categories=["Web Development"])
        resp = client.get(BASE, params={"category": "Blockchain"})
        assert [h["title"] for h in resp.json()["data"]] == ["Chain"]


class TestGetRoute:
    def test_found(self, client, hackathon, organizer):
        resp = client.get(f"{BASE}/{hackathon.id}")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "Spring Hack"
        assert data["organizer"]["name"] == organizer.name
        assert data["judgesCriteria"][0] == {"criterion": "Innovation", "weightage": 40.0}

    @pytest.mark.parametrize("hackathon_id", [str(ObjectId()), "not-an-id"])
    def test_missing(self, client, hackathon_id):
        resp = client.get(f"{BASE}/{hackathon_id}")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Hackathon not found", "error": "not_found"}

    def test_status_written_back_after_response(self, client, hackathon, clock, store):
        clock.set(NOW + timedelta(days=11))
        resp = client.get(f"{BASE}/{hackathon.id}")
        assert resp.json()["data"]["status"] == "ongoing"
        assert store.find_hackathon(hackathon.id)["status"] == "ongoing"

    def test_registration_closed_after_deadline(self, client, hackathon, clock):
        clock.set(NOW + timedelta(days=6))
        resp = client.get(f"{BASE}/{hackathon.id}")
        assert resp.json()["data"]["isRegistrationOpen"] is False


class TestUpdateRoute:
    def test_owner_updates(self, client, hackathon, organizer):
        resp = client.put(f"{BASE}/{hackathon.id}", json={"title": "Renamed"}, headers=auth_headers(organizer))
        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "Renamed"
        assert resp.json()["data"]["prizePool"] == 5000

    def test_other_organizer_forbidden(self, client, hackathon, make_user):
        other = make_user(role="organizer")
        resp = client.put(f"{BASE}/{hackathon.id}", json={"title": "Mine"}, headers=auth_headers(other))
        assert resp.status_code == 403

    def test_admin_cancels(self, client, hackathon, admin):
        resp = client.put(f"{BASE}/{hackathon.id}", json={"status": "cancelled"}, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "cancelled"

    def test_invalid_merge(self, client, hackathon, organizer):
        resp = client.put(f"{BASE}/{hackathon.id}", json={"maxTeamSize": 0}, headers=auth_headers(organizer))
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    def test_capacity_below_registrations(self, client, create_hackathon, organizer, make_user, manager):
        h = create_hackathon(maxParticipants=5)
        for _ in range(3):
            manager.register(h.id, make_user().id)
        resp = client.put(f"{BASE}/{h.id}", json={"maxParticipants": 2}, headers=auth_headers(organizer))
        assert resp.status_code == 400
        assert resp.json()["error"] == "capacity_below_registrations"
        assert resp.json()["data"] == {"currentParticipants": 3, "maxParticipants": 2}

    def test_missing(self, client, admin):
        resp = client.put(f"{BASE}/{ObjectId()}", json={"title": "x"}, headers=auth_headers(admin))
        assert resp.status_code == 404


class TestDeleteRoute:
    def test_owner_deletes(self, client, hackathon, organizer):
        resp = client.delete(f"{BASE}/{hackathon.id}", headers=auth_headers(organizer))
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Hackathon deleted successfully", "data": None}
        assert client.get(f"{BASE}/{hackathon.id}").status_code == 404

    def test_participant_forbidden(self, client, hackathon, participant, store):
        resp = client.delete(f"{BASE}/{hackathon.id}", headers=auth_headers(participant))
        assert resp.status_code == 403
        assert store.find_hackathon(hackathon.id) is not None


class TestRegistrationRoutes:
    def test_register_and_expand(self, client, create_hackathon, participant):
        h = create_hackathon(maxParticipants=3)
        resp = client.post(f"{BASE}/{h.id}/register", headers=auth_headers(participant))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["hackathonId"] == h.id
        assert data["hackathonTitle"] == "Spring Hack"
        assert data["registrationCount"] == 1
        assert data["spotsRemaining"] == 2

        detail = client.get(f"{BASE}/{h.id}").json()["data"]
        assert detail["participants"] == [
            {"id": participant.id, "name": participant.name, "email": participant.email, "college": "Test College"}
        ]

    def test_capacity_conflict(self, client, create_hackathon, make_user):
        h = create_hackathon(maxParticipants=1)
        first, second = make_user(), make_user()
        assert client.post(f"{BASE}/{h.id}/register", headers=auth_headers(first)).status_code == 200

        resp = client.post(f"{BASE}/{h.id}/register", headers=auth_headers(second))
        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "capacity_exceeded"
        assert body["data"] == {"currentParticipants": 1, "maxParticipants": 1}

    def test_duplicate_conflict(self, client, hackathon, participant):
        client.post(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        resp = client.post(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        assert resp.status_code == 409
        assert resp.json()["error"] == "already_registered"

    def test_deadline_conflict(self, client, hackathon, participant, clock):
        clock.set(NOW + timedelta(days=6))
        resp = client.post(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        assert resp.status_code == 409
        assert resp.json()["error"] == "deadline_passed"
        assert "deadline" in resp.json()["data"]

    def test_register_requires_token(self, client, hackathon):
        assert client.post(f"{BASE}/{hackathon.id}/register").status_code == 401

    def test_unregister(self, client, hackathon, participant):
        client.post(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        resp = client.delete(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        assert resp.status_code == 200
        assert resp.json()["data"]["remainingParticipants"] == 0

    def test_unregister_when_not_listed(self, client, hackathon, participant):
        resp = client.delete(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        assert resp.status_code == 409
        assert resp.json()["error"] == "not_registered"

    def test_unregister_after_start(self, client, hackathon, participant, clock):
        client.post(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        clock.set(NOW + timedelta(days=10))
        resp = client.delete(f"{BASE}/{hackathon.id}/register", headers=auth_headers(participant))
        assert resp.status_code == 409
        assert resp.json()["error"] == "already_started"

    def test_token_for_deleted_user(self, client, hackathon):
        headers = {"Authorization": f"Bearer {issue_token(str(ObjectId()))}"}
        resp = client.post(f"{BASE}/{hackathon.id}/register", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["message"] == "No user found with this token"
