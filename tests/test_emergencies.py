import json

import pytest

from civic_issues.models.user import UserRole
from civic_issues.services import emergencies as emergency_service

JPEG = b"\xff\xd8\xff\xe0" + b"0" * 64


@pytest.fixture
def report_emergency(client, auth):
    def _report(citizen, type="medical", coordinates=(77.5, 12.9), images=0, **fields):
        data = {
            "type": type,
            "title": fields.pop("title", "Person collapsed at bus stop"),
            "description": fields.pop("description", "Elderly man unconscious near platform 2"),
            "contact_number": fields.pop("contact_number", "9876543210"),
            "location": json.dumps({"coordinates": list(coordinates), "address": "Bus Stand"}),
            **fields,
        }
        files = [("images", (f"scene{i}.jpg", JPEG, "image/jpeg")) for i in range(images)]
        return client.post("/api/emergency", data=data, files=files or None, headers=auth(citizen))

    return _report


def _status(client, auth, user, emergency_id, status):
    return client.patch(f"/api/emergency/{emergency_id}/status", json={"status": status}, headers=auth(user))


def test_create_emergency(report_emergency, make_user):
    res = report_emergency(make_user(), images=1)
    assert res.status_code == 201, res.text
    body = res.json()["data"]["emergency"]
    assert body["emergency_code"].startswith("EMR-MED-")
    assert body["emergency_code"].endswith("-0001")
    assert body["status"] == "reported"
    assert body["priority"] == "high"
    assert body["severity_level"] == "moderate"
    assert body["casualties_reported"] == 0
    assert len(body["media"]["images"]) == 1
    assert [h["remarks"] for h in body["status_history"]] == ["Emergency reported"]
    assert body["status_history"][0]["changed_by_id"] is None


def test_contact_number_is_required(report_emergency, make_user):
    res = report_emergency(make_user(), contact_number="")
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "contact_number"


def test_bad_type_and_negative_casualties(report_emergency, make_user):
    citizen = make_user()
    assert report_emergency(citizen, type="flood").status_code == 400
    assert report_emergency(citizen, casualties_reported="-1").status_code == 400


def test_only_citizens_report_emergencies(report_emergency, make_user):
    assert report_emergency(make_user(UserRole.officer)).status_code == 403


def test_linear_lifecycle(client, auth, report_emergency, make_user):
    citizen, officer = make_user(), make_user(UserRole.officer)
    emergency_id = report_emergency(citizen).json()["data"]["emergency"]["id"]

    skipped = _status(client, auth, officer, emergency_id, "dispatched")
    assert skipped.status_code == 400
    assert skipped.json()["error_code"] == "invalid_transition"

    for step in ("received", "dispatched", "resolved"):
        res = _status(client, auth, officer, emergency_id, step)
        assert res.status_code == 200, res.text

    body = res.json()["data"]["emergency"]
    assert body["responded_by"]["id"] == officer.id
    assert body["received_at"] and body["dispatched_at"] and body["resolved_at"]
    assert [h["status"] for h in body["status_history"]] == ["reported", "received", "dispatched", "resolved"]

    again = _status(client, auth, officer, emergency_id, "resolved")
    assert again.json()["error_code"] == "invalid_transition"
    # citizens cannot drive the lifecycle
    assert _status(client, auth, citizen, emergency_id, "received").status_code == 403


def test_citizen_scoping(client, auth, report_emergency, make_user):
    alice, bob = make_user(), make_user()
    emergency_id = report_emergency(alice).json()["data"]["emergency"]["id"]
    assert client.get(f"/api/emergency/{emergency_id}", headers=auth(alice)).status_code == 200
    assert client.get(f"/api/emergency/{emergency_id}", headers=auth(bob)).status_code == 403
    mine = client.get("/api/emergency/my-emergencies", headers=auth(bob)).json()["data"]
    assert mine["emergencies"] == []
    assert client.get("/api/emergency/9999", headers=auth(alice)).status_code == 404


def test_officers_without_departments_see_emergencies(client, auth, report_emergency, make_user):
    emergency_id = report_emergency(make_user()).json()["data"]["emergency"]["id"]
    officer = make_user(UserRole.officer)
    assert client.get(f"/api/emergency/{emergency_id}", headers=auth(officer)).status_code == 200
    listed = client.get("/api/officer/emergencies", headers=auth(officer)).json()["data"]
    assert listed["pagination"]["total"] == 1


def test_codes_count_across_types(report_emergency, make_user):
    citizen = make_user()
    report_emergency(citizen, type="medical")
    fire = report_emergency(citizen, type="fire").json()["data"]["emergency"]
    assert fire["emergency_code"].startswith("EMR-FIR-")
    assert fire["emergency_code"].endswith("-0002")


def test_active_excludes_resolved(client, auth, report_emergency, make_user):
    citizen, officer = make_user(), make_user(UserRole.officer)
    first = report_emergency(citizen).json()["data"]["emergency"]["id"]
    second = report_emergency(citizen, type="fire").json()["data"]["emergency"]["id"]
    for step in ("received", "dispatched", "resolved"):
        _status(client, auth, officer, first, step)

    active = client.get("/api/emergency/active", headers=auth(officer)).json()["data"]["emergencies"]
    assert [e["id"] for e in active] == [second]
    assert client.get("/api/emergency/active", headers=auth(citizen)).status_code == 403


def test_nearby_emergencies(client, auth, report_emergency, make_user):
    citizen, officer = make_user(), make_user(UserRole.officer)
    report_emergency(citizen, coordinates=(77.5, 12.9))
    report_emergency(citizen, coordinates=(80.0, 13.0))
    res = client.get("/api/emergency/nearby", params={"lat": 12.9, "lng": 77.5}, headers=auth(officer))
    hits = res.json()["data"]["emergencies"]
    assert len(hits) == 1
    assert hits[0]["distance_m"] == 0


def test_identifier_collision_is_a_conflict(monkeypatch, app, client, auth, report_emergency, make_user):
    monkeypatch.setattr(emergency_service, "next_emergency_code", lambda db, type, now=None: "EMR-MED-20250601-0001")
    citizen = make_user()
    assert report_emergency(citizen, images=1).status_code == 201

    res = report_emergency(citizen, images=1)
    assert res.status_code == 409
    assert res.json()["error_code"] == "conflict"
    assert app.state.storage.live == ["civic-emergencies/1"]
    mine = client.get("/api/emergency/my-emergencies", headers=auth(citizen)).json()["data"]
    assert mine["pagination"]["total"] == 1


def test_nearby_emergencies_across_the_antimeridian(client, auth, report_emergency, make_user):
    citizen, officer = make_user(), make_user(UserRole.officer)
    report_emergency(citizen, coordinates=(-179.99, -16.5))
    res = client.get("/api/emergency/nearby", params={"lat": -16.5, "lng": 179.99}, headers=auth(officer))
    assert len(res.json()["data"]["emergencies"]) == 1
