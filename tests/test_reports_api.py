import json

from civic_issues.models.department import Department
from civic_issues.models.user import UserRole
from civic_issues.services import reports as report_service


def _status(client, auth, officer, report_id, status, remarks=None):
    body = {"status": status}
    if remarks:
        body["remarks"] = remarks
    return client.patch(f"/api/officer/reports/{report_id}/status", json=body, headers=auth(officer))


def test_citizen_to_resolution_scenario(client, db, auth, make_user, make_department, submit_report):
    dept = make_department()
    citizen = make_user()
    officer = make_user(UserRole.officer, departments=[dept])

    res = submit_report(citizen, dept.id, coordinates=(77.5, 12.9))
    assert res.status_code == 201, res.text
    report = res.json()["data"]["report"]
    assert report["status"] == "submitted"
    assert report["report_code"].startswith("RPT-")
    assert len(report["status_history"]) == 1
    assert report["status_history"][0]["remarks"] == "Report submitted"
    assert report["status_history"][0]["changed_by_id"] is None
    assert len(report["media"]["images"]) == 1
    assert report["location"]["coordinates"] == [77.5, 12.9]

    res = _status(client, auth, officer, report["id"], "in_progress", "Crew dispatched")
    assert res.status_code == 200, res.text
    assert res.json()["data"]["report"]["assigned_officer"]["id"] == officer.id

    res = _status(client, auth, officer, report["id"], "resolved", "Pothole filled")
    body = res.json()["data"]["report"]
    assert body["status"] == "resolved"
    assert [h["status"] for h in body["status_history"]] == ["submitted", "in_progress", "resolved"]
    resolved_at = body["resolved_at"]
    assert resolved_at

    again = _status(client, auth, officer, report["id"], "resolved")
    assert again.status_code == 400
    assert again.json()["error_code"] == "invalid_transition"

    final = client.get(f"/api/reports/{report['id']}", headers=auth(officer)).json()["data"]["report"]
    assert final["resolved_at"] == resolved_at
    assert len(final["status_history"]) == 3

    db.expire_all()
    dept = db.get(Department, dept.id)
    assert (dept.total_reports, dept.active_reports, dept.resolved_reports) == (1, 0, 1)


def test_terminal_guard_gives_one_error_for_any_target(client, auth, make_user, make_department, submit_report):
    dept = make_department()
    citizen = make_user()
    officer = make_user(UserRole.officer, departments=[dept])
    report_id = submit_report(citizen, dept.id).json()["data"]["report"]["id"]
    rejected = client.post(f"/api/officer/reports/{report_id}/reject",
                           json={"rejection_reason": "Duplicate of an earlier report"}, headers=auth(officer))
    assert rejected.status_code == 200
    assert rejected.json()["data"]["report"]["rejection_reason"] == "Duplicate of an earlier report"

    errors = [
        _status(client, auth, officer, report_id, target, "Trying again please").json()
        for target in ("submitted", "in_progress", "resolved", "rejected")
    ]
    errors.append(client.post(f"/api/officer/reports/{report_id}/reject",
                              json={"rejection_reason": "Rejecting one more time"}, headers=auth(officer)).json())
    assert all(e["error_code"] == "invalid_transition" for e in errors)
    assert len({e["message"] for e in errors}) == 1


def test_reject_requires_a_reason(client, auth, make_user, make_department, submit_report):
    dept = make_department()
    citizen = make_user()
    officer = make_user(UserRole.officer, departments=[dept])
    report_id = submit_report(citizen, dept.id).json()["data"]["report"]["id"]

    res = client.post(f"/api/officer/reports/{report_id}/reject",
                      json={"rejection_reason": "   too short "}, headers=auth(officer))
    assert res.status_code == 400
    assert res.json()["message"] == "Rejection reason is required"
    status = client.get(f"/api/officer/reports/{report_id}", headers=auth(officer)).json()["data"]["report"]
    assert status["status"] == "submitted"
    assert len(status["status_history"]) == 1


def test_skipping_in_progress_is_refused(client, auth, make_user, make_department, submit_report):
    dept = make_department()
    citizen = make_user()
    officer = make_user(UserRole.officer, departments=[dept])
    report_id = submit_report(citizen, dept.id).json()["data"]["report"]["id"]
    res = _status(client, auth, officer, report_id, "resolved")
    assert res.status_code == 400
    assert res.json()["error_code"] == "invalid_transition"


def test_citizens_cannot_reach_each_others_reports(client, auth, make_user, make_department, submit_report):
    dept = make_department()
    alice, bob = make_user(), make_user()
    report_id = submit_report(alice, dept.id).json()["data"]["report"]["id"]

    assert client.get(f"/api/citizen/reports/{report_id}", headers=auth(alice)).status_code == 200
    assert client.get(f"/api/citizen/reports/{report_id}", headers=auth(bob)).status_code == 403
    assert client.get(f"/api/reports/{report_id}", headers=auth(bob)).status_code == 403
    listed = client.get("/api/citizen/reports", headers=auth(bob)).json()["data"]
    assert listed["reports"] == []
    assert listed["pagination"]["total"] == 0
    # citizens have no mutation route at all
    assert _status(client, auth, bob, report_id, "in_progress").status_code == 403


def test_officer_limited_to_assigned_departments(client, auth, make_user, make_department, submit_report):
    roads, water = make_department("Roads and Transport"), make_department("Water Supply")
    citizen = make_user()
    roads_officer = make_user(UserRole.officer, departments=[roads])
    water_report = submit_report(citizen, water.id).json()["data"]["report"]["id"]

    assert client.get(f"/api/officer/reports/{water_report}", headers=auth(roads_officer)).status_code == 403
    res = _status(client, auth, roads_officer, water_report, "in_progress")
    assert res.status_code == 403
    assert client.get("/api/reports", params={"department_id": water.id},
                      headers=auth(roads_officer)).json()["message"] == "Officer not assigned to this department"
    res = client.get("/api/officer/reports", headers=auth(roads_officer, **{"X-Department-Id": str(water.id)}))
    assert res.status_code == 403
    assert client.get("/api/officer/reports", headers=auth(roads_officer)).json()["data"]["reports"] == []


def test_officer_without_departments_sees_empty_list(client, auth, make_user, make_department, submit_report):
    dept = make_department()
    submit_report(make_user(), dept.id)
    idle = make_user(UserRole.officer)
    res = client.get("/api/reports", headers=auth(idle))
    assert res.status_code == 200
    assert res.json()["data"]["reports"] == []


def test_admin_reads_everything(client, auth, make_user, make_department, submit_report):
    roads, water = make_department("Roads and Transport"), make_department("Water Supply")
    citizen = make_user()
    admin = make_user(UserRole.admin)
    first = submit_report(citizen, roads.id).json()["data"]["report"]
    submit_report(citizen, water.id)

    assert client.get(f"/api/reports/{first['id']}", headers=auth(admin)).status_code == 200
    listed = client.get("/api/admin/reports", headers=auth(admin)).json()["data"]
    assert listed["pagination"]["total"] == 2
    stats = client.get("/api/reports/statistics", headers=auth(admin)).json()["data"]
    assert stats["by_status"]["submitted"] == 2
    assert {d["code"] for d in stats["by_department"]} == {"ROADS_TRANSPORT", "WATER_SUPPLY"}


def test_report_needs_an_image(client, make_user, make_department, submit_report, app):
    dept = make_department()
    res = submit_report(make_user(), dept.id, images=0)
    assert res.status_code == 400
    assert res.json()["message"] == "At least one image is required"
    assert app.state.storage.uploads == []


def test_invalid_coordinates_rejected(make_user, make_department, submit_report):
    dept, citizen = make_department(), make_user()
    res = submit_report(citizen, dept.id, coordinates=(200.0, 12.9))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"].startswith("location.coordinates")
    res = submit_report(citizen, dept.id, location=json.dumps({"coordinates": [77.5]}))
    assert res.status_code == 400
    res = submit_report(citizen, dept.id, location="not json")
    assert res.status_code == 400


def test_title_too_short(make_user, make_department, submit_report):
    res = submit_report(make_user(), make_department().id, title="Hole")
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "title"


def test_inactive_or_missing_department(make_user, make_department, submit_report):
    citizen = make_user()
    inactive = make_department("Parks", is_active=False)
    res = submit_report(citizen, inactive.id)
    assert res.status_code == 403
    assert res.json()["message"] == "Department is inactive"
    assert submit_report(citizen, 9999).status_code == 404


def test_missing_address_is_geocoded(app, make_user, make_department, submit_report):
    res = submit_report(make_user(), make_department().id, address=None)
    assert res.json()["data"]["report"]["location"]["address"] == "12 MG Road, Bengaluru"
    assert app.state.geocoder.calls == [(12.9, 77.5)]


def test_geocoding_failure_is_absorbed(app, make_user, make_department, submit_report):
    app.state.geocoder.address = None
    res = submit_report(make_user(), make_department().id, address=None)
    assert res.status_code == 201
    assert res.json()["data"]["report"]["location"]["address"] is None


def test_storage_failure_aborts_creation(app, client, auth, make_user, make_department, submit_report):
    app.state.storage.fail = True
    citizen = make_user()
    res = submit_report(citizen, make_department().id)
    assert res.status_code == 500
    assert res.json()["success"] is False
    assert client.get("/api/citizen/reports", headers=auth(citizen)).json()["data"]["pagination"]["total"] == 0


def test_sequential_codes_within_a_day(make_user, make_department, submit_report):
    dept, citizen = make_department(), make_user()
    codes = [submit_report(citizen, dept.id).json()["data"]["report"]["report_code"] for _ in range(3)]
    assert [c[-4:] for c in codes] == ["0001", "0002", "0003"]
    assert len({c[4:12] for c in codes}) == 1


def test_nearby_reports(client, auth, make_user, make_department, submit_report):
    dept, citizen = make_department(), make_user()
    submit_report(citizen, dept.id, coordinates=(77.5, 12.9))
    submit_report(citizen, dept.id, coordinates=(77.51, 12.9))
    submit_report(citizen, dept.id, coordinates=(78.5, 13.9))
    res = client.get("/api/reports/nearby", params={"lat": 12.9, "lng": 77.5, "radius": 5000}, headers=auth(citizen))
    hits = res.json()["data"]["reports"]
    assert len(hits) == 2
    assert hits[0]["distance_m"] == 0
    assert 1000 < hits[1]["distance_m"] < 1200


def test_citizen_dashboard(client, auth, make_user, make_department, submit_report):
    dept, citizen = make_department(), make_user()
    submit_report(citizen, dept.id)
    submit_report(citizen, dept.id)
    data = client.get("/api/citizen/dashboard", headers=auth(citizen)).json()["data"]
    assert data["reports"]["submitted"] == 2
    assert data["reports"]["total"] == 2
    assert data["emergencies"] == 0


def test_list_pagination_meta(client, auth, make_user, make_department, submit_report):
    dept, citizen = make_department(), make_user()
    for _ in range(3):
        submit_report(citizen, dept.id)
    meta = client.get("/api/citizen/reports", params={"page": 2, "limit": 2},
                      headers=auth(citizen)).json()["data"]["pagination"]
    assert meta == {"total": 3, "page": 2, "limit": 2, "total_pages": 2,
                    "has_next_page": False, "has_previous_page": True}
    assert client.get("/api/citizen/reports", params={"limit": 500}, headers=auth(citizen)).status_code == 400


def test_identifier_collision_is_a_conflict(monkeypatch, app, db, make_user, make_department, submit_report):
    monkeypatch.setattr(report_service, "next_report_code", lambda db, now=None: "RPT-20250601-0001")
    dept, citizen = make_department(), make_user()
    assert submit_report(citizen, dept.id).status_code == 201

    res = submit_report(citizen, dept.id)
    assert res.status_code == 409
    assert res.json()["error_code"] == "conflict"
    assert app.state.storage.live == ["civic-reports/1"]
    assert app.state.storage.deleted == ["civic-reports/2"]

    db.expire_all()
    dept = db.get(Department, dept.id)
    assert (dept.total_reports, dept.active_reports) == (1, 1)


def test_partial_upload_failure_removes_stored_files(app, client, auth, make_user, make_department, submit_report):
    app.state.storage.fail_after = 2
    citizen = make_user()
    res = submit_report(citizen, make_department().id, images=3)
    assert res.status_code == 500
    assert res.json()["error_code"] == "upstream_error"
    assert app.state.storage.live == []
    assert client.get("/api/citizen/reports", headers=auth(citizen)).json()["data"]["pagination"]["total"] == 0


def test_nearby_across_the_antimeridian(client, auth, make_user, make_department, submit_report):
    dept, citizen = make_department(), make_user()
    submit_report(citizen, dept.id, coordinates=(179.99, 0.0))
    submit_report(citizen, dept.id, coordinates=(-179.5, 0.0))
    res = client.get("/api/reports/nearby", params={"lat": 0.0, "lng": -179.99, "radius": 5000},
                     headers=auth(citizen))
    hits = res.json()["data"]["reports"]
    assert [h["location"]["coordinates"] for h in hits] == [[179.99, 0.0]]
    assert 2000 < hits[0]["distance_m"] < 2500
