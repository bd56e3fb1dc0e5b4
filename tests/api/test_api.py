from __future__ import annotations

COMPANY = {"X-Company-Id": "1"}
EMPLOYEE = {**COMPANY, "X-Employee-Id": "10"}
ADMIN = {**COMPANY, "X-Company-User-Id": "99"}


def _punch(client, kind, timestamp, **extra):
    return client.post(
        "/api/punches/punch", json={"type": kind, "timestamp": timestamp, **extra}, headers=EMPLOYEE
    )


def test_missing_identity_is_unauthorized(client):
    assert client.get("/api/punches/state").status_code == 401
    assert client.get("/api/punches/state", headers=COMPANY).status_code == 401
    assert client.post("/api/shifts", json={}, headers=EMPLOYEE).status_code == 401


def test_punch_flow_and_state(client):
    res = _punch(client, "in", "2025-03-03T08:00:00")
    assert res.status_code == 201
    body = res.get_json()
    assert body["success"] is True
    assert body["data"]["type"] == "IN"

    state = client.get("/api/punches/state?at=2025-03-03T10:00:00", headers=EMPLOYEE).get_json()["data"]
    assert state["currentState"] == "IN"
    assert state["canPunchOut"] and state["canStartBreak"]
    assert len(state["todayEntries"]) == 1


def test_sequence_violation_is_conflict(client):
    _punch(client, "IN", "2025-03-03T08:00:00")

    res = _punch(client, "IN", "2025-03-03T09:00:00")

    assert res.status_code == 409
    assert res.get_json() == {"success": False, "message": "Already clocked in. Clock out or start a break first."}


def test_invalid_type_is_bad_request(client):
    assert _punch(client, "LUNCH", "2025-03-03T08:00:00").status_code == 400
    assert client.post("/api/punches/punch", json={}, headers=EMPLOYEE).status_code == 400


def test_geofence_rejection_reports_distance(client):
    res = _punch(client, "IN", "2025-03-03T08:00:00", latitude=40.4268, longitude=-3.7038)

    assert res.status_code == 403
    body = res.get_json()
    assert body["radius"] == 100
    assert body["distance"] > 1000


def test_company_geolocation(client):
    data = client.get("/api/punches/geolocation", headers=COMPANY).get_json()["data"]

    assert data == {"latitude": 40.4168, "longitude": -3.7038, "geofenceRadius": 100, "requireGeolocation": True}


def test_admin_edit_and_audit_trail(client):
    created = client.post(
        "/api/punches",
        json={"employeeId": 10, "type": "IN", "timestamp": "2025-03-03T08:00:00"},
        headers=ADMIN,
    ).get_json()["data"]
    client.post(
        "/api/punches",
        json={"employeeId": 10, "type": "OUT", "timestamp": "2025-03-03T12:00:00"},
        headers=ADMIN,
    )

    res = client.put(
        f"/api/punches/{created['id']}",
        json={"timestamp": "2025-03-03T07:30:00", "reason": "Badge reader was down"},
        headers=ADMIN,
    )
    assert res.status_code == 200

    day = client.get("/api/work-days/10/2025-03-03", headers=COMPANY).get_json()["data"]
    assert day["workedMinutes"] == 270

    edits = client.get(f"/api/punches/{created['id']}/edits", headers=ADMIN).get_json()["data"]
    assert len(edits) == 1
    assert edits[0]["reason"] == "Badge reader was down"


def test_edit_without_reason_is_bad_request(client):
    created = _punch(client, "IN", "2025-03-03T08:00:00").get_json()["data"]

    res = client.put(f"/api/punches/{created['id']}", json={"notes": "x"}, headers=ADMIN)

    assert res.status_code == 400


def test_delete_and_missing_punch(client):
    created = _punch(client, "IN", "2025-03-03T08:00:00").get_json()["data"]

    res = client.delete(f"/api/punches/{created['id']}", json={"reason": "Test punch"}, headers=ADMIN)
    assert res.status_code == 200

    assert client.get(f"/api/punches/{created['id']}", headers=COMPANY).status_code == 404
    assert client.get("/api/work-days/10/2025-03-03", headers=COMPANY).status_code == 404


def test_bulk_and_listing(client):
    res = client.post(
        "/api/punches/bulk",
        json={
            "entries": [
                {"employeeId": 10, "type": "IN", "timestamp": "2025-03-03T08:00:00"},
                {"employeeId": 11, "type": "IN", "timestamp": "2025-03-03T09:00:00"},
            ]
        },
        headers=ADMIN,
    )
    assert res.status_code == 201
    assert res.get_json()["message"] == "2 punches created"

    listing = client.get("/api/punches?employeeId=11&limit=5", headers=ADMIN).get_json()["data"]
    assert listing["pagination"]["total"] == 1
    assert listing["entries"][0]["employeeId"] == 11

    assert client.get("/api/punches?limit=500", headers=ADMIN).status_code == 400


def test_daily_summary(client):
    _punch(client, "IN", "2025-03-03T08:00:00")
    _punch(client, "OUT", "2025-03-03T16:00:00")

    data = client.get("/api/work-days/summary?date=2025-03-03", headers=COMPANY).get_json()["data"]

    assert data["totalEntries"] == 2
    assert data["employees"][0]["totalMinutes"] == 480
    assert client.get("/api/work-days/summary", headers=COMPANY).status_code == 400


def test_shift_and_weekly_schedule_endpoints(client):
    morning = client.post(
        "/api/shifts", json={"name": "Morning", "startTime": "09:00", "endTime": "13:00"}, headers=ADMIN
    ).get_json()["data"]
    midday = client.post(
        "/api/shifts", json={"name": "Midday", "startTime": "12:00", "endTime": "17:00"}, headers=ADMIN
    ).get_json()["data"]
    assert client.post(
        "/api/shifts", json={"name": "Morning", "startTime": "08:00", "endTime": "12:00"}, headers=ADMIN
    ).status_code == 409

    ok = client.post(
        "/api/weekly-schedules",
        json={"employeeId": 10, "weekStart": "2025-03-03", "dayOfWeek": 0, "shiftId": morning["id"]},
        headers=ADMIN,
    )
    assert ok.status_code == 201

    clash = client.post(
        "/api/weekly-schedules",
        json={"employeeId": 10, "weekStart": "2025-03-03", "dayOfWeek": 0, "shiftId": midday["id"]},
        headers=ADMIN,
    )
    assert clash.status_code == 409

    rows = client.get("/api/weekly-schedules?weekStart=2025-03-03", headers=COMPANY).get_json()["data"]
    assert [r["shift"]["name"] for r in rows] == ["Morning"]

    summary = client.get("/api/weekly-schedules/summary?weekStart=2025-03-03", headers=COMPANY).get_json()["data"]
    assert summary["totalAssignedHours"] == 4.0

    deleted = client.delete(f"/api/shifts/{morning['id']}", headers=ADMIN)
    assert deleted.status_code == 409
    forced = client.delete(f"/api/shifts/{morning['id']}?force=true", headers=ADMIN)
    assert forced.get_json()["data"] == {"removedAssignments": 1}


def test_template_endpoints(client):
    morning = client.post(
        "/api/shifts", json={"name": "Morning", "startTime": "09:00", "endTime": "13:00"}, headers=ADMIN
    ).get_json()["data"]

    template = client.post(
        "/api/weekly-schedules/templates",
        json={"name": "Mornings", "weekData": {"0": [{"shiftId": morning["id"]}], "6": [{"shiftId": None}]}},
        headers=ADMIN,
    ).get_json()["data"]
    assert template["weekData"]["0"] == [{"shiftId": morning["id"], "notes": None}]

    applied = client.post(
        f"/api/weekly-schedules/templates/{template['id']}/apply",
        json={"weekStart": "2025-03-03", "employeeIds": [10]},
        headers=ADMIN,
    )
    assert applied.status_code == 201
    assert len(applied.get_json()["data"]) == 2

    copied = client.post(
        "/api/weekly-schedules/copy",
        json={"fromWeekStart": "2025-03-03", "toWeekStart": "2025-03-10"},
        headers=ADMIN,
    )
    assert copied.status_code == 201
    assert {r["date"] for r in copied.get_json()["data"]} == {"2025-03-10", "2025-03-16"}

    assert client.post(
        "/api/weekly-schedules/copy",
        json={"fromWeekStart": "2025-03-17", "toWeekStart": "2025-03-24"},
        headers=ADMIN,
    ).status_code == 404
