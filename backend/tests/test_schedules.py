import pytest


def create_schedule(client, headers, payload):
    response = client.post("/api/schedule", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_stamps_owner_from_session(client, auth_headers, schedule_payload):
    headers = auth_headers("a@x.com")

    response = client.post("/api/schedule", json=schedule_payload, headers=headers)

    assert response.status_code == 201
    data = response.json()
    assert data["owner"] == "a@x.com"
    assert data["courseCode"] == "CS101"
    assert data["time"] == "9:00 AM-10:00 AM"
    assert data["id"]
    assert data["createdAt"]


def test_create_ignores_client_supplied_owner_and_id(client, auth_headers, schedule_payload):
    headers = auth_headers("a@x.com")
    payload = {**schedule_payload, "owner": "mallory@x.com", "email": "mallory@x.com", "id": "forged"}

    data = create_schedule(client, headers, payload)

    assert data["owner"] == "a@x.com"
    assert data["id"] != "forged"


def test_create_requires_session(client, schedule_payload):
    response = client.post("/api/schedule", json=schedule_payload)
    assert response.status_code == 401

    listing = client.get("/api/schedules", params={"email": "a@x.com"})
    assert listing.json() == []


def test_create_rejects_missing_fields(client, auth_headers, schedule_payload):
    headers = auth_headers()
    payload = {**schedule_payload, "room": ""}
    payload.pop("instructor")

    response = client.post("/api/schedule", json=payload, headers=headers)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Missing required fields"
    assert set(body["details"]["fields"]) == {"room", "instructor"}


@pytest.mark.parametrize("units", ["0", "-3", "abc"])
def test_create_rejects_invalid_units(client, auth_headers, schedule_payload, units):
    response = client.post("/api/schedule", json={**schedule_payload, "units": units}, headers=auth_headers())
    assert response.status_code == 400
    assert "Units" in response.json()["error"]


def test_create_accepts_numeric_units(client, auth_headers, schedule_payload):
    data = create_schedule(client, auth_headers(), {**schedule_payload, "units": 3})
    assert data["units"] == "3"


def test_days_rule_is_off_by_default(client, auth_headers, schedule_payload):
    data = create_schedule(client, auth_headers(), {**schedule_payload, "days": "Saturday mornings"})
    assert data["days"] == "Saturday mornings"


def test_days_rule_when_enabled(client, auth_headers, override_settings, schedule_payload):
    override_settings(validate_days=True)
    headers = auth_headers()

    rejected = client.post("/api/schedule", json={**schedule_payload, "days": "MTWRF"}, headers=headers)
    assert rejected.status_code == 400
    assert rejected.json()["details"]["field"] == "days"

    accepted = client.post("/api/schedule", json={**schedule_payload, "days": "tth"}, headers=headers)
    assert accepted.status_code == 201


def test_list_is_scoped_and_newest_first(client, auth_headers, schedule_payload):
    alice = auth_headers("a@x.com")
    bob = auth_headers("b@x.com")
    first = create_schedule(client, alice, schedule_payload)
    second = create_schedule(client, alice, {**schedule_payload, "courseCode": "CS102", "descriptiveTitle": "Data"})
    create_schedule(client, bob, {**schedule_payload, "courseCode": "MA101", "descriptiveTitle": "Calculus"})

    mine = client.get("/api/schedule", headers=alice)
    assert mine.status_code == 200
    assert [row["id"] for row in mine.json()] == [second["id"], first["id"]]

    public = client.get("/api/schedules", params={"email": "b@x.com"})
    assert public.status_code == 200
    assert [row["courseCode"] for row in public.json()] == ["MA101"]


def test_list_requires_session(client):
    assert client.get("/api/schedule").status_code == 401


def test_update_merges_fields(client, auth_headers, schedule_payload):
    headers = auth_headers()
    created = create_schedule(client, headers, schedule_payload)

    response = client.put(f"/api/schedule/{created['id']}", json={"room": "202"}, headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["room"] == "202"
    assert data["courseCode"] == "CS101"
    assert data["instructor"] == "Lee"


def test_update_keeps_identifier_and_owner(client, auth_headers, schedule_payload):
    headers = auth_headers("a@x.com")
    created = create_schedule(client, headers, schedule_payload)
    body = {
        **created,
        "_id": "other",
        "id": "other",
        "owner": "mallory@x.com",
        "email": "mallory@x.com",
        "instructor": "Park",
    }

    response = client.put(f"/api/schedule/{created['id']}", json=body, headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == created["id"]
    assert data["owner"] == "a@x.com"
    assert data["instructor"] == "Park"


def test_update_rejects_blank_and_bad_units(client, auth_headers, schedule_payload):
    headers = auth_headers()
    created = create_schedule(client, headers, schedule_payload)

    blank = client.put(f"/api/schedule/{created['id']}", json={"room": "  "}, headers=headers)
    assert blank.status_code == 400

    units = client.put(f"/api/schedule/{created['id']}", json={"units": "0"}, headers=headers)
    assert units.status_code == 400


def test_update_missing_record(client, auth_headers):
    response = client.put("/api/schedule/does-not-exist", json={"room": "1"}, headers=auth_headers())
    assert response.status_code == 404
    assert response.json() == {"error": "Schedule not found"}


def test_delete_schedule(client, auth_headers, schedule_payload):
    headers = auth_headers()
    created = create_schedule(client, headers, schedule_payload)

    response = client.delete(f"/api/schedule/{created['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Schedule deleted successfully"}
    assert client.get("/api/schedule", headers=headers).json() == []


def test_delete_missing_record(client, auth_headers):
    response = client.delete("/api/schedule/nonexistent-id", headers=auth_headers())
    assert response.status_code == 404
    assert response.json() == {"error": "Schedule not found"}


def test_delete_requires_session(client):
    assert client.delete("/api/schedule/anything").status_code == 401


def test_other_users_cannot_touch_record(client, auth_headers, schedule_payload):
    owner = auth_headers("a@x.com")
    intruder = auth_headers("b@x.com")
    created = create_schedule(client, owner, schedule_payload)

    update = client.put(f"/api/schedule/{created['id']}", json={"room": "999"}, headers=intruder)
    delete = client.delete(f"/api/schedule/{created['id']}", headers=intruder)

    assert update.status_code == 403
    assert delete.status_code == 403
    assert client.get("/api/schedule", headers=owner).json()[0]["room"] == "101"


def test_ownership_check_can_be_disabled(client, auth_headers, override_settings, schedule_payload):
    override_settings(enforce_record_ownership=False)
    owner = auth_headers("a@x.com")
    other = auth_headers("b@x.com")
    created = create_schedule(client, owner, schedule_payload)

    response = client.put(f"/api/schedule/{created['id']}", json={"room": "999"}, headers=other)

    assert response.status_code == 200
    assert response.json()["owner"] == "a@x.com"


def test_duplicate_writes_rejected_when_enabled(client, auth_headers, override_settings, schedule_payload):
    override_settings(reject_duplicate_writes=True)
    headers = auth_headers()
    created = create_schedule(client, headers, schedule_payload)

    duplicate = client.post(
        "/api/schedule",
        json={**schedule_payload, "descriptiveTitle": "Another"},
        headers=headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["details"]["field"] == "Course Code"

    # Saving a record against itself is not a conflict.
    resave = client.put(f"/api/schedule/{created['id']}", json=schedule_payload, headers=headers)
    assert resave.status_code == 200


def test_malformed_body_is_a_400(client, auth_headers):
    response = client.post("/api/schedule", json={"courseCode": ["CS101"]}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_storage_failure_is_a_generic_500(client, auth_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from classsched.services import schedules as schedule_service

    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(schedule_service, "list_schedules_for", broken)

    response = client.get("/api/schedule", headers=auth_headers())

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_storage_failure_details_in_debug(client, auth_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from classsched import main
    from classsched.services import schedules as schedule_service

    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(schedule_service, "list_schedules_for", broken)
    monkeypatch.setattr(main, "settings", main.settings.model_copy(update={"debug": True}))

    response = client.get("/api/schedule", headers=auth_headers())

    assert response.status_code == 500
    assert "database is down" in response.json()["details"]["reason"]
