PROFILE = {
    "program": "BS Computer Science",
    "year": "2nd Year",
    "semester": "1st Semester",
    "academicYear": "2025-2026",
}


def test_save_profile(client, auth_headers):
    headers = auth_headers("a@x.com")

    response = client.post("/api/user/profile", json=PROFILE, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"ok": True}

    profile = client.get("/api/user/profile", headers=headers).json()
    assert profile["program"] == "BS Computer Science"
    assert profile["academicYear"] == "2025-2026"
    assert profile["profileComplete"] is True

    session = client.get("/api/auth/session", headers=headers).json()
    assert session["user"]["semester"] == "1st Semester"


def test_new_user_profile_is_incomplete(client, auth_headers):
    profile = client.get("/api/user/profile", headers=auth_headers()).json()
    assert profile["profileComplete"] is False
    assert profile["program"] is None


def test_profile_requires_every_field(client, auth_headers):
    headers = auth_headers()

    response = client.post("/api/user/profile", json={**PROFILE, "semester": " "}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "All fields required"}


def test_profile_requires_session(client):
    assert client.post("/api/user/profile", json=PROFILE).status_code == 401


def test_profile_options(client):
    response = client.get("/api/user/profile/options")

    assert response.status_code == 200
    body = response.json()
    assert "BS Computer Science" in body["programs"]
    assert body["years"] == ["1st Year", "2nd Year", "3rd Year", "4th Year"]
    assert body["semesters"] == ["1st Semester", "2nd Semester"]
    assert "2025-2026" in body["academicYears"]
