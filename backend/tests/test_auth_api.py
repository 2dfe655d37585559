"""Registration, login, password reset and profile endpoints."""

import pytest

from conftest import DEFAULT_PASSWORD, bearer, register_user


@pytest.mark.asyncio
async def test_register_returns_token_and_user(client):
    data = await register_user(client, "alice")

    assert data["token"]
    assert data["user"]["username"] == "alice"
    assert data["user"]["email"] == "alice@taskboard.io"
    assert "password_hash" not in data["user"]


@pytest.mark.asyncio
async def test_register_duplicate_conflicts(client):
    await register_user(client, "alice")

    response = await client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "other@taskboard.io", "password": "x"},
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_register_rejects_bad_email(client):
    response = await client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "not-an-email", "password": "x"},
    )

    assert response.status_code == 400


@pytest.mark.parametrize("field,value", [("username", "alice"), ("email", "alice@taskboard.io")])
@pytest.mark.asyncio
async def test_login_with_username_or_email(client, field, value):
    await register_user(client, "alice")

    response = await client.post(
        "/api/auth/login", json={field: value, "password": DEFAULT_PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["username"] == "alice"
    me = await client.get("/api/auth/me", headers=bearer(body["token"]))
    assert me.json()["email"] == "alice@taskboard.io"


@pytest.mark.asyncio
async def test_login_failures(client):
    await register_user(client, "alice")

    wrong = await client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Invalid credentials"

    missing = await client.post("/api/auth/login", json={"username": "alice"})
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client):
    await register_user(client, "alice")

    forgot = await client.post("/api/auth/forgot", json={"email": "alice@taskboard.io"})
    assert forgot.status_code == 200
    reset_token = forgot.json()["resetToken"]

    reset = await client.post(
        "/api/auth/reset", json={"token": reset_token, "password": "brand-new"}
    )
    assert reset.json() == {"success": True}

    login = await client.post("/api/auth/login", json={"username": "alice", "password": "brand-new"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_forgot_unknown_email_and_bad_reset_token(client):
    forgot = await client.post("/api/auth/forgot", json={"email": "ghost@taskboard.io"})
    assert forgot.status_code == 404

    reset = await client.post("/api/auth/reset", json={"token": "garbage", "password": "x"})
    assert reset.status_code == 400


@pytest.mark.asyncio
async def test_access_token_is_not_a_reset_token(client):
    data = await register_user(client, "alice")

    reset = await client.post("/api/auth/reset", json={"token": data["token"], "password": "x"})

    assert reset.status_code == 400


@pytest.mark.asyncio
async def test_profile_partial_update(client, auth_headers):
    response = await client.put(
        "/api/auth/profile", json={"phone": "555-0100"}, headers=auth_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["phone"] == "555-0100"
    assert body["username"] == "alice"


@pytest.mark.asyncio
async def test_profile_update_validation(client, auth_headers):
    await register_user(client, "bob")

    empty = await client.put("/api/auth/profile", json={}, headers=auth_headers)
    assert empty.status_code == 400

    taken = await client.put("/api/auth/profile", json={"username": "bob"}, headers=auth_headers)
    assert taken.status_code == 409

    null_name = await client.put("/api/auth/profile", json={"username": None}, headers=auth_headers)
    assert null_name.status_code == 400
    me = (await client.get("/api/auth/me", headers=auth_headers)).json()
    assert me["username"] == "alice"


@pytest.mark.asyncio
async def test_change_email(client, auth_headers):
    await register_user(client, "bob")
    payload = {
        "currentEmail": "alice@taskboard.io",
        "newEmail": "alice@new.io",
        "currentPassword": DEFAULT_PASSWORD,
    }

    mismatch = await client.put(
        "/api/auth/email", json={**payload, "currentEmail": "wrong@taskboard.io"}, headers=auth_headers
    )
    assert mismatch.status_code == 400

    taken = await client.put(
        "/api/auth/email", json={**payload, "newEmail": "bob@taskboard.io"}, headers=auth_headers
    )
    assert taken.status_code == 409

    ok = await client.put("/api/auth/email", json=payload, headers=auth_headers)
    assert ok.status_code == 200
    assert ok.json()["email"] == "alice@new.io"


@pytest.mark.asyncio
async def test_change_password(client, auth_headers):
    wrong = await client.put(
        "/api/auth/change-password",
        json={"currentPassword": "nope", "newPassword": "next"},
        headers=auth_headers,
    )
    assert wrong.status_code == 401

    ok = await client.put(
        "/api/auth/change-password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "next"},
        headers=auth_headers,
    )
    assert ok.status_code == 200

    login = await client.post("/api/auth/login", json={"username": "alice", "password": "next"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_profile_picture_upload(client, auth_headers, settings, tmp_path):
    bad = await client.post(
        "/api/auth/profile-picture",
        files={"picture": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers,
    )
    assert bad.status_code == 400

    first = await client.post(
        "/api/auth/profile-picture",
        files={"picture": ("me.png", b"\x89PNG-one", "image/png")},
        headers=auth_headers,
    )
    assert first.status_code == 200
    picture = first.json()["picture"]
    assert picture.startswith("uploads/")
    first_path = tmp_path / "uploads" / picture.split("/")[-1]
    assert first_path.exists()

    served = await client.get(f"/{picture}")
    assert served.status_code == 200
    assert served.content == b"\x89PNG-one"

    second = await client.post(
        "/api/auth/profile-picture",
        files={"picture": ("me.png", b"\x89PNG-two", "image/png")},
        headers=auth_headers,
    )
    assert second.status_code == 200
    assert not first_path.exists()


@pytest.mark.asyncio
async def test_reset_password_request_is_logged_only(client, auth_headers):
    response = await client.post("/api/auth/reset-password", headers=auth_headers)

    assert response.status_code == 200
    assert "message" in response.json()


@pytest.mark.asyncio
async def test_working_status_defaults_and_update(client, auth_headers):
    default = (await client.get("/api/auth/working-status", headers=auth_headers)).json()
    assert default["status"] == "in-office"
    assert default["start_date"] == default["end_date"]

    payload = {
        "status": "remote",
        "start_date": "2024-07-01",
        "end_date": "2024-07-05",
        "disable_notifications": True,
    }
    saved = await client.put("/api/auth/working-status", json=payload, headers=auth_headers)
    assert saved.status_code == 200

    current = (await client.get("/api/auth/working-status", headers=auth_headers)).json()
    assert current["status"] == "remote"
    assert current["end_date"] == "2024-07-05"
    assert current["disable_notifications"] is True

    backwards = await client.put(
        "/api/auth/working-status",
        json={**payload, "start_date": "2024-07-06"},
        headers=auth_headers,
    )
    assert backwards.status_code == 400


@pytest.mark.asyncio
async def test_users_list_hides_password_hash(client, auth_headers):
    await register_user(client, "bob")

    users = (await client.get("/api/users", headers=auth_headers)).json()

    assert [u["username"] for u in users] == ["alice", "bob"]
    assert all("password_hash" not in u for u in users)
