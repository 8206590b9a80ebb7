import re

from familybudget.auth import create_access_token, hash_password, verify_password

from conftest import register


def test_hash_and_verify_password():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_garbage_hash():
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_register_creates_personal_group(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "Ana@Example.com", "password": "secret123"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["user"]["email"] == "ana@example.com"
    assert data["access_token"] and data["refresh_token"]
    assert "hashed_password" not in data["user"]

    groups = client.get(
        "/api/groups", headers={"Authorization": f"Bearer {data['access_token']}"}
    ).json()["data"]
    assert len(groups) == 1
    assert groups[0]["name"] == "Grupo Pessoal de Ana"
    assert groups[0]["members"][0]["role"] == "admin"


def test_register_duplicate_email_conflicts(client, alice):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "ALICE@example.com", "password": "secret123"},
    )
    assert resp.status_code == 409
    assert resp.json()["success"] is False


def test_register_validation_errors_are_400(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "not-an-email", "password": "123"},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation error"
    fields = {d["field"] for d in body["details"]}
    assert {"email", "password"} <= fields


def test_login_and_me(client, alice):
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert resp.status_code == 200
    token = resp.json()["data"]["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["name"] == "Alice"


def test_login_wrong_password_and_unknown_email_look_the_same(client, alice):
    wrong = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()


def test_protected_route_requires_valid_access_token(client, alice):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    # refresh tokens are not JWTs and cannot be used as access tokens
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {alice['refresh_token']}"})
    assert resp.status_code == 401
    assert resp.headers.get("www-authenticate") == "Bearer"


def test_access_token_for_deleted_user_is_rejected(client):
    token = create_access_token(9999)
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_refresh_token_rotation(client, alice):
    resp = client.post("/api/auth/refresh-token", json={"refresh_token": alice["refresh_token"]})
    assert resp.status_code == 200
    new_tokens = resp.json()["data"]
    assert new_tokens["refresh_token"] != alice["refresh_token"]

    # the old token was consumed
    again = client.post("/api/auth/refresh-token", json={"refresh_token": alice["refresh_token"]})
    assert again.status_code == 401

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_tokens['access_token']}"})
    assert me.status_code == 200


def test_logout_revokes_refresh_token(client, alice):
    resp = client.post(
        "/api/auth/logout",
        json={"refresh_token": alice["refresh_token"]},
        headers=alice["headers"],
    )
    assert resp.status_code == 200
    again = client.post("/api/auth/refresh-token", json={"refresh_token": alice["refresh_token"]})
    assert again.status_code == 401


def test_forgot_password_does_not_reveal_accounts(client, alice, sent_emails):
    known = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [m["to"] for m in sent_emails] == ["alice@example.com"]


def test_forgot_password_for_inactive_account_matches_unknown_email(client, alice, sent_emails, db):
    from familybudget.models.user import User

    user = db.get(User, alice["user"]["id"])
    user.is_active = False
    db.commit()

    inactive = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert inactive.status_code == unknown.status_code == 200
    assert inactive.json() == unknown.json()
    assert sent_emails == []


def test_reset_password_flow(client, alice, sent_emails):
    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    token = re.search(r"/reset-password/([0-9a-f]{64})", sent_emails[-1]["body"]).group(1)

    mismatch = client.post(
        f"/api/auth/reset-password/{token}",
        json={"password": "newpass1", "confirm_password": "different"},
    )
    assert mismatch.status_code == 400

    resp = client.post(
        f"/api/auth/reset-password/{token}",
        json={"password": "newpass1", "confirm_password": "newpass1"},
    )
    assert resp.status_code == 200

    # single use
    reused = client.post(
        f"/api/auth/reset-password/{token}",
        json={"password": "another1", "confirm_password": "another1"},
    )
    assert reused.status_code == 400

    old = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert old.status_code == 401
    new = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "newpass1"})
    assert new.status_code == 200

    # sessions opened with the old password are gone
    refresh = client.post("/api/auth/refresh-token", json={"refresh_token": alice["refresh_token"]})
    assert refresh.status_code == 401


def test_update_profile(client, alice):
    resp = client.put(
        "/api/users/me",
        json={"name": "Alice S.", "preferred_start_day": 5},
        headers=alice["headers"],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Alice S."
    assert data["preferred_start_day"] == 5

    bad = client.put("/api/users/me", json={"preferred_start_day": 31}, headers=alice["headers"])
    assert bad.status_code == 400


def test_health_check(client):
    resp = client.get("/api/health-check")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_register_helper_returns_personal_group(client):
    user = register(client, "Carla", "carla@example.com")
    assert user["group_id"] > 0
