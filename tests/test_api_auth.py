"""HTTP tests for /api/v1/auth and /api/v1/health through FastAPI's TestClient."""

from app.models import User, UserRole

API = "/api/v1"
REGISTER = {
    "username": "reader",
    "email": "reader@example.com",
    "password": "secret123",
    "name": "Reader",
}


def _register(client, **overrides):
    return client.post(f"{API}/auth/register", json={**REGISTER, **overrides})


def _login(client, identifier="reader", password="secret123", headers=None):
    return client.post(
        f"{API}/auth/login",
        json={"identifier": identifier, "password": password},
        headers=headers or {},
    )


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _tokens(client, **kwargs):
    data = _login(client, **kwargs).json()["data"]
    return data["accessToken"], data["refreshToken"]


# --- register ---


def test_register_created(client):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Registration successful"
    assert body["data"]["username"] == "reader"
    assert body["data"]["role"] == "USER"
    assert "password_hash" not in body["data"]
    assert "password" not in body["data"]


def test_register_conflict(client):
    _register(client)
    resp = _register(client, username="someone-else")
    assert resp.status_code == 409
    assert resp.json() == {"detail": "Email is already registered"}


def test_register_validation(client):
    for field, value in (("password", "123"), ("email", "not-an-email"), ("username", "ab")):
        resp = _register(client, **{field: value})
        assert resp.status_code == 422, field


# --- login ---


def test_login_returns_user_and_tokens(client):
    _register(client)
    resp = _login(client)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert set(body["data"]) == {"user", "accessToken", "refreshToken"}
    assert body["data"]["user"]["email"] == "reader@example.com"


def test_login_failures_share_detail(client):
    _register(client)
    unknown = _login(client, identifier="nobody")
    wrong = _login(client, password="wrong-password")
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


# --- bearer-protected routes ---


def test_me(client):
    _register(client)
    access, _ = _tokens(client)
    resp = client.get(f"{API}/auth/me", headers=_bearer(access))
    assert resp.status_code == 200
    assert resp.json()["data"]["username"] == "reader"


def test_me_requires_token(client):
    resp = client.get(f"{API}/auth/me")
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"
    assert resp.json() == {"detail": "Not authenticated"}


def test_me_rejects_garbage_and_refresh_tokens(client):
    _register(client)
    _, refresh = _tokens(client)
    for token in ("garbage", refresh):
        resp = client.get(f"{API}/auth/me", headers=_bearer(token))
        assert resp.status_code == 401


def test_me_for_deleted_user(client, session_factory):
    _register(client)
    access, _ = _tokens(client)
    with session_factory() as db:
        db.query(User).delete(synchronize_session=False)
        db.commit()
    resp = client.get(f"{API}/auth/me", headers=_bearer(access))
    assert resp.status_code == 404


# --- refresh ---


def test_refresh_rotation_over_http(client):
    _register(client)
    _, first = _tokens(client)

    resp = client.post(f"{API}/auth/refresh", json={"refreshToken": first})
    assert resp.status_code == 200
    pair = resp.json()["data"]
    assert set(pair) == {"accessToken", "refreshToken"}
    assert pair["refreshToken"] != first

    reused = client.post(f"{API}/auth/refresh", json={"refreshToken": first})
    assert reused.status_code == 403

    me = client.get(f"{API}/auth/me", headers=_bearer(pair["accessToken"]))
    assert me.status_code == 200


def test_refresh_rejects_access_token(client):
    _register(client)
    access, _ = _tokens(client)
    resp = client.post(f"{API}/auth/refresh", json={"refreshToken": access})
    assert resp.status_code == 403


def test_refresh_missing_body(client):
    resp = client.post(f"{API}/auth/refresh", json={})
    assert resp.status_code == 422


# --- sessions and logout ---


def test_sessions_listing(client):
    _register(client)
    access, _ = _tokens(client, headers={"User-Agent": "curl/8.0", "X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    resp = client.get(f"{API}/auth/sessions", headers=_bearer(access))
    assert resp.status_code == 200
    (session,) = resp.json()["data"]
    assert session["device_info"] == "curl/8.0"
    assert session["ip_address"] == "203.0.113.7"
    assert "refresh_token_hash" not in session
    assert set(session) == {"id", "device_info", "ip_address", "created_at", "expires_at"}


def test_logout_revokes_latest_session(client):
    _register(client)
    access, refresh = _tokens(client)
    resp = client.post(f"{API}/auth/logout", headers=_bearer(access))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logout successful"
    assert client.post(f"{API}/auth/refresh", json={"refreshToken": refresh}).status_code == 403

    # Nothing left to revoke still succeeds.
    again = client.post(f"{API}/auth/logout", headers=_bearer(access))
    assert again.status_code == 200


def test_logout_specific_session(client):
    _register(client)
    access, laptop_refresh = _tokens(client, headers={"User-Agent": "laptop"})
    _, phone_refresh = _tokens(client, headers={"User-Agent": "phone"})
    listed = client.get(f"{API}/auth/sessions", headers=_bearer(access)).json()["data"]
    laptop_id = next(s["id"] for s in listed if s["device_info"] == "laptop")

    resp = client.post(f"{API}/auth/logout", json={"sessionId": laptop_id}, headers=_bearer(access))
    assert resp.status_code == 200
    assert client.post(f"{API}/auth/refresh", json={"refreshToken": laptop_refresh}).status_code == 403
    assert client.post(f"{API}/auth/refresh", json={"refreshToken": phone_refresh}).status_code == 200


def test_logout_requires_token(client):
    assert client.post(f"{API}/auth/logout").status_code == 401


def test_logout_all(client):
    _register(client)
    access, _ = _tokens(client)
    refreshes = [_tokens(client)[1] for _ in range(2)]

    resp = client.post(f"{API}/auth/logout-all", headers=_bearer(access))
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"] == {"count": 3}
    assert body["message"] == "Logged out from 3 device(s)"

    for refresh in refreshes:
        assert client.post(f"{API}/auth/refresh", json={"refreshToken": refresh}).status_code == 403
    # The access token itself stays valid until it expires.
    sessions = client.get(f"{API}/auth/sessions", headers=_bearer(access))
    assert sessions.status_code == 200
    assert sessions.json()["data"] == []


# --- role gate ---


def test_list_users_requires_admin(client, credential_store):
    user_id = _register(client).json()["data"]["id"]
    access, _ = _tokens(client)
    resp = client.get(f"{API}/auth/users", headers=_bearer(access))
    assert resp.status_code == 403
    assert resp.json() == {"detail": "You do not have access to this resource"}

    credential_store.update(user_id, role=UserRole.ADMIN)
    admin_access, _ = _tokens(client)
    resp = client.get(f"{API}/auth/users", headers=_bearer(admin_access))
    assert resp.status_code == 200
    assert [u["username"] for u in resp.json()["data"]] == ["reader"]


def test_list_users_requires_token(client):
    assert client.get(f"{API}/auth/users").status_code == 401


# --- health ---


def test_health(client):
    resp = client.get(f"{API}/health/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "environment": "dev", "database": "connected"}
