from turismo.core.rate_limit import limiter

from conftest import auth_header


def test_register_and_me(client):
    r = client.post("/auth/register", json={"email": "U1@example.com", "password": "password123"})
    assert r.status_code == 201, r.text
    body = r.json()
    token = body["access_token"]
    assert token
    assert body["user"]["username"] == "u1"  # defaults to the email local part
    assert body["user"]["provider"] == "local"

    r2 = client.get("/me", headers=auth_header(token))
    assert r2.status_code == 200, r2.text
    assert r2.json()["email"] == "u1@example.com"


def test_register_duplicate_email_409(client):
    r1 = client.post("/auth/register", json={"email": "dup@example.com", "password": "password123"})
    assert r1.status_code == 201

    r2 = client.post("/auth/register", json={"email": "dup@example.com", "password": "password123"})
    assert r2.status_code == 409


def test_register_short_password_422(client):
    r = client.post("/auth/register", json={"email": "short@example.com", "password": "12345"})
    assert r.status_code == 422


def test_login_invalid_credentials_401(client):
    r = client.post("/auth/token", data={"username": "nope@example.com", "password": "password123"})
    assert r.status_code == 401


def test_login_json_and_form(client):
    client.post("/auth/register", json={"email": "u2@example.com", "password": "password123", "username": "viajera"})

    r = client.post("/auth/login", json={"email": "u2@example.com", "password": "password123"})
    assert r.status_code == 200, r.text
    assert r.json()["user"]["username"] == "viajera"

    r = client.post("/auth/token", data={"username": "u2@example.com", "password": "password123"})
    assert r.status_code == 200, r.text
    assert "access_token" in r.json()


def test_auth_profile_joins_profile_fields(client):
    r = client.post("/auth/register", json={"email": "p@example.com", "password": "password123"})
    token = r.json()["access_token"]

    r = client.get("/auth/profile", headers=auth_header(token))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["email"] == "p@example.com"
    assert body["full_name"] is None


def test_invalid_token_401(client):
    r = client.get("/me", headers=auth_header("not-a-jwt"))
    assert r.status_code == 401


def test_rate_limit_on_login(client):
    limiter.reset()

    for _ in range(10):
        r = client.post("/auth/token", data={"username": "x@example.com", "password": "wrongpass"})
        assert r.status_code == 401

    r = client.post("/auth/token", data={"username": "x@example.com", "password": "wrongpass"})
    assert r.status_code == 429, r.text
    assert "Retry-After" in r.headers


def test_oauth_config_reports_missing_google(client):
    r = client.get("/auth/config")
    assert r.status_code == 200
    assert r.json()["google_configured"] is False

    r = client.get("/auth/google", follow_redirects=False)
    assert r.status_code == 503


def test_google_callback_rejects_state_mismatch(client):
    r = client.get("/auth/google/callback", params={"code": "abc", "state": "forged"}, follow_redirects=False)
    assert r.status_code == 302
    assert "error=google_auth_failed" in r.headers["location"]
