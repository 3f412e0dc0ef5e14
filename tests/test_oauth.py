import pytest

from turismo.models.users import User
from turismo.services.oauth import GoogleIdentity, OAuthError, find_or_create_google_user

from conftest import make_user


def _identity(**overrides):
    data = dict(
        provider_id="google-123",
        email="traveller@example.com",
        name="Ana Viajera",
        picture="https://example.com/a.png",
        email_verified=True,
    )
    data.update(overrides)
    return GoogleIdentity(**data)


def test_creates_account_with_profile(db):
    user = find_or_create_google_user(db, _identity())

    assert user.provider == "google"
    assert user.password_hash is None
    assert user.is_verified is True
    assert user.profile.full_name == "Ana Viajera"


def test_links_existing_email_account(db):
    existing = make_user(db, "traveller@example.com")

    user = find_or_create_google_user(db, _identity())

    assert user.id == existing.id
    assert user.provider_id == "google-123"
    assert db.query(User).count() == 1


def test_unverified_email_does_not_link_existing_account(db):
    existing = make_user(db, "traveller@example.com")

    with pytest.raises(OAuthError):
        find_or_create_google_user(db, _identity(email_verified=False))

    db.refresh(existing)
    assert existing.provider_id is None
    assert db.query(User).count() == 1


def test_unverified_email_creates_new_account(db):
    user = find_or_create_google_user(db, _identity(email="nuevo@example.com", email_verified=False))

    assert user.provider == "google"
    assert user.is_verified is False


def test_second_login_reuses_account(db):
    first = find_or_create_google_user(db, _identity())
    second = find_or_create_google_user(db, _identity(name="Renamed"))
    assert first.id == second.id


def test_google_callback_logs_in(client, monkeypatch):
    async def fake_identity(code):
        assert code == "good-code"
        return _identity()

    monkeypatch.setattr("turismo.routers.auth.fetch_google_identity", fake_identity)
    client.cookies.set("oauth_state", "s1")

    r = client.get("/auth/google/callback", params={"code": "good-code", "state": "s1"}, follow_redirects=False)

    assert r.status_code == 302, r.text
    location = r.headers["location"]
    assert "/oauth-callback?" in location
    assert "token=" in location


def test_google_callback_unverified_email_redirects_with_error(client, db, monkeypatch):
    make_user(db, "traveller@example.com")

    async def fake_identity(code):
        return _identity(email_verified=False)

    monkeypatch.setattr("turismo.routers.auth.fetch_google_identity", fake_identity)
    client.cookies.set("oauth_state", "s1")

    r = client.get("/auth/google/callback", params={"code": "c", "state": "s1"}, follow_redirects=False)

    assert r.status_code == 302
    assert "error=google_auth_failed" in r.headers["location"]
    assert "token=" not in r.headers["location"]
