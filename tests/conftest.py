import os
import tempfile
from pathlib import Path

_tmpdir = Path(tempfile.mkdtemp(prefix="turismo_test_"))
_db_path = _tmpdir / "test.db"

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_path.as_posix()}")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", str(_tmpdir / "uploads"))
os.environ.setdefault("LOG_DIR", str(_tmpdir / "logs"))
os.environ.setdefault("GOOGLE_CLIENT_ID", "")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "")

import pytest
from fastapi.testclient import TestClient

from turismo.core.rate_limit import limiter
from turismo.db.base import Base
from turismo.db.session import engine, SessionLocal
from turismo.main import create_app
from turismo.models.places import Place
from turismo.models.users import User


@pytest.fixture()
def clean_db():
    limiter.reset()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(clean_db):
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(clean_db):
    app = create_app()
    with TestClient(app) as c:
        yield c


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client, email: str = "user@example.com", password: str = "password123") -> tuple[str, str]:
    """Register through the API; returns (token, user_id)."""
    r = client.post("/auth/register", json={"email": email, "password": password})
    assert r.status_code == 201, r.text
    body = r.json()
    return body["access_token"], body["user"]["id"]


def make_user(db, email: str) -> User:
    user = User(email=email, username=email.split("@")[0], password_hash=None)
    db.add(user)
    db.commit()
    return user


def make_place(db, name: str = "Cascada El Salto", **fields) -> Place:
    place = Place(name=name, **fields)
    db.add(place)
    db.commit()
    return place
