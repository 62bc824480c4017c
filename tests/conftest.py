import os
import re

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["COOKIE_SECURE"] = "false"
os.environ["RESEND_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.db import Base, get_db
from app.core.errors import NotFoundError
from app.main import app
from app.services.files import UploadedFile
from app.services.mailer import get_mailer
from app.services.storage import get_storage


class FakeStorage:
    """In-memory stand-in for the blob container."""

    def __init__(self):
        self.blobs = {}
        self.removed = []
        self.fail_remove = False
        self._counter = 0

    def upload(self, data, folder, filename, content_type=None):
        self._counter += 1
        blob_filename = f"{self._counter}-{filename}"
        self.blobs[f"{folder}/{blob_filename}"] = data
        return UploadedFile(
            destination=folder,
            filename=blob_filename,
            mimetype=content_type or "application/octet-stream",
            size=len(data),
        )

    def url_for(self, path):
        return f"https://blobs.test/{path}"

    def download(self, path):
        if path not in self.blobs:
            raise NotFoundError("File not found")
        return self.blobs[path]

    def remove(self, public_id):
        if not public_id:
            return
        if self.fail_remove:
            raise RuntimeError("storage unavailable")
        self.removed.append(public_id)
        self.blobs.pop(public_id, None)


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to, subject, body):
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "body": body})
        return True

    def last_token(self):
        """Plain token embedded in the most recent verification link."""
        pattern = re.escape(settings.VERIFY_EMAIL_URL) + r"/([0-9a-f]+)"
        for message in reversed(self.sent):
            match = re.search(pattern, message["body"])
            if match:
                return match.group(1)
        return None


@pytest.fixture(scope="session")
def engine():
    """A persistent in-memory SQLite engine for the test session."""
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture
def tables(engine):
    """Fresh tables per test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine, tables):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(db_session, storage, mailer):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_mailer] = lambda: mailer

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def user_data():
    return {"username": "alice", "email": "alice@test.com", "password": "secret123"}


@pytest.fixture
def second_user_data():
    return {"username": "bob", "email": "bob@test.com", "password": "hunter222"}


def register_verify_login(client, mailer, username, email, password):
    """Register, confirm the emailed token and log in. Returns auth headers."""
    r1 = client.post("/api/users/register", json={"username": username, "email": email, "password": password})
    assert r1.status_code == 201, r1.text

    r2 = client.get(f"/api/users/verify/{mailer.last_token()}")
    assert r2.status_code == 200, r2.text

    r3 = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r3.status_code == 200, r3.text
    return {"Authorization": f"Bearer {r3.json()['accessToken']}"}


@pytest.fixture
def auth_header(client, mailer, user_data):
    return register_verify_login(client, mailer, **user_data)


@pytest.fixture
def second_auth_header(client, mailer, second_user_data):
    return register_verify_login(client, mailer, **second_user_data)


@pytest.fixture
def me(client, auth_header):
    r = client.get("/api/users", headers=auth_header)
    assert r.status_code == 200
    return r.json()
