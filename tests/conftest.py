"""
CloudVault test suite: shared fixtures.

Run:  pytest tests/ -v
"""

import os
import tempfile
from datetime import timedelta

# Settings are read at import time; keep the suite away from ./cloudvault.db
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="cloudvault-test-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cloudvault import crud
from cloudvault.api import deps
from cloudvault.core import security
from cloudvault.db.base import Base
from cloudvault.db.session import create_db_engine
from cloudvault.main import app
from cloudvault.storage.object_store import LocalObjectStore


engine = create_db_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(tmp_path):
    return LocalObjectStore(
        [str(tmp_path / "disk1"), str(tmp_path / "disk2")],
        base_url="http://testserver/api/v1",
    )


@pytest.fixture
def client(store):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def issue_token(subject: str, email: str = None, expires_delta: timedelta = timedelta(days=7)) -> str:
    # Same claims the identity provider puts in its access tokens
    return security.create_token({"sub": subject, "email": email}, expires_delta)


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "u1", email: str = None):
        token = issue_token(user_id, email or f"{user_id}@example.com")
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_user(db):
    def _make(user_id: str = "u1", quota_bytes: int = 10_000, used_bytes: int = 0):
        user = crud.user.get_or_create(db, id=user_id, email=f"{user_id}@example.com")
        return crud.user.update(db, db_obj=user, obj_in={"quota_bytes": quota_bytes, "used_bytes": used_bytes})
    return _make
