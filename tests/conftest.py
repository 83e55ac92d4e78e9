import os
import re

os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth_service.app import app
from auth_service.database import get_db, init_db
from auth_service.sms import SmsResult


class FakeSmsGateway:
    def __init__(self):
        self.sent = []
        self.result = SmsResult(success=True, sid="SM-test")

    def send(self, to, body):
        self.sent.append((to, body))
        return self.result

    def last_code(self):
        return re.search(r"\d{6}", self.sent[-1][1]).group(0)


class StubYoutubeClient:
    def __init__(self):
        self.playlists = {}
        self.requested = []

    def fetch_playlist_details(self, playlist_id):
        self.requested.append(playlist_id)
        return self.playlists.get(playlist_id)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sms():
    return FakeSmsGateway()


@pytest.fixture
def youtube():
    return StubYoutubeClient()


@pytest.fixture
def client(session_factory, sms, youtube):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.sms_gateway = sms
    app.state.youtube_client = youtube
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.sms_gateway = None
    app.state.youtube_client = None


def sign_in(client, sms, phone="+15551234567", name="Alice"):
    resp = client.post("/auth/register", json={"phone": phone, "name": name})
    assert resp.status_code == 200, resp.json()
    user_id = resp.json()["userId"]
    resp = client.post("/auth/verify-otp", json={"userId": user_id, "otp": sms.last_code()})
    assert resp.status_code == 200, resp.json()
    return user_id


@pytest.fixture
def signed_in(client, sms):
    user_id = sign_in(client, sms)
    return client, user_id
