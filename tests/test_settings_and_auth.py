"""Owner login and business-rules endpoints."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from salon_crm.backend.main import app
from salon_crm.backend.deps import get_db
from salon_crm.backend.database import Base, get_test_engine
from salon_crm.backend.auth import ROLE_STAFF, create_session_token, decode_token
from salon_crm.backend.config import get_settings

client = TestClient(app)


@pytest.fixture
def test_db_session():
    engine = get_test_engine()
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def override_get_db(test_db_session):
    def _get_db():
        try:
            yield test_db_session
        finally:
            pass
    return _get_db


def _owner_token():
    r = client.post("/v1/auth/owner/login", json={"password": get_settings().owner_password})
    assert r.status_code == 200
    return r.json()["access_token"]


def test_login():
    token = _owner_token()
    assert decode_token(token)["role"] == "owner"
    assert client.post("/v1/auth/owner/login", json={"password": "wrong"}).status_code == 401
    r = client.post("/v1/auth/staff/login", json={"pin": get_settings().frontdesk_pin})
    assert r.status_code == 200
    assert r.json()["role"] == "staff"


@pytest.mark.timeout(10)
def test_settings_roundtrip(test_db_session, override_get_db):
    app.dependency_overrides[get_db] = override_get_db
    headers = {"Authorization": f"Bearer {_owner_token()}"}
    try:
        r = client.get("/v1/settings", headers=headers)
        assert r.status_code == 200
        assert r.json()["settings"]["feedback_delay_minutes"] == 30

        r = client.put("/v1/settings", json={"feedback_delay_minutes": 45}, headers=headers)
        assert r.status_code == 200
        assert r.json()["settings"]["feedback_delay_minutes"] == 45

        r = client.put("/v1/settings", json={"low_rating_threshold": 12}, headers=headers)
        assert r.status_code == 400
        assert client.get("/v1/settings", headers=headers).json()["settings"]["low_rating_threshold"] == 6
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.mark.timeout(10)
def test_settings_owner_only(test_db_session, override_get_db):
    app.dependency_overrides[get_db] = override_get_db
    try:
        staff = {"Authorization": f"Bearer {create_session_token(ROLE_STAFF)}"}
        assert client.get("/v1/settings", headers=staff).status_code == 403
        assert client.get("/v1/settings").status_code == 401
    finally:
        app.dependency_overrides.pop(get_db, None)
