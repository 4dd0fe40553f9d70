"""Redis run lock around send-pending runs: SET NX EX per kind, owner-only release."""
from datetime import datetime, timedelta

import pytest
import redis
from sqlalchemy.orm import sessionmaker

from salon_crm.backend.database import Base, get_test_engine
from salon_crm.backend.models.customer import Customer, Service, Visit
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.services import pending_messages
from salon_crm.backend.services.pending_messages import (
    acquire_run_lock,
    lock_ttl_seconds,
    release_run_lock,
    send_pending_feedback,
)

FEEDBACK_LOCK = "dispatch:feedback:lock"


class FakeRedisServer:
    """Keys shared by every client built during a test."""

    def __init__(self):
        self.keys = {}
        self.set_calls = []


class FakeRedis:
    def __init__(self, server):
        self.server = server

    def set(self, key, value, nx=False, ex=None):
        self.server.set_calls.append((key, nx, ex))
        if nx and key in self.server.keys:
            return None
        self.server.keys[key] = value
        return True

    def eval(self, script, numkeys, key, token):
        assert numkeys == 1
        if self.server.keys.get(key) == token:
            del self.server.keys[key]
            return 1
        return 0


class UnreachableRedis:
    def __init__(self, *args, **kwargs):
        pass

    def set(self, *args, **kwargs):
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def eval(self, *args, **kwargs):
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


class RecordingTransport:
    def __init__(self):
        self.calls = []

    def send(self, destination, body):
        self.calls.append((destination, body))
        return f"SM{len(self.calls):04d}"


@pytest.fixture
def server(monkeypatch):
    srv = FakeRedisServer()
    monkeypatch.setattr(redis, "Redis", lambda *args, **kwargs: FakeRedis(srv))
    return srv


@pytest.fixture
def test_db_session():
    engine = get_test_engine()
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    db.add(Service(id="gel-manicure", name="Gel Manicure", category="manicure", base_price=45))
    customer = Customer(phone="+15556660001", name="Rosa Diaz")
    db.add(customer)
    db.flush()
    checkout = datetime.utcnow() - timedelta(hours=1)
    visit = Visit(
        customer_id=customer.id,
        service_id="gel-manicure",
        appointment_time=checkout,
        checkout_time=checkout,
        price_charged=45,
    )
    db.add(visit)
    db.flush()
    db.add(FeedbackRequest(visit_id=visit.id, status="pending", created_at=checkout))
    db.commit()
    try:
        yield db
    finally:
        db.close()


def test_lock_is_set_nx_with_ttl_per_kind(server):
    token = acquire_run_lock("feedback")
    assert token
    assert server.keys[FEEDBACK_LOCK] == token
    assert server.set_calls == [(FEEDBACK_LOCK, True, lock_ttl_seconds())]

    # a different kind has its own lock
    assert acquire_run_lock("winback")
    assert acquire_run_lock("feedback") is None


def test_ttl_outlives_a_full_batch_of_transport_timeouts(monkeypatch):
    class StubSettings:
        dispatch_batch_limit = 500
        twilio_timeout_seconds = 10
        dispatch_lock_ttl_seconds = 300

    monkeypatch.setattr(pending_messages, "get_settings", lambda: StubSettings())
    assert lock_ttl_seconds() >= 500 * 10


def test_release_only_deletes_own_lock(server):
    first = acquire_run_lock("feedback")
    # first run's key expires mid-run and a second run takes over
    del server.keys[FEEDBACK_LOCK]
    second = acquire_run_lock("feedback")
    assert second and second != first

    release_run_lock("feedback", first)
    assert server.keys[FEEDBACK_LOCK] == second
    assert acquire_run_lock("feedback") is None

    release_run_lock("feedback", second)
    assert FEEDBACK_LOCK not in server.keys


@pytest.mark.timeout(10)
def test_run_releases_lock_when_done(server, test_db_session):
    transport = RecordingTransport()
    summary = send_pending_feedback(test_db_session, transport)
    assert summary.sent_count == 1
    assert len(transport.calls) == 1
    assert FEEDBACK_LOCK not in server.keys


@pytest.mark.timeout(10)
def test_run_is_skipped_while_lock_is_held(server, test_db_session):
    server.keys[FEEDBACK_LOCK] = "other-run"
    transport = RecordingTransport()

    summary = send_pending_feedback(test_db_session, transport)
    assert summary.skipped == "lock_not_acquired"
    assert summary.as_response() == {
        "success": True,
        "sentCount": 0,
        "failedCount": 0,
        "totalProcessed": 0,
        "skipped": "lock_not_acquired",
    }
    assert transport.calls == []
    assert server.keys[FEEDBACK_LOCK] == "other-run"
    assert test_db_session.query(FeedbackRequest).one().status == "pending"


@pytest.mark.timeout(10)
def test_run_proceeds_when_redis_is_unreachable(monkeypatch, test_db_session):
    monkeypatch.setattr(redis, "Redis", UnreachableRedis)
    transport = RecordingTransport()

    summary = send_pending_feedback(test_db_session, transport)
    assert summary.skipped is None
    assert summary.sent_count == 1
    assert len(transport.calls) == 1
