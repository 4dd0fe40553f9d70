"""RQ job wrappers run against their own session."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from salon_crm.backend import database
from salon_crm.backend.database import Base, get_test_engine
from salon_crm.backend.models.customer import Customer, Service, Visit
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.models.issue import Issue
from salon_crm.backend.services import issues as issues_service
from salon_crm.backend.services import pending_messages
from salon_crm.worker import jobs


class RecordingTransport:
    def __init__(self):
        self.calls = []

    def send(self, destination, body):
        self.calls.append((destination, body))
        return f"SM{len(self.calls):04d}"


@pytest.fixture
def factory(monkeypatch):
    engine = get_test_engine()
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    monkeypatch.setattr(database, "get_session_factory", lambda: SessionLocal)
    return SessionLocal


def _rated_feedback(SessionLocal, rating):
    with SessionLocal() as db:
        db.add(Service(id="acrylic-fill", name="Acrylic Fill", category="enhancements", base_price=40))
        customer = Customer(phone="+15553330001", name="Lee Park")
        db.add(customer)
        db.flush()
        checkout = datetime.utcnow() - timedelta(hours=2)
        visit = Visit(
            customer_id=customer.id,
            service_id="acrylic-fill",
            appointment_time=checkout,
            checkout_time=checkout,
            price_charged=40,
        )
        db.add(visit)
        db.flush()
        fb = FeedbackRequest(
            visit_id=visit.id,
            status="sent",
            rating=rating,
            comment="Polish chipped the next day",
            responded_at=datetime.utcnow(),
        )
        db.add(fb)
        db.commit()
        return fb.id


@pytest.mark.timeout(10)
def test_send_pending_feedback_job(factory, monkeypatch):
    transport = RecordingTransport()
    monkeypatch.setattr(pending_messages, "get_transport", lambda: transport)
    monkeypatch.setattr(pending_messages, "acquire_run_lock", lambda kind: "run-token")
    monkeypatch.setattr(pending_messages, "release_run_lock", lambda kind, token: None)
    _rated_feedback(factory, None)
    with factory() as db:
        db.query(FeedbackRequest).update({"status": "pending"})
        db.commit()

    result = jobs.send_pending_feedback()
    assert result == {"success": True, "sentCount": 1, "failedCount": 0, "totalProcessed": 1}
    assert transport.calls[0][0] == "+15553330001"


@pytest.mark.timeout(10)
def test_classify_feedback_job_opens_issue(factory, monkeypatch):
    fid = _rated_feedback(factory, 2)
    monkeypatch.setattr(
        issues_service,
        "classify",
        lambda text, rating: issues_service.IssueClassification(
            is_issue=True, severity="high", category="service_quality", summary="Polish chipped"
        ),
    )
    assert jobs.classify_feedback(fid) is True
    with factory() as db:
        issue = db.query(Issue).one()
        assert issue.feedback_request_id == fid
        assert issue.severity == "high"
