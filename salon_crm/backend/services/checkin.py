"""Front-desk check-in: customer upsert, visit, pending feedback request."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from salon_crm.backend.models.customer import Customer, Service, Visit
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.services.dispatcher import STATUS_PENDING

logger = logging.getLogger(__name__)


def check_in(
    db: Session,
    *,
    phone: str,
    service_id: str,
    price_charged: int,
    name: str | None = None,
    email: str | None = None,
    staff_name: str | None = None,
) -> tuple[Customer, Visit, FeedbackRequest]:
    phone = (phone or "").strip()
    if not phone or not service_id or price_charged is None:
        raise ValueError("Missing required fields: phone, serviceId, priceCharged")
    if int(price_charged) < 0:
        raise ValueError("priceCharged must be non-negative")
    service = db.get(Service, service_id)
    if not service:
        raise ValueError(f"Unknown service: {service_id}")

    customer = db.execute(select(Customer).where(Customer.phone == phone)).scalar_one_or_none()
    if customer:
        if name:
            customer.name = name
        if email:
            customer.email = email
    else:
        customer = Customer(phone=phone, name=name or None, email=email or None, marketing_opt_in=True)
        db.add(customer)
        db.flush()

    now = datetime.utcnow()
    visit = Visit(
        customer_id=customer.id,
        service_id=service.id,
        staff_name=staff_name or None,
        appointment_time=now,
        checkout_time=now,
        price_charged=int(price_charged),
        source="internal-checkin",
    )
    db.add(visit)
    db.flush()
    feedback = FeedbackRequest(visit_id=visit.id, channel="sms", status=STATUS_PENDING, created_at=now)
    db.add(feedback)
    db.commit()
    db.refresh(customer)
    db.refresh(visit)
    db.refresh(feedback)
    logger.info("checkin customer=%s visit=%s feedback_request=%s", customer.id, visit.id, feedback.id)
    return customer, visit, feedback
