"""Feedback-request and winback send-pending jobs."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime

import redis
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from salon_crm.backend.config import get_settings
from salon_crm.backend.models.customer import Visit
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.models.winback import WinbackMessage
from salon_crm.backend.services.business_settings import DispatchConfig, load_dispatch_config
from salon_crm.backend.services.dispatcher import (
    STATUS_PENDING,
    Dispatcher,
    DispatchSummary,
    MessageKind,
    OutboundSms,
)
from salon_crm.backend.services.eligibility import (
    feedback_due_cutoff,
    feedback_ineligibility,
    winback_ineligibility,
)
from salon_crm.backend.services.personalize import (
    feedback_url,
    render_feedback_message,
    render_winback_message,
)
from salon_crm.backend.services.transport import SmsTransport, get_transport

logger = logging.getLogger(__name__)

_LOCK_KEY = "dispatch:{kind}:lock"


# --- feedback ---------------------------------------------------------------

def select_due_feedback(db: Session, now: datetime, config: DispatchConfig) -> list[FeedbackRequest]:
    cutoff = feedback_due_cutoff(now, config)
    q = (
        select(FeedbackRequest)
        .join(Visit, FeedbackRequest.visit_id == Visit.id)
        .where(
            FeedbackRequest.status == STATUS_PENDING,
            FeedbackRequest.sent_at.is_(None),
            Visit.checkout_time.is_not(None),
            Visit.checkout_time <= cutoff,
        )
        .options(joinedload(FeedbackRequest.visit).joinedload(Visit.customer))
        .order_by(Visit.checkout_time.asc(), FeedbackRequest.created_at.asc())
        .limit(config.batch_limit)
    )
    return list(db.execute(q).scalars().all())


def _feedback_customer(req: FeedbackRequest):
    return req.visit.customer if req.visit is not None else None


def check_feedback(req: FeedbackRequest) -> str | None:
    return feedback_ineligibility(_feedback_customer(req))


def render_feedback(db: Session, req: FeedbackRequest, now: datetime, config: DispatchConfig) -> OutboundSms:
    customer = _feedback_customer(req)
    body = render_feedback_message(
        customer.name,
        feedback_url(config.public_base_url, req.id),
        config.salon_name,
    )
    return OutboundSms(destination=customer.phone.strip(), body=body)


FEEDBACK = MessageKind(
    name="feedback",
    model=FeedbackRequest,
    select_due=select_due_feedback,
    check_eligibility=check_feedback,
    render=render_feedback,
)


# --- winback ----------------------------------------------------------------

def select_due_winback(db: Session, now: datetime, config: DispatchConfig) -> list[WinbackMessage]:
    # The daily evaluation already applied the campaign day-range at creation time.
    q = (
        select(WinbackMessage)
        .where(
            WinbackMessage.status == STATUS_PENDING,
            WinbackMessage.sent_at.is_(None),
        )
        .options(joinedload(WinbackMessage.campaign), joinedload(WinbackMessage.customer))
        .order_by(WinbackMessage.created_at.asc(), WinbackMessage.id.asc())
        .limit(config.batch_limit)
    )
    return list(db.execute(q).scalars().all())


def check_winback(msg: WinbackMessage) -> str | None:
    return winback_ineligibility(msg.campaign, msg.customer)


def _last_visit_at(db: Session, msg: WinbackMessage) -> datetime:
    if msg.last_visit_at is not None:
        return msg.last_visit_at
    last = db.execute(
        select(Visit.checkout_time)
        .where(Visit.customer_id == msg.customer_id, Visit.checkout_time.is_not(None))
        .order_by(Visit.checkout_time.desc())
        .limit(1)
    ).scalar_one_or_none()
    return last or msg.created_at


def render_winback(db: Session, msg: WinbackMessage, now: datetime, config: DispatchConfig) -> OutboundSms:
    campaign = msg.campaign
    customer = msg.customer
    days = (now - _last_visit_at(db, msg)).days
    body = render_winback_message(
        campaign.message_template,
        customer.name,
        (campaign.booking_url or "").strip() or config.booking_url_fallback,
        days,
    )
    return OutboundSms(destination=customer.phone.strip(), body=body)


WINBACK = MessageKind(
    name="winback",
    model=WinbackMessage,
    select_due=select_due_winback,
    check_eligibility=check_winback,
    render=render_winback,
)


# --- runs -------------------------------------------------------------------

# Delete the lock only if it still holds this run's token; an expired lock may
# already belong to the next run.
_RELEASE_IF_OWNER = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def _redis() -> redis.Redis:
    s = get_settings()
    return redis.Redis(host=s.redis_host, port=s.redis_port, socket_connect_timeout=2)


def lock_ttl_seconds() -> int:
    """Covers a full batch of transport timeouts so the lock outlives the run."""
    s = get_settings()
    worst_case = int(s.dispatch_batch_limit or 500) * int(s.twilio_timeout_seconds or 10) + 60
    return max(30, int(s.dispatch_lock_ttl_seconds or 300), worst_case)


def acquire_run_lock(kind: str) -> str | None:
    """Token for this run, or None when another run of the same kind holds the lock.

    Redis down -> run anyway; the conditional status write still applies.
    """
    token = uuid.uuid4().hex
    try:
        acquired = _redis().set(_LOCK_KEY.format(kind=kind), token, nx=True, ex=lock_ttl_seconds())
    except redis.RedisError:
        logger.exception("dispatch_lock_unavailable kind=%s", kind)
        return token
    return token if acquired else None


def release_run_lock(kind: str, token: str) -> None:
    try:
        released = _redis().eval(_RELEASE_IF_OWNER, 1, _LOCK_KEY.format(kind=kind), token)
    except redis.RedisError:
        logger.exception("dispatch_lock_release_failed kind=%s", kind)
        return
    if not released:
        logger.warning("dispatch_lock kind=%s expired before release, left to its current holder", kind)


def run_dispatch(db: Session, kind: MessageKind, transport: SmsTransport | None = None) -> DispatchSummary:
    token = acquire_run_lock(kind.name)
    if token is None:
        logger.info("dispatch kind=%s skipped: lock_not_acquired", kind.name)
        return DispatchSummary(kind=kind.name, skipped="lock_not_acquired")
    try:
        config = load_dispatch_config(db)
        dispatcher = Dispatcher(db, kind, transport or get_transport(), config)
        return dispatcher.run()
    finally:
        release_run_lock(kind.name, token)


def send_pending_feedback(db: Session, transport: SmsTransport | None = None) -> DispatchSummary:
    return run_dispatch(db, FEEDBACK, transport)


def send_pending_winback(db: Session, transport: SmsTransport | None = None) -> DispatchSummary:
    return run_dispatch(db, WINBACK, transport)
