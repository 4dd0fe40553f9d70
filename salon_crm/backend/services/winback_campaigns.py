"""Daily winback evaluation: creates pending winback messages."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from salon_crm.backend.models.customer import Customer, Visit
from salon_crm.backend.models.winback import WinbackCampaign, WinbackMessage
from salon_crm.backend.services.business_settings import get_business_settings
from salon_crm.backend.services.dispatcher import STATUS_PENDING, STATUS_SENT

logger = logging.getLogger(__name__)


def _last_checkouts(db: Session) -> dict[int, datetime]:
    """customer_id -> most recent checkout, opted-in customers only."""
    rows = db.execute(
        select(Visit.customer_id, func.max(Visit.checkout_time))
        .join(Customer, Customer.id == Visit.customer_id)
        .where(Visit.checkout_time.is_not(None), Customer.marketing_opt_in.is_(True))
        .group_by(Visit.customer_id)
    ).all()
    return {int(cid): last for cid, last in rows if last is not None}


def _recently_messaged(db: Session, since: datetime) -> set[int]:
    """Customers sent a winback since `since`, or with one still waiting to go out."""
    rows = db.execute(
        select(WinbackMessage.customer_id).where(
            or_(
                and_(WinbackMessage.status == STATUS_SENT, WinbackMessage.sent_at >= since),
                WinbackMessage.status == STATUS_PENDING,
            )
        )
    ).scalars().all()
    return {int(cid) for cid in rows}


def evaluate_campaign(
    db: Session,
    campaign: WinbackCampaign,
    now: datetime,
    last_checkouts: dict[int, datetime],
    cooling_down: set[int],
) -> int:
    window_start = now - timedelta(days=campaign.max_days_since_last_visit)
    window_end = now - timedelta(days=campaign.min_days_since_last_visit)
    already = set(
        db.execute(
            select(WinbackMessage.customer_id).where(WinbackMessage.campaign_id == campaign.id)
        ).scalars().all()
    )
    created = 0
    for customer_id, last in last_checkouts.items():
        if not (window_start <= last <= window_end):
            continue
        if customer_id in already:
            continue
        if customer_id in cooling_down:
            logger.debug("winback campaign=%s customer=%s skipped: cooldown", campaign.id, customer_id)
            continue
        db.add(
            WinbackMessage(
                campaign_id=campaign.id,
                customer_id=customer_id,
                status=STATUS_PENDING,
                last_visit_at=last,
                created_at=now,
            )
        )
        # One message per customer per day, even if two campaigns match.
        cooling_down.add(customer_id)
        created += 1
    db.commit()
    return created


def run_daily_winback(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.utcnow()
    rules = get_business_settings(db)
    cooldown_days = max(0, int(rules.get("winback_cooldown_days") or 0))
    campaigns = db.execute(
        select(WinbackCampaign).where(WinbackCampaign.active.is_(True)).order_by(WinbackCampaign.name.asc())
    ).scalars().all()
    last_checkouts = _last_checkouts(db)
    cooling_down = _recently_messaged(db, now - timedelta(days=cooldown_days))
    results = []
    for campaign in campaigns:
        created = evaluate_campaign(db, campaign, now, last_checkouts, cooling_down)
        logger.info("winback campaign=%s name=%s messages_created=%s", campaign.id, campaign.name, created)
        results.append({"campaign_name": campaign.name, "messages_created": created})
    return {
        "success": True,
        "timestamp": now.isoformat(),
        "results": results,
        "total_messages_created": sum(r["messages_created"] for r in results),
    }
