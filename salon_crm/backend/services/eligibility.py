"""Send-time eligibility and due-window rules for pending messages.

Rules run when the job picks the message up, not when the message was created:
opt-in and campaign state can change in between. Each check returns the
failure reason of the first rule that does not hold, or None.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from salon_crm.backend.services.business_settings import DispatchConfig

REASON_CAMPAIGN_INACTIVE = "campaign_inactive"
REASON_OPTED_OUT = "opted_out"
REASON_NO_DESTINATION = "no_destination"


def has_destination(customer) -> bool:
    return bool(customer is not None and (customer.phone or "").strip())


def feedback_due_cutoff(now: datetime, config: DispatchConfig) -> datetime:
    """Visits checked out at or before this moment are due for a feedback request."""
    return now - timedelta(minutes=max(0, config.feedback_delay_minutes))


def is_feedback_due(checkout_time: datetime | None, now: datetime, config: DispatchConfig) -> bool:
    if checkout_time is None:
        return False
    return checkout_time <= feedback_due_cutoff(now, config)


def feedback_ineligibility(customer) -> str | None:
    # Feedback follows a visit the customer just had, so it is not opt-in gated.
    if not has_destination(customer):
        return REASON_NO_DESTINATION
    return None


def winback_ineligibility(campaign, customer) -> str | None:
    if campaign is None or not campaign.active:
        return REASON_CAMPAIGN_INACTIVE
    if customer is None or not customer.marketing_opt_in:
        return REASON_OPTED_OUT
    if not has_destination(customer):
        return REASON_NO_DESTINATION
    return None
