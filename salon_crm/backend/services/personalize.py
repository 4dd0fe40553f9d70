"""Message bodies for feedback requests and winback messages."""
from __future__ import annotations

import re

GENERIC_FIRST_NAME = "there"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def first_name_of(name: str | None) -> str:
    parts = (name or "").split()
    return parts[0] if parts else GENERIC_FIRST_NAME


def feedback_url(public_base_url: str, feedback_request_id: str) -> str:
    return f"{(public_base_url or '').rstrip('/')}/feedback/{feedback_request_id}"


def render_feedback_message(customer_name: str | None, url: str, salon_name: str) -> str:
    return (
        f"Hi {first_name_of(customer_name)}! Thank you for visiting {salon_name}. "
        f"We'd love to hear about your experience today. "
        f"Please take a moment to share your feedback: {url}"
    )


def render_winback_message(
    template: str,
    customer_name: str | None,
    booking_link: str,
    days_since_last_visit: int,
) -> str:
    """Substitute {{firstName}}, {{bookingLink}} and {{daysSinceLastVisit}}.

    Unknown placeholders are left as written.
    """
    values = {
        "firstName": first_name_of(customer_name),
        "bookingLink": booking_link,
        "daysSinceLastVisit": str(max(0, int(days_since_last_visit))),
    }

    def _sub(m: re.Match) -> str:
        return values.get(m.group(1), m.group(0))

    return _PLACEHOLDER_RE.sub(_sub, template or "")
