"""Owner-editable business rules (from DB, not .env).

These values drive automation globally: when feedback SMS go out, which
ratings become issues, who gets review links and how winback campaigns pick
customers. Stored as one JSON row in app_settings and merged over DEFAULTS on
read, so keys added later always have a value.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session
from sqlalchemy import select

from salon_crm.backend.config import get_settings
from salon_crm.backend.models.app_setting import AppSetting

logger = logging.getLogger(__name__)

KEY = "business_rules"

DEFAULTS = {
    "feedback_delay_minutes": 30,
    "low_rating_threshold": 6,
    "promoter_threshold": 9,
    "winback_inactive_days": 60,
    "winback_cooldown_days": 30,
    "google_review_url": "https://g.page/r/YOUR_GOOGLE_PLACE_ID/review",
    "yelp_review_url": "https://www.yelp.com/writeareview/biz/YOUR_YELP_BIZ_ID",
    "average_ticket_price": 50,
    "default_booking_url": "",
}

INT_KEYS = (
    "feedback_delay_minutes",
    "low_rating_threshold",
    "promoter_threshold",
    "winback_inactive_days",
    "winback_cooldown_days",
    "average_ticket_price",
)


@dataclass(frozen=True)
class DispatchConfig:
    """Snapshot of everything a dispatch run reads, taken once per run."""

    feedback_delay_minutes: int = 30
    public_base_url: str = "http://localhost:8000"
    default_booking_url: str = ""
    salon_name: str = "G Nail Pines"
    batch_limit: int = 500

    @property
    def booking_url_fallback(self) -> str:
        if self.default_booking_url:
            return self.default_booking_url
        return f"{self.public_base_url.rstrip('/')}/book"


def get_business_settings(db: Session) -> dict[str, Any]:
    """Return current business rules merged with defaults."""
    row = db.execute(select(AppSetting).where(AppSetting.key == KEY)).scalar_one_or_none()
    if not row:
        return dict(DEFAULTS)
    raw = row.value_json
    if not isinstance(raw, dict):
        logger.warning("business_settings malformed value, using defaults: %r", raw)
        return dict(DEFAULTS)
    out = dict(DEFAULTS)
    for k in DEFAULTS:
        if k in raw:
            out[k] = raw[k]
    return out


def validate_business_settings(values: dict[str, Any]) -> None:
    if values["feedback_delay_minutes"] < 0:
        raise ValueError("Feedback delay must be non-negative")
    if not 0 <= values["low_rating_threshold"] <= 10:
        raise ValueError("Low rating threshold must be between 0 and 10")
    if not 0 <= values["promoter_threshold"] <= 10:
        raise ValueError("Promoter threshold must be between 0 and 10")
    if values["winback_inactive_days"] < 1:
        raise ValueError("Winback inactive days must be at least 1")
    if values["winback_cooldown_days"] < 0:
        raise ValueError("Winback cooldown days must be non-negative")
    if values["average_ticket_price"] < 0:
        raise ValueError("Average ticket price must be non-negative")


def put_business_settings(db: Session, payload: dict[str, Any], updated_by: str | None = None) -> dict[str, Any]:
    """Validate and save business rules. Raises ValueError on invalid values."""
    merged = get_business_settings(db)
    for k, v in payload.items():
        if k not in DEFAULTS or v is None:
            continue
        if k in INT_KEYS:
            try:
                merged[k] = int(v)
            except (TypeError, ValueError):
                raise ValueError(f"{k} must be a number")
        else:
            merged[k] = str(v).strip()
    validate_business_settings(merged)
    row = db.execute(select(AppSetting).where(AppSetting.key == KEY)).scalar_one_or_none()
    if row:
        row.value_json = merged
        row.updated_at = datetime.utcnow()
        row.updated_by = updated_by
    else:
        db.add(AppSetting(key=KEY, value_json=merged, updated_at=datetime.utcnow(), updated_by=updated_by))
    db.commit()
    return merged


def load_dispatch_config(db: Session) -> DispatchConfig:
    s = get_settings()
    rules = get_business_settings(db)
    try:
        delay = max(0, int(rules["feedback_delay_minutes"]))
    except (TypeError, ValueError):
        logger.warning("business_settings bad feedback_delay_minutes=%r", rules["feedback_delay_minutes"])
        delay = DEFAULTS["feedback_delay_minutes"]
    return DispatchConfig(
        feedback_delay_minutes=delay,
        public_base_url=s.public_base_url,
        default_booking_url=(rules.get("default_booking_url") or "").strip(),
        salon_name=s.salon_name,
        batch_limit=max(1, int(s.dispatch_batch_limit or 500)),
    )
