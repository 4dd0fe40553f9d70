"""Owner: business rules."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from salon_crm.backend.auth import require_owner
from salon_crm.backend.deps import get_db
from salon_crm.backend.services.business_settings import (
    DEFAULTS,
    get_business_settings,
    put_business_settings,
)

router = APIRouter(dependencies=[Depends(require_owner)])


class BusinessSettingsUpdate(BaseModel):
    feedback_delay_minutes: int | None = Field(None, ge=0)
    low_rating_threshold: int | None = None
    promoter_threshold: int | None = None
    winback_inactive_days: int | None = None
    winback_cooldown_days: int | None = None
    google_review_url: str | None = None
    yelp_review_url: str | None = None
    average_ticket_price: int | None = None
    default_booking_url: str | None = None


@router.get("")
def get_settings_endpoint(db: Session = Depends(get_db)):
    return {"settings": get_business_settings(db), "defaults": dict(DEFAULTS)}


@router.put("")
def put_settings_endpoint(
    payload: BusinessSettingsUpdate,
    db: Session = Depends(get_db),
    session: dict = Depends(require_owner),
):
    raw = payload.model_dump(exclude_none=True)
    if not raw:
        return {"settings": get_business_settings(db), "defaults": dict(DEFAULTS)}
    try:
        merged = put_business_settings(db, raw, updated_by=session.get("role"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"settings": merged, "defaults": dict(DEFAULTS)}
