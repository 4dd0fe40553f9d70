"""Front-desk check-in."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from salon_crm.backend.auth import get_current_session
from salon_crm.backend.deps import get_db
from salon_crm.backend.services.checkin import check_in

router = APIRouter(dependencies=[Depends(get_current_session)])


class CheckinRequest(BaseModel):
    phone: str
    service_id: str = Field(alias="serviceId")
    price_charged: int = Field(alias="priceCharged")
    name: str | None = None
    email: str | None = None
    staff_name: str | None = Field(None, alias="staffName")


@router.post("")
def create_checkin(payload: CheckinRequest, db: Session = Depends(get_db)):
    try:
        customer, visit, feedback = check_in(
            db,
            phone=payload.phone,
            service_id=payload.service_id,
            price_charged=payload.price_charged,
            name=payload.name,
            email=payload.email,
            staff_name=payload.staff_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "customer": {"id": customer.id, "name": customer.name, "phone": customer.phone},
        "visit": {
            "id": visit.id,
            "serviceId": visit.service_id,
            "checkoutTime": visit.checkout_time.isoformat(),
            "priceCharged": visit.price_charged,
        },
        "feedbackRequestId": feedback.id,
    }
