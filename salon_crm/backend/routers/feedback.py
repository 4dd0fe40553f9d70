"""Public feedback form submission."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from salon_crm.backend.deps import get_db
from salon_crm.backend.services.feedback import submit_feedback

router = APIRouter()


class FeedbackSubmitRequest(BaseModel):
    rating: int | None = None
    comment: str | None = None
    review_link_clicked: bool | None = Field(None, alias="reviewLinkClicked")


@router.post("/{feedback_id}/submit")
def feedback_submit(feedback_id: str, payload: FeedbackSubmitRequest, db: Session = Depends(get_db)):
    try:
        return submit_feedback(
            db,
            feedback_id,
            payload.rating,
            comment=payload.comment,
            review_link_clicked=payload.review_link_clicked,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
