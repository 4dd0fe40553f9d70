"""Customer feedback answers."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from salon_crm.backend.config import get_settings
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.services.business_settings import get_business_settings

logger = logging.getLogger(__name__)


def submit_feedback(
    db: Session,
    feedback_id: str,
    rating,
    comment: str | None = None,
    review_link_clicked: bool | None = None,
) -> dict:
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValueError("Rating must be between 1 and 10")
    if rating < 1 or rating > 10:
        raise ValueError("Rating must be between 1 and 10")
    fb = db.get(FeedbackRequest, feedback_id)
    if not fb:
        raise LookupError("Feedback request not found")
    if fb.rating is not None or fb.responded_at is not None:
        raise ValueError("Feedback already completed")

    fb.rating = rating
    fb.comment = (comment or "").strip() or None
    if review_link_clicked is not None:
        fb.review_link_clicked = bool(review_link_clicked)
    fb.responded_at = datetime.utcnow()
    db.commit()
    db.refresh(fb)

    rules = get_business_settings(db)
    is_low = rating <= int(rules["low_rating_threshold"])
    is_promoter = rating >= int(rules["promoter_threshold"])
    if is_low:
        enqueue_issue_classification(fb.id)
    out = {
        "success": True,
        "feedback": {
            "id": fb.id,
            "rating": fb.rating,
            "comment": fb.comment,
            "respondedAt": fb.responded_at.isoformat(),
        },
        "isPromoter": is_promoter,
    }
    if is_promoter:
        out["reviewLinks"] = {
            "google": rules["google_review_url"],
            "yelp": rules["yelp_review_url"],
        }
    return out


def enqueue_issue_classification(feedback_id: str) -> None:
    """Fire-and-forget: the answer is already stored, so a failure here is only logged."""
    try:
        from redis import Redis
        from rq import Queue

        s = get_settings()
        r = Redis(host=s.redis_host, port=s.redis_port)
        q = Queue(s.rq_ai_queue_name or "ai", connection=r)
        q.enqueue("salon_crm.worker.jobs.classify_feedback", feedback_id)
    except Exception as e:
        logger.exception("Enqueue classify_feedback failed feedback=%s: %s", feedback_id, e)
