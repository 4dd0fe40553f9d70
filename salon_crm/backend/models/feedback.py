"""Post-visit feedback requests (outbound SMS intents + the customer's answer)."""
import uuid
from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from salon_crm.backend.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class FeedbackRequest(Base):
    __tablename__ = "feedback_requests"

    id = Column(String(36), primary_key=True, default=_new_id)  # public, goes into the feedback URL
    visit_id = Column(Integer, ForeignKey("visits.id"), nullable=False, unique=True, index=True)
    channel = Column(String(16), nullable=False, default="sms")
    status = Column(String(16), nullable=False, default="pending", index=True)  # pending, sent, failed
    failure_reason = Column(String(255))
    provider_message_id = Column(String(64))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    sent_at = Column(DateTime)

    rating = Column(Integer)
    comment = Column(Text)
    review_link_clicked = Column(Boolean, nullable=False, default=False)
    responded_at = Column(DateTime)

    visit = relationship("Visit")
