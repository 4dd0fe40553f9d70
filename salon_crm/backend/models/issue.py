"""Issues raised from low feedback ratings."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from salon_crm.backend.database import Base


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    feedback_request_id = Column(String(36), ForeignKey("feedback_requests.id"), nullable=False, unique=True)
    status = Column(String(16), nullable=False, default="open")  # open, in_progress, resolved
    severity = Column(String(16), nullable=False, default="medium")  # low, medium, high
    category = Column(String(64))
    summary = Column(Text)
    details = Column(Text)
    owner_response = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime)

    customer = relationship("Customer")
    feedback_request = relationship("FeedbackRequest")
