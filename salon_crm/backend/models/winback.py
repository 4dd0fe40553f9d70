"""Winback campaigns and the per-customer messages they produce."""
from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from salon_crm.backend.database import Base


class WinbackCampaign(Base):
    __tablename__ = "winback_campaigns"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    message_template = Column(Text, nullable=False)  # {{firstName}}, {{bookingLink}}, {{daysSinceLastVisit}}
    min_days_since_last_visit = Column(Integer, nullable=False)
    max_days_since_last_visit = Column(Integer, nullable=False)
    booking_url = Column(String(512))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    messages = relationship("WinbackMessage", back_populates="campaign")


class WinbackMessage(Base):
    __tablename__ = "winback_messages"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("winback_campaigns.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="pending", index=True)  # pending, sent, failed
    failure_reason = Column(String(255))
    provider_message_id = Column(String(64))
    last_visit_at = Column(DateTime)  # last checkout when the message was created
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    sent_at = Column(DateTime)
    response_type = Column(String(32))

    campaign = relationship("WinbackCampaign", back_populates="messages")
    customer = relationship("Customer")

    __table_args__ = (UniqueConstraint("campaign_id", "customer_id", name="uq_winback_campaign_customer"),)
