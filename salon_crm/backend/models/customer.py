"""Customers, services and visits."""
from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship

from salon_crm.backend.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(String(128))
    email = Column(String(255))
    marketing_opt_in = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    visits = relationship("Visit", back_populates="customer")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(64), primary_key=True)  # slug, e.g. gel-manicure
    name = Column(String(128), nullable=False)
    category = Column(String(64))
    base_price = Column(Integer, nullable=False, default=0)
    duration_minutes = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)


class Visit(Base):
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    service_id = Column(String(64), ForeignKey("services.id"), nullable=False)
    staff_name = Column(String(128))
    appointment_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    checkout_time = Column(DateTime, nullable=True)
    price_charged = Column(Integer, nullable=False, default=0)
    source = Column(String(32), default="internal-checkin")
    notes = Column(Text)

    customer = relationship("Customer", back_populates="visits")
    service = relationship("Service")

    __table_args__ = (Index("ix_visits_customer_checkout", "customer_id", "checkout_time"),)
