# backend/app/models/booking.py

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, String, Text, Boolean
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus
from .types import CaseInsensitiveEnum


class Booking(BaseModel):
    __tablename__ = "bookings"

    id            = Column(Integer, primary_key=True, index=True)
    customer_id   = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id   = Column(Integer, ForeignKey("provider_profiles.id"), nullable=False, index=True)

    service_title       = Column(String, nullable=False)
    service_description = Column(Text, nullable=True)
    service_offering_id = Column(String, nullable=True)
    scheduled_date      = Column(DateTime, nullable=True)
    scheduled_time      = Column(String, nullable=True)
    location            = Column(String, nullable=True)
    notes               = Column(Text, nullable=True)

    # Zero until the provider sends a quote
    service_price   = Column(Numeric(10, 2), nullable=False, default=0)
    booking_fee     = Column(Numeric(10, 2), nullable=False, default=0)
    transaction_fee = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount    = Column(Numeric(10, 2), nullable=False, default=0)
    deposit_amount  = Column(Numeric(10, 2), nullable=False, default=0)

    status = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    contact_revealed    = Column(Boolean, nullable=False, default=False)
    contact_revealed_at = Column(DateTime, nullable=True)

    # Relationships
    customer         = relationship("User", foreign_keys=[customer_id], back_populates="bookings_as_customer")
    provider_profile = relationship("ProviderProfile", back_populates="bookings")
    transactions     = relationship(
        "Transaction",
        back_populates="booking",
        order_by="Transaction.id",
    )
