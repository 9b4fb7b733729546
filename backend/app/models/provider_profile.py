# backend/app/models/provider_profile.py

from sqlalchemy import (
    Column,
    String,
    Text,
    Numeric,
    ForeignKey,
    Integer,
    Boolean,
    DateTime,
)
from sqlalchemy.orm import relationship

from .base import BaseModel, utcnow
from .subscription import SubscriptionTier
from .types import CaseInsensitiveEnum


class ProviderProfile(BaseModel):
    """ORM model representing a service provider's profile."""

    __tablename__ = "provider_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    business_name = Column(String, index=True, nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String, index=True, nullable=True)
    location = Column(String, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)

    # Contact details are only shown to the provider themselves; customers
    # reach providers through messaging and bookings.
    contact_email = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)
    contact_website = Column(String, nullable=True)
    auto_reveal_contact = Column(Boolean, nullable=False, default=True)

    subscription_tier = Column(
        CaseInsensitiveEnum(SubscriptionTier, name="subscriptiontier"),
        nullable=False,
        default=SubscriptionTier.FREE,
    )
    monthly_booking_count = Column(Integer, nullable=False, default=0)
    booking_count_reset_date = Column(DateTime, nullable=False, default=utcnow)
    # Set whenever the window rolls; null until the first roll
    booking_count_window_start = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="provider_profile")
    bookings = relationship("Booking", back_populates="provider_profile")
    subscription = relationship(
        "Subscription",
        back_populates="provider_profile",
        uselist=False,
        cascade="all, delete-orphan",
    )
    leads = relationship(
        "Lead",
        back_populates="provider_profile",
        cascade="all, delete-orphan",
    )
