import enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class SubscriptionTier(str, enum.Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    PAST_DUE = "past_due"


class Subscription(BaseModel):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    provider_profile_id = Column(
        Integer,
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    tier = Column(CaseInsensitiveEnum(SubscriptionTier, name="subscriptiontier"), nullable=False)
    status = Column(
        CaseInsensitiveEnum(SubscriptionStatus, name="subscriptionstatus"),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
    )
    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)

    provider_profile = relationship("ProviderProfile", back_populates="subscription")
