from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from ..models.subscription import SubscriptionTier, SubscriptionStatus


class TierInfoResponse(BaseModel):
    tier: SubscriptionTier
    name: str
    price: Decimal
    transaction_fee_percent: Decimal
    booking_limit: Optional[int] = None
    lead_limit: Optional[int] = None
    features: List[str]

    model_config = {"from_attributes": True}


class SubscriptionResponse(BaseModel):
    id: int
    provider_profile_id: int
    tier: SubscriptionTier
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool

    model_config = {"from_attributes": True}


class SubscriptionOverviewResponse(BaseModel):
    subscription: Optional[SubscriptionResponse] = None
    tier_info: TierInfoResponse
    monthly_booking_count: int
    booking_limit: Optional[int] = None
    leads_used: int
    lead_limit: Optional[int] = None
    booking_count_reset_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SubscriptionChange(BaseModel):
    tier: SubscriptionTier


class FeeQuote(BaseModel):
    amount: Decimal
    transaction_fee: Decimal
