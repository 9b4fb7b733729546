from pydantic import BaseModel
from typing import Optional
from decimal import Decimal

from ..models.subscription import SubscriptionTier


class ProviderProfileResponse(BaseModel):
    """Public profile; contact fields arrive already masked unless revealed."""

    id: int
    user_id: int
    business_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    hourly_rate: Optional[Decimal] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_website: Optional[str] = None
    subscription_tier: SubscriptionTier
    contact_revealed: bool = False

    model_config = {"from_attributes": True}
