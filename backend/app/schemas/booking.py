from pydantic import BaseModel, Field
from typing import Optional, List, Annotated
from datetime import datetime
from decimal import Decimal

from ..models.booking_status import BookingStatus
from .payment import TransactionResponse
from .user import UserPublic


# Properties a customer sends when requesting a quote
class BookingRequestCreate(BaseModel):
    provider_id: int  # ProviderProfile.id
    service_title: Annotated[str, Field(min_length=1, max_length=200)]
    service_description: Optional[str] = None
    service_offering_id: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    scheduled_time: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class QuoteCreate(BaseModel):
    price: Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class DisputeCreate(BaseModel):
    reason: Annotated[str, Field(min_length=1)]


class ProviderProfileNested(BaseModel):
    id: int
    user_id: int
    business_name: Optional[str] = None
    category: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    customer_id: int
    provider_id: int
    service_title: str
    service_description: Optional[str] = None
    service_offering_id: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    scheduled_time: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

    service_price: Decimal
    booking_fee: Decimal
    transaction_fee: Decimal
    total_amount: Decimal
    deposit_amount: Decimal

    status: BookingStatus
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    contact_revealed: bool = False
    contact_revealed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    customer: Optional[UserPublic] = None
    provider_profile: Optional[ProviderProfileNested] = None

    model_config = {"from_attributes": True}


class BookingDetailResponse(BookingResponse):
    transactions: List[TransactionResponse] = []


class BookingCompletionResponse(BaseModel):
    booking: BookingResponse
    provider_earnings: Decimal
