from pydantic import BaseModel
from typing import Optional, Any, Dict
from datetime import datetime
from decimal import Decimal

from ..models.transaction import TransactionType, TransactionStatus


class TransactionResponse(BaseModel):
    id: int
    type: TransactionType
    status: TransactionStatus
    amount: Decimal
    fee: Decimal
    net_amount: Decimal
    booking_id: Optional[int] = None
    paystack_reference: Optional[str] = None
    description: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DepositCheckoutResponse(BaseModel):
    booking_id: int
    authorization_url: str
    access_code: Optional[str] = None
    reference: str
    amount: Decimal


class PaymentFinalize(BaseModel):
    reference: str


class EarningsSummary(BaseModel):
    total_earnings: Decimal
    total_fees: Decimal
    net_earnings: Decimal
    pending_payments: Decimal
    completed_bookings: int

    model_config = {"from_attributes": True}
