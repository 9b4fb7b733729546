import enum

from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    PAYMENT = "payment"
    REFUND = "refund"
    SUBSCRIPTION = "subscription"
    BOOKING_FEE = "booking_fee"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Transaction(BaseModel):
    """Append-only money ledger entry linked to a booking."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(CaseInsensitiveEnum(TransactionType, name="transactiontype"), nullable=False, index=True)
    status = Column(
        CaseInsensitiveEnum(TransactionStatus, name="transactionstatus"),
        nullable=False,
        default=TransactionStatus.PENDING,
    )
    amount = Column(Numeric(10, 2), nullable=False)
    fee = Column(Numeric(10, 2), nullable=False, default=0)
    net_amount = Column(Numeric(10, 2), nullable=False)

    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    provider_id = Column(Integer, ForeignKey("provider_profiles.id"), nullable=True, index=True)

    # Gateway reference doubles as the idempotency key for payment callbacks
    paystack_reference = Column(String, unique=True, nullable=True)
    paystack_transaction_id = Column(String, nullable=True)
    description = Column(String, nullable=True)
    meta = Column(JSON, nullable=True)

    booking = relationship("Booking", back_populates="transactions")
