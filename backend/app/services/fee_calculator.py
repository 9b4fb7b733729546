from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from ..core.config import settings
from ..models.subscription import SubscriptionTier
from .pricing_config import (
    BOOKING_FEE,
    CUSTOMER_BOOKING_FEE,
    PROVIDER_BOOKING_FEE,
    DEPOSIT_PERCENTAGE,
    get_transaction_fee_percent,
)

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class FeeCalculation:
    service_price: Decimal
    booking_fee: Decimal
    transaction_fee_percent: Decimal
    transaction_fee_amount: Decimal
    total_amount: Decimal
    deposit_amount: Decimal
    provider_net_amount: Decimal


def to_money(value: Any) -> Decimal:
    """Return ``value`` as a Decimal rounded to cents."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValueError(f"Invalid money amount: {value!r}") from exc
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def calculate_booking_fees(service_price: Any, provider_tier: SubscriptionTier | str | None) -> FeeCalculation:
    """Calculate all fees and totals for a booking.

    The customer pays the service price plus their half of the booking fee;
    20% of that total is due upfront as a deposit. The provider receives the
    service price less the tier's transaction fee and their half of the
    booking fee. The provider net is not clamped and goes negative for very
    small prices.
    """
    price = to_money(service_price)
    if price < 0:
        raise ValueError("Service price cannot be negative")

    transaction_fee_percent = get_transaction_fee_percent(provider_tier)
    transaction_fee_amount = to_money(price * transaction_fee_percent / _HUNDRED)
    total_amount = price + CUSTOMER_BOOKING_FEE
    deposit_amount = calculate_deposit(total_amount)
    provider_net_amount = price - transaction_fee_amount - PROVIDER_BOOKING_FEE

    return FeeCalculation(
        service_price=price,
        booking_fee=BOOKING_FEE,
        transaction_fee_percent=transaction_fee_percent,
        transaction_fee_amount=transaction_fee_amount,
        total_amount=total_amount,
        deposit_amount=deposit_amount,
        provider_net_amount=provider_net_amount,
    )


def calculate_platform_revenue(service_price: Any, provider_tier: SubscriptionTier | str | None) -> Decimal:
    """Platform take on one booking: transaction fee plus the full booking fee."""
    fees = calculate_booking_fees(service_price, provider_tier)
    return fees.transaction_fee_amount + BOOKING_FEE


def calculate_deposit(total_amount: Any) -> Decimal:
    return to_money(to_money(total_amount) * DEPOSIT_PERCENTAGE)


def calculate_remaining_balance(total_amount: Any, deposit_amount: Any) -> Decimal:
    return to_money(total_amount) - to_money(deposit_amount)


def format_currency(amount: Any, currency: str | None = None) -> str:
    code = (currency or settings.DEFAULT_CURRENCY or "ZAR").upper()
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{code} {abs(value):,.2f}"
