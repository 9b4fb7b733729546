"""Subscription tiers and platform fee constants.

The tier table is built once at import time and exposed read-only; changing
prices or limits is a code deploy.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from ..models.subscription import SubscriptionTier

BOOKING_FEE = Decimal("2.50")
# The flat booking fee is split evenly between customer and provider
CUSTOMER_BOOKING_FEE = Decimal("1.25")
PROVIDER_BOOKING_FEE = Decimal("1.25")
DEPOSIT_PERCENTAGE = Decimal("0.20")


@dataclass(frozen=True)
class SubscriptionTierInfo:
    tier: SubscriptionTier
    name: str
    price: Decimal
    transaction_fee_percent: Decimal
    # None means unlimited
    booking_limit: int | None
    lead_limit: int | None
    features: tuple[str, ...]


SUBSCRIPTION_TIERS: Mapping[SubscriptionTier, SubscriptionTierInfo] = MappingProxyType({
    SubscriptionTier.FREE: SubscriptionTierInfo(
        tier=SubscriptionTier.FREE,
        name="Free",
        price=Decimal("0"),
        transaction_fee_percent=Decimal("7"),
        booking_limit=3,
        lead_limit=5,
        features=(
            "Up to 3 bookings per month",
            "Up to 5 leads per month",
            "7% transaction fee",
            "Basic profile listing",
            "In-app messaging",
            "Customer reviews",
        ),
    ),
    SubscriptionTier.BASIC: SubscriptionTierInfo(
        tier=SubscriptionTier.BASIC,
        name="Basic",
        price=Decimal("29"),
        transaction_fee_percent=Decimal("5"),
        booking_limit=15,
        lead_limit=30,
        features=(
            "Up to 15 bookings per month",
            "Up to 30 leads per month",
            "5% transaction fee",
            "Enhanced profile listing",
            "In-app messaging",
            "Customer reviews",
            "Priority support",
        ),
    ),
    SubscriptionTier.PRO: SubscriptionTierInfo(
        tier=SubscriptionTier.PRO,
        name="Pro",
        price=Decimal("79"),
        transaction_fee_percent=Decimal("3"),
        booking_limit=None,
        lead_limit=None,
        features=(
            "Unlimited bookings",
            "Unlimited leads",
            "3% transaction fee",
            "Featured profile listing",
            "In-app messaging",
            "Customer reviews",
            "Priority support",
            "Advanced analytics",
            "Promotional tools",
        ),
    ),
})


def resolve_tier(tier: SubscriptionTier | str | None) -> SubscriptionTier:
    """Coerce stored/legacy tier values; anything unknown is treated as FREE."""
    if isinstance(tier, SubscriptionTier):
        return tier
    if isinstance(tier, str):
        try:
            return SubscriptionTier(tier.strip().lower())
        except ValueError:
            return SubscriptionTier.FREE
    return SubscriptionTier.FREE


def get_subscription_tier_info(tier: SubscriptionTier | str | None) -> SubscriptionTierInfo:
    return SUBSCRIPTION_TIERS[resolve_tier(tier)]


def get_transaction_fee_percent(tier: SubscriptionTier | str | None) -> Decimal:
    return get_subscription_tier_info(tier).transaction_fee_percent


def has_booking_limit(tier: SubscriptionTier | str | None) -> bool:
    return get_subscription_tier_info(tier).booking_limit is not None


def get_booking_limit(tier: SubscriptionTier | str | None) -> int | None:
    return get_subscription_tier_info(tier).booking_limit


def get_lead_limit(tier: SubscriptionTier | str | None) -> int | None:
    return get_subscription_tier_info(tier).lead_limit
