from decimal import Decimal

import pytest

from app.models.subscription import SubscriptionTier
from app.services import pricing_config
from app.services.fee_calculator import (
    calculate_booking_fees,
    calculate_deposit,
    calculate_platform_revenue,
    calculate_remaining_balance,
    format_currency,
    to_money,
)


def test_free_tier_fees_for_100():
    fees = calculate_booking_fees(100, SubscriptionTier.FREE)
    assert fees.service_price == Decimal("100.00")
    assert fees.booking_fee == Decimal("2.50")
    assert fees.transaction_fee_percent == Decimal("7")
    assert fees.transaction_fee_amount == Decimal("7.00")
    assert fees.total_amount == Decimal("101.25")
    assert fees.deposit_amount == Decimal("20.25")
    assert fees.provider_net_amount == Decimal("91.75")


@pytest.mark.parametrize(
    "tier,percent",
    [
        (SubscriptionTier.FREE, Decimal("7")),
        (SubscriptionTier.BASIC, Decimal("5")),
        (SubscriptionTier.PRO, Decimal("3")),
    ],
)
@pytest.mark.parametrize("price", ["0", "0.01", "1", "49.99", "250", "1234.56"])
def test_fee_formulas_hold_for_every_tier(tier, percent, price):
    fees = calculate_booking_fees(price, tier)
    p = Decimal(price)
    assert fees.total_amount == p + Decimal("1.25")
    assert fees.deposit_amount == to_money(fees.total_amount * Decimal("0.20"))
    assert fees.provider_net_amount == p - to_money(p * percent / 100) - Decimal("1.25")


def test_provider_net_is_not_clamped_for_tiny_prices():
    fees = calculate_booking_fees("1.00", SubscriptionTier.FREE)
    assert fees.provider_net_amount == Decimal("-0.32")


def test_negative_price_rejected():
    with pytest.raises(ValueError):
        calculate_booking_fees(-1, SubscriptionTier.FREE)


def test_unknown_tier_falls_back_to_free():
    assert calculate_booking_fees(100, "platinum").transaction_fee_percent == Decimal("7")
    assert calculate_booking_fees(100, None).transaction_fee_amount == Decimal("7.00")


def test_platform_revenue_is_fee_plus_full_booking_fee():
    assert calculate_platform_revenue(100, SubscriptionTier.PRO) == Decimal("5.50")


def test_deposit_and_remaining_balance():
    assert calculate_deposit("101.25") == Decimal("20.25")
    assert calculate_remaining_balance("101.25", "20.25") == Decimal("81.00")


def test_to_money_rounds_half_up_and_rejects_garbage():
    assert to_money("2.005") == Decimal("2.01")
    with pytest.raises(ValueError):
        to_money("abc")


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "ZAR 1,234.50"
    assert format_currency(-3, "usd") == "-USD 3.00"


def test_tier_table_is_read_only():
    with pytest.raises(TypeError):
        pricing_config.SUBSCRIPTION_TIERS[SubscriptionTier.FREE] = None  # type: ignore[index]


def test_tier_limits():
    assert pricing_config.get_booking_limit(SubscriptionTier.FREE) == 3
    assert pricing_config.get_lead_limit(SubscriptionTier.BASIC) == 30
    assert pricing_config.get_booking_limit(SubscriptionTier.PRO) is None
    assert pricing_config.has_booking_limit(SubscriptionTier.BASIC)
    assert not pricing_config.has_booking_limit("pro")
    assert pricing_config.get_subscription_tier_info("BASIC").price == Decimal("29")
