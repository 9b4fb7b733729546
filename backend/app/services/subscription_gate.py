"""Per-tier monthly limits on bookings and lead unlocks.

Each provider profile carries a rolling window: ``booking_count_reset_date``
is the end of the current window, ``booking_count_window_start`` the moment it
last rolled, and ``monthly_booking_count`` the bookings accepted inside it.
Once the reset date has passed, the first request to notice rolls the window
forward one calendar month. The same window bounds lead unlocks, so both
limits reset together.

Writes here only flush; the calling operation commits them together with the
booking or lead they gate.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models
from ..models.base import utcnow
from ..models.subscription import SubscriptionStatus, SubscriptionTier
from ..utils.errors import InvalidState
from .fee_calculator import to_money
from .pricing_config import (
    SubscriptionTierInfo,
    get_booking_limit,
    get_lead_limit,
    get_subscription_tier_info,
    get_transaction_fee_percent,
)

logger = logging.getLogger(__name__)


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months, clamping the day (Jan 31 + 1 -> Feb 28/29)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _get_profile(db: Session, provider_profile_id: int) -> Optional[models.ProviderProfile]:
    return (
        db.query(models.ProviderProfile)
        .filter(models.ProviderProfile.id == provider_profile_id)
        .first()
    )


def roll_usage_window(db: Session, profile: models.ProviderProfile, now: datetime | None = None) -> bool:
    """Start a new monthly window if the current one has expired.

    The reset is a conditional UPDATE keyed on the stale reset date, so when
    several requests race only one of them zeroes the counter. Returns True
    when the window was (or had just been) rolled forward.
    """
    now = now or utcnow()
    reset_date = profile.booking_count_reset_date
    if reset_date is not None and now <= reset_date:
        return False

    next_reset = add_months(now, 1)
    query = db.query(models.ProviderProfile).filter(models.ProviderProfile.id == profile.id)
    if reset_date is not None:
        query = query.filter(models.ProviderProfile.booking_count_reset_date <= reset_date)
    updated = query.update(
        {
            models.ProviderProfile.monthly_booking_count: 0,
            models.ProviderProfile.booking_count_reset_date: next_reset,
            models.ProviderProfile.booking_count_window_start: now,
        },
        synchronize_session=False,
    )
    db.flush()
    db.refresh(profile)
    if updated:
        logger.info(
            "Usage window reset",
            extra={"provider_profile_id": profile.id, "next_reset": next_reset.isoformat()},
        )
    return True


def check_booking_limit(db: Session, provider_profile_id: int, now: datetime | None = None) -> bool:
    """Return True if the provider may accept another booking right now."""
    profile = _get_profile(db, provider_profile_id)
    if profile is None:
        return False

    limit = get_booking_limit(profile.subscription_tier)
    if limit is None:
        return True

    if roll_usage_window(db, profile, now):
        return True

    allowed = (profile.monthly_booking_count or 0) < limit
    if not allowed:
        logger.info(
            "Booking limit reached",
            extra={
                "provider_profile_id": profile.id,
                "limit": limit,
                "count": profile.monthly_booking_count,
            },
        )
    return allowed


def increment_booking_count(db: Session, provider_profile_id: int) -> None:
    """Add one accepted booking to the provider's counter in a single UPDATE."""
    db.query(models.ProviderProfile).filter(
        models.ProviderProfile.id == provider_profile_id
    ).update(
        {models.ProviderProfile.monthly_booking_count: models.ProviderProfile.monthly_booking_count + 1},
        synchronize_session=False,
    )
    db.flush()


def count_leads_in_window(db: Session, profile: models.ProviderProfile, now: datetime | None = None) -> int:
    roll_usage_window(db, profile, now)
    window_start = profile.booking_count_window_start
    if window_start is None:
        window_start = add_months(profile.booking_count_reset_date, -1)
    return (
        db.query(func.count(models.Lead.id))
        .filter(
            models.Lead.provider_profile_id == profile.id,
            models.Lead.unlocked_at >= window_start,
        )
        .scalar()
        or 0
    )


def check_lead_limit(db: Session, profile: models.ProviderProfile, now: datetime | None = None) -> bool:
    limit = get_lead_limit(profile.subscription_tier)
    if limit is None:
        return True
    return count_leads_in_window(db, profile, now) < limit


def calculate_transaction_fee(db: Session, provider_profile_id: int, amount: Any) -> Decimal:
    """Platform fee the provider's tier charges on ``amount``; 0 for unknown providers."""
    profile = _get_profile(db, provider_profile_id)
    if profile is None:
        return Decimal("0.00")
    percent = get_transaction_fee_percent(profile.subscription_tier)
    return to_money(to_money(amount) * percent / Decimal("100"))


@dataclass
class SubscriptionOverview:
    subscription: Optional[models.Subscription]
    tier_info: SubscriptionTierInfo
    monthly_booking_count: int
    booking_limit: int | None
    leads_used: int
    lead_limit: int | None
    booking_count_reset_date: datetime | None


def get_current_subscription(
    db: Session, profile: models.ProviderProfile, now: datetime | None = None
) -> SubscriptionOverview:
    leads_used = count_leads_in_window(db, profile, now)
    tier = profile.subscription_tier
    return SubscriptionOverview(
        subscription=profile.subscription,
        tier_info=get_subscription_tier_info(tier),
        monthly_booking_count=profile.monthly_booking_count or 0,
        booking_limit=get_booking_limit(tier),
        leads_used=leads_used,
        lead_limit=get_lead_limit(tier),
        booking_count_reset_date=profile.booking_count_reset_date,
    )


def _coerce_tier(tier: SubscriptionTier | str) -> SubscriptionTier:
    if isinstance(tier, SubscriptionTier):
        return tier
    try:
        return SubscriptionTier(str(tier).strip().lower())
    except ValueError as exc:
        raise InvalidState(f"Unknown subscription tier: {tier}") from exc


def upgrade_subscription(
    db: Session,
    profile: models.ProviderProfile,
    tier: SubscriptionTier | str,
    now: datetime | None = None,
) -> models.Subscription:
    """Move the provider onto a paid tier for one month starting ``now``."""
    new_tier = _coerce_tier(tier)
    if new_tier == SubscriptionTier.FREE:
        raise InvalidState("Cannot upgrade to free tier")

    now = now or utcnow()
    period_end = add_months(now, 1)
    profile.subscription_tier = new_tier

    subscription = profile.subscription
    if subscription is None:
        subscription = models.Subscription(
            provider_profile_id=profile.id,
            tier=new_tier,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=now,
            current_period_end=period_end,
            cancel_at_period_end=False,
        )
        db.add(subscription)
    else:
        subscription.tier = new_tier
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.current_period_start = now
        subscription.current_period_end = period_end
        subscription.cancel_at_period_end = False

    db.commit()
    db.refresh(subscription)
    logger.info(
        "Subscription upgraded",
        extra={"provider_profile_id": profile.id, "tier": new_tier.value},
    )
    return subscription


def downgrade_subscription(
    db: Session,
    profile: models.ProviderProfile,
    tier: SubscriptionTier | str,
) -> Optional[models.Subscription]:
    """Change tier; moving to FREE keeps the paid subscription until its period ends."""
    new_tier = _coerce_tier(tier)
    profile.subscription_tier = new_tier

    subscription = profile.subscription
    if subscription is not None:
        subscription.tier = new_tier
        subscription.cancel_at_period_end = new_tier == SubscriptionTier.FREE

    db.commit()
    if subscription is not None:
        db.refresh(subscription)
    logger.info(
        "Subscription changed",
        extra={"provider_profile_id": profile.id, "tier": new_tier.value},
    )
    return subscription
