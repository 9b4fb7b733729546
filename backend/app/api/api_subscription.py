from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ProviderProfile
from ..schemas import (
    FeeQuote,
    SubscriptionChange,
    SubscriptionOverviewResponse,
    SubscriptionResponse,
    TierInfoResponse,
)
from ..services import subscription_gate
from ..services.pricing_config import SUBSCRIPTION_TIERS
from ..utils import MarketplaceError, to_http_error
from .dependencies import get_current_provider_profile

router = APIRouter(tags=["subscriptions"], default_response_class=ORJSONResponse)


@router.get("/tiers", response_model=List[TierInfoResponse])
def list_tiers():
    return list(SUBSCRIPTION_TIERS.values())


@router.get("/me", response_model=SubscriptionOverviewResponse)
def read_my_subscription(
    db: Session = Depends(get_db),
    profile: ProviderProfile = Depends(get_current_provider_profile),
):
    overview = subscription_gate.get_current_subscription(db, profile)
    return SubscriptionOverviewResponse.model_validate(overview)


@router.post("/upgrade", response_model=SubscriptionResponse)
def upgrade(
    change: SubscriptionChange,
    db: Session = Depends(get_db),
    profile: ProviderProfile = Depends(get_current_provider_profile),
):
    try:
        return subscription_gate.upgrade_subscription(db, profile, change.tier)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.post("/downgrade", response_model=Optional[SubscriptionResponse])
def downgrade(
    change: SubscriptionChange,
    db: Session = Depends(get_db),
    profile: ProviderProfile = Depends(get_current_provider_profile),
):
    try:
        return subscription_gate.downgrade_subscription(db, profile, change.tier)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.get("/fee", response_model=FeeQuote)
def quote_transaction_fee(
    amount: Decimal = Query(..., ge=0),
    db: Session = Depends(get_db),
    profile: ProviderProfile = Depends(get_current_provider_profile),
):
    fee = subscription_gate.calculate_transaction_fee(db, profile.id, amount)
    return FeeQuote(amount=amount, transaction_fee=fee)
