import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ProviderProfile, Transaction, User
from ..schemas import BookingResponse, EarningsSummary, PaymentFinalize, TransactionResponse
from ..services import booking_engine
from ..services.paystack import PaystackClient, get_paystack_client
from ..utils import MarketplaceError, to_http_error
from .dependencies import get_current_active_user, get_current_provider_profile

router = APIRouter(tags=["payments"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _finalize(reference: str, db: Session, user: User, gateway: PaystackClient):
    try:
        return booking_engine.finalize_booking_payment(db, reference.strip(), user, gateway)
    except MarketplaceError as exc:
        logger.warning("Payment finalize failed for %s: %s", reference, exc.message)
        raise to_http_error(exc)


@router.post("/finalize", response_model=BookingResponse)
def finalize_payment(
    payload: PaymentFinalize,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    gateway: PaystackClient = Depends(get_paystack_client),
):
    """Record a verified deposit and confirm its booking. Repeat calls are no-ops."""
    return _finalize(payload.reference, db, current_user, gateway)


@router.get("/callback", response_model=BookingResponse)
def payment_callback(
    reference: str = Query(..., min_length=4),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    gateway: PaystackClient = Depends(get_paystack_client),
):
    """Target of the gateway redirect (``?reference=...``)."""
    return _finalize(reference, db, current_user, gateway)


@router.get("/earnings", response_model=EarningsSummary)
def read_earnings(
    db: Session = Depends(get_db),
    profile: ProviderProfile = Depends(get_current_provider_profile),
):
    return EarningsSummary.model_validate(booking_engine.get_provider_earnings(db, profile))


@router.get("/history", response_model=List[TransactionResponse])
def read_payment_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return (
        db.query(Transaction)
        .filter(Transaction.customer_id == current_user.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )
