# backend/app/api/api_booking.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import BookingStatus, User
from ..schemas import (
    BookingCancel,
    BookingCompletionResponse,
    BookingDetailResponse,
    BookingRequestCreate,
    BookingResponse,
    DepositCheckoutResponse,
    DisputeCreate,
    QuoteCreate,
)
from ..services import booking_engine
from ..services.paystack import PaystackClient, get_paystack_client
from ..utils import MarketplaceError, to_http_error
from .dependencies import get_current_active_user

router = APIRouter(tags=["bookings"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)
# ‣ No prefix here; main.py mounts this under {API_V1_STR}/bookings


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking_request(
    booking_in: BookingRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Ask a provider for a quote. The booking starts PENDING with no price."""
    try:
        return booking_engine.create_booking_request(db, current_user, booking_in)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.get("/", response_model=List[BookingResponse])
def read_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return booking_engine.get_user_bookings(db, current_user, status_filter)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        return booking_engine.get_booking_details(db, booking_id, current_user)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.post("/{booking_id}/quote", response_model=BookingResponse)
def send_quote(
    booking_id: int,
    quote_in: QuoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        return booking_engine.send_quote(db, booking_id, quote_in.price, current_user)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.post("/{booking_id}/confirm", response_model=DepositCheckoutResponse)
def confirm_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    gateway: PaystackClient = Depends(get_paystack_client),
):
    """Accept the quote and get a checkout link for the deposit."""
    try:
        checkout = booking_engine.confirm_booking(db, booking_id, current_user, gateway)
    except MarketplaceError as exc:
        raise to_http_error(exc)
    return DepositCheckoutResponse(
        booking_id=checkout.booking.id,
        authorization_url=checkout.payment.authorization_url,
        access_code=checkout.payment.access_code,
        reference=checkout.payment.reference,
        amount=checkout.booking.deposit_amount,
    )


@router.post("/{booking_id}/start", response_model=BookingResponse)
def start_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        return booking_engine.start_booking(db, booking_id, current_user)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.post("/{booking_id}/complete", response_model=BookingCompletionResponse)
def complete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        result = booking_engine.complete_booking(db, booking_id, current_user)
    except MarketplaceError as exc:
        raise to_http_error(exc)
    return BookingCompletionResponse(
        booking=BookingResponse.model_validate(result.booking),
        provider_earnings=result.provider_earnings,
    )


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    cancel_in: Optional[BookingCancel] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    reason = cancel_in.reason if cancel_in else None
    try:
        return booking_engine.cancel_booking(db, booking_id, current_user, reason)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.post("/{booking_id}/dispute", response_model=BookingResponse)
def initiate_dispute(
    booking_id: int,
    dispute_in: DisputeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        return booking_engine.initiate_dispute(db, booking_id, current_user, dispute_in.reason)
    except MarketplaceError as exc:
        raise to_http_error(exc)
