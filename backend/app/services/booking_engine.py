"""Booking lifecycle: quote request, quote, deposit, work, completion.

::

    PENDING --finalize payment--> CONFIRMED --start--> IN_PROGRESS --complete--> COMPLETED
       |                              |                     |                      |
       +--------- cancel -------------+--------- cancel ----+                      |
                                      +--------- dispute ---+------ dispute -------+

A provider may also start a PENDING booking directly. Money-moving
transitions append rows to the transaction ledger; rows are never edited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..models.base import utcnow
from ..models.booking_status import BookingStatus
from ..models.transaction import TransactionStatus, TransactionType
from ..utils.errors import InvalidState, LimitExceeded, NotFound, Unauthorized
from .fee_calculator import calculate_booking_fees, calculate_remaining_balance, to_money
from .paystack import PaymentInit, PaystackClient
from .subscription_gate import check_booking_limit, increment_booking_count

logger = logging.getLogger(__name__)

PAYOUT_KIND = "provider_payout"
BALANCE_KIND = "remaining_balance"

# action -> (statuses it may start from, status it leads to)
TRANSITIONS = {
    "start": ((BookingStatus.PENDING, BookingStatus.CONFIRMED), BookingStatus.IN_PROGRESS),
    "complete": ((BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS), BookingStatus.COMPLETED),
    "cancel": (
        (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS),
        BookingStatus.CANCELLED,
    ),
    "dispute": (
        (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED),
        BookingStatus.DISPUTED,
    ),
    "finalize": ((BookingStatus.PENDING,), BookingStatus.CONFIRMED),
}


@dataclass
class DepositCheckout:
    booking: models.Booking
    payment: PaymentInit


@dataclass
class CompletionResult:
    booking: models.Booking
    provider_earnings: Decimal


@dataclass
class TransactionSummary:
    total_earnings: Decimal
    total_fees: Decimal
    net_earnings: Decimal
    pending_payments: Decimal
    completed_bookings: int


# ─── Helpers ─────────────────────────────────────────────────────────────────


def _get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = (
        db.query(models.Booking)
        .options(selectinload(models.Booking.provider_profile))
        .filter(models.Booking.id == booking_id)
        .first()
    )
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def is_provider_of(booking: models.Booking, user: models.User) -> bool:
    profile = booking.provider_profile
    return profile is not None and profile.user_id == user.id


def is_customer_of(booking: models.Booking, user: models.User) -> bool:
    return booking.customer_id == user.id


def _require_participant(booking: models.Booking, user: models.User) -> None:
    if not (is_customer_of(booking, user) or is_provider_of(booking, user)):
        raise Unauthorized("You are not a participant in this booking")


def _apply_transition(booking: models.Booking, action: str) -> None:
    sources, target = TRANSITIONS[action]
    if booking.status not in sources:
        current = getattr(booking.status, "value", booking.status)
        raise InvalidState(f"Cannot {action} a booking that is {current}")
    booking.status = target


def _append_note(existing: Optional[str], line: str) -> str:
    return "\n".join(part for part in (existing, line) if part)


def _record(db: Session, booking: models.Booking, **fields: Any) -> models.Transaction:
    tx = models.Transaction(
        booking_id=booking.id,
        customer_id=booking.customer_id,
        status=TransactionStatus.COMPLETED,
        **fields,
    )
    db.add(tx)
    return tx


def _completed_deposits(booking: models.Booking) -> List[models.Transaction]:
    return [
        tx
        for tx in booking.transactions
        if tx.type == TransactionType.DEPOSIT and tx.status == TransactionStatus.COMPLETED
    ]


def _refund(db: Session, booking: models.Booking, deposit: models.Transaction) -> models.Transaction:
    return _record(
        db,
        booking,
        type=TransactionType.REFUND,
        amount=deposit.amount,
        fee=Decimal("0"),
        net_amount=deposit.amount,
        description=f"Refund for cancelled booking: {booking.service_title}",
        meta={"refunds_reference": deposit.paystack_reference},
    )


def _expected_deposit(metadata: dict, booking: models.Booking) -> Decimal:
    """Deposit the checkout was opened for; the quote may have changed since."""
    initialized = metadata.get("deposit_amount")
    if initialized is not None:
        try:
            return to_money(initialized)
        except ValueError:
            logger.warning(
                "Unreadable deposit amount in payment metadata",
                extra={"booking_id": booking.id, "value": str(initialized)},
            )
    return to_money(booking.deposit_amount)


# ─── Operations ──────────────────────────────────────────────────────────────


def create_booking_request(
    db: Session,
    customer: models.User,
    request: schemas.BookingRequestCreate,
) -> models.Booking:
    """Open a quote request against a provider; price stays 0 until quoted."""
    profile = (
        db.query(models.ProviderProfile)
        .filter(models.ProviderProfile.id == request.provider_id)
        .first()
    )
    if profile is None:
        raise NotFound("Provider not found")
    if profile.user_id == customer.id:
        raise InvalidState("You cannot request a booking from yourself")

    if not check_booking_limit(db, profile.id):
        logger.info(
            "Booking request rejected by limit",
            extra={"provider_profile_id": profile.id, "customer_id": customer.id},
        )
        raise LimitExceeded(
            "Provider has reached their booking limit. They need to upgrade their subscription."
        )

    booking = models.Booking(
        customer_id=customer.id,
        provider_id=profile.id,
        **request.model_dump(exclude={"provider_id"}),
        service_price=Decimal("0"),
        booking_fee=Decimal("0"),
        transaction_fee=Decimal("0"),
        total_amount=Decimal("0"),
        deposit_amount=Decimal("0"),
        status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.flush()
    increment_booking_count(db, profile.id)
    db.commit()
    db.refresh(booking)
    logger.info(
        "Booking request created",
        extra={"booking_id": booking.id, "provider_profile_id": profile.id},
    )
    return booking


def send_quote(db: Session, booking_id: int, price: Any, actor: models.User) -> models.Booking:
    """Set (or replace) the provider's price on a pending booking."""
    booking = _get_booking(db, booking_id)
    if not is_provider_of(booking, actor):
        raise Unauthorized("Only the provider can quote this booking")
    if booking.status != BookingStatus.PENDING:
        raise InvalidState("Quotes can only be sent while the booking is pending")
    try:
        amount = to_money(price)
    except ValueError as exc:
        raise InvalidState("Quote price must be a number") from exc
    if amount <= 0:
        raise InvalidState("Quote price must be greater than zero")

    fees = calculate_booking_fees(amount, booking.provider_profile.subscription_tier)
    booking.service_price = fees.service_price
    booking.booking_fee = fees.booking_fee
    booking.transaction_fee = fees.transaction_fee_amount
    booking.total_amount = fees.total_amount
    booking.deposit_amount = fees.deposit_amount
    db.commit()
    db.refresh(booking)
    logger.info("Quote sent", extra={"booking_id": booking.id, "price": str(amount)})
    return booking


def confirm_booking(
    db: Session,
    booking_id: int,
    actor: models.User,
    gateway: PaystackClient,
) -> DepositCheckout:
    """Start the deposit payment for a quoted booking.

    The booking stays PENDING; ``finalize_booking_payment`` confirms it once the
    gateway reports the charge as successful.
    """
    booking = _get_booking(db, booking_id)
    if not is_customer_of(booking, actor):
        raise Unauthorized("Only the customer can confirm this booking")
    if booking.status != BookingStatus.PENDING:
        raise InvalidState("Only pending bookings can be confirmed")
    if to_money(booking.service_price) <= 0:
        raise InvalidState("Cannot confirm booking without a valid price quote")

    payment = gateway.initialize_transaction(
        actor.email,
        to_money(booking.deposit_amount),
        {
            "booking_id": booking.id,
            "type": TransactionType.DEPOSIT.value,
            "user_id": actor.id,
            "deposit_amount": str(to_money(booking.deposit_amount)),
        },
    )
    logger.info(
        "Deposit payment initialized",
        extra={"booking_id": booking.id, "reference": payment.reference},
    )
    return DepositCheckout(booking=booking, payment=payment)


def _find_by_reference(db: Session, reference: str) -> Optional[models.Transaction]:
    return (
        db.query(models.Transaction)
        .filter(models.Transaction.paystack_reference == reference)
        .first()
    )


def finalize_booking_payment(
    db: Session,
    reference: str,
    actor: models.User,
    gateway: PaystackClient,
) -> models.Booking:
    """Record a verified deposit and confirm the booking.

    A successful charge is always written to the ledger, even when the booking
    has moved on since checkout; only a PENDING booking that is fully covered
    becomes CONFIRMED. Safe to call repeatedly for the same reference: the
    second call finds the recorded deposit and returns the booking untouched.
    """
    existing = _find_by_reference(db, reference)
    if existing is not None:
        booking = _get_booking(db, existing.booking_id)
        _require_participant(booking, actor)
        logger.info("Payment already finalized", extra={"reference": reference})
        return booking

    verification = gateway.verify_transaction(reference)
    if not verification.succeeded:
        raise InvalidState("Payment verification failed")

    booking_id = verification.metadata.get("booking_id")
    if booking_id is None:
        raise InvalidState("Invalid payment metadata")
    try:
        booking = _get_booking(db, int(booking_id))
    except (TypeError, ValueError) as exc:
        raise InvalidState("Invalid payment metadata") from exc
    if not is_customer_of(booking, actor):
        raise Unauthorized("Only the customer can finalize this payment")

    covered = verification.amount >= _expected_deposit(verification.metadata, booking)
    deposit = _record(
        db,
        booking,
        type=TransactionType.DEPOSIT,
        amount=verification.amount,
        fee=Decimal("0"),
        net_amount=verification.amount,
        provider_id=booking.provider_id,
        paystack_reference=reference,
        paystack_transaction_id=verification.id,
        description=f"Deposit for booking: {booking.service_title}",
        meta=verification.metadata,
    )
    if booking.status == BookingStatus.CANCELLED:
        _refund(db, booking, deposit)
    elif covered and booking.status == BookingStatus.PENDING:
        _apply_transition(booking, "finalize")
    if covered and booking.status in (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS):
        auto_reveal = bool(booking.provider_profile.auto_reveal_contact)
        booking.contact_revealed = auto_reveal
        booking.contact_revealed_at = utcnow() if auto_reveal else None

    try:
        db.commit()
    except IntegrityError:
        # A concurrent callback recorded the same reference first
        db.rollback()
        logger.info("Concurrent finalize detected", extra={"reference": reference})
        return _get_booking(db, booking.id)
    db.refresh(booking)

    if not covered:
        logger.warning(
            "Verified amount below deposit",
            extra={
                "booking_id": booking.id,
                "reference": reference,
                "amount": str(verification.amount),
            },
        )
        raise InvalidState("Payment amount does not cover the deposit")
    logger.info(
        "Deposit recorded",
        extra={"booking_id": booking.id, "reference": reference, "status": booking.status.value},
    )
    return booking


def start_booking(db: Session, booking_id: int, actor: models.User) -> models.Booking:
    booking = _get_booking(db, booking_id)
    if not is_provider_of(booking, actor):
        raise Unauthorized("Only the provider can start this booking")
    _apply_transition(booking, "start")
    db.commit()
    db.refresh(booking)
    return booking


def complete_booking(db: Session, booking_id: int, actor: models.User) -> CompletionResult:
    """Mark the work done, settle the balance and record the provider payout."""
    booking = _get_booking(db, booking_id)
    _require_participant(booking, actor)
    _apply_transition(booking, "complete")
    booking.completed_at = utcnow()

    service_price = to_money(booking.service_price)
    transaction_fee = to_money(booking.transaction_fee)
    provider_share_of_fee = to_money(to_money(booking.booking_fee) / 2)

    # Balance is whatever the recorded deposits do not cover
    paid = _sum(tx.amount for tx in _completed_deposits(booking))
    remaining = calculate_remaining_balance(booking.total_amount, paid)
    if remaining > 0:
        _record(
            db,
            booking,
            type=TransactionType.PAYMENT,
            amount=remaining,
            fee=Decimal("0"),
            net_amount=remaining,
            provider_id=booking.provider_id,
            description=f"Final payment for: {booking.service_title}",
            meta={"kind": BALANCE_KIND},
        )

    provider_earnings = service_price - transaction_fee - provider_share_of_fee
    _record(
        db,
        booking,
        type=TransactionType.PAYMENT,
        amount=service_price,
        fee=transaction_fee + provider_share_of_fee,
        net_amount=provider_earnings,
        provider_id=booking.provider_id,
        description=f"Payment received for: {booking.service_title}",
        meta={"kind": PAYOUT_KIND},
    )
    db.commit()
    db.refresh(booking)
    logger.info(
        "Booking completed",
        extra={"booking_id": booking.id, "provider_earnings": str(provider_earnings)},
    )
    return CompletionResult(booking=booking, provider_earnings=provider_earnings)


def cancel_booking(
    db: Session,
    booking_id: int,
    actor: models.User,
    reason: Optional[str] = None,
) -> models.Booking:
    booking = _get_booking(db, booking_id)
    _require_participant(booking, actor)
    _apply_transition(booking, "cancel")
    booking.cancelled_at = utcnow()
    if reason and reason.strip():
        booking.notes = _append_note(booking.notes, f"Cancellation reason: {reason.strip()}")

    # Only money that actually reached us is refunded
    for deposit in _completed_deposits(booking):
        _refund(db, booking, deposit)
    db.commit()
    db.refresh(booking)
    return booking


def initiate_dispute(db: Session, booking_id: int, actor: models.User, reason: str) -> models.Booking:
    booking = _get_booking(db, booking_id)
    _require_participant(booking, actor)
    if not reason or not reason.strip():
        raise InvalidState("A reason is required to open a dispute")
    _apply_transition(booking, "dispute")
    booking.notes = _append_note(booking.notes, f"Dispute initiated: {reason.strip()}")
    db.commit()
    db.refresh(booking)
    return booking


# ─── Queries ─────────────────────────────────────────────────────────────────


def get_user_bookings(
    db: Session,
    user: models.User,
    status: Optional[BookingStatus] = None,
) -> List[models.Booking]:
    """Providers see bookings made with them; everyone else sees their own requests."""
    query = db.query(models.Booking).options(
        selectinload(models.Booking.provider_profile),
        selectinload(models.Booking.customer),
    )
    if user.provider_profile is not None:
        query = query.filter(models.Booking.provider_id == user.provider_profile.id)
    else:
        query = query.filter(models.Booking.customer_id == user.id)
    if status is not None:
        query = query.filter(models.Booking.status == status)
    return query.order_by(models.Booking.created_at.desc(), models.Booking.id.desc()).all()


def get_booking_details(db: Session, booking_id: int, user: models.User) -> models.Booking:
    booking = _get_booking(db, booking_id)
    _require_participant(booking, user)
    return booking


def _sum(values: Iterable[Any]) -> Decimal:
    return sum((to_money(v) for v in values), Decimal("0.00"))


def get_provider_earnings(db: Session, profile: models.ProviderProfile) -> TransactionSummary:
    transactions = (
        db.query(models.Transaction)
        .filter(
            models.Transaction.provider_id == profile.id,
            models.Transaction.status == TransactionStatus.COMPLETED,
        )
        .all()
    )
    payouts = [
        tx
        for tx in transactions
        if tx.type == TransactionType.PAYMENT and (tx.meta or {}).get("kind") == PAYOUT_KIND
    ]

    # Deposits on bookings still in flight are held until completion
    held_booking_ids = {
        booking_id
        for (booking_id,) in db.query(models.Booking.id).filter(
            models.Booking.provider_id == profile.id,
            models.Booking.status.in_((BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS)),
        )
    }
    held = [
        tx
        for tx in transactions
        if tx.type == TransactionType.DEPOSIT and tx.booking_id in held_booking_ids
    ]

    completed_bookings = (
        db.query(models.Booking)
        .filter(
            models.Booking.provider_id == profile.id,
            models.Booking.status == BookingStatus.COMPLETED,
        )
        .count()
    )
    total_earnings = _sum(tx.amount for tx in payouts)
    total_fees = _sum(tx.fee for tx in payouts)
    return TransactionSummary(
        total_earnings=total_earnings,
        total_fees=total_fees,
        net_earnings=total_earnings - total_fees,
        pending_payments=_sum(tx.amount for tx in held),
        completed_bookings=completed_bookings,
    )
