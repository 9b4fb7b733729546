from decimal import Decimal

import pytest

from app.models import BookingStatus, Transaction, TransactionType
from app.schemas import BookingRequestCreate
from app.services import booking_engine
from app.utils.errors import (
    ExternalServiceFailure,
    InvalidState,
    LimitExceeded,
    NotFound,
    Unauthorized,
)
from conftest import FakeGateway, make_provider


def _request(db, customer, provider, **overrides):
    data = {
        "provider_id": provider.provider_profile.id,
        "service_title": "Geyser repair",
        "location": "Cape Town",
    }
    data.update(overrides)
    return booking_engine.create_booking_request(db, customer, BookingRequestCreate(**data))


def _confirmed(db, customer, provider, gateway, price="100"):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, price, provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)
    return booking_engine.finalize_booking_payment(db, checkout.payment.reference, customer, gateway)


def _transactions(db, booking_id, tx_type=None):
    query = db.query(Transaction).filter(Transaction.booking_id == booking_id)
    if tx_type is not None:
        query = query.filter(Transaction.type == tx_type)
    return query.order_by(Transaction.id).all()


def test_create_booking_request_is_pending_and_counted(db, customer, provider):
    booking = _request(db, customer, provider)
    assert booking.status == BookingStatus.PENDING
    assert booking.service_price == Decimal("0")
    assert booking.customer_id == customer.id
    db.refresh(provider.provider_profile)
    assert provider.provider_profile.monthly_booking_count == 1


def test_create_booking_request_unknown_provider(db, customer):
    with pytest.raises(NotFound):
        booking_engine.create_booking_request(
            db, customer, BookingRequestCreate(provider_id=404, service_title="Anything")
        )


def test_cannot_book_yourself(db, provider):
    with pytest.raises(InvalidState):
        _request(db, provider, provider)


def test_free_tier_booking_limit(db, customer, provider):
    for _ in range(3):
        _request(db, customer, provider)
    with pytest.raises(LimitExceeded):
        _request(db, customer, provider)
    db.refresh(provider.provider_profile)
    assert provider.provider_profile.monthly_booking_count == 3


def test_send_quote_sets_fees(db, customer, provider):
    booking = _request(db, customer, provider)
    quoted = booking_engine.send_quote(db, booking.id, "100", provider)
    assert quoted.service_price == Decimal("100.00")
    assert quoted.booking_fee == Decimal("2.50")
    assert quoted.transaction_fee == Decimal("7.00")
    assert quoted.total_amount == Decimal("101.25")
    assert quoted.deposit_amount == Decimal("20.25")


def test_send_quote_requires_provider(db, customer, provider, outsider):
    booking = _request(db, customer, provider)
    for actor in (customer, outsider):
        with pytest.raises(Unauthorized):
            booking_engine.send_quote(db, booking.id, "100", actor)


@pytest.mark.parametrize("price", ["0", "-5", "abc"])
def test_send_quote_rejects_bad_price(db, customer, provider, price):
    booking = _request(db, customer, provider)
    with pytest.raises(InvalidState):
        booking_engine.send_quote(db, booking.id, price, provider)


def test_confirm_without_quote_fails(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    with pytest.raises(InvalidState):
        booking_engine.confirm_booking(db, booking.id, customer, gateway)
    assert gateway.initialized == []


def test_confirm_initializes_deposit_payment(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)

    assert checkout.booking.status == BookingStatus.PENDING
    assert checkout.payment.reference == "ref-1"
    email, amount, metadata = gateway.initialized[0]
    assert email == customer.email
    assert amount == Decimal("20.25")
    assert metadata == {
        "booking_id": booking.id,
        "type": "deposit",
        "user_id": customer.id,
        "deposit_amount": "20.25",
    }


def test_confirm_requires_customer(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    with pytest.raises(Unauthorized):
        booking_engine.confirm_booking(db, booking.id, provider, gateway)


def test_confirm_propagates_gateway_failure(db, customer, provider):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    with pytest.raises(ExternalServiceFailure):
        booking_engine.confirm_booking(db, booking.id, customer, FakeGateway(fail=True))
    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING


def test_finalize_confirms_and_records_deposit(db, customer, provider, gateway):
    booking = _confirmed(db, customer, provider, gateway)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.contact_revealed is True
    assert booking.contact_revealed_at is not None

    deposits = _transactions(db, booking.id, TransactionType.DEPOSIT)
    assert len(deposits) == 1
    assert deposits[0].amount == Decimal("20.25")
    assert deposits[0].paystack_reference == "ref-1"
    assert deposits[0].provider_id == provider.provider_profile.id


def test_finalize_is_idempotent(db, customer, provider, gateway):
    booking = _confirmed(db, customer, provider, gateway)
    again = booking_engine.finalize_booking_payment(db, "ref-1", customer, gateway)
    assert again.id == booking.id
    assert again.status == BookingStatus.CONFIRMED
    assert len(_transactions(db, booking.id)) == 1
    # The second call never reaches the gateway
    assert gateway.verified == ["ref-1"]


def test_finalize_respects_auto_reveal_setting(db, customer, gateway):
    provider = make_provider(db, email="quiet@test.com", auto_reveal_contact=False)
    booking = _confirmed(db, customer, provider, gateway)
    assert booking.contact_revealed is False
    assert booking.contact_revealed_at is None


def test_finalize_failed_verification(db, customer, provider):
    gateway = FakeGateway(status="failed")
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)
    with pytest.raises(InvalidState):
        booking_engine.finalize_booking_payment(db, checkout.payment.reference, customer, gateway)
    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING
    assert _transactions(db, booking.id) == []


def test_short_payment_is_recorded_but_does_not_confirm(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)
    gateway._amounts[checkout.payment.reference] = Decimal("5.00")
    with pytest.raises(InvalidState):
        booking_engine.finalize_booking_payment(db, checkout.payment.reference, customer, gateway)

    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING
    deposits = _transactions(db, booking.id, TransactionType.DEPOSIT)
    assert [tx.amount for tx in deposits] == [Decimal("5.00")]


def test_deposit_recorded_when_provider_started_during_checkout(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)
    booking_engine.start_booking(db, booking.id, provider)

    finalized = booking_engine.finalize_booking_payment(db, checkout.payment.reference, customer, gateway)
    assert finalized.status == BookingStatus.IN_PROGRESS
    deposits = _transactions(db, booking.id, TransactionType.DEPOSIT)
    assert [tx.amount for tx in deposits] == [Decimal("20.25")]

    # The recorded deposit is refunded if the booking is later cancelled
    booking_engine.cancel_booking(db, booking.id, customer)
    refunds = _transactions(db, booking.id, TransactionType.REFUND)
    assert [tx.amount for tx in refunds] == [Decimal("20.25")]


def test_requote_during_checkout_uses_initialized_deposit(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)
    booking_engine.send_quote(db, booking.id, "500", provider)

    finalized = booking_engine.finalize_booking_payment(db, checkout.payment.reference, customer, gateway)
    assert finalized.status == BookingStatus.CONFIRMED
    assert len(_transactions(db, booking.id, TransactionType.DEPOSIT)) == 1

    booking_engine.complete_booking(db, booking.id, provider)
    balance = _transactions(db, booking.id, TransactionType.PAYMENT)[0]
    # 501.25 total less the 20.25 actually paid at checkout
    assert balance.amount == Decimal("481.00")


def test_payment_on_cancelled_booking_is_refunded(db, customer, provider, gateway):
    booking = _request(db, customer, provider)
    booking_engine.send_quote(db, booking.id, "100", provider)
    checkout = booking_engine.confirm_booking(db, booking.id, customer, gateway)
    booking_engine.cancel_booking(db, booking.id, provider)

    finalized = booking_engine.finalize_booking_payment(db, checkout.payment.reference, customer, gateway)
    assert finalized.status == BookingStatus.CANCELLED
    assert finalized.contact_revealed is False
    refunds = _transactions(db, booking.id, TransactionType.REFUND)
    assert len(refunds) == 1
    assert refunds[0].meta == {"refunds_reference": checkout.payment.reference}


def test_finalize_requires_booking_metadata(db, customer, gateway):
    payment = gateway.initialize_transaction(customer.email, Decimal("10"), {"type": "deposit"})
    with pytest.raises(InvalidState):
        booking_engine.finalize_booking_payment(db, payment.reference, customer, gateway)


def test_start_and_complete_record_payout(db, customer, provider, gateway):
    booking = _confirmed(db, customer, provider, gateway)
    started = booking_engine.start_booking(db, booking.id, provider)
    assert started.status == BookingStatus.IN_PROGRESS

    result = booking_engine.complete_booking(db, booking.id, customer)
    assert result.booking.status == BookingStatus.COMPLETED
    assert result.booking.completed_at is not None
    assert result.provider_earnings == Decimal("91.75")

    payments = _transactions(db, booking.id, TransactionType.PAYMENT)
    balance, payout = payments
    assert balance.amount == Decimal("81.00")
    assert balance.meta == {"kind": "remaining_balance"}
    assert payout.amount == Decimal("100.00")
    assert payout.fee == Decimal("8.25")
    assert payout.net_amount == Decimal("91.75")


def test_start_requires_provider(db, customer, provider, gateway):
    booking = _confirmed(db, customer, provider, gateway)
    with pytest.raises(Unauthorized):
        booking_engine.start_booking(db, booking.id, customer)


@pytest.mark.parametrize("finish", ["complete", "cancel"])
def test_terminal_bookings_cannot_start(db, customer, provider, gateway, finish):
    booking = _confirmed(db, customer, provider, gateway)
    if finish == "complete":
        booking_engine.complete_booking(db, booking.id, provider)
    else:
        booking_engine.cancel_booking(db, booking.id, customer)
    with pytest.raises(InvalidState):
        booking_engine.start_booking(db, booking.id, provider)


def test_pending_booking_cannot_complete(db, customer, provider):
    booking = _request(db, customer, provider)
    with pytest.raises(InvalidState):
        booking_engine.complete_booking(db, booking.id, provider)


def test_cancel_pending_has_no_refund(db, customer, provider):
    booking = _request(db, customer, provider)
    cancelled = booking_engine.cancel_booking(db, booking.id, customer, reason="Found someone else")
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert "Cancellation reason: Found someone else" in cancelled.notes
    assert _transactions(db, booking.id) == []


def test_cancel_confirmed_refunds_deposit(db, customer, provider, gateway):
    booking = _confirmed(db, customer, provider, gateway)
    booking_engine.cancel_booking(db, booking.id, provider)
    refunds = _transactions(db, booking.id, TransactionType.REFUND)
    assert len(refunds) == 1
    assert refunds[0].amount == Decimal("20.25")
    assert refunds[0].meta == {"refunds_reference": "ref-1"}
    # The deposit row itself is left as recorded
    deposit = _transactions(db, booking.id, TransactionType.DEPOSIT)[0]
    assert deposit.status.value == "completed"


def test_outsider_cannot_cancel(db, customer, provider, outsider):
    booking = _request(db, customer, provider)
    with pytest.raises(Unauthorized):
        booking_engine.cancel_booking(db, booking.id, outsider)


def test_dispute_requires_reason_and_active_booking(db, customer, provider, gateway):
    pending = _request(db, customer, provider)
    with pytest.raises(InvalidState):
        booking_engine.initiate_dispute(db, pending.id, customer, "Never showed up")

    booking = _confirmed(db, customer, provider, gateway)
    with pytest.raises(InvalidState):
        booking_engine.initiate_dispute(db, booking.id, customer, "   ")

    disputed = booking_engine.initiate_dispute(db, booking.id, customer, "Never showed up")
    assert disputed.status == BookingStatus.DISPUTED
    assert "Dispute initiated: Never showed up" in disputed.notes


def test_user_bookings_by_role(db, customer, provider, outsider):
    first = _request(db, customer, provider)
    _request(db, outsider, provider)
    booking_engine.cancel_booking(db, first.id, customer)

    assert [b.id for b in booking_engine.get_user_bookings(db, customer)] == [first.id]
    assert len(booking_engine.get_user_bookings(db, provider)) == 2
    cancelled = booking_engine.get_user_bookings(db, provider, BookingStatus.CANCELLED)
    assert [b.id for b in cancelled] == [first.id]


def test_booking_details_participants_only(db, customer, provider, outsider):
    booking = _request(db, customer, provider)
    assert booking_engine.get_booking_details(db, booking.id, provider).id == booking.id
    with pytest.raises(Unauthorized):
        booking_engine.get_booking_details(db, booking.id, outsider)
    with pytest.raises(NotFound):
        booking_engine.get_booking_details(db, 999, customer)


def test_provider_earnings_summary(db, customer, provider, gateway):
    done = _confirmed(db, customer, provider, gateway)
    booking_engine.complete_booking(db, done.id, provider)
    _confirmed(db, customer, provider, gateway, price="50")

    summary = booking_engine.get_provider_earnings(db, provider.provider_profile)
    assert summary.total_earnings == Decimal("100.00")
    assert summary.total_fees == Decimal("8.25")
    assert summary.net_earnings == Decimal("91.75")
    # Deposit on the second, still confirmed booking: (50 + 1.25) * 20%
    assert summary.pending_payments == Decimal("10.25")
    assert summary.completed_bookings == 1
