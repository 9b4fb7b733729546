import logging

from app.models import Booking, BookingStatus
from app.utils.status_logger import register_status_listeners


def _transition_records(caplog):
    return [r for r in caplog.records if getattr(r, "entity", None) == "Booking"]


def test_booking_status_transitions_are_logged(db, customer, provider, caplog):
    register_status_listeners()
    caplog.set_level(logging.INFO, logger="app.utils.status_logger")

    booking = Booking(
        customer_id=customer.id,
        provider_id=provider.provider_profile.id,
        service_title="Geyser repair",
        status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.commit()
    # Creation is not a transition
    assert _transition_records(caplog) == []

    booking.status = BookingStatus.CONFIRMED
    db.commit()

    records = _transition_records(caplog)
    assert len(records) == 1
    assert records[0].entity_id == booking.id
    assert records[0].from_status == "pending"
    assert records[0].to_status == "confirmed"


def test_registration_is_idempotent(db, customer, provider, caplog):
    register_status_listeners()
    register_status_listeners()
    caplog.set_level(logging.INFO, logger="app.utils.status_logger")

    booking = Booking(
        customer_id=customer.id,
        provider_id=provider.provider_profile.id,
        service_title="Geyser repair",
    )
    db.add(booking)
    db.commit()
    booking.status = BookingStatus.CANCELLED
    db.commit()
    assert len(_transition_records(caplog)) == 1
