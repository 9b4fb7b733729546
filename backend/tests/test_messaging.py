from datetime import timedelta

import pytest

from app.models import Booking, BookingStatus, Message
from app.models.base import utcnow
from app.services import messaging
from app.utils.errors import InvalidState, NotFound, Unauthorized

LEAKY = "Reach me at pat@example.com or call 082 123 4567"


def _book(db, customer, provider, status):
    booking = Booking(
        customer_id=customer.id,
        provider_id=provider.provider_profile.id,
        service_title="Geyser repair",
        status=status,
    )
    db.add(booking)
    db.commit()
    return booking


def test_contact_details_masked_without_booking(db, customer, provider):
    result = messaging.send_message(db, customer, provider.id, LEAKY)
    assert result.masked is True
    assert result.warning == messaging.MASKED_WARNING
    assert result.message.content == "Reach me at [Hidden Email] or call [Hidden Phone]"
    assert result.message.was_masked is True
    # Only the masked text reaches the database
    stored = db.query(Message).one()
    assert "pat@example.com" not in stored.content


@pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.CANCELLED])
def test_non_qualifying_booking_still_masks(db, customer, provider, status):
    _book(db, customer, provider, status)
    assert messaging.send_message(db, provider, customer.id, LEAKY).masked is True


@pytest.mark.parametrize(
    "status",
    [BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED],
)
def test_qualifying_booking_allows_contact_details(db, customer, provider, status):
    _book(db, customer, provider, status)
    # Either direction of the pair qualifies
    for sender, receiver in ((customer, provider), (provider, customer)):
        result = messaging.send_message(db, sender, receiver.id, LEAKY)
        assert result.masked is False
        assert result.warning is None
        assert result.message.content == LEAKY


def test_clean_message_is_untouched(db, customer, provider):
    result = messaging.send_message(db, customer, provider.id, "  Is Tuesday morning okay?  ")
    assert result.masked is False
    assert result.message.content == "Is Tuesday morning okay?"


def test_send_message_errors(db, customer, provider):
    with pytest.raises(InvalidState):
        messaging.send_message(db, customer, provider.id, "   ")
    with pytest.raises(InvalidState):
        messaging.send_message(db, customer, customer.id, "hello")
    with pytest.raises(NotFound):
        messaging.send_message(db, customer, 999, "hello")

    provider.is_active = False
    db.commit()
    with pytest.raises(NotFound):
        messaging.send_message(db, customer, provider.id, "hello")


def test_conversations_group_by_partner(db, customer, provider, outsider):
    base = utcnow()
    first = messaging.send_message(db, provider, customer.id, "Quote attached").message
    second = messaging.send_message(db, provider, customer.id, "Any questions?").message
    reply = messaging.send_message(db, customer, outsider.id, "Hi there").message
    first.timestamp = base - timedelta(minutes=3)
    second.timestamp = base - timedelta(minutes=2)
    reply.timestamp = base - timedelta(minutes=1)
    db.commit()

    conversations = messaging.get_conversations(db, customer)
    assert [c.partner.id for c in conversations] == [outsider.id, provider.id]
    with_provider = conversations[1]
    assert with_provider.last_message.id == second.id
    assert with_provider.unread_count == 2
    assert conversations[0].unread_count == 0


def test_opening_thread_marks_partner_messages_read(db, customer, provider):
    messaging.send_message(db, provider, customer.id, "Quote attached")
    messaging.send_message(db, customer, provider.id, "Thanks")

    thread = messaging.get_conversation_messages(db, customer, provider.id)
    assert [m.content for m in thread] == ["Quote attached", "Thanks"]
    assert messaging.get_conversations(db, customer)[0].unread_count == 0
    # The customer's own message stays unread for the provider
    assert messaging.get_conversations(db, provider)[0].unread_count == 1

    with pytest.raises(NotFound):
        messaging.get_conversation_messages(db, customer, 999)


def test_mark_as_read_recipient_only(db, customer, provider):
    message = messaging.send_message(db, customer, provider.id, "hello").message
    with pytest.raises(Unauthorized):
        messaging.mark_as_read(db, customer, message.id)
    assert messaging.mark_as_read(db, provider, message.id).is_read is True
    with pytest.raises(NotFound):
        messaging.mark_as_read(db, provider, 999)


def test_delete_hides_message_for_one_side(db, customer, provider, outsider):
    message = messaging.send_message(db, customer, provider.id, "hello").message

    with pytest.raises(Unauthorized):
        messaging.delete_message(db, outsider, message.id)

    messaging.delete_message(db, customer, message.id)
    assert messaging.get_conversations(db, customer) == []
    assert messaging.get_conversation_messages(db, customer, provider.id) == []
    assert [m.id for m in messaging.get_conversation_messages(db, provider, customer.id)] == [message.id]

    messaging.delete_message(db, provider, message.id)
    assert messaging.get_conversations(db, provider) == []
    assert db.query(Message).count() == 1
