"""Direct messages between customers and providers.

Contact details are masked before a message is stored unless the two users
share a qualifying booking; the raw text is never written in that case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..models.booking_status import QUALIFYING_BOOKING_STATUSES
from ..models.message import MessageType
from ..utils.errors import InvalidState, NotFound, Unauthorized
from .privacy_filter import contains_sensitive_content, find_sensitive_categories, mask_sensitive_content

logger = logging.getLogger(__name__)

MASKED_WARNING = (
    "Contact details were hidden. You can share them once you have a confirmed booking together."
)


@dataclass
class SendMessageResult:
    message: models.Message
    masked: bool
    warning: Optional[str] = None


@dataclass
class Conversation:
    partner: models.User
    last_message: models.Message
    unread_count: int


def has_qualifying_booking(db: Session, user_a: models.User, user_b: models.User) -> bool:
    """True when either user booked the other and the booking is underway or done."""
    pairs = []
    for customer, provider in ((user_a, user_b), (user_b, user_a)):
        if provider.provider_profile is not None:
            pairs.append(
                and_(
                    models.Booking.customer_id == customer.id,
                    models.Booking.provider_id == provider.provider_profile.id,
                )
            )
    if not pairs:
        return False
    return (
        db.query(models.Booking.id)
        .filter(or_(*pairs), models.Booking.status.in_(QUALIFYING_BOOKING_STATUSES))
        .first()
        is not None
    )


def _get_user(db: Session, user_id: int) -> Optional[models.User]:
    return (
        db.query(models.User)
        .options(selectinload(models.User.provider_profile))
        .filter(models.User.id == user_id)
        .first()
    )


def send_message(db: Session, sender: models.User, receiver_id: int, content: str) -> SendMessageResult:
    text = (content or "").strip()
    if not text:
        raise InvalidState("Message cannot be empty")
    if receiver_id == sender.id:
        raise InvalidState("You cannot message yourself")
    receiver = _get_user(db, receiver_id)
    if receiver is None or not receiver.is_active:
        raise NotFound("Recipient not found")

    masked = False
    warning = None
    if contains_sensitive_content(text) and not has_qualifying_booking(db, sender, receiver):
        logger.info(
            "Masked contact details in message",
            extra={
                "sender_id": sender.id,
                "receiver_id": receiver.id,
                "categories": find_sensitive_categories(text),
            },
        )
        text = mask_sensitive_content(text)
        masked = True
        warning = MASKED_WARNING

    message = models.Message(
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=text,
        message_type=MessageType.USER,
        was_masked=masked,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return SendMessageResult(message=message, masked=masked, warning=warning)


def _visible_to(user_id: int):
    return or_(
        and_(models.Message.sender_id == user_id, models.Message.deleted_by_sender.is_(False)),
        and_(models.Message.receiver_id == user_id, models.Message.deleted_by_receiver.is_(False)),
    )


def get_conversations(db: Session, user: models.User) -> List[Conversation]:
    """One entry per partner, most recent conversation first."""
    messages = (
        db.query(models.Message)
        .options(selectinload(models.Message.sender), selectinload(models.Message.receiver))
        .filter(_visible_to(user.id))
        .order_by(models.Message.timestamp.desc(), models.Message.id.desc())
        .all()
    )
    conversations: Dict[int, Conversation] = {}
    for msg in messages:
        incoming = msg.receiver_id == user.id
        partner = msg.sender if incoming else msg.receiver
        convo = conversations.get(partner.id)
        if convo is None:
            convo = Conversation(partner=partner, last_message=msg, unread_count=0)
            conversations[partner.id] = convo
        if incoming and not msg.is_read:
            convo.unread_count += 1
    return list(conversations.values())


def get_conversation_messages(db: Session, user: models.User, partner_id: int) -> List[models.Message]:
    """Return the thread with ``partner_id`` oldest first and mark their messages read."""
    partner = _get_user(db, partner_id)
    if partner is None:
        raise NotFound("User not found")
    messages = (
        db.query(models.Message)
        .filter(
            or_(
                and_(models.Message.sender_id == user.id, models.Message.receiver_id == partner_id),
                and_(models.Message.sender_id == partner_id, models.Message.receiver_id == user.id),
            ),
            _visible_to(user.id),
        )
        .order_by(models.Message.timestamp.asc(), models.Message.id.asc())
        .all()
    )
    db.query(models.Message).filter(
        models.Message.sender_id == partner_id,
        models.Message.receiver_id == user.id,
        models.Message.is_read.is_(False),
    ).update({models.Message.is_read: True}, synchronize_session="fetch")
    db.commit()
    return messages


def _get_message(db: Session, message_id: int) -> models.Message:
    message = db.query(models.Message).filter(models.Message.id == message_id).first()
    if message is None:
        raise NotFound("Message not found")
    return message


def mark_as_read(db: Session, user: models.User, message_id: int) -> models.Message:
    message = _get_message(db, message_id)
    if message.receiver_id != user.id:
        raise Unauthorized("Only the recipient can mark a message as read")
    if not message.is_read:
        message.is_read = True
        db.commit()
        db.refresh(message)
    return message


def delete_message(db: Session, user: models.User, message_id: int) -> models.Message:
    """Hide a message for ``user`` only; the other side still sees it."""
    message = _get_message(db, message_id)
    if message.sender_id == user.id:
        message.deleted_by_sender = True
    elif message.receiver_id == user.id:
        message.deleted_by_receiver = True
    else:
        raise Unauthorized("You are not part of this conversation")
    db.commit()
    db.refresh(message)
    return message
