from sqlalchemy import (
    Column,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    Index,
)
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, utcnow
from .types import CaseInsensitiveEnum


class MessageType(str, enum.Enum):
    """Type of message being stored."""

    USER = "user"
    SYSTEM = "system"


class Message(BaseModel):
    __tablename__ = "messages"
    __table_args__ = (
        # Conversation lookups filter on the (sender, receiver) pair
        Index("ix_messages_pair_time", "sender_id", "receiver_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Stored after privacy masking; the unmasked text is never persisted
    content = Column(Text, nullable=False)
    message_type = Column(
        CaseInsensitiveEnum(MessageType, name="messagetype"),
        nullable=False,
        default=MessageType.USER,
    )
    was_masked = Column(Boolean, nullable=False, default=False)
    is_read = Column(Boolean, nullable=False, default=False)
    deleted_by_sender = Column(Boolean, nullable=False, default=False)
    deleted_by_receiver = Column(Boolean, nullable=False, default=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
