from pydantic import BaseModel, Field
from typing import Optional, List, Annotated
from datetime import datetime

from ..models.message import MessageType
from .user import UserPublic


class MessageCreate(BaseModel):
    receiver_id: int
    content: Annotated[str, Field(max_length=5000)]


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    message_type: MessageType
    was_masked: bool
    is_read: bool
    timestamp: datetime

    model_config = {"from_attributes": True}


class SendMessageResponse(BaseModel):
    message: MessageResponse
    masked: bool
    warning: Optional[str] = None


class ConversationSummary(BaseModel):
    partner: UserPublic
    last_message: MessageResponse
    unread_count: int

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    partner: UserPublic
    messages: List[MessageResponse]
