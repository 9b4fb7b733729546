import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User
from ..schemas import (
    ConversationResponse,
    ConversationSummary,
    MessageCreate,
    MessageResponse,
    SendMessageResponse,
    UserPublic,
)
from ..services import messaging
from ..utils import MarketplaceError, to_http_error
from .dependencies import get_current_active_user

router = APIRouter(tags=["messages"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


@router.post("/", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    message_in: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Send a direct message. Contact details may be hidden; see ``warning``."""
    try:
        result = messaging.send_message(db, current_user, message_in.receiver_id, message_in.content)
    except MarketplaceError as exc:
        raise to_http_error(exc)
    return SendMessageResponse(
        message=MessageResponse.model_validate(result.message),
        masked=result.masked,
        warning=result.warning,
    )


@router.get("/conversations", response_model=List[ConversationSummary])
def read_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return [
        ConversationSummary.model_validate(convo)
        for convo in messaging.get_conversations(db, current_user)
    ]


@router.get("/conversations/{partner_id}", response_model=ConversationResponse)
def read_conversation(
    partner_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        messages = messaging.get_conversation_messages(db, current_user, partner_id)
    except MarketplaceError as exc:
        raise to_http_error(exc)
    partner = db.query(User).filter(User.id == partner_id).first()
    return ConversationResponse(
        partner=UserPublic.model_validate(partner),
        messages=[MessageResponse.model_validate(m) for m in messages],
    )


@router.post("/{message_id}/read", response_model=MessageResponse)
def mark_message_read(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        return messaging.mark_as_read(db, current_user, message_id)
    except MarketplaceError as exc:
        raise to_http_error(exc)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        messaging.delete_message(db, current_user, message_id)
    except MarketplaceError as exc:
        raise to_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
