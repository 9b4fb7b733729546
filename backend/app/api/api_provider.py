import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Booking, ProviderProfile, QUALIFYING_BOOKING_STATUSES, User
from ..schemas import ProviderProfileResponse
from ..services.contact_reveal import mask_contact_info, should_reveal_contact
from ..utils import NotFound, to_http_error
from .dependencies import get_optional_user

router = APIRouter(tags=["providers"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


@router.get("/{provider_id}", response_model=ProviderProfileResponse)
def read_provider_profile(
    provider_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Public provider profile; direct contact fields are masked for other viewers."""
    profile = db.query(ProviderProfile).filter(ProviderProfile.id == provider_id).first()
    if profile is None:
        raise to_http_error(NotFound("Provider not found"))

    viewer_id = current_user.id if current_user else None
    has_confirmed_booking = viewer_id is not None and (
        db.query(Booking.id)
        .filter(
            Booking.customer_id == viewer_id,
            Booking.provider_id == profile.id,
            Booking.status.in_(QUALIFYING_BOOKING_STATUSES),
        )
        .first()
        is not None
    )
    revealed = should_reveal_contact(
        viewer_id,
        profile.user_id,
        has_confirmed_booking,
        bool(profile.auto_reveal_contact),
    )

    data = ProviderProfileResponse.model_validate(profile).model_dump()
    if not revealed:
        data = mask_contact_info(data)
    data["contact_revealed"] = revealed
    return data
