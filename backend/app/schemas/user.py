from pydantic import BaseModel

from ..models.user import UserType


class UserSummary(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    user_type: UserType

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """Counterpart details shown inside bookings and conversations (no email/phone)."""

    id: int
    first_name: str
    last_name: str
    user_type: UserType

    model_config = {"from_attributes": True}
