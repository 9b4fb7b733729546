# backend/app/models/user.py

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class UserType(str, enum.Enum):
    """Enumeration of all supported user roles."""

    CUSTOMER = "customer"
    PROVIDER = "provider"


class User(BaseModel):
    __tablename__ = "users"

    id           = Column(Integer, primary_key=True, index=True)
    email        = Column(String, unique=True, index=True, nullable=False)
    password     = Column(String, nullable=False)
    first_name   = Column(String, nullable=False)
    last_name    = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)
    user_type    = Column(CaseInsensitiveEnum(UserType, name="usertype"), nullable=False)
    is_active    = Column(Boolean, default=True)

    # ↔–↔ If this user is a service provider, they get exactly one profile here:
    provider_profile = relationship(
        "ProviderProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    # ↔–↔ All bookings where this user is the customer
    bookings_as_customer = relationship(
        "Booking",
        foreign_keys="Booking.customer_id",
        back_populates="customer",
    )

    job_posts = relationship(
        "JobPost",
        back_populates="customer",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
