import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class JobPostStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class JobPost(BaseModel):
    __tablename__ = "job_posts"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    street = Column(String, nullable=True)
    district = Column(String, nullable=True)
    city = Column(String, nullable=True)
    postcode = Column(String, nullable=True)
    budget = Column(Numeric(10, 2), nullable=True)
    status = Column(
        CaseInsensitiveEnum(JobPostStatus, name="jobpoststatus"),
        nullable=False,
        default=JobPostStatus.OPEN,
        index=True,
    )

    customer = relationship("User", back_populates="job_posts")
    leads = relationship("Lead", back_populates="job_post", cascade="all, delete-orphan")
