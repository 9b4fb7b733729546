import enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, utcnow
from .types import CaseInsensitiveEnum


class LeadStatus(str, enum.Enum):
    UNLOCKED = "unlocked"


class Lead(BaseModel):
    __tablename__ = "leads"
    __table_args__ = (
        # One unlock per provider per job post, even under concurrent requests
        UniqueConstraint(
            "job_post_id",
            "provider_profile_id",
            name="uq_leads_job_post_provider",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_post_id = Column(Integer, ForeignKey("job_posts.id", ondelete="CASCADE"), nullable=False)
    provider_profile_id = Column(
        Integer,
        ForeignKey("provider_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    unlocked_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    status = Column(
        CaseInsensitiveEnum(LeadStatus, name="leadstatus"),
        nullable=False,
        default=LeadStatus.UNLOCKED,
    )

    job_post = relationship("JobPost", back_populates="leads")
    provider_profile = relationship("ProviderProfile", back_populates="leads")
