"""Job posts and the lead unlocks providers spend their allowance on."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..models.base import utcnow
from ..models.job_post import JobPostStatus
from ..models.lead import LeadStatus
from ..utils.errors import LimitExceeded, NotFound
from .pricing_config import get_lead_limit
from .subscription_gate import check_lead_limit

logger = logging.getLogger(__name__)


@dataclass
class LeadUnlockResult:
    lead: models.Lead
    already_unlocked: bool


def create_job_post(db: Session, customer: models.User, data: schemas.JobPostCreate) -> models.JobPost:
    job_post = models.JobPost(
        customer_id=customer.id,
        status=JobPostStatus.OPEN,
        **data.model_dump(),
    )
    db.add(job_post)
    db.commit()
    db.refresh(job_post)
    logger.info("Job post created", extra={"job_post_id": job_post.id, "customer_id": customer.id})
    return job_post


def list_open_job_posts(
    db: Session,
    category: Optional[str] = None,
    location: Optional[str] = None,
    show_all_categories: bool = False,
) -> List[models.JobPost]:
    """Open job posts, newest first; ``location`` matches any address field."""
    query = db.query(models.JobPost).filter(models.JobPost.status == JobPostStatus.OPEN)
    if category and not show_all_categories:
        query = query.filter(models.JobPost.category == category)
    if location and location.strip():
        needle = f"%{location.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(models.JobPost.street).like(needle),
                func.lower(models.JobPost.district).like(needle),
                func.lower(models.JobPost.city).like(needle),
                func.lower(models.JobPost.postcode).like(needle),
            )
        )
    return query.order_by(models.JobPost.created_at.desc(), models.JobPost.id.desc()).all()


def list_customer_job_posts(db: Session, customer: models.User) -> List[models.JobPost]:
    return (
        db.query(models.JobPost)
        .options(selectinload(models.JobPost.leads))
        .filter(models.JobPost.customer_id == customer.id)
        .order_by(models.JobPost.created_at.desc(), models.JobPost.id.desc())
        .all()
    )


def _find_lead(db: Session, job_post_id: int, provider_profile_id: int) -> Optional[models.Lead]:
    return (
        db.query(models.Lead)
        .filter(
            models.Lead.job_post_id == job_post_id,
            models.Lead.provider_profile_id == provider_profile_id,
        )
        .first()
    )


def unlock_lead(
    db: Session,
    provider_profile: models.ProviderProfile,
    job_post_id: int,
    now: datetime | None = None,
) -> LeadUnlockResult:
    """Unlock a job post for a provider; unlocking twice returns the first lead."""
    job_post = db.query(models.JobPost).filter(models.JobPost.id == job_post_id).first()
    if job_post is None:
        raise NotFound("Job post not found")

    existing = _find_lead(db, job_post_id, provider_profile.id)
    if existing is not None:
        return LeadUnlockResult(lead=existing, already_unlocked=True)

    if not check_lead_limit(db, provider_profile, now):
        limit = get_lead_limit(provider_profile.subscription_tier)
        logger.info(
            "Lead limit reached",
            extra={"provider_profile_id": provider_profile.id, "limit": limit},
        )
        raise LimitExceeded(
            f"You have reached your limit of {limit} leads this month. "
            "Upgrade to Pro for unlimited leads."
        )

    lead = models.Lead(
        job_post_id=job_post_id,
        provider_profile_id=provider_profile.id,
        unlocked_at=now or utcnow(),
        status=LeadStatus.UNLOCKED,
    )
    db.add(lead)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent unlock of the same pair
        db.rollback()
        existing = _find_lead(db, job_post_id, provider_profile.id)
        if existing is None:
            raise
        return LeadUnlockResult(lead=existing, already_unlocked=True)
    db.refresh(lead)
    logger.info(
        "Lead unlocked",
        extra={"lead_id": lead.id, "job_post_id": job_post_id, "provider_profile_id": provider_profile.id},
    )
    return LeadUnlockResult(lead=lead, already_unlocked=False)
