from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ProviderProfile, User
from ..schemas import JobPostCreate, JobPostResponse, JobPostWithLeads, LeadResponse, LeadUnlockResponse
from ..services import leads
from ..utils import MarketplaceError, to_http_error
from .dependencies import get_current_active_user, get_current_provider_profile

router = APIRouter(tags=["job-posts"], default_response_class=ORJSONResponse)


@router.post("/", response_model=JobPostResponse, status_code=status.HTTP_201_CREATED)
def create_job_post(
    job_in: JobPostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return leads.create_job_post(db, current_user, job_in)


@router.get("/", response_model=List[JobPostResponse])
def list_job_posts(
    category: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    show_all_categories: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return leads.list_open_job_posts(
        db,
        category=category,
        location=location,
        show_all_categories=show_all_categories,
    )


@router.get("/mine", response_model=List[JobPostWithLeads])
def list_my_job_posts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return leads.list_customer_job_posts(db, current_user)


@router.post("/{job_post_id}/unlock", response_model=LeadUnlockResponse)
def unlock_job_post(
    job_post_id: int,
    db: Session = Depends(get_db),
    profile: ProviderProfile = Depends(get_current_provider_profile),
):
    try:
        result = leads.unlock_lead(db, profile, job_post_id)
    except MarketplaceError as exc:
        raise to_http_error(exc)
    return LeadUnlockResponse(
        lead=LeadResponse.model_validate(result.lead),
        already_unlocked=result.already_unlocked,
        message="Already unlocked" if result.already_unlocked else "Lead unlocked",
    )
