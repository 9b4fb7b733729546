from pydantic import BaseModel, Field
from typing import Optional, List, Annotated
from datetime import datetime
from decimal import Decimal

from ..models.job_post import JobPostStatus
from ..models.lead import LeadStatus


class JobPostCreate(BaseModel):
    title: Annotated[str, Field(min_length=1, max_length=200)]
    description: Annotated[str, Field(min_length=1)]
    category: Annotated[str, Field(min_length=1)]
    street: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    budget: Optional[Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]] = None


class LeadResponse(BaseModel):
    id: int
    job_post_id: int
    provider_profile_id: int
    unlocked_at: datetime
    status: LeadStatus

    model_config = {"from_attributes": True}


class LeadUnlockResponse(BaseModel):
    lead: LeadResponse
    already_unlocked: bool
    message: str


class JobPostResponse(BaseModel):
    id: int
    customer_id: int
    title: str
    description: str
    category: str
    street: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    budget: Optional[Decimal] = None
    status: JobPostStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class JobPostWithLeads(JobPostResponse):
    leads: List[LeadResponse] = []
