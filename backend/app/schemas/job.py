import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.models.job import JobStatus, UrgencyLevel


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    city: str = ""
    category_id: str = "other"
    subcategory: str = ""
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    budget_min: float | None = Field(None, ge=0)
    budget_max: float | None = Field(None, ge=0)
    is_verified_payment: bool = False
    is_neighbor_posted: bool = False

    @model_validator(mode="after")
    def check_budget_range(self):
        if self.budget_min is not None and self.budget_max is not None and self.budget_max < self.budget_min:
            raise ValueError("budget_max must be greater than or equal to budget_min")
        return self


class JobResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    title: str
    description: str
    status: str
    lat: float
    lng: float
    city: str
    category_id: str
    subcategory: str
    urgency_level: str
    budget_min: float | None
    budget_max: float | None
    is_verified_payment: bool
    is_neighbor_posted: bool
    has_client_review: bool
    created_at: datetime
    updated_at: datetime
    proposal_count: int | None = None

    model_config = {"from_attributes": True}


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
    page: int
    page_size: int


class JobFilters(BaseModel):
    search: str | None = None
    category_id: str | None = None
    status: JobStatus | None = None
    urgency_level: UrgencyLevel | None = None
    city: str | None = None
    min_budget: float | None = None
    sort_by: Literal["created_at", "budget_min", "title", "urgency_level"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = 1
    page_size: int = 25
