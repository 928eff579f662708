import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TenderCreate(BaseModel):
    department_id: uuid.UUID
    source_issue_id: Optional[uuid.UUID] = None
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=50)
    location: str = Field(..., min_length=1)
    area: Optional[str] = None
    ward: Optional[str] = None
    estimated_budget_min: Optional[Decimal] = Field(None, ge=0)
    estimated_budget_max: Optional[Decimal] = Field(None, ge=0)
    deadline_date: date
    submission_deadline: datetime
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    requirements: Optional[List[str]] = None
    documents: Optional[List[str]] = None
    publish: bool = False

    @field_validator("submission_deadline")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        # Columns hold naive UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def _budget_range(self):
        if (
            self.estimated_budget_min is not None
            and self.estimated_budget_max is not None
            and self.estimated_budget_min > self.estimated_budget_max
        ):
            raise ValueError("estimated_budget_min cannot exceed estimated_budget_max")
        return self


class TenderResponse(BaseModel):
    id: str
    posted_by: str
    department_id: str
    source_issue_id: Optional[str] = None
    title: str
    description: str
    category: str
    location: str
    priority: str
    status: str
    workflow_stage: str
    estimated_budget_min: Optional[float] = None
    estimated_budget_max: Optional[float] = None
    deadline_date: str
    submission_deadline: str
    awarded_contractor_id: Optional[str] = None
    awarded_amount: Optional[float] = None
    awarded_at: Optional[str] = None
    work_started_at: Optional[str] = None
    completion_date: Optional[str] = None
    verification_notes: Optional[str] = None
    created_at: str

    model_config = {"from_attributes": True}


class BidCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    details: str = Field(..., min_length=1)
    timeline: Optional[str] = None
    methodology: Optional[str] = None
    team_details: Optional[str] = None
    documents: Optional[List[str]] = None
    draft: bool = False


class BidReview(BaseModel):
    status: Literal["under_review", "accepted", "rejected"]
    evaluation_score: Optional[Decimal] = Field(None, ge=0, le=100)
    evaluation_notes: Optional[str] = None


class BidResponse(BaseModel):
    id: str
    tender_id: str
    user_id: str
    amount: float
    details: str
    timeline: Optional[str] = None
    methodology: Optional[str] = None
    status: str
    evaluation_score: Optional[float] = None
    evaluation_notes: Optional[str] = None
    submitted_at: str
    reviewed_at: Optional[str] = None

    model_config = {"from_attributes": True}
