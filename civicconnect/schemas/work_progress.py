from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class WorkProgressCreate(BaseModel):
    progress_type: Literal["start", "milestone", "completion"]
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    progress_percentage: int = Field(0, ge=0, le=100)
    images: Optional[List[str]] = None
    materials_used: Optional[List[str]] = None
    challenges_faced: Optional[str] = None
    next_steps: Optional[str] = None
    requires_verification: bool = False


class WorkProgressReview(BaseModel):
    status: Literal["under_review", "approved", "rejected"]
    verification_notes: Optional[str] = None


class WorkProgressResponse(BaseModel):
    id: str
    tender_id: str
    contractor_id: str
    progress_type: str
    title: str
    description: str
    progress_percentage: int = 0
    status: str
    verified_by: Optional[str] = None
    verified_at: Optional[str] = None
    verification_notes: Optional[str] = None
    created_at: str

    model_config = {"from_attributes": True}
