import uuid
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    category: Literal["roads", "utilities", "environment", "safety", "parks", "other"]
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    location_name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    area: Optional[str] = None
    ward: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class IssueStageAdvance(BaseModel):
    workflow_stage: Literal["area_review", "department_assigned"]


class IssueClose(BaseModel):
    status: Literal["closed", "rejected"]
    notes: Optional[str] = None


class IssueVoteCreate(BaseModel):
    vote_type: Literal["upvote", "downvote"]


class IssueResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    category: str
    priority: str
    status: str
    workflow_stage: str
    location_name: Optional[str] = None
    address: Optional[str] = None
    area: Optional[str] = None
    ward: Optional[str] = None
    assigned_area_id: Optional[str] = None
    assigned_department_id: Optional[str] = None
    current_assignee_id: Optional[str] = None
    resolved_at: Optional[str] = None
    final_resolution_notes: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    created_at: str
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}


class AssignmentCreate(BaseModel):
    assignment_type: Literal["admin_to_area", "area_to_department", "department_to_contractor"]
    assigned_to: Optional[uuid.UUID] = None
    assigned_area_id: Optional[uuid.UUID] = None
    assigned_department_id: Optional[uuid.UUID] = None
    assignment_notes: Optional[str] = None


class AssignmentClose(BaseModel):
    status: Literal["completed", "cancelled"]


class AssignmentResponse(BaseModel):
    id: str
    issue_id: str
    assigned_by: str
    assigned_to: Optional[str] = None
    assigned_area_id: Optional[str] = None
    assigned_department_id: Optional[str] = None
    assignment_type: str
    assignment_notes: Optional[str] = None
    status: str
    created_at: str

    model_config = {"from_attributes": True}
