import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    Integer,
    Numeric,
    Date,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB, ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from civicconnect.database import Base


class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    workflow_stage: Mapped[str] = mapped_column(
        String(30), default="reported", nullable=False
    )
    location_name: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 8))
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(11, 8))
    area: Mapped[Optional[str]] = mapped_column(Text)
    ward: Mapped[Optional[str]] = mapped_column(Text)
    images: Mapped[Optional[list]] = mapped_column(ARRAY(Text))
    assigned_area_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("areas.id")
    )
    assigned_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id")
    )
    current_assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id")
    )
    estimated_resolution_date: Mapped[Optional[date]] = mapped_column(Date)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    final_resolution_notes: Mapped[Optional[str]] = mapped_column(Text)
    upvotes: Mapped[int] = mapped_column(Integer, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, default=0)
    views_count: Mapped[int] = mapped_column(Integer, default=0)
    tags: Mapped[Optional[list]] = mapped_column(ARRAY(Text))
    extra_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONB, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "category IN ('roads','utilities','environment','safety','parks','other')",
            name="chk_issue_category",
        ),
        CheckConstraint(
            "priority IN ('low','medium','high','urgent')",
            name="chk_issue_priority",
        ),
        CheckConstraint(
            "status IN ('pending','acknowledged','in_progress','resolved','closed','rejected')",
            name="chk_issue_status",
        ),
        CheckConstraint(
            "workflow_stage IN ('reported','area_review','department_assigned',"
            "'contractor_assigned','work_in_progress','work_completed','verified','resolved')",
            name="chk_issue_workflow_stage",
        ),
        Index("idx_issues_workflow_stage", "workflow_stage"),
        Index("idx_issues_assigned_department", "assigned_department_id"),
        Index("idx_issues_assigned_area", "assigned_area_id"),
        Index("idx_issues_status", "status"),
        Index("idx_issues_category", "category"),
    )


class IssueAssignment(Base):
    """Append-only routing trail. Only ``status`` changes after insert."""

    __tablename__ = "issue_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    issue_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("issues.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id"),
        nullable=False,
    )
    assigned_to: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL")
    )
    assigned_area_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("areas.id")
    )
    assigned_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id")
    )
    assignment_type: Mapped[str] = mapped_column(String(40), nullable=False)
    assignment_notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "assignment_type IN ('admin_to_area','area_to_department','department_to_contractor')",
            name="chk_assignment_type",
        ),
        CheckConstraint(
            "status IN ('active','completed','reassigned','cancelled')",
            name="chk_assignment_status",
        ),
        Index("idx_issue_assignments_issue_id", "issue_id"),
        Index("idx_issue_assignments_assigned_to", "assigned_to"),
    )


class IssueVote(Base):
    __tablename__ = "issue_votes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    issue_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("issues.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    vote_type: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("issue_id", "user_id", name="uq_issue_vote_user"),
        CheckConstraint(
            "vote_type IN ('upvote','downvote')", name="chk_issue_vote_type"
        ),
    )
