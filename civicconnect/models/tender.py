import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    Numeric,
    Date,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB, ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from civicconnect.database import Base


class Tender(Base):
    __tablename__ = "tenders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    posted_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    department_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id"), nullable=False
    )
    source_issue_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("issues.id")
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    area: Mapped[Optional[str]] = mapped_column(Text)
    ward: Mapped[Optional[str]] = mapped_column(Text)
    estimated_budget_min: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    estimated_budget_max: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    deadline_date: Mapped[date] = mapped_column(Date, nullable=False)
    submission_deadline: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    workflow_stage: Mapped[str] = mapped_column(
        String(30), default="created", nullable=False
    )
    requirements: Mapped[Optional[list]] = mapped_column(ARRAY(Text))
    documents: Mapped[Optional[list]] = mapped_column(ARRAY(Text))
    awarded_contractor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id")
    )
    awarded_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    awarded_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    work_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    verification_notes: Mapped[Optional[str]] = mapped_column(Text)
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
            "priority IN ('low','medium','high','urgent')",
            name="chk_tender_priority",
        ),
        CheckConstraint(
            "status IN ('draft','available','bidding_closed','awarded','completed','cancelled')",
            name="chk_tender_status",
        ),
        CheckConstraint(
            "workflow_stage IN ('created','available','awarded','work_in_progress',"
            "'work_completed','verified','completed')",
            name="chk_tender_workflow_stage",
        ),
        CheckConstraint(
            "(awarded_contractor_id IS NOT NULL) = (status IN ('awarded','completed'))",
            name="chk_tender_award_matches_status",
        ),
        Index("idx_tenders_department_id", "department_id"),
        Index("idx_tenders_status", "status"),
        Index("idx_tenders_workflow_stage", "workflow_stage"),
        Index("idx_tenders_source_issue", "source_issue_id"),
    )


class Bid(Base):
    __tablename__ = "bids"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tender_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenders.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    timeline: Mapped[Optional[str]] = mapped_column(Text)
    methodology: Mapped[Optional[str]] = mapped_column(Text)
    team_details: Mapped[Optional[str]] = mapped_column(Text)
    documents: Mapped[Optional[list]] = mapped_column(ARRAY(Text))
    status: Mapped[str] = mapped_column(String(20), default="submitted", nullable=False)
    evaluation_score: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    evaluation_notes: Mapped[Optional[str]] = mapped_column(Text)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("tender_id", "user_id", name="uq_bid_tender_bidder"),
        CheckConstraint(
            "status IN ('draft','submitted','under_review','accepted','rejected','withdrawn')",
            name="chk_bid_status",
        ),
        CheckConstraint("amount > 0", name="chk_bid_amount"),
        Index("idx_bids_tender_id", "tender_id"),
        Index("idx_bids_user_id", "user_id"),
        Index("idx_bids_status", "status"),
        # Last line of defence behind the tender row lock
        Index(
            "uq_bids_one_accepted_per_tender",
            "tender_id",
            unique=True,
            postgresql_where=text("status = 'accepted'"),
        ),
    )
