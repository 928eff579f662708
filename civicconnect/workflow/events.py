"""
Workflow events, state snapshots and patches.

A write to a Bid or WorkProgress row is turned into at most one event. The
engine reads the event together with a ``WorkflowContext`` snapshot and
answers with ``EntityPatch`` objects; nothing in this module touches the
database.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Optional, Union


@dataclass(frozen=True)
class BidAccepted:
    bid_id: uuid.UUID
    tender_id: uuid.UUID
    bidder_id: uuid.UUID
    amount: Decimal
    prior_status: str

    kind: ClassVar[str] = "bid_accepted"


@dataclass(frozen=True)
class WorkStarted:
    work_progress_id: uuid.UUID
    tender_id: uuid.UUID
    contractor_id: uuid.UUID
    prior_status: str

    kind: ClassVar[str] = "work_started"


@dataclass(frozen=True)
class WorkApproved:
    work_progress_id: uuid.UUID
    tender_id: uuid.UUID
    contractor_id: uuid.UUID
    prior_status: str
    verification_notes: Optional[str] = None

    kind: ClassVar[str] = "work_approved"


WorkflowEvent = Union[BidAccepted, WorkStarted, WorkApproved]


@dataclass(frozen=True)
class TenderState:
    id: uuid.UUID
    status: str
    workflow_stage: str
    source_issue_id: Optional[uuid.UUID] = None
    awarded_contractor_id: Optional[uuid.UUID] = None
    awarded_amount: Optional[Decimal] = None
    awarded_at: Optional[datetime] = None
    work_started_at: Optional[datetime] = None
    completion_date: Optional[datetime] = None

    @classmethod
    def of(cls, tender) -> "TenderState":
        return cls(
            id=tender.id,
            status=tender.status,
            workflow_stage=tender.workflow_stage,
            source_issue_id=tender.source_issue_id,
            awarded_contractor_id=tender.awarded_contractor_id,
            awarded_amount=tender.awarded_amount,
            awarded_at=tender.awarded_at,
            work_started_at=tender.work_started_at,
            completion_date=tender.completion_date,
        )


@dataclass(frozen=True)
class IssueState:
    id: uuid.UUID
    status: str
    workflow_stage: str
    resolved_at: Optional[datetime] = None

    @classmethod
    def of(cls, issue) -> "IssueState":
        return cls(
            id=issue.id,
            status=issue.status,
            workflow_stage=issue.workflow_stage,
            resolved_at=issue.resolved_at,
        )


@dataclass(frozen=True)
class BidState:
    id: uuid.UUID
    status: str

    @classmethod
    def of(cls, bid) -> "BidState":
        return cls(id=bid.id, status=bid.status)


@dataclass(frozen=True)
class WorkflowContext:
    tender: TenderState
    issue: Optional[IssueState] = None
    sibling_bids: tuple[BidState, ...] = ()


@dataclass(frozen=True)
class EntityPatch:
    entity_type: str  # "tender" | "issue" | "bid"
    entity_id: uuid.UUID
    changes: dict[str, Any] = field(default_factory=dict)


def event_for_bid(bid, prior_status: str) -> Optional[BidAccepted]:
    """Only a move *into* accepted is an event."""
    if bid.status != "accepted" or prior_status == "accepted":
        return None
    return BidAccepted(
        bid_id=bid.id,
        tender_id=bid.tender_id,
        bidder_id=bid.user_id,
        amount=bid.amount,
        prior_status=prior_status,
    )


def event_for_work_progress(
    work_progress, prior_status: str
) -> Optional[Union[WorkStarted, WorkApproved]]:
    """Approved start → WorkStarted, approved completion → WorkApproved.

    Milestones never produce an event.
    """
    if work_progress.status != "approved" or prior_status == "approved":
        return None
    if work_progress.progress_type == "completion":
        return WorkApproved(
            work_progress_id=work_progress.id,
            tender_id=work_progress.tender_id,
            contractor_id=work_progress.contractor_id,
            prior_status=prior_status,
            verification_notes=work_progress.verification_notes,
        )
    if work_progress.progress_type == "start":
        return WorkStarted(
            work_progress_id=work_progress.id,
            tender_id=work_progress.tender_id,
            contractor_id=work_progress.contractor_id,
            prior_status=prior_status,
        )
    return None
