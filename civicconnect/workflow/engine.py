"""
Workflow engine: pure transition functions.

    transition(event, context, now) -> [EntityPatch, ...]

BidAccepted  → tender awarded, source issue contractor_assigned,
               submitted sibling bids rejected.
WorkApproved → tender completed, source issue resolved.
WorkStarted  → tender/issue stage work_in_progress (statuses unchanged).

Any guard failure raises a WorkflowError before a single patch is returned,
so the caller either applies the full list or nothing.
"""

from datetime import datetime
from typing import Callable, Optional, Union

import structlog

from civicconnect.workflow.errors import (
    InvalidTransitionError,
    InvariantViolationError,
    WorkflowConflictError,
)
from civicconnect.workflow.events import (
    BidAccepted,
    EntityPatch,
    IssueState,
    WorkApproved,
    WorkflowContext,
    WorkflowEvent,
    WorkStarted,
)
from civicconnect.workflow.stages import (
    AWARDED_TENDER_STATUSES,
    BIDDABLE_TENDER_STATUSES,
    ISSUE_STAGES,
    TENDER_STAGES,
    TERMINAL_ISSUE_STATUSES,
    ensure_forward,
    ensure_unset,
)

logger = structlog.get_logger()


def _source_issue(ctx: WorkflowContext) -> Optional[IssueState]:
    """The linked issue, or None when the tender was not raised from one."""
    source_issue_id = ctx.tender.source_issue_id
    if source_issue_id is None:
        return None
    if ctx.issue is None or ctx.issue.id != source_issue_id:
        raise InvariantViolationError(
            f"Source issue {source_issue_id} of tender {ctx.tender.id} is not available",
            code="SOURCE_ISSUE_MISSING",
        )
    if ctx.issue.status in TERMINAL_ISSUE_STATUSES:
        raise InvariantViolationError(
            f"Issue {ctx.issue.id} is already {ctx.issue.status}",
            code="ISSUE_CLOSED",
        )
    return ctx.issue


def plan_bid_acceptance(
    event: BidAccepted, ctx: WorkflowContext, now: datetime
) -> list[EntityPatch]:
    tender = ctx.tender

    if event.prior_status == "accepted":
        raise InvalidTransitionError(f"Bid {event.bid_id} is already accepted")

    if tender.status not in BIDDABLE_TENDER_STATUSES:
        if tender.status in AWARDED_TENDER_STATUSES:
            raise WorkflowConflictError(
                f"Tender {tender.id} has already been awarded",
                code="TENDER_ALREADY_AWARDED",
            )
        raise InvariantViolationError(
            f"Tender {tender.id} in '{tender.status}' status cannot be awarded",
            code="TENDER_NOT_BIDDABLE",
        )

    if any(b.status == "accepted" and b.id != event.bid_id for b in ctx.sibling_bids):
        raise WorkflowConflictError(
            f"Tender {tender.id} already has an accepted bid",
            code="BID_ALREADY_ACCEPTED",
        )

    ensure_unset("tender", tender.id, "awarded_contractor_id", tender.awarded_contractor_id)
    ensure_unset("tender", tender.id, "awarded_amount", tender.awarded_amount)
    ensure_unset("tender", tender.id, "awarded_at", tender.awarded_at)
    ensure_forward("tender", tender.id, TENDER_STAGES, tender.workflow_stage, "awarded")

    patches = [
        EntityPatch(
            "tender",
            tender.id,
            {
                "status": "awarded",
                "workflow_stage": "awarded",
                "awarded_contractor_id": event.bidder_id,
                "awarded_amount": event.amount,
                "awarded_at": now,
            },
        )
    ]

    issue = _source_issue(ctx)
    if issue is not None:
        ensure_forward("issue", issue.id, ISSUE_STAGES, issue.workflow_stage, "contractor_assigned")
        patches.append(
            EntityPatch(
                "issue",
                issue.id,
                {
                    "workflow_stage": "contractor_assigned",
                    "status": "in_progress",
                    "current_assignee_id": event.bidder_id,
                },
            )
        )

    patches.extend(
        EntityPatch("bid", b.id, {"status": "rejected"})
        for b in ctx.sibling_bids
        if b.id != event.bid_id and b.status == "submitted"
    )
    return patches


def _require_active_award(
    event: Union[WorkStarted, WorkApproved], ctx: WorkflowContext
) -> None:
    tender = ctx.tender
    if tender.status == "completed":
        raise WorkflowConflictError(
            f"Tender {tender.id} is already completed",
            code="TENDER_ALREADY_COMPLETED",
        )
    if tender.status != "awarded":
        raise InvariantViolationError(
            f"Tender {tender.id} has no active award",
            code="TENDER_NOT_AWARDED",
        )
    if tender.awarded_contractor_id != event.contractor_id:
        raise InvariantViolationError(
            f"Contractor {event.contractor_id} is not the awarded contractor of tender {tender.id}",
            code="CONTRACTOR_NOT_AWARDED",
        )


def plan_work_verification(
    event: WorkApproved, ctx: WorkflowContext, now: datetime
) -> list[EntityPatch]:
    tender = ctx.tender

    if event.prior_status == "approved":
        raise InvalidTransitionError(
            f"Work progress {event.work_progress_id} is already approved"
        )
    _require_active_award(event, ctx)
    ensure_unset("tender", tender.id, "completion_date", tender.completion_date)
    ensure_forward("tender", tender.id, TENDER_STAGES, tender.workflow_stage, "completed")

    patches = [
        EntityPatch(
            "tender",
            tender.id,
            {
                "status": "completed",
                "workflow_stage": "completed",
                "completion_date": now,
                "verification_notes": event.verification_notes,
            },
        )
    ]

    issue = _source_issue(ctx)
    if issue is not None:
        ensure_unset("issue", issue.id, "resolved_at", issue.resolved_at)
        ensure_forward("issue", issue.id, ISSUE_STAGES, issue.workflow_stage, "resolved")
        patches.append(
            EntityPatch(
                "issue",
                issue.id,
                {
                    "status": "resolved",
                    "workflow_stage": "resolved",
                    "resolved_at": now,
                    "final_resolution_notes": event.verification_notes,
                },
            )
        )
    return patches


def plan_work_start(
    event: WorkStarted, ctx: WorkflowContext, now: datetime
) -> list[EntityPatch]:
    tender = ctx.tender
    _require_active_award(event, ctx)
    ensure_forward("tender", tender.id, TENDER_STAGES, tender.workflow_stage, "work_in_progress")

    changes = {"workflow_stage": "work_in_progress"}
    if tender.work_started_at is None:
        changes["work_started_at"] = now
    patches = [EntityPatch("tender", tender.id, changes)]

    issue = _source_issue(ctx)
    if issue is not None:
        ensure_forward("issue", issue.id, ISSUE_STAGES, issue.workflow_stage, "work_in_progress")
        patches.append(
            EntityPatch("issue", issue.id, {"workflow_stage": "work_in_progress"})
        )
    return patches


_PLANNERS: dict[type, Callable[..., list[EntityPatch]]] = {
    BidAccepted: plan_bid_acceptance,
    WorkApproved: plan_work_verification,
    WorkStarted: plan_work_start,
}


def transition(
    event: WorkflowEvent,
    ctx: WorkflowContext,
    now: Optional[datetime] = None,
) -> list[EntityPatch]:
    """Dispatch ``event`` to its planner and return the patches to apply."""
    if event.tender_id != ctx.tender.id:
        raise InvariantViolationError(
            f"Event targets tender {event.tender_id} but context holds {ctx.tender.id}",
            code="TENDER_MISMATCH",
        )
    planner = _PLANNERS.get(type(event))
    if planner is None:
        raise InvalidTransitionError(
            f"No workflow handler for {type(event).__name__}",
            code="WORKFLOW_UNKNOWN_EVENT",
        )

    patches = planner(event, ctx, now or datetime.utcnow())
    logger.debug(
        "workflow_transition_planned",
        event=event.kind,
        tender_id=str(ctx.tender.id),
        patches=[(p.entity_type, str(p.entity_id)) for p in patches],
    )
    return patches
