"""
Workflow service: the write path for Bid and WorkProgress status changes.

Each call:
  1. locks the owning tender row (SELECT ... FOR UPDATE),
  2. re-reads the triggering row under that lock,
  3. validates and applies the status change,
  4. turns it into a workflow event and asks the engine for patches,
  5. applies the patches and flushes.

All functions use the caller's session (no commit). get_db() commits or
rolls back the whole unit, so a cascade is never half-applied.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status as http_status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.models.issue import Issue
from civicconnect.models.tender import Bid, Tender
from civicconnect.models.work_progress import WorkProgress
from civicconnect.workflow.engine import transition
from civicconnect.workflow.errors import InvariantViolationError, WorkflowConflictError
from civicconnect.workflow.events import (
    BidState,
    EntityPatch,
    IssueState,
    TenderState,
    WorkflowContext,
    WorkflowEvent,
    event_for_bid,
    event_for_work_progress,
)
from civicconnect.workflow.stages import (
    AWARDED_TENDER_STATUSES,
    BID_TRANSITIONS,
    WORK_PROGRESS_TRANSITIONS,
    ensure_transition,
)

logger = structlog.get_logger()


@dataclass
class WorkflowOutcome:
    changed: bool
    prior_status: str
    event: Optional[WorkflowEvent] = None
    patches: list[EntityPatch] = field(default_factory=list)

    def patched(self, entity_type: str) -> list[EntityPatch]:
        return [p for p in self.patches if p.entity_type == entity_type]


async def lock_tender(session: AsyncSession, tender_id: Any) -> Tender:
    """Row-lock the tender; serialises every workflow write on it."""
    result = await session.execute(
        select(Tender)
        .where(Tender.id == tender_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    tender = result.scalar_one_or_none()
    if not tender:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND, detail="Tender not found"
        )
    return tender


async def _load_source_issue(
    session: AsyncSession, tender: Tender
) -> Optional[Issue]:
    if tender.source_issue_id is None:
        return None
    result = await session.execute(
        select(Issue)
        .where(Issue.id == tender.source_issue_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def apply_patches(
    patches: list[EntityPatch], entities: dict[tuple[str, uuid.UUID], Any]
) -> None:
    for patch in patches:
        target = entities.get((patch.entity_type, patch.entity_id))
        if target is None:
            raise InvariantViolationError(
                f"No loaded {patch.entity_type} {patch.entity_id} to patch",
                code="PATCH_TARGET_MISSING",
            )
        for name, value in patch.changes.items():
            setattr(target, name, value)


async def _run_cascade(
    session: AsyncSession,
    event: WorkflowEvent,
    tender: Tender,
    now: datetime,
    siblings: Optional[list[Bid]] = None,
) -> list[EntityPatch]:
    issue = await _load_source_issue(session, tender)
    siblings = siblings or []

    ctx = WorkflowContext(
        tender=TenderState.of(tender),
        issue=IssueState.of(issue) if issue is not None else None,
        sibling_bids=tuple(BidState.of(b) for b in siblings),
    )
    patches = transition(event, ctx, now)

    entities: dict[tuple[str, uuid.UUID], Any] = {("tender", tender.id): tender}
    if issue is not None:
        entities[("issue", issue.id)] = issue
    for b in siblings:
        entities[("bid", b.id)] = b
    apply_patches(patches, entities)
    return patches


async def _tender_id_of(session: AsyncSession, model, row_id: Any, label: str):
    result = await session.execute(select(model.tender_id).where(model.id == row_id))
    tender_id = result.scalar_one_or_none()
    if tender_id is None:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND, detail=f"{label} not found"
        )
    return tender_id


async def change_bid_status(
    session: AsyncSession,
    bid_id: Any,
    new_status: str,
    evaluation_notes: Optional[str] = None,
    evaluation_score: Optional[Any] = None,
) -> tuple[Bid, WorkflowOutcome]:
    """
    Move a bid to ``new_status``; accepting it fires the bid acceptance cascade.

    Writing the status a bid already has is a no-op.
    """
    tender_id = await _tender_id_of(session, Bid, bid_id, "Bid")
    tender = await lock_tender(session, tender_id)

    result = await session.execute(
        select(Bid)
        .where(Bid.id == bid_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    bid = result.scalar_one_or_none()
    if not bid:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND, detail="Bid not found"
        )

    prior = bid.status
    if new_status == prior:
        logger.info("bid_status_unchanged", bid_id=str(bid.id), status=prior)
        return bid, WorkflowOutcome(changed=False, prior_status=prior)

    # A racing acceptance may have awarded the tender while we waited on the lock
    if new_status == "accepted" and tender.status in AWARDED_TENDER_STATUSES:
        raise WorkflowConflictError(
            f"Tender {tender.id} has already been awarded",
            code="TENDER_ALREADY_AWARDED",
        )
    ensure_transition("bid", BID_TRANSITIONS, prior, new_status)

    now = datetime.utcnow()
    bid.status = new_status
    if new_status in ("under_review", "accepted", "rejected"):
        bid.reviewed_at = now
    if evaluation_notes is not None:
        bid.evaluation_notes = evaluation_notes
    if evaluation_score is not None:
        bid.evaluation_score = evaluation_score

    outcome = WorkflowOutcome(changed=True, prior_status=prior)
    event = event_for_bid(bid, prior)
    if event is not None:
        siblings_result = await session.execute(
            select(Bid)
            .where(Bid.tender_id == tender.id, Bid.id != bid.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        siblings = list(siblings_result.scalars().all())
        outcome.event = event
        outcome.patches = await _run_cascade(session, event, tender, now, siblings)

    await session.flush()

    logger.info(
        "bid_status_changed",
        bid_id=str(bid.id),
        tender_id=str(tender.id),
        prior_status=prior,
        status=new_status,
        cascade=len(outcome.patches),
    )
    if event is not None:
        logger.info(
            "bid_accepted",
            bid_id=str(bid.id),
            tender_id=str(tender.id),
            contractor_id=str(bid.user_id),
            rejected_bids=len(outcome.patched("bid")),
            issue_id=str(tender.source_issue_id) if tender.source_issue_id else None,
        )
    return bid, outcome


async def submit_work_progress(
    session: AsyncSession,
    tender_id: Any,
    contractor_id: Any,
    progress_type: str,
    title: str,
    description: str,
    **details: Any,
) -> WorkProgress:
    """Record a progress report from the awarded contractor of an awarded tender."""
    tender = await lock_tender(session, tender_id)

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
    if str(tender.awarded_contractor_id) != str(contractor_id):
        raise InvariantViolationError(
            "Only the awarded contractor can report progress on this tender",
            code="CONTRACTOR_NOT_AWARDED",
        )

    progress = WorkProgress(
        tender_id=tender.id,
        contractor_id=contractor_id,
        progress_type=progress_type,
        title=title,
        description=description,
        status="submitted",
        **details,
    )
    session.add(progress)
    await session.flush()

    logger.info(
        "work_progress_submitted",
        work_progress_id=str(progress.id),
        tender_id=str(tender.id),
        progress_type=progress_type,
    )
    return progress


async def review_work_progress(
    session: AsyncSession,
    work_progress_id: Any,
    new_status: str,
    verifier_id: Optional[Any] = None,
    verification_notes: Optional[str] = None,
) -> tuple[WorkProgress, WorkflowOutcome]:
    """
    Review (or resubmit) a progress report.

    Approval fills verified_by / verified_at / verification_notes; approving a
    completion report fires the work verification cascade, approving a start
    report moves stages to work_in_progress, milestones cascade nothing.
    """
    tender_id = await _tender_id_of(
        session, WorkProgress, work_progress_id, "Work progress"
    )
    tender = await lock_tender(session, tender_id)

    result = await session.execute(
        select(WorkProgress)
        .where(WorkProgress.id == work_progress_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    progress = result.scalar_one_or_none()
    if not progress:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND,
            detail="Work progress not found",
        )

    prior = progress.status
    if new_status == prior:
        logger.info(
            "work_progress_status_unchanged",
            work_progress_id=str(progress.id),
            status=prior,
        )
        return progress, WorkflowOutcome(changed=False, prior_status=prior)

    ensure_transition("work_progress", WORK_PROGRESS_TRANSITIONS, prior, new_status)

    now = datetime.utcnow()
    progress.status = new_status
    if new_status == "approved":
        progress.verified_by = verifier_id
        progress.verified_at = now
        progress.verification_notes = verification_notes

    outcome = WorkflowOutcome(changed=True, prior_status=prior)
    event = event_for_work_progress(progress, prior)
    if event is not None:
        outcome.event = event
        outcome.patches = await _run_cascade(session, event, tender, now)

    await session.flush()

    logger.info(
        "work_progress_status_changed",
        work_progress_id=str(progress.id),
        tender_id=str(tender.id),
        progress_type=progress.progress_type,
        prior_status=prior,
        status=new_status,
        cascade=len(outcome.patches),
    )
    if event is not None and event.kind == "work_approved":
        logger.info(
            "tender_completed",
            tender_id=str(tender.id),
            issue_id=str(tender.source_issue_id) if tender.source_issue_id else None,
        )
    return progress, outcome
