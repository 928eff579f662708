"""
Tender service: tender lifecycle outside the automated cascades, and bid intake.

Status moves handled here:
  draft → available (publish), available → bidding_closed (close),
  draft | available | bidding_closed → cancelled.
Awarding and completion only happen through workflow_service.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status as http_status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.models.issue import Issue
from civicconnect.models.profile import Profile
from civicconnect.models.tender import Bid, Tender
from civicconnect.services.workflow_service import lock_tender
from civicconnect.workflow.errors import (
    InvalidTransitionError,
    InvariantViolationError,
    WorkflowConflictError,
)
from civicconnect.workflow.stages import TERMINAL_ISSUE_STATUSES

logger = structlog.get_logger()

CANCELLABLE_STATUSES = ("draft", "available", "bidding_closed")
EDITABLE_BID_STATUSES = ("draft", "submitted")


async def get_tender(session: AsyncSession, tender_id: Any) -> Tender:
    result = await session.execute(select(Tender).where(Tender.id == tender_id))
    tender = result.scalar_one_or_none()
    if not tender:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND, detail="Tender not found"
        )
    return tender


async def create_tender(
    session: AsyncSession,
    posted_by: Any,
    department_id: Any,
    publish: bool = False,
    source_issue_id: Optional[Any] = None,
    **fields: Any,
) -> Tender:
    """
    Open a tender, optionally to resolve a reported issue.

    The source issue must still be open and must not already back a live
    (non-cancelled) tender.
    """
    if source_issue_id is not None:
        issue_result = await session.execute(
            select(Issue).where(Issue.id == source_issue_id)
        )
        issue = issue_result.scalar_one_or_none()
        if not issue:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail="Source issue not found",
            )
        if issue.status in TERMINAL_ISSUE_STATUSES:
            raise InvariantViolationError(
                f"Issue {issue.id} is already {issue.status}",
                code="ISSUE_CLOSED",
            )
        live_result = await session.execute(
            select(Tender.id).where(
                Tender.source_issue_id == issue.id,
                Tender.status != "cancelled",
            )
        )
        if live_result.first() is not None:
            raise WorkflowConflictError(
                f"Issue {issue.id} already has an open tender",
                code="ISSUE_ALREADY_TENDERED",
            )

    tender = Tender(
        posted_by=posted_by,
        department_id=department_id,
        source_issue_id=source_issue_id,
        status="available" if publish else "draft",
        workflow_stage="available" if publish else "created",
        **fields,
    )
    session.add(tender)
    await session.flush()

    logger.info(
        "tender_created",
        tender_id=str(tender.id),
        department_id=str(department_id),
        source_issue_id=str(source_issue_id) if source_issue_id else None,
        status=tender.status,
    )
    return tender


async def publish_tender(session: AsyncSession, tender_id: Any) -> Tender:
    tender = await lock_tender(session, tender_id)
    if tender.status != "draft":
        raise InvalidTransitionError(
            f"Can only publish draft tenders (tender is '{tender.status}')"
        )
    tender.status = "available"
    tender.workflow_stage = "available"
    await session.flush()
    logger.info("tender_published", tender_id=str(tender.id))
    return tender


async def close_bidding(session: AsyncSession, tender_id: Any) -> Tender:
    tender = await lock_tender(session, tender_id)
    if tender.status != "available":
        raise InvalidTransitionError(
            f"Can only close bidding on available tenders (tender is '{tender.status}')"
        )
    tender.status = "bidding_closed"
    await session.flush()
    logger.info("tender_bidding_closed", tender_id=str(tender.id))
    return tender


async def cancel_tender(session: AsyncSession, tender_id: Any) -> Tender:
    """Side exit before award. Awarded and completed tenders are never cancelled."""
    tender = await lock_tender(session, tender_id)
    if tender.status not in CANCELLABLE_STATUSES:
        raise InvalidTransitionError(
            f"Cannot cancel tender in '{tender.status}' status"
        )
    tender.status = "cancelled"
    await session.flush()
    logger.info("tender_cancelled", tender_id=str(tender.id))
    return tender


async def submit_bid(
    session: AsyncSession,
    tender_id: Any,
    bidder_id: Any,
    amount: Any,
    details: str,
    draft: bool = False,
    **fields: Any,
) -> Bid:
    """
    Place (or revise) a contractor's bid on an available tender.

    One bid per (tender, bidder): a repeat submission revises the existing
    draft/submitted bid and anything later is a conflict.
    """
    contractor = (
        await session.execute(select(Profile).where(Profile.id == bidder_id))
    ).scalar_one_or_none()
    if contractor is None or contractor.user_type != "tender" or not contractor.is_verified:
        raise InvariantViolationError(
            "Only verified contractors can place bids",
            code="CONTRACTOR_NOT_VERIFIED",
        )

    tender = await lock_tender(session, tender_id)
    if tender.status != "available":
        raise InvariantViolationError(
            "Bids can only be placed on available tenders",
            code="TENDER_NOT_OPEN",
        )
    if tender.submission_deadline and datetime.utcnow() > tender.submission_deadline:
        raise InvariantViolationError(
            "Tender submission deadline has passed",
            code="TENDER_DEADLINE_PASSED",
        )

    existing = await session.execute(
        select(Bid).where(Bid.tender_id == tender.id, Bid.user_id == bidder_id)
    )
    bid = existing.scalar_one_or_none()
    new_status = "draft" if draft else "submitted"

    if bid:
        if bid.status not in EDITABLE_BID_STATUSES:
            raise WorkflowConflictError(
                f"Bid is already '{bid.status}' and can no longer be revised",
                code="BID_LOCKED",
            )
        bid.amount = amount
        bid.details = details
        for name, value in fields.items():
            setattr(bid, name, value)
        if bid.status == "draft" and new_status == "submitted":
            bid.status = "submitted"
            bid.submitted_at = datetime.utcnow()
        await session.flush()
        logger.info("bid_updated", tender_id=str(tender.id), bid_id=str(bid.id))
        return bid

    bid = Bid(
        tender_id=tender.id,
        user_id=bidder_id,
        amount=amount,
        details=details,
        status=new_status,
        **fields,
    )
    session.add(bid)
    await session.flush()
    logger.info(
        "bid_submitted",
        tender_id=str(tender.id),
        bid_id=str(bid.id),
        status=new_status,
    )
    return bid
