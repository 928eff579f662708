"""Issue service: the administrative side of the issue lifecycle."""

from typing import Any, Optional

from fastapi import HTTPException, status as http_status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.models.issue import Issue, IssueVote
from civicconnect.models.tender import Tender
from civicconnect.workflow.errors import InvalidTransitionError, WorkflowConflictError
from civicconnect.workflow.stages import (
    ISSUE_STAGES,
    TERMINAL_ISSUE_STATUSES,
    ensure_forward,
)

logger = structlog.get_logger()

# Stages past department_assigned are only reached through the tender cascades
MANUAL_ISSUE_STAGES = ("area_review", "department_assigned")
SIDE_EXIT_STATUSES = ("closed", "rejected")
VOTE_TYPES = ("upvote", "downvote")


async def get_issue(session: AsyncSession, issue_id: Any, for_update: bool = False) -> Issue:
    q = select(Issue).where(Issue.id == issue_id)
    if for_update:
        q = q.with_for_update()
    result = await session.execute(q)
    issue = result.scalar_one_or_none()
    if not issue:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND, detail="Issue not found"
        )
    return issue


def ensure_issue_open(issue: Issue) -> None:
    if issue.status in TERMINAL_ISSUE_STATUSES:
        raise InvalidTransitionError(
            f"Issue {issue.id} is already {issue.status}",
            code="ISSUE_CLOSED",
        )


async def report_issue(session: AsyncSession, reporter_id: Any, **fields: Any) -> Issue:
    issue = Issue(
        user_id=reporter_id,
        status="pending",
        workflow_stage="reported",
        **fields,
    )
    session.add(issue)
    await session.flush()
    logger.info("issue_reported", issue_id=str(issue.id), category=issue.category)
    return issue


async def advance_issue_stage(
    session: AsyncSession, issue_id: Any, target_stage: str
) -> Issue:
    """Administrative triage move (area_review / department_assigned), forward only."""
    if target_stage not in MANUAL_ISSUE_STAGES:
        raise InvalidTransitionError(
            f"Stage '{target_stage}' cannot be set manually",
            code="ISSUE_STAGE_NOT_MANUAL",
        )
    issue = await get_issue(session, issue_id, for_update=True)
    ensure_issue_open(issue)
    ensure_forward("issue", issue.id, ISSUE_STAGES, issue.workflow_stage, target_stage)

    prior_stage = issue.workflow_stage
    issue.workflow_stage = target_stage
    if issue.status == "pending":
        issue.status = "acknowledged"
    await session.flush()

    logger.info(
        "issue_stage_advanced",
        issue_id=str(issue.id),
        prior_stage=prior_stage,
        stage=target_stage,
    )
    return issue


async def close_issue(
    session: AsyncSession, issue_id: Any, final_status: str, notes: Optional[str] = None
) -> Issue:
    """Side exit (closed / rejected). Terminal; the stage stays where it was."""
    if final_status not in SIDE_EXIT_STATUSES:
        raise InvalidTransitionError(
            f"'{final_status}' is not a closing status",
            code="WORKFLOW_UNKNOWN_STATUS",
        )
    issue = await get_issue(session, issue_id, for_update=True)
    ensure_issue_open(issue)

    # An awarded tender can only finish through its completion report
    running = await session.execute(
        select(Tender.id).where(
            Tender.source_issue_id == issue.id, Tender.status == "awarded"
        )
    )
    tender_id = running.scalar_one_or_none()
    if tender_id is not None:
        raise WorkflowConflictError(
            f"Issue {issue.id} has awarded tender {tender_id} still running",
            code="ISSUE_HAS_ACTIVE_TENDER",
        )

    issue.status = final_status
    if notes:
        issue.extra_metadata = {**(issue.extra_metadata or {}), "closing_notes": notes}
    await session.flush()

    logger.info("issue_closed", issue_id=str(issue.id), status=final_status)
    return issue


async def cast_vote(
    session: AsyncSession, issue_id: Any, user_id: Any, vote_type: str
) -> Issue:
    """One vote per user per issue; voting again switches it. Counters follow."""
    if vote_type not in VOTE_TYPES:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown vote type '{vote_type}'",
        )
    issue = await get_issue(session, issue_id, for_update=True)

    result = await session.execute(
        select(IssueVote).where(
            IssueVote.issue_id == issue.id, IssueVote.user_id == user_id
        )
    )
    vote = result.scalar_one_or_none()

    if vote is None:
        session.add(IssueVote(issue_id=issue.id, user_id=user_id, vote_type=vote_type))
    elif vote.vote_type == vote_type:
        return issue
    else:
        if vote.vote_type == "upvote":
            issue.upvotes = max(0, (issue.upvotes or 0) - 1)
        else:
            issue.downvotes = max(0, (issue.downvotes or 0) - 1)
        vote.vote_type = vote_type

    if vote_type == "upvote":
        issue.upvotes = (issue.upvotes or 0) + 1
    else:
        issue.downvotes = (issue.downvotes or 0) + 1
    await session.flush()

    logger.info("issue_vote_cast", issue_id=str(issue.id), vote_type=vote_type)
    return issue


async def reject_issue(
    session: AsyncSession, issue_id: Any, notes: Optional[str] = None
) -> Issue:
    return await close_issue(session, issue_id, "rejected", notes)
