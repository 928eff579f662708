"""
Assignment router: chain of custody for an issue.

admin_to_area → area_to_department → department_to_contractor

Each routing decision appends an IssueAssignment row. Earlier active rows of
the same type become 'reassigned'. The issue's assignment columns follow the
new row; its workflow_stage is left alone.
"""

from typing import Any, Optional

from fastapi import HTTPException, status as http_status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.models.issue import IssueAssignment
from civicconnect.services.issue_service import ensure_issue_open, get_issue
from civicconnect.workflow.stages import (
    ASSIGNMENT_TRANSITIONS,
    ASSIGNMENT_TYPES,
    ensure_transition,
)

logger = structlog.get_logger()

# assignment_type → the target it must name
REQUIRED_TARGET = {
    "admin_to_area": "assigned_area_id",
    "area_to_department": "assigned_department_id",
    "department_to_contractor": "assigned_to",
}


async def assign_issue(
    session: AsyncSession,
    issue_id: Any,
    assigned_by: Any,
    assignment_type: str,
    assigned_to: Optional[Any] = None,
    assigned_area_id: Optional[Any] = None,
    assigned_department_id: Optional[Any] = None,
    notes: Optional[str] = None,
) -> IssueAssignment:
    if assignment_type not in ASSIGNMENT_TYPES:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown assignment type '{assignment_type}'",
        )
    targets = {
        "assigned_to": assigned_to,
        "assigned_area_id": assigned_area_id,
        "assigned_department_id": assigned_department_id,
    }
    required = REQUIRED_TARGET[assignment_type]
    if targets[required] is None:
        raise HTTPException(
            status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{assignment_type} requires {required}",
        )

    issue = await get_issue(session, issue_id, for_update=True)
    ensure_issue_open(issue)

    previous = await session.execute(
        select(IssueAssignment).where(
            IssueAssignment.issue_id == issue.id,
            IssueAssignment.assignment_type == assignment_type,
            IssueAssignment.status == "active",
        )
    )
    superseded = list(previous.scalars().all())
    for old in superseded:
        old.status = "reassigned"

    assignment = IssueAssignment(
        issue_id=issue.id,
        assigned_by=assigned_by,
        assignment_type=assignment_type,
        assignment_notes=notes,
        status="active",
        **targets,
    )
    session.add(assignment)

    if assigned_area_id is not None:
        issue.assigned_area_id = assigned_area_id
    if assigned_department_id is not None:
        issue.assigned_department_id = assigned_department_id
    if assigned_to is not None:
        issue.current_assignee_id = assigned_to
    await session.flush()

    logger.info(
        "issue_assigned",
        issue_id=str(issue.id),
        assignment_id=str(assignment.id),
        assignment_type=assignment_type,
        superseded=len(superseded),
    )
    return assignment


async def close_assignment(
    session: AsyncSession, assignment_id: Any, new_status: str
) -> IssueAssignment:
    """active → completed | cancelled. Nothing else on the row ever changes."""
    if new_status not in ("completed", "cancelled"):
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Assignments can only be completed or cancelled",
        )
    result = await session.execute(
        select(IssueAssignment)
        .where(IssueAssignment.id == assignment_id)
        .with_for_update()
    )
    assignment = result.scalar_one_or_none()
    if not assignment:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND, detail="Assignment not found"
        )
    ensure_transition("assignment", ASSIGNMENT_TRANSITIONS, assignment.status, new_status)

    assignment.status = new_status
    await session.flush()
    logger.info(
        "issue_assignment_closed",
        assignment_id=str(assignment.id),
        status=new_status,
    )
    return assignment


async def list_assignments(session: AsyncSession, issue_id: Any) -> list[IssueAssignment]:
    result = await session.execute(
        select(IssueAssignment)
        .where(IssueAssignment.issue_id == issue_id)
        .order_by(IssueAssignment.created_at)
    )
    return list(result.scalars().all())
