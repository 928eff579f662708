import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.database import get_db
from civicconnect.middleware.auth import get_current_user
from civicconnect.middleware.authorization import check_scope, require_permission
from civicconnect.models.issue import Issue, IssueAssignment
from civicconnect.schemas.common import iso, opt_str
from civicconnect.schemas.issue import AssignmentClose, AssignmentCreate, AssignmentResponse
from civicconnect.services import assignment_service, issue_service
from civicconnect.services.notification_service import notify

logger = structlog.get_logger()
router = APIRouter()


def _to_response(a: IssueAssignment) -> AssignmentResponse:
    return AssignmentResponse(
        id=str(a.id),
        issue_id=str(a.issue_id),
        assigned_by=str(a.assigned_by),
        assigned_to=opt_str(a.assigned_to),
        assigned_area_id=opt_str(a.assigned_area_id),
        assigned_department_id=opt_str(a.assigned_department_id),
        assignment_type=a.assignment_type,
        assignment_notes=a.assignment_notes,
        status=a.status,
        created_at=iso(a.created_at) or "",
    )


@router.get("/issues/{issue_id}", response_model=list[AssignmentResponse])
async def list_issue_assignments(
    issue_id: uuid.UUID,
    _scope: str = Depends(require_permission("assignment", "read")),
    db: AsyncSession = Depends(get_db),
):
    await issue_service.get_issue(db, issue_id)
    rows = await assignment_service.list_assignments(db, issue_id)
    return [_to_response(a) for a in rows]


@router.post(
    "/issues/{issue_id}",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_issue(
    issue_id: uuid.UUID,
    body: AssignmentCreate,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("assignment", "create")),
    db: AsyncSession = Depends(get_db),
):
    issue = await issue_service.get_issue(db, issue_id)
    check_scope(
        current_user,
        scope,
        department_id=issue.assigned_department_id,
        area_id=issue.assigned_area_id,
    )
    assignment = await assignment_service.assign_issue(
        db,
        issue_id,
        assigned_by=current_user["user_id"],
        assignment_type=body.assignment_type,
        assigned_to=body.assigned_to,
        assigned_area_id=body.assigned_area_id,
        assigned_department_id=body.assigned_department_id,
        notes=body.assignment_notes,
    )
    if assignment.assigned_to is not None:
        await notify(
            db, "issue_assigned", [assignment.assigned_to],
            related_id=issue.id, related_type="issue", issue_title=issue.title,
        )
    return _to_response(assignment)


@router.post("/{assignment_id}/close", response_model=AssignmentResponse)
async def close_assignment(
    assignment_id: uuid.UUID,
    body: AssignmentClose,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("assignment", "update")),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Issue)
        .join(IssueAssignment, IssueAssignment.issue_id == Issue.id)
        .where(IssueAssignment.id == assignment_id)
    )
    issue = result.scalar_one_or_none()
    if not issue:
        raise HTTPException(status_code=404, detail="Assignment not found")
    check_scope(
        current_user,
        scope,
        department_id=issue.assigned_department_id,
        area_id=issue.assigned_area_id,
    )
    assignment = await assignment_service.close_assignment(db, assignment_id, body.status)
    return _to_response(assignment)
