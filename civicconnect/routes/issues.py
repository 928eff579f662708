import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.database import get_db
from civicconnect.middleware.auth import get_current_user
from civicconnect.middleware.authorization import check_scope, require_permission
from civicconnect.models.issue import Issue
from civicconnect.schemas.common import PaginatedResponse, build_pagination, iso, opt_str
from civicconnect.schemas.issue import (
    IssueClose,
    IssueCreate,
    IssueResponse,
    IssueStageAdvance,
    IssueVoteCreate,
)
from civicconnect.services import issue_service

logger = structlog.get_logger()
router = APIRouter()


def _to_response(i: Issue) -> IssueResponse:
    return IssueResponse(
        id=str(i.id),
        user_id=str(i.user_id),
        title=i.title,
        description=i.description,
        category=i.category,
        priority=i.priority,
        status=i.status,
        workflow_stage=i.workflow_stage,
        location_name=i.location_name,
        address=i.address,
        area=i.area,
        ward=i.ward,
        assigned_area_id=opt_str(i.assigned_area_id),
        assigned_department_id=opt_str(i.assigned_department_id),
        current_assignee_id=opt_str(i.current_assignee_id),
        resolved_at=iso(i.resolved_at),
        final_resolution_notes=i.final_resolution_notes,
        upvotes=i.upvotes or 0,
        downvotes=i.downvotes or 0,
        created_at=iso(i.created_at) or "",
        updated_at=iso(i.updated_at),
    )


def _check_issue_scope(current_user: dict, scope: str, issue: Issue) -> None:
    check_scope(
        current_user,
        scope,
        owner_id=issue.user_id,
        department_id=issue.assigned_department_id,
        area_id=issue.assigned_area_id,
    )


@router.get("", response_model=PaginatedResponse[IssueResponse])
async def list_issues(
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(20, ge=1, le=100),
    status_filter: str = Query(None, alias="status"),
    workflow_stage: str = Query(None),
    category: str = Query(None),
    department_id: uuid.UUID = Query(None),
    area_id: uuid.UUID = Query(None),
    mine: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("issue", "read")),
    db: AsyncSession = Depends(get_db),
):
    q = select(Issue)
    count_q = select(func.count(Issue.id))

    filters = []
    if status_filter:
        filters.append(Issue.status == status_filter)
    if workflow_stage:
        filters.append(Issue.workflow_stage == workflow_stage)
    if category:
        filters.append(Issue.category == category)
    if department_id:
        filters.append(Issue.assigned_department_id == department_id)
    if area_id:
        filters.append(Issue.assigned_area_id == area_id)
    if mine:
        filters.append(Issue.user_id == current_user["user_id"])
    for f in filters:
        q = q.where(f)
        count_q = count_q.where(f)

    total = (await db.execute(count_q)).scalar() or 0
    result = await db.execute(
        q.order_by(Issue.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    items = [_to_response(i) for i in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.post("", response_model=IssueResponse, status_code=status.HTTP_201_CREATED)
async def report_issue(
    body: IssueCreate,
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("issue", "create")),
    db: AsyncSession = Depends(get_db),
):
    issue = await issue_service.report_issue(
        db, current_user["user_id"], **body.model_dump(exclude_none=True)
    )
    return _to_response(issue)


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(
    issue_id: uuid.UUID,
    _scope: str = Depends(require_permission("issue", "read")),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await issue_service.get_issue(db, issue_id))


@router.post("/{issue_id}/advance", response_model=IssueResponse)
async def advance_issue(
    issue_id: uuid.UUID,
    body: IssueStageAdvance,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("issue", "advance")),
    db: AsyncSession = Depends(get_db),
):
    issue = await issue_service.get_issue(db, issue_id)
    _check_issue_scope(current_user, scope, issue)
    issue = await issue_service.advance_issue_stage(db, issue_id, body.workflow_stage)
    return _to_response(issue)


@router.post("/{issue_id}/close", response_model=IssueResponse)
async def close_issue(
    issue_id: uuid.UUID,
    body: IssueClose,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("issue", "close")),
    db: AsyncSession = Depends(get_db),
):
    issue = await issue_service.get_issue(db, issue_id)
    _check_issue_scope(current_user, scope, issue)
    issue = await issue_service.close_issue(db, issue_id, body.status, body.notes)
    return _to_response(issue)


@router.post("/{issue_id}/votes", response_model=IssueResponse)
async def vote_on_issue(
    issue_id: uuid.UUID,
    body: IssueVoteCreate,
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("issue", "vote")),
    db: AsyncSession = Depends(get_db),
):
    issue = await issue_service.cast_vote(
        db, issue_id, current_user["user_id"], body.vote_type
    )
    return _to_response(issue)
