import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.database import get_db
from civicconnect.middleware.auth import get_current_user
from civicconnect.middleware.authorization import check_scope, require_permission
from civicconnect.models.tender import Bid, Tender
from civicconnect.models.work_progress import WorkProgress
from civicconnect.policy import PUBLIC_TENDER_STATUSES, lookup, scope_allows
from civicconnect.schemas.common import PaginatedResponse, build_pagination, iso, opt_str
from civicconnect.schemas.tender import (
    BidCreate,
    BidResponse,
    BidReview,
    TenderCreate,
    TenderResponse,
)
from civicconnect.schemas.work_progress import (
    WorkProgressCreate,
    WorkProgressResponse,
    WorkProgressReview,
)
from civicconnect.services import tender_service, workflow_service
from civicconnect.services.notification_service import notify_workflow_outcome

logger = structlog.get_logger()
router = APIRouter()


def _money(value):
    return float(value) if value is not None else None


def _to_response(t: Tender) -> TenderResponse:
    return TenderResponse(
        id=str(t.id),
        posted_by=str(t.posted_by),
        department_id=str(t.department_id),
        source_issue_id=opt_str(t.source_issue_id),
        title=t.title,
        description=t.description,
        category=t.category,
        location=t.location,
        priority=t.priority,
        status=t.status,
        workflow_stage=t.workflow_stage,
        estimated_budget_min=_money(t.estimated_budget_min),
        estimated_budget_max=_money(t.estimated_budget_max),
        deadline_date=t.deadline_date.isoformat() if t.deadline_date else "",
        submission_deadline=iso(t.submission_deadline) or "",
        awarded_contractor_id=opt_str(t.awarded_contractor_id),
        awarded_amount=_money(t.awarded_amount),
        awarded_at=iso(t.awarded_at),
        work_started_at=iso(t.work_started_at),
        completion_date=iso(t.completion_date),
        verification_notes=t.verification_notes,
        created_at=iso(t.created_at) or "",
    )


def _bid_response(b: Bid) -> BidResponse:
    return BidResponse(
        id=str(b.id),
        tender_id=str(b.tender_id),
        user_id=str(b.user_id),
        amount=float(b.amount),
        details=b.details,
        timeline=b.timeline,
        methodology=b.methodology,
        status=b.status,
        evaluation_score=_money(b.evaluation_score),
        evaluation_notes=b.evaluation_notes,
        submitted_at=iso(b.submitted_at) or "",
        reviewed_at=iso(b.reviewed_at),
    )


def _progress_response(p: WorkProgress) -> WorkProgressResponse:
    return WorkProgressResponse(
        id=str(p.id),
        tender_id=str(p.tender_id),
        contractor_id=str(p.contractor_id),
        progress_type=p.progress_type,
        title=p.title,
        description=p.description,
        progress_percentage=p.progress_percentage or 0,
        status=p.status,
        verified_by=opt_str(p.verified_by),
        verified_at=iso(p.verified_at),
        verification_notes=p.verification_notes,
        created_at=iso(p.created_at) or "",
    )


async def _get_child(db: AsyncSession, model, row_id, tender_id, label: str):
    result = await db.execute(
        select(model).where(model.id == row_id, model.tender_id == tender_id)
    )
    row = result.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


# ---------- Tenders ----------


def _visible_tenders(current_user: dict):
    """Row filter for tender reads; None when the caller may see every tender."""
    manage = lookup(current_user["role"], "tender", "manage")
    if manage == "any":
        return None
    public = Tender.status.in_(PUBLIC_TENDER_STATUSES)
    if manage == "department" and current_user.get("department_id"):
        department_id = uuid.UUID(str(current_user["department_id"]))
        return or_(public, Tender.department_id == department_id)
    return public


def _can_see(current_user: dict, tender: Tender) -> bool:
    if tender.status in PUBLIC_TENDER_STATUSES:
        return True
    manage = lookup(current_user["role"], "tender", "manage")
    return scope_allows(manage, current_user, department_id=tender.department_id)


@router.get("", response_model=PaginatedResponse[TenderResponse])
async def list_tenders(
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(20, ge=1, le=100),
    status_filter: str = Query(None, alias="status"),
    workflow_stage: str = Query(None),
    department_id: uuid.UUID = Query(None),
    source_issue_id: uuid.UUID = Query(None),
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("tender", "read")),
    db: AsyncSession = Depends(get_db),
):
    q = select(Tender)
    count_q = select(func.count(Tender.id))

    visible = _visible_tenders(current_user)
    if visible is not None:
        q = q.where(visible)
        count_q = count_q.where(visible)

    if status_filter:
        q = q.where(Tender.status == status_filter)
        count_q = count_q.where(Tender.status == status_filter)
    if workflow_stage:
        q = q.where(Tender.workflow_stage == workflow_stage)
        count_q = count_q.where(Tender.workflow_stage == workflow_stage)
    if department_id:
        q = q.where(Tender.department_id == department_id)
        count_q = count_q.where(Tender.department_id == department_id)
    if source_issue_id:
        q = q.where(Tender.source_issue_id == source_issue_id)
        count_q = count_q.where(Tender.source_issue_id == source_issue_id)

    total = (await db.execute(count_q)).scalar() or 0
    result = await db.execute(
        q.order_by(Tender.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    items = [_to_response(t) for t in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.post("", response_model=TenderResponse, status_code=status.HTTP_201_CREATED)
async def create_tender(
    body: TenderCreate,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("tender", "create")),
    db: AsyncSession = Depends(get_db),
):
    check_scope(current_user, scope, department_id=body.department_id)
    fields = body.model_dump(
        exclude={"department_id", "source_issue_id", "publish"}, exclude_none=True
    )
    tender = await tender_service.create_tender(
        db,
        posted_by=current_user["user_id"],
        department_id=body.department_id,
        publish=body.publish,
        source_issue_id=body.source_issue_id,
        **fields,
    )
    return _to_response(tender)


@router.get("/{tender_id}", response_model=TenderResponse)
async def get_tender(
    tender_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("tender", "read")),
    db: AsyncSession = Depends(get_db),
):
    tender = await tender_service.get_tender(db, tender_id)
    if not _can_see(current_user, tender):
        raise HTTPException(status_code=404, detail="Tender not found")
    return _to_response(tender)


async def _manage(db, tender_id, current_user, scope, action) -> TenderResponse:
    tender = await tender_service.get_tender(db, tender_id)
    check_scope(current_user, scope, department_id=tender.department_id)
    tender = await action(db, tender_id)
    return _to_response(tender)


@router.post("/{tender_id}/publish", response_model=TenderResponse)
async def publish_tender(
    tender_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("tender", "manage")),
    db: AsyncSession = Depends(get_db),
):
    return await _manage(db, tender_id, current_user, scope, tender_service.publish_tender)


@router.post("/{tender_id}/close", response_model=TenderResponse)
async def close_bidding(
    tender_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("tender", "manage")),
    db: AsyncSession = Depends(get_db),
):
    return await _manage(db, tender_id, current_user, scope, tender_service.close_bidding)


@router.post("/{tender_id}/cancel", response_model=TenderResponse)
async def cancel_tender(
    tender_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("tender", "manage")),
    db: AsyncSession = Depends(get_db),
):
    return await _manage(db, tender_id, current_user, scope, tender_service.cancel_tender)


# ---------- Bids ----------


@router.get("/{tender_id}/bids", response_model=list[BidResponse])
async def list_bids(
    tender_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("bid", "read")),
    db: AsyncSession = Depends(get_db),
):
    tender = await tender_service.get_tender(db, tender_id)
    q = select(Bid).where(Bid.tender_id == tender.id)
    if scope == "own":
        # Contractors only ever see their own bid
        q = q.where(Bid.user_id == current_user["user_id"])
    else:
        check_scope(current_user, scope, department_id=tender.department_id)
    result = await db.execute(q.order_by(Bid.amount.asc()))
    return [_bid_response(b) for b in result.scalars().all()]


@router.post(
    "/{tender_id}/bids",
    response_model=BidResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_bid(
    tender_id: uuid.UUID,
    body: BidCreate,
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("bid", "create")),
    db: AsyncSession = Depends(get_db),
):
    bid = await tender_service.submit_bid(
        db,
        tender_id,
        bidder_id=current_user["user_id"],
        **body.model_dump(exclude_none=True),
    )
    return _bid_response(bid)


@router.post("/{tender_id}/bids/{bid_id}/review", response_model=BidResponse)
async def review_bid(
    tender_id: uuid.UUID,
    bid_id: uuid.UUID,
    body: BidReview,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("bid", "review")),
    db: AsyncSession = Depends(get_db),
):
    """Move a bid to under_review, accepted or rejected. Accepting awards the tender."""
    tender = await tender_service.get_tender(db, tender_id)
    check_scope(current_user, scope, department_id=tender.department_id)
    await _get_child(db, Bid, bid_id, tender.id, "Bid")

    bid, outcome = await workflow_service.change_bid_status(
        db,
        bid_id,
        body.status,
        evaluation_notes=body.evaluation_notes,
        evaluation_score=body.evaluation_score,
    )
    if outcome.event is not None:
        await notify_workflow_outcome(db, tender, outcome)
    return _bid_response(bid)


@router.post("/{tender_id}/bids/{bid_id}/withdraw", response_model=BidResponse)
async def withdraw_bid(
    tender_id: uuid.UUID,
    bid_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("bid", "withdraw")),
    db: AsyncSession = Depends(get_db),
):
    bid = await _get_child(db, Bid, bid_id, tender_id, "Bid")
    check_scope(current_user, scope, owner_id=bid.user_id)
    bid, _ = await workflow_service.change_bid_status(db, bid_id, "withdrawn")
    return _bid_response(bid)


# ---------- Work progress ----------


@router.get("/{tender_id}/progress", response_model=list[WorkProgressResponse])
async def list_work_progress(
    tender_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("work_progress", "read")),
    db: AsyncSession = Depends(get_db),
):
    tender = await tender_service.get_tender(db, tender_id)
    q = select(WorkProgress).where(WorkProgress.tender_id == tender.id)
    if scope == "own":
        q = q.where(WorkProgress.contractor_id == current_user["user_id"])
    else:
        check_scope(current_user, scope, department_id=tender.department_id)
    result = await db.execute(q.order_by(WorkProgress.created_at))
    return [_progress_response(p) for p in result.scalars().all()]


@router.post(
    "/{tender_id}/progress",
    response_model=WorkProgressResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_work_progress(
    tender_id: uuid.UUID,
    body: WorkProgressCreate,
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("work_progress", "create")),
    db: AsyncSession = Depends(get_db),
):
    progress = await workflow_service.submit_work_progress(
        db,
        tender_id,
        contractor_id=current_user["user_id"],
        **body.model_dump(exclude_none=True),
    )
    return _progress_response(progress)


@router.post(
    "/{tender_id}/progress/{progress_id}/review",
    response_model=WorkProgressResponse,
)
async def review_work_progress(
    tender_id: uuid.UUID,
    progress_id: uuid.UUID,
    body: WorkProgressReview,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("work_progress", "review")),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a progress report. Approving a completion report closes the tender."""
    tender = await tender_service.get_tender(db, tender_id)
    check_scope(current_user, scope, department_id=tender.department_id)
    await _get_child(db, WorkProgress, progress_id, tender.id, "Work progress")

    progress, outcome = await workflow_service.review_work_progress(
        db,
        progress_id,
        body.status,
        verifier_id=current_user["user_id"],
        verification_notes=body.verification_notes,
    )
    if outcome.event is not None:
        await notify_workflow_outcome(db, tender, outcome)
    return _progress_response(progress)


@router.post(
    "/{tender_id}/progress/{progress_id}/resubmit",
    response_model=WorkProgressResponse,
)
async def resubmit_work_progress(
    tender_id: uuid.UUID,
    progress_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    scope: str = Depends(require_permission("work_progress", "resubmit")),
    db: AsyncSession = Depends(get_db),
):
    progress = await _get_child(db, WorkProgress, progress_id, tender_id, "Work progress")
    check_scope(current_user, scope, owner_id=progress.contractor_id)
    progress, _ = await workflow_service.review_work_progress(db, progress_id, "submitted")
    return _progress_response(progress)
