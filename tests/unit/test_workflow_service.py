"""
Unit tests for civicconnect/services/workflow_service.py

Uses AsyncMock sessions; execute() results are queued in the order the
service issues its queries:
  tender id lookup → tender lock → row reload → (siblings) → (source issue)
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from civicconnect.services.workflow_service import (
    apply_patches,
    change_bid_status,
    review_work_progress,
    submit_work_progress,
)
from civicconnect.workflow.errors import (
    InvalidTransitionError,
    InvariantViolationError,
    WorkflowConflictError,
)
from civicconnect.workflow.events import EntityPatch


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_tender(
    status: str = "available",
    workflow_stage: str = "available",
    source_issue_id: Optional[uuid.UUID] = None,
    awarded_contractor_id: Optional[uuid.UUID] = None,
):
    t = MagicMock()
    t.id = uuid.uuid4()
    t.title = "Resurface Elm Street"
    t.status = status
    t.workflow_stage = workflow_stage
    t.source_issue_id = source_issue_id
    t.awarded_contractor_id = awarded_contractor_id
    t.awarded_amount = Decimal("90000.00") if awarded_contractor_id else None
    t.awarded_at = datetime(2026, 3, 1) if awarded_contractor_id else None
    t.work_started_at = None
    t.completion_date = None
    t.verification_notes = None
    return t


def _make_issue(status: str = "acknowledged", workflow_stage: str = "department_assigned"):
    i = MagicMock()
    i.id = uuid.uuid4()
    i.status = status
    i.workflow_stage = workflow_stage
    i.resolved_at = None
    i.current_assignee_id = None
    return i


def _make_bid(tender, status: str = "submitted", amount: str = "85000.00"):
    b = MagicMock()
    b.id = uuid.uuid4()
    b.tender_id = tender.id
    b.user_id = uuid.uuid4()
    b.amount = Decimal(amount)
    b.status = status
    b.reviewed_at = None
    return b


def _make_progress(tender, contractor_id, progress_type="completion", status="submitted"):
    p = MagicMock()
    p.id = uuid.uuid4()
    p.tender_id = tender.id
    p.contractor_id = contractor_id
    p.progress_type = progress_type
    p.status = status
    p.verified_by = None
    p.verified_at = None
    p.verification_notes = None
    return p


def _mock_session() -> AsyncMock:
    session = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


def _one(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _many(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


# ---------------------------------------------------------------------------
# change_bid_status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_accept_bid_runs_cascade():
    issue = _make_issue()
    tender = _make_tender(source_issue_id=issue.id)
    winner = _make_bid(tender)
    loser = _make_bid(tender, amount="99000.00")
    reviewing = _make_bid(tender, status="under_review")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[
        _one(tender.id),
        _one(tender),
        _one(winner),
        _many([loser, reviewing]),
        _one(issue),
    ])

    bid, outcome = await change_bid_status(session, winner.id, "accepted")

    assert bid is winner
    assert winner.status == "accepted"
    assert winner.reviewed_at is not None
    assert tender.status == "awarded"
    assert tender.workflow_stage == "awarded"
    assert tender.awarded_contractor_id == winner.user_id
    assert tender.awarded_amount == Decimal("85000.00")
    assert issue.workflow_stage == "contractor_assigned"
    assert issue.status == "in_progress"
    assert issue.current_assignee_id == winner.user_id
    assert loser.status == "rejected"
    assert reviewing.status == "under_review"

    assert outcome.changed is True
    assert outcome.event.kind == "bid_accepted"
    assert [p.entity_id for p in outcome.patched("bid")] == [loser.id]
    session.flush.assert_awaited()

    siblings_stmt = session.execute.await_args_list[3].args[0]
    assert siblings_stmt.get_execution_options()["populate_existing"] is True


@pytest.mark.asyncio
async def test_accept_bid_without_source_issue_skips_issue_query():
    tender = _make_tender()
    winner = _make_bid(tender)

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[
        _one(tender.id),
        _one(tender),
        _one(winner),
        _many([]),
    ])

    _, outcome = await change_bid_status(session, winner.id, "accepted")

    assert session.execute.await_count == 4
    assert outcome.patched("issue") == []
    assert tender.status == "awarded"


@pytest.mark.asyncio
async def test_second_acceptance_conflicts_and_leaves_tender_alone():
    tender = _make_tender()
    already = _make_bid(tender, status="accepted")
    late = _make_bid(tender)

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[
        _one(tender.id),
        _one(tender),
        _one(late),
        _many([already]),
    ])

    with pytest.raises(WorkflowConflictError) as exc_info:
        await change_bid_status(session, late.id, "accepted")

    assert exc_info.value.code == "BID_ALREADY_ACCEPTED"
    assert tender.status == "available"
    session.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_accepting_on_awarded_tender_conflicts_before_bid_checks():
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=uuid.uuid4())
    auto_rejected = _make_bid(tender, status="rejected")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(auto_rejected)])

    with pytest.raises(WorkflowConflictError) as exc_info:
        await change_bid_status(session, auto_rejected.id, "accepted")

    assert exc_info.value.code == "TENDER_ALREADY_AWARDED"
    assert exc_info.value.status_code == 409
    assert auto_rejected.status == "rejected"
    assert session.execute.await_count == 3


@pytest.mark.asyncio
async def test_same_status_is_a_no_op():
    tender = _make_tender()
    bid = _make_bid(tender, status="under_review")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(bid)])

    _, outcome = await change_bid_status(session, bid.id, "under_review")

    assert outcome.changed is False
    assert outcome.event is None
    session.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_rejecting_bid_has_no_cascade():
    tender = _make_tender()
    bid = _make_bid(tender)

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(bid)])

    _, outcome = await change_bid_status(
        session, bid.id, "rejected", evaluation_notes="Over budget"
    )

    assert bid.status == "rejected"
    assert bid.evaluation_notes == "Over budget"
    assert outcome.event is None
    assert outcome.patches == []
    assert tender.status == "available"


@pytest.mark.asyncio
async def test_unaccepting_is_not_allowed():
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=uuid.uuid4())
    bid = _make_bid(tender, status="accepted")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(bid)])

    with pytest.raises(InvalidTransitionError):
        await change_bid_status(session, bid.id, "rejected")


@pytest.mark.asyncio
async def test_unknown_bid_is_404():
    session = _mock_session()
    session.execute = AsyncMock(return_value=_one(None))

    with pytest.raises(HTTPException) as exc_info:
        await change_bid_status(session, uuid.uuid4(), "accepted")
    assert exc_info.value.status_code == 404


# ---------------------------------------------------------------------------
# submit_work_progress
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_submit_progress_by_awarded_contractor():
    contractor = uuid.uuid4()
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=contractor)
    session = _mock_session()
    session.execute = AsyncMock(return_value=_one(tender))

    progress = await submit_work_progress(
        session, tender.id, contractor, "start", "Mobilised", "Crew on site",
        progress_percentage=5,
    )

    assert progress.status == "submitted"
    assert progress.progress_percentage == 5
    session.add.assert_called_once_with(progress)


@pytest.mark.asyncio
async def test_submit_progress_by_other_contractor_rejected():
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=uuid.uuid4())
    session = _mock_session()
    session.execute = AsyncMock(return_value=_one(tender))

    with pytest.raises(InvariantViolationError) as exc_info:
        await submit_work_progress(session, tender.id, uuid.uuid4(), "start", "t", "d")
    assert exc_info.value.code == "CONTRACTOR_NOT_AWARDED"
    session.add.assert_not_called()


@pytest.mark.asyncio
async def test_submit_progress_on_open_tender_rejected():
    tender = _make_tender()
    session = _mock_session()
    session.execute = AsyncMock(return_value=_one(tender))

    with pytest.raises(InvariantViolationError) as exc_info:
        await submit_work_progress(session, tender.id, uuid.uuid4(), "start", "t", "d")
    assert exc_info.value.code == "TENDER_NOT_AWARDED"


# ---------------------------------------------------------------------------
# review_work_progress
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_approving_completion_completes_tender_and_resolves_issue():
    contractor = uuid.uuid4()
    verifier = uuid.uuid4()
    issue = _make_issue(status="in_progress", workflow_stage="work_in_progress")
    tender = _make_tender(status="awarded", workflow_stage="work_in_progress",
                          source_issue_id=issue.id, awarded_contractor_id=contractor)
    progress = _make_progress(tender, contractor)

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[
        _one(tender.id), _one(tender), _one(progress), _one(issue),
    ])

    _, outcome = await review_work_progress(
        session, progress.id, "approved", verifier_id=verifier,
        verification_notes="Inspected, all good",
    )

    assert progress.status == "approved"
    assert progress.verified_by == verifier
    assert progress.verified_at is not None
    assert tender.status == "completed"
    assert tender.workflow_stage == "completed"
    assert tender.completion_date == progress.verified_at
    assert tender.verification_notes == "Inspected, all good"
    assert issue.status == "resolved"
    assert issue.workflow_stage == "resolved"
    assert issue.final_resolution_notes == "Inspected, all good"
    assert outcome.event.kind == "work_approved"


@pytest.mark.asyncio
async def test_rejecting_completion_leaves_stages_alone():
    contractor = uuid.uuid4()
    tender = _make_tender(status="awarded", workflow_stage="work_in_progress",
                          awarded_contractor_id=contractor)
    progress = _make_progress(tender, contractor)

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(progress)])

    _, outcome = await review_work_progress(session, progress.id, "rejected")

    assert progress.status == "rejected"
    assert outcome.patches == []
    assert tender.status == "awarded"
    assert tender.workflow_stage == "work_in_progress"


@pytest.mark.asyncio
async def test_approving_milestone_cascades_nothing():
    contractor = uuid.uuid4()
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=contractor)
    progress = _make_progress(tender, contractor, progress_type="milestone")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(progress)])

    _, outcome = await review_work_progress(session, progress.id, "approved")

    assert outcome.event is None
    assert tender.workflow_stage == "awarded"


@pytest.mark.asyncio
async def test_approving_start_sets_work_in_progress():
    contractor = uuid.uuid4()
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=contractor)
    progress = _make_progress(tender, contractor, progress_type="start")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(progress)])

    _, outcome = await review_work_progress(session, progress.id, "approved")

    assert outcome.event.kind == "work_started"
    assert tender.workflow_stage == "work_in_progress"
    assert tender.work_started_at is not None
    assert tender.status == "awarded"


@pytest.mark.asyncio
async def test_completion_on_completed_tender_conflicts():
    contractor = uuid.uuid4()
    tender = _make_tender(status="completed", workflow_stage="completed",
                          awarded_contractor_id=contractor)
    tender.completion_date = datetime(2026, 4, 20)
    progress = _make_progress(tender, contractor)

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(progress)])

    with pytest.raises(WorkflowConflictError) as exc_info:
        await review_work_progress(session, progress.id, "approved")
    assert exc_info.value.code == "TENDER_ALREADY_COMPLETED"


@pytest.mark.asyncio
async def test_resubmitting_rejected_progress():
    contractor = uuid.uuid4()
    tender = _make_tender(status="awarded", workflow_stage="awarded",
                          awarded_contractor_id=contractor)
    progress = _make_progress(tender, contractor, status="rejected")

    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(tender.id), _one(tender), _one(progress)])

    _, outcome = await review_work_progress(session, progress.id, "submitted")

    assert progress.status == "submitted"
    assert outcome.event is None


# ---------------------------------------------------------------------------
# apply_patches
# ---------------------------------------------------------------------------


def test_apply_patches_requires_loaded_target():
    target_id = uuid.uuid4()
    with pytest.raises(InvariantViolationError) as exc_info:
        apply_patches([EntityPatch("issue", target_id, {"status": "resolved"})], {})
    assert exc_info.value.code == "PATCH_TARGET_MISSING"
