"""
Unit tests for civicconnect/workflow/engine.py

The engine is pure: every test builds snapshots by hand and inspects the
returned patches. No session, no mocks.
"""

import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from civicconnect.workflow.engine import transition
from civicconnect.workflow.errors import (
    InvalidTransitionError,
    InvariantViolationError,
    StageRegressionError,
    TerminalFieldError,
    WorkflowConflictError,
)
from civicconnect.workflow.events import (
    BidAccepted,
    BidState,
    IssueState,
    TenderState,
    WorkApproved,
    WorkflowContext,
    WorkStarted,
)

NOW = datetime(2026, 5, 4, 10, 30)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tender(**overrides) -> TenderState:
    values = dict(
        id=uuid.uuid4(),
        status="available",
        workflow_stage="available",
        source_issue_id=None,
    )
    values.update(overrides)
    return TenderState(**values)


def _issue(**overrides) -> IssueState:
    values = dict(id=uuid.uuid4(), status="acknowledged", workflow_stage="department_assigned")
    values.update(overrides)
    return IssueState(**values)


def _accept(tender: TenderState, bid_id=None, bidder_id=None, prior="submitted") -> BidAccepted:
    return BidAccepted(
        bid_id=bid_id or uuid.uuid4(),
        tender_id=tender.id,
        bidder_id=bidder_id or uuid.uuid4(),
        amount=Decimal("125000.00"),
        prior_status=prior,
    )


def _awarded_tender(contractor_id, **overrides) -> TenderState:
    values = dict(
        status="awarded",
        workflow_stage="awarded",
        awarded_contractor_id=contractor_id,
        awarded_amount=Decimal("125000.00"),
        awarded_at=datetime(2026, 4, 1),
    )
    values.update(overrides)
    return _tender(**values)


def _approve(tender: TenderState, contractor_id, notes="Pothole filled and sealed") -> WorkApproved:
    return WorkApproved(
        work_progress_id=uuid.uuid4(),
        tender_id=tender.id,
        contractor_id=contractor_id,
        prior_status="submitted",
        verification_notes=notes,
    )


def _by_type(patches, entity_type):
    return [p for p in patches if p.entity_type == entity_type]


# ---------------------------------------------------------------------------
# Bid acceptance
# ---------------------------------------------------------------------------


def test_acceptance_awards_tender():
    tender = _tender()
    event = _accept(tender)

    patches = transition(event, WorkflowContext(tender=tender), NOW)

    assert len(patches) == 1
    changes = patches[0].changes
    assert patches[0].entity_type == "tender"
    assert changes["status"] == "awarded"
    assert changes["workflow_stage"] == "awarded"
    assert changes["awarded_contractor_id"] == event.bidder_id
    assert changes["awarded_amount"] == Decimal("125000.00")
    assert changes["awarded_at"] == NOW


def test_acceptance_moves_source_issue_to_contractor_assigned():
    issue = _issue()
    tender = _tender(source_issue_id=issue.id)
    event = _accept(tender)

    patches = transition(event, WorkflowContext(tender=tender, issue=issue), NOW)

    [issue_patch] = _by_type(patches, "issue")
    assert issue_patch.entity_id == issue.id
    assert issue_patch.changes == {
        "workflow_stage": "contractor_assigned",
        "status": "in_progress",
        "current_assignee_id": event.bidder_id,
    }


def test_acceptance_rejects_submitted_siblings_only():
    tender = _tender()
    winner = uuid.uuid4()
    submitted = BidState(id=uuid.uuid4(), status="submitted")
    reviewing = BidState(id=uuid.uuid4(), status="under_review")
    withdrawn = BidState(id=uuid.uuid4(), status="withdrawn")
    draft = BidState(id=uuid.uuid4(), status="draft")

    ctx = WorkflowContext(tender=tender, sibling_bids=(submitted, reviewing, withdrawn, draft))
    patches = transition(_accept(tender, bid_id=winner), ctx, NOW)

    rejected = _by_type(patches, "bid")
    assert [p.entity_id for p in rejected] == [submitted.id]
    assert rejected[0].changes == {"status": "rejected"}


def test_acceptance_never_patches_the_accepted_bid():
    tender = _tender()
    winner = uuid.uuid4()
    ctx = WorkflowContext(
        tender=tender, sibling_bids=(BidState(id=winner, status="submitted"),)
    )

    patches = transition(_accept(tender, bid_id=winner), ctx, NOW)

    assert _by_type(patches, "bid") == []


def test_acceptance_patch_order_tender_issue_bids():
    issue = _issue()
    tender = _tender(source_issue_id=issue.id)
    ctx = WorkflowContext(
        tender=tender,
        issue=issue,
        sibling_bids=(BidState(id=uuid.uuid4(), status="submitted"),),
    )

    patches = transition(_accept(tender), ctx, NOW)

    assert [p.entity_type for p in patches] == ["tender", "issue", "bid"]


def test_acceptance_allowed_after_bidding_closed():
    tender = _tender(status="bidding_closed")
    patches = transition(_accept(tender), WorkflowContext(tender=tender), NOW)
    assert patches[0].changes["status"] == "awarded"


def test_second_acceptance_conflicts():
    tender = _tender()
    ctx = WorkflowContext(
        tender=tender, sibling_bids=(BidState(id=uuid.uuid4(), status="accepted"),)
    )

    with pytest.raises(WorkflowConflictError) as exc_info:
        transition(_accept(tender), ctx, NOW)
    assert exc_info.value.code == "BID_ALREADY_ACCEPTED"
    assert exc_info.value.status_code == 409


def test_acceptance_on_awarded_tender_conflicts():
    tender = _awarded_tender(uuid.uuid4())

    with pytest.raises(WorkflowConflictError) as exc_info:
        transition(_accept(tender), WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "TENDER_ALREADY_AWARDED"


@pytest.mark.parametrize("status", ["draft", "cancelled"])
def test_acceptance_on_unbiddable_tender_rejected(status):
    tender = _tender(status=status, workflow_stage="created")

    with pytest.raises(InvariantViolationError) as exc_info:
        transition(_accept(tender), WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "TENDER_NOT_BIDDABLE"
    assert exc_info.value.status_code == 422


def test_acceptance_refuses_to_overwrite_award_fields():
    tender = _tender(awarded_at=datetime(2026, 1, 1))

    with pytest.raises(TerminalFieldError):
        transition(_accept(tender), WorkflowContext(tender=tender), NOW)


def test_acceptance_of_already_accepted_bid_is_invalid():
    tender = _tender()
    with pytest.raises(InvalidTransitionError):
        transition(_accept(tender, prior="accepted"), WorkflowContext(tender=tender), NOW)


@pytest.mark.parametrize("status", ["closed", "rejected", "resolved"])
def test_acceptance_with_terminal_issue_fails(status):
    issue = _issue(status=status)
    tender = _tender(source_issue_id=issue.id)

    with pytest.raises(InvariantViolationError) as exc_info:
        transition(_accept(tender), WorkflowContext(tender=tender, issue=issue), NOW)
    assert exc_info.value.code == "ISSUE_CLOSED"


def test_acceptance_would_regress_issue_stage():
    issue = _issue(status="in_progress", workflow_stage="work_in_progress")
    tender = _tender(source_issue_id=issue.id)

    with pytest.raises(StageRegressionError):
        transition(_accept(tender), WorkflowContext(tender=tender, issue=issue), NOW)


def test_acceptance_without_loaded_source_issue_fails():
    tender = _tender(source_issue_id=uuid.uuid4())

    with pytest.raises(InvariantViolationError) as exc_info:
        transition(_accept(tender), WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "SOURCE_ISSUE_MISSING"


def test_event_for_other_tender_is_refused():
    tender = _tender()
    event = _accept(_tender())

    with pytest.raises(InvariantViolationError) as exc_info:
        transition(event, WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "TENDER_MISMATCH"


# ---------------------------------------------------------------------------
# Work verification
# ---------------------------------------------------------------------------


def test_verification_completes_tender_and_resolves_issue():
    contractor = uuid.uuid4()
    issue = _issue(status="in_progress", workflow_stage="work_in_progress")
    tender = _awarded_tender(contractor, source_issue_id=issue.id)

    patches = transition(
        _approve(tender, contractor), WorkflowContext(tender=tender, issue=issue), NOW
    )

    [tender_patch] = _by_type(patches, "tender")
    assert tender_patch.changes == {
        "status": "completed",
        "workflow_stage": "completed",
        "completion_date": NOW,
        "verification_notes": "Pothole filled and sealed",
    }
    [issue_patch] = _by_type(patches, "issue")
    assert issue_patch.changes == {
        "status": "resolved",
        "workflow_stage": "resolved",
        "resolved_at": NOW,
        "final_resolution_notes": "Pothole filled and sealed",
    }


def test_verification_without_source_issue_touches_tender_only():
    contractor = uuid.uuid4()
    tender = _awarded_tender(contractor)

    patches = transition(_approve(tender, contractor), WorkflowContext(tender=tender), NOW)

    assert [p.entity_type for p in patches] == ["tender"]


def test_second_completion_on_completed_tender_conflicts():
    contractor = uuid.uuid4()
    tender = _awarded_tender(
        contractor, status="completed", workflow_stage="completed", completion_date=NOW
    )

    with pytest.raises(WorkflowConflictError) as exc_info:
        transition(_approve(tender, contractor), WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "TENDER_ALREADY_COMPLETED"


def test_verification_requires_an_award():
    tender = _tender()

    with pytest.raises(InvariantViolationError) as exc_info:
        transition(_approve(tender, uuid.uuid4()), WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "TENDER_NOT_AWARDED"


def test_verification_by_other_contractor_rejected():
    tender = _awarded_tender(uuid.uuid4())

    with pytest.raises(InvariantViolationError) as exc_info:
        transition(_approve(tender, uuid.uuid4()), WorkflowContext(tender=tender), NOW)
    assert exc_info.value.code == "CONTRACTOR_NOT_AWARDED"


def test_verification_with_closed_issue_fails():
    contractor = uuid.uuid4()
    issue = _issue(status="closed", workflow_stage="contractor_assigned")
    tender = _awarded_tender(contractor, source_issue_id=issue.id)

    with pytest.raises(InvariantViolationError):
        transition(
            _approve(tender, contractor), WorkflowContext(tender=tender, issue=issue), NOW
        )


# ---------------------------------------------------------------------------
# Work start
# ---------------------------------------------------------------------------


def test_start_moves_stages_but_not_statuses():
    contractor = uuid.uuid4()
    issue = _issue(status="in_progress", workflow_stage="contractor_assigned")
    tender = _awarded_tender(contractor, source_issue_id=issue.id)
    event = WorkStarted(
        work_progress_id=uuid.uuid4(),
        tender_id=tender.id,
        contractor_id=contractor,
        prior_status="submitted",
    )

    patches = transition(event, WorkflowContext(tender=tender, issue=issue), NOW)

    assert patches[0].changes == {"workflow_stage": "work_in_progress", "work_started_at": NOW}
    assert patches[1].changes == {"workflow_stage": "work_in_progress"}


def test_second_start_keeps_original_start_time():
    contractor = uuid.uuid4()
    started = datetime(2026, 4, 10)
    tender = _awarded_tender(
        contractor, workflow_stage="work_in_progress", work_started_at=started
    )
    event = WorkStarted(
        work_progress_id=uuid.uuid4(),
        tender_id=tender.id,
        contractor_id=contractor,
        prior_status="under_review",
    )

    patches = transition(event, WorkflowContext(tender=tender), NOW)

    assert patches[0].changes == {"workflow_stage": "work_in_progress"}
