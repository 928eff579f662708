"""Unit tests for civicconnect/services/notification_service.py"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from civicconnect.models.notification import Notification
from civicconnect.services.notification_service import (
    mark_read,
    notify,
    notify_workflow_outcome,
    render,
)
from civicconnect.services.workflow_service import WorkflowOutcome
from civicconnect.workflow.events import BidAccepted, EntityPatch, WorkApproved


def _mock_session() -> AsyncMock:
    session = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


def _one(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _added(session):
    return [c.args[0] for c in session.add.call_args_list]


def test_render_fills_template():
    rendered = render("bid_rejected", tender_title="Fix the bridge")
    assert rendered["type"] == "bid_update"
    assert "Fix the bridge" in rendered["message"]


@pytest.mark.asyncio
async def test_notify_skips_duplicates_and_none():
    session = _mock_session()
    user = uuid.uuid4()

    rows = await notify(
        session, "issue_assigned", [user, None, user], issue_title="Pothole"
    )

    assert len(rows) == 1
    assert rows[0].user_id == user
    assert rows[0].is_read is False


@pytest.mark.asyncio
async def test_notify_with_no_recipients_does_not_flush():
    session = _mock_session()
    rows = await notify(session, "issue_assigned", [], issue_title="Pothole")
    assert rows == []
    session.flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_bid_acceptance_notifies_winner_losers_and_reporter():
    tender = MagicMock(id=uuid.uuid4(), title="Resurface Elm Street")
    issue = MagicMock(id=uuid.uuid4(), user_id=uuid.uuid4(), title="Elm St potholes")
    winner, loser_bid, loser_user = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    event = BidAccepted(
        bid_id=uuid.uuid4(), tender_id=tender.id, bidder_id=winner,
        amount=Decimal("85000.00"), prior_status="submitted",
    )
    outcome = WorkflowOutcome(
        changed=True,
        prior_status="submitted",
        event=event,
        patches=[
            EntityPatch("tender", tender.id, {"status": "awarded"}),
            EntityPatch("issue", issue.id, {"status": "in_progress"}),
            EntityPatch("bid", loser_bid, {"status": "rejected"}),
        ],
    )
    losers = MagicMock()
    losers.all.return_value = [(loser_user,)]
    session = _mock_session()
    session.execute = AsyncMock(side_effect=[_one(issue), losers])

    rows = await notify_workflow_outcome(session, tender, outcome)

    assert [r.user_id for r in rows] == [winner, loser_user, issue.user_id]
    assert all(isinstance(r, Notification) for r in _added(session))


@pytest.mark.asyncio
async def test_verification_without_issue_notifies_contractor_only():
    tender = MagicMock(id=uuid.uuid4(), title="Replace park benches")
    contractor = uuid.uuid4()
    event = WorkApproved(
        work_progress_id=uuid.uuid4(), tender_id=tender.id,
        contractor_id=contractor, prior_status="submitted",
    )
    outcome = WorkflowOutcome(
        changed=True, prior_status="submitted", event=event,
        patches=[EntityPatch("tender", tender.id, {"status": "completed"})],
    )
    session = _mock_session()

    rows = await notify_workflow_outcome(session, tender, outcome)

    assert [r.user_id for r in rows] == [contractor]
    assert rows[0].type == "tender_update"
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_outcome_without_event_sends_nothing():
    session = _mock_session()
    rows = await notify_workflow_outcome(
        session, MagicMock(), WorkflowOutcome(changed=False, prior_status="submitted")
    )
    assert rows == []


@pytest.mark.asyncio
async def test_mark_read_returns_rowcount():
    result = MagicMock(rowcount=4)
    session = _mock_session()
    session.execute = AsyncMock(return_value=result)

    assert await mark_read(session, uuid.uuid4()) == 4
