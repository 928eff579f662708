"""
Notification service: in-app notification rows for workflow changes.

Rows are written in the same transaction as the change they describe, so a
rolled-back cascade never leaves a notification behind. Delivering them
(push, email, SMS) is somebody else's job.
"""

from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from civicconnect.models.issue import Issue
from civicconnect.models.notification import Notification
from civicconnect.models.tender import Bid, Tender
from civicconnect.services.workflow_service import WorkflowOutcome

logger = structlog.get_logger()

# ---------- Template registry ----------

TEMPLATES = {
    "bid_accepted": {
        "type": "bid_update",
        "title": "Your bid was accepted",
        "message": "Your bid of {amount} on tender \"{tender_title}\" was accepted. The work is yours.",
    },
    "bid_rejected": {
        "type": "bid_update",
        "title": "Bid not selected",
        "message": "Tender \"{tender_title}\" has been awarded to another contractor.",
    },
    "issue_contractor_assigned": {
        "type": "issue_update",
        "title": "A contractor has been assigned",
        "message": "Work on your report \"{issue_title}\" has been awarded to a contractor.",
    },
    "issue_work_started": {
        "type": "issue_update",
        "title": "Work has started",
        "message": "The contractor has started work on your report \"{issue_title}\".",
    },
    "work_verified": {
        "type": "tender_update",
        "title": "Completion verified",
        "message": "Your completed work on tender \"{tender_title}\" has been verified.",
    },
    "issue_resolved": {
        "type": "issue_update",
        "title": "Your report is resolved",
        "message": "Your report \"{issue_title}\" has been resolved. {notes}",
    },
    "issue_assigned": {
        "type": "assignment",
        "title": "New assignment",
        "message": "Issue \"{issue_title}\" has been routed to you.",
    },
}


def render(template: str, **context: Any) -> dict:
    tpl = TEMPLATES[template]
    return {
        "type": tpl["type"],
        "title": tpl["title"].format(**context),
        "message": tpl["message"].format(**context).strip(),
    }


async def notify(
    session: AsyncSession,
    template: str,
    user_ids: Iterable[Any],
    related_id: Optional[Any] = None,
    related_type: Optional[str] = None,
    **context: Any,
) -> list[Notification]:
    """Add one notification per recipient. Caller owns the transaction."""
    rendered = render(template, **context)
    rows = []
    for user_id in dict.fromkeys(u for u in user_ids if u is not None):
        row = Notification(
            user_id=user_id,
            related_id=related_id,
            related_type=related_type,
            is_read=False,
            **rendered,
        )
        session.add(row)
        rows.append(row)
    if rows:
        await session.flush()
        logger.info(
            "notifications_recorded",
            template=template,
            recipients=len(rows),
            related_type=related_type,
        )
    return rows


async def _issue_for(session: AsyncSession, outcome: WorkflowOutcome) -> Optional[Issue]:
    issue_patches = outcome.patched("issue")
    if not issue_patches:
        return None
    result = await session.execute(
        select(Issue).where(Issue.id == issue_patches[0].entity_id)
    )
    return result.scalar_one_or_none()


async def notify_workflow_outcome(
    session: AsyncSession, tender: Tender, outcome: WorkflowOutcome
) -> list[Notification]:
    """Tell the people touched by a cascade what just happened to them."""
    event = outcome.event
    if event is None:
        return []

    issue = await _issue_for(session, outcome)
    rows: list[Notification] = []

    if event.kind == "bid_accepted":
        rows += await notify(
            session, "bid_accepted", [event.bidder_id],
            related_id=event.bid_id, related_type="bid",
            amount=event.amount, tender_title=tender.title,
        )
        rejected_ids = [p.entity_id for p in outcome.patched("bid")]
        if rejected_ids:
            losers = await session.execute(
                select(Bid.user_id).where(Bid.id.in_(rejected_ids))
            )
            rows += await notify(
                session, "bid_rejected", [row[0] for row in losers.all()],
                related_id=tender.id, related_type="tender",
                tender_title=tender.title,
            )
        if issue is not None:
            rows += await notify(
                session, "issue_contractor_assigned", [issue.user_id],
                related_id=issue.id, related_type="issue", issue_title=issue.title,
            )

    elif event.kind == "work_started":
        if issue is not None:
            rows += await notify(
                session, "issue_work_started", [issue.user_id],
                related_id=issue.id, related_type="issue", issue_title=issue.title,
            )

    elif event.kind == "work_approved":
        rows += await notify(
            session, "work_verified", [event.contractor_id],
            related_id=tender.id, related_type="tender", tender_title=tender.title,
        )
        if issue is not None:
            rows += await notify(
                session, "issue_resolved", [issue.user_id],
                related_id=issue.id, related_type="issue",
                issue_title=issue.title, notes=event.verification_notes or "",
            )

    return rows


async def list_notifications(
    session: AsyncSession, user_id: Any, unread_only: bool = False, limit: int = 50
) -> list[Notification]:
    q = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        q = q.where(Notification.is_read == False)  # noqa: E712
    result = await session.execute(
        q.order_by(Notification.created_at.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def mark_read(
    session: AsyncSession, user_id: Any, notification_ids: Optional[list] = None
) -> int:
    """Mark the given (or all) notifications of ``user_id`` as read."""
    stmt = update(Notification).where(
        Notification.user_id == user_id, Notification.is_read == False  # noqa: E712
    )
    if notification_ids:
        stmt = stmt.where(Notification.id.in_(notification_ids))
    result = await session.execute(stmt.values(is_read=True))
    return result.rowcount or 0
