from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from civicconnect.database import get_db
from civicconnect.middleware.auth import get_current_user
from civicconnect.middleware.authorization import require_permission
from civicconnect.models.notification import Notification
from civicconnect.schemas.common import iso, opt_str
from civicconnect.schemas.notification import NotificationMarkRead, NotificationResponse
from civicconnect.services import notification_service

router = APIRouter()


def _to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=str(n.id),
        title=n.title,
        message=n.message,
        type=n.type,
        related_id=opt_str(n.related_id),
        related_type=n.related_type,
        is_read=bool(n.is_read),
        created_at=iso(n.created_at) or "",
    )


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("notification", "read")),
    db: AsyncSession = Depends(get_db),
):
    rows = await notification_service.list_notifications(
        db, current_user["user_id"], unread_only=unread_only, limit=limit
    )
    return [_to_response(n) for n in rows]


@router.post("/read")
async def mark_notifications_read(
    body: NotificationMarkRead,
    current_user: dict = Depends(get_current_user),
    _scope: str = Depends(require_permission("notification", "update")),
    db: AsyncSession = Depends(get_db),
):
    """Mark the listed notifications (or all of them) as read."""
    updated = await notification_service.mark_read(
        db, current_user["user_id"], body.notification_ids
    )
    return {"updated": updated}
