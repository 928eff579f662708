from fastapi import Depends, HTTPException, status
import structlog

from civicconnect.middleware.auth import get_current_user
from civicconnect.policy import lookup, scope_allows

logger = structlog.get_logger()


def _forbidden(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": {"code": "INSUFFICIENT_PERMISSIONS", "message": message}},
    )


def require_permission(resource: str, action: str):
    """
    FastAPI dependency factory backed by the policy table.

    Resolves the caller's scope for (resource, action) or raises 403. The
    returned scope is handed to check_scope() once the target row is loaded.

    Usage:
        @router.post("/{tender_id}/publish")
        async def publish(
            scope: str = Depends(require_permission("tender", "manage")),
        ):
    """
    async def check_permission(current_user: dict = Depends(get_current_user)) -> str:
        scope = lookup(current_user["role"], resource, action)
        if scope is None:
            logger.warning(
                "permission_denied",
                role=current_user["role"],
                resource=resource,
                action=action,
            )
            raise _forbidden(
                f"Role '{current_user['role']}' cannot {action} {resource}"
            )
        return scope

    return check_permission


def check_scope(
    current_user: dict,
    scope: str,
    owner_id=None,
    department_id=None,
    area_id=None,
) -> None:
    """Row-level half of the policy: does the loaded row fall inside ``scope``?"""
    if not scope_allows(
        scope,
        current_user,
        owner_id=owner_id,
        department_id=department_id,
        area_id=area_id,
    ):
        raise _forbidden(f"This record is outside your '{scope}' scope")
