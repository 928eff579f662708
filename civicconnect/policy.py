"""
Access policy: (role, resource, action) → scope.

Scopes:
  any         every row of the resource
  own         rows the actor owns (reporter, bidder, contractor, recipient)
  department  rows belonging to the actor's assigned department
  area        rows belonging to the actor's assigned area

A missing entry is a deny. The table is evaluated once per request, before
the write reaches a service.
"""

from typing import Optional

ALL_ROLES = ("user", "admin", "area_super_admin", "department_admin", "tender")

SCOPES = ("any", "own", "department", "area")

# Tenders outside these statuses are only visible to whoever may manage them
PUBLIC_TENDER_STATUSES = ("available", "awarded", "completed")


def _grant(roles, resource: str, actions, scope: str) -> dict:
    return {(role, resource, action): scope for role in roles for action in actions}


POLICY: dict[tuple[str, str, str], str] = {
    # issues
    **_grant(ALL_ROLES, "issue", ("read", "create", "vote"), "any"),
    **_grant(("admin",), "issue", ("advance", "close"), "any"),
    **_grant(("area_super_admin",), "issue", ("advance", "close"), "area"),
    **_grant(("department_admin",), "issue", ("advance", "close"), "department"),
    # routing trail
    **_grant(ALL_ROLES, "assignment", ("read",), "any"),
    **_grant(("admin",), "assignment", ("create", "update"), "any"),
    **_grant(("area_super_admin",), "assignment", ("create", "update"), "area"),
    **_grant(("department_admin",), "assignment", ("create", "update"), "department"),
    # tenders
    **_grant(ALL_ROLES, "tender", ("read",), "any"),
    **_grant(("admin",), "tender", ("create", "manage"), "any"),
    **_grant(("department_admin",), "tender", ("create", "manage"), "department"),
    # bids
    **_grant(("tender",), "bid", ("create", "read", "withdraw"), "own"),
    **_grant(("admin",), "bid", ("read", "review"), "any"),
    **_grant(("department_admin",), "bid", ("read", "review"), "department"),
    # work progress
    **_grant(("tender",), "work_progress", ("create", "read", "resubmit"), "own"),
    **_grant(("admin",), "work_progress", ("read", "review"), "any"),
    **_grant(("department_admin",), "work_progress", ("read", "review"), "department"),
    # notifications
    **_grant(ALL_ROLES, "notification", ("read", "update"), "own"),
}


def lookup(role: str, resource: str, action: str) -> Optional[str]:
    return POLICY.get((role, resource, action))


def scope_allows(
    scope: Optional[str],
    actor: dict,
    owner_id=None,
    department_id=None,
    area_id=None,
) -> bool:
    if scope is None:
        return False
    if scope == "any":
        return True
    if scope == "own":
        return owner_id is not None and str(owner_id) == str(actor.get("user_id"))
    if scope == "department":
        return department_id is not None and str(department_id) == str(
            actor.get("department_id")
        )
    if scope == "area":
        return area_id is not None and str(area_id) == str(actor.get("area_id"))
    return False
