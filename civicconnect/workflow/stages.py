"""
Stage ladders, closed status sets and the transition guards shared by both
cascade handlers.

Issue:  reported → area_review → department_assigned → contractor_assigned
        → work_in_progress → work_completed → verified → resolved
Tender: created → available → awarded → work_in_progress → work_completed
        → verified → completed

Rejection/closure (issues) and cancellation (tenders) are side exits that
leave the ladder; they are expressed through ``status``, never ``workflow_stage``.
"""

from typing import Any, Mapping, Sequence

from civicconnect.workflow.errors import (
    InvalidTransitionError,
    StageRegressionError,
    TerminalFieldError,
)

ISSUE_STAGES = (
    "reported",
    "area_review",
    "department_assigned",
    "contractor_assigned",
    "work_in_progress",
    "work_completed",
    "verified",
    "resolved",
)
TENDER_STAGES = (
    "created",
    "available",
    "awarded",
    "work_in_progress",
    "work_completed",
    "verified",
    "completed",
)

ISSUE_STATUSES = ("pending", "acknowledged", "in_progress", "resolved", "closed", "rejected")
TERMINAL_ISSUE_STATUSES = frozenset({"resolved", "closed", "rejected"})

TENDER_STATUSES = ("draft", "available", "bidding_closed", "awarded", "completed", "cancelled")
BIDDABLE_TENDER_STATUSES = frozenset({"available", "bidding_closed"})
AWARDED_TENDER_STATUSES = frozenset({"awarded", "completed"})

BID_STATUSES = ("draft", "submitted", "under_review", "accepted", "rejected", "withdrawn")
BID_TRANSITIONS: Mapping[str, frozenset] = {
    "draft": frozenset({"submitted", "withdrawn"}),
    "submitted": frozenset({"under_review", "accepted", "rejected", "withdrawn"}),
    "under_review": frozenset({"accepted", "rejected", "withdrawn"}),
    "accepted": frozenset(),
    "rejected": frozenset(),
    "withdrawn": frozenset(),
}

PROGRESS_TYPES = ("start", "milestone", "completion")
WORK_PROGRESS_STATUSES = ("submitted", "approved", "rejected", "under_review")
WORK_PROGRESS_TRANSITIONS: Mapping[str, frozenset] = {
    "submitted": frozenset({"under_review", "approved", "rejected"}),
    "under_review": frozenset({"approved", "rejected"}),
    "rejected": frozenset({"submitted"}),
    "approved": frozenset(),
}

ASSIGNMENT_TYPES = ("admin_to_area", "area_to_department", "department_to_contractor")
ASSIGNMENT_TRANSITIONS: Mapping[str, frozenset] = {
    "active": frozenset({"completed", "reassigned", "cancelled"}),
    "completed": frozenset(),
    "reassigned": frozenset(),
    "cancelled": frozenset(),
}


def stage_index(ladder: Sequence[str], stage: str) -> int:
    try:
        return ladder.index(stage)
    except ValueError:
        raise InvalidTransitionError(
            f"Unknown workflow stage '{stage}'", code="WORKFLOW_UNKNOWN_STAGE"
        )


def ensure_forward(
    entity_type: str,
    entity_id: Any,
    ladder: Sequence[str],
    current: str,
    target: str,
) -> None:
    """Reject a strictly backward move. Staying on the same stage is allowed."""
    if stage_index(ladder, target) < stage_index(ladder, current):
        raise StageRegressionError(
            f"{entity_type} {entity_id} cannot move from '{current}' back to '{target}'",
            entity_type=entity_type,
            entity_id=str(entity_id),
        )


def ensure_unset(entity_type: str, entity_id: Any, field: str, value: Any) -> None:
    """Write-once fields (awarded_*, resolved_at, completion_date)."""
    if value is not None:
        raise TerminalFieldError(
            f"{entity_type} {entity_id} already has {field} set",
            entity_type=entity_type,
            entity_id=str(entity_id),
            field=field,
        )


def ensure_transition(
    entity_type: str,
    transitions: Mapping[str, frozenset],
    current: str,
    target: str,
) -> None:
    if current not in transitions or target not in transitions:
        unknown = target if current in transitions else current
        raise InvalidTransitionError(
            f"Unknown {entity_type} status '{unknown}'",
            code="WORKFLOW_UNKNOWN_STATUS",
        )
    if target not in transitions[current]:
        raise InvalidTransitionError(
            f"{entity_type} cannot move from '{current}' to '{target}'"
        )
