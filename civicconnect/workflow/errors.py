"""
Workflow error taxonomy.

Every error here aborts the caller's transaction. The detail payload uses the
same {"error": {"code", "message"}} envelope as the rest of the API.
"""

from typing import Optional

from fastapi import HTTPException, status as http_status


class WorkflowError(HTTPException):
    status_code = http_status.HTTP_409_CONFLICT
    code = "WORKFLOW_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, **context):
        self.code = code or self.code
        self.message = message
        self.context = context
        super().__init__(
            status_code=self.status_code,
            detail={"error": {"code": self.code, "message": message}},
        )

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvariantViolationError(WorkflowError):
    """The triggering write would break a cross-entity invariant."""

    status_code = http_status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "WORKFLOW_INVARIANT_VIOLATION"


class WorkflowConflictError(WorkflowError):
    """Another transition already won (second acceptance, repeated completion)."""

    code = "WORKFLOW_CONFLICT"


class StageRegressionError(WorkflowError):
    code = "WORKFLOW_STAGE_REGRESSION"


class TerminalFieldError(WorkflowError):
    code = "WORKFLOW_TERMINAL_FIELD_SET"


class InvalidTransitionError(WorkflowError):
    code = "WORKFLOW_INVALID_TRANSITION"
