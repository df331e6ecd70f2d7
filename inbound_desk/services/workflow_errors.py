# inbound_desk/services/workflow_errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class WorkflowError(ValueError):
    """
    Base for operator-facing workflow refusals.

    Raised before any data API call; nothing has been mutated when one of
    these escapes. `code` is stable for clients, `message` is shown inline.
    """

    code = "workflow_error"
    http_status = 422

    def __init__(self, message: str, *, code: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}


class ReceiveValidationError(WorkflowError):
    code = "receive_validation_error"


class TransitionError(WorkflowError):
    code = "illegal_status_transition"
    http_status = 409


class PutAwayError(WorkflowError):
    code = "putaway_error"


class ScanStateError(WorkflowError):
    code = "scan_state_error"
    http_status = 409


class RecordNotFound(LookupError):
    """An order, line item or session the operator referenced does not exist."""
