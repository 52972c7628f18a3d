# intake_core/workflows/__init__.py
from __future__ import annotations

from intake_core.workflows.errors import CannotAdvance, WorkflowTransitionError, WrongStep
from intake_core.workflows.steps import (
    CASE_STATUSES,
    PAYMENT_STATUSES,
    QUESTIONNAIRE_VERSION_STATES,
    REQUIREMENT_STATUSES,
    WORKFLOW_STEPS,
    is_terminal,
    linear_next_step,
    normalize_case_status,
    normalize_step,
    step_index,
)
from intake_core.workflows.transitions import (
    ADVANCE,
    EVENTS,
    FINISH,
    MAIN_SIGNATURE_SUBMITTED,
    PAYMENT_COMPLETED,
    QUESTIONNAIRE_EXHAUSTED,
    SPOUSE_SIGNATURE_SUBMITTED,
    TransitionResult,
    advance,
    compute_next_workflow_step,
    reachable_steps,
    signature_event,
    workflow_definition,
)


__all__ = [
    "WORKFLOW_STEPS",
    "CASE_STATUSES",
    "QUESTIONNAIRE_VERSION_STATES",
    "REQUIREMENT_STATUSES",
    "PAYMENT_STATUSES",
    "EVENTS",
    "ADVANCE",
    "QUESTIONNAIRE_EXHAUSTED",
    "PAYMENT_COMPLETED",
    "MAIN_SIGNATURE_SUBMITTED",
    "SPOUSE_SIGNATURE_SUBMITTED",
    "FINISH",
    "WorkflowTransitionError",
    "CannotAdvance",
    "WrongStep",
    "TransitionResult",
    "normalize_step",
    "normalize_case_status",
    "step_index",
    "is_terminal",
    "linear_next_step",
    "compute_next_workflow_step",
    "advance",
    "signature_event",
    "reachable_steps",
    "workflow_definition",
]
