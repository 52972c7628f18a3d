# intake_core/workflows/transitions.py

"""
Workflow step transition engine.

Transitions are driven by business events reported by the hosting layer.
This module MUST remain free of persistence, request handling and settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from intake_core.workflows.errors import CannotAdvance, WorkflowTransitionError, WrongStep
from intake_core.workflows.steps import (
    DOCUMENTS_AND_DATA,
    PAYMENT,
    PERSONAL_DETAILS_UPLOADS,
    POA_SIGNATURE,
    QUESTIONNAIRE,
    REVIEW_FINISH,
    SPOUSE_FLOW,
    SPOUSE_POA_SIGNATURE,
    SUBMITTED_TO_STAFF,
    TERMINAL_STEPS,
    WORKFLOW_STEPS,
    is_known_step,
    linear_next_step,
    normalize_step,
)


# ===============================================================
# EVENTS
# ===============================================================
ADVANCE = "advance"
QUESTIONNAIRE_EXHAUSTED = "questionnaire_exhausted"
PAYMENT_COMPLETED = "payment_completed"
MAIN_SIGNATURE_SUBMITTED = "main_signature_submitted"
SPOUSE_SIGNATURE_SUBMITTED = "spouse_signature_submitted"
FINISH = "finish"

EVENTS = (
    ADVANCE,
    QUESTIONNAIRE_EXHAUSTED,
    PAYMENT_COMPLETED,
    MAIN_SIGNATURE_SUBMITTED,
    SPOUSE_SIGNATURE_SUBMITTED,
    FINISH,
)

# Events that only fire from one specific step: event -> (required step, target).
# A None target means "follow the spouse branch".
GUARDED_EVENTS: Dict[str, tuple] = {
    QUESTIONNAIRE_EXHAUSTED: (QUESTIONNAIRE, PAYMENT),
    PAYMENT_COMPLETED: (PAYMENT, PERSONAL_DETAILS_UPLOADS),
    MAIN_SIGNATURE_SUBMITTED: (POA_SIGNATURE, None),
    SPOUSE_SIGNATURE_SUBMITTED: (SPOUSE_POA_SIGNATURE, DOCUMENTS_AND_DATA),
    FINISH: (REVIEW_FINISH, SUBMITTED_TO_STAFF),
}

SIGNER_EVENTS: Dict[str, str] = {
    "main": MAIN_SIGNATURE_SUBMITTED,
    "spouse": SPOUSE_SIGNATURE_SUBMITTED,
}


# ===============================================================
# RESULT TYPE
# ===============================================================
@dataclass(frozen=True)
class TransitionResult:
    current_step: Optional[str]
    event: str
    step: Optional[str] = None
    error: Optional[WorkflowTransitionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def changed(self) -> bool:
        return self.ok and self.step != self.current_step

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.step

    def as_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"ok": False, **self.error.as_dict()}
        return {
            "ok": True,
            "event": self.event,
            "from_step": self.current_step,
            "to_step": self.step,
        }


def _reject(error_cls, current: Optional[str], event: str, expected: Optional[str] = None) -> TransitionResult:
    return TransitionResult(
        current_step=current,
        event=event,
        error=error_cls(current_step=current, event=event, expected_step=expected),
    )


# ===============================================================
# BRANCHING
# ===============================================================
def step_after_main_signature(is_married: Optional[bool]) -> str:
    # Only an explicit True enters the spouse steps; unset counts as not married.
    return SPOUSE_FLOW if is_married is True else DOCUMENTS_AND_DATA


def _generic_next(current: str, is_married: Optional[bool]) -> Optional[str]:
    nxt = linear_next_step(current)
    if nxt == SPOUSE_FLOW:
        return step_after_main_signature(is_married)
    return nxt


# ===============================================================
# PUBLIC API
# ===============================================================
def compute_next_workflow_step(
    current_step: str,
    event: str = ADVANCE,
    is_married: Optional[bool] = None,
) -> TransitionResult:
    """
    Decide the step a case moves to when `event` happens at `current_step`.

    Never raises for bad input: unknown steps, unknown events and the
    terminal step produce CannotAdvance, guarded events fired from the
    wrong step produce WrongStep.
    """
    event = str(event or "").strip().lower()

    if not is_known_step(current_step):
        return _reject(CannotAdvance, current_step, event)

    current = normalize_step(current_step)

    if current in TERMINAL_STEPS:
        return _reject(CannotAdvance, current, event)

    if event == ADVANCE:
        nxt = _generic_next(current, is_married)
        if nxt is None:
            return _reject(CannotAdvance, current, event)
        return TransitionResult(current_step=current, event=event, step=nxt)

    guard = GUARDED_EVENTS.get(event)
    if guard is None:
        return _reject(CannotAdvance, current, event)

    required, target = guard
    if current != required:
        return _reject(WrongStep, current, event, expected=required)

    if target is None:
        target = step_after_main_signature(is_married)

    return TransitionResult(current_step=current, event=event, step=target)


def advance(current_step: str, is_married: Optional[bool] = None) -> TransitionResult:
    """
    Generic "move to the next step" request.
    """
    return compute_next_workflow_step(current_step, ADVANCE, is_married)


def signature_event(signer: str) -> Optional[str]:
    return SIGNER_EVENTS.get(str(signer or "").strip().lower())


def reachable_steps(is_married: Optional[bool]) -> List[str]:
    """
    Steps a case visits from start to finish for the given marital flag.
    """
    steps = [WORKFLOW_STEPS[0]]
    while True:
        nxt = _generic_next(steps[-1], is_married)
        if nxt is None:
            return steps
        steps.append(nxt)


def workflow_definition() -> Dict[str, Any]:
    """
    Stable JSON-serializable definition for UI and tooling.
    """
    return {
        "kind": "case",
        "steps": list(WORKFLOW_STEPS),
        "terminal_steps": sorted(TERMINAL_STEPS),
        "events": list(EVENTS),
        "guarded_events": {
            event: {
                "requires": required,
                "target": target if target is not None else "SpouseFlow|DocumentsAndData",
            }
            for event, (required, target) in GUARDED_EVENTS.items()
        },
        "paths": {
            "married": reachable_steps(True),
            "not_married": reachable_steps(False),
        },
    }
