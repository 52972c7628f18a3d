# intake_core/workflows/errors.py

"""
Typed transition failures.

The transition engine returns these inside a TransitionResult instead of
raising them. Callers that prefer exceptions use TransitionResult.unwrap().
"""

from typing import Optional


class WorkflowTransitionError(Exception):
    """
    Base class for a rejected workflow step change.
    """

    code = "transition_error"

    def __init__(
        self,
        *,
        current_step: Optional[str],
        event: str,
        expected_step: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.current_step = current_step
        self.event = event
        self.expected_step = expected_step
        super().__init__(message or self.default_message())

    def default_message(self) -> str:
        return f"Cannot apply '{self.event}' at step '{self.current_step}'"

    def as_dict(self) -> dict:
        data = {"error": self.code, "current_step": self.current_step, "event": self.event}
        if self.expected_step:
            data["expected"] = self.expected_step
        return data


class CannotAdvance(WorkflowTransitionError):
    """
    Terminal step, unknown step, or an event with no defined transition.
    """

    code = "cannot_advance"

    def default_message(self) -> str:
        return f"Case cannot advance from step '{self.current_step}' on '{self.event}'"


class WrongStep(WorkflowTransitionError):
    """
    An event that requires a specific current step fired elsewhere.
    """

    code = "wrong_step"

    def default_message(self) -> str:
        return (
            f"'{self.event}' requires step '{self.expected_step}', "
            f"case is at '{self.current_step}'"
        )
