# intake_core/services/errors.py

from typing import Optional

from intake_core.workflows.errors import WorkflowTransitionError


class CaseFlowError(ValueError):
    """
    A case operation the hosting layer should report as rejected.
    `code` is stable and safe to return to clients.
    """

    code = "case_flow_error"

    def __init__(self, message: Optional[str] = None, **details):
        self.details = details
        super().__init__(message or self.code)

    def as_dict(self) -> dict:
        return {"error": self.code, **self.details}


class InvalidTaxYear(CaseFlowError):
    code = "invalid_tax_year"


class NoQuestionnaireForYear(CaseFlowError):
    code = "no_questionnaire_for_year"


class CaseAlreadyExists(CaseFlowError):
    code = "case_already_exists"


class InvalidAnswer(CaseFlowError):
    code = "invalid_answer"


class InvalidAmount(CaseFlowError):
    code = "invalid_amount"


class InvalidSigner(CaseFlowError):
    code = "invalid_signer"


class RequirementNotFound(CaseFlowError):
    code = "requirement_not_found"


class InvalidRequirementStatus(CaseFlowError):
    code = "invalid_requirement_status"


class NothingToUpdate(CaseFlowError):
    code = "nothing_to_update"


class TransitionRejected(CaseFlowError):
    """
    Wraps a WorkflowTransitionError (cannot_advance / wrong_step).
    """

    def __init__(self, error: WorkflowTransitionError):
        self.error = error
        self.code = error.code
        super().__init__(str(error))

    def as_dict(self) -> dict:
        return self.error.as_dict()
