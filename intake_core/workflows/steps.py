"""
Authoritative step and status universes for tax cases.

Defines:
- The ordered workflow step sequence
- Staff board statuses, questionnaire version states, requirement statuses
- Step lookup helpers used by the transition engine and services
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple


# ===============================================================
# WORKFLOW STEPS (canonical order)
# ===============================================================
AUTH = "Auth"
SELECT_TAX_YEAR = "SelectTaxYear"
QUESTIONNAIRE = "Questionnaire"
PAYMENT = "Payment"
PERSONAL_DETAILS_UPLOADS = "PersonalDetailsUploads"
POA_SIGNATURE = "POASignature"
SPOUSE_FLOW = "SpouseFlow"
SPOUSE_POA_SIGNATURE = "SpousePOASignature"
DOCUMENTS_AND_DATA = "DocumentsAndData"
REVIEW_FINISH = "ReviewFinish"
SUBMITTED_TO_STAFF = "SubmittedToStaff"

WORKFLOW_STEPS: Tuple[str, ...] = (
    AUTH,
    SELECT_TAX_YEAR,
    QUESTIONNAIRE,
    PAYMENT,
    PERSONAL_DETAILS_UPLOADS,
    POA_SIGNATURE,
    SPOUSE_FLOW,
    SPOUSE_POA_SIGNATURE,
    DOCUMENTS_AND_DATA,
    REVIEW_FINISH,
    SUBMITTED_TO_STAFF,
)

TERMINAL_STEPS = frozenset({SUBMITTED_TO_STAFF})

# Steps only visited when the case is flagged as married.
SPOUSE_STEPS = frozenset({SPOUSE_FLOW, SPOUSE_POA_SIGNATURE})

_STEP_LOOKUP: Dict[str, str] = {s.upper(): s for s in WORKFLOW_STEPS}
_STEP_INDEX: Dict[str, int] = {s: i for i, s in enumerate(WORKFLOW_STEPS)}


# ===============================================================
# OTHER UNIVERSES
# ===============================================================
# Staff board columns.
CASE_STATUSES: Tuple[str, ...] = (
    "New",
    "InReview",
    "MissingDocs",
    "ReadyToFile",
    "Filed",
    "Done",
)

QUESTIONNAIRE_VERSION_STATES: Tuple[str, ...] = ("Draft", "Published")
DRAFT, PUBLISHED = QUESTIONNAIRE_VERSION_STATES

REQUIREMENT_STATUSES: Tuple[str, ...] = ("missing", "uploaded", "approved", "rejected")

PAYMENT_STATUSES: Tuple[str, ...] = ("pending", "paid")
PAYMENT_PENDING, PAYMENT_PAID = PAYMENT_STATUSES


# ===============================================================
# LOOKUP HELPERS
# ===============================================================
def normalize_step(value: str) -> str:
    """
    Canonicalize a step name (case-insensitive).

    Raises ValueError for anything outside WORKFLOW_STEPS.
    """
    raw = str(value or "").strip()
    step = _STEP_LOOKUP.get(raw.upper())
    if step is None:
        raise ValueError(f"Unknown workflow step: {raw}")
    return step


def is_known_step(value: str) -> bool:
    return str(value or "").strip().upper() in _STEP_LOOKUP


def step_index(step: str) -> int:
    return _STEP_INDEX[normalize_step(step)]


def is_terminal(step: str) -> bool:
    return normalize_step(step) in TERMINAL_STEPS


def linear_next_step(step: str) -> Optional[str]:
    """
    Next step in the raw sequence, ignoring the spouse branch.
    None at the terminal step.
    """
    idx = step_index(step)
    if idx >= len(WORKFLOW_STEPS) - 1:
        return None
    return WORKFLOW_STEPS[idx + 1]


def is_at_or_after(step: str, reference: str) -> bool:
    return step_index(step) >= step_index(reference)


def normalize_case_status(value: str) -> Optional[str]:
    raw = str(value or "").strip()
    for status in CASE_STATUSES:
        if status.upper() == raw.upper():
            return status
    return None
