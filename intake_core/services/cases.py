# intake_core/services/cases.py

"""
Case lifecycle services.

Each function receives a CaseState snapshot read by the hosting layer and
returns a CaseUpdate holding the new snapshot plus the audit events to
persist. Inputs are never mutated. Persistence and request handling stay
with the caller.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from intake_core.conf import get_setting, now as _now
from intake_core.questionnaire.rules import strict_equal
from intake_core.questionnaire.selector import evaluate_next_question, has_next_question
from intake_core.questionnaire.types import QuestionnaireVersion, unwrap_answer_value, wrap_answer_value
from intake_core.questionnaire.versions import latest_published
from intake_core.services.errors import (
    CaseAlreadyExists,
    InvalidAmount,
    InvalidAnswer,
    InvalidSigner,
    InvalidTaxYear,
    NoQuestionnaireForYear,
    TransitionRejected,
)
from intake_core.workflows import transitions as wf
from intake_core.workflows.steps import (
    CASE_STATUSES,
    PAYMENT_PAID,
    PAYMENT_PENDING,
    QUESTIONNAIRE,
    SELECT_TAX_YEAR,
    normalize_step,
)

logger = logging.getLogger(__name__)


# ===============================================================
# SNAPSHOTS
# ===============================================================
@dataclass(frozen=True)
class Signature:
    signer: str
    signed_at: Any
    signed_pdf_path: Optional[str] = None
    audit: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CaseState:
    id: str
    user_id: str
    tax_year: int
    questionnaire_version_id: Optional[str] = None
    workflow_step: str = SELECT_TAX_YEAR
    status: str = CASE_STATUSES[0]
    payment_status: str = PAYMENT_PENDING
    price: Optional[Decimal] = None
    is_married: Optional[bool] = None
    assigned_to: Optional[str] = None
    answers: Dict[str, Any] = field(default_factory=dict)
    requirements: tuple = ()
    signatures: tuple = ()
    spouse: Optional[Dict[str, Any]] = None
    updated_at: Any = None


@dataclass(frozen=True)
class CaseUpdate:
    case: CaseState
    from_step: str
    to_step: str
    events: List[Dict[str, Any]] = field(default_factory=list)
    has_next: Optional[bool] = None

    @property
    def changed(self) -> bool:
        return self.from_step != self.to_step


# ===============================================================
# INTERNAL
# ===============================================================
def _step_event(case: CaseState, result: wf.TransitionResult, when) -> Dict[str, Any]:
    return {
        "action": "workflow_step",
        "case_id": case.id,
        "trigger": result.event,
        "from_step": result.current_step,
        "to_step": result.step,
        "at": when.isoformat() if hasattr(when, "isoformat") else when,
    }


def _apply(case: CaseState, result: wf.TransitionResult, when) -> tuple:
    """
    Move the snapshot to result.step, or raise TransitionRejected.
    """
    if not result.ok:
        logger.warning(
            "Rejected %s for case %s at %s: %s",
            result.event,
            case.id,
            case.workflow_step,
            result.error.code,
        )
        raise TransitionRejected(result.error)

    logger.info("Case %s: %s -> %s (%s)", case.id, result.current_step, result.step, result.event)
    moved = replace(case, workflow_step=result.step, updated_at=when)
    return moved, _step_event(case, result, when)


def _transition(case: CaseState, event: str, when, **updates) -> CaseUpdate:
    result = wf.compute_next_workflow_step(case.workflow_step, event, case.is_married)
    moved, audit = _apply(case, result, when)
    if updates:
        moved = replace(moved, **updates)
    return CaseUpdate(case=moved, from_step=result.current_step, to_step=moved.workflow_step, events=[audit])


def is_married_answer(value: Any) -> bool:
    return strict_equal(unwrap_answer_value(value), get_setting("TAXFLOW_MARRIED_YES_VALUE"))


# ===============================================================
# CASE CREATION
# ===============================================================
def start_case(
    *,
    user_id: str,
    tax_year: Any,
    versions: Iterable[QuestionnaireVersion],
    existing_cases: Iterable[CaseState] = (),
    case_id: Optional[str] = None,
    now=None,
) -> CaseState:
    """
    Open a case for a tax year against the newest published questionnaire.
    """
    try:
        year = int(tax_year)
    except (TypeError, ValueError):
        raise InvalidTaxYear("valid taxYear required")

    if not get_setting("TAXFLOW_MIN_TAX_YEAR") <= year <= get_setting("TAXFLOW_MAX_TAX_YEAR"):
        raise InvalidTaxYear("valid taxYear required", tax_year=year)

    for existing in existing_cases:
        if existing.user_id == user_id and existing.tax_year == year:
            raise CaseAlreadyExists(case_id=existing.id)

    published = latest_published(versions, year)
    if published is None:
        raise NoQuestionnaireForYear(tax_year=year)

    case = CaseState(
        id=case_id or uuid.uuid4().hex,
        user_id=user_id,
        tax_year=year,
        questionnaire_version_id=published.id,
        workflow_step=SELECT_TAX_YEAR,
        status=CASE_STATUSES[0],
        payment_status=PAYMENT_PENDING,
        updated_at=now or _now(),
    )
    logger.info("Opened case %s for user %s, tax year %s (v%s)", case.id, user_id, year, published.version)
    return case


# ===============================================================
# QUESTIONNAIRE
# ===============================================================
def next_question_for_case(case: CaseState, version: QuestionnaireVersion) -> Dict[str, Any]:
    return evaluate_next_question(version.ordered_questions(), case.answers)


def record_answer(
    case: CaseState,
    version: QuestionnaireVersion,
    question_key: str,
    value: Any,
    *,
    now=None,
) -> CaseUpdate:
    """
    Store (or overwrite) one answer, then re-run the selector to decide
    whether the case leaves the questionnaire.

    From SelectTaxYear the first answer moves the case to Questionnaire.
    At Questionnaire, no next question moves it to Payment. Cases past the
    questionnaire keep their step.
    """
    key = str(question_key or "").strip()
    if not key:
        raise InvalidAnswer("questionKey and value required")

    when = now or _now()

    answers = dict(case.answers)
    answers[key] = wrap_answer_value(value)

    is_married = case.is_married
    if key == get_setting("TAXFLOW_MARRIED_QUESTION_KEY"):
        is_married = is_married_answer(value)

    has_next = has_next_question(version.ordered_questions(), answers)
    updated = replace(case, answers=answers, is_married=is_married, updated_at=when)

    from_step = case.workflow_step
    events: List[Dict[str, Any]] = []

    if updated.workflow_step == SELECT_TAX_YEAR:
        updated, audit = _apply(updated, wf.advance(updated.workflow_step, is_married), when)
        events.append(audit)

    if updated.workflow_step == QUESTIONNAIRE and not has_next:
        result = wf.compute_next_workflow_step(updated.workflow_step, wf.QUESTIONNAIRE_EXHAUSTED, is_married)
        updated, audit = _apply(updated, result, when)
        events.append(audit)

    return CaseUpdate(
        case=updated,
        from_step=from_step,
        to_step=updated.workflow_step,
        events=events,
        has_next=has_next,
    )


# ===============================================================
# PAYMENT / SIGNATURES / GENERIC STEPS
# ===============================================================
def complete_payment(case: CaseState, amount: Any = 0, *, now=None) -> CaseUpdate:
    try:
        price = Decimal(str(amount if amount is not None else 0))
    except InvalidOperation:
        raise InvalidAmount(amount=str(amount))
    if not price.is_finite() or price < 0:
        raise InvalidAmount(amount=str(amount))

    return _transition(
        case,
        wf.PAYMENT_COMPLETED,
        now or _now(),
        payment_status=PAYMENT_PAID,
        price=price,
    )


def submit_signature(
    case: CaseState,
    signer: str,
    *,
    signed_pdf_path: Optional[str] = None,
    audit: Optional[Dict[str, Any]] = None,
    now=None,
) -> CaseUpdate:
    """
    Record a power-of-attorney signature.

    The step only moves when the signer matches the signature step the case
    is at (main at POASignature, spouse at SpousePOASignature); otherwise the
    signature is kept and the step is left alone.
    """
    signer = str(signer or "").strip()
    if not signer:
        raise InvalidSigner("signer required")

    when = now or _now()
    signature = Signature(
        signer=signer,
        signed_at=when,
        signed_pdf_path=signed_pdf_path,
        audit={"timestamp": when.isoformat(), **(audit or {})},
    )
    signed = replace(case, signatures=(*case.signatures, signature), updated_at=when)
    events: List[Dict[str, Any]] = [
        {"action": "signature", "case_id": case.id, "signer": signer, "at": when.isoformat()}
    ]

    event = wf.signature_event(signer)
    if event is not None:
        result = wf.compute_next_workflow_step(signed.workflow_step, event, signed.is_married)
        if result.ok:
            signed, step_audit = _apply(signed, result, when)
            events.append(step_audit)
        else:
            logger.debug("Signature by %s on case %s does not move step %s", signer, case.id, case.workflow_step)

    return CaseUpdate(case=signed, from_step=case.workflow_step, to_step=signed.workflow_step, events=events)


def advance_step(case: CaseState, *, now=None) -> CaseUpdate:
    """
    The client confirmed the current step is done.
    """
    return _transition(case, wf.ADVANCE, now or _now())


def finish_case(case: CaseState, *, now=None) -> CaseUpdate:
    return _transition(case, wf.FINISH, now or _now())


def update_spouse(case: CaseState, spouse: Optional[Dict[str, Any]], *, now=None) -> CaseState:
    if spouse is None:
        return case
    return replace(case, spouse=dict(spouse), updated_at=now or _now())


# ===============================================================
# SNAPSHOT I/O
# ===============================================================
def case_from_dict(payload: Dict[str, Any]) -> CaseState:
    """
    Build a snapshot from an exported case record (snake_case or camelCase).
    """
    from datetime import timezone as dt_timezone

    from django.utils import timezone
    from django.utils.dateparse import parse_datetime

    def pick(name: str, camel: str, default=None):
        if name in payload:
            return payload[name]
        return payload.get(camel, default)

    updated_at = pick("updated_at", "updatedAt")
    if isinstance(updated_at, str):
        parsed = parse_datetime(updated_at)
        if parsed is None:
            raise ValueError(f"Invalid updated_at: {updated_at}")
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed, dt_timezone.utc)
        updated_at = parsed

    return CaseState(
        id=str(payload["id"]),
        user_id=str(pick("user_id", "userId", "")),
        tax_year=int(pick("tax_year", "taxYear", 0)),
        questionnaire_version_id=pick("questionnaire_version_id", "questionnaireVersionId"),
        workflow_step=normalize_step(pick("workflow_step", "workflowStep", SELECT_TAX_YEAR)),
        status=pick("status", "status", CASE_STATUSES[0]),
        is_married=pick("is_married", "isMarried"),
        assigned_to=pick("assigned_to", "assignedTo"),
        answers=dict(pick("answers", "answers", {}) or {}),
        updated_at=updated_at,
    )
