# intake_core/tests/test_case_flow.py
from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from intake_core.questionnaire.versions import publish
from intake_core.services.cases import (
    advance_step,
    case_from_dict,
    complete_payment,
    finish_case,
    next_question_for_case,
    record_answer,
    start_case,
    submit_signature,
    update_spouse,
)
from intake_core.services.errors import (
    CaseAlreadyExists,
    InvalidAmount,
    InvalidAnswer,
    InvalidSigner,
    InvalidTaxYear,
    NoQuestionnaireForYear,
    TransitionRejected,
)
from intake_core.workflows.steps import PAYMENT_PAID, PAYMENT_PENDING, PAYMENT_STATUSES


# ===============================================================
# START
# ===============================================================

def test_start_case_uses_latest_published_version(seed_version, fixed_now):
    v1 = replace(seed_version, id="qv-1")
    v2 = replace(seed_version, id="qv-2", version=2)
    draft = replace(seed_version, id="qv-3", version=3, state="Draft")

    case = start_case(user_id="u1", tax_year="2024", versions=[v1, v2, draft], now=fixed_now)

    assert case.tax_year == 2024
    assert case.questionnaire_version_id == "qv-2"
    assert case.workflow_step == "SelectTaxYear"
    assert case.status == "New"
    assert case.payment_status == "pending"
    assert case.updated_at == fixed_now
    assert len(case.id) == 32


@pytest.mark.parametrize("tax_year", [None, "abc", 1999, 2101])
def test_start_case_rejects_bad_year(seed_version, tax_year):
    with pytest.raises(InvalidTaxYear):
        start_case(user_id="u1", tax_year=tax_year, versions=[seed_version])


def test_start_case_year_range_follows_settings(settings, seed_version):
    settings.TAXFLOW_MIN_TAX_YEAR = 2025
    with pytest.raises(InvalidTaxYear) as exc:
        start_case(user_id="u1", tax_year=2024, versions=[seed_version])
    assert exc.value.as_dict() == {"error": "invalid_tax_year", "tax_year": 2024}


def test_start_case_needs_published_questionnaire(seed_version):
    with pytest.raises(NoQuestionnaireForYear):
        start_case(user_id="u1", tax_year=2025, versions=[seed_version])
    with pytest.raises(NoQuestionnaireForYear):
        start_case(user_id="u1", tax_year=2024, versions=[replace(seed_version, state="Draft")])


def test_start_case_one_per_user_and_year(seed_version, case_factory):
    existing = case_factory(user_id="u1", tax_year=2024, id="case-1")
    with pytest.raises(CaseAlreadyExists) as exc:
        start_case(user_id="u1", tax_year=2024, versions=[seed_version], existing_cases=[existing])
    assert exc.value.details == {"case_id": "case-1"}

    other = start_case(user_id="u2", tax_year=2024, versions=[seed_version], existing_cases=[existing])
    assert other.user_id == "u2"


# ===============================================================
# QUESTIONNAIRE
# ===============================================================

def test_first_answer_moves_to_questionnaire(seed_version, case_factory, fixed_now):
    case = case_factory()
    update = record_answer(case, seed_version, "q_married", "no", now=fixed_now)

    assert update.case.workflow_step == "Questionnaire"
    assert update.has_next is True
    assert update.case.answers == {"q_married": {"value": "no"}}
    assert update.case.is_married is False
    assert [e["trigger"] for e in update.events] == ["advance"]
    assert case.answers == {}


def test_married_answer_sets_flag(seed_version, case_factory, fixed_now):
    case = case_factory(step="Questionnaire")
    update = record_answer(case, seed_version, "q_married", "yes", now=fixed_now)
    assert update.case.is_married is True
    assert not update.changed

    again = record_answer(update.case, seed_version, "q_married", "no", now=fixed_now)
    assert again.case.is_married is False


def test_married_question_key_follows_settings(settings, seed_version, case_factory, fixed_now):
    settings.TAXFLOW_MARRIED_QUESTION_KEY = "q_employment"
    settings.TAXFLOW_MARRIED_YES_VALUE = "both"
    case = case_factory(step="Questionnaire")
    update = record_answer(case, seed_version, "q_employment", "both", now=fixed_now)
    assert update.case.is_married is True


def test_last_answer_moves_to_payment(seed_version, case_factory, fixed_now):
    case = case_factory(
        step="Questionnaire",
        answers={"q_married": {"value": "no"}, "q_employment": {"value": "employee"}},
    )
    update = record_answer(case, seed_version, "q_income_types", ["salary"], now=fixed_now)

    assert update.has_next is False
    assert update.case.workflow_step == "Payment"
    assert update.case.answers["q_income_types"] == ["salary"]
    assert update.events[-1]["trigger"] == "questionnaire_exhausted"
    assert update.events[-1]["from_step"] == "Questionnaire"


def test_single_question_questionnaire_goes_straight_to_payment(
    question_factory, version_factory, case_factory, fixed_now
):
    version = version_factory([question_factory("only", options=["a"])])
    update = record_answer(case_factory(), version, "only", "a", now=fixed_now)
    assert update.from_step == "SelectTaxYear"
    assert update.to_step == "Payment"
    assert len(update.events) == 2


def test_answer_after_questionnaire_keeps_step(seed_version, case_factory, fixed_now):
    case = case_factory(step="DocumentsAndData")
    update = record_answer(case, seed_version, "q_married", "yes", now=fixed_now)
    assert update.case.workflow_step == "DocumentsAndData"
    assert update.events == []


def test_answer_requires_key(seed_version, case_factory):
    with pytest.raises(InvalidAnswer):
        record_answer(case_factory(), seed_version, "  ", "x")


def test_next_question_for_case_reads_stored_answers(seed_version, case_factory):
    case = case_factory(answers={"q_married": {"value": "yes"}, "q_employment": {"value": "self"}})
    assert next_question_for_case(case, seed_version)["question"]["key"] == "q_spouse_employment"


# ===============================================================
# PAYMENT / SIGNATURES / FINISH
# ===============================================================

def test_payment_only_at_payment_step(case_factory, fixed_now):
    with pytest.raises(TransitionRejected) as exc:
        complete_payment(case_factory(step="Questionnaire"), 100, now=fixed_now)
    assert exc.value.code == "wrong_step"
    assert exc.value.as_dict()["expected"] == "Payment"


def test_payment_marks_paid(case_factory, fixed_now):
    update = complete_payment(case_factory(step="Payment"), "149.90", now=fixed_now)
    assert update.case.workflow_step == "PersonalDetailsUploads"
    assert update.case.payment_status == "paid"
    assert update.case.price == Decimal("149.90")


@pytest.mark.parametrize("amount", ["free", "-1", "NaN"])
def test_payment_rejects_bad_amount(case_factory, amount):
    with pytest.raises(InvalidAmount):
        complete_payment(case_factory(step="Payment"), amount)


def test_main_signature_married_goes_to_spouse(case_factory, fixed_now):
    case = case_factory(step="POASignature", is_married=True)
    update = submit_signature(case, "main", signed_pdf_path="/poa/main.pdf", now=fixed_now)

    assert update.case.workflow_step == "SpouseFlow"
    signature = update.case.signatures[0]
    assert signature.signer == "main"
    assert signature.signed_pdf_path == "/poa/main.pdf"
    assert signature.audit["timestamp"] == fixed_now.isoformat()
    assert [e["action"] for e in update.events] == ["signature", "workflow_step"]


def test_main_signature_unmarried_skips_spouse(case_factory, fixed_now):
    update = submit_signature(case_factory(step="POASignature", is_married=None), "main", now=fixed_now)
    assert update.case.workflow_step == "DocumentsAndData"


def test_signature_at_other_step_is_recorded_without_moving(case_factory, fixed_now):
    case = case_factory(step="SpouseFlow", is_married=True)
    update = submit_signature(case, "main", audit={"ip": "10.0.0.1"}, now=fixed_now)
    assert update.case.workflow_step == "SpouseFlow"
    assert update.case.signatures[0].audit["ip"] == "10.0.0.1"
    assert not update.changed


def test_spouse_signature_moves_to_documents(case_factory, fixed_now):
    update = submit_signature(case_factory(step="SpousePOASignature", is_married=True), "spouse", now=fixed_now)
    assert update.case.workflow_step == "DocumentsAndData"


def test_signature_requires_signer(case_factory):
    with pytest.raises(InvalidSigner):
        submit_signature(case_factory(step="POASignature"), "")


def test_advance_and_finish(case_factory, fixed_now):
    case = case_factory(step="DocumentsAndData")
    update = advance_step(case, now=fixed_now)
    assert update.case.workflow_step == "ReviewFinish"

    done = finish_case(update.case, now=fixed_now)
    assert done.case.workflow_step == "SubmittedToStaff"

    with pytest.raises(TransitionRejected) as exc:
        advance_step(done.case)
    assert exc.value.code == "cannot_advance"


def test_finish_requires_review_step(case_factory):
    with pytest.raises(TransitionRejected) as exc:
        finish_case(case_factory(step="DocumentsAndData"))
    assert exc.value.code == "wrong_step"


def test_full_married_journey(seed_version, fixed_now):
    case = start_case(user_id="u1", tax_year=2024, versions=[publish(seed_version)], now=fixed_now)
    replies = {
        "q_married": "yes",
        "q_employment": "employee",
        "q_spouse_employment": "employee",
        "q_income_types": ["salary"],
    }
    while True:
        payload = next_question_for_case(case, seed_version)
        if payload["done"]:
            break
        key = payload["question"]["key"]
        case = record_answer(case, seed_version, key, replies[key], now=fixed_now).case

    assert case.workflow_step == "Payment"
    case = complete_payment(case, 100, now=fixed_now).case
    case = advance_step(case, now=fixed_now).case
    assert case.workflow_step == "POASignature"
    case = submit_signature(case, "main", now=fixed_now).case
    case = advance_step(case, now=fixed_now).case
    case = submit_signature(case, "spouse", now=fixed_now).case
    case = advance_step(case, now=fixed_now).case
    case = finish_case(case, now=fixed_now).case

    assert case.workflow_step == "SubmittedToStaff"
    assert len(case.signatures) == 2


# ===============================================================
# SPOUSE / SNAPSHOT I/O
# ===============================================================

def test_update_spouse(case_factory, fixed_now):
    case = case_factory()
    assert update_spouse(case, None) is case
    later = fixed_now + timedelta(minutes=5)
    updated = update_spouse(case, {"first_name": "Dana"}, now=later)
    assert updated.spouse == {"first_name": "Dana"}
    assert updated.updated_at == later


def test_case_from_dict_accepts_camel_case():
    case = case_from_dict(
        {
            "id": "c1",
            "userId": "u1",
            "taxYear": "2024",
            "workflowStep": "payment",
            "isMarried": True,
            "updatedAt": "2025-03-01T10:00:00",
        }
    )
    assert case.workflow_step == "Payment"
    assert case.tax_year == 2024
    assert case.is_married is True
    assert case.updated_at.tzinfo is not None


def test_case_from_dict_rejects_bad_timestamp():
    with pytest.raises(ValueError):
        case_from_dict({"id": "c1", "updated_at": "yesterday"})


def test_payment_status_stays_within_known_values(seed_version, fixed_now):
    case = start_case(user_id="u1", tax_year=2024, versions=[seed_version], now=fixed_now)
    assert case.payment_status == PAYMENT_PENDING

    paid = complete_payment(replace(case, workflow_step="Payment"), 0, now=fixed_now).case
    assert paid.payment_status == PAYMENT_PAID
    assert {case.payment_status, paid.payment_status} == set(PAYMENT_STATUSES)
