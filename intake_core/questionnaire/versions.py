# intake_core/questionnaire/versions.py

"""
Questionnaire version authoring helpers.

Versions are immutable values: every helper returns a new
QuestionnaireVersion. Published versions are locked; edits go to a new
draft (create_draft / clone_to_next_year).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Any, Iterable, List, Optional

from intake_core.questionnaire.rules import parse_expression
from intake_core.questionnaire.types import Option, Question, QuestionnaireVersion
from intake_core.workflows.steps import DRAFT, PUBLISHED


class VersionLocked(ValueError):
    def __init__(self, version: QuestionnaireVersion):
        self.version = version
        super().__init__(
            f"Questionnaire {version.tax_year} v{version.version} is published and cannot be edited"
        )


class QuestionNotFound(KeyError):
    pass


def _require_draft(version: QuestionnaireVersion) -> None:
    if version.is_published:
        raise VersionLocked(version)


# ===============================================================
# VERSION LIFECYCLE
# ===============================================================
def next_version_number(versions: Iterable[QuestionnaireVersion], tax_year: int) -> int:
    numbers = [v.version for v in versions if v.tax_year == tax_year]
    return (max(numbers) if numbers else 0) + 1


def create_draft(
    versions: Iterable[QuestionnaireVersion],
    tax_year: int,
    *,
    created_by: Optional[str] = None,
) -> QuestionnaireVersion:
    return QuestionnaireVersion(
        tax_year=tax_year,
        version=next_version_number(versions, tax_year),
        state=DRAFT,
        created_by=created_by,
    )


def publish(version: QuestionnaireVersion) -> QuestionnaireVersion:
    return replace(version, state=PUBLISHED)


def clone_to_next_year(
    version: QuestionnaireVersion,
    *,
    created_by: Optional[str] = None,
    existing: Optional[Iterable[QuestionnaireVersion]] = None,
) -> QuestionnaireVersion:
    """
    Copy questions, options and rules into a draft for the following tax year.

    Without `existing` the copy is numbered 1; pass the known versions to
    number it after any drafts already created for that year.
    """
    tax_year = version.tax_year + 1
    number = next_version_number(existing, tax_year) if existing is not None else 1
    return QuestionnaireVersion(
        tax_year=tax_year,
        version=number,
        state=DRAFT,
        questions=[replace(q, id=None) for q in version.questions],
        created_by=created_by,
    )


def latest_published(
    versions: Iterable[QuestionnaireVersion],
    tax_year: int,
) -> Optional[QuestionnaireVersion]:
    candidates = [v for v in versions if v.tax_year == tax_year and v.is_published]
    if not candidates:
        return None
    return max(candidates, key=lambda v: v.version)


# ===============================================================
# QUESTION EDITING (drafts only)
# ===============================================================
def _index_of(version: QuestionnaireVersion, key: str) -> int:
    for i, q in enumerate(version.questions):
        if q.key == key:
            return i
    raise QuestionNotFound(key)


def upsert_question(version: QuestionnaireVersion, question: Question) -> QuestionnaireVersion:
    _require_draft(version)
    questions = list(version.questions)
    try:
        questions[_index_of(version, question.key)] = question
    except QuestionNotFound:
        questions.append(question)
    return replace(version, questions=questions)


def update_question(version: QuestionnaireVersion, key: str, **changes: Any) -> QuestionnaireVersion:
    """
    Partial edit; only non-empty text/type/key and an explicit order apply.
    """
    _require_draft(version)
    idx = _index_of(version, key)
    current = version.questions[idx]
    applied = {
        name: value
        for name, value in changes.items()
        if name in {"key", "text", "type", "page_group"} and value
    }
    if changes.get("order") is not None:
        applied["order"] = int(changes["order"])
    questions = list(version.questions)
    questions[idx] = replace(current, **applied)
    return replace(version, questions=questions)


def remove_question(version: QuestionnaireVersion, key: str) -> QuestionnaireVersion:
    _require_draft(version)
    idx = _index_of(version, key)
    questions = list(version.questions)
    del questions[idx]
    return replace(version, questions=questions)


def replace_options(version: QuestionnaireVersion, key: str, options: Iterable[Any]) -> QuestionnaireVersion:
    _require_draft(version)
    idx = _index_of(version, key)
    normalized = [
        o if isinstance(o, Option) else Option(value=str(o["value"]), label=str(o["label"]))
        for o in options
    ]
    questions = list(version.questions)
    questions[idx] = replace(questions[idx], options=normalized)
    return replace(version, questions=questions)


def add_display_rule(version: QuestionnaireVersion, key: str, raw_expression: Any) -> QuestionnaireVersion:
    """
    Attach an authored rule; the expression is validated strictly.
    """
    _require_draft(version)
    idx = _index_of(version, key)
    rule = parse_expression(raw_expression, strict=True)
    questions = list(version.questions)
    current = questions[idx]
    questions[idx] = replace(current, display_rules=[*current.display_rules, rule])
    return replace(version, questions=questions)


def remove_display_rule(version: QuestionnaireVersion, key: str, position: int) -> QuestionnaireVersion:
    _require_draft(version)
    idx = _index_of(version, key)
    questions = list(version.questions)
    rules = list(questions[idx].display_rules)
    del rules[position]
    questions[idx] = replace(questions[idx], display_rules=rules)
    return replace(version, questions=questions)


# ===============================================================
# VALIDATION
# ===============================================================
def validate_version(version: QuestionnaireVersion) -> List[str]:
    """
    Structural problems an admin should fix before publishing.
    Returns human-readable messages; empty means valid.
    """
    errors: List[str] = []

    counts = Counter(version.question_keys())
    for key, n in sorted(counts.items()):
        if n > 1:
            errors.append(f"duplicate question key '{key}' ({n} times)")

    asked_before = set()
    known = set(counts)
    for q in version.ordered_questions():
        if q.is_choice and not q.options:
            errors.append(f"question '{q.key}' of type '{q.type}' has no options")
        if not q.is_choice and q.options:
            errors.append(f"question '{q.key}' of type '{q.type}' should not have options")

        for rule in q.display_rules:
            for ref in rule.referenced_keys():
                if ref not in known:
                    errors.append(f"question '{q.key}' has a rule on unknown question '{ref}'")
                elif ref == q.key or ref not in asked_before:
                    errors.append(
                        f"question '{q.key}' has a rule on '{ref}', which is not asked before it"
                    )
        asked_before.add(q.key)

    return errors
