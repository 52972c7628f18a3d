# intake_core/questionnaire/selector.py

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from intake_core.questionnaire.rules import should_show_question
from intake_core.questionnaire.types import Answer, Question


def answers_by_key(answers: Iterable[Answer]) -> Dict[str, Any]:
    """
    Build the answer map the evaluator works on. Later records win.
    """
    return {a.question_key: a.value for a in answers}


def next_question(
    ordered_questions: Sequence[Question],
    answers: Mapping[str, Any],
) -> Optional[Question]:
    """
    First question that is not answered yet and whose display rules hold.

    Questions must already be sorted ascending by `order`. Any entry in
    `answers`, even None, counts as answered. None means the questionnaire
    is complete.
    """
    for question in ordered_questions:
        if question.key in answers:
            continue
        if not should_show_question(question.display_rules, answers):
            continue
        return question
    return None


def has_next_question(ordered_questions: Sequence[Question], answers: Mapping[str, Any]) -> bool:
    return next_question(ordered_questions, answers) is not None


def evaluate_next_question(
    ordered_questions: Sequence[Question],
    answers: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Payload used by the live questionnaire and the admin preview.
    """
    question = next_question(ordered_questions, answers)
    if question is None:
        return {"question": None, "done": True}
    return {"question": question.as_prompt(), "done": False}
