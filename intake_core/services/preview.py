# intake_core/services/preview.py

from typing import Any, Dict, Mapping

from intake_core.questionnaire.selector import evaluate_next_question
from intake_core.questionnaire.types import QuestionnaireVersion


def preview_next_question(version: QuestionnaireVersion, simulated_answers: Any) -> Dict[str, Any]:
    """
    Admin preview: which question a client would see next given simulated
    answers. Works on drafts too. Anything other than a mapping counts as
    "no answers yet".
    """
    answers = simulated_answers if isinstance(simulated_answers, Mapping) else {}
    return evaluate_next_question(version.ordered_questions(), answers)
