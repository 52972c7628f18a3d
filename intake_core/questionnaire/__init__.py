from intake_core.questionnaire.rules import (
    MISSING,
    OPERATORS,
    AndGroup,
    Condition,
    EmptyRule,
    Expression,
    OrGroup,
    RuleValidationError,
    evaluate_expression,
    parse_expression,
    parse_rules,
    should_show_question,
)
from intake_core.questionnaire.selector import (
    answers_by_key,
    evaluate_next_question,
    has_next_question,
    next_question,
)
from intake_core.questionnaire.types import (
    Answer,
    Option,
    Question,
    QuestionnaireVersion,
    unwrap_answer_value,
    wrap_answer_value,
)

__all__ = [
    "MISSING",
    "OPERATORS",
    "AndGroup",
    "OrGroup",
    "EmptyRule",
    "Condition",
    "Expression",
    "RuleValidationError",
    "parse_expression",
    "parse_rules",
    "evaluate_expression",
    "should_show_question",
    "answers_by_key",
    "next_question",
    "has_next_question",
    "evaluate_next_question",
    "Answer",
    "Option",
    "Question",
    "QuestionnaireVersion",
    "wrap_answer_value",
    "unwrap_answer_value",
]
