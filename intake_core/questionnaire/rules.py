# intake_core/questionnaire/rules.py

"""
Conditional display rules for questionnaire questions.

A question carries zero or more rules; it is shown only when every rule
holds against the answers collected so far. Each rule is one of:

    AndGroup  {"and": [condition, ...]}   every condition holds (empty: True)
    OrGroup   {"or":  [condition, ...]}   some condition holds  (empty: False)
    EmptyRule {}                          always True

A condition compares a prior answer to a value:

    {"questionKey": "q_married", "op": "eq", "value": "yes"}

Raw JSON is parsed once, at the authoring/loading boundary, by
parse_expression(). Evaluation is pure and never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


OPERATORS = ("eq", "ne", "in", "notIn", "contains")
LIST_OPERAND_OPERATORS = frozenset({"in", "notIn"})


class _Missing:
    """
    Stands in for an answer (or condition value) that does not exist.
    Never equal to anything, itself included.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class RuleValidationError(ValueError):
    """
    Raised when a raw rule expression cannot be turned into a rule.
    """

    def __init__(self, messages: Union[str, List[str]]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


# ===============================================================
# VALUE SEMANTICS
# ===============================================================
def unwrap_answer_value(value: Any) -> Any:
    if isinstance(value, Mapping) and "value" in value:
        return value["value"]
    return value


def resolve_answer(answers: Mapping[str, Any], question_key: str) -> Any:
    if question_key not in answers:
        return MISSING
    return unwrap_answer_value(answers[question_key])


def strict_equal(a: Any, b: Any) -> bool:
    """
    JSON value equality without type coercion.

    - booleans only equal booleans (True is not 1)
    - numbers compare numerically (1 == 1.0)
    - containers are never equal to anything
    - MISSING is never equal to anything
    """
    if a is MISSING or b is MISSING:
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if a is None or b is None:
        return a is None and b is None
    return False


def _includes(items: Iterable[Any], needle: Any) -> bool:
    return any(strict_equal(item, needle) for item in items)


# ===============================================================
# RULE TYPES
# ===============================================================
@dataclass(frozen=True)
class Condition:
    question_key: str
    op: str
    value: Any = MISSING

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        actual = resolve_answer(answers, self.question_key)
        expected = self.value

        if self.op == "eq":
            return strict_equal(actual, expected)
        if self.op == "ne":
            return not strict_equal(actual, expected)
        if self.op == "in":
            return isinstance(expected, list) and _includes(expected, actual)
        if self.op == "notIn":
            return isinstance(expected, list) and not _includes(expected, actual)
        if self.op == "contains":
            return isinstance(actual, list) and _includes(actual, expected)

        # Unknown operators fail closed
        return False

    def as_dict(self) -> dict:
        data = {"questionKey": self.question_key, "op": self.op}
        if self.value is not MISSING:
            data["value"] = self.value
        return data


@dataclass(frozen=True)
class AndGroup:
    conditions: Tuple[Condition, ...] = ()

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        return all(c.evaluate(answers) for c in self.conditions)

    def as_dict(self) -> dict:
        return {"and": [c.as_dict() for c in self.conditions]}

    def referenced_keys(self) -> List[str]:
        return [c.question_key for c in self.conditions]


@dataclass(frozen=True)
class OrGroup:
    conditions: Tuple[Condition, ...] = ()

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        # any() over no conditions is False; published questionnaires rely on it
        return any(c.evaluate(answers) for c in self.conditions)

    def as_dict(self) -> dict:
        return {"or": [c.as_dict() for c in self.conditions]}

    def referenced_keys(self) -> List[str]:
        return [c.question_key for c in self.conditions]


@dataclass(frozen=True)
class EmptyRule:
    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        return True

    def as_dict(self) -> dict:
        return {}

    def referenced_keys(self) -> List[str]:
        return []


Expression = Union[AndGroup, OrGroup, EmptyRule]
EXPRESSION_TYPES = (AndGroup, OrGroup, EmptyRule)


# ===============================================================
# PARSING (authoring / loading boundary)
# ===============================================================
def _parse_condition(raw: Any, *, path: str, strict: bool) -> Condition:
    if not isinstance(raw, Mapping):
        raise RuleValidationError(f"{path}: condition must be an object")

    question_key = raw.get("questionKey", raw.get("question_key"))
    op = raw.get("op")
    value = raw.get("value", MISSING)

    if not strict:
        # A stored condition without a key reads as an unanswered question;
        # without an operator it never matches.
        if not isinstance(question_key, str) or not isinstance(op, str):
            logger.warning("Stored condition %s is missing questionKey or op", path)
        return Condition(
            question_key=question_key.strip() if isinstance(question_key, str) else "",
            op=op if isinstance(op, str) else "",
            value=value,
        )

    if not isinstance(question_key, str) or not question_key.strip():
        raise RuleValidationError(f"{path}.questionKey: required")
    if not isinstance(op, str):
        raise RuleValidationError(f"{path}.op: required")
    if op not in OPERATORS:
        raise RuleValidationError(
            f"{path}.op: unknown operator '{op}' (allowed: {', '.join(OPERATORS)})"
        )
    if value is MISSING:
        raise RuleValidationError(f"{path}.value: required")
    if op in LIST_OPERAND_OPERATORS and not isinstance(value, list):
        raise RuleValidationError(f"{path}.value: '{op}' needs a list")

    return Condition(question_key=question_key.strip(), op=op, value=value)


def _parse_group(raw: Any, *, name: str, strict: bool) -> Tuple[Condition, ...]:
    if not isinstance(raw, list):
        raise RuleValidationError(f"{name}: must be a list of conditions")
    return tuple(
        _parse_condition(item, path=f"{name}[{i}]", strict=strict)
        for i, item in enumerate(raw)
    )


def parse_expression(raw: Any, *, strict: bool = False) -> Expression:
    """
    Turn a stored/authored rule into a rule object.

    strict=False (loading stored rules): unknown or missing operators and
    odd operands are kept and simply evaluate to False; a missing
    questionKey reads as an unanswered question.
    strict=True (admin authoring): those are rejected, as is a rule that
    carries both "and" and "or".
    """
    if isinstance(raw, EXPRESSION_TYPES):
        return raw
    if raw is None:
        return EmptyRule()
    if not isinstance(raw, Mapping):
        raise RuleValidationError("rule expression must be an object")

    and_raw = raw.get("and")
    or_raw = raw.get("or")

    if and_raw is not None:
        if or_raw is not None:
            if strict:
                raise RuleValidationError("rule expression may use 'and' or 'or', not both")
            logger.warning("Display rule has both 'and' and 'or'; only 'and' is applied")
        return AndGroup(_parse_group(and_raw, name="and", strict=strict))

    if or_raw is not None:
        return OrGroup(_parse_group(or_raw, name="or", strict=strict))

    return EmptyRule()


def parse_rules(raw_rules: Iterable[Any], *, strict: bool = False) -> List[Expression]:
    return [parse_expression(r, strict=strict) for r in (raw_rules or [])]


# ===============================================================
# EVALUATION
# ===============================================================
def evaluate_expression(expression: Expression, answers: Mapping[str, Any]) -> bool:
    return expression.evaluate(answers)


def should_show_question(rules: Sequence[Expression], answers: Mapping[str, Any]) -> bool:
    """
    True when every rule holds. No rules means the question is always shown.
    """
    if not rules:
        return True
    return all(rule.evaluate(answers) for rule in rules)
