# intake_core/questionnaire/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from intake_core.questionnaire.rules import Expression, unwrap_answer_value  # noqa: F401
from intake_core.workflows.steps import DRAFT, PUBLISHED


QUESTION_TYPES = ("single", "multi", "text")
CHOICE_TYPES = frozenset({"single", "multi"})


@dataclass(frozen=True)
class Option:
    value: str
    label: str

    def as_dict(self) -> Dict[str, str]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class Question:
    key: str
    text: str = ""
    type: str = "single"
    order: int = 0
    options: List[Option] = field(default_factory=list)
    display_rules: List[Expression] = field(default_factory=list)
    page_group: Optional[str] = None
    id: Optional[str] = None

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_TYPES

    def as_prompt(self) -> Dict[str, Any]:
        """
        Shape shown to the person answering (no rules).
        """
        return {
            "id": self.id,
            "key": self.key,
            "text": self.text,
            "type": self.type,
            "order": self.order,
            "options": [o.as_dict() for o in self.options],
        }


@dataclass(frozen=True)
class QuestionnaireVersion:
    tax_year: int
    version: int = 1
    state: str = DRAFT
    questions: List[Question] = field(default_factory=list)
    id: Optional[str] = None
    created_by: Optional[str] = None

    @property
    def is_published(self) -> bool:
        return self.state == PUBLISHED

    def ordered_questions(self) -> List[Question]:
        # sorted() is stable: equal `order` keeps listed order
        return sorted(self.questions, key=lambda q: q.order)

    def question_keys(self) -> List[str]:
        return [q.key for q in self.questions]


@dataclass(frozen=True)
class Answer:
    question_key: str
    value: Any


def wrap_answer_value(value: Any) -> Any:
    """
    Storage form of an answer: structured values (mappings, lists) are kept
    as they are, scalars are wrapped as {"value": ...}.
    """
    if isinstance(value, (dict, list)):
        return value
    return {"value": value}
