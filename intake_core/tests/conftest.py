# intake_core/tests/conftest.py

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from intake_core.questionnaire.pack_io import load_version
from intake_core.questionnaire.rules import parse_rules
from intake_core.questionnaire.types import Option, Question, QuestionnaireVersion
from intake_core.services.cases import CaseState


SEED_PACK = Path(__file__).resolve().parent.parent / "packs" / "questionnaire_2024.json"


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def question_factory() -> Callable[..., Question]:
    def _make(
        key: str,
        order: int = 0,
        rules: Optional[List[Dict[str, Any]]] = None,
        type: str = "single",
        options: Optional[List[str]] = None,
    ) -> Question:
        return Question(
            key=key,
            text=f"{key} text",
            type=type,
            order=order,
            options=[Option(value=v, label=v.title()) for v in (options or [])],
            display_rules=parse_rules(rules or []),
        )

    return _make


@pytest.fixture
def seed_version() -> QuestionnaireVersion:
    return load_version(SEED_PACK)


@pytest.fixture
def version_factory() -> Callable[..., QuestionnaireVersion]:
    def _make(questions, tax_year: int = 2024, version: int = 1, state: str = "Published") -> QuestionnaireVersion:
        return QuestionnaireVersion(
            id=_rand("qv"),
            tax_year=tax_year,
            version=version,
            state=state,
            questions=list(questions),
        )

    return _make


@pytest.fixture
def case_factory(fixed_now) -> Callable[..., CaseState]:
    def _make(step: str = "SelectTaxYear", **kwargs) -> CaseState:
        defaults: Dict[str, Any] = {
            "id": _rand("case"),
            "user_id": _rand("user"),
            "tax_year": 2024,
            "workflow_step": step,
            "updated_at": fixed_now,
        }
        defaults.update(kwargs)
        return CaseState(**defaults)

    return _make
