from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from intake_core.questionnaire.rules import parse_rules
from intake_core.questionnaire.types import Option, Question, QuestionnaireVersion
from intake_core.workflows.steps import DRAFT, QUESTIONNAIRE_VERSION_STATES


class PackFormatError(ValueError):
    pass


def version_to_dict(version: QuestionnaireVersion) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "questionnaire": {
            "id": version.id,
            "tax_year": version.tax_year,
            "version": version.version,
            "state": version.state,
            "created_by": version.created_by,
        },
        "questions": [],
    }

    for q in version.ordered_questions():
        data["questions"].append(
            {
                "id": q.id,
                "key": q.key,
                "text": q.text,
                "type": q.type,
                "order": q.order,
                "page_group": q.page_group,
                "options": [o.as_dict() for o in q.options],
                "display_rules": [r.as_dict() for r in q.display_rules],
            }
        )

    return data


def _rule_payload(item: Any) -> Any:
    # Rules exported from the database keep the expression under expressionJson
    if isinstance(item, dict) and "expressionJson" in item:
        return item["expressionJson"]
    return item


def _int_field(value: Any, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise PackFormatError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise PackFormatError(f"{name} must be an integer, got {value!r}") from exc


def _option_from_dict(question_key: str, item: Any) -> Option:
    if not isinstance(item, dict) or "value" not in item:
        raise PackFormatError(f"question '{question_key}': option without value")
    return Option(value=str(item["value"]), label=str(item.get("label", item["value"])))


def question_from_dict(item: Dict[str, Any]) -> Question:
    if not isinstance(item, dict):
        raise PackFormatError("question must be a JSON object")

    key = str(item.get("key") or "").strip()
    if not key:
        raise PackFormatError("question without key")

    options = item.get("options", []) or []
    rules = item.get("display_rules", item.get("displayRules")) or []
    if not isinstance(options, list):
        raise PackFormatError(f"question '{key}': options must be a list")
    if not isinstance(rules, list):
        raise PackFormatError(f"question '{key}': display_rules must be a list")

    return Question(
        id=item.get("id"),
        key=key,
        text=item.get("text", "") or "",
        type=item.get("type", "single") or "single",
        order=_int_field(item.get("order"), f"question '{key}': order", 0),
        page_group=item.get("page_group", item.get("pageGroup")),
        options=[_option_from_dict(key, o) for o in options],
        display_rules=parse_rules(_rule_payload(r) for r in rules),
    )


def version_from_dict(payload: Dict[str, Any]) -> QuestionnaireVersion:
    """
    Build a version from its JSON form. Stored rules are parsed leniently.
    """
    if not isinstance(payload, dict):
        raise PackFormatError("questionnaire pack must be a JSON object")

    meta = payload.get("questionnaire", {}) or {}
    if not isinstance(meta, dict):
        raise PackFormatError("questionnaire must be a JSON object")

    tax_year = meta.get("tax_year", meta.get("taxYear"))
    if tax_year is None or tax_year == "":
        raise PackFormatError("questionnaire.tax_year is required")
    tax_year = _int_field(tax_year, "questionnaire.tax_year", 0)

    state = meta.get("state", DRAFT) or DRAFT
    if state not in QUESTIONNAIRE_VERSION_STATES:
        raise PackFormatError(f"unknown questionnaire state: {state}")

    questions = payload.get("questions", []) or []
    if not isinstance(questions, list):
        raise PackFormatError("questions must be a JSON list")

    return QuestionnaireVersion(
        id=meta.get("id"),
        tax_year=tax_year,
        version=_int_field(meta.get("version"), "questionnaire.version", 1),
        state=state,
        created_by=meta.get("created_by"),
        questions=[question_from_dict(q) for q in questions],
    )


def load_version(path: Union[str, Path]) -> QuestionnaireVersion:
    with open(path, "r", encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PackFormatError(f"{path}: invalid JSON ({exc})") from exc
    return version_from_dict(payload)


def dump_version(version: QuestionnaireVersion) -> str:
    return json.dumps(version_to_dict(version), indent=2, sort_keys=True, ensure_ascii=False)
