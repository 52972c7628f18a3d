# intake_core/tests/test_serializers.py
from __future__ import annotations

from intake_core.questionnaire.rules import AndGroup, EmptyRule, OrGroup
from intake_core.serializers import (
    AnswerSubmissionSerializer,
    DisplayRuleSerializer,
    PreviewRequestSerializer,
    QuestionnaireVersionSerializer,
    QuestionSerializer,
)


def _question(key, order, **extra):
    data = {
        "key": key,
        "text": f"{key}?",
        "order": order,
        "options": [{"value": "yes", "label": "Yes"}, {"value": "no", "label": "No"}],
    }
    data.update(extra)
    return data


def test_display_rule_returns_parsed_rule():
    s = DisplayRuleSerializer(data={"expression": {"and": [{"questionKey": "q", "op": "eq", "value": "yes"}]}})
    assert s.is_valid(), s.errors
    assert isinstance(s.validated_data["expression"], AndGroup)

    s = DisplayRuleSerializer(data={"expression": {"or": []}})
    assert s.is_valid(), s.errors
    assert isinstance(s.validated_data["expression"], OrGroup)

    s = DisplayRuleSerializer(data={"expression": {}})
    assert s.is_valid(), s.errors
    assert isinstance(s.validated_data["expression"], EmptyRule)


def test_display_rule_rejects_unknown_operator():
    s = DisplayRuleSerializer(data={"expression": {"and": [{"questionKey": "q", "op": "gt", "value": 1}]}})
    assert not s.is_valid()
    assert "expression" in s.errors


def test_display_rule_rejects_in_without_list():
    s = DisplayRuleSerializer(data={"expression": {"or": [{"questionKey": "q", "op": "in", "value": "a"}]}})
    assert not s.is_valid()


def test_display_rule_rejects_and_with_or():
    s = DisplayRuleSerializer(data={"expression": {"and": [], "or": []}})
    assert not s.is_valid()


def test_display_rule_rejects_non_object():
    s = DisplayRuleSerializer(data={"expression": ["q_married"]})
    assert not s.is_valid()


def test_condition_value_may_be_null():
    s = DisplayRuleSerializer(data={"expression": {"and": [{"questionKey": "q", "op": "eq", "value": None}]}})
    assert s.is_valid(), s.errors


def test_question_serializer_builds_question():
    s = QuestionSerializer(
        data=_question(
            " q_spouse ",
            2,
            display_rules=[{"and": [{"questionKey": "q_married", "op": "eq", "value": "yes"}]}],
        )
    )
    assert s.is_valid(), s.errors
    question = s.save()

    assert question.key == "q_spouse"
    assert question.type == "single"
    assert [o.value for o in question.options] == ["yes", "no"]
    assert question.display_rules[0].referenced_keys() == ["q_married"]


def test_question_serializer_reports_rule_position():
    s = QuestionSerializer(
        data=_question("q_b", 1, display_rules=[{}, {"and": [{"questionKey": "q", "op": "bad", "value": 1}]}])
    )
    assert not s.is_valid()
    assert 1 in s.errors["display_rules"]


def test_version_serializer_runs_structural_checks():
    data = {
        "tax_year": 2024,
        "questions": [
            _question("q_married", 0),
            _question("q_spouse", 1, display_rules=[{"and": [{"questionKey": "q_married", "op": "eq", "value": "yes"}]}]),
        ],
    }
    s = QuestionnaireVersionSerializer(data=data)
    assert s.is_valid(), s.errors
    version = s.save()
    assert version.state == "Draft"
    assert version.question_keys() == ["q_married", "q_spouse"]

    data["questions"][1]["order"] = -1
    s = QuestionnaireVersionSerializer(data=data)
    assert not s.is_valid()
    assert "not asked before it" in str(s.errors["questions"])


def test_version_serializer_rejects_out_of_range_year():
    s = QuestionnaireVersionSerializer(data={"tax_year": 1800, "questions": []})
    assert not s.is_valid()
    assert "tax_year" in s.errors


def test_answer_and_preview_inputs():
    s = AnswerSubmissionSerializer(data={"questionKey": "q_income_types", "value": ["salary"]})
    assert s.is_valid(), s.errors
    assert s.validated_data["value"] == ["salary"]

    s = PreviewRequestSerializer(data={})
    assert s.is_valid(), s.errors
    assert s.validated_data["answers"] == {}

    s = PreviewRequestSerializer(data={"answers": {"q_married": "yes", "q_skip": None}})
    assert s.is_valid(), s.errors
    assert s.validated_data["answers"]["q_skip"] is None
