# intake_core/serializers.py
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from intake_core.questionnaire.rules import (
    OPERATORS,
    RuleValidationError,
    parse_expression,
)
from intake_core.questionnaire.types import QUESTION_TYPES, Option, Question, QuestionnaireVersion
from intake_core.questionnaire.versions import validate_version
from intake_core.workflows.steps import QUESTIONNAIRE_VERSION_STATES


# ===============================================================
# DISPLAY RULES
# ===============================================================
class ConditionSerializer(serializers.Serializer):
    questionKey = serializers.CharField()
    op = serializers.ChoiceField(choices=OPERATORS)
    value = serializers.JSONField(allow_null=True)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if attrs["op"] in {"in", "notIn"} and not isinstance(attrs["value"], list):
            raise serializers.ValidationError({"value": f"'{attrs['op']}' needs a list of values."})
        return attrs


class DisplayRuleSerializer(serializers.Serializer):
    """
    Authoring shape: {"and": [...]} or {"or": [...]}; {} means always shown.
    The validated data is the parsed rule object.
    """

    expression = serializers.JSONField()

    def validate_expression(self, value: Any):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Rule expression must be an object.")

        for group in ("and", "or"):
            if value.get(group) is None:
                continue
            if not isinstance(value[group], list):
                raise serializers.ValidationError({group: "Must be a list of conditions."})
            conditions = ConditionSerializer(data=value[group], many=True)
            if not conditions.is_valid():
                raise serializers.ValidationError({group: conditions.errors})

        try:
            return parse_expression(value, strict=True)
        except RuleValidationError as exc:
            raise serializers.ValidationError(exc.messages)


# ===============================================================
# QUESTIONS / VERSIONS
# ===============================================================
class OptionSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()

    def create(self, validated_data: Dict[str, Any]) -> Option:
        return Option(**validated_data)


class QuestionSerializer(serializers.Serializer):
    key = serializers.CharField(max_length=100)
    text = serializers.CharField()
    type = serializers.ChoiceField(choices=QUESTION_TYPES, default="single")
    order = serializers.IntegerField(default=0)
    page_group = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    options = OptionSerializer(many=True, required=False, default=list)
    display_rules = serializers.ListField(child=serializers.JSONField(), required=False, default=list)

    def validate_key(self, value: str) -> str:
        return value.strip()

    def validate_display_rules(self, value):
        rules = []
        errors = {}
        for i, raw in enumerate(value):
            rule = DisplayRuleSerializer(data={"expression": raw})
            if rule.is_valid():
                rules.append(rule.validated_data["expression"])
            else:
                errors[i] = rule.errors["expression"]
        if errors:
            raise serializers.ValidationError(errors)
        return rules

    def create(self, validated_data: Dict[str, Any]) -> Question:
        return Question(
            key=validated_data["key"],
            text=validated_data["text"],
            type=validated_data["type"],
            order=validated_data["order"],
            page_group=validated_data.get("page_group") or None,
            options=[Option(**o) for o in validated_data.get("options", [])],
            display_rules=list(validated_data.get("display_rules", [])),
        )


class QuestionnaireVersionSerializer(serializers.Serializer):
    tax_year = serializers.IntegerField(min_value=1900, max_value=2200)
    version = serializers.IntegerField(min_value=1, default=1)
    state = serializers.ChoiceField(choices=QUESTIONNAIRE_VERSION_STATES, default="Draft")
    questions = QuestionSerializer(many=True, default=list)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        version = self._build(attrs)
        problems = validate_version(version)
        if problems:
            raise serializers.ValidationError({"questions": problems})
        attrs["instance_value"] = version
        return attrs

    def _build(self, attrs: Dict[str, Any]) -> QuestionnaireVersion:
        question_serializer = QuestionSerializer()
        return QuestionnaireVersion(
            tax_year=attrs["tax_year"],
            version=attrs["version"],
            state=attrs["state"],
            questions=[question_serializer.create(q) for q in attrs.get("questions", [])],
        )

    def create(self, validated_data: Dict[str, Any]) -> QuestionnaireVersion:
        return validated_data["instance_value"]


# ===============================================================
# CLIENT / ADMIN INPUT
# ===============================================================
class AnswerSubmissionSerializer(serializers.Serializer):
    questionKey = serializers.CharField()
    value = serializers.JSONField(allow_null=True)


class PreviewRequestSerializer(serializers.Serializer):
    answers = serializers.DictField(child=serializers.JSONField(allow_null=True), required=False, default=dict)
