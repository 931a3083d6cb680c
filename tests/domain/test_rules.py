"""Tests for the rule engine — parsing, kind checks, bounds, predicates."""

from __future__ import annotations

import re

import pytest

from apiforge.domain.errors import DefinitionError, FieldValidationError
from apiforge.domain.rules import custom, parse_rule, parse_rules, validate
from apiforge.domain.types import Measurement, RuleKind


class TestParseRule:
    def test_kind_string(self) -> None:
        assert parse_rule("integer").kind is RuleKind.INTEGER

    def test_kind_string_is_case_insensitive(self) -> None:
        assert parse_rule(" String ").kind is RuleKind.STRING

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(DefinitionError, match="Unknown rule kind"):
            parse_rule("uuid")

    def test_custom_string_rejected(self) -> None:
        with pytest.raises(DefinitionError):
            parse_rule("custom")

    def test_mapping(self) -> None:
        spec = parse_rule({"type": "string", "required": True, "min": 1, "measurement": "length"})
        assert spec.kind is RuleKind.STRING
        assert spec.required is True
        assert spec.min == 1
        assert spec.measurement is Measurement.LENGTH

    def test_mapping_unknown_keys(self) -> None:
        with pytest.raises(DefinitionError, match="Unknown rule keys: minimum"):
            parse_rule({"minimum": 1})

    def test_min_greater_than_max(self) -> None:
        with pytest.raises(DefinitionError, match="greater than max"):
            parse_rule({"min": 5, "max": 1})

    def test_bad_measurement(self) -> None:
        with pytest.raises(DefinitionError):
            parse_rule({"min": 1, "measurement": "weight"})

    def test_compiled_pattern(self) -> None:
        spec = parse_rule(re.compile(r"^\d+$"))
        assert spec.kind is RuleKind.STRING
        assert spec.pattern is not None

    def test_callable_becomes_custom(self) -> None:
        def is_even(value: int) -> bool:
            return value % 2 == 0

        spec = parse_rule(is_even)
        assert spec.kind is RuleKind.CUSTOM
        assert spec.label == "is_even"

    def test_unsupported_declaration(self) -> None:
        with pytest.raises(DefinitionError):
            parse_rule(42)

    def test_parse_rules_single_and_none(self) -> None:
        assert parse_rules(None) == ()
        assert len(parse_rules("string")) == 1
        assert [r.kind for r in parse_rules(["string", {"max": 3}])] == [
            RuleKind.STRING,
            RuleKind.ANY,
        ]


class TestKindChecks:
    @pytest.mark.parametrize(
        ("kind", "value"),
        [
            ("string", "abc"),
            ("boolean", False),
            ("array", [1, 2]),
            ("object", {"a": 1}),
            ("any", object),
        ],
    )
    def test_accepts(self, kind: str, value: object) -> None:
        assert validate(value, parse_rules(kind), "f") is value

    @pytest.mark.parametrize(
        ("kind", "value"),
        [
            ("string", 5),
            ("number", "abc"),
            ("number", True),
            ("integer", 1.5),
            ("boolean", "true"),
            ("array", "abc"),
            ("object", [1]),
        ],
    )
    def test_rejects(self, kind: str, value: object) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate(value, parse_rules(kind), "f")
        assert exc_info.value.rule == kind
        assert exc_info.value.field == "f"

    def test_numeric_string_coerced_to_number(self) -> None:
        assert validate("3.5", parse_rules("number"), "price") == 3.5
        assert validate("7", parse_rules("number"), "price") == 7

    def test_integer_string_coerced(self) -> None:
        assert validate(" 42 ", parse_rules("integer"), "id") == 42

    def test_input_not_mutated(self) -> None:
        original = ["a", "b"]
        validate(original, parse_rules([{"type": "array", "max": 5}]), "tags")
        assert original == ["a", "b"]


class TestBounds:
    def test_length_min_rejects_empty_string(self) -> None:
        rules = parse_rules({"min": 1, "measurement": "length"})
        with pytest.raises(FieldValidationError) as exc_info:
            validate("", rules, "title")
        assert exc_info.value.rule == "min"

    def test_length_min_accepts_one_char(self) -> None:
        rules = parse_rules({"min": 1, "measurement": "length"})
        assert validate("a", rules, "title") == "a"

    def test_value_max_accepts_boundary(self) -> None:
        rules = parse_rules({"max": 10, "measurement": "value"})
        assert validate(10, rules, "limit") == 10

    def test_value_max_rejects_above(self) -> None:
        rules = parse_rules({"max": 10, "measurement": "value"})
        with pytest.raises(FieldValidationError) as exc_info:
            validate(11, rules, "limit")
        assert exc_info.value.rule == "max"
        assert exc_info.value.actual == 11

    def test_measurement_inferred(self) -> None:
        assert validate({"a": 1}, parse_rules({"max": 1}), "obj") == {"a": 1}
        with pytest.raises(FieldValidationError):
            validate([1, 2, 3], parse_rules({"max": 2}), "items")

    def test_unmeasurable_value(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate("abc", parse_rules({"min": 1, "measurement": "value"}), "n")
        assert exc_info.value.rule == "measurement"

    def test_bounds_after_coercion(self) -> None:
        rules = parse_rules([{"type": "integer", "min": 1, "max": 20}])
        assert validate("5", rules, "limit") == 5
        with pytest.raises(FieldValidationError):
            validate("25", rules, "limit")


class TestPattern:
    def test_match(self) -> None:
        assert validate("asc", parse_rules(re.compile(r"^(asc|desc)$")), "sort") == "asc"

    def test_mismatch(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate("up", parse_rules(re.compile(r"^(asc|desc)$")), "sort")
        assert exc_info.value.rule == "pattern"

    def test_mapping_pattern(self) -> None:
        rules = parse_rules({"type": "string", "pattern": r"^[a-z]+$"})
        with pytest.raises(FieldValidationError):
            validate("ABC", rules, "slug")


class TestAbsentValues:
    def test_required_missing(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate(None, parse_rules([{"type": "string", "required": True}]), "title")
        assert exc_info.value.rule == "required"

    def test_optional_missing_skips_rules(self) -> None:
        assert validate(None, parse_rules([{"type": "integer", "min": 1}]), "limit") is None

    def test_custom_skipped_when_absent(self) -> None:
        calls: list[object] = []
        rule = custom(lambda v: calls.append(v) or False)
        assert validate(None, (rule,), "f") is None
        assert calls == []

    def test_custom_allow_absent_runs(self) -> None:
        rule = custom(lambda v: (False, "must be provided upstream"), allow_absent=True)
        with pytest.raises(FieldValidationError, match="must be provided upstream"):
            validate(None, (rule,), "f")


class TestCustomRules:
    def test_bool_predicate(self) -> None:
        rule = custom(lambda v: v % 2 == 0, name="even")
        assert validate(4, (rule,), "n") == 4
        with pytest.raises(FieldValidationError) as exc_info:
            validate(3, (rule,), "n")
        assert exc_info.value.rule == "even"

    def test_tuple_predicate_explanation(self) -> None:
        rule = custom(lambda v: (v != "admin", "reserved name"), name="not_reserved")
        with pytest.raises(FieldValidationError) as exc_info:
            validate("admin", (rule,), "user")
        assert exc_info.value.message == "reserved name"

    def test_rules_stop_at_first_failure(self) -> None:
        calls: list[object] = []

        def spy(value: object) -> bool:
            calls.append(value)
            return True

        with pytest.raises(FieldValidationError):
            validate("x", (*parse_rules("integer"), custom(spy)), "n")
        assert calls == []
