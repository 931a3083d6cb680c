"""Rule engine — validate and coerce one field value against its rule list.

Rules are declared once (kind strings, constraint mappings, compiled
patterns, or predicates) and parsed eagerly into frozen :class:`RuleSpec`
objects. :func:`validate` evaluates them left to right and stops at the
first failure.

INVARIANT: The input value is never mutated. Declared coercions (numeric
string -> number) are returned only when every rule passes.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from apiforge.domain.errors import DefinitionError, FieldValidationError
from apiforge.domain.types import Measurement, RuleKind

NUMBER_RE = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$")
INTEGER_RE = re.compile(r"^[-+]?\d+$")

_RULE_KEYS = frozenset({"type", "required", "min", "max", "measurement", "pattern"})


class RuleSpec(BaseModel):
    """One immutable rule in a field's ordered rule list."""

    model_config = ConfigDict(frozen=True)

    kind: RuleKind = RuleKind.ANY
    required: bool = False
    min: float | None = None
    max: float | None = None
    measurement: Measurement | None = None
    pattern: re.Pattern[str] | None = None
    predicate: Callable[[Any], Any] | None = None
    allow_absent: bool = False
    name: str | None = None

    @property
    def label(self) -> str:
        """Rule name used in diagnostics."""
        if self.kind is RuleKind.CUSTOM:
            return self.name or "custom"
        return self.kind.value

    @property
    def has_bounds(self) -> bool:
        return self.min is not None or self.max is not None


# ---------------------------------------------------------------------------
# Declaration parsing
# ---------------------------------------------------------------------------


def custom(
    predicate: Callable[[Any], Any],
    *,
    name: str | None = None,
    allow_absent: bool = False,
) -> RuleSpec:
    """Build a custom rule around *predicate*.

    The predicate returns ``bool`` or ``(bool, explanation)``. With
    ``allow_absent=True`` it also runs when the value is missing.
    """
    return RuleSpec(
        kind=RuleKind.CUSTOM,
        predicate=predicate,
        name=name or getattr(predicate, "__name__", None),
        allow_absent=allow_absent,
    )


def parse_rule(declaration: Any) -> RuleSpec:
    """Parse one rule declaration into a :class:`RuleSpec`.

    Raises:
        DefinitionError: If the declaration is not a recognized rule form.
    """
    if isinstance(declaration, RuleSpec):
        return declaration
    if isinstance(declaration, str):
        return RuleSpec(kind=_parse_kind(declaration))
    if isinstance(declaration, re.Pattern):
        return RuleSpec(kind=RuleKind.STRING, pattern=declaration)
    if isinstance(declaration, Mapping):
        return _parse_mapping(declaration)
    if callable(declaration):
        return custom(declaration)
    msg = f"Unsupported rule declaration: {declaration!r}"
    raise DefinitionError(msg, detail={"declaration": repr(declaration)})


def parse_rules(declaration: Any) -> tuple[RuleSpec, ...]:
    """Parse a single rule or a list of rules, preserving order."""
    if declaration is None:
        return ()
    if isinstance(declaration, (list, tuple)):
        return tuple(parse_rule(item) for item in declaration)
    return (parse_rule(declaration),)


def _parse_kind(text: str) -> RuleKind:
    try:
        kind = RuleKind(text.strip().lower())
    except ValueError:
        msg = f"Unknown rule kind: {text!r}"
        raise DefinitionError(msg, detail={"kind": text}) from None
    if kind is RuleKind.CUSTOM:
        msg = "Custom rules must be declared with a predicate, not the 'custom' string"
        raise DefinitionError(msg)
    return kind


def _parse_mapping(declaration: Mapping[str, Any]) -> RuleSpec:
    unknown = set(declaration) - _RULE_KEYS
    if unknown:
        msg = f"Unknown rule keys: {', '.join(sorted(unknown))}"
        raise DefinitionError(msg, detail={"keys": sorted(unknown)})

    fields: dict[str, Any] = {k: v for k, v in declaration.items() if k != "type"}
    if "type" in declaration:
        fields["kind"] = _parse_kind(declaration["type"])
    try:
        spec = RuleSpec(**fields)
    except PydanticValidationError as exc:
        msg = f"Invalid rule declaration: {exc.errors()[0]['msg']}"
        raise DefinitionError(msg, detail={"declaration": dict(declaration)}) from exc

    if spec.min is not None and spec.max is not None and spec.min > spec.max:
        msg = f"Rule min ({spec.min}) is greater than max ({spec.max})"
        raise DefinitionError(msg, detail={"min": spec.min, "max": spec.max})
    return spec


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def is_absent(value: Any) -> bool:
    return value is None


def validate(value: Any, rules: Sequence[RuleSpec], field_name: str) -> Any:
    """Validate *value* against *rules* and return the (possibly coerced) value.

    Raises:
        FieldValidationError: At the first failing rule.
    """
    if is_absent(value):
        if any(rule.required for rule in rules):
            raise FieldValidationError(
                field_name,
                "required",
                expected="a value",
                actual=None,
                message=f"Field {field_name!r} is required",
            )
        for rule in rules:
            if rule.kind is RuleKind.CUSTOM and rule.allow_absent:
                _check_predicate(rule, value, field_name)
        return value

    current = value
    for rule in rules:
        current = _apply(rule, current, field_name)
    return current


def _apply(rule: RuleSpec, value: Any, field_name: str) -> Any:
    if rule.kind is RuleKind.CUSTOM:
        _check_predicate(rule, value, field_name)
        return value

    value = _check_kind(rule.kind, value, field_name)
    if rule.pattern is not None:
        _check_pattern(rule.pattern, value, field_name)
    if rule.has_bounds:
        _check_bounds(rule, value, field_name)
    return value


def _check_kind(kind: RuleKind, value: Any, field_name: str) -> Any:
    if kind is RuleKind.ANY:
        return value
    if kind is RuleKind.STRING:
        if isinstance(value, str):
            return value
    elif kind is RuleKind.NUMBER:
        number = _as_number(value)
        if number is not None:
            return number
    elif kind is RuleKind.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and INTEGER_RE.match(value.strip()):
            return int(value.strip())
    elif kind is RuleKind.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif kind is RuleKind.ARRAY:
        if isinstance(value, (list, tuple)):
            return value
    elif kind is RuleKind.OBJECT:
        if isinstance(value, Mapping):
            return value

    raise FieldValidationError(
        field_name,
        kind.value,
        expected=kind.value,
        actual=type(value).__name__,
        message=f"Field {field_name!r} must be {kind.value}, got {type(value).__name__}",
    )


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and NUMBER_RE.match(value.strip()):
        text = value.strip()
        if INTEGER_RE.match(text):
            return int(text)
        number = float(text)
        return number if math.isfinite(number) else None
    return None


def _check_pattern(pattern: re.Pattern[str], value: Any, field_name: str) -> None:
    if isinstance(value, str) and pattern.search(value):
        return
    raise FieldValidationError(
        field_name,
        "pattern",
        expected=pattern.pattern,
        actual=value if isinstance(value, str) else type(value).__name__,
        message=f"Field {field_name!r} does not match /{pattern.pattern}/",
    )


def _infer_measurement(value: Any) -> Measurement | None:
    if isinstance(value, (str, list, tuple)):
        return Measurement.LENGTH
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Measurement.VALUE
    if isinstance(value, Mapping):
        return Measurement.COUNT
    return None


def _measure(measurement: Measurement | None, value: Any) -> float | None:
    if measurement is Measurement.LENGTH and isinstance(value, (str, list, tuple)):
        return len(value)
    if (
        measurement is Measurement.VALUE
        and isinstance(value, (int, float))
        and not isinstance(value, bool)
    ):
        return value
    if measurement is Measurement.COUNT and isinstance(value, Mapping):
        return len(value)
    return None


def _check_bounds(rule: RuleSpec, value: Any, field_name: str) -> None:
    measurement = rule.measurement or _infer_measurement(value)
    measured = _measure(measurement, value)
    if measurement is None or measured is None:
        what = measurement.value if measurement else "any measurement"
        raise FieldValidationError(
            field_name,
            "measurement",
            expected=measurement.value if measurement else "a measurable value",
            actual=type(value).__name__,
            message=f"Field {field_name!r} cannot be measured by {what}",
        )

    label = measurement.value
    if rule.min is not None and measured < rule.min:
        raise FieldValidationError(
            field_name,
            "min",
            expected=f"{measurement.value} >= {_fmt(rule.min)}",
            actual=measured,
            message=f"Field {field_name!r} {label} {measured} is below {_fmt(rule.min)}",
        )
    if rule.max is not None and measured > rule.max:
        raise FieldValidationError(
            field_name,
            "max",
            expected=f"{measurement.value} <= {_fmt(rule.max)}",
            actual=measured,
            message=f"Field {field_name!r} {label} {measured} is above {_fmt(rule.max)}",
        )


def _check_predicate(rule: RuleSpec, value: Any, field_name: str) -> None:
    if rule.predicate is None:
        return
    try:
        outcome = rule.predicate(value)
    except Exception as exc:
        msg = f"Field {field_name!r} rule {rule.label!r} raised {type(exc).__name__}: {exc}"
        raise FieldValidationError(
            field_name, rule.label, expected=rule.label, actual=value, message=msg
        ) from exc
    explanation: str | None = None
    if isinstance(outcome, tuple):
        ok, explanation = bool(outcome[0]), (str(outcome[1]) if len(outcome) > 1 else None)
    else:
        ok = bool(outcome)
    if ok:
        return
    raise FieldValidationError(
        field_name,
        rule.label,
        expected=explanation or rule.label,
        actual=value,
        message=explanation or f"Field {field_name!r} failed rule {rule.label!r}",
    )


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)
