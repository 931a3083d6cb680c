"""Payload assembler — partition call arguments into path, query, header, body.

A :class:`PayloadDef` is the ordered collection of :class:`FieldSpec` for
one endpoint. :func:`assemble` runs the rule engine on every declared field
and places the validated value into the bucket its location names.

INVARIANT: Keys absent from the PayloadDef are never forwarded.
INVARIANT: Validation failures are aggregated, never reported one at a time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, cast
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from apiforge.domain.errors import (
    DefinitionError,
    FieldValidationError,
    PayloadValidationError,
)
from apiforge.domain.rules import RuleSpec, is_absent, parse_rules, validate
from apiforge.domain.types import Location

_LOCATION_KEYS = ("body", "query", "header", "path")
_FIELD_KEYS = frozenset({*_LOCATION_KEYS, "rules"})


class FieldSpec(BaseModel):
    """One declared payload field.

    Attributes:
        name: Payload key the value is read from.
        location: Bucket the value is placed into.
        index: Zero-based path slot (only for ``Location.PATH``).
        rules: Ordered rule list evaluated by the rule engine.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    location: Location
    index: int | None = None
    rules: tuple[RuleSpec, ...] = ()

    @property
    def tag(self) -> str:
        if self.location is Location.PATH:
            return f"path:{self.index}"
        return self.location.value


class PayloadDef(BaseModel):
    """Ordered, immutable set of field specs for one endpoint."""

    model_config = ConfigDict(frozen=True)

    fields: tuple[FieldSpec, ...] = ()

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def path_slots(self) -> int:
        """Number of path placeholders the endpoint declares."""
        return sum(1 for f in self.fields if f.location is Location.PATH)


@dataclass
class AssembledPayload:
    """Validated call arguments partitioned by request bucket."""

    path_values: dict[int, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Declaration parsing
# ---------------------------------------------------------------------------


def parse_field(name: str, declaration: Any) -> FieldSpec:
    """Parse ``{"body": True, "rules": [...]}`` style declarations."""
    if isinstance(declaration, FieldSpec):
        return declaration
    if not isinstance(declaration, Mapping):
        msg = f"Field {name!r} must be declared with a mapping"
        raise DefinitionError(msg, detail={"field": name})

    unknown = set(declaration) - _FIELD_KEYS
    if unknown:
        msg = f"Field {name!r} has unknown keys: {', '.join(sorted(unknown))}"
        raise DefinitionError(msg, detail={"field": name, "keys": sorted(unknown)})

    locations = [
        key
        for key in _LOCATION_KEYS
        if key in declaration and declaration[key] is not False and declaration[key] is not None
    ]
    if len(locations) != 1:
        msg = f"Field {name!r} must declare exactly one of body, query, header, path"
        raise DefinitionError(msg, detail={"field": name, "locations": locations})

    location = Location(locations[0])
    index: int | None = None
    if location is Location.PATH:
        raw_index = declaration["path"]
        if isinstance(raw_index, bool) or not isinstance(raw_index, int) or raw_index < 0:
            msg = f"Field {name!r} path index must be a non-negative integer"
            raise DefinitionError(msg, detail={"field": name, "path": raw_index})
        index = raw_index
    elif declaration[location.value] is not True:
        msg = f"Field {name!r} {location.value} flag must be True"
        raise DefinitionError(msg, detail={"field": name})

    return FieldSpec(
        name=name,
        location=location,
        index=index,
        rules=parse_rules(declaration.get("rules")),
    )


def parse_payload_def(declaration: Mapping[str, Any] | PayloadDef | None) -> PayloadDef:
    """Parse a field-name -> declaration mapping, preserving declaration order.

    Raises:
        DefinitionError: On malformed fields or non-contiguous path indices.
    """
    if declaration is None:
        return PayloadDef()
    if isinstance(declaration, PayloadDef):
        return declaration
    fields = tuple(parse_field(name, decl) for name, decl in declaration.items())

    indices = sorted(f.index for f in fields if f.index is not None)
    if indices != list(range(len(indices))):
        msg = f"Path indices must be unique and contiguous from 0, got {indices}"
        raise DefinitionError(msg, detail={"indices": indices})
    return PayloadDef(fields=fields)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def assemble(
    payload_def: PayloadDef,
    payload: Mapping[str, Any] | None,
    *,
    validate_rules: bool = True,
) -> AssembledPayload:
    """Validate *payload* against *payload_def* and partition it.

    Raises:
        PayloadValidationError: With every field failure, including path
            slots left without a value.
    """
    values = payload or {}
    result = AssembledPayload()
    failures: list[FieldValidationError] = []

    for spec in payload_def.fields:
        raw = values.get(spec.name)
        try:
            value = validate(raw, spec.rules, spec.name) if validate_rules else raw
        except FieldValidationError as exc:
            failures.append(exc)
            continue

        if is_absent(value):
            if spec.location is Location.PATH:
                failures.append(
                    FieldValidationError(
                        spec.name,
                        "path",
                        expected=spec.tag,
                        actual=None,
                        message=f"Path slot {spec.index} ({spec.name!r}) has no value",
                    )
                )
            continue
        _place(result, spec, value)

    if failures:
        raise PayloadValidationError(failures)
    return result


def _place(result: AssembledPayload, spec: FieldSpec, value: Any) -> None:
    if spec.location is Location.PATH:
        result.path_values[cast(int, spec.index)] = quote(str(value), safe="")
    elif spec.location is Location.QUERY:
        result.query[spec.name] = value
    elif spec.location is Location.HEADER:
        result.headers[spec.name] = str(value)
    else:
        result.body[spec.name] = value
