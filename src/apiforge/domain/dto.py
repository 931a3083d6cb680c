"""DTO projector — shape raw responses into the declared response type.

Declarations are parsed once into a recursive :class:`DtoSpec`:

- ``None`` means pass the raw result through untouched.
- A primitive tag (``"string"``, ``"number"``, ``"integer"``, ``"boolean"``,
  ``"any"``), optionally suffixed with ``?`` to mark the field optional.
- A mapping of output field name to nested declaration.
- A one-element list ``[decl]`` meaning "array of decl" (``[]`` is an
  array of anything).

Projection drops undeclared fields, fills missing declared fields with the
primitive's zero value, and raises :class:`DtoShapeError` only for values
it cannot coerce.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from apiforge.domain.errors import DefinitionError, DtoShapeError
from apiforge.domain.rules import INTEGER_RE, NUMBER_RE
from apiforge.domain.types import DtoKind, PrimitiveTag

_ZERO: dict[PrimitiveTag, Any] = {
    PrimitiveTag.STRING: "",
    PrimitiveTag.NUMBER: 0,
    PrimitiveTag.INTEGER: 0,
    PrimitiveTag.BOOLEAN: False,
    PrimitiveTag.ANY: None,
}


class DtoSpec(BaseModel):
    """One node of a response-shape declaration."""

    model_config = ConfigDict(frozen=True)

    kind: DtoKind
    tag: PrimitiveTag | None = None
    fields: dict[str, DtoSpec] = Field(default_factory=dict)
    item: DtoSpec | None = None
    optional: bool = False

    @classmethod
    def primitive(cls, tag: PrimitiveTag | str, *, optional: bool = False) -> DtoSpec:
        return cls(kind=DtoKind.PRIMITIVE, tag=PrimitiveTag(tag), optional=optional)

    @classmethod
    def array_of(cls, item: DtoSpec | None, *, optional: bool = False) -> DtoSpec:
        return cls(kind=DtoKind.ARRAY, item=item, optional=optional)

    @property
    def primitive_tag(self) -> PrimitiveTag:
        """Tag of a primitive node; an untagged node accepts anything."""
        return self.tag or PrimitiveTag.ANY

    def describe(self) -> Any:
        """Render back to a plain declaration (used by ``inspect``)."""
        suffix = "?" if self.optional else ""
        if self.kind is DtoKind.PRIMITIVE:
            return f"{self.primitive_tag.value}{suffix}"
        if self.kind is DtoKind.ARRAY:
            return [self.item.describe()] if self.item is not None else []
        return {name: child.describe() for name, child in self.fields.items()}


def optional(declaration: Any) -> DtoSpec:
    """Mark a nested object or array declaration as optional."""
    spec = parse_dto(declaration)
    if spec is None:
        msg = "Cannot mark a pass-through DTO as optional"
        raise DefinitionError(msg)
    return spec.model_copy(update={"optional": True})


def parse_dto(declaration: Any) -> DtoSpec | None:
    """Parse a DTO declaration. ``None`` stays ``None`` (pass-through).

    Raises:
        DefinitionError: On unknown tags or unsupported declaration types.
    """
    if declaration is None:
        return None
    if isinstance(declaration, DtoSpec):
        return declaration
    if isinstance(declaration, str):
        text = declaration.strip()
        is_optional = text.endswith("?")
        try:
            tag = PrimitiveTag(text.rstrip("?").lower())
        except ValueError:
            msg = f"Unknown DTO type tag: {declaration!r}"
            raise DefinitionError(msg, detail={"tag": declaration}) from None
        return DtoSpec.primitive(tag, optional=is_optional)
    if isinstance(declaration, (list, tuple)):
        if len(declaration) > 1:
            msg = "Array DTO declarations take at most one item declaration"
            raise DefinitionError(msg, detail={"length": len(declaration)})
        item = parse_dto(declaration[0]) if declaration else None
        return DtoSpec.array_of(item)
    if isinstance(declaration, Mapping):
        fields: dict[str, DtoSpec] = {}
        for name, child in declaration.items():
            parsed = parse_dto(child)
            fields[str(name)] = parsed if parsed is not None else DtoSpec.primitive("any")
        return DtoSpec(kind=DtoKind.OBJECT, fields=fields)
    msg = f"Unsupported DTO declaration: {declaration!r}"
    raise DefinitionError(msg, detail={"declaration": repr(declaration)})


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project(raw: Any, spec: DtoSpec | None) -> Any:
    """Project *raw* into the shape described by *spec*.

    Raises:
        DtoShapeError: When a value cannot be coerced to the declared shape.
    """
    if spec is None:
        return raw
    return _project(raw, spec, "")


def _project(raw: Any, spec: DtoSpec, location: str) -> Any:
    if spec.kind is DtoKind.ARRAY:
        if not isinstance(raw, (list, tuple)):
            raise DtoShapeError(location, "array", raw)
        if spec.item is None:
            return list(raw)
        return [_project(item, spec.item, f"{location}[{i}]") for i, item in enumerate(raw)]

    if spec.kind is DtoKind.OBJECT:
        if not isinstance(raw, Mapping):
            raise DtoShapeError(location, "object", raw)
        shaped: dict[str, Any] = {}
        for name, child in spec.fields.items():
            where = f"{location}.{name}" if location else name
            value = raw.get(name)
            if value is None:
                if child.optional:
                    continue
                shaped[name] = _zero(child)
            else:
                shaped[name] = _project(value, child, where)
        return shaped

    return _coerce(raw, spec.primitive_tag, location)


def _zero(spec: DtoSpec) -> Any:
    if spec.kind is DtoKind.ARRAY:
        return []
    if spec.kind is DtoKind.OBJECT:
        return {name: _zero(child) for name, child in spec.fields.items() if not child.optional}
    return _ZERO[spec.primitive_tag]


def _coerce(value: Any, tag: PrimitiveTag, location: str) -> Any:
    if tag is PrimitiveTag.ANY:
        return value

    if tag is PrimitiveTag.STRING:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)

    elif tag is PrimitiveTag.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and NUMBER_RE.match(value.strip()):
            text = value.strip()
            return int(text) if INTEGER_RE.match(text) else float(text)

    elif tag is PrimitiveTag.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and INTEGER_RE.match(value.strip()):
            return int(value.strip())

    elif tag is PrimitiveTag.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        if isinstance(value, int) and value in (0, 1):
            return bool(value)

    raise DtoShapeError(location, tag.value, value)
