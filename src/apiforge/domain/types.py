"""Classification enums shared by declarations, rules, and projection."""

from __future__ import annotations

from enum import StrEnum


class HttpMethod(StrEnum):
    """HTTP methods an endpoint may declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class RuleKind(StrEnum):
    """Tag of a single rule in a field's rule list."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    ANY = "any"
    CUSTOM = "custom"


class Measurement(StrEnum):
    """What a ``min``/``max`` bound applies to."""

    LENGTH = "length"
    VALUE = "value"
    COUNT = "count"


class Location(StrEnum):
    """Request bucket a payload field is placed into."""

    BODY = "body"
    QUERY = "query"
    HEADER = "header"
    PATH = "path"


class PrimitiveTag(StrEnum):
    """Coercion tags for DTO leaf fields."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ANY = "any"


class DtoKind(StrEnum):
    """Shape of a DTO spec node."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"


class StageName(StrEnum):
    """Fixed stages of the pipe chain, in execution order."""

    PRE_HOOK = "pre_hook"
    BUILD = "build"
    DISPATCH = "dispatch"
    SUCCESS_HOOK = "success_hook"
    PROJECT = "project"


FIXED_STAGE_ORDER: tuple[StageName, ...] = tuple(StageName)
