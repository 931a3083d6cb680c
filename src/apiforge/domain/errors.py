"""Error taxonomy for definition building and request execution.

Every failure a call can produce is one of these types and is delivered
through the request executor. None of them is retried internally.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ApiForgeError(Exception):
    """Base class for all apiforge errors.

    Attributes:
        code: Stable machine-readable error code.
        detail: Structured context for diagnostics.
    """

    code = "APIFORGE_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = dict(detail or {})

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


class DefinitionError(ApiForgeError):
    """A declaration is malformed. Raised at definition time, never per call."""

    code = "DEFINITION_ERROR"


class DefinitionNotFoundError(ApiForgeError):
    """A namespace, endpoint, or strategy name does not exist."""

    code = "NOT_FOUND"

    def __init__(self, path: str, missing: str, *, kind: str = "endpoint") -> None:
        super().__init__(
            f"No {kind} named {missing!r} while resolving {path!r}",
            detail={"path": path, "missing": missing, "kind": kind},
        )
        self.path = path
        self.missing = missing
        self.kind = kind


class FieldValidationError(ApiForgeError):
    """One field failed one rule."""

    code = "FIELD_INVALID"

    def __init__(
        self,
        field: str,
        rule: str,
        *,
        expected: Any = None,
        actual: Any = None,
        message: str | None = None,
    ) -> None:
        text = message or f"Field {field!r} failed rule {rule!r}"
        super().__init__(
            text,
            detail={"field": field, "rule": rule, "expected": expected, "actual": actual},
        )
        self.field = field
        self.rule = rule
        self.expected = expected
        self.actual = actual


class PayloadValidationError(ApiForgeError):
    """One or more payload fields were rejected. Aggregates every failure."""

    code = "PAYLOAD_INVALID"

    def __init__(self, failures: Sequence[FieldValidationError]) -> None:
        self.failures: tuple[FieldValidationError, ...] = tuple(failures)
        fields = ", ".join(f.field for f in self.failures)
        super().__init__(
            f"Payload validation failed for: {fields}",
            detail={"failures": [f.detail for f in self.failures]},
        )

    @property
    def fields(self) -> list[str]:
        return [f.field for f in self.failures]


class HookError(ApiForgeError):
    """A lifecycle hook raised. The original exception is ``__cause__``."""

    code = "HOOK_FAILED"

    def __init__(self, hook: str, cause: BaseException) -> None:
        super().__init__(
            f"Hook {hook!r} failed: {cause}",
            detail={"hook": hook, "cause": type(cause).__name__},
        )
        self.hook = hook
        self.__cause__ = cause


class TransportError(ApiForgeError):
    """The strategy adapter reported a network, protocol, or status failure."""

    code = "TRANSPORT_FAILED"

    def __init__(
        self,
        message: str,
        *,
        strategy: str | None = None,
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        merged = {"strategy": strategy, "status_code": status_code, **(detail or {})}
        super().__init__(message, detail=merged)
        self.strategy = strategy
        self.status_code = status_code


class DtoShapeError(ApiForgeError):
    """A raw response could not be coerced into the declared DTO shape."""

    code = "DTO_SHAPE"

    def __init__(self, location: str, expected: str, actual: Any) -> None:
        where = location or "<root>"
        super().__init__(
            f"Cannot project {where}: expected {expected}, got {type(actual).__name__}",
            detail={"location": where, "expected": expected, "actual": type(actual).__name__},
        )
        self.location = where
        self.expected = expected


class StageError(ApiForgeError):
    """A custom pipe stage raised something that is not an ApiForgeError."""

    code = "STAGE_FAILED"

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(
            f"Stage {stage!r} failed: {cause}",
            detail={"stage": stage, "cause": type(cause).__name__},
        )
        self.stage = stage
        self.__cause__ = cause
