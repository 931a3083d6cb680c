"""apiforge — declarative HTTP API clients with a staged request pipeline."""

from apiforge.domain.definitions import DefinitionTree, define_api, define_namespace
from apiforge.domain.dto import optional
from apiforge.domain.errors import (
    ApiForgeError,
    DefinitionError,
    DefinitionNotFoundError,
    DtoShapeError,
    FieldValidationError,
    HookError,
    PayloadValidationError,
    StageError,
    TransportError,
)
from apiforge.domain.rules import custom
from apiforge.pipeline.client import ApiClient

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "ApiForgeError",
    "DefinitionError",
    "DefinitionNotFoundError",
    "DefinitionTree",
    "DtoShapeError",
    "FieldValidationError",
    "HookError",
    "PayloadValidationError",
    "StageError",
    "TransportError",
    "__version__",
    "custom",
    "define_api",
    "define_namespace",
    "optional",
]
