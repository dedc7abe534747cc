"""docmodels — lazy model registry and schema assembly over redis documents.

Module-level functions act on the registry that is currently loading a
definition file (so definition files can simply call ``create``) and
otherwise on the process default created by ``init``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docmodels.builder import ModelDefinition
from docmodels.config import RegistryConfig
from docmodels.connection import Connection
from docmodels.connection import Document
from docmodels.errors import DocModelsError
from docmodels.errors import DuplicateInitError
from docmodels.errors import DuplicateModelError
from docmodels.errors import MalformedDefinitionError
from docmodels.errors import NotFoundError
from docmodels.errors import NotInitializedError
from docmodels.errors import UnknownTypeError
from docmodels.errors import UnresolvedReferenceError
from docmodels.registry import active_registry
from docmodels.registry import ModelRegistry
from docmodels.schema import FieldType
from docmodels.schema import Ref
from docmodels.schema import Schema
from docmodels.schema import SELF
from docmodels.schema import VirtualFieldType
from docmodels.schema.virtuals import VirtualBuilder

__all__ = [
    "Connection",
    "DocModelsError",
    "Document",
    "DuplicateInitError",
    "DuplicateModelError",
    "FieldType",
    "MalformedDefinitionError",
    "ModelDefinition",
    "ModelRegistry",
    "NotFoundError",
    "NotInitializedError",
    "Ref",
    "RegistryConfig",
    "SELF",
    "Schema",
    "UnknownTypeError",
    "UnresolvedReferenceError",
    "VirtualFieldType",
    "create",
    "current",
    "get",
    "init",
    "install_virtuals",
    "register_type",
    "require",
]

_default: ModelRegistry | None = None


def init(
    config: RegistryConfig | Mapping[str, Any] | None = None, **options: Any
) -> ModelRegistry:
    """Create and initialize the process default registry (one-shot)."""
    global _default
    if _default is not None:
        raise DuplicateInitError("docmodels is already initialized")
    if config is None:
        config = RegistryConfig.from_mapping(options)
    elif not isinstance(config, RegistryConfig):
        config = RegistryConfig.from_mapping({**config, **options})
    elif options:
        raise TypeError("Pass either a RegistryConfig or keyword options, not both")
    registry = ModelRegistry(config)
    registry.init()
    _default = registry
    return registry


def current() -> ModelRegistry:
    """Registry targeted by the module-level API."""
    registry = active_registry() or _default
    if registry is None:
        raise NotInitializedError("Call docmodels.init() first")
    return registry


def require(name: str) -> type[Document]:
    return current().require(name)


def get(name: str) -> type[Document] | None:
    return current().get(name)


def create(
    name: str, definition: ModelDefinition | Mapping[str, Any] | None = None
) -> type[Document]:
    return current().create(name, definition)


def install_virtuals(
    type_: str | VirtualFieldType | type[VirtualFieldType], builder: VirtualBuilder
) -> None:
    current().install_virtuals(type_, builder)


def register_type(name: str, type_: FieldType | type) -> None:
    current().register_type(name, type_)


def _reset_default_registry() -> None:
    """Forget the process default registry — exposed for test cleanup."""
    global _default
    _default = None
