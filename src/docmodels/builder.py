"""Model builder — turns a definition into a bound, registered model.

The builder drives schema assembly (with deferred references), binds
virtual fields, applies schema plugins, binds the model to the
connection, copies statics and metadata, stores the model on its record
and finally announces it so deferred references waiting on it resolve.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Mapping
from typing import TYPE_CHECKING
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from docmodels.connection import Document
from docmodels.errors import DuplicateModelError
from docmodels.errors import MalformedDefinitionError
from docmodels.observability import timed
from docmodels.schema.schema import Schema
from docmodels.schema.virtuals import VirtualFieldBinder

if TYPE_CHECKING:
    from docmodels.registry.registry import ModelRegistry

logger = logging.getLogger(__name__)


class ModelDefinition(BaseModel):
    """Structured model definition passed to ``create``."""

    model_config = ConfigDict(
        extra="forbid",
        arbitrary_types_allowed=True,
        populate_by_name=True,
    )

    schema_fields: dict[str, Any] | None = Field(
        default=None,
        alias="schema",
        description="Field key -> type, Ref or {'type': ..., ...} spec.",
    )
    collection: str | None = Field(
        default=None,
        description="Collection name override.",
    )
    methods: dict[str, Callable[..., Any]] = Field(
        default_factory=dict,
        description="Instance methods of the model's documents.",
    )
    statics: dict[str, Callable[..., Any]] = Field(
        default_factory=dict,
        description="Static callables attached to the model class.",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Schema options.",
    )
    plugins: list[Callable[[Schema], Any]] = Field(
        default_factory=list,
        description="Hooks invoked with the finished schema.",
    )
    meta: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra attributes copied onto the model class.",
    )


def coerce_definition(
    definition: ModelDefinition | Mapping[str, Any] | None,
) -> ModelDefinition:
    if definition is None:
        return ModelDefinition()
    if isinstance(definition, ModelDefinition):
        return definition
    try:
        return ModelDefinition.model_validate(dict(definition))
    except ValidationError as exc:
        raise MalformedDefinitionError(f"Invalid model definition: {exc}") from exc


_RESERVED_ATTRS = frozenset(dir(Document)) | {"id", "schema", "connection"}


def _check_attr_name(name: str, kind: str, key: str) -> None:
    if key.startswith("_") or key in _RESERVED_ATTRS:
        raise MalformedDefinitionError(
            f"Model {name!r}: {kind} {key!r} collides with a model attribute"
        )


class ModelBuilder:
    """Builds models on behalf of one ``ModelRegistry``."""

    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry

    def build(
        self,
        name: str,
        definition: ModelDefinition | Mapping[str, Any] | None = None,
    ) -> type[Document]:
        registry = self._registry
        definition = coerce_definition(definition)
        for kind, names in (
            ("meta key", definition.meta),
            ("method", definition.methods),
            ("static", definition.statics),
        ):
            for key in names:
                _check_attr_name(name, kind, key)

        record = registry.record_for_build(name)
        if record.is_built:
            raise DuplicateModelError(f"Model {name!r} is already built")

        try:
            with timed("model.build", name):
                model = self._assemble(name, definition, record.pending_schema)
        except Exception:
            # Leave nothing half-registered behind; the next load starts clean.
            registry.assembler.discard(name)
            record.pending_schema = Schema()
            raise

        registry.mark_built(record, model)
        logger.debug("built model name=%s collection=%s", name, model.collection)
        registry.bus.announce(name, model)
        return model

    def _assemble(
        self, name: str, definition: ModelDefinition, schema: Schema
    ) -> type[Document]:
        registry = self._registry
        schema.options.update(definition.options)

        if definition.schema_fields:
            virtuals = registry.binder.collect(definition.schema_fields)
            registry.assembler.assemble(name, definition.schema_fields, schema)
            VirtualFieldBinder.bind(schema, virtuals)

        for plugin in definition.plugins:
            plugin(schema)

        schema.methods.update(definition.methods)
        model = registry.connection.model(name, schema, definition.collection)

        for key, value in definition.meta.items():
            setattr(model, key, value)
        for key, func in definition.statics.items():
            setattr(model, key, staticmethod(func))
        return model
