"""Virtual-field binder for custom field types."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from typing import Any

from docmodels.errors import UnknownTypeError
from docmodels.schema.fields import virtual_type_id
from docmodels.schema.fields import VirtualFieldSpec
from docmodels.schema.schema import Schema

VirtualBuilder = Callable[[str], Mapping[str, Any]]


class VirtualFieldBinder:
    """Synthesizes virtual fields for fields declared with a ``VirtualFieldType``.

    Builder keys starting with ``.`` are relative to the owning field, so
    a builder returning ``{".full": ...}`` for field ``name`` yields the
    virtual ``name.full``.
    """

    def __init__(self, builders: Mapping[str, VirtualBuilder]) -> None:
        self._builders = builders

    def collect(self, fields: Mapping[str, Any]) -> dict[str, VirtualFieldSpec]:
        virtuals: dict[str, VirtualFieldSpec] = {}
        for key, spec in fields.items():
            type_id = virtual_type_id(spec)
            if type_id is None:
                continue
            builder = self._builders.get(type_id)
            if builder is None:
                raise UnknownTypeError(
                    f"No virtual builder installed for type {type_id!r} (field {key!r})"
                )
            for name, funcs in builder(key).items():
                if name.startswith("."):
                    name = key + name
                virtuals[name] = VirtualFieldSpec.coerce(funcs)
        return virtuals

    @staticmethod
    def bind(schema: Schema, virtuals: Mapping[str, VirtualFieldSpec]) -> None:
        for name, spec in virtuals.items():
            schema.virtual(name, get=spec.get, set=spec.set)
