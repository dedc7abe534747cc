"""Mutable schema object: field table, virtual-field table and methods.

Fields may be added after construction (``Schema.add``); deferred model
references rely on this to patch a field in once its target is built.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from docmodels.schema.fields import FieldType
from docmodels.schema.fields import Ref
from docmodels.schema.fields import VirtualFieldSpec


def _check_spec(key: str, spec: Any) -> None:
    if isinstance(spec, (Ref, FieldType, Schema, type)):
        return
    if isinstance(spec, Mapping) and "type" in spec:
        _check_spec(key, spec["type"])
        return
    if isinstance(spec, list) and len(spec) == 1:
        _check_spec(key, spec[0])
        return
    msg = f"Invalid schema path {key!r}: unsupported field spec {spec!r}"
    raise TypeError(msg)


def check_field(key: Any, spec: Any) -> None:
    """Raise ``TypeError`` unless *key* and *spec* form a valid schema path."""
    if not isinstance(key, str) or not key:
        raise TypeError(f"Schema path must be a non-empty string: {key!r}")
    _check_spec(key, spec)


class Schema:
    """Declarative description of a model's shape."""

    def __init__(
        self,
        fields: Mapping[str, Any] | None = None,
        *,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        self._fields: dict[str, Any] = {}
        self.virtuals: dict[str, VirtualFieldSpec] = {}
        self.methods: dict[str, Callable[..., Any]] = {}
        self.options: dict[str, Any] = dict(options or {})
        if fields:
            self.add(fields)

    # ----- fields -----

    def add(self, fields: Mapping[str, Any]) -> None:
        """Add (or replace) fields on an existing schema."""
        for key, spec in fields.items():
            check_field(key, spec)
        self._fields.update(fields)

    @property
    def fields(self) -> Mapping[str, Any]:
        return MappingProxyType(self._fields)

    def field_names(self) -> list[str]:
        return list(self._fields)

    def path(self, key: str) -> Any:
        return self._fields.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    # ----- virtuals / plugins -----

    def virtual(
        self,
        name: str,
        *,
        get: Callable[[Any], Any] | None = None,
        set: Callable[[Any, Any], None] | None = None,
    ) -> VirtualFieldSpec:
        """Declare a virtual field; a missing getter or setter is a no-op."""
        spec = VirtualFieldSpec.coerce({"get": get, "set": set})
        self.virtuals[name] = spec
        return spec

    def plugin(self, fn: Callable[..., Any], **options: Any) -> Schema:
        fn(self, **options)
        return self

    def __repr__(self) -> str:
        return f"Schema(fields={self.field_names()!r})"
