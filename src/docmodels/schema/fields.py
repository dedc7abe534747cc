"""Field descriptors understood by the schema assembler.

``Ref`` names another model; ``FieldType`` and ``VirtualFieldType`` are
custom field types contributed by type plugins.  A ``VirtualFieldType``
carries a ``type_id`` that selects the builder synthesizing its virtual
(computed) fields.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from enum import StrEnum
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    from docmodels.schema.schema import Schema

# Marker for a reference to the owning model itself
SELF = "$self"


class RefState(StrEnum):
    """Lifecycle of a model reference inside a schema definition."""

    unresolved = "unresolved"
    deferred = "deferred"
    resolved = "resolved"


@dataclass(eq=False)
class Ref:
    """A field that references another model by name.

    Once resolved, ``schema`` holds the referenced model's schema object.
    """

    target: str
    options: dict[str, Any] = field(default_factory=dict)
    state: RefState = RefState.unresolved
    schema: Schema | None = field(default=None, repr=False)

    @property
    def is_self(self) -> bool:
        return self.target == SELF

    def resolved(self, schema: Schema, *, target: str | None = None) -> Ref:
        """Return a resolved copy; the declared reference is left untouched."""
        return replace(
            self,
            target=target or self.target,
            options=dict(self.options),
            state=RefState.resolved,
            schema=schema,
        )

    def deferred(self) -> Ref:
        return replace(self, options=dict(self.options), state=RefState.deferred)


class FieldType:
    """Base class for custom field types registered by type plugins."""

    name = "field"

    def validate(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class VirtualFieldType(FieldType):
    """A field type that contributes virtual fields to its schema."""

    type_id = ""


def _noop_get(doc: Any) -> None:
    return None


def _noop_set(doc: Any, value: Any) -> None:
    return None


@dataclass(frozen=True)
class VirtualFieldSpec:
    """Getter/setter pair for one virtual field."""

    get: Callable[[Any], Any] = _noop_get
    set: Callable[[Any, Any], None] = _noop_set

    @classmethod
    def coerce(cls, value: VirtualFieldSpec | Mapping[str, Any]) -> VirtualFieldSpec:
        """Accept a spec or a ``{"get": ..., "set": ...}`` mapping."""
        if isinstance(value, VirtualFieldSpec):
            return value
        return cls(
            get=value.get("get") or _noop_get,
            set=value.get("set") or _noop_set,
        )


def field_type(spec: Any) -> Any:
    """Return the declared type of a field spec (bare type or ``{"type": ...}``)."""
    if isinstance(spec, Mapping):
        return spec.get("type")
    return spec


def virtual_type_id(spec: Any) -> str | None:
    """Return the ``type_id`` of a virtual-contributing field, else ``None``."""
    declared = field_type(spec)
    if isinstance(declared, VirtualFieldType) or (
        isinstance(declared, type) and issubclass(declared, VirtualFieldType)
    ):
        return declared.type_id
    return None
