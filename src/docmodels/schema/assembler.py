"""Schema assembly with deferred resolution of model references.

A field referencing a model that is not built yet is left out of the
schema and patched in (``Schema.add``) once the notification bus
announces that model.  This lets models be defined in any order,
including mutually referencing ones.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from docmodels.bus import NotificationBus
from docmodels.errors import MalformedDefinitionError
from docmodels.schema.fields import Ref
from docmodels.schema.schema import Schema
from docmodels.schema.schema import check_field

logger = logging.getLogger(__name__)

SchemaLookup = Callable[[str], Schema | None]


@dataclass(eq=False)
class DeferredBinding:
    """A field waiting for ``target`` to be built before joining ``schema``."""

    owner: str
    key: str
    target: str
    spec: Any
    ref: Ref
    schema: Schema
    fired: bool = False
    cancelled: bool = False


def find_ref(spec: Any) -> Ref | None:
    """Return the model reference carried by a field spec, if any.

    Recognizes ``Ref(...)``, ``[Ref(...)]`` and ``{"type": Ref(...), ...}``.
    """
    if isinstance(spec, Ref):
        return spec
    if isinstance(spec, list) and len(spec) == 1:
        return find_ref(spec[0])
    if isinstance(spec, Mapping):
        declared = spec.get("type")
        if isinstance(declared, Ref):
            return declared
    return None


def with_ref(spec: Any, ref: Ref) -> Any:
    """Rebuild *spec* around *ref*, mirroring the shapes ``find_ref`` accepts."""
    if isinstance(spec, Ref):
        return ref
    if isinstance(spec, list):
        return [with_ref(spec[0], ref)]
    return {**spec, "type": ref}


class SchemaAssembler:
    """Populates schemas, inlining or deferring model references."""

    def __init__(self, bus: NotificationBus, built_schema: SchemaLookup) -> None:
        self._bus = bus
        self._built_schema = built_schema
        self._pending: list[DeferredBinding] = []

    def assemble(
        self, owner: str, raw_fields: Mapping[str, Any], schema: Schema
    ) -> Schema:
        """Add *raw_fields* to *schema*, deferring unresolvable references.

        Every field is validated up front, so a malformed deferred field
        fails the owner's build rather than the later build of its target.
        References are copied before resolution; a ``Ref`` object shared
        between definitions is never modified.
        """
        try:
            for key, spec in raw_fields.items():
                check_field(key, spec)
        except TypeError as exc:
            raise MalformedDefinitionError(
                f"Invalid schema for model {owner!r}: {exc}"
            ) from exc

        immediate: dict[str, Any] = {}
        deferred: list[DeferredBinding] = []

        for key, spec in raw_fields.items():
            ref = find_ref(spec)
            if ref is None:
                immediate[key] = spec
                continue
            if ref.is_self or ref.target == owner:
                immediate[key] = with_ref(spec, ref.resolved(schema, target=owner))
                continue
            target_schema = self._built_schema(ref.target)
            if target_schema is not None:
                immediate[key] = with_ref(spec, ref.resolved(target_schema))
                continue
            waiting = ref.deferred()
            deferred.append(
                DeferredBinding(
                    owner=owner,
                    key=key,
                    target=ref.target,
                    spec=with_ref(spec, waiting),
                    ref=waiting,
                    schema=schema,
                )
            )

        try:
            schema.add(immediate)
        except (TypeError, ValueError) as exc:
            raise MalformedDefinitionError(
                f"Invalid schema for model {owner!r}: {exc}"
            ) from exc

        for binding in deferred:
            logger.debug(
                "deferring %s.%s until %s is built",
                binding.owner,
                binding.key,
                binding.target,
            )
            self._pending.append(binding)
            self._bus.subscribe_once(binding.target, self._patcher(binding))
        return schema

    def _patcher(self, binding: DeferredBinding) -> Callable[[Any], None]:
        def patch(model: Any) -> None:
            if binding.cancelled:
                return
            resolved = binding.ref.resolved(model.schema)
            binding.schema.add({binding.key: with_ref(binding.spec, resolved)})
            binding.ref = resolved
            binding.fired = True
            self._pending.remove(binding)
            logger.debug(
                "patched %s.%s -> %s", binding.owner, binding.key, binding.target
            )

        return patch

    def discard(self, owner: str) -> int:
        """Cancel every pending binding owned by *owner* (after a failed build)."""
        dropped = [b for b in self._pending if b.owner == owner]
        for binding in dropped:
            binding.cancelled = True
            self._pending.remove(binding)
        return len(dropped)

    def pending(self) -> list[DeferredBinding]:
        """Deferred bindings whose target has not been built yet."""
        return list(self._pending)
