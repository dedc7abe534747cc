"""Error taxonomy for model discovery, assembly and lookup."""

from __future__ import annotations


class DocModelsError(Exception):
    """Base class for every error raised by docmodels."""


class NotFoundError(DocModelsError, KeyError):
    """No model record exists for the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Model {name!r} not found.")
        self.name = name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class DuplicateInitError(DocModelsError):
    """A registry (or the process default) was initialized twice."""


class NotInitializedError(DocModelsError):
    """The module-level API was used before ``init()``."""


class UnknownTypeError(DocModelsError):
    """A field type or type plugin identifier is not registered."""


class MalformedDefinitionError(DocModelsError):
    """A model definition is invalid or never produced a model."""


class DuplicateModelError(DocModelsError):
    """Two sources claim the same model name, or a model was built twice."""


class UnresolvedReferenceError(DocModelsError):
    """Deferred references are still waiting on models that never built."""

    def __init__(self, pending: list[tuple[str, str, str]]) -> None:
        listing = ", ".join(
            f"{owner}.{key} -> {target}" for owner, key, target in pending
        )
        super().__init__(f"Unresolved model references: {listing}")
        self.pending = pending
