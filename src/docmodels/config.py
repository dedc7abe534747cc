"""Registry configuration dataclass.

A frozen dataclass with plain defaults that can be overridden at
construction time.  ``from_mapping`` accepts the camelCase option names
used by model-definition projects (``modelPath``) alongside snake_case.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import fields
from typing import Any

_ALIASES = {
    "modelPath": "model_path",
}


@dataclass(frozen=True)
class RegistryConfig:
    """Settings consumed by ``ModelRegistry.init``."""

    url: str = "redis://localhost:6379/0"
    debug: bool = False
    # Type plugin identifiers, loaded in order before discovery
    types: tuple[str, ...] = ()
    model_path: str | None = None
    extensions: tuple[str, ...] = (".py",)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> RegistryConfig:
        """Build a config from a plain options mapping."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown registry option: {key!r}")
            if name in ("types", "extensions") and value is not None:
                value = tuple(value)
            kwargs[name] = value
        return cls(**kwargs)
