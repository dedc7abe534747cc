"""Per-model lazy loading records."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import StrEnum
from pathlib import Path
from typing import Any

from docmodels.schema.schema import Schema


class LoadState(StrEnum):
    """Lifecycle of a model record.

    ``absent -> loading -> built``, or ``loading -> loaded`` when the
    definition file ran to completion without building its model.
    ``loaded`` is terminal for lazy loading: the file is not run again.
    """

    absent = "absent"
    loading = "loading"
    loaded = "loaded"
    built = "built"


@dataclass(eq=False)
class ModelRecord:
    """One discovered (or ad hoc created) model.

    ``pending_schema`` exists from discovery on, so other models and the
    model itself can point at it before the definition runs.  The built
    model fills it in place.
    """

    name: str
    source: Path | None = None
    model: Any = None
    state: LoadState = LoadState.absent
    pending_schema: Schema = field(default_factory=Schema)
    load_count: int = 0

    @property
    def is_built(self) -> bool:
        return self.state is LoadState.built
