"""File-system scan for model definition files.

Nothing is imported here: discovery only maps model names (file base
names) to paths.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from docmodels.errors import DuplicateModelError

logger = logging.getLogger(__name__)


def _is_hidden(rel: Path) -> bool:
    return any(part.startswith(".") for part in rel.parts)


def scan_model_files(
    root: str | Path, extensions: Iterable[str] = (".py",)
) -> dict[str, Path]:
    """Return ``{model_name: path}`` for every definition file under *root*.

    Hidden entries, dunder modules (``__init__.py``) and names with
    extra dots (``user.test.py``) are skipped.  Two files with the same
    base name raise ``DuplicateModelError``.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileNotFoundError(f"Model path is not a directory: {root_path}")

    allowed = {ext.lower() for ext in extensions}
    found: dict[str, Path] = {}
    for path in sorted(root_path.rglob("*")):
        rel = path.relative_to(root_path)
        if _is_hidden(rel) or not path.is_file():
            continue
        if path.suffix.lower() not in allowed:
            continue
        name = path.stem
        if "." in name or (name.startswith("__") and name.endswith("__")):
            continue
        if name in found:
            raise DuplicateModelError(
                f"Model {name!r} is defined by both {found[name]} and {path}"
            )
        logger.debug("discovered model name=%s path=%s", name, path)
        found[name] = path
    return found
