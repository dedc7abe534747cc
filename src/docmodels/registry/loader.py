"""Execution of model definition files and type plugin modules."""

from __future__ import annotations

import importlib.util
import logging
from importlib import import_module
from pathlib import Path
from types import ModuleType

from docmodels.errors import UnknownTypeError

logger = logging.getLogger(__name__)

BUILTIN_TYPE_PLUGINS = frozenset({"email", "url", "fullname"})


def _exec_file(module_name: str, path: Path) -> ModuleType:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run_definition_file(name: str, path: Path) -> ModuleType:
    """Execute a model definition file.

    The module is not cached in ``sys.modules``; running it again
    executes it again.
    """
    logger.debug("loading definition name=%s path=%s", name, path)
    return _exec_file(f"docmodels_definitions.{name}", path)


def resolve_type_plugin(identifier: str) -> ModuleType:
    """Map a type plugin identifier to its module.

    Built-in short names live in ``docmodels.types``; identifiers
    starting with ``.`` or ``/`` are file paths; anything else is an
    importable dotted module path.
    """
    if identifier in BUILTIN_TYPE_PLUGINS:
        return import_module(f"docmodels.types.{identifier}")
    if identifier.startswith((".", "/")):
        path = Path(identifier).resolve()
        if not path.is_file():
            raise UnknownTypeError(f"Type plugin file not found: {identifier}")
        return _exec_file(f"docmodels_plugins.{path.stem}", path)
    try:
        return import_module(identifier)
    except ModuleNotFoundError as exc:
        if exc.name != identifier:
            raise
        raise UnknownTypeError(f"Unknown type plugin: {identifier!r}") from exc
