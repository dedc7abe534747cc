"""Unit test fixtures — fresh registries and definition-file helpers."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from docmodels import ModelRegistry
from docmodels import RegistryConfig


@pytest.fixture()
def registry() -> ModelRegistry:
    """A registry with no discovery; models are created directly."""
    return ModelRegistry(RegistryConfig())


@pytest.fixture()
def model_dir(tmp_path: Path) -> Path:
    path = tmp_path / "models"
    path.mkdir()
    return path


@pytest.fixture()
def write_model(model_dir: Path) -> Callable[[str, str], Path]:
    """Write a definition file that counts its executions in ``<file>.hits``."""

    def _write(name: str, body: str) -> Path:
        path = model_dir / f"{name}.py"
        header = (
            "from pathlib import Path\n"
            "with open(Path(__file__).with_suffix('.hits'), 'a') as _fh:\n"
            "    _fh.write('x')\n"
        )
        path.write_text(header + textwrap.dedent(body))
        return path

    return _write


@pytest.fixture()
def hits(model_dir: Path) -> Callable[[str], int]:
    """Return how many times a definition file written by ``write_model`` ran."""

    def _hits(name: str) -> int:
        path = model_dir / f"{name}.hits"
        return len(path.read_text()) if path.exists() else 0

    return _hits
