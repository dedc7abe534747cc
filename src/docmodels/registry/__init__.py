"""Registry domain — discovery, lazy loading and model records."""

from docmodels.registry.discovery import scan_model_files
from docmodels.registry.records import LoadState
from docmodels.registry.records import ModelRecord
from docmodels.registry.registry import active_registry
from docmodels.registry.registry import ModelRegistry

__all__ = [
    "LoadState",
    "ModelRecord",
    "ModelRegistry",
    "active_registry",
    "scan_model_files",
]
