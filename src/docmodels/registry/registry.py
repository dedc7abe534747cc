"""Lazy model registry.

Discovery maps model names to definition files without importing them.
``get`` executes a definition file on first use; the file is expected to
call ``create`` (module-level API or ``ModelRegistry.create``), which
builds the model synchronously before ``get`` returns.

Record states go ``absent -> loading -> built``.  A lookup while the
file is still loading (re-entrant ``get``) does not execute it again,
and a file that finishes without building its model is marked
``loaded`` and never executed again either.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version
from pathlib import Path
from types import MappingProxyType
from typing import Any

import redis

from docmodels.builder import ModelBuilder
from docmodels.builder import ModelDefinition
from docmodels.bus import NotificationBus
from docmodels.config import RegistryConfig
from docmodels.connection import Connection
from docmodels.connection import Document
from docmodels.errors import DuplicateInitError
from docmodels.errors import DuplicateModelError
from docmodels.errors import MalformedDefinitionError
from docmodels.errors import NotFoundError
from docmodels.errors import UnknownTypeError
from docmodels.errors import UnresolvedReferenceError
from docmodels.observability import timed
from docmodels.registry.discovery import scan_model_files
from docmodels.registry.loader import resolve_type_plugin
from docmodels.registry.loader import run_definition_file
from docmodels.registry.records import LoadState
from docmodels.registry.records import ModelRecord
from docmodels.schema.assembler import SchemaAssembler
from docmodels.schema.fields import FieldType
from docmodels.schema.fields import VirtualFieldType
from docmodels.schema.schema import Schema
from docmodels.schema.virtuals import VirtualBuilder
from docmodels.schema.virtuals import VirtualFieldBinder

logger = logging.getLogger(__name__)

_ACTIVE: ContextVar[ModelRegistry | None] = ContextVar(
    "docmodels_active_registry", default=None
)


def active_registry() -> ModelRegistry | None:
    """Registry currently loading a definition file or type plugin, if any."""
    return _ACTIVE.get()


def _package_version() -> str:
    try:
        return version("docmodels")
    except PackageNotFoundError:
        return "unknown"


class ModelRegistry:
    """Owns model records, the notification bus and the connection."""

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        connection: Connection | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self.connection = connection or Connection(
            self.config.url, debug=self.config.debug
        )
        self.bus = NotificationBus()
        self._records: dict[str, ModelRecord] = {}
        self._virtual_builders: dict[str, VirtualBuilder] = {}
        self._types: dict[str, Any] = {}
        self.binder = VirtualFieldBinder(self._virtual_builders)
        self.assembler = SchemaAssembler(self.bus, self.built_schema)
        self.builder = ModelBuilder(self)
        self._initialized = False

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def init(self) -> ModelRegistry:
        """Load type plugins, then discover models (one-shot)."""
        if self._initialized:
            raise DuplicateInitError("Model registry is already initialized")
        self._initialized = True
        logger.info(
            "docmodels %s using redis-py version %s",
            _package_version(),
            redis.__version__,
        )

        with self.activate():
            for identifier in self.config.types:
                self.load_type_plugin(identifier)
        if self.config.model_path is not None:
            self.discover(self.config.model_path)
        return self

    @property
    def initialized(self) -> bool:
        return self._initialized

    @contextmanager
    def activate(self) -> Iterator[ModelRegistry]:
        """Make this registry the target of the module-level API."""
        token = _ACTIVE.set(self)
        try:
            yield self
        finally:
            _ACTIVE.reset(token)

    def load_type_plugin(self, identifier: str) -> None:
        module = resolve_type_plugin(identifier)
        load = getattr(module, "load", None)
        if not callable(load):
            raise UnknownTypeError(
                f"Type plugin {identifier!r} does not define load(connection, api)"
            )
        logger.debug("loading type plugin %s", identifier)
        load(self.connection, self)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, root: str | Path) -> list[str]:
        """Register a record for every definition file under *root*."""
        found = scan_model_files(root, self.config.extensions)
        for name, path in found.items():
            if name in self._records:
                raise DuplicateModelError(f"Model {name!r} is already registered")
            self._records[name] = ModelRecord(name=name, source=path)
        if not found:
            logger.warning("docmodels: no models found under %s", root)
        return list(found)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def record(self, name: str) -> ModelRecord:
        record = self._records.get(name)
        if record is None:
            raise NotFoundError(name)
        return record

    def names(self) -> list[str]:
        return sorted(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def get(self, name: str) -> type[Document] | None:
        """Return the model, loading its definition file on first use.

        Returns ``None`` when the record exists but no model was built
        (the file did not call ``create``, or it is still loading).
        """
        record = self.record(name)
        if record.state is LoadState.absent and record.source is not None:
            self._trigger(record)
        if record.model is None and record.state is not LoadState.loading:
            logger.warning("Model %r is registered but was never built", name)
        return record.model

    def require(self, name: str) -> type[Document]:
        """Like ``get`` but a missing model is an error."""
        model = self.get(name)
        if model is not None:
            return model
        if self.record(name).state is LoadState.loading:
            raise MalformedDefinitionError(
                f"Model {name!r} was required while its definition is still "
                f"loading; reference it with Ref({name!r}) instead"
            )
        raise MalformedDefinitionError(
            f"Definition of model {name!r} did not build it"
        )

    def built_schema(self, name: str) -> Schema | None:
        record = self._records.get(name)
        if record is None or not record.is_built:
            return None
        return record.pending_schema

    def _trigger(self, record: ModelRecord) -> None:
        record.state = LoadState.loading
        record.load_count += 1
        try:
            with self.activate(), timed("registry.load", record.name):
                run_definition_file(record.name, record.source)
        except BaseException:
            if record.state is LoadState.loading:
                record.state = LoadState.absent
            raise
        if record.state is LoadState.loading:
            record.state = LoadState.loaded

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        definition: ModelDefinition | Mapping[str, Any] | None = None,
    ) -> type[Document]:
        return self.builder.build(name, definition)

    def record_for_build(self, name: str) -> ModelRecord:
        """Record to build into; models created without a file get one here."""
        record = self._records.get(name)
        if record is None:
            record = ModelRecord(name=name)
            self._records[name] = record
        return record

    def mark_built(self, record: ModelRecord, model: type[Document]) -> None:
        record.model = model
        record.state = LoadState.built

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def install_virtuals(
        self,
        type_: str | VirtualFieldType | type[VirtualFieldType],
        builder: VirtualBuilder,
    ) -> None:
        """Register the virtual-field builder for a custom type."""
        type_id = type_ if isinstance(type_, str) else type_.type_id
        if not type_id:
            raise ValueError("Virtual field types need a non-empty type_id")
        self._virtual_builders[type_id] = builder

    def register_type(self, name: str, type_: FieldType | type) -> None:
        self._types[name] = type_

    @property
    def types(self) -> Mapping[str, Any]:
        return MappingProxyType(self._types)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def pending_bindings(self) -> list[tuple[str, str, str]]:
        """``(owner, field, target)`` of every reference still deferred."""
        return [(b.owner, b.key, b.target) for b in self.assembler.pending()]

    def assert_resolved(self) -> None:
        pending = self.pending_bindings()
        if pending:
            raise UnresolvedReferenceError(pending)
