"""Unit tests for lazy loading through the model registry."""

from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from docmodels import DuplicateInitError
from docmodels import MalformedDefinitionError
from docmodels import ModelRegistry
from docmodels import NotFoundError
from docmodels import RegistryConfig
from docmodels import UnknownTypeError
from docmodels.observability import timings_snapshot
from docmodels.registry import LoadState


@pytest.fixture()
def lazy_registry(model_dir) -> Callable[[], ModelRegistry]:
    """Registry initialized over ``model_dir`` (write files before requesting)."""

    def _make() -> ModelRegistry:
        return ModelRegistry(RegistryConfig(model_path=str(model_dir))).init()

    return _make


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestLookup:
    def test_unknown_name_raises_not_found(self, registry):
        with pytest.raises(NotFoundError, match="Model 'Nope' not found"):
            registry.get("Nope")

    def test_not_found_is_a_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.require("Nope")

    def test_names_and_contains(self, lazy_registry, write_model):
        write_model("User", "")
        write_model("Post", "")
        registry = lazy_registry()
        assert registry.names() == ["Post", "User"]
        assert "User" in registry
        assert "Tag" not in registry


# ---------------------------------------------------------------------------
# Lazy trigger
# ---------------------------------------------------------------------------


class TestLazyTrigger:
    def test_discovery_does_not_execute_files(self, lazy_registry, write_model, hits):
        write_model("User", "")
        lazy_registry()
        assert hits("User") == 0

    def test_definition_runs_exactly_once(self, lazy_registry, write_model, hits):
        write_model(
            "User",
            """
            from docmodels import create
            create("User", {"schema": {"name": str}})
            """,
        )
        registry = lazy_registry()

        first = registry.get("User")
        second = registry.get("User")
        third = registry.require("User")

        assert first is second is third
        assert first.model_name == "User"
        assert hits("User") == 1
        assert registry.record("User").state is LoadState.built

    def test_file_that_never_builds_returns_none(
        self, lazy_registry, write_model, hits, caplog
    ):
        write_model("Empty", "VALUE = 1\n")
        registry = lazy_registry()

        with caplog.at_level(logging.WARNING, logger="docmodels"):
            assert registry.get("Empty") is None
            assert registry.get("Empty") is None
        assert "never built" in caplog.text
        assert hits("Empty") == 1
        assert registry.record("Empty").state is LoadState.loaded
        assert registry.record("Empty").load_count == 1

    def test_loaded_record_can_still_be_created_explicitly(
        self, lazy_registry, write_model
    ):
        write_model("Empty", "")
        registry = lazy_registry()
        assert registry.get("Empty") is None

        model = registry.create("Empty", {"schema": {"name": str}})

        assert registry.get("Empty") is model
        assert registry.record("Empty").state is LoadState.built

    def test_require_on_never_built_model_is_malformed(
        self, lazy_registry, write_model
    ):
        write_model("Empty", "")
        registry = lazy_registry()
        with pytest.raises(MalformedDefinitionError, match="did not build"):
            registry.require("Empty")

    def test_failed_definition_is_retried_on_every_lookup(
        self, lazy_registry, write_model, hits
    ):
        write_model("Broken", "raise RuntimeError('definition bug')\n")
        registry = lazy_registry()

        for _ in range(2):
            with pytest.raises(RuntimeError, match="definition bug"):
                registry.get("Broken")

        assert hits("Broken") == 2
        assert registry.record("Broken").load_count == 2
        assert registry.record("Broken").state is LoadState.absent

    def test_reentrant_lookup_does_not_reexecute(self, lazy_registry, write_model, hits):
        write_model(
            "Node",
            """
            from docmodels import create, current
            assert current().get("Node") is None
            create("Node", {})
            """,
        )
        registry = lazy_registry()

        assert registry.get("Node") is not None
        assert hits("Node") == 1

    def test_circular_require_between_files_is_reported(
        self, lazy_registry, write_model
    ):
        write_model("A", "from docmodels import require, create\nrequire('B')\ncreate('A')\n")
        write_model("B", "from docmodels import require, create\nrequire('A')\ncreate('B')\n")
        registry = lazy_registry()

        with pytest.raises(MalformedDefinitionError, match="still loading"):
            registry.get("A")
        assert registry.record("A").state is LoadState.absent
        assert registry.record("B").state is LoadState.absent

    def test_file_may_require_other_models(self, lazy_registry, write_model, hits):
        write_model("User", "from docmodels import create\ncreate('User', {})\n")
        write_model(
            "Post",
            """
            from docmodels import create, require
            User = require("User")
            create("Post", {"meta": {"author_model": User}})
            """,
        )
        registry = lazy_registry()

        post = registry.get("Post")
        assert post.author_model is registry.get("User")
        assert hits("User") == 1

    def test_load_and_build_are_timed(self, lazy_registry, write_model):
        write_model("User", "from docmodels import create\ncreate('User', {})\n")
        lazy_registry().get("User")

        snapshot = timings_snapshot()
        assert snapshot["registry.load"]["count"] == 1
        assert snapshot["model.build"]["count"] == 1


# ---------------------------------------------------------------------------
# Deferred references across files
# ---------------------------------------------------------------------------


class TestLazyForwardReferences:
    def test_forward_reference_patched_when_target_loads(
        self, lazy_registry, write_model
    ):
        write_model(
            "Post",
            """
            from docmodels import Ref, create
            create("Post", {"schema": {"title": str, "author": Ref("User")}})
            """,
        )
        write_model(
            "User",
            """
            from docmodels import create
            create("User", {"schema": {"name": str}})
            """,
        )
        registry = lazy_registry()

        post = registry.get("Post")
        assert "author" not in post.schema
        assert registry.pending_bindings() == [("Post", "author", "User")]

        user = registry.get("User")
        assert post.schema.path("author").schema is user.schema
        assert registry.pending_bindings() == []

    def test_mutual_references_across_files(self, lazy_registry, write_model):
        write_model(
            "A", "from docmodels import Ref, create\ncreate('A', {'schema': {'b': Ref('B')}})\n"
        )
        write_model(
            "B", "from docmodels import Ref, create\ncreate('B', {'schema': {'a': Ref('A')}})\n"
        )
        registry = lazy_registry()

        a = registry.get("A")
        b = registry.get("B")

        assert a.schema.path("b").schema is b.schema
        assert b.schema.path("a").schema is a.schema
        registry.assert_resolved()


# ---------------------------------------------------------------------------
# Init and type plugins
# ---------------------------------------------------------------------------


class TestInit:
    def test_second_init_fails(self, registry):
        registry.init()
        with pytest.raises(DuplicateInitError):
            registry.init()

    def test_init_logs_package_and_redis_versions(self, caplog):
        import redis

        from docmodels.registry.registry import _package_version

        with caplog.at_level(logging.INFO, logger="docmodels"):
            ModelRegistry().init()

        expected = (
            f"docmodels {_package_version()} using redis-py version {redis.__version__}"
        )
        assert expected in caplog.text

    def test_builtin_type_plugins(self):
        registry = ModelRegistry(
            RegistryConfig(types=("email", "url", "fullname"))
        ).init()
        assert list(registry.types) == ["Email", "Url", "FullName"]

    def test_file_plugins_load_in_configured_order(self, tmp_path):
        first = tmp_path / "first_type.py"
        first.write_text(
            "def load(connection, api):\n    api.register_type('First', str)\n"
        )
        second = tmp_path / "second_type.py"
        second.write_text(
            "import docmodels\n"
            "def load(connection, api):\n"
            "    assert connection is api.connection\n"
            "    docmodels.register_type('Second', int)\n"
        )
        registry = ModelRegistry(
            RegistryConfig(types=(str(first), str(second)))
        ).init()

        assert list(registry.types) == ["First", "Second"]

    def test_dotted_module_plugin(self):
        registry = ModelRegistry(
            RegistryConfig(types=("docmodels.types.email",))
        ).init()
        assert "Email" in registry.types

    def test_unknown_plugin(self):
        with pytest.raises(UnknownTypeError, match="no_such_type_plugin"):
            ModelRegistry(RegistryConfig(types=("no_such_type_plugin",))).init()

    def test_plugin_without_load(self, tmp_path):
        plugin = tmp_path / "inert.py"
        plugin.write_text("X = 1\n")
        with pytest.raises(UnknownTypeError, match="load"):
            ModelRegistry(RegistryConfig(types=(str(plugin),))).init()

    def test_independent_registries_do_not_share_models(self):
        one = ModelRegistry()
        two = ModelRegistry()
        one.create("User", {})
        assert "User" in one
        assert "User" not in two
