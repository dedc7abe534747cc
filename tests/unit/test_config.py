"""Unit tests for the registry configuration dataclass."""

from dataclasses import FrozenInstanceError

import pytest

from docmodels.config import RegistryConfig


class TestRegistryConfig:
    def test_defaults(self):
        cfg = RegistryConfig()
        assert cfg.url == "redis://localhost:6379/0"
        assert cfg.debug is False
        assert cfg.types == ()
        assert cfg.model_path is None
        assert cfg.extensions == (".py",)

    def test_frozen(self):
        cfg = RegistryConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.debug = True


class TestFromMapping:
    def test_accepts_camel_case_model_path(self):
        cfg = RegistryConfig.from_mapping(
            {
                "url": "redis://db:6379/1",
                "debug": True,
                "types": ["email", "url"],
                "modelPath": "/srv/models",
            }
        )
        assert cfg.url == "redis://db:6379/1"
        assert cfg.debug is True
        assert cfg.types == ("email", "url")
        assert cfg.model_path == "/srv/models"

    def test_accepts_snake_case(self):
        cfg = RegistryConfig.from_mapping({"model_path": "models"})
        assert cfg.model_path == "models"

    def test_rejects_unknown_options(self):
        with pytest.raises(ValueError, match="Unknown registry option"):
            RegistryConfig.from_mapping({"modelDir": "models"})
