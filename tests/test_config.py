"""Tests for settings validation."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from docboard.core.config import ConfigurationError, Environment, Settings


def _settings(**overrides) -> Settings:
    defaults = {
        "environment": Environment.PRODUCTION,
        "cors_allowed_origins": "https://docs.example.com",
        "content_root": "/srv/docboard/content",
        "upload_dir": "/srv/docboard/uploads",
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestProductionConfig:

    def test_safe_production_config_passes(self):
        _settings().validate_production_config()

    def test_localhost_cors_blocked(self):
        with pytest.raises(ConfigurationError):
            _settings(cors_allowed_origins="http://localhost:3000").validate_production_config()

    def test_relative_storage_blocked(self):
        with pytest.raises(ConfigurationError):
            _settings(content_root="./data").validate_production_config()

    def test_development_tolerates_findings(self):
        _settings(
            environment=Environment.DEVELOPMENT, content_root="./data"
        ).validate_production_config()


class TestFieldValidation:

    def test_wildcard_cors_rejected(self):
        with pytest.raises(ValueError):
            _settings(cors_allowed_origins="*").get_cors_origins()

    def test_log_level_normalised(self):
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_bad_log_level(self):
        with pytest.raises(PydanticValidationError):
            _settings(log_level="LOUD")

    def test_bad_log_format(self):
        with pytest.raises(PydanticValidationError):
            _settings(log_format="xml")
