"""Unit tests for configuration loading and context overrides."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from src.bookshelf.runtime.config.config_data import (
    ConfigData,
    DatabaseConfig,
    SearchConfig,
)
from src.bookshelf.runtime.config.config_template import (
    load_templated_yaml,
    substitute_env_vars,
)
from src.bookshelf.runtime.context import get_config, with_context

PROJECT_CONFIG = Path(__file__).resolve().parents[3] / "config.yaml"


class TestSubstituteEnvVars:
    """Test cases for substitute_env_vars function."""

    def test_substitute_simple_env_var(self):
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            assert substitute_env_vars("${TEST_VAR}") == "test_value"

    def test_substitute_env_var_with_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_env_vars("${MISSING_VAR:-default_value}") == "default_value"

    def test_substitute_env_var_with_default_when_set(self):
        with patch.dict(os.environ, {"PRESENT_VAR": "actual_value"}):
            assert substitute_env_vars("${PRESENT_VAR:-default_value}") == "actual_value"

    def test_substitute_required_env_var_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="Required environment variable MISSING_VAR not set"):
                substitute_env_vars("${MISSING_VAR}")

    def test_substitute_custom_error_message(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="ES_URL: cluster address needed"):
                substitute_env_vars("${ES_URL:?cluster address needed}")


class TestLoadTemplatedYaml:
    """Test loading config.yaml with substitution."""

    def test_project_config_loads_with_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_templated_yaml(PROJECT_CONFIG)

        assert config.app.name == "bookshelfApp"
        assert config.search.index_name == "book"
        assert config.search.refresh == "wait_for"
        assert config.database.url == "sqlite:///./bookshelf.db"

    def test_project_config_needs_no_environment(self):
        """Comments in config.yaml go through substitution too and must not require variables."""
        with patch.dict(os.environ, {}, clear=True):
            substituted = substitute_env_vars(PROJECT_CONFIG.read_text())

        assert "${" not in substituted

    def test_environment_prefixed_overrides(self):
        env = {
            "APP_ENVIRONMENT": "test",
            "TEST_SEARCH_ENABLED": "false",
            "TEST_DATABASE_URL": "sqlite:///:memory:",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_templated_yaml(PROJECT_CONFIG)

        assert config.app.environment == "test"
        assert config.search.enabled is False
        assert config.database.url == "sqlite:///:memory:"

    def test_invalid_values_raise(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("config:\n  search:\n    refresh: sometimes\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(config_file)

    def test_empty_file_raises(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        with pytest.raises(ValueError, match="Failed to parse YAML"):
            load_templated_yaml(config_file)


class TestDatabaseConfig:
    def test_connection_string_keeps_url_password(self):
        config = DatabaseConfig(url="postgresql://app:secret@db:5432/books")

        assert config.connection_string == "postgresql://app:secret@db:5432/books"

    def test_password_from_environment_variable(self):
        config = DatabaseConfig(url="postgresql://app@db:5432/books", password_env_var="BOOKS_DB_PASSWORD")

        with patch.dict(os.environ, {"BOOKS_DB_PASSWORD": "s3cret"}):
            assert config.connection_string == "postgresql://app:s3cret@db:5432/books"

    def test_password_from_file(self, tmp_path: Path):
        secret = tmp_path / "db_password"
        secret.write_text("from-file\n")
        config = DatabaseConfig(url="postgresql://app@db:5432/books", password_file=str(secret))

        assert config.password == "from-file"

    def test_missing_password_env_var_raises(self):
        config = DatabaseConfig(url="postgresql://app@db/books", password_env_var="NOT_SET_ANYWHERE")

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="NOT_SET_ANYWHERE not set"):
                _ = config.password


class TestWithContext:
    def test_partial_override_inherits_other_values(self):
        original = get_config()

        with with_context(ConfigData(search=SearchConfig(index_name="books_v2"))):
            config = get_config()
            assert config.search.index_name == "books_v2"
            assert config.database.url == original.database.url
            assert config.app.name == original.app.name

        assert get_config().search.index_name == original.search.index_name

    def test_none_override_is_noop(self):
        original = get_config()
        with with_context(None):
            assert get_config() is original

    def test_rejects_non_config_override(self):
        with pytest.raises(ValueError, match="must be ConfigData"):
            with with_context({"search": {"enabled": False}}):
                pass
