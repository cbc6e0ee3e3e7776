"""
Tests for configuration loading.
"""

import json

import pytest
from pydantic import ValidationError

from gqlkit.config import ClientSettings, ConfigLoader, LogLevel


@pytest.fixture
def loader(tmp_path, monkeypatch):
    """Loader that does not search the real working or home directory."""
    monkeypatch.chdir(tmp_path)
    loader = ConfigLoader()
    loader.config_paths = [tmp_path / "gqlkit.yaml", tmp_path / "gqlkit.json"]
    return loader


class TestClientSettings:
    """Test settings validation."""

    def test_defaults(self):
        """Test default settings."""
        settings = ClientSettings(endpoint="https://api.example.com/graphql")

        assert settings.headers == {}
        assert settings.timeout == 30.0
        assert settings.user_agent == "gqlkit/1.0"
        assert settings.cache.id_fields == ("id", "_id")
        assert settings.logging.level is LogLevel.INFO

    def test_endpoint_is_stripped(self):
        """Test that surrounding whitespace is removed."""
        settings = ClientSettings(endpoint="  https://api.example.com/graphql\n")

        assert settings.endpoint == "https://api.example.com/graphql"

    @pytest.mark.parametrize(
        "values",
        [
            {"endpoint": "   "},
            {"endpoint": "https://api.example.com/graphql", "timeout": 0},
            {"endpoint": "https://api.example.com/graphql", "retries": 3},
            {},
        ],
    )
    def test_invalid(self, values):
        """Test rejected settings."""
        with pytest.raises(ValidationError):
            ClientSettings(**values)


class TestConfigLoader:
    """Test loading settings from files and environment."""

    def test_load_yaml(self, loader, tmp_path):
        """Test loading a YAML file."""
        config_file = tmp_path / "client.yaml"
        config_file.write_text(
            "endpoint: https://api.example.com/graphql\n"
            "headers:\n"
            "  X-Team: core\n"
            "cache:\n"
            "  id_fields: [uuid]\n"
            "logging:\n"
            "  level: DEBUG\n"
        )

        settings = loader.load_config(config_file, environ={})

        assert settings.endpoint == "https://api.example.com/graphql"
        assert settings.headers == {"X-Team": "core"}
        assert settings.cache.id_fields == ("uuid",)
        assert settings.logging.level is LogLevel.DEBUG

    def test_load_json(self, loader, tmp_path):
        """Test loading a JSON file."""
        config_file = tmp_path / "client.json"
        config_file.write_text(
            json.dumps({"endpoint": "https://api.example.com/graphql", "timeout": 10})
        )

        settings = loader.load_config(str(config_file), environ={})

        assert settings.timeout == 10.0

    def test_default_search_path(self, loader, tmp_path):
        """Test that a config file in the search path is picked up."""
        (tmp_path / "gqlkit.json").write_text(
            json.dumps({"endpoint": "https://found.example.com/graphql"})
        )

        settings = loader.load_config(environ={})

        assert settings.endpoint == "https://found.example.com/graphql"

    def test_environment_only(self, loader):
        """Test settings taken from the environment alone."""
        settings = loader.load_config(
            environ={
                "GQLKIT_ENDPOINT": "https://env.example.com/graphql",
                "GQLKIT_HEADERS": '{"Authorization": "Bearer token"}',
                "GQLKIT_TIMEOUT": "5",
                "GQLKIT_USER_AGENT": "env/1.0",
                "GQLKIT_LOG_LEVEL": "warning",
            }
        )

        assert settings.endpoint == "https://env.example.com/graphql"
        assert settings.headers == {"Authorization": "Bearer token"}
        assert settings.timeout == 5.0
        assert settings.user_agent == "env/1.0"
        assert settings.logging.level is LogLevel.WARNING

    def test_environment_overrides_file(self, loader, tmp_path):
        """Test that environment values win and nested values are merged."""
        config_file = tmp_path / "client.yaml"
        config_file.write_text(
            "endpoint: https://file.example.com/graphql\n"
            "timeout: 10\n"
            "logging:\n"
            "  level: ERROR\n"
            "  format: '%(message)s'\n"
        )

        settings = loader.load_config(
            config_file,
            environ={
                "GQLKIT_ENDPOINT": "https://env.example.com/graphql",
                "GQLKIT_LOG_LEVEL": "debug",
            },
        )

        assert settings.endpoint == "https://env.example.com/graphql"
        assert settings.timeout == 10.0
        assert settings.logging.level is LogLevel.DEBUG
        assert settings.logging.format == "%(message)s"

    def test_custom_prefix(self, tmp_path, monkeypatch):
        """Test a custom environment prefix."""
        monkeypatch.chdir(tmp_path)
        loader = ConfigLoader(env_prefix="APP_GRAPHQL_")
        loader.config_paths = []

        settings = loader.load_config(
            environ={
                "APP_GRAPHQL_ENDPOINT": "https://app.example.com/graphql",
                "GQLKIT_ENDPOINT": "https://ignored.example.com/graphql",
            }
        )

        assert settings.endpoint == "https://app.example.com/graphql"

    def test_missing_file(self, loader, tmp_path):
        """Test that an explicit missing file is an error."""
        with pytest.raises(FileNotFoundError):
            loader.load_config(tmp_path / "missing.yaml", environ={})

    def test_unsupported_format(self, loader, tmp_path):
        """Test that unknown file types are rejected."""
        config_file = tmp_path / "client.toml"
        config_file.write_text('endpoint = "https://api.example.com/graphql"\n')

        with pytest.raises(ValueError, match="Unsupported config file format"):
            loader.load_config(config_file, environ={})

    def test_malformed_yaml(self, loader, tmp_path):
        """Test that unparsable files are rejected."""
        config_file = tmp_path / "client.yaml"
        config_file.write_text("endpoint: [unclosed\n")

        with pytest.raises(ValueError, match="Failed to parse config file"):
            loader.load_config(config_file, environ={})

    def test_non_mapping_file(self, loader, tmp_path):
        """Test that the file must hold a mapping."""
        config_file = tmp_path / "client.json"
        config_file.write_text("[1, 2]")

        with pytest.raises(ValueError, match="must contain a mapping"):
            loader.load_config(config_file, environ={})

    @pytest.mark.parametrize(
        "name, value",
        [
            ("GQLKIT_TIMEOUT", "soon"),
            ("GQLKIT_HEADERS", "not json"),
            ("GQLKIT_HEADERS", '["X-Team"]'),
        ],
    )
    def test_invalid_environment_value(self, loader, name, value):
        """Test that unconvertible environment values are reported."""
        environ = {"GQLKIT_ENDPOINT": "https://api.example.com/graphql", name: value}

        with pytest.raises(ValueError, match=name):
            loader.load_config(environ=environ)

    def test_no_endpoint(self, loader):
        """Test that an endpoint is required."""
        with pytest.raises(ValidationError):
            loader.load_config(environ={})
