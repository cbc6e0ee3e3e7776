"""
Configuration loader for gqlkit.

This module loads client settings from configuration files (JSON or YAML)
and environment variables. Environment variables override file values.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import yaml

from .models import ClientSettings


def _parse_headers(value: str) -> Dict[str, str]:
    headers = json.loads(value)
    if not isinstance(headers, dict):
        raise ValueError("Headers must be a JSON object")
    return {str(k): str(v) for k, v in headers.items()}


class ConfigLoader:
    """Configuration loader with support for multiple sources."""

    def __init__(self, env_prefix: str = "GQLKIT_") -> None:
        """
        Initialize configuration loader.

        Args:
            env_prefix: Prefix of the environment variables to read
        """
        self.config_paths = [
            Path("gqlkit.yaml"),
            Path("gqlkit.yml"),
            Path("gqlkit.json"),
            Path.home() / ".gqlkit" / "config.yaml",
            Path.home() / ".gqlkit" / "config.yml",
            Path.home() / ".gqlkit" / "config.json",
        ]

        self.env_prefix = env_prefix

        # Environment variable suffix -> (config path, converter)
        self.env_mappings: Dict[str, Tuple[Tuple[str, ...], Callable[[str], Any]]] = {
            "ENDPOINT": (("endpoint",), str),
            "HEADERS": (("headers",), _parse_headers),
            "TIMEOUT": (("timeout",), float),
            "USER_AGENT": (("user_agent",), str),
            "LOG_LEVEL": (("logging", "level"), str.upper),
            "LOG_FILE": (("logging", "file_path"), str),
            "LOG_FORMAT": (("logging", "format"), str),
        }

    def load_config(
        self,
        config_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> ClientSettings:
        """
        Load settings from all available sources.

        Args:
            config_file: Specific config file to load
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            ClientSettings with merged configuration

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If a source cannot be parsed
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_from_file(config_file)
        if file_config:
            config_data.update(file_config)

        env_config = self._load_from_environment(os.environ if environ is None else environ)
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        return ClientSettings(**config_data)

    def _load_from_file(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
            return self._parse_config_file(config_path)

        for config_path in self.config_paths:
            if config_path.exists():
                return self._parse_config_file(config_path)

        return None

    def _parse_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Parse configuration file based on extension."""
        suffix = config_path.suffix.lower()
        if suffix not in (".yaml", ".yml", ".json"):
            raise ValueError(f"Unsupported config file format: {config_path.suffix}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to parse config file {config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        return data

    def _load_from_environment(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        for suffix, (config_path, convert) in self.env_mappings.items():
            env_var = f"{self.env_prefix}{suffix}"
            value = environ.get(env_var)
            if value is None:
                continue

            try:
                converted_value = convert(value)
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_var}: {e}") from e

            # Set nested configuration value
            current = config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            current[config_path[-1]] = converted_value

        return config

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
