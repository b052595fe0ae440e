"""Resolve uploader configuration from a YAML file, environment and CLI overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from s3_multipart.config_manager.uploader_config import UploaderConfig
from s3_multipart.const import CONFIG_DIR, CONFIG_ENCODING, CONFIG_FILE
from s3_multipart.exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

_ENV_MAP: dict[str, str] = {
    "access_key_id": "S3MP_ACCESS_KEY_ID",
    "secret_access_key": "S3MP_SECRET_ACCESS_KEY",
    "session_token": "S3MP_SESSION_TOKEN",
    "region": "S3MP_REGION",
    "endpoint": "S3MP_ENDPOINT",
    "part_size": "S3MP_PART_SIZE",
    "request_timeout": "S3MP_REQUEST_TIMEOUT",
}


class ConfigManager:
    """Build the effective uploader configuration.

    Later sources win: the YAML file, then environment variables, then
    values given on the command line.
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialise ConfigManager.

        Args:
            config_path: YAML file to read. When omitted the default file
                under ``~/.s3_multipart`` is read if it exists.
        """
        self._explicit_path = config_path is not None
        self.config_path = config_path or CONFIG_DIR / CONFIG_FILE

    def _read_file_config(self) -> dict[str, Any]:
        """Read configuration values from the YAML file.

        Returns:
            A dictionary of configuration field names to values.

        Raises:
            ConfigLoadError: If the file cannot be read or is not a mapping.
        """
        if not self.config_path.exists():
            if self._explicit_path:
                raise ConfigLoadError(f"Config file not found: {self.config_path}")
            return {}

        try:
            with open(self.config_path, encoding=CONFIG_ENCODING) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigLoadError(
                f"Failed to read config file '{self.config_path}': {exc}"
            ) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Config file '{self.config_path}' must contain a mapping"
            )
        logger.debug("Loaded configuration from %s", self.config_path)
        return data

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read configuration overrides from environment variables.

        Returns:
            A dictionary of configuration field names to override values.
        """
        overrides: dict[str, Any] = {}
        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None or env_value == "":
                continue
            overrides[field_name] = env_value
        return overrides

    def resolve_effective_config(
        self, cli_config: dict[str, Any] | None = None
    ) -> UploaderConfig:
        """Resolve the effective configuration for this run.

        Args:
            cli_config: Optional CLI-provided overrides; ``None`` values are ignored.

        Returns:
            The resolved ``UploaderConfig``.

        Raises:
            ConfigLoadError: If a source is unreadable or a value is invalid.
        """
        merged = self._read_file_config()
        merged.update(self._read_env_overrides())
        if cli_config is not None:
            merged.update({k: v for k, v in cli_config.items() if v is not None})

        try:
            return UploaderConfig.model_validate(merged)
        except ValidationError as exc:
            raise ConfigLoadError(f"Invalid uploader configuration: {exc}") from exc
