"""Configuration service: defaults, optional JSON file, environment overrides."""

import json
import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog

from ..models import AppConfig
from .errors import ConfigurationError
from .logging import VALID_LOG_LEVELS

log = structlog.stdlib.get_logger()

# Environment variable -> AppConfig field
ENVIRONMENT_OVERRIDES = {
    "CSRF_TOKEN": "csrf_token",
    "LOG_LEVEL": "log_level",
    "COSMIC_ARCHIVE_VERSIONS_URL": "manifest_url",
    "COSMIC_REACH_URL": "game_url",
}


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for assembling the application configuration."""

    def __init__(
        self,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config_path: Path | None = config_path
        self._environ: Mapping[str, str] = os.environ if environ is None else environ

    def load_config(self) -> AppConfig:
        """Build the configuration from defaults, the config file and the environment.

        An unreadable or invalid config file is ignored with a warning. The
        environment always wins over the file.

        Raises:
            ConfigurationError: If the final configuration is invalid
        """
        config = self._load_file_config()
        config = self._apply_environment(config)

        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ConfigurationError(
                f"Invalid configuration: {', '.join(validation_result.errors)}",
                current_value=validation_result.errors,
            )

        if not config.csrf_token:
            log.warning("Environmental variable 'CSRF_TOKEN' is empty")

        return config

    def _load_file_config(self) -> AppConfig:
        if self.config_path is None:
            return self._get_default_config()

        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults", config_path=str(self.config_path))
            return self._get_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise TypeError(f"Expected JSON object, got {type(data).__name__}")

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return self._get_default_config()

            log.info("Configuration loaded successfully", config_path=str(self.config_path))
            return config

        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return self._get_default_config()

    def _apply_environment(self, config: AppConfig) -> AppConfig:
        overrides: dict[str, str] = {}
        for variable, field_name in ENVIRONMENT_OVERRIDES.items():
            value = self._environ.get(variable)
            if value is None:
                continue
            # An empty token is meaningful (warned about later); empty URLs are not
            if value == "" and field_name != "csrf_token":
                continue
            if field_name == "log_level":
                value = value.upper()
                if value not in VALID_LOG_LEVELS:
                    log.warning(
                        "Unknown log level in environment, keeping current level",
                        variable=variable,
                        value=value,
                        log_level=config.log_level,
                    )
                    continue
            overrides[field_name] = value
        return replace(config, **overrides) if overrides else config

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        for name in ("manifest_url", "game_url"):
            value = getattr(config, name)
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                errors.append(f"{name} must be an http(s) URL")

        if not isinstance(config.csrf_token, str):
            errors.append("csrf_token must be a string")

        if not isinstance(config.destination_root, Path):
            errors.append("destination_root must be a Path object")

        if not isinstance(config.request_timeout, (int, float)) or config.request_timeout <= 0:
            errors.append("request_timeout must be a positive number")

        if not isinstance(config.max_retries, int) or config.max_retries < 0:
            errors.append("max_retries must be a non-negative integer")
        elif config.max_retries > 10:
            errors.append("max_retries should not exceed 10")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        return ValidationResult(len(errors) == 0, errors)

    def _get_default_config(self) -> AppConfig:
        """Get default configuration."""
        return AppConfig()

    def _dict_to_config(self, data: dict[str, Any]) -> AppConfig:
        """Convert dictionary to AppConfig; absent keys keep their defaults."""
        defaults = AppConfig()
        timeout_raw = data.get("request_timeout", defaults.request_timeout)
        retries_raw = data.get("max_retries", defaults.max_retries)

        return AppConfig(
            manifest_url=str(data.get("manifest_url", defaults.manifest_url)),
            game_url=str(data.get("game_url", defaults.game_url)),
            csrf_token=str(data.get("csrf_token", defaults.csrf_token)),
            destination_root=Path(str(data.get("destination_root", defaults.destination_root))),
            request_timeout=float(timeout_raw) if isinstance(timeout_raw, (int, float)) else defaults.request_timeout,
            max_retries=int(retries_raw) if isinstance(retries_raw, int) else defaults.max_retries,
            log_level=str(data.get("log_level", defaults.log_level)).upper(),
        )
