"""Tests for the configuration service."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from hypothesis import given, strategies as st

from cosmic_archive_checker.models import COSMIC_ARCHIVE_VERSIONS_URL, COSMIC_REACH_URL, AppConfig
from cosmic_archive_checker.services.config import ConfigurationService
from cosmic_archive_checker.services.errors import ConfigurationError


def write_config(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_file_or_environment() -> None:
    config = ConfigurationService(environ={}).load_config()

    assert config == AppConfig()
    assert config.manifest_url == COSMIC_ARCHIVE_VERSIONS_URL
    assert config.game_url == COSMIC_REACH_URL
    assert config.destination_root == Path()


def test_environment_overrides() -> None:
    environ = {
        "CSRF_TOKEN": "secret-token",
        "LOG_LEVEL": "debug",
        "COSMIC_ARCHIVE_VERSIONS_URL": "http://localhost:8000/versions.json",
        "COSMIC_REACH_URL": "http://localhost:8000/cosmic-reach",
    }

    config = ConfigurationService(environ=environ).load_config()

    assert config.csrf_token == "secret-token"
    assert config.log_level == "DEBUG"
    assert config.manifest_url == "http://localhost:8000/versions.json"
    assert config.game_url == "http://localhost:8000/cosmic-reach"


def test_token_is_not_in_repr() -> None:
    config = ConfigurationService(environ={"CSRF_TOKEN": "secret-token"}).load_config()

    assert "secret-token" not in repr(config)


def test_file_values_are_loaded(tmp_path: Path) -> None:
    config_path = write_config(tmp_path / "config.json", {
        "destination_root": str(tmp_path / "downloads"),
        "request_timeout": 5,
        "max_retries": 1,
        "log_level": "warning",
    })

    config = ConfigurationService(config_path=config_path, environ={}).load_config()

    assert config.destination_root == tmp_path / "downloads"
    assert config.request_timeout == 5.0
    assert config.max_retries == 1
    assert config.log_level == "WARNING"


def test_environment_wins_over_file(tmp_path: Path) -> None:
    config_path = write_config(tmp_path / "config.json", {"csrf_token": "from-file", "max_retries": 2})

    config = ConfigurationService(
        config_path=config_path,
        environ={"CSRF_TOKEN": "from-env"},
    ).load_config()

    assert config.csrf_token == "from-env"
    assert config.max_retries == 2


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2, 3]", json.dumps({"max_retries": 50}), json.dumps({"game_url": "ftp://example.com"})],
)
def test_invalid_file_falls_back_to_defaults(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(content, encoding="utf-8")

    assert ConfigurationService(config_path=config_path, environ={}).load_config() == AppConfig()


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    config = ConfigurationService(config_path=tmp_path / "absent.json", environ={}).load_config()

    assert config == AppConfig()


def test_invalid_environment_raises() -> None:
    service = ConfigurationService(environ={"COSMIC_REACH_URL": "finalforeach.itch.io/cosmic-reach"})

    with pytest.raises(ConfigurationError) as exc_info:
        service.load_config()

    assert "game_url must be an http(s) URL" in exc_info.value.message


def test_empty_url_variables_are_ignored() -> None:
    config = ConfigurationService(environ={"COSMIC_ARCHIVE_VERSIONS_URL": "", "COSMIC_REACH_URL": ""}).load_config()

    assert config.manifest_url == COSMIC_ARCHIVE_VERSIONS_URL
    assert config.game_url == COSMIC_REACH_URL


@pytest.mark.parametrize("value", ["warn", "trace", "verbose"])
def test_unknown_environment_log_level_keeps_current(tmp_path: Path, value: str) -> None:
    config_path = write_config(tmp_path / "config.json", {"log_level": "ERROR"})

    with patch("cosmic_archive_checker.services.config.log.warning") as mock_warning:
        config = ConfigurationService(
            config_path=config_path,
            environ={"LOG_LEVEL": value, "CSRF_TOKEN": "token"},
        ).load_config()

    assert config.log_level == "ERROR"
    mock_warning.assert_called_once()
    assert mock_warning.call_args.kwargs["value"] == value.upper()


@pytest.mark.parametrize("environ", [{}, {"CSRF_TOKEN": ""}])
def test_empty_token_is_warned_about(environ: dict[str, str]) -> None:
    with patch("cosmic_archive_checker.services.config.log.warning") as mock_warning:
        config = ConfigurationService(environ=environ).load_config()

    assert config.csrf_token == ""
    mock_warning.assert_any_call("Environmental variable 'CSRF_TOKEN' is empty")


def test_present_token_is_not_warned_about() -> None:
    with patch("cosmic_archive_checker.services.config.log.warning") as mock_warning:
        ConfigurationService(environ={"CSRF_TOKEN": "token"}).load_config()

    mock_warning.assert_not_called()


@given(
    max_retries=st.integers(min_value=0, max_value=10),
    request_timeout=st.floats(min_value=0.1, max_value=300.0, allow_nan=False),
    log_level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
)
def test_valid_settings_pass_validation(max_retries: int, request_timeout: float, log_level: str) -> None:
    config = AppConfig(max_retries=max_retries, request_timeout=request_timeout, log_level=log_level)

    result = ConfigurationService(environ={}).validate_config(config)

    assert result.is_valid, result.errors
