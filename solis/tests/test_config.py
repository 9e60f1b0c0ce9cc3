"""
Unit tests for poller configuration (SolisSettings).

Tests verify:
- Config loads from environment variables with correct defaults.
- Missing credential variables are rejected.
- SOLIS_API must be an http(s) URL; trailing slash is stripped.
- Numeric constraints are enforced on timeouts and intervals.
- load_settings() surfaces validation failures as ConfigError.
- credential() returns an immutable Credential.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import pytest
from pydantic import ValidationError
from solis.src.config import Credential, SolisSettings, load_settings
from solis.src.errors import ConfigError


class TestSolisSettingsLoadsFromEnv:
    """Config loads all values from environment variables."""

    def test_loads_all_env_vars(self, env_vars_full: dict[str, str]) -> None:
        settings = SolisSettings()

        assert settings.solis_api == "https://www.soliscloud.com:13333"
        assert settings.solis_key == env_vars_full["SOLIS_KEY"]
        assert settings.solis_secret == env_vars_full["SOLIS_SECRET"]
        assert settings.request_timeout_s == 5.0
        assert settings.device_interval_s == 2.0
        assert settings.cycle_interval_s == 120.0
        assert settings.zero_suppression is True
        assert settings.sink_url == "http://victoria.local:8428"
        assert settings.log_level == "DEBUG"

    def test_defaults_applied_when_optional_vars_missing(
        self, env_vars_required_only: dict[str, str]
    ) -> None:
        settings = SolisSettings()

        assert settings.request_timeout_s == 10.0
        assert settings.device_interval_s == 1.0
        assert settings.cycle_interval_s == 60.0
        assert settings.zero_suppression is False
        assert settings.sink_url == ""
        assert settings.log_level == "INFO"


class TestSolisSettingsRequiredVars:
    """Config validation rejects missing credential variables."""

    def test_missing_all_required_raises(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SolisSettings()
        errors = str(exc_info.value).lower()
        assert "solis_api" in errors
        assert "solis_key" in errors
        assert "solis_secret" in errors

    def test_missing_secret_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOLIS_API", "https://api.example.com")
        monkeypatch.setenv("SOLIS_KEY", "key-id")

        with pytest.raises(ValidationError) as exc_info:
            SolisSettings()
        assert "solis_secret" in str(exc_info.value).lower()

    def test_blank_key_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SOLIS_KEY", "   ")
        with pytest.raises(ValidationError):
            SolisSettings()


class TestValueValidation:
    """Field-level validators."""

    def test_non_http_api_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SOLIS_API", "ftp://www.soliscloud.com")
        with pytest.raises(ValidationError) as exc_info:
            SolisSettings()
        assert "http" in str(exc_info.value).lower()

    def test_zero_timeout_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REQUEST_TIMEOUT_S", "0")
        with pytest.raises(ValidationError):
            SolisSettings()

    def test_negative_cycle_interval_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CYCLE_INTERVAL_S", "-1")
        with pytest.raises(ValidationError):
            SolisSettings()

    def test_zero_intervals_accepted(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEVICE_INTERVAL_S", "0")
        monkeypatch.setenv("CYCLE_INTERVAL_S", "0")
        settings = SolisSettings()
        assert settings.device_interval_s == 0.0
        assert settings.cycle_interval_s == 0.0

    def test_non_http_sink_url_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SINK_URL", "/var/lib/metrics.ndjson")
        with pytest.raises(ValidationError):
            SolisSettings()

    def test_unknown_log_level_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            SolisSettings()


class TestLoadSettings:
    """load_settings() wraps validation errors."""

    def test_missing_config_raises_config_error(self) -> None:
        with pytest.raises(ConfigError, match="invalid configuration"):
            load_settings()

    def test_valid_config_loads(self, env_vars_required_only: dict[str, str]) -> None:
        assert load_settings().solis_key == "key-id"


class TestCredential:
    """credential() exposes an immutable Credential."""

    def test_credential_fields(self, env_vars_required_only: dict[str, str]) -> None:
        credential = SolisSettings().credential()
        assert credential == Credential(
            api_base="https://www.soliscloud.com:13333",
            access_key="key-id",
            secret="secret-xyz",
        )

    def test_credential_is_frozen(self, env_vars_required_only: dict[str, str]) -> None:
        credential = SolisSettings().credential()
        with pytest.raises(ValidationError):
            credential.secret = "changed"  # type: ignore[misc]
