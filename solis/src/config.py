"""
Poller configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
The vendor credential is read once and exposed as an immutable
:class:`Credential`; nothing downstream mutates it.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_settings import BaseSettings

from solis.src.errors import ConfigError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Credential(BaseModel):
    """Vendor API credential.

    Attributes:
        api_base: Base URL of the SolisCloud API, without trailing slash.
        access_key: Key id placed in the ``Authorization`` header.
        secret: HMAC-SHA1 signing secret. Never logged.
    """

    model_config = ConfigDict(frozen=True)

    api_base: str
    access_key: str
    secret: str


class SolisSettings(BaseSettings):
    """SolisCloud poller configuration.

    Attributes:
        solis_api: SolisCloud API base URL (``SOLIS_API``).
        solis_key: API access key id (``SOLIS_KEY``).
        solis_secret: API signing secret (``SOLIS_SECRET``).
        request_timeout_s: Per-request timeout bounding a stalled endpoint.
        device_interval_s: Pause between two device fetches in a cycle.
        cycle_interval_s: Pause between two full polling cycles.
        zero_suppression: Drop literal-zero raw fields until the same key
            has been seen non-zero once.
        sink_url: VictoriaMetrics-compatible base URL. Empty writes
            newline-delimited JSON to stdout instead.
        log_level: Root log level.
    """

    solis_api: str
    solis_key: str
    solis_secret: str
    request_timeout_s: float = 10.0
    device_interval_s: float = 1.0
    cycle_interval_s: float = 60.0
    zero_suppression: bool = False
    sink_url: str = ""
    log_level: str = "INFO"

    @field_validator("solis_api")
    @classmethod
    def solis_api_must_be_http_url(cls, v: str) -> str:
        """Require an http(s) URL and strip any trailing slash."""
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"SOLIS_API must be an http(s) URL (got: '{v}')")
        return v.rstrip("/")

    @field_validator("solis_key", "solis_secret")
    @classmethod
    def credential_must_be_set(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("SOLIS_KEY and SOLIS_SECRET must not be empty")
        return v.strip()

    @field_validator("request_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    @field_validator("device_interval_s", "cycle_interval_s")
    @classmethod
    def interval_must_be_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("DEVICE_INTERVAL_S and CYCLE_INTERVAL_S must be >= 0")
        return v

    @field_validator("sink_url")
    @classmethod
    def sink_url_must_be_http_url(cls, v: str) -> str:
        """Allow empty (stdout sink) or an http(s) URL."""
        if v and not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"SINK_URL must be empty or an http(s) URL (got: '{v}')")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def credential(self) -> Credential:
        """Return the immutable vendor credential."""
        return Credential(
            api_base=self.solis_api,
            access_key=self.solis_key,
            secret=self.solis_secret,
        )


def load_settings() -> SolisSettings:
    """Load settings from the environment, raising :class:`ConfigError` on failure."""
    try:
        return SolisSettings()
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
