"""Configuration management for the assume-role credentials provider."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from assume_role_provider.credentials import DEFAULT_MARGIN_FRACTION
from assume_role_provider.errors import ConfigurationError
from assume_role_provider.logging_utils import ensure_logging_configured
from assume_role_provider.provider import (
    DEFAULT_DURATION_SECONDS,
    MAX_DURATION_SECONDS,
    MIN_DURATION_SECONDS,
    CredentialsProviderBuilder,
    RoleSessionCredentialsProvider,
)
from assume_role_provider.sources import CredentialSource, EnvironmentCredentialSource
from assume_role_provider.sts_client import DEFAULT_STS_REGION, STSRoleAssumptionClient

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class RoleSettings(BaseModel):
    role_arn: str | None = Field(default=None)
    session_name: str | None = Field(
        default=None,
        description="Fixed session name; generated from the current time when unset.",
    )
    duration_seconds: int = Field(
        default=DEFAULT_DURATION_SECONDS,
        ge=MIN_DURATION_SECONDS,
        le=MAX_DURATION_SECONDS,
    )
    margin_fraction: float = Field(default=DEFAULT_MARGIN_FRACTION, gt=0, lt=0.5)

    @field_validator("session_name")
    @classmethod
    def _blank_session_name_is_unset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class AWSSettings(BaseModel):
    sts_region: str = Field(default=DEFAULT_STS_REGION)
    sts_endpoint_url: str | None = Field(default=None)


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    role: RoleSettings = Field(default_factory=RoleSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)


ENV_KEYS = {
    "role_arn": "ASSUME_ROLE_ARN",
    "session_name": "ASSUME_ROLE_SESSION_NAME",
    "duration_seconds": "ASSUME_ROLE_DURATION_SECONDS",
    "margin_fraction": "ASSUME_ROLE_MARGIN_FRACTION",
    "sts_region": "AWS_STS_REGION",
    "sts_endpoint_url": "AWS_STS_ENDPOINT_URL",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def _env_str(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip() or None


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")

    settings_data: dict[str, object] = {
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _env_str(ENV_KEYS["log_file"]),
        },
        "role": {
            "role_arn": _env_str(ENV_KEYS["role_arn"]),
            "session_name": _env_str(ENV_KEYS["session_name"]),
            "duration_seconds": _env_int(
                ENV_KEYS["duration_seconds"],
                RoleSettings().duration_seconds,
            ),
            "margin_fraction": _env_float(
                ENV_KEYS["margin_fraction"],
                RoleSettings().margin_fraction,
            ),
        },
        "aws": {
            "sts_region": os.getenv(ENV_KEYS["sts_region"], AWSSettings().sts_region),
            "sts_endpoint_url": _env_str(ENV_KEYS["sts_endpoint_url"]),
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}", code="invalid_settings") from exc


def provider_from_settings(
    settings: Settings | None = None,
    source: CredentialSource | None = None,
    setup_logging: bool = True,
) -> RoleSessionCredentialsProvider:
    """Build a provider backed by STS from settings and a long-lived source.

    Unless ``setup_logging`` is False, process logging is configured from
    ``settings.logging`` the first time a provider is built.
    """
    settings = settings or load_settings()
    if setup_logging:
        ensure_logging_configured(settings.logging)
    if not settings.role.role_arn:
        raise ConfigurationError(
            f"{ENV_KEYS['role_arn']} is required to build a provider", code="missing_role_arn"
        )

    client = STSRoleAssumptionClient.from_source(
        source or EnvironmentCredentialSource(),
        region=settings.aws.sts_region,
        endpoint_url=settings.aws.sts_endpoint_url,
    )
    builder = (
        CredentialsProviderBuilder(settings.role.role_arn, client)
        .with_session_duration_seconds(settings.role.duration_seconds)
        .with_margin_fraction(settings.role.margin_fraction)
    )
    if settings.role.session_name:
        builder.with_session_name(settings.role.session_name)
    return builder.build()
