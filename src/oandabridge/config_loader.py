"""Configuration loader with Pydantic validation and environment variable resolution.

Configuration is resolved once at startup into an immutable ``StreamConfig``
and passed explicitly to the components that need it. Values come from the
process environment (optionally seeded from a ``.env`` file) or from a YAML
file whose values may reference environment variables.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

# Load environment variables at module level
load_dotenv(find_dotenv(usecwd=True))

from oandabridge.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_ENVIRONMENT,
    DEFAULT_INSTRUMENTS,
    DEFAULT_PUBLISH_ADDRESS,
    DEFAULT_SEND_HWM,
    ENV_ACCOUNT_ID,
    ENV_AUTH_TOKEN,
    ENV_ENVIRONMENT,
    ENV_INSTRUMENTS,
    ENV_LOG_LEVEL,
    ENV_PUBLISH_ADDRESS,
    ENV_SINK,
    ENVIRONMENT_ALIASES,
    PRICING_STREAM_PATH,
    STREAM_HOSTS,
    LogLevel,
    OandaEnvironment,
    SinkType,
)
from oandabridge.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Config field -> environment variable
ENV_VARS = {
    "auth_token": ENV_AUTH_TOKEN,
    "account_id": ENV_ACCOUNT_ID,
    "environment": ENV_ENVIRONMENT,
    "instruments": ENV_INSTRUMENTS,
    "publish_address": ENV_PUBLISH_ADDRESS,
    "sink": ENV_SINK,
    "log_level": ENV_LOG_LEVEL,
}


def interpolate_env_vars(value: Any, environ: Mapping[str, str] | None = None) -> Any:
    """
    Interpolate environment variables in string values.

    Supports formats:
    - ${VAR_NAME} - empty string if not set
    - ${VAR_NAME:default} - optional with default value
    """
    if not isinstance(value, str):
        return value

    environ = os.environ if environ is None else environ
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)

        env_value = environ.get(var_name)

        if env_value is not None:
            return env_value
        elif default is not None:
            return default
        else:
            return ""

    return re.sub(pattern, replacer, value)


def process_config_dict(
    data: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Recursively process config dict to interpolate env vars."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = process_config_dict(value, environ)
        elif isinstance(value, list):
            result[key] = [
                process_config_dict(item, environ)
                if isinstance(item, dict)
                else interpolate_env_vars(item, environ)
                for item in value
            ]
        else:
            result[key] = interpolate_env_vars(value, environ)
    return result


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _warn_default(field: str, default: Any) -> None:
    logger.warning(
        f"Setting '{field}' ({ENV_VARS.get(field, field)}) is not set or empty. "
        f"Using default: {default}"
    )


# ============================================
# Pydantic Configuration Model
# ============================================


class StreamConfig(BaseModel):
    """Resolved bridge configuration."""

    model_config = ConfigDict(frozen=True)

    auth_token: str
    account_id: str
    environment: OandaEnvironment = DEFAULT_ENVIRONMENT
    instruments: tuple[str, ...] = DEFAULT_INSTRUMENTS
    publish_address: str = DEFAULT_PUBLISH_ADDRESS
    sink: SinkType = SinkType.ZMQ
    log_level: LogLevel = LogLevel.INFO
    send_high_water_mark: int = DEFAULT_SEND_HWM
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT

    @field_validator("auth_token", "account_id", mode="before")
    @classmethod
    def require_value(cls, v: Any, info: Any) -> Any:
        """Credentials have no default."""
        if _is_blank(v):
            raise ValueError(f"{ENV_VARS[info.field_name]} is required")
        return v.strip() if isinstance(v, str) else v

    @field_validator("environment", mode="before")
    @classmethod
    def resolve_environment(cls, v: Any) -> Any:
        """Map environment names (including legacy fxpractice/fxtrade) to the enum."""
        if _is_blank(v):
            _warn_default("environment", DEFAULT_ENVIRONMENT.value)
            return DEFAULT_ENVIRONMENT
        if isinstance(v, OandaEnvironment):
            return v

        name = str(v).strip().lower()
        if name in ENVIRONMENT_ALIASES:
            return ENVIRONMENT_ALIASES[name]
        valid = [e.value for e in OandaEnvironment] + list(ENVIRONMENT_ALIASES)
        if name not in valid:
            raise ValueError(f"Invalid environment '{v}'. Must be one of {valid}")
        return OandaEnvironment(name)

    @field_validator("instruments", mode="before")
    @classmethod
    def split_instruments(cls, v: Any) -> Any:
        """Accept a comma-joined string or a list of instrument names."""
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            v = tuple(str(item).strip() for item in v if not _is_blank(item))
        if _is_blank(v) or v == ():
            _warn_default("instruments", ",".join(DEFAULT_INSTRUMENTS))
            return DEFAULT_INSTRUMENTS
        return v

    @field_validator("publish_address", mode="before")
    @classmethod
    def default_publish_address(cls, v: Any) -> Any:
        if _is_blank(v):
            _warn_default("publish_address", DEFAULT_PUBLISH_ADDRESS)
            return DEFAULT_PUBLISH_ADDRESS
        return v.strip() if isinstance(v, str) else v

    @field_validator("sink", mode="before")
    @classmethod
    def normalize_sink(cls, v: Any) -> Any:
        if _is_blank(v):
            return SinkType.ZMQ
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if _is_blank(v):
            return LogLevel.INFO
        return v.upper() if isinstance(v, str) else v

    @field_validator("send_high_water_mark")
    @classmethod
    def validate_positive_hwm(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"send_high_water_mark must be positive, got: {v}")
        return v

    @field_validator("connect_timeout_seconds")
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"connect_timeout_seconds must be positive, got: {v}")
        return v

    @property
    def stream_host(self) -> str:
        """Base URL of the streaming host for the selected environment."""
        return STREAM_HOSTS[self.environment]

    @property
    def stream_path(self) -> str:
        return PRICING_STREAM_PATH.format(account_id=self.account_id)

    @property
    def stream_url(self) -> str:
        """Pricing stream URL without query parameters."""
        return f"{self.stream_host}{self.stream_path}"

    @property
    def instruments_param(self) -> str:
        """Instruments as the comma-joined query parameter value."""
        return ",".join(self.instruments)

    @property
    def is_live_environment(self) -> bool:
        return self.environment == OandaEnvironment.LIVE

    def redacted(self) -> dict[str, Any]:
        """Config values safe for display (token masked)."""
        data = self.model_dump(mode="json")
        token = self.auth_token
        data["auth_token"] = f"{token[:4]}..." if len(token) > 8 else "***"
        return data


# ============================================
# Configuration Loader
# ============================================


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect raw settings from environment variables (None where unset)."""
    environ = os.environ if environ is None else environ
    return {field: environ.get(var) for field, var in ENV_VARS.items()}


def _read_yaml(config_path: Path, environ: Mapping[str, str] | None) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")

    processed = process_config_dict(raw_config, environ)
    # Keys left out of the file still get the default-and-warn treatment
    for field in ENV_VARS:
        processed.setdefault(field, None)
    return processed


def build_config(raw: Mapping[str, Any]) -> StreamConfig:
    """
    Validate raw settings into a StreamConfig.

    Raises:
        ConfigurationError: If a required setting is missing or a value is invalid.
    """
    try:
        return StreamConfig.model_validate(dict(raw))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors(include_url=False)
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> StreamConfig:
    """
    Resolve configuration once at startup.

    Args:
        config_path: Optional YAML file. When omitted, settings are read from
            environment variables.
        environ: Environment mapping to read from (defaults to os.environ).

    Returns:
        Validated, immutable StreamConfig.
    """
    if config_path is not None:
        raw = _read_yaml(Path(config_path), environ)
    else:
        raw = settings_from_env(environ)
    return build_config(raw)


def load_config_with_overrides(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    *,
    sink: str | None = None,
    log_level: str | None = None,
) -> StreamConfig:
    """Load configuration and apply CLI overrides."""
    config = load_config(config_path, environ)

    updates: dict[str, Any] = {}
    try:
        if sink is not None:
            updates["sink"] = SinkType(sink.lower())
        if log_level is not None:
            updates["log_level"] = LogLevel(log_level.upper())
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    if updates:
        return config.model_copy(update=updates)

    return config
