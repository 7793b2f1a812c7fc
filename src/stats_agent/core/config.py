"""Agent configuration loading.

Configuration comes from the process environment (``LOGGER_ADDR``,
``LOGGER_INDEX``, ``LOG_LEVEL``, ...) and optionally from a YAML or JSON file.
Environment values win over file values.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from stats_agent.core.constants import (
    APP_ID_ENV_KEY,
    DEFAULT_INDEX_PREFIX,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_PUBLISH_TIMEOUT_SECONDS,
    ENV_DOCKER_URL,
    ENV_INDEX_PREFIX,
    ENV_LOG_LEVEL,
    ENV_POLL_INTERVAL,
    ENV_PUBLISH_TIMEOUT,
    ENV_SINK_ADDRESS,
    HOST_ENV_KEY,
)
from stats_agent.core.errors import ConfigurationError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AgentConfig(BaseModel):
    """Validated agent configuration.

    Attributes:
        sink_address: Host[:port] (or URL) of the metrics sink. Required.
        index_prefix: Index name prefix; the date is appended per document
        log_level: Logging level name
        poll_interval_seconds: Delay between reconciliation passes
        docker_url: Docker daemon URL; None means use the SDK environment
        publish_timeout_seconds: Timeout of a single publish request
        app_id_env_key: Container env key holding the application label
        host_env_key: Container env key holding the host label
    """

    sink_address: str = Field(..., min_length=1, description="Metrics sink address")
    index_prefix: str = Field(default=DEFAULT_INDEX_PREFIX, min_length=1)
    log_level: str = Field(default="INFO")
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    docker_url: str | None = Field(default=None)
    publish_timeout_seconds: float = Field(default=DEFAULT_PUBLISH_TIMEOUT_SECONDS, gt=0)
    app_id_env_key: str = Field(default=APP_ID_ENV_KEY, min_length=1)
    host_env_key: str = Field(default=HOST_ENV_KEY, min_length=1)

    @field_validator("sink_address")
    @classmethod
    def strip_sink_address(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("sink address must not be blank")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}")
        return level


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect config values present in the environment."""
    values: dict[str, Any] = {}

    if environ.get(ENV_SINK_ADDRESS):
        values["sink_address"] = environ[ENV_SINK_ADDRESS]
    if environ.get(ENV_INDEX_PREFIX):
        values["index_prefix"] = environ[ENV_INDEX_PREFIX]
    if ENV_LOG_LEVEL in environ:
        # LOG_LEVEL is a debug switch: anything but "debug" means INFO
        values["log_level"] = "DEBUG" if environ[ENV_LOG_LEVEL].lower() == "debug" else "INFO"
    if environ.get(ENV_POLL_INTERVAL):
        values["poll_interval_seconds"] = environ[ENV_POLL_INTERVAL]
    if environ.get(ENV_DOCKER_URL):
        values["docker_url"] = environ[ENV_DOCKER_URL]
    if environ.get(ENV_PUBLISH_TIMEOUT):
        values["publish_timeout_seconds"] = environ[ENV_PUBLISH_TIMEOUT]

    return values


def _build(values: dict[str, Any]) -> AgentConfig:
    if not values.get("sink_address"):
        raise ConfigurationError("no logger address found")
    try:
        return AgentConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e


def config_from_env(environ: Mapping[str, str] | None = None) -> AgentConfig:
    """Build the configuration from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``

    Raises:
        ConfigurationError: If the sink address is missing or a value is invalid
    """
    if environ is None:
        environ = os.environ
    return _build(_env_overrides(environ))


def load_config(path: Path | str, environ: Mapping[str, str] | None = None) -> AgentConfig:
    """Load a YAML or JSON configuration file, then apply environment overrides.

    Args:
        path: Path to YAML or JSON configuration file
        environ: Mapping to read instead of ``os.environ``

    Returns:
        Validated AgentConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If the format is unsupported or the content invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported config format: {suffix}. Use .yaml, .yml, or .json")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    if environ is None:
        environ = os.environ
    return _build({**data, **_env_overrides(environ)})
