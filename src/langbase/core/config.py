# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from langbase.log import LoggingConfig
from langbase_api.common.errors import ConfigurationError
from langbase_api.filters import DEFAULT_MAX_DEPTH
from langbase_api.memory import MAX_TOP_K

DEFAULT_BASE_URL = "https://api.langbase.com"

# ${env.NAME} or ${env.NAME:=default}
ENV_VAR_PATTERN = re.compile(r"\$\{env\.([A-Za-z0-9_]+)(?::=([^}]*))?\}")


class FilterConfig(BaseModel):
    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        le=256,
        description="Maximum nesting depth accepted when building a filter. A single condition has depth 1.",
    )
    client_side_filtering: bool = Field(
        default=False,
        description=(
            "Re-check retrieved records against the request filters locally and drop those that do not match. "
            "Comparison is type-strict, so a filter on the number 2024 does not match metadata "
            "stored as the string '2024'."
        ),
    )


class LangbaseClientConfig(BaseModel):
    api_key: SecretStr | None = Field(default=None, description="The Langbase API key")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Base URL of the Langbase API")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for a single API request")
    external_user_id: str | None = Field(
        default=None, description="Sent as lb-meta-external-user-id to attribute requests to an end user"
    )
    default_top_k: int = Field(
        default=5, ge=1, le=MAX_TOP_K, description="Number of records to retrieve when a request does not say"
    )
    filters: FilterConfig = Field(default_factory=FilterConfig)
    logging: LoggingConfig | None = Field(default=None, description="Log levels per category")

    @field_validator("api_key", "external_user_id", mode="before")
    @classmethod
    def empty_string_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def require_api_key(self) -> str:
        if self.api_key is None:
            raise ConfigurationError(
                "No Langbase API key configured. Set LANGBASE_API_KEY or add api_key to the config file."
            )
        return self.api_key.get_secret_value()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LangbaseClientConfig":
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {
            "api_key": env.get("LANGBASE_API_KEY"),
            "base_url": env.get("LANGBASE_BASE_URL") or DEFAULT_BASE_URL,
        }
        if env.get("LANGBASE_TIMEOUT"):
            data["timeout_seconds"] = env["LANGBASE_TIMEOUT"]
        if env.get("LANGBASE_FILTER_MAX_DEPTH"):
            data["filters"] = {"max_depth": env["LANGBASE_FILTER_MAX_DEPTH"]}
        return cls._validate(data, source="environment")

    @classmethod
    def from_yaml(cls, path: str | Path, environ: Mapping[str, str] | None = None) -> "LangbaseClientConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping at the top level")

        data = replace_env_vars(data, os.environ if environ is None else environ)
        return cls._validate(data, source=str(config_path))

    @classmethod
    def _validate(cls, data: dict[str, Any], source: str) -> "LangbaseClientConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid Langbase configuration from {source}: {e}") from e

    @classmethod
    def sample_config(cls, **kwargs: Any) -> dict[str, Any]:
        """A starting config for a YAML file. Keyword arguments override the defaults."""
        return {
            "api_key": "${env.LANGBASE_API_KEY:=}",
            "base_url": "${env.LANGBASE_BASE_URL:=" + DEFAULT_BASE_URL + "}",
            "timeout_seconds": 30.0,
            "default_top_k": 5,
            "filters": FilterConfig().model_dump(),
            **kwargs,
        }


def replace_env_vars(config: Any, environ: Mapping[str, str]) -> Any:
    """Expand ${env.NAME} and ${env.NAME:=default} references in every string of a config tree."""
    if isinstance(config, dict):
        return {k: replace_env_vars(v, environ) for k, v in config.items()}
    if isinstance(config, list):
        return [replace_env_vars(v, environ) for v in config]
    if not isinstance(config, str):
        return config

    def get_env_var(match: re.Match) -> str:
        name, default = match.group(1), match.group(2)
        value = environ.get(name)
        if value is not None:
            return value
        if default is not None:
            return default
        raise ConfigurationError(f"Environment variable '{name}' not set and no default value provided")

    return ENV_VAR_PATTERN.sub(get_env_var, config)
