"""Application configuration management.

Handles loading and validating configuration from multiple sources:
    - TOML/JSON config files
    - Environment variables (TOOLSETHUB_* prefix)
    - Default values

Key components:
    - AppConfig: Main configuration model
    - load_config(): Safe config loading with fallback
    - ConfigLoadResult: Metadata about config source
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from toolsethub.core.security import normalize_toolset_id

CONFIG_ENV_VAR = "TOOLSETHUB_CONFIG"

DEFAULT_ALLOWED_TOOLSETS: tuple[str, ...] = (
    "example-tools",
    "example2-tools",
    "order-tools",
    "weather-tools",
    "payment-tools",
    "text-tools",
)


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded or validated."""


def _normalize_ids(values: list[str]) -> list[str]:
    normalized: list[str] = []
    for value in values:
        key = normalize_toolset_id(value)
        if key and key not in normalized:
            normalized.append(key)
    return normalized


# -----------------------------------------------------------------------------
# Sub-configuration Models
# -----------------------------------------------------------------------------


class CacheConfig(BaseModel):
    """Toolset pool sizing and expiry."""

    max_size: int = Field(default=10, gt=0, description="Maximum number of cached toolsets.")
    ttl_minutes: int = Field(
        default=30, gt=0, description="Minutes after insertion before a cached toolset expires."
    )
    load_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Upper bound for a single toolset load; unbounded when unset.",
    )

    @property
    def ttl_seconds(self) -> float:
        return float(self.ttl_minutes * 60)


class PluginSpec(BaseModel):
    """Out-of-band location of an external toolset provider."""

    path: Path = Field(description="Python source file defining the provider class.")
    type_name: str = Field(description="Name of the @toolset class inside the file.")


class LoaderConfig(BaseModel):
    """Dynamic loader strategy configuration."""

    namespaces: list[str] = Field(
        default_factory=lambda: ["toolsethub.tools"],
        description="Packages probed, in order, for name-derived provider classes.",
    )
    plugin_roots: list[Path] = Field(
        default_factory=lambda: [Path.home() / ".toolsethub" / "plugins"],
        description="Directories external plugin files must live under.",
    )
    plugins: dict[str, PluginSpec] = Field(
        default_factory=dict,
        description="Toolset id -> external plugin location.",
    )

    @field_validator("plugins", mode="after")
    @classmethod
    def normalize_plugin_ids(cls, v: dict[str, PluginSpec]) -> dict[str, PluginSpec]:
        return {normalize_toolset_id(key): spec for key, spec in v.items()}


@dataclass
class ConfigLoadResult:
    path: Path
    file_loaded: bool
    env_overrides: set[str]
    error: str | None = None


class AppConfig(BaseSettings):
    """Application-wide configuration with nested sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLSETHUB_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    allowed_toolsets: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_TOOLSETS),
        description="Toolset ids that may be resolved. Empty allows every id.",
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    log_level: str = Field(default="INFO", description="Log level for toolsethub output.")

    @field_validator("allowed_toolsets", mode="after")
    @classmethod
    def normalize_allowed(cls, v: list[str]) -> list[str]:
        return _normalize_ids(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


def _resolve_config_path(config_path: Path | None, env_vars: Mapping[str, str]) -> Path:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR) or (Path.home() / ".toolsethub.toml")
    return Path(candidate).expanduser()


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    raw = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    parser = json.loads if suffix == ".json" else tomllib.loads

    try:
        data = parser(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Syntax error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be a mapping.")

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    """Detect which fields are overridden by environment variables.

    Covers top-level fields (TOOLSETHUB_ALLOWED_TOOLSETS) and nested ones
    (TOOLSETHUB_CACHE__MAX_SIZE).
    """
    prefix = AppConfig.model_config.get("env_prefix", "")
    delimiter = AppConfig.model_config.get("env_nested_delimiter", "__")
    overrides: set[str] = set()

    for field in ("allowed_toolsets", "log_level"):
        if f"{prefix}{field}".upper() in env_vars:
            overrides.add(field)

    nested_models: dict[str, type[BaseModel]] = {
        "cache": CacheConfig,
        "loader": LoaderConfig,
    }

    for group_name, model_cls in nested_models.items():
        for field in model_cls.model_fields:
            env_key = f"{prefix}{group_name}{delimiter}{field}".upper()
            if env_key in env_vars:
                overrides.add(f"{group_name}.{field}")

    return overrides


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[AppConfig, ConfigLoadResult]:
    """
    Load configuration with Safe Mode fallback.
    If the file is invalid, returns default config + error message.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else {**os.environ, **env}
    resolved_path = _resolve_config_path(config_path, env_vars)
    env_overrides = _detect_env_overrides(env_vars)

    error: str | None = None
    file_loaded = False
    file_data: dict[str, Any] = {}

    try:
        file_data = _read_config_file(resolved_path)
        file_loaded = resolved_path.exists()
    except ConfigError as exc:
        error = str(exc)

    context_manager = (
        patch.dict(os.environ, env_vars, clear=False) if env is not None else nullcontext()
    )

    try:
        with context_manager:
            config = AppConfig(**file_data)
    except ValidationError as exc:
        error = str(exc)
        config = AppConfig()

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=file_loaded,
        env_overrides=env_overrides,
        error=error,
    )

    return config, load_result


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_ALLOWED_TOOLSETS",
    "AppConfig",
    "CacheConfig",
    "ConfigError",
    "ConfigLoadResult",
    "LoaderConfig",
    "PluginSpec",
    "load_config",
]
