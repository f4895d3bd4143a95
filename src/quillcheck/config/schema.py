"""Typed configuration schema and loader for the quillcheck package."""

from __future__ import annotations

import os
from collections.abc import Mapping
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, conint, field_validator

from quillcheck.utils.errors import ConfigError
from quillcheck.utils.logging import parse_level

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

ProviderName = Literal["typos", "rules", "languagetool"]


class SchedulerSettings(BaseModel):
    """Debounce behaviour for live analysis."""

    debounce_ms: conint(ge=1, le=5000)

    model_config = ConfigDict(extra="forbid")


class AggregatorSettings(BaseModel):
    """Fan-out settings for the composite provider."""

    concurrent_sync: bool
    max_workers: conint(ge=1, le=64)

    model_config = ConfigDict(extra="forbid")


class TyposSettings(BaseModel):
    """Common-typos provider settings."""

    enabled: bool
    extra: dict[str, str] = {}

    model_config = ConfigDict(extra="forbid")


class RulesSettings(BaseModel):
    """Rule-based provider settings."""

    enabled: bool
    dictionary_path: Optional[Path] = None
    long_sentence_words: conint(ge=1)
    passive_voice: bool

    model_config = ConfigDict(extra="forbid")


class LanguageToolSettings(BaseModel):
    """LanguageTool adapter settings."""

    enabled: bool
    require: bool
    language: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ProvidersSettings(BaseModel):
    """Configuration for suggestion providers."""

    order: list[ProviderName]
    typos: TyposSettings
    rules: RulesSettings
    languagetool: LanguageToolSettings

    model_config = ConfigDict(extra="forbid")

    @field_validator("order")
    @classmethod
    def _unique_order(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("providers.order must not repeat a provider")
        return value


class LoggingSettings(BaseModel):
    """Log level and the environment variable that may override it."""

    level: str
    level_env: str

    model_config = ConfigDict(extra="forbid")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        parse_level(value)
        return value.upper()


class ConfigModel(BaseModel):
    """Top-level configuration model."""

    schema_version: conint(ge=1)
    locale: str
    scheduler: SchedulerSettings
    aggregator: AggregatorSettings
    providers: ProvidersSettings
    logging: LoggingSettings

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Loader utilities
# ---------------------------------------------------------------------------


def deep_merge_dicts(a: dict[str, Any], b: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge mapping ``b`` onto ``a`` returning a new dict."""

    result: dict[str, Any] = dict(a)
    for key, b_val in b.items():
        if key in result and isinstance(result[key], dict) and isinstance(b_val, dict):
            result[key] = deep_merge_dicts(result[key], b_val)
        else:
            result[key] = b_val
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must contain a mapping")
    return data


def load_config(
    path: str | os.PathLike[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> ConfigModel:
    """Load configuration from defaults and optional user overrides.

    Precedence of sources: package ``defaults.yml`` < user-provided YAML <
    environment variable named by ``logging.level_env`` for the log level.
    """

    with (
        importlib_resources.files("quillcheck.config")
        .joinpath("defaults.yml")
        .open("r", encoding="utf-8") as f
    ):
        defaults = yaml.safe_load(f) or {}

    if path is not None:
        overrides = _read_yaml(Path(path))
        merged = deep_merge_dicts(defaults, overrides)
    else:
        merged = defaults

    cfg = ConfigModel.model_validate(merged)

    environ = env if env is not None else os.environ
    level_env = cfg.logging.level_env
    if environ.get(level_env):
        level = environ[level_env]
        try:
            parse_level(level)
        except ValueError as exc:
            raise ConfigError(f"{level_env}: {exc}") from exc
        cfg.logging.level = level.upper()

    return cfg


__all__ = [
    "ConfigModel",
    "SchedulerSettings",
    "AggregatorSettings",
    "TyposSettings",
    "RulesSettings",
    "LanguageToolSettings",
    "ProvidersSettings",
    "LoggingSettings",
    "deep_merge_dicts",
    "load_config",
]
