"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CODEDISTILL__SECTION__KEY)
3. Explicit config file, or repo config (.codedistill.yaml)
4. Global config (~/.config/codedistill/config.yaml)
5. Built-in defaults (lowest priority)

Any invalid value is reported as a ConfigError before a single file is
processed.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from codedistill.config.models import (
    BatchConfig,
    DistillConfig,
    DistillerConfig,
    LoggingConfig,
    ResolverConfig,
)
from codedistill.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/codedistill/config.yaml").expanduser()
REPO_CONFIG_NAME = ".codedistill.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _first_error(e: ValidationError) -> ConfigError:
    err = e.errors()[0]
    field = ".".join(str(loc) for loc in err["loc"])
    return ConfigError.invalid_value(field, err.get("input"), err["msg"])


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class CodeDistillSettings(BaseSettings):
        """Root config. Env vars: CODEDISTILL__LOGGING__LEVEL, CODEDISTILL__BATCH__MAX_WORKERS."""

        model_config = SettingsConfigDict(
            env_prefix="CODEDISTILL__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        distill: DistillConfig = DistillConfig()
        resolver: ResolverConfig = ResolverConfig()
        batch: BatchConfig = BatchConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CodeDistillSettings


CodeDistillSettings = _make_settings_class({})


def load_config(
    repo_root: Path | None = None,
    config_path: Path | None = None,
    **kwargs: Any,
) -> DistillerConfig:
    """Load config: defaults < global yaml < repo yaml < env vars < kwargs.

    Args:
        repo_root: Directory holding .codedistill.yaml.
                   Defaults to current working directory.
        config_path: Explicit config file; replaces the repo config and must exist.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML, or validation errors.
    """
    repo_root = repo_root or Path.cwd()

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError.file_not_found(str(config_path))
        yaml_config = _load_yaml(config_path)
    else:
        yaml_config = _load_yaml(repo_root / REPO_CONFIG_NAME)

    global_config = _load_yaml(GLOBAL_CONFIG_PATH)
    if global_config:
        yaml_config = _deep_merge(global_config, yaml_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        raise _first_error(e) from e
    return DistillerConfig.model_validate(settings.model_dump())


def with_overrides(config: DistillerConfig, overrides: dict[str, Any]) -> DistillerConfig:
    """Return a copy of config with per-section overrides applied and validated.

    Used by the CLI so that a single flag does not reset the rest of its section.
    """
    merged = _deep_merge(config.model_dump(), overrides)
    try:
        return DistillerConfig.model_validate(merged)
    except ValidationError as e:
        raise _first_error(e) from e
