"""
YAML configuration loading.

configs/app.yaml holds the application settings and configs/sources/
one file per report page. String values may reference the environment
as ${VAR} or ${VAR:-default}.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from .models import AppConfig, SourceConfig

DEFAULT_APP_CONFIG = Path("configs/app.yaml")
DEFAULT_SOURCES_DIR = Path("configs/sources")

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigError(Exception):
    """A configuration file is missing, unreadable or invalid."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _read_mapping(path: Path) -> dict[str, Any]:
    """Parse a YAML file whose top level is a mapping; empty files give {}."""
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", path=path, details=str(e)) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}", path=path, details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}", path=path)
    return data


def _expand_env_vars(data: Any) -> Any:
    """Substitute ${VAR} and ${VAR:-default} in every string value."""
    if isinstance(data, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ""),
            data,
        )
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


def _load_model(model: type[ModelT], path: Path, kind: str, expand_env: bool) -> ModelT:
    data = _read_mapping(path)
    if expand_env:
        data = _expand_env_vars(data)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {kind} configuration in {path}", path=path, details=str(e)) from e


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load app.yaml, or the defaults when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not valid
    """
    path = Path(path) if path is not None else DEFAULT_APP_CONFIG
    if not path.exists():
        return AppConfig()
    return _load_model(AppConfig, path, "app", expand_env)


def load_source_config(path: Path | str, expand_env: bool = True) -> SourceConfig:
    """Load one source file.

    Raises:
        ConfigError: If the file is missing or not valid
    """
    return _load_model(SourceConfig, Path(path), "source", expand_env)


def load_all_source_configs(
    source_dir: Path | str | None = None,
    expand_env: bool = True,
) -> dict[str, SourceConfig]:
    """Load every *.yaml / *.yml file in a directory, keyed by source name.

    Files starting with an underscore are drafts and are skipped. A
    missing directory means no sources.

    Raises:
        ConfigError: On an invalid file or a duplicated source name
    """
    source_dir = Path(source_dir) if source_dir is not None else DEFAULT_SOURCES_DIR
    if not source_dir.exists():
        return {}

    configs: dict[str, SourceConfig] = {}
    for path in sorted([*source_dir.glob("*.yaml"), *source_dir.glob("*.yml")]):
        if path.name.startswith("_"):
            continue
        source = load_source_config(path, expand_env=expand_env)
        if source.name in configs:
            raise ConfigError(f"Duplicate source name '{source.name}'", path=path)
        configs[source.name] = source

    return configs


def validate_source_config_file(path: Path | str) -> list[str]:
    """Check a source file the way load_source_config would read it.

    Returns:
        One "field: message" line per problem; empty when the file is valid
    """
    path = Path(path)

    try:
        data = _expand_env_vars(_read_mapping(path))
    except ConfigError as e:
        return [str(e)]

    try:
        SourceConfig.model_validate(data)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
    return []
