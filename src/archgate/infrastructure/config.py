"""Engine options and project configuration (``.archgate/config.yml``)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from archgate.engine.models import ValidationError
from archgate.infrastructure.files import DEFAULT_EXCLUDE, DEFAULT_INCLUDE

logger = logging.getLogger(__name__)

CONFIG_DIR = ".archgate"
CONFIG_FILE = "config.yml"
DEFAULT_RULES_FILE = "rules.yml"
DEFAULT_MAX_CONCURRENCY = 4

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineOptions:
    """Runtime options for :class:`~archgate.engine.engine.ConstraintEngine`."""

    project_root: Path
    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    enable_cache: bool = False
    verbose: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_concurrency, bool) or not isinstance(self.max_concurrency, int):
            msg = f"max_concurrency must be an integer, got {self.max_concurrency!r}"
            raise ValidationError(msg)
        if self.max_concurrency < 1:
            msg = f"max_concurrency must be at least 1, got {self.max_concurrency}"
            raise ValidationError(msg)


@dataclass(frozen=True)
class ProjectConfig:
    """Settings read from a project's ``.archgate/config.yml``."""

    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    enable_cache: bool = False
    rules: tuple[str, ...] = ()
    presets: tuple[str, ...] = ()
    source: Path | None = field(default=None, compare=False)

    def engine_options(self, project_root: Path, **overrides: Any) -> EngineOptions:
        """Build :class:`EngineOptions`, applying non-None *overrides*."""
        options = EngineOptions(
            project_root=project_root,
            include=self.include,
            exclude=self.exclude,
            max_concurrency=self.max_concurrency,
            enable_cache=self.enable_cache,
        )
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(options, **changes) if changes else options

    def rule_paths(self, project_root: Path) -> list[Path]:
        """Rule files resolved against *project_root*."""
        return [project_root / p for p in self.rules]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def config_path(project_root: Path) -> Path:
    return project_root / CONFIG_DIR / CONFIG_FILE


def _str_tuple(data: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = data.get(key)
    if raw is None:
        return default
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        msg = f"{CONFIG_FILE}: '{key}' must be a string or a list of strings"
        raise ValidationError(msg)
    return tuple(raw)


def load_config(project_root: Path, path: Path | None = None) -> ProjectConfig:
    """Load the project configuration.

    A missing file yields defaults.  An unreadable or unparsable file is
    logged and also yields defaults.  Values of the wrong type raise
    :class:`ValidationError`.
    """
    path = path or config_path(project_root)
    if not path.is_file():
        return ProjectConfig()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default configuration", path)
        return ProjectConfig()

    if data is None:
        return ProjectConfig(source=path)
    if not isinstance(data, dict):
        msg = f"{CONFIG_FILE} must be a YAML mapping"
        raise ValidationError(msg)

    max_concurrency = data.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
    if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int):
        msg = f"{CONFIG_FILE}: 'max_concurrency' must be an integer"
        raise ValidationError(msg)
    if max_concurrency < 1:
        msg = f"{CONFIG_FILE}: 'max_concurrency' must be at least 1"
        raise ValidationError(msg)

    enable_cache = data.get("enable_cache", False)
    if not isinstance(enable_cache, bool):
        msg = f"{CONFIG_FILE}: 'enable_cache' must be a boolean"
        raise ValidationError(msg)

    return ProjectConfig(
        include=_str_tuple(data, "include", DEFAULT_INCLUDE),
        exclude=_str_tuple(data, "exclude", DEFAULT_EXCLUDE),
        max_concurrency=max_concurrency,
        enable_cache=enable_cache,
        rules=_str_tuple(data, "rules", ()),
        presets=_str_tuple(data, "presets", ()),
        source=path,
    )
