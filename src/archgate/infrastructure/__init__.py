"""Infrastructure: file discovery, file reading, and project configuration."""

from archgate.infrastructure.config import (
    EngineOptions,
    ProjectConfig,
    config_path,
    load_config,
)
from archgate.infrastructure.files import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    discover_files,
    read_text_file,
)

__all__ = [
    "DEFAULT_EXCLUDE",
    "DEFAULT_INCLUDE",
    "EngineOptions",
    "ProjectConfig",
    "config_path",
    "discover_files",
    "load_config",
    "read_text_file",
]
