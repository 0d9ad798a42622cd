"""File discovery and content reading used by the engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from archgate.engine.patterns import compile_pattern, matches_any, path_candidates

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE: tuple[str, ...] = ("**/*.ts", "**/*.js", "**/*.tsx", "**/*.jsx")
DEFAULT_EXCLUDE: tuple[str, ...] = ("**/node_modules/**", "**/dist/**", "**/*.d.ts")


def discover_files(
    project_root: Path,
    include: Sequence[str] = DEFAULT_INCLUDE,
    exclude: Sequence[str] = DEFAULT_EXCLUDE,
) -> list[Path]:
    """Resolve glob patterns under *project_root* into a file list.

    Returns absolute paths, deduplicated and sorted lexicographically.
    Exclude patterns are matched against the path relative to the root.
    """
    root = project_root.resolve()
    exclude_res = [compile_pattern(p) for p in exclude]
    found: set[Path] = set()

    for pattern in include:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            if exclude_res and matches_any(path_candidates(path, root), exclude_res):
                continue
            found.add(path.resolve())

    files = sorted(found, key=lambda p: p.as_posix())
    logger.debug("Discovered %d files under %s", len(files), root)
    return files


def read_text_file(path: Path) -> str:
    """Read a source file as UTF-8 text.

    Raises ``OSError`` or ``UnicodeDecodeError``; the engine turns both into
    a ``file-read-error`` violation.
    """
    return Path(path).read_text(encoding="utf-8")
