"""Path pattern compilation and matching for rule include/exclude lists."""

from __future__ import annotations

import re
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from archgate.engine.models import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

# A pattern is either a glob string or an already compiled regular expression.
PatternLike = str | re.Pattern[str]

# Prefix marking a string pattern as a regular expression instead of a glob.
REGEX_PREFIX = "re:"

MATCH_ALL: re.Pattern[str] = re.compile(r".*")


def _translate_glob(glob: str) -> str:
    """Translate a glob into a regex body.

    ``**/`` anywhere in the glob matches zero or more directories, so
    ``src/**/*.ts`` matches both ``src/app.ts`` and ``src/a/b/app.ts``.
    Otherwise ``*`` crosses directory separators as in ``fnmatch``; ``?``
    and ``[...]`` (``[!...]`` negated) behave as in ``fnmatch``.
    """
    parts: list[str] = []
    i, n = 0, len(glob)
    while i < n:
        if glob.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
            continue
        c = glob[i]
        if c == "*":
            while i < n and glob[i] == "*":
                i += 1
            parts.append(".*")
            continue
        if c == "?":
            parts.append(".")
        elif c == "[":
            end = glob.find("]", i + 2)
            if end == -1:
                parts.append(re.escape(c))
            else:
                members = glob[i + 1 : end].replace("\\", "\\\\")
                if members.startswith("!"):
                    members = "^" + members[1:]
                elif members.startswith("^"):
                    members = "\\" + members
                parts.append(f"[{members}]")
                i = end
        else:
            parts.append(re.escape(c))
        i += 1
    return "".join(parts)


def _compile_glob(glob: str) -> re.Pattern[str]:
    """Translate a glob into a regex anchored at both ends."""
    return re.compile(rf"\A(?:{_translate_glob(glob)})\Z", re.DOTALL)


def compile_pattern(pattern: PatternLike) -> re.Pattern[str]:
    """Compile *pattern* into a regex usable with ``search``.

    Raises :class:`ValidationError` for empty strings, unsupported types,
    and ``re:`` expressions that fail to compile.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        msg = f"Pattern must be a string or compiled regex, got {type(pattern).__name__}"
        raise ValidationError(msg)
    if not pattern.strip():
        msg = "Pattern must be a non-empty string"
        raise ValidationError(msg)

    if pattern.startswith(REGEX_PREFIX):
        expr = pattern[len(REGEX_PREFIX) :]
        try:
            return re.compile(expr)
        except re.error as exc:
            msg = f"Invalid regular expression {expr!r}: {exc}"
            raise ValidationError(msg) from exc

    return _compile_glob(pattern)


def path_candidates(file_path: str | PurePath, project_root: str | PurePath | None) -> list[str]:
    """Return the path forms a pattern is tested against.

    Always the full POSIX path; additionally the path relative to
    *project_root* when the file lives under it.  When the lexical
    comparison fails both sides are resolved, so ``.`` or a symlinked
    root still yields the relative form.
    """
    path = PurePath(file_path)
    candidates = [path.as_posix()]
    if project_root is not None:
        root = Path(project_root)
        rel = _relative_to(path, root)
        if rel is None:
            rel = _relative_to(Path(path).resolve(), root.resolve())
        if rel is not None and rel.as_posix() not in candidates:
            candidates.append(rel.as_posix())
    return candidates


def _relative_to(path: PurePath, root: PurePath) -> PurePath | None:
    try:
        return path.relative_to(root)
    except ValueError:
        return None


def matches_any(candidates: Iterable[str], patterns: Sequence[re.Pattern[str]]) -> bool:
    """Return True if any pattern matches any candidate path."""
    paths = list(candidates)
    return any(p.search(c) for p in patterns for c in paths)
