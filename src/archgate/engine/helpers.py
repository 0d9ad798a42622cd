"""Helpers for writing rule evaluators."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from archgate.engine.models import Violation
from archgate.engine.patterns import compile_pattern, matches_any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archgate.engine.context import ValidationContext
    from archgate.engine.patterns import PatternLike


@dataclass(frozen=True)
class Match:
    """A pattern match located in file content (1-based line and column)."""

    text: str
    line: int
    column: int
    line_text: str


def contains(content: str, pattern: PatternLike) -> bool:
    """Literal containment for strings, ``search`` for compiled patterns."""
    if isinstance(pattern, str):
        return pattern in content
    return pattern.search(content) is not None


def find_matches(content: str, pattern: PatternLike) -> list[Match]:
    """Find every match of *pattern* line by line.

    A string pattern is treated as a literal.
    """
    regex = re.compile(re.escape(pattern)) if isinstance(pattern, str) else pattern
    matches: list[Match] = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        for m in regex.finditer(line):
            matches.append(
                Match(text=m.group(0), line=line_no, column=m.start() + 1, line_text=line)
            )
    return matches


def matches_any_pattern(file_path: str, patterns: Sequence[PatternLike]) -> bool:
    """Return True if *file_path* matches any glob or regex in *patterns*."""
    return matches_any([file_path], [compile_pattern(p) for p in patterns])


def create_violation(
    rule_id: str,
    severity: str,
    message: str,
    context: ValidationContext,
    *,
    suggestion: str | None = None,
    line: int | None = None,
    column: int | None = None,
    source: str | None = None,
) -> Violation:
    """Build a violation bound to the context's file."""
    return Violation(
        rule_id=rule_id,
        severity=severity,
        message=message,
        file=context.file,
        suggestion=suggestion,
        line=line,
        column=column,
        source=source,
    )
