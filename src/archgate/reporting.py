"""Report formatters for validation results: Rich text, JSON, and porcelain."""

from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from archgate.engine.models import (
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_ORDER,
    SEVERITY_WARNING,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archgate.engine.models import EngineStats, ValidationResult, Violation

GROUP_BY_SEVERITY = "severity"
GROUP_BY_FILE = "file"

_SEVERITY_HEADINGS: dict[str, tuple[str, str]] = {
    SEVERITY_ERROR: ("✗ ERRORS", "bold red"),
    SEVERITY_WARNING: ("! WARNINGS", "bold yellow"),
    SEVERITY_INFO: ("i INFO", "bold blue"),
}

# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def summarize(results: Sequence[ValidationResult]) -> dict[str, int]:
    """Count files and violations by severity across *results*."""
    summary = {
        "files": len(results),
        "invalid_files": sum(1 for r in results if not r.is_valid),
        "violations": 0,
        "errors": 0,
        "warnings": 0,
        "info": 0,
    }
    keys = {SEVERITY_ERROR: "errors", SEVERITY_WARNING: "warnings", SEVERITY_INFO: "info"}
    for result in results:
        for v in result.violations:
            summary["violations"] += 1
            summary[keys[v.severity]] += 1
    return summary


def has_errors(results: Sequence[ValidationResult]) -> bool:
    return any(not r.is_valid for r in results)


# ---------------------------------------------------------------------------
# Rich
# ---------------------------------------------------------------------------


def _location(file: str, v: Violation) -> str:
    loc = file
    if v.line is not None:
        loc += f":{v.line}"
        if v.column is not None:
            loc += f":{v.column}"
    return loc


def _print_violation(console: Console, file: str, v: Violation, *, show_suggestions: bool) -> None:
    console.print(f"  [cyan]{escape(_location(file, v))}[/] - {escape(v.message)}")
    console.print(f"    [dim]Rule: {escape(v.rule_id)}[/]")
    if v.source:
        console.print(f"    [dim]> {escape(v.source)}[/]")
    if show_suggestions and v.suggestion:
        console.print(f"    [green]→ {escape(v.suggestion)}[/]")


def render_rich(
    console: Console,
    results: Sequence[ValidationResult],
    stats: EngineStats | None = None,
    *,
    group_by: str = GROUP_BY_SEVERITY,
    show_suggestions: bool = True,
    show_stats: bool = True,
) -> None:
    """Print a human-readable report to *console*.

    Example output with violations::

        Constraint Validation Results

        ✗ ERRORS (1):
          src/plugins/bad.plugin.ts - Plugin must implement execute method
            Rule: must-implement-execute
            → Add: async execute(input: any): Promise<any> { ... }

        Summary
          Files processed   1
          ...
    """
    summary = summarize(results)
    console.print("[bold]Constraint Validation Results[/]")
    console.print()

    if summary["violations"] == 0:
        console.print(
            "[green]✓ No violations found! All files pass architectural constraints.[/]"
        )
    elif group_by == GROUP_BY_FILE:
        for result in results:
            if not result.violations:
                continue
            console.print(f"[bold]{escape(result.file)}[/]")
            for v in result.violations:
                _print_violation(console, result.file, v, show_suggestions=show_suggestions)
            console.print()
    else:
        for severity in SEVERITY_ORDER:
            pairs = [(r.file, v) for r in results for v in r.violations if v.severity == severity]
            if not pairs:
                continue
            heading, style = _SEVERITY_HEADINGS[severity]
            console.print(f"[{style}]{heading} ({len(pairs)}):[/]")
            for file, v in pairs:
                _print_violation(console, file, v, show_suggestions=show_suggestions)
            console.print()

    if show_stats:
        table = Table(title="Summary", show_header=False, box=None, padding=(0, 1))
        table.add_column("metric", style="cyan")
        table.add_column("value", justify="right")
        files_processed = stats.files_processed if stats is not None else summary["files"]
        table.add_row("Files processed", str(files_processed))
        table.add_row("Total violations", str(summary["violations"]))
        table.add_row("Errors", str(summary["errors"]))
        table.add_row("Warnings", str(summary["warnings"]))
        table.add_row("Info", str(summary["info"]))
        if stats is not None:
            table.add_row("Rules executed", str(stats.rules_executed))
            table.add_row("Execution time", f"{stats.execution_time:.1f}ms")
        console.print(table)


def format_rich(
    results: Sequence[ValidationResult],
    stats: EngineStats | None = None,
    *,
    group_by: str = GROUP_BY_SEVERITY,
    show_suggestions: bool = True,
    show_stats: bool = True,
) -> str:
    """Render :func:`render_rich` output to a plain string (no ANSI codes)."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=120, color_system=None, highlight=False)
    render_rich(
        console,
        results,
        stats,
        group_by=group_by,
        show_suggestions=show_suggestions,
        show_stats=show_stats,
    )
    return buffer.getvalue().rstrip("\n")


# ---------------------------------------------------------------------------
# Machine-readable
# ---------------------------------------------------------------------------


def format_json(results: Sequence[ValidationResult], stats: EngineStats | None = None) -> str:
    """Format results as JSON with ``summary``, ``results`` and ``stats`` keys."""
    output: dict[str, object] = {
        "summary": summarize(results),
        "results": [r.to_dict() for r in results],
        "stats": stats.to_dict() if stats is not None else None,
    }
    return json.dumps(output, indent=2)


def format_porcelain(results: Sequence[ValidationResult]) -> str:
    """One line per violation: ``file:line:column:severity:rule_id:message``.

    Missing line/column are empty strings.  Returns an empty string when
    there are no violations.
    """
    lines: list[str] = []
    for result in results:
        for v in result.violations:
            line = str(v.line) if v.line is not None else ""
            column = str(v.column) if v.column is not None else ""
            lines.append(f"{result.file}:{line}:{column}:{v.severity}:{v.rule_id}:{v.message}")
    return "\n".join(lines)
