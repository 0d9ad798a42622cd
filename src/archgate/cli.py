"""Archgate CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from archgate import __version__
from archgate.engine.models import ValidationError
from archgate.infrastructure.config import (
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULT_RULES_FILE,
    ProjectConfig,
    load_config,
)
from archgate.rulesets import PRESETS

if TYPE_CHECKING:
    from archgate.engine.engine import ConstraintEngine
    from archgate.engine.rules import ConstraintRule

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_CONFIG_ERROR = 2

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="archgate")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Archgate - architecture constraint validator."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format=_LOG_FORMAT)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _collect_rules(
    project_root: Path,
    config: ProjectConfig,
    rule_files: tuple[Path, ...],
    presets: tuple[str, ...],
) -> list[ConstraintRule]:
    """Gather rules from CLI options, falling back to the project config.

    Raises :class:`ValidationError` when nothing is configured.
    """
    from archgate.rulesets import get_preset, load_rule_source

    if not rule_files and not presets:
        rule_files = tuple(config.rule_paths(project_root))
        presets = config.presets
        default_rules = project_root / CONFIG_DIR / DEFAULT_RULES_FILE
        if not rule_files and not presets and default_rules.is_file():
            rule_files = (default_rules,)

    rules: list[ConstraintRule] = []
    for name in presets:
        rules.extend(get_preset(name).rules)
    for path in rule_files:
        rules.extend(load_rule_source(path))

    if not rules:
        msg = (
            "No rules configured. Pass --rules or --preset, or run `archgate init` "
            f"to create {CONFIG_DIR}/{DEFAULT_RULES_FILE}"
        )
        raise ValidationError(msg)
    return rules


def _build_engine(
    project_root: Path,
    config: ProjectConfig,
    rules: list[ConstraintRule],
    *,
    concurrency: int | None = None,
    cache: bool | None = None,
    verbose: bool = False,
) -> ConstraintEngine:
    from archgate.engine.engine import ConstraintEngine

    options = config.engine_options(
        project_root, max_concurrency=concurrency, enable_cache=cache, verbose=verbose
    )
    engine = ConstraintEngine(options)
    engine.add_rules(rules)
    return engine


def _unique_paths(paths: tuple[Path, ...]) -> list[Path]:
    """Resolve *paths*, dropping duplicates but keeping first-seen order."""
    seen: set[Path] = set()
    unique: list[Path] = []
    for p in paths:
        resolved = p.resolve()
        if resolved not in seen:
            seen.add(resolved)
            unique.append(resolved)
    return unique


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--rules",
    "rule_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Rules file (.yml or .py). Repeatable.",
)
@click.option(
    "--preset",
    "presets",
    multiple=True,
    type=click.Choice(sorted(PRESETS)),
    help="Built-in rule set. Repeatable.",
)
@click.option("--pattern", "patterns", multiple=True, help="Include glob. Repeatable.")
@click.option("--exclude", "excludes", multiple=True, help="Exclude glob. Repeatable.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich for TTY, porcelain otherwise).",
)
@click.option(
    "--group-by",
    type=click.Choice(["severity", "file"]),
    default="severity",
    help="Grouping for rich output.",
)
@click.option("--no-suggestions", is_flag=True, help="Hide suggestions in rich output.")
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Worker threads.")
@click.option("--cache/--no-cache", default=None, help="Reuse results for unchanged content.")
@click.pass_context
def check(
    ctx: click.Context,
    paths: tuple[Path, ...],
    *,
    project: Path | None,
    rule_files: tuple[Path, ...],
    presets: tuple[str, ...],
    patterns: tuple[str, ...],
    excludes: tuple[str, ...],
    fmt: str | None,
    group_by: str,
    no_suggestions: bool,
    concurrency: int | None,
    cache: bool | None,
) -> None:
    """Validate project files against architecture rules.

    With PATHS, validates exactly those files; otherwise discovers files
    with the configured (or --pattern) globs.  Exit codes: 0 = no errors,
    1 = at least one error violation, 2 = configuration error.
    """
    from archgate.reporting import (
        format_json,
        format_porcelain,
        format_rich,
        has_errors,
        render_rich,
    )

    project_root = (project or Path.cwd()).resolve()
    verbose = bool(ctx.obj.get("verbose")) if ctx.obj else False

    try:
        config = load_config(project_root)
        rules = _collect_rules(project_root, config, rule_files, presets)
        engine = _build_engine(
            project_root, config, rules, concurrency=concurrency, cache=cache, verbose=verbose
        )
        if paths:
            results = engine.validate_files(_unique_paths(paths))
        else:
            results = engine.validate_project(
                list(patterns) or None, list(excludes) or None
            )
    except ValidationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    stats = engine.get_stats()

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    if fmt == "json":
        click.echo(format_json(results, stats))
    elif fmt == "porcelain":
        output = format_porcelain(results)
        if output:
            click.echo(output)
    elif sys.stdout.isatty():
        from rich.console import Console

        render_rich(
            Console(), results, stats, group_by=group_by, show_suggestions=not no_suggestions
        )
    else:
        click.echo(
            format_rich(results, stats, group_by=group_by, show_suggestions=not no_suggestions)
        )

    sys.exit(EXIT_VIOLATIONS if has_errors(results) else EXIT_OK)


@main.command("rules")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--rules",
    "rule_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Rules file (.yml or .py). Repeatable.",
)
@click.option(
    "--preset",
    "presets",
    multiple=True,
    type=click.Choice(sorted(PRESETS)),
    help="Built-in rule set. Repeatable.",
)
def list_rules(
    *,
    project: Path | None,
    rule_files: tuple[Path, ...],
    presets: tuple[str, ...],
) -> None:
    """List the rules that `archgate check` would run."""
    from rich.console import Console
    from rich.table import Table

    project_root = (project or Path.cwd()).resolve()
    try:
        config = load_config(project_root)
        rules = _collect_rules(project_root, config, rule_files, presets)
    except ValidationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    table = Table(title=f"{len(rules)} rules", box=None, padding=(0, 1))
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("severity")
    table.add_column("category")
    table.add_column("name")
    for rule in rules:
        table.add_row(rule.id, rule.severity, rule.category, rule.name)
    Console(width=200).print(table)


_CONFIG_TEMPLATE = """\
# Archgate configuration
include:
  - "**/*.ts"
  - "**/*.js"
exclude:
  - "**/node_modules/**"
  - "**/dist/**"
  - "**/*.d.ts"
max_concurrency: 4
enable_cache: false
rules:
  - {rules_path}
presets: [{presets}]
"""

_RULES_TEMPLATE = """\
version: 1
rules:
  - id: example-no-console
    name: No console logging
    description: Use a logger instead of console output
    severity: warning
    category: conventions
    include: ["src/**/*.ts"]
    exclude: ["**/*.spec.ts"]
    forbid: "re:console\\\\.(log|debug)"
    suggestion: Inject a Logger and use it instead
"""


@main.command()
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--preset",
    "presets",
    multiple=True,
    type=click.Choice(sorted(PRESETS)),
    help="Enable a built-in rule set in the generated config.",
)
@click.option("--force", is_flag=True, help="Overwrite existing files.")
def init(*, project: Path | None, presets: tuple[str, ...], force: bool) -> None:
    """Create .archgate/config.yml and an example rules file."""
    project_root = project or Path.cwd()
    config_dir = project_root / CONFIG_DIR
    config_file = config_dir / CONFIG_FILE
    rules_file = config_dir / DEFAULT_RULES_FILE

    existing = [p for p in (config_file, rules_file) if p.exists()]
    if existing and not force:
        for p in existing:
            click.echo(f"Error: {p} already exists (use --force to overwrite)", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    config_dir.mkdir(parents=True, exist_ok=True)
    config_file.write_text(
        _CONFIG_TEMPLATE.format(
            rules_path=f"{CONFIG_DIR}/{DEFAULT_RULES_FILE}", presets=", ".join(presets)
        ),
        encoding="utf-8",
    )
    rules_file.write_text(_RULES_TEMPLATE, encoding="utf-8")

    click.echo(f"Config: {config_file}")
    click.echo(f"Rules: {rules_file}")
    click.echo("Run `archgate check` to validate the project.")
