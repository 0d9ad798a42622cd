"""Constraint engine: validates files against registered rules concurrently."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from archgate.engine.cache import ResultCache, content_hash
from archgate.engine.context import build_context, with_capabilities
from archgate.engine.matcher import applicable_rules, evaluate_rules
from archgate.engine.models import SEVERITY_ERROR, ValidationResult, Violation
from archgate.engine.rules import RuleRegistry
from archgate.engine.stats import StatsAggregator

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from typing import Any

    from archgate.engine.models import EngineStats, RuleSet
    from archgate.engine.rules import ConstraintRule
    from archgate.infrastructure.config import EngineOptions

    FileReader = Callable[[Path], str]
    FileDiscoverer = Callable[[Path, Sequence[str], Sequence[str]], list[Path]]

logger = logging.getLogger(__name__)

FILE_READ_ERROR = "file-read-error"


class ConstraintEngine:
    """Validate source files against a registry of constraint rules.

    File reading and discovery are injected collaborators; by default the
    engine reads UTF-8 text from disk and resolves globs under the project
    root.  Statistics accumulate across calls until :meth:`reset_stats`.
    """

    def __init__(
        self,
        options: EngineOptions,
        *,
        reader: FileReader | None = None,
        discover: FileDiscoverer | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        # Lazy import: infrastructure.files depends on engine.patterns.
        from archgate.infrastructure.files import discover_files, read_text_file

        self._options = options
        self._reader: FileReader = reader or read_text_file
        self._discover: FileDiscoverer = discover or discover_files
        self._metadata = dict(metadata or {})
        self._registry = RuleRegistry()
        self._stats = StatsAggregator()
        self._cache: ResultCache | None = ResultCache() if options.enable_cache else None

    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def cache(self) -> ResultCache | None:
        return self._cache

    # -----------------------------------------------------------------------
    # Rule registry
    # -----------------------------------------------------------------------

    def add_rule(self, rule: ConstraintRule) -> None:
        self._registry.add_rule(rule)
        self._invalidate_cache()

    def add_rules(self, rules: Iterable[ConstraintRule]) -> None:
        self._registry.add_rules(rules)
        self._invalidate_cache()

    def add_rule_set(self, rule_set: RuleSet) -> None:
        logger.debug("Adding rule set %s v%s", rule_set.name, rule_set.version)
        self.add_rules(rule_set.rules)

    def remove_rule(self, rule_id: str) -> int:
        removed = self._registry.remove_rule(rule_id)
        if removed:
            self._invalidate_cache()
        return removed

    def get_rules(self) -> list[ConstraintRule]:
        return self._registry.get_rules()

    def _invalidate_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    # -----------------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------------

    def validate_file(self, file_path: str | Path) -> ValidationResult:
        """Validate one file against every applicable rule.

        Read failures produce a result holding a single ``file-read-error``
        violation instead of raising.
        """
        start = time.perf_counter()
        path = Path(file_path)
        display = str(file_path)

        try:
            content = self._reader(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read file: %s (%s)", display, exc)
            result = ValidationResult(
                file=display,
                violations=(
                    Violation(
                        rule_id=FILE_READ_ERROR,
                        severity=SEVERITY_ERROR,
                        message=f"Failed to read file: {exc}",
                        file=path.name,
                    ),
                ),
                execution_time=_elapsed_ms(start),
            )
            self._stats.record_file(
                result.violations, rules_executed=0, execution_time=result.execution_time
            )
            return result

        digest: str | None = None
        if self._cache is not None:
            digest = content_hash(content)
            cached = self._cache.get(display, digest)
            if cached is not None:
                logger.debug("Cache hit: %s", display)
                self._stats.record_file(
                    cached.violations, rules_executed=0, execution_time=_elapsed_ms(start)
                )
                return ValidationResult(
                    file=cached.file,
                    violations=cached.violations,
                    execution_time=cached.execution_time,
                    cached=True,
                )

        project_root = self._options.project_root
        rules = applicable_rules(self._registry.get_rules(), path, project_root)

        violations: list[Violation] = []
        executed = 0
        if rules:
            context = with_capabilities(
                build_context(content, display, project_root, self._metadata)
            )
            violations, executed = evaluate_rules(rules, context)

        result = ValidationResult(
            file=display,
            violations=tuple(violations),
            execution_time=_elapsed_ms(start),
        )
        self._stats.record_file(
            result.violations, rules_executed=executed, execution_time=result.execution_time
        )
        if self._cache is not None and digest is not None:
            self._cache.put(display, digest, result)

        logger.debug(
            "Validated %s: %d rules, %d violations", display, executed, len(result.violations)
        )
        return result

    def validate_files(self, file_paths: Sequence[str | Path]) -> list[ValidationResult]:
        """Validate files on a bounded thread pool.

        Results are returned in the order of *file_paths*, whatever order
        the workers finish in.
        """
        paths = list(file_paths)
        if not paths:
            return []

        workers = min(self._options.max_concurrency, len(paths))
        logger.debug("Validating %d files with %d workers", len(paths), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="archgate") as executor:
            return list(executor.map(self.validate_file, paths))

    def validate_project(
        self,
        patterns: Sequence[str] | None = None,
        exclude: Sequence[str] | None = None,
    ) -> list[ValidationResult]:
        """Discover files under the project root and validate them."""
        include = list(patterns) if patterns is not None else list(self._options.include)
        excluded = list(exclude) if exclude is not None else list(self._options.exclude)
        files = self._discover(self._options.project_root, include, excluded)
        if self._options.verbose:
            logger.info("Found %d files to validate", len(files))
        return self.validate_files(files)

    # -----------------------------------------------------------------------
    # Statistics
    # -----------------------------------------------------------------------

    def get_stats(self) -> EngineStats:
        return self._stats.snapshot()

    def reset_stats(self) -> None:
        self._stats.reset()


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
