"""Rule applicability and isolated evaluation for a single file."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from archgate.engine.models import SEVERITY_ERROR, Violation
from archgate.engine.patterns import matches_any, path_candidates

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import PurePath

    from archgate.engine.context import ValidationContext
    from archgate.engine.rules import ConstraintRule

logger = logging.getLogger(__name__)


def rule_applies(
    rule: ConstraintRule,
    file_path: str | PurePath,
    project_root: str | PurePath | None = None,
) -> bool:
    """Return True if *file_path* matches an include pattern and no exclude pattern."""
    candidates = path_candidates(file_path, project_root)
    if rule.exclude and matches_any(candidates, rule.exclude):
        return False
    return matches_any(candidates, rule.include)


def applicable_rules(
    rules: Iterable[ConstraintRule],
    file_path: str | PurePath,
    project_root: str | PurePath | None = None,
) -> list[ConstraintRule]:
    """Filter *rules* to those applying to *file_path*, keeping their order."""
    return [r for r in rules if rule_applies(r, file_path, project_root)]


def rule_failure_violation(rule: ConstraintRule, context: ValidationContext, exc: Exception) -> Violation:
    return Violation(
        rule_id=rule.id,
        severity=SEVERITY_ERROR,
        message=f"Rule '{rule.id}' failed: {type(exc).__name__}: {exc}",
        file=context.file,
        suggestion="Fix the rule implementation; the file was not checked by this rule",
    )


def evaluate_rule(rule: ConstraintRule, context: ValidationContext) -> list[Violation]:
    """Evaluate one rule against one context.

    Any exception raised by the evaluator, or a returned item that is not
    a :class:`Violation`, is converted into a single ``error`` violation
    carrying the rule's id.  Violations returned without a ``file`` are
    stamped with ``context.file``.
    """
    try:
        violations = rule.evaluate(context)
        for v in violations:
            if not isinstance(v, Violation):
                msg = f"evaluator returned {type(v).__name__}, expected Violation"
                raise TypeError(msg)
    except Exception as exc:
        logger.warning("Rule %s failed for %s: %s", rule.id, context.file_path, exc)
        logger.debug("Rule failure traceback", exc_info=True)
        return [rule_failure_violation(rule, context, exc)]

    return [
        v if v.file is not None else dataclasses.replace(v, file=context.file)
        for v in violations
    ]


def evaluate_rules(
    rules: Iterable[ConstraintRule],
    context: ValidationContext,
) -> tuple[list[Violation], int]:
    """Evaluate *rules* in order.

    Returns ``(violations, rules_executed)``.
    """
    violations: list[Violation] = []
    executed = 0
    for rule in rules:
        violations.extend(evaluate_rule(rule, context))
        executed += 1
    return violations, executed
