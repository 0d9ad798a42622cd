"""Constraint rules: the immutable rule type, its fluent builder, and the registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from archgate.engine.models import (
    SEVERITY_WARNING,
    VALID_SEVERITIES,
    DuplicateRuleError,
    ValidationError,
)
from archgate.engine.patterns import MATCH_ALL, compile_pattern

if TYPE_CHECKING:
    import re
    from collections.abc import Callable, Iterable

    from archgate.engine.context import ValidationContext
    from archgate.engine.models import Violation
    from archgate.engine.patterns import PatternLike

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"

# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------


@runtime_checkable
class RuleEvaluator(Protocol):
    """The single behaviour slot of a rule."""

    def evaluate(self, context: ValidationContext) -> Iterable[Violation]: ...


@dataclass(frozen=True)
class FunctionEvaluator:
    """Adapts a plain ``context -> violations`` callable to :class:`RuleEvaluator`."""

    func: Callable[[ValidationContext], Iterable[Violation]]

    def evaluate(self, context: ValidationContext) -> Iterable[Violation]:
        return self.func(context)


# ---------------------------------------------------------------------------
# Rule
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConstraintRule:
    """A named, severity-tagged predicate over file content."""

    id: str
    name: str
    description: str
    severity: str
    category: str
    tags: tuple[str, ...]
    include: tuple[re.Pattern[str], ...]
    exclude: tuple[re.Pattern[str], ...]
    evaluator: RuleEvaluator

    def __post_init__(self) -> None:
        if self.severity not in VALID_SEVERITIES:
            msg = (
                f"Rule '{self.id}': invalid severity '{self.severity}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise ValidationError(msg)
        if not self.include:
            msg = f"Rule '{self.id}': include patterns must not be empty"
            raise ValidationError(msg)

    def evaluate(self, context: ValidationContext) -> list[Violation]:
        return list(self.evaluator.evaluate(context))


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class RuleBuilder:
    """Fluent construction of a :class:`ConstraintRule`.

    Tags and patterns accumulate across calls.  :meth:`validate` finalizes
    the rule and is the only place defaults are applied::

        rule = (
            create_rule()
            .id("must-extend-base")
            .name("Must extend base")
            .description("Plugins extend BaseActionPlugin")
            .severity("error")
            .file_pattern("src/plugins/**/*.plugin.ts")
            .validate(check_extends)
        )
    """

    def __init__(self) -> None:
        self._id: str | None = None
        self._name: str | None = None
        self._description: str | None = None
        self._severity: str | None = None
        self._category: str | None = None
        self._tags: list[str] = []
        self._include: list[re.Pattern[str]] = []
        self._exclude: list[re.Pattern[str]] = []

    def id(self, rule_id: str) -> RuleBuilder:
        self._id = rule_id
        return self

    def name(self, name: str) -> RuleBuilder:
        self._name = name
        return self

    def description(self, description: str) -> RuleBuilder:
        self._description = description
        return self

    def severity(self, severity: str) -> RuleBuilder:
        if severity not in VALID_SEVERITIES:
            msg = f"Invalid severity '{severity}', must be one of {sorted(VALID_SEVERITIES)}"
            raise ValidationError(msg)
        self._severity = severity
        return self

    def category(self, category: str) -> RuleBuilder:
        if not isinstance(category, str) or not category.strip():
            msg = "Rule category must be a non-empty string"
            raise ValidationError(msg)
        self._category = category
        return self

    def tags(self, *tags: str) -> RuleBuilder:
        self._tags.extend(tags)
        return self

    def file_pattern(self, *patterns: PatternLike) -> RuleBuilder:
        self._include.extend(compile_pattern(p) for p in patterns)
        return self

    def exclude_pattern(self, *patterns: PatternLike) -> RuleBuilder:
        self._exclude.extend(compile_pattern(p) for p in patterns)
        return self

    def validate(
        self,
        evaluator: RuleEvaluator | Callable[[ValidationContext], Iterable[Violation]],
    ) -> ConstraintRule:
        """Attach the evaluator and finalize the rule.

        Raises
        ------
        ValidationError
            When id, name, or description is missing, or *evaluator* is
            neither a :class:`RuleEvaluator` nor callable.
        """
        if not self._id:
            msg = "Rule ID is required"
            raise ValidationError(msg)
        if not self._name:
            msg = "Rule name is required"
            raise ValidationError(msg)
        if not self._description:
            msg = "Rule description is required"
            raise ValidationError(msg)

        if isinstance(evaluator, RuleEvaluator):
            resolved: RuleEvaluator = evaluator
        elif callable(evaluator):
            resolved = FunctionEvaluator(evaluator)
        else:
            msg = f"Rule '{self._id}': evaluator must be callable or define evaluate()"
            raise ValidationError(msg)

        return ConstraintRule(
            id=self._id,
            name=self._name,
            description=self._description,
            severity=self._severity or SEVERITY_WARNING,
            category=self._category or DEFAULT_CATEGORY,
            tags=tuple(self._tags),
            include=tuple(self._include) or (MATCH_ALL,),
            exclude=tuple(self._exclude),
            evaluator=resolved,
        )


def create_rule() -> RuleBuilder:
    """Start building a new rule."""
    return RuleBuilder()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Ordered set of active rules.

    Rule ids are unique: registering an id that is already present raises
    :class:`DuplicateRuleError`.  Registration order is evaluation order.
    """

    def __init__(self, rules: Iterable[ConstraintRule] = ()) -> None:
        self._rules: list[ConstraintRule] = []
        self.add_rules(rules)

    def add_rule(self, rule: ConstraintRule) -> None:
        if rule.id in self:
            msg = f"Duplicate rule id '{rule.id}'"
            raise DuplicateRuleError(msg)
        self._rules.append(rule)
        logger.debug("Registered rule %s", rule.id)

    def add_rules(self, rules: Iterable[ConstraintRule]) -> None:
        """Register several rules; nothing is added if any id clashes."""
        batch = list(rules)
        seen = {r.id for r in self._rules}
        for rule in batch:
            if rule.id in seen:
                msg = f"Duplicate rule id '{rule.id}'"
                raise DuplicateRuleError(msg)
            seen.add(rule.id)
        self._rules.extend(batch)
        if batch:
            logger.debug("Registered %d rules", len(batch))

    def remove_rule(self, rule_id: str) -> int:
        """Remove the rule with *rule_id*; return how many were removed."""
        before = len(self._rules)
        self._rules = [r for r in self._rules if r.id != rule_id]
        return before - len(self._rules)

    def get_rules(self) -> list[ConstraintRule]:
        return list(self._rules)

    def clear(self) -> None:
        self._rules.clear()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(r.id == rule_id for r in self._rules)
