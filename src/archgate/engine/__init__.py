"""Constraint validation engine: rules, contexts, matching, orchestration, stats."""

from archgate.engine.cache import ResultCache, content_hash
from archgate.engine.context import (
    CapabilityIndex,
    PluginContext,
    ValidationContext,
    build_capability_index,
    build_context,
    detect_language,
    with_capabilities,
)
from archgate.engine.engine import FILE_READ_ERROR, ConstraintEngine
from archgate.engine.helpers import contains, create_violation, find_matches, matches_any_pattern
from archgate.engine.matcher import applicable_rules, evaluate_rule, evaluate_rules, rule_applies
from archgate.engine.models import (
    DuplicateRuleError,
    EngineStats,
    RuleSet,
    ValidationError,
    ValidationResult,
    Violation,
)
from archgate.engine.rules import (
    ConstraintRule,
    FunctionEvaluator,
    RuleBuilder,
    RuleEvaluator,
    RuleRegistry,
    create_rule,
)
from archgate.engine.stats import StatsAggregator

__all__ = [
    "FILE_READ_ERROR",
    "CapabilityIndex",
    "ConstraintEngine",
    "ConstraintRule",
    "DuplicateRuleError",
    "EngineStats",
    "FunctionEvaluator",
    "PluginContext",
    "ResultCache",
    "RuleBuilder",
    "RuleEvaluator",
    "RuleRegistry",
    "RuleSet",
    "StatsAggregator",
    "ValidationContext",
    "ValidationError",
    "ValidationResult",
    "Violation",
    "applicable_rules",
    "build_capability_index",
    "build_context",
    "contains",
    "content_hash",
    "create_rule",
    "create_violation",
    "detect_language",
    "evaluate_rule",
    "evaluate_rules",
    "find_matches",
    "matches_any_pattern",
    "rule_applies",
    "with_capabilities",
]
