"""Tests for archgate.engine.rules: builder, rule invariants, and the registry."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest

from archgate.engine.context import build_context
from archgate.engine.models import DuplicateRuleError, ValidationError, Violation
from archgate.engine.patterns import MATCH_ALL
from archgate.engine.rules import (
    DEFAULT_CATEGORY,
    ConstraintRule,
    FunctionEvaluator,
    RuleEvaluator,
    RuleRegistry,
    create_rule,
)
from conftest import require_rule

if TYPE_CHECKING:
    from archgate.engine.context import ValidationContext


def _noop(ctx: ValidationContext) -> list[Violation]:
    return []


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class TestRuleBuilder:
    def test_defaults_applied_on_validate(self) -> None:
        rule = create_rule().id("r1").name("Rule one").description("desc").validate(_noop)
        assert rule.severity == "warning"
        assert rule.category == DEFAULT_CATEGORY
        assert rule.tags == ()
        assert rule.include == (MATCH_ALL,)
        assert rule.exclude == ()

    def test_missing_id(self) -> None:
        with pytest.raises(ValidationError, match="Rule ID is required"):
            create_rule().name("n").description("d").validate(_noop)

    def test_missing_name(self) -> None:
        with pytest.raises(ValidationError, match="Rule name is required"):
            create_rule().id("r").description("d").validate(_noop)

    def test_missing_description(self) -> None:
        with pytest.raises(ValidationError, match="Rule description is required"):
            create_rule().id("r").name("n").validate(_noop)

    def test_invalid_severity_rejected_by_builder(self) -> None:
        with pytest.raises(ValidationError, match="Invalid severity 'fatal'"):
            create_rule().severity("fatal")

    def test_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            create_rule().validate(_noop)

    def test_tags_and_patterns_accumulate(self) -> None:
        rule = (
            create_rule()
            .id("r")
            .name("n")
            .description("d")
            .tags("a")
            .tags("b", "c")
            .file_pattern("**/*.ts")
            .file_pattern(re.compile(r"\.js$"))
            .exclude_pattern("**/*.spec.ts")
            .validate(_noop)
        )
        assert rule.tags == ("a", "b", "c")
        assert len(rule.include) == 2
        assert len(rule.exclude) == 1

    def test_invalid_pattern_fails_at_build_time(self) -> None:
        with pytest.raises(ValidationError, match="Invalid regular expression"):
            create_rule().file_pattern("re:([unclosed")

    def test_empty_category_rejected(self) -> None:
        with pytest.raises(ValidationError, match="category"):
            create_rule().category("  ")

    def test_callable_wrapped_in_function_evaluator(self) -> None:
        rule = create_rule().id("r").name("n").description("d").validate(_noop)
        assert isinstance(rule.evaluator, FunctionEvaluator)
        assert isinstance(rule.evaluator, RuleEvaluator)

    def test_evaluator_object_kept_as_is(self) -> None:
        class Always:
            def evaluate(self, ctx: ValidationContext) -> list[Violation]:
                return [Violation(rule_id="r", severity="info", message="hi")]

        evaluator = Always()
        rule = create_rule().id("r").name("n").description("d").validate(evaluator)
        assert rule.evaluator is evaluator
        ctx = build_context("x", "/p/a.ts", "/p")
        assert [v.message for v in rule.evaluate(ctx)] == ["hi"]

    def test_non_callable_evaluator_rejected(self) -> None:
        with pytest.raises(ValidationError, match="evaluator"):
            create_rule().id("r").name("n").description("d").validate(42)  # type: ignore[arg-type]


class TestConstraintRule:
    def test_direct_construction_checks_severity(self) -> None:
        with pytest.raises(ValidationError, match="invalid severity"):
            ConstraintRule(
                id="r",
                name="n",
                description="d",
                severity="critical",
                category="general",
                tags=(),
                include=(MATCH_ALL,),
                exclude=(),
                evaluator=FunctionEvaluator(_noop),
            )

    def test_direct_construction_requires_include(self) -> None:
        with pytest.raises(ValidationError, match="include patterns"):
            ConstraintRule(
                id="r",
                name="n",
                description="d",
                severity="info",
                category="general",
                tags=(),
                include=(),
                exclude=(),
                evaluator=FunctionEvaluator(_noop),
            )

    def test_rule_is_immutable(self) -> None:
        rule = require_rule("r", "x")
        with pytest.raises(AttributeError):
            rule.severity = "info"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRuleRegistry:
    def test_registration_order_preserved(self) -> None:
        registry = RuleRegistry()
        registry.add_rule(require_rule("b", "x"))
        registry.add_rule(require_rule("a", "x"))
        registry.add_rules([require_rule("c", "x")])
        assert [r.id for r in registry.get_rules()] == ["b", "a", "c"]
        assert len(registry) == 3
        assert "a" in registry

    def test_duplicate_id_rejected(self) -> None:
        registry = RuleRegistry([require_rule("a", "x")])
        with pytest.raises(DuplicateRuleError, match="Duplicate rule id 'a'"):
            registry.add_rule(require_rule("a", "y"))
        assert len(registry) == 1

    def test_add_rules_is_atomic(self) -> None:
        registry = RuleRegistry([require_rule("a", "x")])
        with pytest.raises(DuplicateRuleError):
            registry.add_rules([require_rule("b", "x"), require_rule("a", "x")])
        assert [r.id for r in registry.get_rules()] == ["a"]

    def test_duplicate_within_batch_rejected(self) -> None:
        registry = RuleRegistry()
        with pytest.raises(DuplicateRuleError):
            registry.add_rules([require_rule("a", "x"), require_rule("a", "y")])
        assert len(registry) == 0

    def test_remove_rule(self) -> None:
        registry = RuleRegistry([require_rule("a", "x"), require_rule("b", "x")])
        assert registry.remove_rule("a") == 1
        assert registry.remove_rule("missing") == 0
        assert [r.id for r in registry.get_rules()] == ["b"]

    def test_get_rules_returns_copy(self) -> None:
        registry = RuleRegistry([require_rule("a", "x")])
        registry.get_rules().clear()
        assert len(registry) == 1

    def test_clear(self) -> None:
        registry = RuleRegistry([require_rule("a", "x")])
        registry.clear()
        assert registry.get_rules() == []
