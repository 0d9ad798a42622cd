"""Rule loading: declarative rules.yml files and Python rule modules."""

from __future__ import annotations

import importlib.util
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from archgate.engine.helpers import contains, create_violation, find_matches
from archgate.engine.models import SEVERITY_WARNING, RuleSet, ValidationError
from archgate.engine.patterns import REGEX_PREFIX
from archgate.engine.rules import ConstraintRule, create_rule

if TYPE_CHECKING:
    from pathlib import Path

    from archgate.engine.context import ValidationContext
    from archgate.engine.models import Violation
    from archgate.engine.patterns import PatternLike
    from archgate.engine.rules import RuleEvaluator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})

# Capability check kinds -> PluginContext query method.
CAPABILITY_KINDS: dict[str, str] = {
    "require_class": "has_class",
    "require_method": "has_method",
    "require_import": "has_import",
    "require_decorator": "has_decorator",
    "require_interface": "has_interface",
}

CHECK_KINDS: tuple[str, ...] = ("require", "forbid", *CAPABILITY_KINDS)

# ---------------------------------------------------------------------------
# Declarative evaluators
# ---------------------------------------------------------------------------


def _parse_value_pattern(raw: object, context: str) -> PatternLike:
    """A plain string is a literal; ``re:<expr>`` is a regular expression."""
    if not isinstance(raw, str) or not raw:
        msg = f"{context} must be a non-empty string"
        raise ValueError(msg)
    if raw.startswith(REGEX_PREFIX):
        expr = raw[len(REGEX_PREFIX) :]
        try:
            return re.compile(expr)
        except re.error as exc:
            msg = f"{context}: invalid regular expression {expr!r}: {exc}"
            raise ValueError(msg) from exc
    return raw


def _describe(pattern: PatternLike) -> str:
    return pattern if isinstance(pattern, str) else f"/{pattern.pattern}/"


@dataclass(frozen=True)
class RequireContent:
    """Report once when the content lacks *pattern*."""

    rule_id: str
    severity: str
    pattern: PatternLike
    message: str | None = None
    suggestion: str | None = None

    def evaluate(self, context: ValidationContext) -> list[Violation]:
        if contains(context.content, self.pattern):
            return []
        message = self.message or f"Missing required content: {_describe(self.pattern)}"
        return [
            create_violation(
                self.rule_id, self.severity, message, context, suggestion=self.suggestion
            )
        ]


@dataclass(frozen=True)
class ForbidContent:
    """Report every line match of *pattern*."""

    rule_id: str
    severity: str
    pattern: PatternLike
    message: str | None = None
    suggestion: str | None = None

    def evaluate(self, context: ValidationContext) -> list[Violation]:
        violations: list[Violation] = []
        for match in find_matches(context.content, self.pattern):
            message = self.message or f"Forbidden content: {match.text}"
            violations.append(
                create_violation(
                    self.rule_id,
                    self.severity,
                    message,
                    context,
                    suggestion=self.suggestion,
                    line=match.line,
                    column=match.column,
                    source=match.line_text.strip(),
                )
            )
        return violations


@dataclass(frozen=True)
class RequireCapability:
    """Report once when a capability query on the context fails."""

    rule_id: str
    severity: str
    query: str  # PluginContext method name, e.g. "has_class"
    pattern: PatternLike
    message: str | None = None
    suggestion: str | None = None

    def evaluate(self, context: ValidationContext) -> list[Violation]:
        check = getattr(context, self.query)
        if check(self.pattern):
            return []
        what = self.query.removeprefix("has_")
        message = self.message or f"Missing required {what}: {_describe(self.pattern)}"
        return [
            create_violation(
                self.rule_id, self.severity, message, context, suggestion=self.suggestion
            )
        ]


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _str_list(rule_data: dict[str, object], key: str, rule_id: str) -> list[str]:
    raw = rule_data.get(key)
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        msg = f"Rule '{rule_id}': '{key}' must be a string or a list"
        raise ValueError(msg)
    return [str(item) for item in raw]


def _optional_str(rule_data: dict[str, object], key: str) -> str | None:
    raw = rule_data.get(key)
    return str(raw) if raw is not None else None


def _parse_rule(rule_data: dict[str, object], idx: int) -> ConstraintRule:
    rule_id = rule_data.get("id")
    if rule_id is None or not isinstance(rule_id, str) or not rule_id.strip():
        msg = f"rule at index {idx} missing required 'id' field"
        raise ValueError(msg)

    kinds = [k for k in CHECK_KINDS if k in rule_data]
    if len(kinds) != 1:
        msg = f"Rule '{rule_id}' must have exactly one of {', '.join(repr(k) for k in CHECK_KINDS)}"
        raise ValueError(msg)
    kind = kinds[0]

    builder = create_rule().id(rule_id)
    if rule_data.get("name") is not None:
        builder.name(str(rule_data["name"]))
    if rule_data.get("description") is not None:
        builder.description(str(rule_data["description"]))
    raw_severity = rule_data.get("severity")
    severity = str(raw_severity) if raw_severity is not None else SEVERITY_WARNING
    builder.severity(severity)
    if rule_data.get("category") is not None:
        builder.category(str(rule_data["category"]))
    builder.tags(*_str_list(rule_data, "tags", rule_id))
    builder.file_pattern(*_str_list(rule_data, "include", rule_id))
    builder.exclude_pattern(*_str_list(rule_data, "exclude", rule_id))

    pattern = _parse_value_pattern(rule_data[kind], f"Rule '{rule_id}' {kind}")
    message = _optional_str(rule_data, "message")
    suggestion = _optional_str(rule_data, "suggestion")

    if kind == "require":
        evaluator: RuleEvaluator = RequireContent(rule_id, severity, pattern, message, suggestion)
    elif kind == "forbid":
        evaluator = ForbidContent(rule_id, severity, pattern, message, suggestion)
    else:
        evaluator = RequireCapability(
            rule_id, severity, CAPABILITY_KINDS[kind], pattern, message, suggestion
        )

    return builder.validate(evaluator)


def load_rules(rules_path: Path) -> list[ConstraintRule]:
    """Parse a rules.yml file into finalized rules.

    Raises :class:`ValidationError` on schema errors (missing version,
    duplicate ids, unknown check kinds, bad patterns, ...).
    """
    try:
        with rules_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        msg = f"{rules_path}: cannot read rules file: {exc}"
        raise ValidationError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f"{rules_path}: invalid YAML: {exc}"
        raise ValidationError(msg) from exc

    if not isinstance(data, dict):
        msg = f"{rules_path.name} must be a YAML mapping"
        raise ValidationError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{rules_path.name}: missing required 'version' field"
        raise ValidationError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{rules_path.name}: unsupported version {version}, expected one of {expected}"
        raise ValidationError(msg)

    rules_data = data.get("rules", [])
    if not isinstance(rules_data, list):
        msg = f"{rules_path.name}: 'rules' must be a list"
        raise ValidationError(msg)

    seen_ids: set[str] = set()
    rules: list[ConstraintRule] = []
    for idx, rule_data in enumerate(rules_data):
        if not isinstance(rule_data, dict):
            msg = f"{rules_path.name}: rule at index {idx} must be a mapping"
            raise ValidationError(msg)
        try:
            rule = _parse_rule(rule_data, idx)
        except ValueError as exc:
            msg = f"{rules_path.name}: {exc}"
            raise ValidationError(msg) from exc

        if rule.id in seen_ids:
            msg = f"{rules_path.name}: Duplicate rule id '{rule.id}'"
            raise ValidationError(msg)
        seen_ids.add(rule.id)
        rules.append(rule)

    logger.debug("Loaded %d rules from %s", len(rules), rules_path)
    return rules


# ---------------------------------------------------------------------------
# Python rule modules
# ---------------------------------------------------------------------------


def load_rule_module(module_path: Path) -> list[ConstraintRule]:
    """Import a Python file exporting ``RULE_SET`` or ``RULES``."""
    module_name = f"archgate_rules_{module_path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        msg = f"{module_path}: cannot import rule module"
        raise ValidationError(msg)

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except FileNotFoundError as exc:
        msg = f"{module_path}: rule module not found"
        raise ValidationError(msg) from exc
    except Exception as exc:
        msg = f"{module_path}: failed to import rule module: {type(exc).__name__}: {exc}"
        raise ValidationError(msg) from exc

    rule_set = getattr(module, "RULE_SET", None)
    if isinstance(rule_set, RuleSet):
        return list(rule_set.rules)

    rules = getattr(module, "RULES", None)
    if isinstance(rules, (list, tuple)) and all(isinstance(r, ConstraintRule) for r in rules):
        return list(rules)

    msg = f"{module_path}: rule module must define RULE_SET (a RuleSet) or RULES (a list of rules)"
    raise ValidationError(msg)


def load_rule_source(path: Path) -> list[ConstraintRule]:
    """Load rules from a ``.yml``/``.yaml`` file or a ``.py`` module."""
    suffix = path.suffix.lower()
    if suffix in (".yml", ".yaml"):
        return load_rules(path)
    if suffix == ".py":
        return load_rule_module(path)
    msg = f"{path}: unsupported rules file type '{suffix}' (expected .yml, .yaml or .py)"
    raise ValidationError(msg)
