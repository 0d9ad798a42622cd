"""Rule sets: built-in presets and loaders for project rule files."""

from __future__ import annotations

from archgate.engine.models import RuleSet, ValidationError
from archgate.rulesets.loader import load_rule_module, load_rule_source, load_rules
from archgate.rulesets.nestjs_plugins import NESTJS_PLUGIN_RULES

PRESETS: dict[str, RuleSet] = {
    NESTJS_PLUGIN_RULES.name: NESTJS_PLUGIN_RULES,
}


def get_preset(name: str) -> RuleSet:
    """Return the built-in rule set called *name*."""
    try:
        return PRESETS[name]
    except KeyError:
        msg = f"Unknown preset '{name}', must be one of {sorted(PRESETS)}"
        raise ValidationError(msg) from None


__all__ = [
    "NESTJS_PLUGIN_RULES",
    "PRESETS",
    "get_preset",
    "load_rule_module",
    "load_rule_source",
    "load_rules",
]
