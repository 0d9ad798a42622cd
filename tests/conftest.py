"""Shared test fixtures for archgate."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archgate.engine.helpers import create_violation
from archgate.engine.rules import ConstraintRule, create_rule

if TYPE_CHECKING:
    from pathlib import Path

    from archgate.engine.context import ValidationContext
    from archgate.engine.models import Violation


GOOD_PLUGIN = """\
import { Injectable } from '@nestjs/common';
import { BaseActionPlugin } from '../core/base-plugin.abstract';
import { PluginMetadata, ActionSchema, ValidationRule } from '../core/plugin.interface';

@Injectable()
export class WeatherPlugin extends BaseActionPlugin {
  readonly metadata: PluginMetadata = {
    name: 'weather',
    version: '1.0.0',
    description: 'Fetches the weather',
    author: 'Platform Team',
    category: 'utility',
  };

  readonly schema: ActionSchema = { request: WeatherRequest, response: WeatherResponse };

  readonly validationRules: ValidationRule[] = [];

  async execute(input: any): Promise<any> {
    return { ok: true };
  }

  async healthCheck(): Promise<boolean> {
    return true;
  }
}
"""

BAD_PLUGIN = """\
export class Weather {
  execute(input) {
    console.log('running');
    return input;
  }
}
"""


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal TypeScript project layout."""
    (tmp_path / "src" / "plugins").mkdir(parents=True)
    (tmp_path / "src" / "services").mkdir(parents=True)
    return tmp_path


def require_rule(
    rule_id: str,
    needle: str,
    *,
    severity: str = "error",
    include: tuple[str, ...] = (),
    exclude: tuple[str, ...] = (),
) -> ConstraintRule:
    """Build a rule reporting once when *needle* is missing from the content."""

    def check(ctx: ValidationContext) -> list[Violation]:
        if needle in ctx.content:
            return []
        return [create_violation(rule_id, severity, f"Missing {needle}", ctx)]

    builder = (
        create_rule()
        .id(rule_id)
        .name(rule_id.replace("-", " ").title())
        .description(f"Content must contain {needle}")
        .severity(severity)
    )
    if include:
        builder.file_pattern(*include)
    if exclude:
        builder.exclude_pattern(*exclude)
    return builder.validate(check)
