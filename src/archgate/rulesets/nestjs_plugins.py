"""NestJS plugin-architecture preset.

Checks that ``src/plugins/*.plugin.ts`` files follow the plugin contract:
extend ``BaseActionPlugin``, carry ``@Injectable()``, declare metadata,
schema and validation rules, implement async ``execute``/``healthCheck``,
and keep to the naming, logging and secrets conventions.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from archgate.engine.helpers import contains, create_violation, find_matches
from archgate.engine.models import RuleSet
from archgate.engine.rules import create_rule

if TYPE_CHECKING:
    from collections.abc import Callable

    from archgate.engine.context import PluginContext
    from archgate.engine.models import Violation
    from archgate.engine.rules import RuleBuilder

PLUGIN_FILE = re.compile(r"src/plugins/.*\.plugin\.ts$")
PLUGIN_DIR_TS = re.compile(r"src/plugins/.*\.ts$")

VALID_PLUGIN_CATEGORIES: tuple[str, ...] = ("business", "utility", "integration", "auth")
REQUIRED_METADATA_FIELDS: tuple[str, ...] = ("name", "version", "description", "author", "category")

# (module specifier, names the plugin needs from it)
REQUIRED_IMPORTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("@nestjs/common", ("Injectable",)),
    ("../core/base-plugin.abstract", ("BaseActionPlugin",)),
    ("../core/plugin.interface", ("PluginMetadata", "ActionSchema", "ValidationRule")),
)

_CONSOLE_RE = re.compile(r"console\.(log|warn|error|debug)")
_CATEGORY_RE = re.compile(r"""category:\s*['"]([^'"]+)['"]""")
_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""(?:api_key|apikey|password|secret|token)\s*[:=]\s*['"][^'"\n]{8,}['"]"""),
    re.compile(r"(?:sk_|pk_)[a-zA-Z0-9]{20,}"),
    re.compile(r"[A-Za-z0-9+/]{40,}"),  # base64-looking blobs
)
_PLUGIN_CLASS = re.compile(r"Plugin$")

# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


def _check_extends_base(ctx: PluginContext) -> list[Violation]:
    if contains(ctx.content, "extends BaseActionPlugin"):
        return []
    return [
        create_violation(
            "must-extend-base-plugin",
            "error",
            f"Plugin class '{cls}' must extend BaseActionPlugin",
            ctx,
            suggestion='Add "extends BaseActionPlugin" to your plugin class declaration',
        )
        for cls in ctx.get_classes()
        if cls.endswith("Plugin")
    ]


def _check_injectable(ctx: PluginContext) -> list[Violation]:
    if ctx.has_class(_PLUGIN_CLASS) and not ctx.has_decorator("Injectable"):
        return [
            create_violation(
                "must-have-injectable-decorator",
                "error",
                "Plugin class must have @Injectable() decorator",
                ctx,
                suggestion="Add @Injectable() decorator above your plugin class",
            )
        ]
    return []


def _check_metadata(ctx: PluginContext) -> list[Violation]:
    violations: list[Violation] = []
    if not contains(ctx.content, "readonly metadata: PluginMetadata"):
        violations.append(
            create_violation(
                "must-have-metadata",
                "error",
                'Plugin must have "readonly metadata: PluginMetadata" property',
                ctx,
                suggestion=(
                    'Add: readonly metadata: PluginMetadata = { name: "...", version: "...", ... }'
                ),
            )
        )

    missing = [f for f in REQUIRED_METADATA_FIELDS if not contains(ctx.content, f"{f}:")]
    if missing:
        violations.append(
            create_violation(
                "must-have-metadata",
                "error",
                f"Plugin metadata missing required fields: {', '.join(missing)}",
                ctx,
                suggestion=f"Add missing fields to metadata: {', '.join(missing)}",
            )
        )
    return violations


def _require_property(
    rule_id: str, declaration: str, suggestion: str
) -> Callable[[PluginContext], list[Violation]]:
    def check(ctx: PluginContext) -> list[Violation]:
        if contains(ctx.content, declaration):
            return []
        return [
            create_violation(
                rule_id,
                "error",
                f'Plugin must have "{declaration}" property',
                ctx,
                suggestion=suggestion,
            )
        ]

    return check


def _check_execute(ctx: PluginContext) -> list[Violation]:
    violations: list[Violation] = []
    if ctx.has_class(_PLUGIN_CLASS) and not ctx.has_method(re.compile(r"^execute$")):
        violations.append(
            create_violation(
                "must-implement-execute",
                "error",
                "Plugin must implement execute method",
                ctx,
                suggestion="Add: async execute(input: any): Promise<any> { ... }",
            )
        )
    if contains(ctx.content, "execute(") and not contains(ctx.content, "async execute("):
        violations.append(
            create_violation(
                "must-implement-execute",
                "error",
                "execute method must be async",
                ctx,
                suggestion='Add "async" keyword: async execute(input: any): Promise<any>',
            )
        )
    return violations


def _check_health_check(ctx: PluginContext) -> list[Violation]:
    violations: list[Violation] = []
    if ctx.has_class(_PLUGIN_CLASS) and not ctx.has_method(re.compile(r"^healthCheck$")):
        violations.append(
            create_violation(
                "must-implement-health-check",
                "error",
                "Plugin must implement healthCheck method",
                ctx,
                suggestion="Add: async healthCheck(): Promise<boolean> { return true; }",
            )
        )
    if contains(ctx.content, "healthCheck()") and not contains(ctx.content, "Promise<boolean>"):
        violations.append(
            create_violation(
                "must-implement-health-check",
                "error",
                "healthCheck method must return Promise<boolean>",
                ctx,
                suggestion="Change signature to: async healthCheck(): Promise<boolean>",
            )
        )
    return violations


# ---------------------------------------------------------------------------
# Imports and naming
# ---------------------------------------------------------------------------


def _check_imports(ctx: PluginContext) -> list[Violation]:
    return [
        create_violation(
            "must-import-required-modules",
            "error",
            f"Missing import from {module}",
            ctx,
            suggestion=f"Add: import {{ {', '.join(names)} }} from '{module}';",
        )
        for module, names in REQUIRED_IMPORTS
        if not ctx.has_import(module)
    ]


def _check_file_name(ctx: PluginContext) -> list[Violation]:
    if ctx.file.endswith(".plugin.ts"):
        return []
    return [
        create_violation(
            "plugin-file-naming",
            "warning",
            "Plugin files should end with .plugin.ts",
            ctx,
            suggestion="Rename file to follow pattern: feature-name.plugin.ts",
        )
    ]


def _check_class_name(ctx: PluginContext) -> list[Violation]:
    return [
        create_violation(
            "plugin-class-naming",
            "error",
            f"Plugin class '{cls}' must end with 'Plugin'",
            ctx,
            suggestion=f"Rename class to '{cls}Plugin'",
        )
        for cls in ctx.get_classes()
        if not cls.endswith("Plugin")
    ]


def _check_category(ctx: PluginContext) -> list[Violation]:
    match = _CATEGORY_RE.search(ctx.content)
    if match is None or match.group(1) in VALID_PLUGIN_CATEGORIES:
        return []
    valid = ", ".join(VALID_PLUGIN_CATEGORIES)
    return [
        create_violation(
            "metadata-category-validation",
            "error",
            f"Invalid category '{match.group(1)}'. Must be one of: {valid}",
            ctx,
            suggestion=f"Use valid category: {valid}",
        )
    ]


# ---------------------------------------------------------------------------
# Security and testing
# ---------------------------------------------------------------------------


def _check_console(ctx: PluginContext) -> list[Violation]:
    return [
        create_violation(
            "no-console-logging",
            "warning",
            f"Avoid {m.text}() - use Logger service instead",
            ctx,
            suggestion="Import Logger from @nestjs/common and use proper logging",
            line=m.line,
            column=m.column,
            source=m.line_text.strip(),
        )
        for m in find_matches(ctx.content, _CONSOLE_RE)
    ]


def _check_secrets(ctx: PluginContext) -> list[Violation]:
    return [
        create_violation(
            "no-hardcoded-secrets",
            "error",
            "Potential hardcoded secret detected",
            ctx,
            suggestion="Use environment variables or configuration service for secrets",
            line=m.line,
            column=m.column,
        )
        for pattern in _SECRET_PATTERNS
        for m in find_matches(ctx.content, pattern)
    ]


def _check_test_file(ctx: PluginContext) -> list[Violation]:
    spec_path = Path(ctx.file_path.replace(".plugin.ts", ".plugin.spec.ts"))
    if spec_path.is_file():
        return []
    return [
        create_violation(
            "must-have-test-file",
            "warning",
            f"Missing test file: {ctx.file.replace('.plugin.ts', '.plugin.spec.ts')}",
            ctx,
            suggestion="Create corresponding test file for your plugin",
        )
    ]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _plugin_rule(
    rule_id: str, name: str, description: str, severity: str, category: str
) -> RuleBuilder:
    return (
        create_rule()
        .id(rule_id)
        .name(name)
        .description(description)
        .severity(severity)
        .category(category)
        .tags("plugins")
        .file_pattern(PLUGIN_FILE)
    )


NESTJS_PLUGIN_RULES = RuleSet(
    name="nestjs-plugins",
    version="1.0.0",
    description="NestJS plugin architecture constraints",
    rules=(
        _plugin_rule(
            "must-extend-base-plugin",
            "Must Extend BaseActionPlugin",
            "All plugin classes must extend BaseActionPlugin",
            "error",
            "architecture",
        )
        .tags("inheritance")
        .validate(_check_extends_base),
        _plugin_rule(
            "must-have-injectable-decorator",
            "Must Have Injectable Decorator",
            "Plugin classes must have @Injectable() decorator",
            "error",
            "architecture",
        )
        .tags("decorators", "nestjs")
        .validate(_check_injectable),
        _plugin_rule(
            "must-have-metadata",
            "Must Have Metadata Property",
            "Plugins must define readonly metadata property",
            "error",
            "architecture",
        )
        .tags("metadata")
        .validate(_check_metadata),
        _plugin_rule(
            "must-have-schema",
            "Must Have Schema Property",
            "Plugins must define readonly schema property",
            "error",
            "architecture",
        )
        .tags("schema")
        .validate(
            _require_property(
                "must-have-schema",
                "readonly schema: ActionSchema",
                "Add: readonly schema: ActionSchema = { request: RequestType, "
                "response: ResponseType }",
            )
        ),
        _plugin_rule(
            "must-have-validation-rules",
            "Must Have Validation Rules",
            "Plugins must define validation rules",
            "error",
            "architecture",
        )
        .tags("validation")
        .validate(
            _require_property(
                "must-have-validation-rules",
                "readonly validationRules: ValidationRule[]",
                "Add: readonly validationRules: ValidationRule[] = [...]",
            )
        ),
        _plugin_rule(
            "must-implement-execute",
            "Must Implement Execute Method",
            "Plugins must implement async execute method",
            "error",
            "architecture",
        )
        .tags("methods")
        .validate(_check_execute),
        _plugin_rule(
            "must-implement-health-check",
            "Must Implement Health Check",
            "Plugins must implement async healthCheck method",
            "error",
            "architecture",
        )
        .tags("methods", "monitoring")
        .validate(_check_health_check),
        _plugin_rule(
            "must-import-required-modules",
            "Must Import Required Modules",
            "Plugins must import all required modules",
            "error",
            "imports",
        )
        .tags("imports")
        .validate(_check_imports),
        create_rule()
        .id("plugin-file-naming")
        .name("Plugin File Naming Convention")
        .description("Plugin files must follow naming convention")
        .severity("warning")
        .category("naming")
        .tags("plugins", "conventions")
        .file_pattern(PLUGIN_DIR_TS)
        .exclude_pattern(re.compile(r"\.spec\.ts$"))
        .validate(_check_file_name),
        _plugin_rule(
            "plugin-class-naming",
            "Plugin Class Naming Convention",
            'Plugin classes must end with "Plugin"',
            "error",
            "naming",
        )
        .tags("conventions")
        .validate(_check_class_name),
        _plugin_rule(
            "metadata-category-validation",
            "Valid Metadata Category",
            "Plugin category must be valid",
            "error",
            "validation",
        )
        .tags("metadata")
        .validate(_check_category),
        _plugin_rule(
            "no-console-logging",
            "No Console Logging",
            "Use Logger service instead of console",
            "warning",
            "security",
        )
        .tags("logging")
        .validate(_check_console),
        _plugin_rule(
            "no-hardcoded-secrets",
            "No Hardcoded Secrets",
            "No hardcoded secrets or credentials",
            "error",
            "security",
        )
        .tags("security", "secrets")
        .validate(_check_secrets),
        _plugin_rule(
            "must-have-test-file",
            "Must Have Test File",
            "Each plugin must have a corresponding test file",
            "warning",
            "testing",
        )
        .tags("testing")
        .validate(_check_test_file),
    ),
)
