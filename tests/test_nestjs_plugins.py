"""Tests for the nestjs-plugins preset."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archgate.engine.engine import ConstraintEngine
from archgate.engine.models import ValidationError
from archgate.infrastructure.config import EngineOptions
from archgate.rulesets import NESTJS_PLUGIN_RULES, PRESETS, get_preset
from conftest import BAD_PLUGIN, GOOD_PLUGIN

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _engine(project: Path) -> ConstraintEngine:
    engine = ConstraintEngine(EngineOptions(project_root=project))
    engine.add_rule_set(NESTJS_PLUGIN_RULES)
    return engine


def _plugin(project: Path, name: str, content: str, *, with_spec: bool = True) -> Path:
    path = project / "src" / "plugins" / name
    path.write_text(content, encoding="utf-8")
    if with_spec:
        spec = path.with_name(name.replace(".plugin.ts", ".plugin.spec.ts"))
        spec.write_text("describe('plugin', () => {});\n", encoding="utf-8")
    return path


def _ids(result_violations) -> set[str]:  # noqa: ANN001
    return {v.rule_id for v in result_violations}


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------


def test_preset_lookup() -> None:
    assert get_preset("nestjs-plugins") is NESTJS_PLUGIN_RULES
    assert "nestjs-plugins" in PRESETS
    assert len(NESTJS_PLUGIN_RULES) == 14


def test_unknown_preset() -> None:
    with pytest.raises(ValidationError, match="Unknown preset 'rails'"):
        get_preset("rails")


def test_rule_ids_unique() -> None:
    ids = [r.id for r in NESTJS_PLUGIN_RULES.rules]
    assert len(ids) == len(set(ids))


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class TestPluginRules:
    def test_compliant_plugin_has_no_violations(self, tmp_project: Path) -> None:
        path = _plugin(tmp_project, "weather.plugin.ts", GOOD_PLUGIN)
        result = _engine(tmp_project).validate_file(path)
        assert result.violations == ()
        assert result.is_valid

    def test_non_compliant_plugin(self, tmp_project: Path) -> None:
        path = _plugin(tmp_project, "weather.plugin.ts", BAD_PLUGIN, with_spec=False)
        result = _engine(tmp_project).validate_file(path)

        ids = _ids(result.violations)
        assert {
            "must-have-metadata",
            "must-have-schema",
            "must-have-validation-rules",
            "must-implement-execute",
            "must-import-required-modules",
            "plugin-class-naming",
            "no-console-logging",
            "must-have-test-file",
        } <= ids
        assert not result.is_valid

        console = next(v for v in result.violations if v.rule_id == "no-console-logging")
        assert console.severity == "warning"
        assert (console.line, console.column) == (3, 5)
        assert console.source == "console.log('running');"

        execute = [v for v in result.violations if v.rule_id == "must-implement-execute"]
        assert [v.message for v in execute] == ["execute method must be async"]

        imports = [v for v in result.violations if v.rule_id == "must-import-required-modules"]
        assert len(imports) == 3

    def test_plugin_class_missing_base_and_decorator(self, tmp_project: Path) -> None:
        content = GOOD_PLUGIN.replace(" extends BaseActionPlugin", "").replace("@Injectable()\n", "")
        path = _plugin(tmp_project, "weather.plugin.ts", content)
        result = _engine(tmp_project).validate_file(path)
        assert _ids(result.violations) == {
            "must-extend-base-plugin",
            "must-have-injectable-decorator",
        }

    def test_invalid_category(self, tmp_project: Path) -> None:
        content = GOOD_PLUGIN.replace("category: 'utility'", "category: 'misc'")
        path = _plugin(tmp_project, "weather.plugin.ts", content)
        (v,) = _engine(tmp_project).validate_file(path).violations
        assert v.rule_id == "metadata-category-validation"
        assert "Invalid category 'misc'" in v.message

    def test_hardcoded_secret(self, tmp_project: Path) -> None:
        content = GOOD_PLUGIN.replace(
            "  readonly validationRules",
            "  private apiKey = 'sk_abcdefghijklmnopqrstuvwx123456';\n  readonly validationRules",
        )
        path = _plugin(tmp_project, "weather.plugin.ts", content)
        result = _engine(tmp_project).validate_file(path)
        assert "no-hardcoded-secrets" in _ids(result.violations)

    def test_sync_health_check(self, tmp_project: Path) -> None:
        content = GOOD_PLUGIN.replace("Promise<boolean>", "boolean")
        path = _plugin(tmp_project, "weather.plugin.ts", content)
        violations = _engine(tmp_project).validate_file(path).violations
        assert [v.message for v in violations] == [
            "healthCheck method must return Promise<boolean>"
        ]

    def test_misnamed_file_in_plugins_dir(self, tmp_project: Path) -> None:
        path = tmp_project / "src" / "plugins" / "weather.ts"
        path.write_text(GOOD_PLUGIN, encoding="utf-8")
        (v,) = _engine(tmp_project).validate_file(path).violations
        assert v.rule_id == "plugin-file-naming"
        assert v.severity == "warning"

    def test_spec_files_skipped(self, tmp_project: Path) -> None:
        path = tmp_project / "src" / "plugins" / "weather.plugin.spec.ts"
        path.write_text("describe('x', () => {});\n", encoding="utf-8")
        assert _engine(tmp_project).validate_file(path).violations == ()

    def test_files_outside_plugins_ignored(self, tmp_project: Path) -> None:
        path = tmp_project / "src" / "services" / "users.service.ts"
        path.write_text(BAD_PLUGIN, encoding="utf-8")
        assert _engine(tmp_project).validate_file(path).violations == ()
