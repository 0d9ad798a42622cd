"""Tests for archgate.engine.patterns and the matching helpers."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from archgate.engine.helpers import contains, find_matches, matches_any_pattern
from archgate.engine.models import ValidationError
from archgate.engine.patterns import compile_pattern, matches_any, path_candidates


class TestCompilePattern:
    @pytest.mark.parametrize(
        ("pattern", "path", "expected"),
        [
            ("**/*.ts", "src/app.ts", True),
            ("**/*.ts", "app.ts", True),
            ("**/*.ts", "src/app.js", False),
            ("src/**/*.service.ts", "src/users/users.service.ts", True),
            ("src/**/*.service.ts", "lib/users.service.ts", False),
            ("*.service.ts", "foo.controller.ts", False),
            ("re:\\.spec\\.ts$", "a/b.spec.ts", True),
            ("src/**/*.ts", "src/app.ts", True),
            ("src/**/*.ts", "src/a/b/app.ts", True),
            ("src/**/*.ts", "lib/src/app.ts", False),
            ("**/node_modules/**", "node_modules/lib/index.js", True),
            ("**/node_modules/**", "src/node_modules/lib/index.js", True),
            ("*.ts", "src/app.ts", True),
            ("?.ts", "ab.ts", False),
            ("[ab].ts", "a.ts", True),
            ("[!ab].ts", "a.ts", False),
            ("a+b.ts", "aab.ts", False),
        ],
    )
    def test_matching(self, pattern: str, path: str, expected: bool) -> None:
        assert bool(compile_pattern(pattern).search(path)) is expected

    def test_compiled_regex_passes_through(self) -> None:
        regex = re.compile(r"x")
        assert compile_pattern(regex) is regex

    @pytest.mark.parametrize("bad", ["", "   "])
    def test_empty_rejected(self, bad: str) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            compile_pattern(bad)

    def test_wrong_type_rejected(self) -> None:
        with pytest.raises(ValidationError, match="int"):
            compile_pattern(3)  # type: ignore[arg-type]

    def test_bad_regex_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid regular expression"):
            compile_pattern("re:(")


class TestPathCandidates:
    def test_relative_form_added_under_root(self) -> None:
        assert path_candidates("/proj/src/a.ts", "/proj") == ["/proj/src/a.ts", "src/a.ts"]

    def test_outside_root(self) -> None:
        assert path_candidates("/other/a.ts", "/proj") == ["/other/a.ts"]

    def test_no_root(self) -> None:
        assert path_candidates("src/a.ts", None) == ["src/a.ts"]

    def test_matches_any(self) -> None:
        patterns = [compile_pattern("src/**/*.ts")]
        assert matches_any(path_candidates("/proj/src/a.ts", "/proj"), patterns)

    def test_dot_root_yields_relative_form(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        file_path = tmp_path.resolve() / "src" / "a.ts"
        assert path_candidates(file_path, ".")[-1] == "src/a.ts"

    def test_symlinked_root_yields_relative_form(self, tmp_path: Path) -> None:
        real = tmp_path / "real"
        (real / "src").mkdir(parents=True)
        (real / "src" / "a.ts").write_text("x")
        link = tmp_path / "link"
        link.symlink_to(real, target_is_directory=True)

        candidates = path_candidates(real / "src" / "a.ts", link)
        assert "src/a.ts" in candidates


# ---------------------------------------------------------------------------
# Content helpers
# ---------------------------------------------------------------------------


class TestContentHelpers:
    def test_contains_literal_and_regex(self) -> None:
        assert contains("a.b", ".")
        assert not contains("ab", "a.b")
        assert contains("ab", re.compile(r"a.?b"))

    def test_find_matches_positions(self) -> None:
        content = "ok\n  console.log(1); console.log(2)\n"
        matches = find_matches(content, "console.log")
        assert [(m.line, m.column) for m in matches] == [(2, 3), (2, 19)]
        assert matches[0].line_text == "  console.log(1); console.log(2)"

    def test_find_matches_literal_escapes_regex(self) -> None:
        assert find_matches("a+b", "a+b")[0].text == "a+b"
        assert find_matches("aab", "a+b") == []

    def test_matches_any_pattern(self) -> None:
        assert matches_any_pattern("src/x.controller.ts", ["**/*.service.ts", "**/*.controller.ts"])
        assert not matches_any_pattern("src/x.ts", ["re:\\.js$"])
