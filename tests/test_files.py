"""Tests for archgate.infrastructure.files."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archgate.infrastructure.files import discover_files, read_text_file

if TYPE_CHECKING:
    from pathlib import Path


def _touch(root: Path, rel: str, text: str = "") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDiscoverFiles:
    def test_default_patterns(self, tmp_project: Path) -> None:
        _touch(tmp_project, "main.ts")
        _touch(tmp_project, "src/services/b.service.ts")
        _touch(tmp_project, "src/app.jsx")
        _touch(tmp_project, "src/types.d.ts")
        _touch(tmp_project, "node_modules/lib/index.js")
        _touch(tmp_project, "dist/out.js")
        _touch(tmp_project, "README.md")

        files = discover_files(tmp_project)
        rel = [p.relative_to(tmp_project.resolve()).as_posix() for p in files]

        assert rel == ["main.ts", "src/app.jsx", "src/services/b.service.ts"]
        assert all(p.is_absolute() for p in files)

    def test_overlapping_patterns_deduplicated(self, tmp_project: Path) -> None:
        _touch(tmp_project, "src/a.ts")
        files = discover_files(tmp_project, ["**/*.ts", "src/*.ts"], [])
        assert len(files) == 1

    def test_custom_exclude(self, tmp_project: Path) -> None:
        _touch(tmp_project, "src/a.ts")
        _touch(tmp_project, "src/a.spec.ts")
        files = discover_files(tmp_project, ["src/**/*.ts"], ["**/*.spec.ts"])
        assert [p.name for p in files] == ["a.ts"]

    def test_empty_project(self, tmp_path: Path) -> None:
        assert discover_files(tmp_path) == []


class TestReadTextFile:
    def test_reads_utf8(self, tmp_path: Path) -> None:
        path = _touch(tmp_path, "a.ts", "const s = 'héllo';")
        assert read_text_file(path) == "const s = 'héllo';"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            read_text_file(tmp_path / "nope.ts")

    def test_binary_file(self, tmp_path: Path) -> None:
        path = tmp_path / "blob.ts"
        path.write_bytes(b"\xff\xfe\x00\x80")
        with pytest.raises(UnicodeDecodeError):
            read_text_file(path)
