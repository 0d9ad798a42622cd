"""Per-file validation contexts and heuristic capability extraction.

Capability queries are line-oriented regex scans, not a parser.  Rule
violation sets depend on the exact scan surface below; keep it stable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePath
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from archgate.engine.patterns import PatternLike

# ---------------------------------------------------------------------------
# Language detection
# ---------------------------------------------------------------------------

UNKNOWN_LANGUAGE = "unknown"

LANGUAGE_BY_EXTENSION: Mapping[str, str] = MappingProxyType(
    {
        ".ts": "typescript",
        ".tsx": "typescript",
        ".js": "javascript",
        ".jsx": "javascript",
        ".mjs": "javascript",
        ".cjs": "javascript",
        ".rb": "ruby",
        ".py": "python",
        ".java": "java",
        ".go": "go",
        ".rs": "rust",
        ".kt": "kotlin",
    }
)


def detect_language(file_path: str | PurePath) -> str:
    """Map a file extension to a language name, ``"unknown"`` if unmapped."""
    return LANGUAGE_BY_EXTENSION.get(PurePath(file_path).suffix.lower(), UNKNOWN_LANGUAGE)


# ---------------------------------------------------------------------------
# Heuristic scans (compiled once)
# ---------------------------------------------------------------------------

_CLASS_RE = re.compile(r"class\s+(\w+)")
# Identifier + single-line parameter list + optional return type + "{".
_METHOD_RE = re.compile(r"(?:async\s+)?(\w+)\s*\([^)\n]*\)\s*(?::\s*[^{\n]+)?\s*\{")
_IMPORT_RE = re.compile(r"""import\s+.*?\s+from\s+['"]([^'"\n]+)['"]""")
_DECORATOR_RE = re.compile(r"@(\w+)\s*\(")
_INTERFACE_RE = re.compile(r"interface\s+(\w+)")


def extract_classes(content: str) -> list[str]:
    return _CLASS_RE.findall(content)


def extract_methods(content: str) -> list[str]:
    """Return method names declared on a single line.

    Signatures spanning several lines are not recognised.
    """
    methods: list[str] = []
    for line in content.splitlines():
        methods.extend(m.group(1) for m in _METHOD_RE.finditer(line))
    return methods


def extract_imports(content: str) -> list[str]:
    """Return module specifiers of ``import ... from '<module>'`` statements."""
    return _IMPORT_RE.findall(content)


def extract_decorators(content: str) -> list[str]:
    return _DECORATOR_RE.findall(content)


def extract_interfaces(content: str) -> list[str]:
    return _INTERFACE_RE.findall(content)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CapabilityIndex:
    """Structural names captured from one file's content."""

    classes: tuple[str, ...] = ()
    methods: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    decorators: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()


def build_capability_index(content: str) -> CapabilityIndex:
    """Run every heuristic scan once over *content*."""
    return CapabilityIndex(
        classes=tuple(extract_classes(content)),
        methods=tuple(extract_methods(content)),
        imports=tuple(extract_imports(content)),
        decorators=tuple(extract_decorators(content)),
        interfaces=tuple(extract_interfaces(content)),
    )


def name_matches(names: tuple[str, ...], pattern: PatternLike) -> bool:
    """Literal strings match by containment, compiled patterns by ``search``."""
    if isinstance(pattern, str):
        return any(pattern in name for name in names)
    return any(pattern.search(name) for name in names)


@dataclass(frozen=True)
class ValidationContext:
    """Everything a rule sees about one file."""

    file: str  # base name, used in violations
    content: str
    file_path: str
    project_root: str
    language: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PluginContext(ValidationContext):
    """A :class:`ValidationContext` with structural queries over a capability index."""

    capabilities: CapabilityIndex = field(default_factory=CapabilityIndex)

    def has_class(self, pattern: PatternLike) -> bool:
        return name_matches(self.capabilities.classes, pattern)

    def has_method(self, pattern: PatternLike) -> bool:
        return name_matches(self.capabilities.methods, pattern)

    def has_import(self, pattern: PatternLike) -> bool:
        return name_matches(self.capabilities.imports, pattern)

    def has_decorator(self, pattern: PatternLike) -> bool:
        return name_matches(self.capabilities.decorators, pattern)

    def has_interface(self, pattern: PatternLike) -> bool:
        return name_matches(self.capabilities.interfaces, pattern)

    def get_classes(self) -> list[str]:
        return list(self.capabilities.classes)

    def get_methods(self) -> list[str]:
        return list(self.capabilities.methods)

    def get_imports(self) -> list[str]:
        return list(self.capabilities.imports)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_context(
    content: str,
    file_path: str | PurePath,
    project_root: str | PurePath,
    metadata: Mapping[str, Any] | None = None,
) -> ValidationContext:
    """Build the basic context for one file."""
    path = PurePath(file_path)
    return ValidationContext(
        file=path.name,
        content=content,
        file_path=str(file_path),
        project_root=str(project_root),
        language=detect_language(path),
        metadata=MappingProxyType(dict(metadata or {})),
    )


def with_capabilities(context: ValidationContext) -> PluginContext:
    """Derive a :class:`PluginContext`, extracting capabilities once."""
    if isinstance(context, PluginContext):
        return context
    return PluginContext(
        file=context.file,
        content=context.content,
        file_path=context.file_path,
        project_root=context.project_root,
        language=context.language,
        metadata=context.metadata,
        capabilities=build_capability_index(context.content),
    )
