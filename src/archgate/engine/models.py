"""Core data types: violations, results, stats, rule sets, and engine errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from archgate.engine.rules import ConstraintRule

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

VALID_SEVERITIES: frozenset[str] = frozenset({SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_INFO})

# Display order for reports (most severe first).
SEVERITY_ORDER: tuple[str, ...] = (SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_INFO)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ArchgateError(Exception):
    """Base class for archgate errors."""


class ValidationError(ArchgateError, ValueError):
    """Raised when a rule, pattern, or configuration is invalid.

    These are construction-time errors: they surface to whoever builds the
    rule or loads the configuration and never reach the evaluation pipeline.
    """


class DuplicateRuleError(ValidationError):
    """Raised when a rule id is registered twice."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single rule failure for one file."""

    rule_id: str
    severity: str  # "error" | "warning" | "info"
    message: str
    file: str | None = None  # filled in by the engine when omitted
    suggestion: str | None = None
    line: int | None = None
    column: int | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        if self.severity not in VALID_SEVERITIES:
            msg = (
                f"Violation of rule '{self.rule_id}': invalid severity '{self.severity}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise ValidationError(msg)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity,
            "message": self.message,
            "file": self.file,
            "suggestion": self.suggestion,
            "line": self.line,
            "column": self.column,
            "source": self.source,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Per-file outcome: violations in rule registration order plus timing."""

    file: str
    violations: tuple[Violation, ...] = ()
    execution_time: float = 0.0  # milliseconds
    cached: bool = False

    @property
    def is_valid(self) -> bool:
        """True iff no violation has severity ``error``."""
        return not any(v.severity == SEVERITY_ERROR for v in self.violations)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "is_valid": self.is_valid,
            "execution_time": round(self.execution_time, 3),
            "violations": [v.to_dict() for v in self.violations],
        }


@dataclass(frozen=True)
class EngineStats:
    """Snapshot of cumulative engine counters."""

    files_processed: int = 0
    rules_executed: int = 0
    total_violations: int = 0
    violations_by_severity: dict[str, int] = field(default_factory=dict)
    execution_time: float = 0.0  # milliseconds, summed over files
    average_file_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_processed": self.files_processed,
            "rules_executed": self.rules_executed,
            "total_violations": self.total_violations,
            "violations_by_severity": dict(self.violations_by_severity),
            "execution_time": round(self.execution_time, 3),
            "average_file_time": round(self.average_file_time, 3),
        }


@dataclass(frozen=True)
class RuleSet:
    """A named, versioned bundle of rules. Grouping only, no behaviour."""

    name: str
    version: str
    description: str
    rules: tuple[ConstraintRule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)
