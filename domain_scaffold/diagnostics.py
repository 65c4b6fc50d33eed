"""
Structured diagnostics produced while resolving a domain specification.

Diagnostics are plain data: the resolver never decides how they are shown.
Errors abort the aggregate they belong to, warnings and infos travel
alongside a still-usable model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(Enum):
    """How serious a diagnostic is."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticCode(Enum):
    """Stable identifiers for every diagnostic the resolver can emit."""

    MISSING_IDENTITY_FIELD = "missing_identity_field"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_AGGREGATE_ROOT = "invalid_aggregate_root"
    UNKNOWN_RELATIONSHIP_TARGET = "unknown_relationship_target"
    UNRESOLVED_FIELD_TYPE = "unresolved_field_type"
    UNKNOWN_ENUM_VALUE = "unknown_enum_value"
    CYCLE_DETECTED = "cycle_detected"
    MAX_DEPTH_REACHED = "max_depth_reached"
    RELATIONSHIP_CONSISTENCY = "relationship_consistency"
    ENUM_REDEFINED = "enum_redefined"


@dataclass
class Diagnostic:
    """A single finding about the specification."""

    code: DiagnosticCode
    severity: Severity
    message: str
    aggregate: Optional[str] = None
    entity: Optional[str] = None
    path: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'code': self.code.value,
            'severity': self.severity.value,
            'message': self.message,
            'aggregate': self.aggregate,
            'entity': self.entity,
            'path': list(self.path),
        }

    def __str__(self) -> str:
        location = ".".join(part for part in (self.aggregate, self.entity) if part)
        prefix = f"[{self.severity.value}] {self.code.value}"
        if location:
            prefix = f"{prefix} ({location})"
        return f"{prefix}: {self.message}"


class CycleDetected(Diagnostic):
    """Enrichment reached an entity already present on the current path."""

    def __init__(self, message: str, aggregate: Optional[str] = None,
                 entity: Optional[str] = None, path: Tuple[str, ...] = ()):
        super().__init__(
            DiagnosticCode.CYCLE_DETECTED, Severity.WARNING, message,
            aggregate=aggregate, entity=entity, path=tuple(path)
        )


class MaxDepthReached(Diagnostic):
    """Enrichment stopped at the depth ceiling."""

    def __init__(self, message: str, aggregate: Optional[str] = None,
                 entity: Optional[str] = None, path: Tuple[str, ...] = ()):
        super().__init__(
            DiagnosticCode.MAX_DEPTH_REACHED, Severity.WARNING, message,
            aggregate=aggregate, entity=entity, path=tuple(path)
        )


class RelationshipConsistencyWarning(Diagnostic):
    """Both sides of a bidirectional relationship disagree."""

    def __init__(self, message: str, aggregate: Optional[str] = None,
                 entity: Optional[str] = None, path: Tuple[str, ...] = ()):
        super().__init__(
            DiagnosticCode.RELATIONSHIP_CONSISTENCY, Severity.WARNING, message,
            aggregate=aggregate, entity=entity, path=tuple(path)
        )


class EnumRedefined(Diagnostic):
    """A module-wide enum name was declared again with different values."""

    def __init__(self, message: str, aggregate: Optional[str] = None,
                 entity: Optional[str] = None, path: Tuple[str, ...] = ()):
        super().__init__(
            DiagnosticCode.ENUM_REDEFINED, Severity.WARNING, message,
            aggregate=aggregate, entity=entity, path=tuple(path)
        )


def errors_only(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
    """Filter a diagnostic list down to its errors."""
    return [d for d in diagnostics if d.is_error]


def warnings_only(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
    """Filter a diagnostic list down to its warnings."""
    return [d for d in diagnostics if d.severity == Severity.WARNING]
