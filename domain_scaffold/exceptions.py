"""
Custom exception hierarchy for Domain Scaffold.

This module provides a comprehensive exception system with rich context
and error recovery guidance for contributors and users.
"""

from typing import Dict, Any, Optional, List

from .diagnostics import Diagnostic, DiagnosticCode, Severity


class DomainScaffoldError(Exception):
    """
    Base exception for all Domain Scaffold errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [super().__str__()]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class ConfigurationError(DomainScaffoldError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_file: str = None, **kwargs):
        context = kwargs.get('context', {})
        if config_file:
            context['config_file'] = config_file

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the configuration file syntax",
                "Verify all required fields are present",
                "Check the documentation for configuration examples"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CONFIG_ERROR"
        )


class SpecificationError(DomainScaffoldError):
    """Raised when the domain specification document has the wrong shape."""

    def __init__(self, message: str, spec_file: str = None, errors: List[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if spec_file:
            context['spec_file'] = spec_file
        self.errors = list(errors or [])
        if self.errors:
            context['errors'] = "; ".join(self.errors)

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the YAML syntax of the domain specification",
                "Verify every aggregate has 'name' and 'entities'",
                "Verify every field has 'name' and 'type'"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="SPECIFICATION_ERROR"
        )


class TemplateRenderingError(DomainScaffoldError):
    """Raised when a template cannot be found or rendered."""

    def __init__(self, message: str, template_id: str = None, aggregate: str = None, **kwargs):
        context = kwargs.get('context', {})
        if template_id:
            context['template_id'] = template_id
        if aggregate:
            context['aggregate'] = aggregate

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions', []),
            error_code="TEMPLATE_ERROR"
        )


class GenerationError(DomainScaffoldError):
    """Raised when sources cannot be generated from a resolved module."""

    def __init__(self, message: str, diagnostics: List[Diagnostic] = None, **kwargs):
        self.diagnostics = list(diagnostics or [])
        context = kwargs.get('context', {})
        if self.diagnostics:
            context['diagnostics'] = len(self.diagnostics)

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions', [str(d) for d in self.diagnostics]),
            error_code="GENERATION_ERROR"
        )


# =============================================================================
# STRUCTURAL VALIDATION ERRORS
# =============================================================================

class StructuralValidationError(DomainScaffoldError):
    """
    Base class for structural problems in one aggregate.

    These are never transient: the specification itself has to change.
    """

    diagnostic_code: DiagnosticCode = None
    default_suggestions: List[str] = []

    def __init__(
        self,
        message: str,
        aggregate: str = None,
        entity: str = None,
        field: str = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if aggregate:
            context['aggregate'] = aggregate
        if entity:
            context['entity'] = entity
        if field:
            context['field'] = field

        self.aggregate = aggregate
        self.entity = entity
        self.field = field

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions') or list(self.default_suggestions),
            error_code=self.diagnostic_code.name if self.diagnostic_code else None
        )

    def to_diagnostic(self) -> Diagnostic:
        """Convert to an error diagnostic."""
        path = tuple(part for part in (self.entity, self.field) if part)
        return Diagnostic(
            code=self.diagnostic_code,
            severity=Severity.ERROR,
            message=self.message,
            aggregate=self.aggregate,
            entity=self.entity,
            path=path,
        )


class MissingIdentityFieldError(StructuralValidationError):
    """Raised when an entity does not start with a usable 'id' field."""

    diagnostic_code = DiagnosticCode.MISSING_IDENTITY_FIELD
    default_suggestions = [
        "Declare 'id' as the first field of the entity",
        "Use String/UUID for generated UUIDs or Integer/Long for sequences",
    ]


class DuplicateNameError(StructuralValidationError):
    """Raised when two entities, value objects or fields share a name."""

    diagnostic_code = DiagnosticCode.DUPLICATE_NAME
    default_suggestions = [
        "Rename one of the colliding declarations",
        "Remember names are compared after PascalCase normalization",
    ]


class InvalidAggregateRootError(StructuralValidationError):
    """Raised when an aggregate has zero or several root entities."""

    diagnostic_code = DiagnosticCode.INVALID_AGGREGATE_ROOT
    default_suggestions = [
        "Mark exactly one entity of the aggregate with 'isRoot: true'",
    ]


class UnknownRelationshipTargetError(StructuralValidationError):
    """Raised when a relationship points outside its aggregate."""

    diagnostic_code = DiagnosticCode.UNKNOWN_RELATIONSHIP_TARGET
    default_suggestions = [
        "Check the spelling of the relationship 'target'",
        "Relationships may only target entities of the same aggregate",
    ]


class UnresolvedFieldTypeError(StructuralValidationError):
    """Raised when a field type matches no known type."""

    diagnostic_code = DiagnosticCode.UNRESOLVED_FIELD_TYPE
    default_suggestions = [
        "Declare the type as a value object or enum",
        "Use a supported primitive (String, Integer, Long, Double, Float, Boolean, "
        "UUID, LocalDate, LocalDateTime, LocalTime, Instant, BigDecimal)",
        "Use List<X> for collections",
    ]


class UnknownEnumValueError(StructuralValidationError):
    """Raised when an enum transition or initial value names an unknown state."""

    diagnostic_code = DiagnosticCode.UNKNOWN_ENUM_VALUE
    default_suggestions = [
        "Only use declared enum values in 'transitions' and 'initialValue'",
    ]


class AggregateResolutionError(DomainScaffoldError):
    """Raised with every structural error found in one aggregate."""

    def __init__(self, aggregate: str, errors: List[StructuralValidationError]):
        self.aggregate = aggregate
        self.errors = list(errors)
        summary = "; ".join(error.message for error in self.errors)
        super().__init__(
            f"Aggregate '{aggregate}' has {len(self.errors)} structural error(s): {summary}",
            context={'aggregate': aggregate},
            error_code="AGGREGATE_RESOLUTION_ERROR"
        )

    def to_diagnostics(self) -> List[Diagnostic]:
        return [error.to_diagnostic() for error in self.errors]


class ModuleResolutionError(DomainScaffoldError):
    """Raised with the structural errors of every failed aggregate in a module."""

    def __init__(self, module: str, failures: List[AggregateResolutionError]):
        self.module = module
        self.failures = list(failures)
        count = sum(len(failure.errors) for failure in self.failures)
        super().__init__(
            f"Module '{module}' has {count} structural error(s) in "
            f"{len(self.failures)} aggregate(s)",
            context={
                'module': module,
                'aggregates': ", ".join(f.aggregate for f in self.failures),
            },
            error_code="MODULE_RESOLUTION_ERROR"
        )

    @property
    def errors(self) -> List[StructuralValidationError]:
        return [error for failure in self.failures for error in failure.errors]
