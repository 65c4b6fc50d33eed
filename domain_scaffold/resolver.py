"""
Domain model resolver.

Runs the resolution pipeline for a whole module:

    document -> enum registry -> per aggregate:
        schema parser -> relationship resolver -> aggregate methods
        -> imports -> nested enrichment -> ResolvedAggregate

Aggregates are resolved independently: a structural error aborts only the
aggregate it belongs to.
"""

import logging
from typing import Any, Dict, Sequence

from .constants import MAX_DEPTH
from .domain.aggregate_methods import AggregateMethodBuilder
from .domain.enrichment import NestedRelationshipEnricher
from .domain.imports import ImportResolver
from .domain.models import EnumRegistry, ModuleResolution, ResolvedAggregate
from .domain.naming import to_kebab_case, to_pascal_case
from .domain.relationships import RelationshipResolver
from .domain.schema import AggregateDefinition, DomainDocument, parse_domain_document
from .domain.schema_parser import SchemaParser, build_enum_registry
from .exceptions import AggregateResolutionError, StructuralValidationError


logger = logging.getLogger(__name__)


class DomainModelResolver:
    """
    Stateless facade over the resolution stages.

    Args:
        base_package: Package prefix of generated imports
        max_depth: Enrichment depth, capped at ``MAX_DEPTH``
    """

    def __init__(self, base_package: str = "", max_depth: int = MAX_DEPTH):
        self.base_package = base_package or ""
        self.max_depth = max_depth

    def resolve_module(self, document: DomainDocument) -> ModuleResolution:
        """Resolve every aggregate of a module, isolating failures per aggregate."""
        module_name = to_kebab_case(document.module) if document.module else "domain"
        enum_registry, enum_errors, diagnostics = build_enum_registry(document.aggregates)

        resolution = ModuleResolution(
            module_name=module_name,
            enum_registry=enum_registry,
            diagnostics=list(diagnostics),
        )

        for definition in document.aggregates:
            inherited = enum_errors.get(to_pascal_case(definition.name), [])
            try:
                resolved = self.resolve_aggregate(definition, enum_registry, inherited)
            except AggregateResolutionError as e:
                logger.error(e.message)
                resolution.failures.append(e)
                resolution.diagnostics.extend(e.to_diagnostics())
                continue
            resolution.aggregates.append(resolved)
            resolution.diagnostics.extend(resolved.diagnostics)

        logger.info(
            f"Module '{module_name}': {len(resolution.aggregates)} aggregate(s) resolved, "
            f"{len(resolution.failures)} failed, {len(resolution.warnings)} warning(s)"
        )
        return resolution

    def resolve_aggregate(
        self,
        definition: AggregateDefinition,
        enum_registry: EnumRegistry,
        inherited_errors: Sequence[StructuralValidationError] = (),
    ) -> ResolvedAggregate:
        """
        Resolve one aggregate against a complete module-wide enum registry.

        Raises:
            AggregateResolutionError: no partial model is returned
        """
        aggregate = SchemaParser(enum_registry).parse_aggregate(definition, inherited_errors)

        relationship_resolver = RelationshipResolver()
        diagnostics = relationship_resolver.resolve(aggregate)

        methods = AggregateMethodBuilder().build(aggregate)

        ImportResolver(self.base_package).resolve(aggregate, methods)

        enricher = NestedRelationshipEnricher(self.max_depth)
        nested = enricher.enrich_aggregate(aggregate)
        diagnostics.extend(enricher.diagnostics)

        logger.debug(f"Aggregate '{aggregate.name}' resolved with {len(diagnostics)} diagnostic(s)")
        return ResolvedAggregate(
            aggregate=aggregate,
            enum_registry=enum_registry,
            base_package=self.base_package,
            nested_relationships=nested,
            aggregate_methods=methods,
            diagnostics=diagnostics,
        )


def resolve_domain(
    raw: Dict[str, Any],
    base_package: str = "",
    max_depth: int = MAX_DEPTH,
    source: str = None,
) -> ModuleResolution:
    """
    Validate and resolve an already-parsed specification.

    Raises:
        SpecificationError: if the document shape is invalid
    """
    document = parse_domain_document(raw, source=source)
    return DomainModelResolver(base_package=base_package, max_depth=max_depth).resolve_module(document)
