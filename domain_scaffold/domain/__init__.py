"""
Domain module for Domain Scaffold.

This module contains the domain model resolver: pure, in-memory stages that
turn a parsed domain specification into a fully cross-referenced model. None
of them performs I/O.
"""

from .models import (
    TypeCategory,
    TypeClassification,
    FieldSpec,
    RelationshipKind,
    RelationshipSide,
    RelationshipSpec,
    FetchType,
    IdentityStrategy,
    AuditConfig,
    EntitySpec,
    ValueObjectSpec,
    EnumSpec,
    EnumTransition,
    EnumRegistry,
    AggregateSpec,
    EnrichedRelationship,
    AggregateMethod,
    MethodParameter,
    ValueObjectMethod,
    ResolvedAggregate,
    ModuleResolution
)

from .schema import (
    DomainDocument,
    AggregateDefinition,
    EntityDefinition,
    parse_domain_document
)

from .schema_parser import (
    SchemaParser,
    build_enum_registry,
    build_validation_annotation
)

from .type_resolver import TypeResolver

from .relationships import (
    RelationshipResolver,
    unpaired_relationships
)

from .aggregate_methods import AggregateMethodBuilder

from .imports import ImportResolver

from .enrichment import NestedRelationshipEnricher

from .naming import (
    NamingConventions,
    to_pascal_case,
    to_camel_case,
    to_kebab_case,
    to_snake_case,
    to_upper_snake_case,
    pluralize,
    singularize
)

__all__ = [
    # Core models
    'TypeCategory',
    'TypeClassification',
    'FieldSpec',
    'RelationshipKind',
    'RelationshipSide',
    'RelationshipSpec',
    'FetchType',
    'IdentityStrategy',
    'AuditConfig',
    'EntitySpec',
    'ValueObjectSpec',
    'EnumSpec',
    'EnumTransition',
    'EnumRegistry',
    'AggregateSpec',
    'EnrichedRelationship',
    'AggregateMethod',
    'MethodParameter',
    'ValueObjectMethod',
    'ResolvedAggregate',
    'ModuleResolution',

    # Document schema
    'DomainDocument',
    'AggregateDefinition',
    'EntityDefinition',
    'parse_domain_document',

    # Parsing and resolution stages
    'SchemaParser',
    'build_enum_registry',
    'build_validation_annotation',
    'TypeResolver',
    'RelationshipResolver',
    'unpaired_relationships',
    'AggregateMethodBuilder',
    'ImportResolver',
    'NestedRelationshipEnricher',

    # Naming
    'NamingConventions',
    'to_pascal_case',
    'to_camel_case',
    'to_kebab_case',
    'to_snake_case',
    'to_upper_snake_case',
    'pluralize',
    'singularize'
]
