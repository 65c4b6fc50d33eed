"""
Schema parsing and structural validation.

Turns validated document definitions into the unresolved aggregate skeleton
(``AggregateSpec``). Every structural rule is checked for the whole
aggregate before failing, so that a user sees all problems of an aggregate
in one pass.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..constants import FieldNames, TypeKeywords
from ..diagnostics import Diagnostic, EnumRedefined
from ..exceptions import (
    AggregateResolutionError,
    DuplicateNameError,
    InvalidAggregateRootError,
    MissingIdentityFieldError,
    StructuralValidationError,
    UnknownEnumValueError,
    UnknownRelationshipTargetError,
    UnresolvedFieldTypeError,
)
from .models import (
    AggregateSpec,
    AuditConfig,
    EntitySpec,
    EnumRegistry,
    EnumSpec,
    EnumTransition,
    FetchType,
    FieldSpec,
    IdentityStrategy,
    MethodParameter,
    RelationshipKind,
    RelationshipSpec,
    TypeCategory,
    ValueObjectMethod,
    ValueObjectSpec,
)
from .naming import NamingConventions, to_camel_case, to_pascal_case
from .schema import (
    AggregateDefinition,
    EntityDefinition,
    EnumDefinition,
    FieldDefinition,
    MethodDefinition,
    RelationshipDefinition,
    ValidationDefinition,
    ValueObjectDefinition,
)
from .type_resolver import TypeResolver


logger = logging.getLogger(__name__)


# =============================================================================
# ENUM REGISTRY
# =============================================================================

def build_enum_registry(
    aggregates: Sequence[AggregateDefinition],
) -> Tuple[EnumRegistry, Dict[str, List[StructuralValidationError]], List[Diagnostic]]:
    """
    Assemble the module-wide enum registry.

    Collects aggregate-level enums and inline field enums (``enumValues``)
    from every aggregate. The first definition of a name wins; a later one
    with different values produces an ``EnumRedefined`` warning.

    Returns:
        The registry, structural errors keyed by declaring aggregate, and
        warnings.
    """
    collected: Dict[str, EnumSpec] = {}
    errors: Dict[str, List[StructuralValidationError]] = {}
    diagnostics: List[Diagnostic] = []

    def register(enum_spec: EnumSpec, aggregate_name: str) -> None:
        existing = collected.get(enum_spec.name)
        if existing is None:
            collected[enum_spec.name] = enum_spec
            return
        if existing.values != enum_spec.values:
            diagnostics.append(EnumRedefined(
                f"Enum '{enum_spec.name}' redefined with values {list(enum_spec.values)}; "
                f"keeping the definition from '{existing.declared_in}'",
                aggregate=aggregate_name,
            ))
            logger.warning(f"Enum '{enum_spec.name}' redefined in '{aggregate_name}', keeping first definition")

    for aggregate in aggregates:
        aggregate_name = to_pascal_case(aggregate.name)

        for enum_definition in aggregate.enums:
            enum_spec, enum_errors = _build_enum(enum_definition, aggregate_name)
            if enum_errors:
                errors.setdefault(aggregate_name, []).extend(enum_errors)
                continue
            register(enum_spec, aggregate_name)

        for entity in aggregate.entities:
            for field_definition in entity.field_definitions:
                if field_definition.enum_values:
                    register(EnumSpec(
                        name=to_pascal_case(field_definition.type),
                        values=tuple(field_definition.enum_values),
                        declared_in=aggregate_name,
                    ), aggregate_name)

    logger.debug(f"Enum registry assembled with {len(collected)} enum(s)")
    return EnumRegistry(collected.values()), errors, diagnostics


def _build_enum(
    definition: EnumDefinition, aggregate_name: str
) -> Tuple[EnumSpec, List[StructuralValidationError]]:
    name = to_pascal_case(definition.name)
    values = tuple(definition.values)
    errors: List[StructuralValidationError] = []

    transitions = []
    for transition in definition.transitions:
        unknown = [state for state in list(transition.sources) + [transition.to] if state not in values]
        for state in unknown:
            errors.append(UnknownEnumValueError(
                f"Enum '{name}' transition references unknown value '{state}'",
                aggregate=aggregate_name,
                entity=name,
            ))
        transitions.append(EnumTransition(
            sources=tuple(transition.sources),
            target=transition.to,
            method_name=transition.method,
        ))

    if definition.initial_value is not None and definition.initial_value not in values:
        errors.append(UnknownEnumValueError(
            f"Enum '{name}' initial value '{definition.initial_value}' is not one of its values",
            aggregate=aggregate_name,
            entity=name,
        ))

    if len(set(values)) != len(values):
        errors.append(DuplicateNameError(
            f"Enum '{name}' declares duplicate values",
            aggregate=aggregate_name,
            entity=name,
        ))

    return EnumSpec(
        name=name,
        values=values,
        transitions=tuple(transitions),
        initial_value=definition.initial_value,
        declared_in=aggregate_name,
    ), errors


# =============================================================================
# VALIDATION ANNOTATIONS
# =============================================================================

_ANNOTATION_PARAMETERS = ("value", "min", "max", "regexp", "integer", "fraction", "inclusive", "message")


def build_validation_annotation(validation: Union[str, ValidationDefinition]) -> str:
    """
    Render a validation descriptor as an opaque annotation string.

    Example:
        >>> build_validation_annotation(ValidationDefinition(type="Size", min=1, max=50))
        'Size(min=1, max=50)'
    """
    if isinstance(validation, str):
        return validation

    params = []
    for key in _ANNOTATION_PARAMETERS:
        value = getattr(validation, key)
        if value is not None:
            params.append(f"{key}={value!r}")
    if not params:
        return validation.type
    return f"{validation.type}({', '.join(params)})"


# =============================================================================
# SCHEMA PARSER
# =============================================================================

class SchemaParser:
    """
    Builds and validates the skeleton of one aggregate at a time.

    The enum registry is module-wide and must be complete before the first
    aggregate is parsed.
    """

    def __init__(self, enum_registry: EnumRegistry):
        self.enum_registry = enum_registry

    def parse_aggregate(
        self,
        definition: AggregateDefinition,
        inherited_errors: Sequence[StructuralValidationError] = (),
    ) -> AggregateSpec:
        """
        Parse one aggregate definition.

        ``inherited_errors`` are problems already attributed to this aggregate,
        such as invalid enum transitions found while building the registry.

        Raises:
            AggregateResolutionError: with every structural error found
        """
        aggregate_name = to_pascal_case(definition.name)
        errors: List[StructuralValidationError] = list(inherited_errors)

        logger.debug(f"Parsing aggregate '{aggregate_name}'")

        entity_names = [to_pascal_case(entity.name) for entity in definition.entities]
        value_object_names = [to_pascal_case(vo.name) for vo in definition.value_objects]

        errors.extend(self._check_unique_names(aggregate_name, entity_names, value_object_names))
        errors.extend(self._check_single_root(aggregate_name, definition.entities))

        type_resolver = TypeResolver(
            value_object_names=value_object_names,
            enum_registry=self.enum_registry,
        )

        value_objects = []
        for vo_definition in definition.value_objects:
            value_object, vo_errors = self._parse_value_object(vo_definition, aggregate_name, type_resolver)
            errors.extend(vo_errors)
            value_objects.append(value_object)

        known_entities = set(entity_names)
        entities = []
        for entity_definition in definition.entities:
            entity, entity_errors = self._parse_entity(
                entity_definition, aggregate_name, definition.audit, type_resolver, known_entities
            )
            errors.extend(entity_errors)
            entities.append(entity)

        if errors:
            logger.debug(f"Aggregate '{aggregate_name}' failed with {len(errors)} structural error(s)")
            raise AggregateResolutionError(aggregate_name, errors)

        root = next(entity for entity in entities if entity.is_root)
        return AggregateSpec(
            name=aggregate_name,
            table_name=definition.table_name or root.table_name,
            audit=definition.audit,
            entities=entities,
            value_objects=value_objects,
            enums=self.enum_registry.declared_in(aggregate_name),
        )

    # --- aggregate-level rules ---

    def _check_unique_names(
        self, aggregate_name: str, entity_names: List[str], value_object_names: List[str]
    ) -> List[StructuralValidationError]:
        errors: List[StructuralValidationError] = []
        seen: Dict[str, str] = {}
        declared = [(name, "entity") for name in entity_names] + [(name, "value object") for name in value_object_names]
        for name, kind in declared:
            if name in seen:
                errors.append(DuplicateNameError(
                    f"Name '{name}' is declared more than once ({seen[name]} and {kind})",
                    aggregate=aggregate_name,
                    entity=name,
                ))
            else:
                seen[name] = kind
        return errors

    def _check_single_root(
        self, aggregate_name: str, entities: List[EntityDefinition]
    ) -> List[StructuralValidationError]:
        roots = [to_pascal_case(entity.name) for entity in entities if entity.is_root]
        if len(roots) == 1:
            return []
        if not roots:
            message = f"Aggregate '{aggregate_name}' must have exactly one root entity, found none"
        else:
            message = (
                f"Aggregate '{aggregate_name}' must have exactly one root entity, "
                f"found {len(roots)}: {', '.join(roots)}"
            )
        return [InvalidAggregateRootError(message, aggregate=aggregate_name)]

    # --- entities ---

    def _parse_entity(
        self,
        definition: EntityDefinition,
        aggregate_name: str,
        aggregate_audit: bool,
        type_resolver: TypeResolver,
        known_entities: set,
    ) -> Tuple[EntitySpec, List[StructuralValidationError]]:
        name = NamingConventions.type_name(definition.name)
        errors: List[StructuralValidationError] = []

        audit = self._audit_config(definition, name, aggregate_audit)

        fields, field_errors = self._parse_fields(
            definition.field_definitions, aggregate_name, name, type_resolver
        )
        errors.extend(field_errors)
        errors.extend(self._check_identity(fields, definition.field_definitions, aggregate_name, name))

        fields.extend(self._audit_fields(audit, type_resolver))

        relationships = []
        for rel_definition in definition.relationships:
            relationship, rel_error = self._parse_relationship(
                rel_definition, aggregate_name, name, known_entities
            )
            if rel_error is not None:
                errors.append(rel_error)
            else:
                relationships.append(relationship)

        errors.extend(self._check_member_names(fields, relationships, aggregate_name, name))

        entity = EntitySpec(
            name=name,
            variable_name=to_camel_case(name),
            table_name=definition.table_name or NamingConventions.table_name(name),
            is_root=definition.is_root,
            audit=audit,
            fields=fields,
            relationships=relationships,
        )
        return entity, errors

    def _audit_config(self, definition: EntityDefinition, entity_name: str, aggregate_audit: bool) -> AuditConfig:
        if definition.audit is not None:
            return AuditConfig(
                enabled=definition.audit.enabled,
                track_user=definition.audit.track_user,
            )
        if definition.auditable is not None:
            if definition.auditable:
                logger.warning(
                    f"Entity '{entity_name}': 'auditable: true' is deprecated, "
                    f"use 'audit: {{enabled: true}}' instead"
                )
            return AuditConfig(enabled=definition.auditable)
        return AuditConfig(enabled=aggregate_audit)

    def _audit_fields(self, audit: AuditConfig, type_resolver: TypeResolver) -> List[FieldSpec]:
        if not audit.enabled:
            return []
        declared = [(name, FieldNames.AUDIT_TIMESTAMP_TYPE) for name in FieldNames.AUDIT_TIMESTAMPS]
        if audit.track_user:
            declared += [(name, FieldNames.AUDIT_USER_TYPE) for name in FieldNames.AUDIT_USERS]
        return [
            FieldSpec(
                name=name,
                original_name=name,
                declared_type=type_name,
                classification=type_resolver.resolve(type_name),
                read_only=True,
                is_audit=True,
            )
            for name, type_name in declared
        ]

    def _check_identity(
        self,
        fields: List[FieldSpec],
        definitions: List[FieldDefinition],
        aggregate_name: str,
        entity_name: str,
    ) -> List[StructuralValidationError]:
        if not definitions or to_camel_case(definitions[0].name) != FieldNames.IDENTITY:
            return [MissingIdentityFieldError(
                f"Entity '{entity_name}' must declare 'id' as its first field",
                aggregate=aggregate_name,
                entity=entity_name,
            )]
        identity = fields[0] if fields and fields[0].is_identity else None
        if identity is None:
            # the id type itself did not resolve, already reported
            return []
        if IdentityStrategy.for_type(identity.classification.type_name) is None:
            return [MissingIdentityFieldError(
                f"Entity '{entity_name}' has an 'id' of type '{identity.declared_type}'; "
                f"use String/UUID or Integer/Long",
                aggregate=aggregate_name,
                entity=entity_name,
                field=FieldNames.IDENTITY,
            )]
        return []

    def _check_member_names(
        self,
        fields: List[FieldSpec],
        relationships: List[RelationshipSpec],
        aggregate_name: str,
        entity_name: str,
    ) -> List[StructuralValidationError]:
        errors: List[StructuralValidationError] = []
        seen = set()
        for member in [f.name for f in fields] + [rel.field_name for rel in relationships]:
            if member in seen:
                errors.append(DuplicateNameError(
                    f"Entity '{entity_name}' declares '{member}' more than once",
                    aggregate=aggregate_name,
                    entity=entity_name,
                    field=member,
                ))
            seen.add(member)
        return errors

    # --- fields ---

    def _parse_fields(
        self,
        definitions: List[FieldDefinition],
        aggregate_name: str,
        owner_name: str,
        type_resolver: TypeResolver,
    ) -> Tuple[List[FieldSpec], List[StructuralValidationError]]:
        fields: List[FieldSpec] = []
        errors: List[StructuralValidationError] = []
        for definition in definitions:
            try:
                fields.append(self._parse_field(definition, aggregate_name, owner_name, type_resolver))
            except UnresolvedFieldTypeError as e:
                errors.append(e)
        return fields, errors

    def _parse_field(
        self,
        definition: FieldDefinition,
        aggregate_name: str,
        owner_name: str,
        type_resolver: TypeResolver,
    ) -> FieldSpec:
        field_name = NamingConventions.field_name(definition.name)
        classification = type_resolver.resolve(
            definition.type, aggregate=aggregate_name, entity=owner_name, field=field_name
        )

        auto_init_value = None
        if classification.category == TypeCategory.ENUM:
            enum_spec = self.enum_registry[classification.type_name]
            if enum_spec.initial_value:
                auto_init_value = enum_spec.initial_value

        return FieldSpec(
            name=field_name,
            original_name=definition.name,
            declared_type=definition.type,
            classification=classification,
            validations=[build_validation_annotation(v) for v in definition.validations],
            annotations=list(definition.annotations),
            read_only=definition.read_only or auto_init_value is not None,
            hidden=definition.hidden,
            auto_init_value=auto_init_value,
        )

    # --- relationships ---

    def _parse_relationship(
        self,
        definition: RelationshipDefinition,
        aggregate_name: str,
        owner_name: str,
        known_entities: set,
    ) -> Tuple[Optional[RelationshipSpec], Optional[StructuralValidationError]]:
        if not definition.target:
            return None, UnknownRelationshipTargetError(
                f"Relationship {definition.type} in '{owner_name}' has no 'target'",
                aggregate=aggregate_name,
                entity=owner_name,
            )

        target = to_pascal_case(definition.target)
        if target not in known_entities:
            return None, UnknownRelationshipTargetError(
                f"Relationship {definition.type} in '{owner_name}' targets unknown entity '{definition.target}'",
                aggregate=aggregate_name,
                entity=owner_name,
            )

        kind = RelationshipKind(definition.type)
        if definition.field_name:
            field_name = to_camel_case(definition.field_name)
        elif kind.is_collection:
            field_name = NamingConventions.collection_field_name(target)
        else:
            field_name = NamingConventions.reference_field_name(target)

        return RelationshipSpec(
            kind=kind,
            owner=owner_name,
            target=target,
            field_name=field_name,
            mapped_by=to_camel_case(definition.mapped_by) if definition.mapped_by else None,
            join_column=definition.join_column,
            cascade=[c.upper() for c in definition.cascade],
            fetch=FetchType(definition.fetch),
        ), None

    # --- value objects ---

    def _parse_value_object(
        self,
        definition: ValueObjectDefinition,
        aggregate_name: str,
        type_resolver: TypeResolver,
    ) -> Tuple[ValueObjectSpec, List[StructuralValidationError]]:
        name = to_pascal_case(definition.name)
        # a value object may embed enums and other value objects, never itself
        vo_resolver = TypeResolver(
            value_object_names=type_resolver.value_object_names - {name},
            enum_registry=self.enum_registry,
        )
        fields, errors = self._parse_fields(definition.field_definitions, aggregate_name, name, vo_resolver)

        # methods may take and return the value object itself
        methods: List[ValueObjectMethod] = []
        for method_definition in definition.methods:
            try:
                methods.append(self._parse_method(method_definition, aggregate_name, name, type_resolver))
            except UnresolvedFieldTypeError as e:
                errors.append(e)
        return ValueObjectSpec(name=name, fields=fields, methods=methods), errors

    def _parse_method(
        self,
        definition: MethodDefinition,
        aggregate_name: str,
        owner_name: str,
        type_resolver: TypeResolver,
    ) -> ValueObjectMethod:
        method_name = to_camel_case(definition.name)
        parameters = []
        for parameter in definition.parameters:
            parameter_name = to_camel_case(parameter.name)
            classification = type_resolver.resolve(
                parameter.type, aggregate=aggregate_name, entity=owner_name,
                field=f"{method_name}.{parameter_name}",
            )
            parameters.append(MethodParameter(
                name=parameter_name,
                type_name=classification.type_name,
                python_type=classification.python_type,
                classification=classification,
            ))

        return_type = (definition.return_type or "").strip()
        return_classification = None
        if return_type and return_type not in TypeKeywords.VOID:
            return_classification = type_resolver.resolve(
                return_type, aggregate=aggregate_name, entity=owner_name, field=method_name
            )

        return ValueObjectMethod(
            name=method_name,
            parameters=parameters,
            return_type=return_classification.python_type if return_classification else "None",
            return_classification=return_classification,
            body=definition.body,
        )
