"""
Core domain models for Domain Scaffold.

These models represent the aggregate skeleton built from a domain
specification and the resolved model handed to the template renderer. They
are created fresh per invocation, mutated only during the single resolution
pass and never cached.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..constants import FieldNames, PYTHON_TYPE_MAP, TypeKeywords
from ..diagnostics import Diagnostic, errors_only, warnings_only
from ..exceptions import ModuleResolutionError
from .naming import default_join_column


class TypeCategory(Enum):
    """Classification of a declared field type."""

    SCALAR = "scalar"
    TEMPORAL = "temporal"
    DECIMAL = "decimal"
    VALUE_OBJECT = "value_object"
    ENUM = "enum"
    ENTITY = "entity"
    COLLECTION = "collection"


class RelationshipKind(Enum):
    """Types of relationships between entities."""

    ONE_TO_MANY = "OneToMany"
    MANY_TO_ONE = "ManyToOne"
    ONE_TO_ONE = "OneToOne"
    MANY_TO_MANY = "ManyToMany"

    @property
    def is_collection(self) -> bool:
        return self in (RelationshipKind.ONE_TO_MANY, RelationshipKind.MANY_TO_MANY)

    @property
    def inverse(self) -> Optional["RelationshipKind"]:
        """Kind of the back-reference synthesized for a ``mappedBy`` side."""
        return _INVERSE_KINDS.get(self)


_INVERSE_KINDS = {
    RelationshipKind.ONE_TO_MANY: RelationshipKind.MANY_TO_ONE,
    RelationshipKind.ONE_TO_ONE: RelationshipKind.ONE_TO_ONE,
}


class FetchType(Enum):
    LAZY = "LAZY"
    EAGER = "EAGER"


class RelationshipSide(Enum):
    """Whether an edge carries the authoritative mapping or only navigation."""

    OWNING = "owning"
    INVERSE = "inverse"


class IdentityStrategy(Enum):
    """How identities of an entity are generated."""

    UUID = "uuid"
    SEQUENCE = "sequence"

    @classmethod
    def for_type(cls, type_name: str) -> Optional["IdentityStrategy"]:
        if type_name in TypeKeywords.STRING_IDENTITY:
            return cls.UUID
        if type_name in TypeKeywords.INTEGER_IDENTITY:
            return cls.SEQUENCE
        return None


@dataclass(frozen=True)
class TypeClassification:
    """
    The resolved meaning of a declared type string.

    ``element`` is only set for collections and holds the classification of
    the wrapped type.
    """

    category: TypeCategory
    type_name: str
    element: Optional["TypeClassification"] = None

    @property
    def is_collection(self) -> bool:
        return self.category == TypeCategory.COLLECTION

    @property
    def base_type_name(self) -> str:
        """Innermost non-collection type name."""
        if self.element is not None:
            return self.element.base_type_name
        return self.type_name

    @property
    def base(self) -> "TypeClassification":
        if self.element is not None:
            return self.element.base
        return self

    @property
    def declared(self) -> str:
        """Canonical declaration, e.g. ``List<Money>``."""
        if self.element is not None:
            return f"{TypeKeywords.COLLECTION_CONTAINER}<{self.element.declared}>"
        return self.type_name

    @property
    def python_type(self) -> str:
        """Annotation used for this type in generated Python sources."""
        if self.element is not None:
            return f"List[{self.element.python_type}]"
        return PYTHON_TYPE_MAP.get(self.type_name, self.type_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'type_name': self.type_name,
            'declared': self.declared,
            'python_type': self.python_type,
            'element': self.element.to_dict() if self.element else None,
        }


@dataclass
class FieldSpec:
    """A field of an entity or value object."""

    name: str
    declared_type: str
    classification: TypeClassification
    original_name: Optional[str] = None
    validations: List[str] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)
    read_only: bool = False
    hidden: bool = False
    is_audit: bool = False
    auto_init_value: Optional[str] = None

    @property
    def is_identity(self) -> bool:
        return self.name == FieldNames.IDENTITY

    @property
    def is_collection(self) -> bool:
        return self.classification.is_collection

    @property
    def is_value_object(self) -> bool:
        return self.classification.base.category == TypeCategory.VALUE_OBJECT

    @property
    def is_enum(self) -> bool:
        return self.classification.base.category == TypeCategory.ENUM

    @property
    def python_type(self) -> str:
        return self.classification.python_type

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'original_name': self.original_name,
            'declared_type': self.declared_type,
            'classification': self.classification.to_dict(),
            'python_type': self.python_type,
            'validations': list(self.validations),
            'annotations': list(self.annotations),
            'read_only': self.read_only,
            'hidden': self.hidden,
            'is_audit': self.is_audit,
            'is_identity': self.is_identity,
            'is_enum': self.is_enum,
            'is_value_object': self.is_value_object,
            'auto_init_value': self.auto_init_value,
        }


@dataclass
class RelationshipSpec:
    """
    A directed relationship edge owned by ``owner``.

    ``is_inverse`` is only ever true for edges synthesized by the resolver;
    ``side`` also marks authored back-references that the resolver paired
    with a ``mappedBy`` declaration.
    """

    kind: RelationshipKind
    owner: str
    target: str
    field_name: str
    mapped_by: Optional[str] = None
    join_column: Optional[str] = None
    cascade: List[str] = field(default_factory=list)
    fetch: FetchType = FetchType.LAZY
    is_inverse: bool = False
    side: RelationshipSide = RelationshipSide.OWNING

    def __post_init__(self):
        seen = []
        for item in self.cascade:
            if item not in seen:
                seen.append(item)
        self.cascade = seen

    @property
    def is_collection(self) -> bool:
        return self.kind.is_collection

    @property
    def is_owning(self) -> bool:
        return self.side == RelationshipSide.OWNING

    @property
    def effective_join_column(self) -> str:
        return self.join_column or default_join_column(self.field_name)

    @property
    def python_type(self) -> str:
        if self.is_collection:
            return f"List[{self.target}]"
        return self.target

    def signature(self) -> Tuple[Any, ...]:
        """The semantic edge, independent of how it was authored."""
        return (
            self.owner,
            self.kind.value,
            self.target,
            self.field_name,
            self.mapped_by or "",
            self.effective_join_column,
            tuple(self.cascade),
            self.fetch.value,
            self.side.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'owner': self.owner,
            'target': self.target,
            'field_name': self.field_name,
            'mapped_by': self.mapped_by,
            'join_column': self.effective_join_column,
            'cascade': list(self.cascade),
            'fetch': self.fetch.value,
            'is_inverse': self.is_inverse,
            'side': self.side.value,
            'is_collection': self.is_collection,
            'python_type': self.python_type,
        }


@dataclass
class AuditConfig:
    enabled: bool = False
    track_user: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {'enabled': self.enabled, 'track_user': self.track_user}


@dataclass
class EntitySpec:
    """An entity of an aggregate, root or secondary."""

    name: str
    variable_name: str
    table_name: str
    is_root: bool = False
    audit: AuditConfig = field(default_factory=AuditConfig)
    fields: List[FieldSpec] = field(default_factory=list)
    relationships: List[RelationshipSpec] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)

    @property
    def identity_field(self) -> Optional[FieldSpec]:
        if self.fields and self.fields[0].is_identity:
            return self.fields[0]
        return None

    @property
    def id_strategy(self) -> Optional[IdentityStrategy]:
        identity = self.identity_field
        if identity is None:
            return None
        return IdentityStrategy.for_type(identity.classification.type_name)

    @property
    def projectable_fields(self) -> List[FieldSpec]:
        """Fields carried by nested payloads: no identity, no audit fields."""
        return [f for f in self.fields if not f.is_identity and not f.is_audit]

    @property
    def command_fields(self) -> List[FieldSpec]:
        """Fields a client may set when creating the entity."""
        return [f for f in self.projectable_fields if not f.read_only and not f.hidden]

    @property
    def response_fields(self) -> List[FieldSpec]:
        return [f for f in self.fields if not f.hidden]

    @property
    def forward_relationships(self) -> List[RelationshipSpec]:
        return [rel for rel in self.relationships if rel.is_owning]

    @property
    def inverse_relationships(self) -> List[RelationshipSpec]:
        return [rel for rel in self.relationships if not rel.is_owning]

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_relationship(self, field_name: str) -> Optional[RelationshipSpec]:
        for rel in self.relationships:
            if rel.field_name == field_name:
                return rel
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'variable_name': self.variable_name,
            'table_name': self.table_name,
            'is_root': self.is_root,
            'audit': self.audit.to_dict(),
            'id_strategy': self.id_strategy.value if self.id_strategy else None,
            'fields': [f.to_dict() for f in self.fields],
            'relationships': [rel.to_dict() for rel in self.relationships],
            'imports': list(self.imports),
        }


@dataclass
class ValueObjectSpec:
    """An immutable, identity-less composite type."""

    name: str
    fields: List[FieldSpec] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    methods: List["ValueObjectMethod"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'fields': [f.to_dict() for f in self.fields],
            'methods': [m.to_dict() for m in self.methods],
            'imports': list(self.imports),
        }


@dataclass(frozen=True)
class EnumTransition:
    """An allowed state change of an enum-typed field."""

    sources: Tuple[str, ...]
    target: str
    method_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': list(self.sources),
            'to': self.target,
            'method': self.method_name,
        }


@dataclass(frozen=True)
class EnumSpec:
    """An ordered set of values, shared module-wide."""

    name: str
    values: Tuple[str, ...]
    transitions: Tuple[EnumTransition, ...] = ()
    initial_value: Optional[str] = None
    declared_in: Optional[str] = None

    @property
    def has_transitions(self) -> bool:
        return bool(self.transitions)

    def transition_map(self) -> Dict[str, List[str]]:
        """Map every state to the states it may move to."""
        result: Dict[str, List[str]] = {value: [] for value in self.values}
        for transition in self.transitions:
            for source in transition.sources:
                targets = result.setdefault(source, [])
                if transition.target not in targets:
                    targets.append(transition.target)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'values': list(self.values),
            'transitions': [t.to_dict() for t in self.transitions],
            'transition_map': self.transition_map(),
            'initial_value': self.initial_value,
            'declared_in': self.declared_in,
        }


class EnumRegistry(Mapping):
    """
    Immutable module-wide mapping of enum name to ``EnumSpec``.

    Built once before any aggregate is resolved and passed explicitly to
    every stage that needs it.
    """

    def __init__(self, enums: Iterable[EnumSpec] = ()):
        entries: Dict[str, EnumSpec] = {}
        for enum_spec in enums:
            entries.setdefault(enum_spec.name, enum_spec)
        self._entries = MappingProxyType(entries)

    def __getitem__(self, name: str) -> EnumSpec:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"EnumRegistry({sorted(self._entries)})"

    @property
    def names(self) -> List[str]:
        return list(self._entries)

    def declared_in(self, aggregate: str) -> List[EnumSpec]:
        return [e for e in self._entries.values() if e.declared_in == aggregate]

    def to_dict(self) -> Dict[str, Any]:
        return {name: spec.to_dict() for name, spec in self._entries.items()}


@dataclass
class AggregateSpec:
    """
    A cluster of one root entity, secondary entities, value objects and enums.

    ``enums`` holds the enums declared by this aggregate; field types resolve
    against the module-wide registry.
    """

    name: str
    table_name: str
    audit: bool = False
    entities: List[EntitySpec] = field(default_factory=list)
    value_objects: List[ValueObjectSpec] = field(default_factory=list)
    enums: List[EnumSpec] = field(default_factory=list)

    @property
    def root_entity(self) -> EntitySpec:
        for entity in self.entities:
            if entity.is_root:
                return entity
        raise LookupError(f"Aggregate '{self.name}' has no root entity")

    @property
    def secondary_entities(self) -> List[EntitySpec]:
        return [entity for entity in self.entities if not entity.is_root]

    @property
    def entities_in_resolution_order(self) -> List[EntitySpec]:
        """Root first, then secondaries in declaration order."""
        return [self.root_entity] + self.secondary_entities

    @property
    def entity_map(self) -> Dict[str, EntitySpec]:
        return {entity.name: entity for entity in self.entities}

    def get_entity(self, name: str) -> Optional[EntitySpec]:
        return self.entity_map.get(name)


@dataclass
class EnrichedRelationship:
    """A node of the nested payload tree built from one-to-many edges."""

    target: str
    field_name: str
    depth: int
    fields: List[FieldSpec] = field(default_factory=list)
    children: List["EnrichedRelationship"] = field(default_factory=list)

    def walk(self) -> Iterator["EnrichedRelationship"]:
        """Yield this node and all its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    @property
    def height(self) -> int:
        """Number of levels below and including this node."""
        if not self.children:
            return 1
        return 1 + max(child.height for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target': self.target,
            'field_name': self.field_name,
            'depth': self.depth,
            'fields': [f.to_dict() for f in self.fields],
            'children': [child.to_dict() for child in self.children],
        }


@dataclass
class MethodParameter:
    name: str
    type_name: str
    python_type: str
    classification: Optional[TypeClassification] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type_name': self.type_name, 'python_type': self.python_type}


@dataclass
class ValueObjectMethod:
    """
    A behaviour method declared on a value object.

    ``body`` is carried through verbatim; ``return_classification`` is None
    for methods that return nothing.
    """

    name: str
    parameters: List[MethodParameter] = field(default_factory=list)
    return_type: str = "None"
    return_classification: Optional[TypeClassification] = None
    body: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'parameters': [p.to_dict() for p in self.parameters],
            'return_type': self.return_type,
            'body': self.body,
        }


@dataclass
class AggregateMethod:
    """A behaviour method generated on the aggregate root."""

    name: str
    kind: str  # 'add', 'remove', 'get', 'assign'
    field_name: str
    target: str
    parameters: List[MethodParameter] = field(default_factory=list)
    return_type: str = "None"
    is_factory: bool = False
    is_overload: bool = False
    mapped_by: Optional[str] = None
    assignments: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def own_parameters(self) -> List[MethodParameter]:
        """Parameters that are not forwarded to a nested one-to-one entity."""
        forwarded = {param["name"] for assignment in self.assignments for param in assignment["parameters"]}
        return [param for param in self.parameters if param.name not in forwarded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'kind': self.kind,
            'field_name': self.field_name,
            'target': self.target,
            'parameters': [param.to_dict() for param in self.parameters],
            'return_type': self.return_type,
            'is_factory': self.is_factory,
            'is_overload': self.is_overload,
            'mapped_by': self.mapped_by,
            'assignments': list(self.assignments),
        }


@dataclass
class ResolvedAggregate:
    """
    The resolved model of one aggregate, as consumed by the renderer.

    Every entity's relationship list is closed under inversion and carries
    its computed import set.
    """

    aggregate: AggregateSpec
    enum_registry: EnumRegistry
    base_package: str = ""
    nested_relationships: Dict[str, List[EnrichedRelationship]] = field(default_factory=dict)
    aggregate_methods: List[AggregateMethod] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.aggregate.name

    @property
    def root_entity(self) -> EntitySpec:
        return self.aggregate.root_entity

    @property
    def secondary_entities(self) -> List[EntitySpec]:
        return self.aggregate.secondary_entities

    @property
    def entities(self) -> List[EntitySpec]:
        return self.aggregate.entities

    @property
    def value_objects(self) -> List[ValueObjectSpec]:
        return self.aggregate.value_objects

    @property
    def warnings(self) -> List[Diagnostic]:
        return warnings_only(self.diagnostics)

    def nested_for(self, entity_name: str) -> List[EnrichedRelationship]:
        return self.nested_relationships.get(entity_name, [])

    def signature(self) -> Dict[str, Any]:
        """
        Provenance-free view of the model, used to compare resolutions.

        Relationship order does not matter, only the set of semantic edges.
        """
        return {
            'name': self.aggregate.name,
            'entities': {
                entity.name: {
                    'fields': [f.to_dict() for f in entity.fields],
                    'relationships': sorted(rel.signature() for rel in entity.relationships),
                    'imports': list(entity.imports),
                }
                for entity in self.aggregate.entities
            },
            'nested': {name: [node.to_dict() for node in nodes]
                       for name, nodes in self.nested_relationships.items()},
            'methods': [method.to_dict() for method in self.aggregate_methods],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation for templates and dumps."""
        return {
            'name': self.aggregate.name,
            'table_name': self.aggregate.table_name,
            'audit': self.aggregate.audit,
            'base_package': self.base_package,
            'root_entity': self.root_entity.to_dict(),
            'secondary_entities': [entity.to_dict() for entity in self.secondary_entities],
            'value_objects': [vo.to_dict() for vo in self.aggregate.value_objects],
            'enums': [enum_spec.to_dict() for enum_spec in self.aggregate.enums],
            'enum_registry': self.enum_registry.to_dict(),
            'nested_relationships': {
                name: [node.to_dict() for node in nodes]
                for name, nodes in self.nested_relationships.items()
            },
            'aggregate_methods': [method.to_dict() for method in self.aggregate_methods],
            'diagnostics': [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class ModuleResolution:
    """
    Result of resolving every aggregate of a module.

    Failed aggregates are reported in ``failures`` and have no model.
    """

    module_name: str
    enum_registry: EnumRegistry
    aggregates: List[ResolvedAggregate] = field(default_factory=list)
    failures: List[Any] = field(default_factory=list)  # AggregateResolutionError
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def errors(self) -> List[Diagnostic]:
        return errors_only(self.diagnostics)

    @property
    def warnings(self) -> List[Diagnostic]:
        return warnings_only(self.diagnostics)

    def get_aggregate(self, name: str) -> Optional[ResolvedAggregate]:
        for resolved in self.aggregates:
            if resolved.name == name:
                return resolved
        return None

    def raise_for_errors(self) -> None:
        """Raise one batch with every structural error of the module."""
        if self.failures:
            raise ModuleResolutionError(self.module_name, self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'module': self.module_name,
            'enum_registry': self.enum_registry.to_dict(),
            'aggregates': [resolved.to_dict() for resolved in self.aggregates],
            'failed_aggregates': [failure.aggregate for failure in self.failures],
            'diagnostics': [d.to_dict() for d in self.diagnostics],
        }
